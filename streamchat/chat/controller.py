"""Conversation controller.

``Chat`` owns one conversation: its message history, its status state
machine and the turn currently in flight. A turn sends the history through
a ``ChatTransport``, folds the returned chunk stream into the assistant
message with ``apply_chunk`` and routes notifications to observers.

Status lifecycle::

    ready -> submitted -> streaming -> ready
                  \\            \\-> error
                   \\-> error

Only one public entry point runs at a time; calls made while a turn is in
flight wait for it to finish. Automatic follow-up turns (tool-call round
trips) run inside the turn that triggered them and are bounded by
``max_tool_calls``.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from streamchat.chat.state import ActiveResponse, ChatState
from streamchat.exceptions import (
    ChatCancelledError,
    ChatStreamError,
    InvalidLastSessionMessageError,
    MessageNotFoundError,
    NotUserMessageError,
    TooManyRecursionAttemptsError,
)
from streamchat.models.enums import ChatRequestTrigger, ChatStatus, MessageRole, ToolState
from streamchat.models.messages import Message
from streamchat.models.parts import TextPart
from streamchat.settings import get_settings
from streamchat.streaming.assembler import (
    Notification,
    apply_chunk,
    create_streaming_state,
    finalize_streaming_state,
)
from streamchat.transport.http import HttpChatTransport

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable, Sequence

    from streamchat.models.chunks import DataChunk, ToolInputAvailableChunk, UIMessageChunk
    from streamchat.models.messages import FileAttachment
    from streamchat.settings import Settings
    from streamchat.transport.base import ChatRequestOptions, ChatTransport

logger = logging.getLogger(__name__)


class Chat:
    """A single conversation with a chat endpoint.

    Args:
        transport: Where turns are sent. Defaults to an ``HttpChatTransport``
            built from settings; raises ``TransportConfigurationError`` when
            none can be built.
        chat_id: Conversation id sent with every request (generated if omitted).
        messages: Initial message history.
        generate_id: Id factory for new messages (uuid4 strings by default).
        on_error: Called with every error, including ``error`` chunks.
        on_finish: Called with the assistant message when a turn completes.
        on_tool_call: Called with each client-side tool call chunk.
        on_data: Called with each ``data-*`` chunk, transient or not.
        on_status_change: Called with the new status on every transition.
        send_automatically_when: Predicate over the message history checked
            after each completed turn; when true a follow-up turn is sent.
        max_tool_calls: Bound on consecutive automatic follow-up turns.
        settings: Settings used for the defaults above.

    Observers may be plain or async callables, except ``on_status_change``
    which is called inline and must be a plain callable.
    """

    def __init__(
        self,
        *,
        transport: ChatTransport | None = None,
        chat_id: str | None = None,
        messages: Sequence[Message] | None = None,
        generate_id: Callable[[], str] | None = None,
        on_error: Callable[[Exception], Any] | None = None,
        on_finish: Callable[[Message], Any] | None = None,
        on_tool_call: Callable[[ToolInputAvailableChunk], Any] | None = None,
        on_data: Callable[[DataChunk], Any] | None = None,
        on_status_change: Callable[[ChatStatus], Any] | None = None,
        send_automatically_when: Callable[[Sequence[Message]], bool] | None = None,
        max_tool_calls: int | None = None,
        settings: Settings | None = None,
    ):
        settings = settings or get_settings()
        self._generate_id = generate_id or _uuid
        self.id = chat_id or self._generate_id()
        self.transport = transport or HttpChatTransport.from_settings(settings)
        self.max_tool_calls = settings.max_tool_calls if max_tool_calls is None else max_tool_calls

        self.on_error = on_error
        self.on_finish = on_finish
        self.on_tool_call = on_tool_call
        self.on_data = on_data
        self.on_status_change = on_status_change
        self.send_automatically_when = send_automatically_when

        self.state = ChatState(messages=list(messages or []))
        self._active_response: ActiveResponse | None = None
        self._recursion_count = 0
        self._lock = asyncio.Lock()

    # =========================================================================
    # STATE ACCESS
    # =========================================================================

    @property
    def status(self) -> ChatStatus:
        return self.state.status

    @property
    def error(self) -> Exception | None:
        return self.state.error

    @property
    def messages(self) -> list[Message]:
        return self.state.messages

    @messages.setter
    def messages(self, messages: Sequence[Message]) -> None:
        self.state.messages = list(messages)

    @property
    def last_message(self) -> Message | None:
        return self.state.messages[-1] if self.state.messages else None

    @property
    def is_busy(self) -> bool:
        """True while a turn is in flight."""
        return self._active_response is not None

    # =========================================================================
    # PUBLIC OPERATIONS
    # =========================================================================

    async def send_message(
        self,
        message: Message | None = None,
        *,
        text: str | None = None,
        files: Sequence[FileAttachment] | None = None,
        metadata: Any = None,
        message_id: str | None = None,
        options: ChatRequestOptions | None = None,
    ) -> None:
        """Add a user message and run a turn.

        Pass a ready ``message``, or ``text`` and/or ``files`` to build one.
        With none of them the current history is sent as is.

        With ``message_id`` the referenced user message is replaced and every
        message after it is dropped (edit and resend).

        Raises:
            MessageNotFoundError: ``message_id`` is not in the history.
            NotUserMessageError: ``message_id`` names a non-user message.
            ValueError: ``message_id`` was given without a replacement message.
            TransportError: The request or the stream failed.
        """
        if message_id is not None and message is None and text is None and not files:
            raise ValueError("message_id needs a message, text or files to replace it with")

        async with self._lock:
            new_message = message
            if new_message is None and (text is not None or files):
                new_message = self._build_user_message(
                    text=text, files=files, metadata=metadata, message_id=message_id
                )

            if new_message is None:
                request_id = self.last_message.id if self.last_message else None
            elif message_id is not None:
                try:
                    self._replace_user_message(message_id, new_message)
                except (MessageNotFoundError, NotUserMessageError) as e:
                    await self._fail(e)
                    raise
                request_id = new_message.id
            else:
                self.state.push_message(new_message)
                request_id = new_message.id

            await self._make_request(ChatRequestTrigger.SUBMIT_MESSAGE, request_id, options)

    async def regenerate(
        self,
        message_id: str | None = None,
        *,
        options: ChatRequestOptions | None = None,
    ) -> None:
        """Regenerate the assistant response for a point in the history.

        An assistant target is removed together with everything after it; a
        user target keeps itself and drops what follows. Without
        ``message_id`` the last message is the target.

        Raises:
            MessageNotFoundError: The target is not in the history.
        """
        async with self._lock:
            if message_id is None:
                index = len(self.state.messages) - 1 if self.state.messages else None
            else:
                index = self.state.index_of(message_id)
            if index is None:
                error = MessageNotFoundError(message_id or "<last message>")
                await self._fail(error)
                raise error

            target = self.state.messages[index]
            keep = index if target.role == MessageRole.ASSISTANT else index + 1
            self.state.messages = self.state.messages[:keep]

            await self._make_request(ChatRequestTrigger.REGENERATE_MESSAGE, message_id, options)

    async def resume_stream(
        self,
        options: ChatRequestOptions | None = None,
        *,
        path: str | None = None,
    ) -> None:
        """Reattach to a stream the server is still producing for this chat.

        ``path`` overrides the transport's reconnect path for this call.
        When the server has nothing to resume, status returns to ready and
        the history is left unchanged.
        """
        async with self._lock:
            await self._make_request(
                ChatRequestTrigger.RESUME_STREAM, None, options, resume_path=path
            )

    async def add_tool_result(
        self,
        tool_call_id: str,
        output: Any,
        *,
        options: ChatRequestOptions | None = None,
    ) -> None:
        """Record the output of a client-side tool call.

        Safe to call from ``on_tool_call``: while a turn is in flight the
        result is only recorded and the turn's own auto-send check decides
        whether to continue.

        Raises:
            MessageNotFoundError: No tool call with that id on the last
                assistant message.
        """
        last = self.last_message
        tool = last.find_tool_part(tool_call_id) if last and last.role == MessageRole.ASSISTANT else None
        if tool is None:
            error = MessageNotFoundError(tool_call_id)
            await self._fail(error)
            raise error

        tool.state = ToolState.OUTPUT_AVAILABLE
        tool.output = output
        tool.error_text = None
        logger.debug("Recorded result for tool call %s", tool_call_id)

        if self._lock.locked():
            return
        async with self._lock:
            if self._should_send_automatically():
                last = self.last_message
                await self._make_request(
                    ChatRequestTrigger.SUBMIT_MESSAGE, last.id if last else None, options
                )

    def stop(self) -> None:
        """Cancel the turn in flight, keeping whatever was already received."""
        active = self._active_response
        if active is None or active.task is None or active.task.done():
            return
        active.aborted = True
        active.task.cancel()

    def clear_error(self) -> None:
        """Leave the error status. Does nothing in any other status."""
        if self.state.status == ChatStatus.ERROR:
            self.state.error = None
            self._set_status(ChatStatus.READY)

    # =========================================================================
    # TURN EXECUTION
    # =========================================================================

    async def _make_request(
        self,
        trigger: ChatRequestTrigger,
        message_id: str | None,
        options: ChatRequestOptions | None,
        *,
        resume_path: str | None = None,
    ) -> None:
        self._set_status(ChatStatus.SUBMITTED)

        active = ActiveResponse(
            state=create_streaming_state(self.last_message, self._generate_id())
        )
        self._active_response = active
        active.task = asyncio.create_task(
            self._consume(active, trigger, message_id, options, resume_path)
        )
        try:
            streamed = await active.task
        except asyncio.CancelledError:
            self._finish_cancelled()
            if not active.aborted:
                raise
            return
        except ChatCancelledError:
            self._finish_cancelled()
            return
        except Exception as e:
            logger.error("Chat %s turn failed: %s", self.id, e)
            await self._fail(e)
            raise
        finally:
            self._active_response = None

        if not streamed:
            self._set_status(ChatStatus.READY)
            return

        finished = active.state.message if active.chunk_count else self.last_message
        if finished is None:
            error = InvalidLastSessionMessageError(active.state.message.id)
            await self._fail(error)
            raise error

        if active.protocol_error is not None:
            self._set_status(ChatStatus.ERROR, active.protocol_error)
            self.state.error = active.protocol_error
            await _call_maybe_async(self.on_finish, finished)
            return

        self._set_status(ChatStatus.READY)
        await _call_maybe_async(self.on_finish, finished)

        if self._should_send_automatically():
            await self._send_automatically(message_id, options)

    async def _consume(
        self,
        active: ActiveResponse,
        trigger: ChatRequestTrigger,
        message_id: str | None,
        options: ChatRequestOptions | None,
        resume_path: str | None = None,
    ) -> bool:
        """Fetch the turn's stream and fold it. False when nothing was resumable."""
        stream: AsyncIterator[UIMessageChunk] | None
        if trigger == ChatRequestTrigger.RESUME_STREAM:
            stream = await self.transport.reconnect_to_stream(
                chat_id=self.id, options=options, path=resume_path
            )
            if stream is None:
                logger.info("No active stream to resume for chat %s", self.id)
                return False
        else:
            stream = await self.transport.send_messages(
                chat_id=self.id,
                messages=list(self.state.messages),
                trigger=trigger,
                message_id=message_id,
                options=options,
            )

        try:
            async for chunk in stream:
                notification = apply_chunk(active.state, chunk)
                active.chunk_count += 1
                self._set_status(ChatStatus.STREAMING)
                self._upsert_message(active.state.message)
                if notification is not None:
                    await self._notify(active, notification, chunk)
        finally:
            aclose = getattr(stream, "aclose", None)
            if aclose is not None:
                await aclose()

        finalize_streaming_state(active.state)
        return True

    async def _send_automatically(
        self, message_id: str | None, options: ChatRequestOptions | None
    ) -> None:
        if self._recursion_count >= self.max_tool_calls:
            error = TooManyRecursionAttemptsError(
                message_id or (self.last_message.id if self.last_message else "<none>"),
                max_attempts=self.max_tool_calls,
            )
            await self._fail(error)
            raise error

        self._recursion_count += 1
        try:
            last = self.last_message
            await self._make_request(
                ChatRequestTrigger.SUBMIT_MESSAGE, last.id if last else None, options
            )
        finally:
            self._recursion_count -= 1

    async def _notify(
        self, active: ActiveResponse, notification: Notification, chunk: UIMessageChunk
    ) -> None:
        if notification == Notification.TOOL_CALL:
            await _call_maybe_async(self.on_tool_call, chunk)
        elif notification == Notification.DATA:
            await _call_maybe_async(self.on_data, chunk)
        elif notification == Notification.ERROR:
            error = ChatStreamError(getattr(chunk, "error_text", ""))
            logger.warning("Chat %s received error chunk: %s", self.id, error)
            active.protocol_error = error
            await _call_maybe_async(self.on_error, error)

    def _finish_cancelled(self) -> None:
        logger.info("Chat %s turn cancelled", self.id)
        self._set_status(ChatStatus.READY)

    async def _fail(self, error: Exception) -> None:
        self._set_status(ChatStatus.ERROR, error)
        self.state.error = error
        await _call_maybe_async(self.on_error, error)

    def _should_send_automatically(self) -> bool:
        if self.send_automatically_when is None:
            return False
        return bool(self.send_automatically_when(self.state.messages))

    # =========================================================================
    # HISTORY AND STATUS
    # =========================================================================

    def _set_status(self, status: ChatStatus, error: Exception | None = None) -> None:
        if self.state.status == status:
            return
        logger.debug("Chat %s status %s -> %s", self.id, self.state.status, status)
        self.state.status = status
        self.state.error = error
        if self.on_status_change is not None:
            self.on_status_change(status)

    def _upsert_message(self, message: Message) -> None:
        last = self.last_message
        if last is not None and (last is message or last.id == message.id):
            self.state.replace_message(len(self.state.messages) - 1, message)
        else:
            self.state.push_message(message)

    def _replace_user_message(self, message_id: str, message: Message) -> None:
        index = self.state.index_of(message_id)
        if index is None:
            raise MessageNotFoundError(message_id)
        if self.state.messages[index].role != MessageRole.USER:
            raise NotUserMessageError(message_id)
        self.state.messages = self.state.messages[: index + 1]
        self.state.replace_message(index, message)

    def _build_user_message(
        self,
        *,
        text: str | None,
        files: Sequence[FileAttachment] | None,
        metadata: Any,
        message_id: str | None,
    ) -> Message:
        parts: list[Any] = [attachment.to_part() for attachment in files or ()]
        if text is not None:
            parts.append(TextPart(text=text))
        return Message(
            id=message_id or self._generate_id(),
            role=MessageRole.USER,
            parts=parts,
            metadata=metadata,
        )


def _uuid() -> str:
    return str(uuid4())


async def _call_maybe_async(fn: Callable[..., Any] | None, *args: Any) -> Any:
    if fn is None:
        return None
    result = fn(*args)
    if inspect.isawaitable(result):
        return await result
    return result
