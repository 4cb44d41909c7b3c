"""Stream assembler: fold chunks into the assistant message of a turn.

``apply_chunk`` is the sequential reducer: it applies one chunk to the
``StreamingMessageState`` in place and returns an optional out-of-band
``Notification`` for the caller to route to its observers. It never awaits
and never calls back into the caller, so it cannot be re-entered.

Open text/reasoning parts are tracked as indexes into ``message.parts`` so
the message's part list stays the single source of truth.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from streamchat.models.chunks import (
    AbortChunk,
    DataChunk,
    ErrorChunk,
    FileChunk,
    FinishChunk,
    FinishStepChunk,
    MessageMetadataChunk,
    ReasoningDeltaChunk,
    ReasoningEndChunk,
    ReasoningStartChunk,
    SourceDocumentChunk,
    SourceUrlChunk,
    StartChunk,
    StartStepChunk,
    TextDeltaChunk,
    TextEndChunk,
    TextStartChunk,
    ToolInputAvailableChunk,
    ToolInputDeltaChunk,
    ToolInputErrorChunk,
    ToolInputStartChunk,
    ToolOutputAvailableChunk,
    ToolOutputErrorChunk,
    UIMessageChunk,
)
from streamchat.models.enums import MessageRole, TextState, ToolState
from streamchat.models.messages import Message
from streamchat.models.parts import (
    BaseToolPart,
    DataPart,
    DynamicToolPart,
    FilePart,
    ReasoningPart,
    SourceDocumentPart,
    SourceUrlPart,
    StepStartPart,
    TextPart,
    ToolPart,
)

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)


class Notification(StrEnum):
    """Side-channel signals produced while folding a chunk."""

    TOOL_CALL = "tool-call"
    DATA = "data"
    ERROR = "error"


@dataclass
class StreamingMessageState:
    """The assistant message under construction plus open-part tracking.

    Attributes:
        message: The message being assembled.
        active_text_parts: Open text chunk id -> index into ``message.parts``.
        active_reasoning_parts: Open reasoning chunk id -> index into ``message.parts``.
        closed_text_ids: Text ids closed during the current step.
        closed_reasoning_ids: Reasoning ids closed during the current step.
    """

    message: Message
    active_text_parts: dict[str, int] = field(default_factory=dict)
    active_reasoning_parts: dict[str, int] = field(default_factory=dict)
    closed_text_ids: set[str] = field(default_factory=set)
    closed_reasoning_ids: set[str] = field(default_factory=set)

    def text_part(self, chunk_id: str) -> TextPart | None:
        """Return the open text part for a chunk id, if any."""
        index = self.active_text_parts.get(chunk_id)
        if index is None:
            return None
        part = self.message.parts[index]
        return part if isinstance(part, TextPart) else None

    def reasoning_part(self, chunk_id: str) -> ReasoningPart | None:
        """Return the open reasoning part for a chunk id, if any."""
        index = self.active_reasoning_parts.get(chunk_id)
        if index is None:
            return None
        part = self.message.parts[index]
        return part if isinstance(part, ReasoningPart) else None


def create_streaming_state(last_message: Message | None, message_id: str) -> StreamingMessageState:
    """Start the assembly state for a new turn.

    Continues the last message when it is an assistant message (a tool-call
    round trip), working on a copy so the stored message stays untouched
    until the first chunk replaces it. Otherwise starts a fresh, empty
    assistant message with ``message_id``.
    """
    if last_message is not None and last_message.role == MessageRole.ASSISTANT:
        return StreamingMessageState(message=last_message.model_copy(deep=True))
    return StreamingMessageState(message=Message(id=message_id, role=MessageRole.ASSISTANT))


def apply_chunk(state: StreamingMessageState, chunk: UIMessageChunk) -> Notification | None:
    """Fold one chunk into the streaming state.

    Args:
        state: Assembly state of the in-flight turn (mutated in place).
        chunk: The next chunk, in arrival order.

    Returns:
        A Notification when the chunk must also reach an observer
        (client-executed tool call, data chunk, error chunk), else None.
    """
    handler = _HANDLERS.get(type(chunk))
    if handler is None:
        logger.warning("No handler for chunk type %s", type(chunk).__name__)
        return None
    return handler(state, chunk)


def finalize_streaming_state(state: StreamingMessageState) -> list[str]:
    """Apply end-of-stream rules after a turn's stream completed successfully.

    Tool calls whose input never became available are moved to
    ``ToolState.INPUT_ABANDONED``.

    Returns:
        The tool call ids that were abandoned.
    """
    abandoned: list[str] = []
    for tool in state.message.tool_parts:
        if tool.state == ToolState.INPUT_STREAMING:
            tool.state = ToolState.INPUT_ABANDONED
            abandoned.append(tool.tool_call_id)

    if abandoned:
        logger.warning("Stream ended with unfinished tool input: %s", ", ".join(abandoned))
    return abandoned


# =============================================================================
# TEXT AND REASONING
# =============================================================================


def _on_text_start(state: StreamingMessageState, chunk: TextStartChunk) -> None:
    _open_part(
        state.active_text_parts,
        state.closed_text_ids,
        state.message,
        chunk.id,
        TextPart(state=TextState.STREAMING, provider_metadata=chunk.provider_metadata),
    )


def _on_text_delta(state: StreamingMessageState, chunk: TextDeltaChunk) -> None:
    part = state.text_part(chunk.id)
    if part is None:
        logger.debug("text-delta for unknown id '%s' ignored", chunk.id)
        return
    part.text += chunk.delta
    if chunk.provider_metadata is not None:
        part.provider_metadata = chunk.provider_metadata


def _on_text_end(state: StreamingMessageState, chunk: TextEndChunk) -> None:
    part = state.text_part(chunk.id)
    if part is not None:
        _close_part(part, chunk.provider_metadata)
    _release_id(state.active_text_parts, state.closed_text_ids, chunk.id)


def _on_reasoning_start(state: StreamingMessageState, chunk: ReasoningStartChunk) -> None:
    _open_part(
        state.active_reasoning_parts,
        state.closed_reasoning_ids,
        state.message,
        chunk.id,
        ReasoningPart(state=TextState.STREAMING, provider_metadata=chunk.provider_metadata),
    )


def _on_reasoning_delta(state: StreamingMessageState, chunk: ReasoningDeltaChunk) -> None:
    part = state.reasoning_part(chunk.id)
    if part is None:
        logger.debug("reasoning-delta for unknown id '%s' ignored", chunk.id)
        return
    part.text += chunk.delta
    if chunk.provider_metadata is not None:
        part.provider_metadata = chunk.provider_metadata


def _on_reasoning_end(state: StreamingMessageState, chunk: ReasoningEndChunk) -> None:
    part = state.reasoning_part(chunk.id)
    if part is not None:
        _close_part(part, chunk.provider_metadata)
    _release_id(state.active_reasoning_parts, state.closed_reasoning_ids, chunk.id)


def _open_part(
    index: dict[str, int],
    closed: set[str],
    message: Message,
    chunk_id: str,
    part: TextPart | ReasoningPart,
) -> None:
    if chunk_id in closed:
        logger.warning("Part id '%s' reopened after it was closed; ignored", chunk_id)
        return
    if chunk_id in index:
        logger.warning("Part id '%s' started twice; replacing the open part", chunk_id)
    message.parts.append(part)
    index[chunk_id] = len(message.parts) - 1


def _close_part(part: TextPart | ReasoningPart, provider_metadata: dict[str, Any] | None) -> None:
    if provider_metadata is not None:
        part.provider_metadata = provider_metadata
    part.state = TextState.DONE


def _release_id(index: dict[str, int], closed: set[str], chunk_id: str) -> None:
    if index.pop(chunk_id, None) is not None:
        closed.add(chunk_id)


# =============================================================================
# TOOL CALLS
# =============================================================================


def _on_tool_input_start(state: StreamingMessageState, chunk: ToolInputStartChunk) -> None:
    if state.message.find_tool_part(chunk.tool_call_id) is not None:
        logger.warning("Duplicate tool-input-start for '%s' ignored", chunk.tool_call_id)
        return
    state.message.parts.append(
        _new_tool_part(
            dynamic=chunk.dynamic,
            tool_name=chunk.tool_name,
            tool_call_id=chunk.tool_call_id,
            provider_executed=chunk.provider_executed,
        )
    )


def _on_tool_input_delta(state: StreamingMessageState, chunk: ToolInputDeltaChunk) -> None:
    tool = state.message.find_tool_part(chunk.tool_call_id)
    if tool is None:
        logger.warning("tool-input-delta for unknown call '%s' ignored", chunk.tool_call_id)
        return
    tool.input_text += chunk.input_text_delta


def _on_tool_input_available(
    state: StreamingMessageState, chunk: ToolInputAvailableChunk
) -> Notification | None:
    tool = _tool_part_or_create(state.message, chunk)
    tool.state = ToolState.INPUT_AVAILABLE
    tool.input = chunk.input
    tool.call_provider_metadata = chunk.provider_metadata
    if chunk.provider_executed is not None:
        tool.provider_executed = chunk.provider_executed

    # Provider-executed tools never reach the client-side tool observer
    if chunk.provider_executed is True:
        return None
    return Notification.TOOL_CALL


def _on_tool_input_error(state: StreamingMessageState, chunk: ToolInputErrorChunk) -> None:
    tool = _tool_part_or_create(state.message, chunk)
    tool.state = ToolState.OUTPUT_ERROR
    tool.input = chunk.input
    tool.error_text = chunk.error_text
    tool.call_provider_metadata = chunk.provider_metadata
    if chunk.provider_executed is not None:
        tool.provider_executed = chunk.provider_executed


def _on_tool_output_available(
    state: StreamingMessageState, chunk: ToolOutputAvailableChunk
) -> None:
    tool = state.message.find_tool_part(chunk.tool_call_id)
    if tool is None:
        logger.warning("tool-output-available for unknown call '%s' ignored", chunk.tool_call_id)
        return
    tool.state = ToolState.OUTPUT_AVAILABLE
    tool.output = chunk.output
    tool.preliminary = chunk.preliminary
    if chunk.provider_executed is not None:
        tool.provider_executed = chunk.provider_executed


def _on_tool_output_error(state: StreamingMessageState, chunk: ToolOutputErrorChunk) -> None:
    tool = state.message.find_tool_part(chunk.tool_call_id)
    if tool is None:
        logger.warning("tool-output-error for unknown call '%s' ignored", chunk.tool_call_id)
        return
    tool.state = ToolState.OUTPUT_ERROR
    tool.error_text = chunk.error_text
    if chunk.provider_executed is not None:
        tool.provider_executed = chunk.provider_executed


def _new_tool_part(
    *,
    dynamic: bool | None,
    tool_name: str,
    tool_call_id: str,
    provider_executed: bool | None,
) -> BaseToolPart:
    part_type = DynamicToolPart if dynamic is True else ToolPart
    return part_type(
        tool_name=tool_name,
        tool_call_id=tool_call_id,
        state=ToolState.INPUT_STREAMING,
        provider_executed=provider_executed,
    )


def _tool_part_or_create(
    message: Message,
    chunk: ToolInputAvailableChunk | ToolInputErrorChunk,
) -> BaseToolPart:
    tool = message.find_tool_part(chunk.tool_call_id)
    if tool is None:
        tool = _new_tool_part(
            dynamic=chunk.dynamic,
            tool_name=chunk.tool_name,
            tool_call_id=chunk.tool_call_id,
            provider_executed=chunk.provider_executed,
        )
        message.parts.append(tool)
    return tool


# =============================================================================
# SOURCES, FILES AND DATA
# =============================================================================


def _on_source_url(state: StreamingMessageState, chunk: SourceUrlChunk) -> None:
    state.message.parts.append(
        SourceUrlPart(
            source_id=chunk.source_id,
            url=chunk.url,
            title=chunk.title,
            provider_metadata=chunk.provider_metadata,
        )
    )


def _on_source_document(state: StreamingMessageState, chunk: SourceDocumentChunk) -> None:
    state.message.parts.append(
        SourceDocumentPart(
            source_id=chunk.source_id,
            media_type=chunk.media_type,
            title=chunk.title,
            filename=chunk.filename,
            provider_metadata=chunk.provider_metadata,
        )
    )


def _on_file(state: StreamingMessageState, chunk: FileChunk) -> None:
    state.message.parts.append(
        FilePart(
            url=chunk.url,
            media_type=chunk.media_type,
            provider_metadata=chunk.provider_metadata,
        )
    )


def _on_data(state: StreamingMessageState, chunk: DataChunk) -> Notification:
    if chunk.transient is not True:
        state.message.parts.append(
            DataPart(data_name=chunk.data_name, id=chunk.id, data=chunk.data)
        )
    return Notification.DATA


# =============================================================================
# STEPS, MESSAGE METADATA AND CONTROL
# =============================================================================


def _on_start_step(state: StreamingMessageState, chunk: StartStepChunk) -> None:
    state.message.parts.append(StepStartPart())


def _on_finish_step(state: StreamingMessageState, chunk: FinishStepChunk) -> None:
    # Tool parts stay addressable by tool_call_id across steps
    state.active_text_parts.clear()
    state.active_reasoning_parts.clear()
    state.closed_text_ids.clear()
    state.closed_reasoning_ids.clear()


def _on_start(state: StreamingMessageState, chunk: StartChunk) -> None:
    if chunk.message_id is not None:
        state.message.id = chunk.message_id
    if chunk.message_metadata is not None:
        state.message.metadata = chunk.message_metadata


def _on_finish(state: StreamingMessageState, chunk: FinishChunk) -> None:
    if chunk.message_metadata is not None:
        state.message.metadata = chunk.message_metadata


def _on_message_metadata(state: StreamingMessageState, chunk: MessageMetadataChunk) -> None:
    state.message.metadata = chunk.message_metadata


def _on_error(state: StreamingMessageState, chunk: ErrorChunk) -> Notification:
    return Notification.ERROR


def _on_abort(state: StreamingMessageState, chunk: AbortChunk) -> None:
    return None


_HANDLERS: dict[type, Callable[[StreamingMessageState, Any], Notification | None]] = {
    TextStartChunk: _on_text_start,
    TextDeltaChunk: _on_text_delta,
    TextEndChunk: _on_text_end,
    ReasoningStartChunk: _on_reasoning_start,
    ReasoningDeltaChunk: _on_reasoning_delta,
    ReasoningEndChunk: _on_reasoning_end,
    ToolInputStartChunk: _on_tool_input_start,
    ToolInputDeltaChunk: _on_tool_input_delta,
    ToolInputAvailableChunk: _on_tool_input_available,
    ToolInputErrorChunk: _on_tool_input_error,
    ToolOutputAvailableChunk: _on_tool_output_available,
    ToolOutputErrorChunk: _on_tool_output_error,
    SourceUrlChunk: _on_source_url,
    SourceDocumentChunk: _on_source_document,
    FileChunk: _on_file,
    DataChunk: _on_data,
    StartStepChunk: _on_start_step,
    FinishStepChunk: _on_finish_step,
    StartChunk: _on_start,
    FinishChunk: _on_finish,
    MessageMetadataChunk: _on_message_metadata,
    ErrorChunk: _on_error,
    AbortChunk: _on_abort,
}
