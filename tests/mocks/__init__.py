"""Chat transport fakes and chunk-stream builders.

Provides an in-memory ``ChatTransport`` that replays scripted turns so the
controller can be tested without a server.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Iterable, Sequence
from dataclasses import dataclass
from typing import Any

from streamchat.models.chunks import (
    FinishChunk,
    FinishStepChunk,
    StartChunk,
    StartStepChunk,
    TextDeltaChunk,
    TextEndChunk,
    TextStartChunk,
    ToolInputAvailableChunk,
    UIMessageChunk,
)
from streamchat.models.enums import ChatRequestTrigger
from streamchat.models.messages import Message
from streamchat.transport.base import ChatRequestOptions, ChatTransport

# =============================================================================
# STREAM BUILDERS
# =============================================================================


async def async_iter(items: Iterable[Any]) -> AsyncIterator[Any]:
    """Convert a list to an async iterator."""
    for item in items:
        yield item


async def gated_iter(items: Iterable[Any], gate: asyncio.Event) -> AsyncIterator[Any]:
    """Yield ``items`` then block until ``gate`` is set."""
    for item in items:
        yield item
    await gate.wait()


def text_turn(text: str, *, message_id: str | None = None, text_id: str = "t1") -> list[UIMessageChunk]:
    """Chunks for a one-step assistant reply with a single text part."""
    return [
        StartChunk(message_id=message_id),
        StartStepChunk(),
        TextStartChunk(id=text_id),
        TextDeltaChunk(id=text_id, delta=text),
        TextEndChunk(id=text_id),
        FinishStepChunk(),
        FinishChunk(),
    ]


def tool_call_turn(
    tool_call_id: str,
    tool_name: str = "getWeather",
    tool_input: Any = None,
    *,
    message_id: str | None = None,
) -> list[UIMessageChunk]:
    """Chunks for an assistant reply that asks the client to run a tool."""
    return [
        StartChunk(message_id=message_id),
        StartStepChunk(),
        ToolInputAvailableChunk(
            tool_call_id=tool_call_id,
            tool_name=tool_name,
            input=tool_input if tool_input is not None else {"city": "Berlin"},
        ),
        FinishStepChunk(),
        FinishChunk(),
    ]


# =============================================================================
# FAKE TRANSPORT
# =============================================================================


@dataclass
class RecordedRequest:
    chat_id: str
    messages: list[Message]
    trigger: ChatRequestTrigger
    message_id: str | None
    options: ChatRequestOptions | None


class FakeTransport(ChatTransport):
    """Replays scripted turns.

    Each entry of ``turns`` is either a list of chunks, an async iterator
    of chunks, or an exception to raise instead of answering. When the
    script runs out, ``repeat`` (if given) answers every further request.
    ``resume`` is what ``reconnect_to_stream`` returns (None = no active
    stream).
    """

    def __init__(
        self,
        turns: Sequence[Any] | None = None,
        *,
        repeat: list[UIMessageChunk] | None = None,
        resume: list[UIMessageChunk] | None = None,
    ):
        self.turns = list(turns or [])
        self.repeat = repeat
        self.resume = resume
        self.requests: list[RecordedRequest] = []
        self.reconnects = 0
        self.resume_paths: list[str | None] = []

    async def send_messages(
        self,
        *,
        chat_id: str,
        messages: Sequence[Message],
        trigger: ChatRequestTrigger,
        message_id: str | None = None,
        options: ChatRequestOptions | None = None,
    ) -> AsyncIterator[UIMessageChunk]:
        self.requests.append(
            RecordedRequest(
                chat_id=chat_id,
                messages=[message.model_copy(deep=True) for message in messages],
                trigger=trigger,
                message_id=message_id,
                options=options,
            )
        )
        if self.turns:
            turn = self.turns.pop(0)
        elif self.repeat is not None:
            turn = list(self.repeat)
        else:
            raise AssertionError("FakeTransport received an unscripted request")

        if isinstance(turn, BaseException):
            raise turn
        if isinstance(turn, list):
            return async_iter(turn)
        return turn

    async def reconnect_to_stream(
        self,
        *,
        chat_id: str,
        options: ChatRequestOptions | None = None,
        path: str | None = None,
    ) -> AsyncIterator[UIMessageChunk] | None:
        self.reconnects += 1
        self.resume_paths.append(path)
        if self.resume is None:
            return None
        return async_iter(self.resume)
