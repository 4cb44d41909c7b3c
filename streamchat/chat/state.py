"""Conversation state owned by the chat controller."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from streamchat.models.enums import ChatStatus

if TYPE_CHECKING:
    from streamchat.exceptions import ChatStreamError
    from streamchat.models.messages import Message
    from streamchat.streaming.assembler import StreamingMessageState


@dataclass
class ChatState:
    """Message history, status and last error of one conversation.

    Only the owning ``Chat`` mutates this; other code may read it.
    """

    messages: list[Message] = field(default_factory=list)
    status: ChatStatus = ChatStatus.READY
    error: Exception | None = None

    def push_message(self, message: Message) -> None:
        self.messages.append(message)

    def pop_message(self) -> Message | None:
        return self.messages.pop() if self.messages else None

    def replace_message(self, index: int, message: Message) -> None:
        self.messages[index] = message

    def index_of(self, message_id: str) -> int | None:
        for index, message in enumerate(self.messages):
            if message.id == message_id:
                return index
        return None


@dataclass
class ActiveResponse:
    """Bookkeeping for the turn currently in flight.

    Attributes:
        state: Assembly state of the turn's assistant message.
        task: Task consuming the transport stream (cancelled by ``Chat.stop``).
        aborted: Set when the user asked to stop this turn.
        chunk_count: Number of chunks folded so far.
        protocol_error: Last ``error`` chunk seen during the turn.
    """

    state: StreamingMessageState
    task: asyncio.Task[bool] | None = None
    aborted: bool = False
    chunk_count: int = 0
    protocol_error: ChatStreamError | None = None
