"""Transport port: how the chat controller obtains chunk streams."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Sequence

    from streamchat.models.chunks import UIMessageChunk
    from streamchat.models.enums import ChatRequestTrigger
    from streamchat.models.messages import Message


@dataclass(frozen=True, slots=True)
class ChatRequestOptions:
    """Per-request overrides forwarded to the transport."""

    headers: dict[str, str] | None = None
    body: dict[str, Any] | None = None
    metadata: dict[str, Any] | None = None


class ChatTransport(ABC):
    """Delivers a conversation to the server and returns its chunk stream.

    Both operations return once the server has answered (headers received);
    the returned async iterator then yields chunks in arrival order.
    Failures are raised as ``TransportError``.
    """

    @abstractmethod
    async def send_messages(
        self,
        *,
        chat_id: str,
        messages: Sequence[Message],
        trigger: ChatRequestTrigger,
        message_id: str | None = None,
        options: ChatRequestOptions | None = None,
    ) -> AsyncIterator[UIMessageChunk]: ...

    @abstractmethod
    async def reconnect_to_stream(
        self,
        *,
        chat_id: str,
        options: ChatRequestOptions | None = None,
        path: str | None = None,
    ) -> AsyncIterator[UIMessageChunk] | None:
        """Resume an interrupted stream.

        Returns:
            The chunk stream, or None when the server has no active stream
            to resume.
        """

    async def close(self) -> None:  # noqa: B027 - optional hook
        """Release transport resources."""
