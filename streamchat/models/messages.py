"""Conversation message models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from streamchat.models.enums import MessageRole
from streamchat.models.parts import BaseToolPart, FilePart, MessagePart


class Message(BaseModel):
    """One message in a conversation.

    Assistant messages are mutated in place only while they are the active
    message of an in-flight turn.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    role: MessageRole
    parts: list[MessagePart] = Field(default_factory=list)
    metadata: Any = None

    def find_tool_part(self, tool_call_id: str) -> BaseToolPart | None:
        """Return the tool part with the given call id, if any."""
        for part in self.parts:
            if isinstance(part, BaseToolPart) and part.tool_call_id == tool_call_id:
                return part
        return None

    @property
    def tool_parts(self) -> list[BaseToolPart]:
        return [part for part in self.parts if isinstance(part, BaseToolPart)]

    def to_wire(self) -> dict[str, Any]:
        """Serialize as role + ordered parts for an outbound request."""
        wire: dict[str, Any] = {
            "id": self.id,
            "role": self.role.value,
            "parts": [part.to_wire() for part in self.parts],
        }
        if self.metadata is not None:
            wire["metadata"] = self.metadata
        return wire


class FileAttachment(BaseModel):
    """A file supplied by the user alongside a message."""

    filename: str
    url: str
    media_type: str

    def to_part(self) -> FilePart:
        return FilePart(filename=self.filename, url=self.url, media_type=self.media_type)
