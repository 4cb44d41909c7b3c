"""Conversation data model: messages, parts, chunks and enums."""

from streamchat.models.chunks import CHUNK_TYPES, DataChunk, UIMessageChunk
from streamchat.models.enums import (
    ChatRequestTrigger,
    ChatStatus,
    MessageRole,
    StreamFraming,
    TextState,
    ToolState,
)
from streamchat.models.messages import FileAttachment, Message
from streamchat.models.parts import (
    BaseToolPart,
    DataPart,
    DynamicToolPart,
    FilePart,
    MessagePart,
    ReasoningPart,
    SourceDocumentPart,
    SourceUrlPart,
    StepStartPart,
    TextPart,
    ToolPart,
)

__all__ = [
    "CHUNK_TYPES",
    "BaseToolPart",
    "ChatRequestTrigger",
    "ChatStatus",
    "DataChunk",
    "DataPart",
    "DynamicToolPart",
    "FileAttachment",
    "FilePart",
    "Message",
    "MessagePart",
    "MessageRole",
    "ReasoningPart",
    "SourceDocumentPart",
    "SourceUrlPart",
    "StepStartPart",
    "StreamFraming",
    "TextPart",
    "TextState",
    "ToolPart",
    "ToolState",
    "UIMessageChunk",
]
