"""Enums for conversation and message state."""

from enum import StrEnum


class MessageRole(StrEnum):
    """Author of a message."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class ChatStatus(StrEnum):
    """Status of a conversation. Exactly one holds at a time."""

    READY = "ready"
    SUBMITTED = "submitted"  # Request sent, no chunk received yet
    STREAMING = "streaming"
    ERROR = "error"


class TextState(StrEnum):
    """Lifecycle of a text or reasoning part."""

    STREAMING = "streaming"
    DONE = "done"


class ToolState(StrEnum):
    """Lifecycle of a tool call part."""

    INPUT_STREAMING = "input-streaming"
    INPUT_AVAILABLE = "input-available"
    OUTPUT_AVAILABLE = "output-available"
    OUTPUT_ERROR = "output-error"
    # Input never finalized before the stream ended
    INPUT_ABANDONED = "input-abandoned"


class ChatRequestTrigger(StrEnum):
    """Why a request is being made."""

    SUBMIT_MESSAGE = "submit-message"
    RESUME_STREAM = "resume-stream"
    REGENERATE_MESSAGE = "regenerate-message"


class StreamFraming(StrEnum):
    """How chunk payloads are delimited on the wire."""

    SSE = "sse"
    NDJSON = "ndjson"
