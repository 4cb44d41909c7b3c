"""Stream chunk models.

One model per protocol event. The ``type`` field is the wire discriminator;
``data-<name>`` chunks share a single model. Unknown extra fields are
ignored so newer servers do not break older clients.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

DATA_CHUNK_PREFIX = "data-"


class _ChunkBase(BaseModel):
    """Base for all chunk types."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class TextStartChunk(_ChunkBase):
    type: Literal["text-start"] = "text-start"
    id: str = ""
    provider_metadata: dict[str, Any] | None = None


class TextDeltaChunk(_ChunkBase):
    type: Literal["text-delta"] = "text-delta"
    id: str = ""
    delta: str = ""
    provider_metadata: dict[str, Any] | None = None


class TextEndChunk(_ChunkBase):
    type: Literal["text-end"] = "text-end"
    id: str = ""
    provider_metadata: dict[str, Any] | None = None


class ReasoningStartChunk(_ChunkBase):
    type: Literal["reasoning-start"] = "reasoning-start"
    id: str = ""
    provider_metadata: dict[str, Any] | None = None


class ReasoningDeltaChunk(_ChunkBase):
    type: Literal["reasoning-delta"] = "reasoning-delta"
    id: str = ""
    delta: str = ""
    provider_metadata: dict[str, Any] | None = None


class ReasoningEndChunk(_ChunkBase):
    type: Literal["reasoning-end"] = "reasoning-end"
    id: str = ""
    provider_metadata: dict[str, Any] | None = None


class ErrorChunk(_ChunkBase):
    type: Literal["error"] = "error"
    error_text: str = ""


class ToolInputStartChunk(_ChunkBase):
    type: Literal["tool-input-start"] = "tool-input-start"
    tool_call_id: str = ""
    tool_name: str = ""
    provider_executed: bool | None = None
    dynamic: bool | None = None


class ToolInputDeltaChunk(_ChunkBase):
    type: Literal["tool-input-delta"] = "tool-input-delta"
    tool_call_id: str = ""
    input_text_delta: str = ""


class ToolInputAvailableChunk(_ChunkBase):
    type: Literal["tool-input-available"] = "tool-input-available"
    tool_call_id: str = ""
    tool_name: str = ""
    input: Any = None
    provider_executed: bool | None = None
    provider_metadata: dict[str, Any] | None = None
    dynamic: bool | None = None


class ToolInputErrorChunk(_ChunkBase):
    type: Literal["tool-input-error"] = "tool-input-error"
    tool_call_id: str = ""
    tool_name: str = ""
    input: Any = None
    provider_executed: bool | None = None
    provider_metadata: dict[str, Any] | None = None
    dynamic: bool | None = None
    error_text: str = ""


class ToolOutputAvailableChunk(_ChunkBase):
    type: Literal["tool-output-available"] = "tool-output-available"
    tool_call_id: str = ""
    output: Any = None
    provider_executed: bool | None = None
    dynamic: bool | None = None
    preliminary: bool | None = None


class ToolOutputErrorChunk(_ChunkBase):
    type: Literal["tool-output-error"] = "tool-output-error"
    tool_call_id: str = ""
    error_text: str = ""
    provider_executed: bool | None = None
    dynamic: bool | None = None


class SourceUrlChunk(_ChunkBase):
    type: Literal["source-url"] = "source-url"
    source_id: str = ""
    url: str = ""
    title: str | None = None
    provider_metadata: dict[str, Any] | None = None


class SourceDocumentChunk(_ChunkBase):
    type: Literal["source-document"] = "source-document"
    source_id: str = ""
    media_type: str = ""
    title: str = ""
    filename: str | None = None
    provider_metadata: dict[str, Any] | None = None


class FileChunk(_ChunkBase):
    type: Literal["file"] = "file"
    url: str = ""
    media_type: str = ""
    provider_metadata: dict[str, Any] | None = None


class StartStepChunk(_ChunkBase):
    type: Literal["start-step"] = "start-step"


class FinishStepChunk(_ChunkBase):
    type: Literal["finish-step"] = "finish-step"


class StartChunk(_ChunkBase):
    type: Literal["start"] = "start"
    message_id: str | None = None
    message_metadata: Any = None


class FinishChunk(_ChunkBase):
    type: Literal["finish"] = "finish"
    message_metadata: Any = None


class AbortChunk(_ChunkBase):
    type: Literal["abort"] = "abort"


class MessageMetadataChunk(_ChunkBase):
    type: Literal["message-metadata"] = "message-metadata"
    message_metadata: Any


class DataChunk(_ChunkBase):
    """A ``data-<name>`` chunk. Transient data is never stored in the message."""

    type: str
    id: str | None = None
    data: Any = None
    transient: bool | None = None

    @property
    def data_name(self) -> str:
        return self.type.removeprefix(DATA_CHUNK_PREFIX)


UIMessageChunk = (
    TextStartChunk
    | TextDeltaChunk
    | TextEndChunk
    | ReasoningStartChunk
    | ReasoningDeltaChunk
    | ReasoningEndChunk
    | ErrorChunk
    | ToolInputStartChunk
    | ToolInputDeltaChunk
    | ToolInputAvailableChunk
    | ToolInputErrorChunk
    | ToolOutputAvailableChunk
    | ToolOutputErrorChunk
    | SourceUrlChunk
    | SourceDocumentChunk
    | FileChunk
    | StartStepChunk
    | FinishStepChunk
    | StartChunk
    | FinishChunk
    | AbortChunk
    | MessageMetadataChunk
    | DataChunk
)

# Discriminator tag -> model, excluding the data-<name> wildcard
CHUNK_TYPES: dict[str, type[_ChunkBase]] = {
    model.model_fields["type"].default: model
    for model in (
        TextStartChunk,
        TextDeltaChunk,
        TextEndChunk,
        ReasoningStartChunk,
        ReasoningDeltaChunk,
        ReasoningEndChunk,
        ErrorChunk,
        ToolInputStartChunk,
        ToolInputDeltaChunk,
        ToolInputAvailableChunk,
        ToolInputErrorChunk,
        ToolOutputAvailableChunk,
        ToolOutputErrorChunk,
        SourceUrlChunk,
        SourceDocumentChunk,
        FileChunk,
        StartStepChunk,
        FinishStepChunk,
        StartChunk,
        FinishChunk,
        AbortChunk,
        MessageMetadataChunk,
    )
}
