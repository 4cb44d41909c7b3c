"""Message part models.

All part types are discriminated by the ``type`` field. Python field names
are snake_case; the wire format is camelCase.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from streamchat.models.enums import TextState, ToolState


class _PartBase(BaseModel):
    """Base for all part types."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        """Serialize for an outbound request (camelCase, absent fields omitted)."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class TextPart(_PartBase):
    """Assistant or user text."""

    type: Literal["text"] = "text"
    text: str = ""
    state: TextState | None = None
    provider_metadata: dict[str, Any] | None = None


class ReasoningPart(_PartBase):
    """Model reasoning text, streamed like TextPart."""

    type: Literal["reasoning"] = "reasoning"
    text: str = ""
    state: TextState | None = None
    provider_metadata: dict[str, Any] | None = None


class FilePart(_PartBase):
    """A file referenced by URL (may be a data: URL)."""

    type: Literal["file"] = "file"
    media_type: str
    url: str
    filename: str | None = None
    provider_metadata: dict[str, Any] | None = None


class SourceUrlPart(_PartBase):
    """A cited web source."""

    type: Literal["source-url"] = "source-url"
    source_id: str
    url: str
    title: str | None = None
    provider_metadata: dict[str, Any] | None = None


class SourceDocumentPart(_PartBase):
    """A cited document source."""

    type: Literal["source-document"] = "source-document"
    source_id: str
    media_type: str
    title: str
    filename: str | None = None
    provider_metadata: dict[str, Any] | None = None


class StepStartPart(_PartBase):
    """Marks the beginning of a step within an assistant message."""

    type: Literal["step-start"] = "step-start"


class DataPart(_PartBase):
    """Application-defined data attached to a message.

    ``data_name`` is the suffix of the ``data-<name>`` chunk type.
    """

    type: Literal["data"] = "data"
    data_name: str
    id: str | None = None
    data: Any = None

    def to_wire(self) -> dict[str, Any]:
        wire: dict[str, Any] = {"type": f"data-{self.data_name}", "data": self.data}
        if self.id is not None:
            wire["id"] = self.id
        return wire


class BaseToolPart(_PartBase):
    """Shared shape of static and dynamic tool call parts.

    Attributes:
        tool_call_id: Stable id across the input and output phases.
        state: Tool lifecycle state.
        input: Finalized input value (set by tool-input-available/error).
        input_text: Raw input text accumulated from tool-input-delta chunks.
        output: Tool output (set by tool-output-available).
        error_text: Error description for the output-error state.
        preliminary: Whether the output is a preliminary result.
    """

    tool_name: str
    tool_call_id: str
    state: ToolState = ToolState.INPUT_STREAMING
    input: Any = None
    input_text: str = Field(default="", exclude=True)
    output: Any = None
    error_text: str | None = None
    provider_executed: bool | None = None
    preliminary: bool | None = None
    call_provider_metadata: dict[str, Any] | None = None

    @property
    def is_resolved(self) -> bool:
        """True once the call has an output or a terminal error."""
        return self.state in (ToolState.OUTPUT_AVAILABLE, ToolState.OUTPUT_ERROR)


class ToolPart(BaseToolPart):
    """A call to a tool known to the client by name."""

    type: Literal["tool"] = "tool"

    def to_wire(self) -> dict[str, Any]:
        wire = super().to_wire()
        wire.pop("toolName", None)
        wire["type"] = f"tool-{self.tool_name}"
        return wire


class DynamicToolPart(BaseToolPart):
    """A call to a tool whose name is only known at runtime."""

    type: Literal["dynamic-tool"] = "dynamic-tool"


MessagePart = Annotated[
    TextPart
    | ReasoningPart
    | FilePart
    | SourceUrlPart
    | SourceDocumentPart
    | StepStartPart
    | DataPart
    | ToolPart
    | DynamicToolPart,
    Field(discriminator="type"),
]
