"""Tests for message and part models.

Covers wire serialization (camelCase, omitted empty fields, tool-<name> and
data-<name> part types), validation of wire input and tool lookups.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from streamchat.models import (
    DataPart,
    DynamicToolPart,
    FileAttachment,
    FilePart,
    Message,
    MessageRole,
    ReasoningPart,
    StepStartPart,
    TextPart,
    TextState,
    ToolPart,
    ToolState,
)


class TestPartWire:
    """to_wire() on individual parts."""

    def test_text_part(self):
        part = TextPart(text="hi", state=TextState.DONE)
        assert part.to_wire() == {"type": "text", "text": "hi", "state": "done"}

    def test_reasoning_with_provider_metadata(self):
        part = ReasoningPart(text="hmm", provider_metadata={"openai": {"itemId": "r1"}})
        assert part.to_wire() == {
            "type": "reasoning",
            "text": "hmm",
            "providerMetadata": {"openai": {"itemId": "r1"}},
        }

    def test_tool_part(self):
        part = ToolPart(
            tool_name="getWeather",
            tool_call_id="c1",
            state=ToolState.OUTPUT_AVAILABLE,
            input={"city": "Berlin"},
            output={"temp": 21},
            input_text='{"city":"Berlin"}',
        )
        assert part.to_wire() == {
            "type": "tool-getWeather",
            "toolCallId": "c1",
            "state": "output-available",
            "input": {"city": "Berlin"},
            "output": {"temp": 21},
        }

    def test_dynamic_tool_keeps_tool_name(self):
        part = DynamicToolPart(tool_name="mcp.search", tool_call_id="c2")
        wire = part.to_wire()
        assert wire["type"] == "dynamic-tool"
        assert wire["toolName"] == "mcp.search"
        assert wire["state"] == "input-streaming"

    def test_data_part(self):
        part = DataPart(data_name="weather", id="w1", data={"temp": 21})
        assert part.to_wire() == {"type": "data-weather", "id": "w1", "data": {"temp": 21}}

    def test_data_part_without_id(self):
        assert "id" not in DataPart(data_name="x", data=1).to_wire()

    def test_step_start(self):
        assert StepStartPart().to_wire() == {"type": "step-start"}


class TestMessage:
    """Message model behaviour."""

    def test_parts_validated_from_wire_shape(self):
        message = Message.model_validate(
            {
                "id": "a1",
                "role": "assistant",
                "parts": [
                    {"type": "text", "text": "hi"},
                    {"type": "tool", "toolName": "calc", "toolCallId": "c1"},
                    {"type": "step-start"},
                ],
            }
        )
        assert isinstance(message.parts[0], TextPart)
        assert isinstance(message.parts[1], ToolPart)
        assert isinstance(message.parts[2], StepStartPart)

    def test_unknown_part_type_rejected(self):
        with pytest.raises(ValidationError):
            Message.model_validate({"id": "a1", "role": "assistant", "parts": [{"type": "hologram"}]})

    def test_unknown_role_rejected(self):
        with pytest.raises(ValidationError):
            Message(id="m1", role="narrator")

    def test_find_tool_part(self):
        message = Message(
            id="a1",
            role=MessageRole.ASSISTANT,
            parts=[
                TextPart(text="x"),
                ToolPart(tool_name="a", tool_call_id="c1"),
                DynamicToolPart(tool_name="b", tool_call_id="c2"),
            ],
        )
        assert message.find_tool_part("c2").tool_name == "b"
        assert message.find_tool_part("missing") is None
        assert [t.tool_call_id for t in message.tool_parts] == ["c1", "c2"]

    def test_to_wire(self):
        message = Message(
            id="u1", role=MessageRole.USER, parts=[TextPart(text="hi")], metadata={"k": 1}
        )
        assert message.to_wire() == {
            "id": "u1",
            "role": "user",
            "parts": [{"type": "text", "text": "hi"}],
            "metadata": {"k": 1},
        }


class TestFileAttachment:
    """FileAttachment -> FilePart."""

    def test_to_part(self):
        part = FileAttachment(filename="a.pdf", url="https://x/a.pdf", media_type="application/pdf").to_part()
        assert isinstance(part, FilePart)
        assert part.to_wire() == {
            "type": "file",
            "mediaType": "application/pdf",
            "url": "https://x/a.pdf",
            "filename": "a.pdf",
        }
