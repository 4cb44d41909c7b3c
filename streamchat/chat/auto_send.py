"""Predicates for automatic follow-up turns.

Pass one of these as ``Chat(send_automatically_when=...)``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from streamchat.models.enums import MessageRole
from streamchat.models.parts import BaseToolPart, StepStartPart

if TYPE_CHECKING:
    from collections.abc import Sequence

    from streamchat.models.messages import Message


def last_assistant_message_is_complete_with_tool_calls(messages: Sequence[Message]) -> bool:
    """True when the last assistant step made client-side tool calls that are all resolved.

    Only tool parts after the last ``step-start`` marker count, and tools
    executed by the provider are ignored (the server already continued
    past them).
    """
    if not messages:
        return False
    message = messages[-1]
    if message.role != MessageRole.ASSISTANT:
        return False

    step_start = -1
    for index, part in enumerate(message.parts):
        if isinstance(part, StepStartPart):
            step_start = index

    tools = [
        part
        for part in message.parts[step_start + 1 :]
        if isinstance(part, BaseToolPart) and part.provider_executed is not True
    ]
    return bool(tools) and all(tool.is_resolved for tool in tools)
