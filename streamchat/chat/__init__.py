"""Conversation controller and auto-send predicates."""

from streamchat.chat.auto_send import last_assistant_message_is_complete_with_tool_calls
from streamchat.chat.controller import Chat
from streamchat.chat.state import ActiveResponse, ChatState

__all__ = [
    "ActiveResponse",
    "Chat",
    "ChatState",
    "last_assistant_message_is_complete_with_tool_calls",
]
