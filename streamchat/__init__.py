"""streamchat: client engine for UI-message-stream chat endpoints.

Decodes a server's chunk stream, assembles it into an evolving assistant
message and drives multi-turn conversations, including automatic follow-up
turns for client-side tool calls.
"""

from streamchat.chat import Chat, last_assistant_message_is_complete_with_tool_calls
from streamchat.models import ChatStatus, FileAttachment, Message, MessageRole
from streamchat.transport import ChatRequestOptions, ChatTransport, HttpChatTransport

__version__ = "0.1.0"

__all__ = [
    "Chat",
    "ChatRequestOptions",
    "ChatStatus",
    "ChatTransport",
    "FileAttachment",
    "HttpChatTransport",
    "Message",
    "MessageRole",
    "__version__",
    "last_assistant_message_is_complete_with_tool_calls",
]
