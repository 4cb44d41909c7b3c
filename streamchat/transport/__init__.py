"""Chat transports: the port the controller talks to and the HTTP default."""

from streamchat.transport.base import ChatRequestOptions, ChatTransport
from streamchat.transport.http import HttpChatTransport

__all__ = ["ChatRequestOptions", "ChatTransport", "HttpChatTransport"]
