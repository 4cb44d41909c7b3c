"""streamchat exception hierarchy.

Base exceptions for all layers with correlation ID support.

Usage:
    from streamchat.exceptions import ChatError, TransportError

    try:
        await chat.send_message(text="hi")
    except TransportError as e:
        logger.error("Turn failed (%s): %s", e.correlation_id, e)
"""

import uuid


class StreamChatError(Exception):
    """Base exception for all streamchat errors.

    Carries a correlation_id for tracing errors across layers.
    """

    def __init__(self, message: str, *, correlation_id: str | None = None):
        self.correlation_id = correlation_id or str(uuid.uuid4())
        super().__init__(message)


class ChatError(StreamChatError):
    """Errors addressing the conversation history."""

    def __init__(self, message: str, *, message_id: str | None = None, **kwargs):
        self.message_id = message_id
        super().__init__(message, **kwargs)


class MessageNotFoundError(ChatError):
    """A referenced message id does not exist in the conversation."""

    def __init__(self, message_id: str, **kwargs):
        super().__init__(f"Message not found: {message_id}", message_id=message_id, **kwargs)


class NotUserMessageError(ChatError):
    """A referenced message exists but is not a user message."""

    def __init__(self, message_id: str, **kwargs):
        super().__init__(f"Not a user message: {message_id}", message_id=message_id, **kwargs)


class InvalidLastSessionMessageError(ChatError):
    """A turn finished without any message to report."""

    def __init__(self, message_id: str, **kwargs):
        super().__init__(
            f"No message available after turn: {message_id}", message_id=message_id, **kwargs
        )


class TooManyRecursionAttemptsError(ChatError):
    """Auto-continuation would exceed the configured maximum."""

    def __init__(self, message_id: str, *, max_attempts: int, **kwargs):
        self.max_attempts = max_attempts
        super().__init__(
            f"Too many recursion attempts ({max_attempts}) for message: {message_id}",
            message_id=message_id,
            **kwargs,
        )


class ConfigurationError(StreamChatError):
    """Errors from application configuration."""

    pass


class TransportConfigurationError(ConfigurationError):
    """No usable transport could be configured."""

    pass


class TransportError(StreamChatError):
    """Errors from the chat transport (non-2xx response or connection failure)."""

    def __init__(self, message: str, *, status_code: int | None = None, **kwargs):
        self.status_code = status_code
        super().__init__(message, **kwargs)


class StreamFramingError(TransportError):
    """The transport delivered bytes that cannot be read as text lines."""

    pass


class ChatStreamError(StreamChatError):
    """An ``error`` chunk was received mid-stream."""

    def __init__(self, error_text: str, **kwargs):
        self.error_text = error_text
        super().__init__(error_text or "Stream reported an error", **kwargs)


class ChatCancelledError(StreamChatError):
    """The in-flight turn was cancelled by the user."""

    pass
