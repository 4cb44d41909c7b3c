"""Streaming: decode transport lines and assemble messages.

Provides independently testable components for turning a chunk stream into
an evolving assistant message: the chunk decoder and the stream assembler.
"""

from streamchat.streaming.assembler import (
    Notification,
    StreamingMessageState,
    apply_chunk,
    create_streaming_state,
    finalize_streaming_state,
)
from streamchat.streaming.decoder import (
    StreamEnd,
    decode_line,
    decode_payload,
    decode_stream,
    extract_payload,
    parse_chunk,
)

__all__ = [
    "Notification",
    "StreamEnd",
    "StreamingMessageState",
    "apply_chunk",
    "create_streaming_state",
    "decode_line",
    "decode_payload",
    "decode_stream",
    "extract_payload",
    "finalize_streaming_state",
    "parse_chunk",
]
