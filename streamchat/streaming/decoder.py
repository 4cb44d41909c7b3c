"""Chunk decoder: map transport text units to typed chunks.

Pure functions that turn one SSE ``data:`` payload or one NDJSON line into a
``UIMessageChunk``. Malformed payloads and unknown discriminators are logged
and skipped (``None``) so a single bad event cannot abort a healthy stream.
Only bytes that cannot be read as text raise, as a ``StreamFramingError``.
"""

from __future__ import annotations

import json
import logging
from enum import Enum
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from streamchat.exceptions import StreamFramingError
from streamchat.models.chunks import CHUNK_TYPES, DATA_CHUNK_PREFIX, DataChunk
from streamchat.models.enums import StreamFraming

if TYPE_CHECKING:
    from collections.abc import AsyncIterable, AsyncIterator

    from streamchat.models.chunks import UIMessageChunk

logger = logging.getLogger(__name__)

SSE_DATA_FIELD = "data:"


class StreamEnd(Enum):
    """Marker returned when the termination sentinel is decoded."""

    DONE = "[DONE]"


def parse_chunk(payload: Any) -> UIMessageChunk | None:
    """Build a typed chunk from an already-parsed JSON value.

    Args:
        payload: The decoded JSON value of one event.

    Returns:
        The chunk, or None if the value is not a recognizable chunk.
    """
    if not isinstance(payload, dict):
        logger.warning("Skipping chunk: expected a JSON object, got %s", type(payload).__name__)
        return None

    chunk_type = payload.get("type")
    if not isinstance(chunk_type, str):
        logger.warning("Skipping chunk without a string 'type' discriminator")
        return None

    model = CHUNK_TYPES.get(chunk_type)
    if model is None and chunk_type.startswith(DATA_CHUNK_PREFIX) and len(chunk_type) > len(
        DATA_CHUNK_PREFIX
    ):
        model = DataChunk
    if model is None:
        logger.warning("Skipping chunk with unknown type '%s'", chunk_type)
        return None

    try:
        return model.model_validate(payload)  # type: ignore[return-value]
    except ValidationError as e:
        logger.warning(
            "Skipping malformed '%s' chunk (%d validation errors)",
            chunk_type,
            e.error_count(),
        )
        return None


def decode_payload(data: str) -> UIMessageChunk | StreamEnd | None:
    """Decode one payload string (SSE data or NDJSON line).

    Returns:
        ``StreamEnd.DONE`` for the termination sentinel, the chunk for a
        recognized event, or None if the payload should be skipped.
    """
    text = data.strip()
    if text == StreamEnd.DONE.value:
        return StreamEnd.DONE
    if not text:
        return None

    try:
        payload = json.loads(text)
    except json.JSONDecodeError:
        logger.warning("Skipping unparseable chunk payload: %s", text[:200])
        return None

    return parse_chunk(payload)


def extract_payload(line: str, framing: StreamFraming = StreamFraming.SSE) -> str | None:
    """Pull the event payload out of one transport line.

    SSE lines other than ``data:`` fields (comments, ``event:``, ``id:``,
    ``retry:``, blank separators) carry no payload.
    """
    line = line.rstrip("\r\n")
    if framing is StreamFraming.NDJSON:
        return line if line.strip() else None

    if not line.startswith(SSE_DATA_FIELD):
        return None
    payload = line[len(SSE_DATA_FIELD) :]
    # A single space after the colon is part of the framing, not the payload
    return payload[1:] if payload.startswith(" ") else payload


def decode_line(
    line: str | bytes,
    framing: StreamFraming = StreamFraming.SSE,
) -> UIMessageChunk | StreamEnd | None:
    """Decode one raw transport line.

    Raises:
        StreamFramingError: If ``line`` is bytes that are not valid UTF-8.
    """
    if isinstance(line, bytes):
        try:
            line = line.decode("utf-8")
        except UnicodeDecodeError as e:
            raise StreamFramingError(f"Stream line is not valid UTF-8: {e}") from e

    payload = extract_payload(line, framing)
    if payload is None:
        return None
    return decode_payload(payload)


async def decode_stream(
    lines: AsyncIterable[str | bytes],
    framing: StreamFraming = StreamFraming.SSE,
) -> AsyncIterator[UIMessageChunk]:
    """Decode an async sequence of lines into chunks.

    Stops at the ``[DONE]`` sentinel or when the lines run out, whichever
    comes first. Skippable lines are dropped silently.
    """
    async for line in lines:
        decoded = decode_line(line, framing)
        if decoded is StreamEnd.DONE:
            return
        if decoded is not None:
            yield decoded
