"""HTTP chat transport over httpx.

POSTs the conversation to the chat endpoint and streams the response body
back as chunks, either as Server-Sent Events (``data: {...}`` lines ending in
``data: [DONE]``) via httpx-sse, or as newline-delimited JSON.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
from urllib.parse import urlparse

import httpx
import structlog
from httpx_sse import EventSource, SSEError

from streamchat.exceptions import (
    StreamFramingError,
    TransportConfigurationError,
    TransportError,
)
from streamchat.models.enums import StreamFraming
from streamchat.settings import get_settings
from streamchat.streaming.decoder import StreamEnd, decode_payload, decode_stream
from streamchat.transport.base import ChatRequestOptions, ChatTransport

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Sequence

    from streamchat.models.chunks import UIMessageChunk
    from streamchat.models.enums import ChatRequestTrigger
    from streamchat.models.messages import Message
    from streamchat.settings import Settings

logger = structlog.get_logger(__name__)

_DEFAULT_TIMEOUT = 30.0
_STREAM_TIMEOUT = 900.0
_NO_CONTENT = 204


class HttpChatTransport(ChatTransport):
    """Chat transport for a UI-message-stream HTTP endpoint.

    Usage::

        transport = HttpChatTransport("https://chat.example.com")
        stream = await transport.send_messages(
            chat_id="c1", messages=messages, trigger=ChatRequestTrigger.SUBMIT_MESSAGE
        )
        async for chunk in stream:
            ...
    """

    _ALLOWED_SCHEMES = {"http", "https"}

    def __init__(
        self,
        base_url: str,
        *,
        chat_path: str = "/api/chat",
        reconnect_path: str | None = "/api/chat/{chat_id}/stream",
        framing: StreamFraming = StreamFraming.SSE,
        headers: dict[str, str] | None = None,
        timeout: float = _DEFAULT_TIMEOUT,
        stream_timeout: float = _STREAM_TIMEOUT,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        parsed = urlparse(base_url)
        if parsed.scheme not in self._ALLOWED_SCHEMES:
            msg = f"Invalid URL scheme '{parsed.scheme}'. Only {self._ALLOWED_SCHEMES} allowed."
            raise TransportConfigurationError(msg)
        self.base_url = base_url.rstrip("/")
        self.chat_path = chat_path
        self.reconnect_path = reconnect_path
        self.framing = StreamFraming(framing)
        self.headers = dict(headers or {})
        self.timeout = timeout
        self.stream_timeout = stream_timeout
        self._http_client = http_client
        self._owns_client = http_client is None

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> HttpChatTransport:
        """Build a transport from application settings.

        Raises:
            TransportConfigurationError: If no API base URL is configured.
        """
        settings = settings or get_settings()
        if not settings.api_base_url:
            raise TransportConfigurationError(
                "No chat transport configured: set STREAMCHAT_API_BASE_URL or pass a transport"
            )
        return cls(
            settings.api_base_url,
            chat_path=settings.api_chat_path,
            reconnect_path=settings.api_reconnect_path,
            framing=StreamFraming(settings.stream_framing),
            timeout=settings.request_timeout_seconds,
            stream_timeout=settings.stream_timeout_seconds,
        )

    def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create the shared httpx.AsyncClient."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.stream_timeout, connect=self.timeout),
            )
        return self._http_client

    async def close(self) -> None:
        """Close the shared HTTP client if this transport created it."""
        if self._http_client is not None and self._owns_client:
            await self._http_client.aclose()
            self._http_client = None

    def build_request_body(
        self,
        *,
        chat_id: str,
        messages: Sequence[Message],
        trigger: ChatRequestTrigger,
        message_id: str | None = None,
        options: ChatRequestOptions | None = None,
    ) -> dict[str, Any]:
        """Build the JSON body for a chat request.

        Caller-supplied body fields never override the core fields.
        """
        options = options or ChatRequestOptions()
        body: dict[str, Any] = {
            "id": chat_id,
            "messages": [message.to_wire() for message in messages],
            "trigger": trigger.value,
        }
        if message_id is not None:
            body["messageId"] = message_id
        if options.metadata is not None:
            body["metadata"] = options.metadata
        for key, value in (options.body or {}).items():
            body.setdefault(key, value)
        return body

    async def send_messages(
        self,
        *,
        chat_id: str,
        messages: Sequence[Message],
        trigger: ChatRequestTrigger,
        message_id: str | None = None,
        options: ChatRequestOptions | None = None,
    ) -> AsyncIterator[UIMessageChunk]:
        body = self.build_request_body(
            chat_id=chat_id,
            messages=messages,
            trigger=trigger,
            message_id=message_id,
            options=options,
        )
        client = self._get_http_client()
        request = client.build_request(
            "POST",
            f"{self.base_url}{self.chat_path}",
            json=body,
            headers=self._merge_headers(options),
        )
        logger.debug("chat_request", chat_id=chat_id, trigger=trigger.value, messages=len(messages))

        response = await self._send(request)
        if not response.is_success:
            await self._fail(response)
        return self._iter_chunks(response)

    async def reconnect_to_stream(
        self,
        *,
        chat_id: str,
        options: ChatRequestOptions | None = None,
        path: str | None = None,
    ) -> AsyncIterator[UIMessageChunk] | None:
        resolved_path = path or self.reconnect_path
        if not resolved_path:
            raise TransportConfigurationError("Reconnect path is not set")

        client = self._get_http_client()
        request = client.build_request(
            "GET",
            f"{self.base_url}{resolved_path.replace('{chat_id}', chat_id)}",
            headers=self._merge_headers(options),
        )
        logger.debug("chat_reconnect", chat_id=chat_id, path=resolved_path)

        response = await self._send(request)
        if response.status_code == _NO_CONTENT:
            await response.aclose()
            logger.debug("chat_reconnect_no_active_stream", chat_id=chat_id)
            return None
        if not response.is_success:
            await self._fail(response)
        return self._iter_chunks(response)

    def _merge_headers(self, options: ChatRequestOptions | None) -> dict[str, str]:
        headers = dict(self.headers)
        if options is not None and options.headers:
            headers.update(options.headers)
        return headers

    async def _send(self, request: httpx.Request) -> httpx.Response:
        """Send a request and wait for the response headers."""
        client = self._get_http_client()
        try:
            return await client.send(request, stream=True)
        except httpx.TimeoutException as e:
            raise TransportError(f"Timeout connecting to {request.url}: {e}") from e
        except httpx.HTTPError as e:
            raise TransportError(f"Request to {request.url} failed: {e}") from e

    async def _fail(self, response: httpx.Response) -> None:
        """Close a non-2xx response and raise."""
        await response.aclose()
        logger.warning("chat_request_failed", status=response.status_code, url=str(response.url))
        raise TransportError(
            f"Failed to fetch the chat response: HTTP {response.status_code}",
            status_code=response.status_code,
        )

    async def _iter_chunks(self, response: httpx.Response) -> AsyncIterator[UIMessageChunk]:
        """Yield chunks from an open response, closing it when done."""
        try:
            if self.framing is StreamFraming.NDJSON:
                async for chunk in decode_stream(response.aiter_lines(), StreamFraming.NDJSON):
                    yield chunk
                return

            async for sse in EventSource(response).aiter_sse():
                decoded = decode_payload(sse.data)
                if decoded is StreamEnd.DONE:
                    return
                if decoded is not None:
                    yield decoded
        except SSEError as e:
            raise StreamFramingError(f"Response is not an event stream: {e}") from e
        except httpx.TimeoutException as e:
            raise TransportError(f"Stream timeout after {self.stream_timeout}s: {e}") from e
        except httpx.HTTPError as e:
            raise TransportError(f"Stream interrupted: {e}") from e
        finally:
            await response.aclose()
