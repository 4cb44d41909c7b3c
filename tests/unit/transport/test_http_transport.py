"""Tests for the HTTP chat transport.

Uses httpx.MockTransport so requests never leave the process.

Covers:
- Configuration validation and from_settings()
- Request body and header construction
- SSE and NDJSON response decoding, [DONE] handling
- 204 "no active stream" on reconnect
- Non-2xx responses and connection failures
"""

from __future__ import annotations

import json

import httpx
import pytest

from streamchat.exceptions import (
    StreamFramingError,
    TransportConfigurationError,
    TransportError,
)
from streamchat.models.chunks import FinishChunk, StartChunk, TextDeltaChunk
from streamchat.models.enums import ChatRequestTrigger, MessageRole, StreamFraming
from streamchat.models.messages import Message
from streamchat.models.parts import TextPart, ToolPart
from streamchat.transport import ChatRequestOptions, HttpChatTransport

SSE_HEADERS = {"content-type": "text/event-stream"}

SSE_BODY = (
    'data: {"type":"start","messageId":"a1"}\n\n'
    'data: {"type":"text-delta","id":"t1","delta":"Hi"}\n\n'
    ": keep-alive\n\n"
    "data: {not json}\n\n"
    'data: {"type":"finish"}\n\n'
    "data: [DONE]\n\n"
    'data: {"type":"text-delta","id":"t1","delta":"ignored"}\n\n'
)


def _transport(handler, **kwargs) -> HttpChatTransport:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpChatTransport("http://chat.test", http_client=client, **kwargs)


def _history() -> list[Message]:
    return [Message(id="u1", role=MessageRole.USER, parts=[TextPart(text="hello")])]


async def _collect(stream):
    return [chunk async for chunk in stream]


class TestHttpChatTransportConfig:
    """Construction-time validation."""

    def test_rejects_non_http_scheme(self):
        with pytest.raises(TransportConfigurationError):
            HttpChatTransport("ftp://chat.test")

    def test_strips_trailing_slash(self):
        assert HttpChatTransport("http://chat.test/").base_url == "http://chat.test"

    def test_from_settings(self, test_settings):
        transport = HttpChatTransport.from_settings(test_settings)
        assert transport.base_url == "http://chat.test"
        assert transport.chat_path == test_settings.api_chat_path
        assert transport.framing == StreamFraming.SSE

    def test_from_settings_without_base_url(self):
        from streamchat.settings import Settings

        with pytest.raises(TransportConfigurationError):
            HttpChatTransport.from_settings(Settings(api_base_url=None))


class TestBuildRequestBody:
    """build_request_body() serializes the conversation."""

    def test_core_fields(self):
        transport = HttpChatTransport("http://chat.test")
        body = transport.build_request_body(
            chat_id="c1",
            messages=_history(),
            trigger=ChatRequestTrigger.SUBMIT_MESSAGE,
            message_id="u1",
        )
        assert body == {
            "id": "c1",
            "messages": [{"id": "u1", "role": "user", "parts": [{"type": "text", "text": "hello"}]}],
            "trigger": "submit-message",
            "messageId": "u1",
        }

    def test_caller_body_cannot_override_core_fields(self):
        transport = HttpChatTransport("http://chat.test")
        body = transport.build_request_body(
            chat_id="c1",
            messages=[],
            trigger=ChatRequestTrigger.REGENERATE_MESSAGE,
            options=ChatRequestOptions(
                body={"id": "evil", "model": "small"}, metadata={"user": "u-42"}
            ),
        )
        assert body["id"] == "c1"
        assert body["model"] == "small"
        assert body["metadata"] == {"user": "u-42"}
        assert body["trigger"] == "regenerate-message"
        assert "messageId" not in body

    def test_tool_parts_use_named_wire_type(self):
        transport = HttpChatTransport("http://chat.test")
        message = Message(
            id="a1",
            role=MessageRole.ASSISTANT,
            parts=[ToolPart(tool_name="getWeather", tool_call_id="c1", input={"city": "Berlin"})],
        )
        body = transport.build_request_body(
            chat_id="c1", messages=[message], trigger=ChatRequestTrigger.SUBMIT_MESSAGE
        )
        part = body["messages"][0]["parts"][0]
        assert part["type"] == "tool-getWeather"
        assert part["toolCallId"] == "c1"
        assert "toolName" not in part


class TestSendMessages:
    """send_messages() posts the conversation and streams chunks back."""

    @pytest.mark.asyncio
    async def test_sse_stream(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            seen["auth"] = request.headers.get("authorization")
            seen["trace"] = request.headers.get("x-trace")
            return httpx.Response(200, headers=SSE_HEADERS, content=SSE_BODY.encode())

        transport = _transport(handler, headers={"Authorization": "Bearer t"})
        stream = await transport.send_messages(
            chat_id="c1",
            messages=_history(),
            trigger=ChatRequestTrigger.SUBMIT_MESSAGE,
            message_id="u1",
            options=ChatRequestOptions(headers={"X-Trace": "abc"}),
        )
        chunks = await _collect(stream)

        assert seen["method"] == "POST"
        assert seen["url"] == "http://chat.test/api/chat"
        assert seen["body"]["trigger"] == "submit-message"
        assert seen["auth"] == "Bearer t"
        assert seen["trace"] == "abc"
        assert [type(c) for c in chunks] == [StartChunk, TextDeltaChunk, FinishChunk]
        assert chunks[0].message_id == "a1"

    @pytest.mark.asyncio
    async def test_ndjson_stream(self):
        body = '{"type":"start"}\n\n{"type":"text-delta","id":"t1","delta":"x"}\n{"type":"finish"}\n'

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, headers={"content-type": "application/x-ndjson"}, content=body.encode())

        transport = _transport(handler, framing=StreamFraming.NDJSON)
        stream = await transport.send_messages(
            chat_id="c1", messages=_history(), trigger=ChatRequestTrigger.SUBMIT_MESSAGE
        )
        chunks = await _collect(stream)

        assert [c.type for c in chunks] == ["start", "text-delta", "finish"]

    @pytest.mark.asyncio
    async def test_non_2xx_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, text="internal error")

        transport = _transport(handler)
        with pytest.raises(TransportError) as exc_info:
            await transport.send_messages(
                chat_id="c1", messages=_history(), trigger=ChatRequestTrigger.SUBMIT_MESSAGE
            )
        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_connection_error_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        transport = _transport(handler)
        with pytest.raises(TransportError) as exc_info:
            await transport.send_messages(
                chat_id="c1", messages=_history(), trigger=ChatRequestTrigger.SUBMIT_MESSAGE
            )
        assert exc_info.value.status_code is None

    @pytest.mark.asyncio
    async def test_wrong_content_type_is_framing_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, headers={"content-type": "text/html"}, content=b"<html/>")

        transport = _transport(handler)
        stream = await transport.send_messages(
            chat_id="c1", messages=_history(), trigger=ChatRequestTrigger.SUBMIT_MESSAGE
        )
        with pytest.raises(StreamFramingError):
            await _collect(stream)


class TestReconnectToStream:
    """reconnect_to_stream() distinguishes no-content from failures."""

    @pytest.mark.asyncio
    async def test_no_content_returns_none(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["url"] = str(request.url)
            return httpx.Response(204)

        transport = _transport(handler)
        assert await transport.reconnect_to_stream(chat_id="c1") is None
        assert seen == {"method": "GET", "url": "http://chat.test/api/chat/c1/stream"}

    @pytest.mark.asyncio
    async def test_active_stream(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, headers=SSE_HEADERS, content=SSE_BODY.encode())

        transport = _transport(handler)
        stream = await transport.reconnect_to_stream(chat_id="c1")
        chunks = await _collect(stream)
        assert len(chunks) == 3

    @pytest.mark.asyncio
    async def test_path_override(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            return httpx.Response(204)

        transport = _transport(handler)
        await transport.reconnect_to_stream(chat_id="c1", path="/resume/{chat_id}")
        assert seen["path"] == "/resume/c1"

    @pytest.mark.asyncio
    async def test_failure_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404)

        transport = _transport(handler)
        with pytest.raises(TransportError) as exc_info:
            await transport.reconnect_to_stream(chat_id="c1")
        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_missing_reconnect_path(self):
        transport = HttpChatTransport("http://chat.test", reconnect_path=None)
        with pytest.raises(TransportConfigurationError):
            await transport.reconnect_to_stream(chat_id="c1")


class TestChatOverHttp:
    """Chat driving the HTTP transport end to end."""

    @pytest.mark.asyncio
    async def test_turn(self, test_settings):
        from streamchat.chat import Chat
        from streamchat.models.enums import ChatStatus

        body = (
            'data: {"type":"start","messageId":"a1"}\n\n'
            'data: {"type":"text-start","id":"t1"}\n\n'
            'data: {"type":"text-delta","id":"t1","delta":"Hi there"}\n\n'
            'data: {"type":"text-end","id":"t1"}\n\n'
            'data: {"type":"finish"}\n\n'
            "data: [DONE]\n\n"
        )

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, headers=SSE_HEADERS, content=body.encode())

        chat = Chat(transport=_transport(handler), settings=test_settings, chat_id="c1")
        await chat.send_message(text="hello")

        assert chat.status == ChatStatus.READY
        assert chat.messages[-1].id == "a1"
        assert chat.messages[-1].parts[0].text == "Hi there"
