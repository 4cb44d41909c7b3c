"""Shared fixtures for chat controller tests."""

from itertools import count

import pytest

from streamchat.chat import Chat
from streamchat.settings import Settings
from tests.mocks import FakeTransport


@pytest.fixture()
def make_chat(test_settings: Settings):
    """Build a Chat around a FakeTransport with deterministic ids."""

    def _make(transport: FakeTransport | None = None, **kwargs) -> Chat:
        ids = count(1)
        kwargs.setdefault("chat_id", "chat-1")
        kwargs.setdefault("generate_id", lambda: f"id-{next(ids)}")
        kwargs.setdefault("settings", test_settings)
        return Chat(transport=transport or FakeTransport(), **kwargs)

    return _make
