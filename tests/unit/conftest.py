"""Unit-test conftest: environment isolation.

Unit tests must not pick up ``STREAMCHAT_*`` variables or a ``.env`` file
from the developer's machine, and must never see a ``Settings`` instance
cached by another test.
"""

from __future__ import annotations

import os
from collections.abc import Iterator

import pytest

from streamchat.settings import get_settings


@pytest.fixture(autouse=True)
def _isolate_settings(monkeypatch: pytest.MonkeyPatch, tmp_path) -> Iterator[None]:
    """Clear STREAMCHAT_* variables and the settings cache around each test."""
    for name in list(os.environ):
        if name.startswith("STREAMCHAT_"):
            monkeypatch.delenv(name, raising=False)
    # Settings reads .env relative to the working directory
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
