"""Shared test fixtures for streamchat.

Provides settings fixtures used across the unit tests.
"""

import pytest

from streamchat.settings import Settings

# =============================================================================
# SETTINGS
# =============================================================================


@pytest.fixture
def test_settings() -> Settings:
    """Provide test settings with safe defaults."""
    return Settings(
        environment="testing",
        log_level="DEBUG",
        api_base_url="http://chat.test",
        max_tool_calls=3,
    )


@pytest.fixture
def mock_settings(test_settings: Settings, monkeypatch: pytest.MonkeyPatch) -> Settings:
    """Mock get_settings() to return test settings."""
    from streamchat import settings
    from streamchat.chat import controller

    monkeypatch.setattr(settings, "get_settings", lambda: test_settings)
    monkeypatch.setattr(controller, "get_settings", lambda: test_settings)
    return test_settings
