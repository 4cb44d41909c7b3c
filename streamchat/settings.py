"""Application settings using pydantic-settings.

Loads configuration from environment variables (``STREAMCHAT_`` prefix)
with .env file support.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Client configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="STREAMCHAT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: Literal["development", "staging", "production", "testing"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Chat endpoint
    api_base_url: str | None = Field(
        default=None,
        description="Base URL of the chat server (empty = no default HTTP transport)",
    )
    api_chat_path: str = Field(
        default="/api/chat",
        description="Path that accepts a POSTed conversation and streams chunks back",
    )
    api_reconnect_path: str | None = Field(
        default="/api/chat/{chat_id}/stream",
        description="Path used to resume an interrupted stream; {chat_id} is substituted",
    )
    stream_framing: Literal["sse", "ndjson"] = Field(
        default="sse",
        description="Wire framing of the response body",
    )

    # Timeouts
    request_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Connect/write timeout for chat requests",
    )
    stream_timeout_seconds: float = Field(
        default=900.0,
        gt=0,
        description="Read timeout while waiting for the next streamed line",
    )

    # Auto-continuation
    max_tool_calls: int = Field(
        default=10,
        ge=0,
        le=100,
        description="Maximum number of automatic follow-up turns per user turn",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache to ensure settings are loaded once and reused.
    """
    return Settings()
