"""Application configuration loaded via Pydantic settings."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Typed configuration sourced from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Translation Helps resource service
    MCP_BASE_URL: str = Field(default="https://translation-helps-mcp.pages.dev")
    PROVIDER_TIMEOUT_SECONDS: float = Field(default=20.0)
    PROVIDER_USER_AGENT: str = Field(default="bt-study-engine/1.0")

    # Conversational backend that emits the `data: {...}` stream
    CHAT_BACKEND_URL: str | None = Field(default=None)
    CHAT_BACKEND_TOKEN: str | None = Field(default=None)
    CHAT_BACKEND_TIMEOUT_SECONDS: float = Field(default=120.0)
    CHAT_HISTORY_WINDOW: int = Field(default=6)
    STREAM_DONE_SENTINEL: str = Field(default="[DONE]")

    # Resource preference fallbacks
    DEFAULT_LANGUAGE: str = Field(default="en")
    DEFAULT_ORGANIZATION: str = Field(default="unfoldingWord")
    DEFAULT_RESOURCE: str = Field(default="ult")

    BT_STUDY_LOG_LEVEL: str = Field(default="info")
    BT_STUDY_LOG_DIR: Path | None = Field(default=None)
    DATA_DIR: Path = Field(default=Path("/data"))


settings = Settings()
config = settings  # Alias used by the API layer


__all__ = ["Settings", "settings", "config"]
