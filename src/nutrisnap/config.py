"""Application configuration."""

import os
from datetime import tzinfo
from pathlib import Path
from zoneinfo import ZoneInfo

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    analysis_provider: str = "gemini"
    analysis_api_key: str | None = None
    analysis_model: str = "gemini-3-flash-preview"
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    openai_reasoning_effort: str | None = None
    storage_backend: str = "file"
    data_dir: Path = Path.home() / ".nutrisnap"
    supabase_url: str | None = None
    supabase_service_key: str | None = None
    supabase_table: str = "kv_store"
    timezone: str | None = None
    weekday_locale: str = "en"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def resolve_timezone(name: str | None) -> tzinfo | None:
    """Return the configured timezone, or None for the host's local zone."""
    if name is None:
        return None
    cleaned = name.strip()
    if cleaned in {"", "local"}:
        return None
    return ZoneInfo(cleaned)
