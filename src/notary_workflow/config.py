"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    admin_token: str
    store_backend: str = "memory"
    supabase_url: str | None = None
    supabase_service_key: str | None = None
    notification_webhook_url: str | None = None
    certifier_roster: str | None = None
    session_poll_interval_seconds: float = 2.0
    queue_poll_interval_seconds: float = 5.0
    docs_base_path: str = "/docs"
    session_timeout_seconds: float | None = None
    log_level: str = "INFO"
    host: str = "127.0.0.1"
    port: int = 8000
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_certifier_roster(raw: str | None) -> dict[int, str] | None:
    """Parse a roster like ``1:Ana Rojas,2:Carlos Soto`` from env."""
    if raw is None:
        return None
    cleaned = raw.strip()
    if not cleaned:
        return None
    roster: dict[int, str] = {}
    for chunk in cleaned.split(","):
        raw_id, _, name = chunk.partition(":")
        raw_id = raw_id.strip()
        name = name.strip()
        if not raw_id.isdigit() or not name:
            continue
        roster[int(raw_id)] = name
    return roster or None
