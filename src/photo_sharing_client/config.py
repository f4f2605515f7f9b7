"""Client configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Client settings loaded from environment variables."""

    api_base_url: str = "http://localhost:3001"
    static_base_url: str = "http://localhost:3000"
    request_timeout_seconds: float = 15.0
    state_file: str = ".photo_sharing_client.json"
    user_list_ttl_seconds: int = 60
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def normalize_base_url(raw: str) -> str:
    """Strip trailing slashes so paths can be appended verbatim."""
    cleaned = raw.strip()
    while cleaned.endswith("/"):
        cleaned = cleaned[:-1]
    return cleaned
