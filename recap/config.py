"""Application configuration management."""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_LEVELS = frozenset({"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"})


class Settings(BaseSettings):
    """Centralised application settings derived from environment variables."""

    strava_client_id: str = Field(default="")
    strava_client_secret: str = Field(default="")
    intervals_client_id: str = Field(default="")
    intervals_client_secret: str = Field(default="")
    oauth_redirect_uri: str = Field(
        default="http://localhost:8000/provider/callback",
        description="Redirect URI registered with every OAuth provider.",
    )

    default_provider: str = Field(default="strava")
    use_mock_provider: bool = Field(
        default=False,
        description="Serve deterministic mock activities in place of Strava.",
    )

    http_timeout_seconds: float = Field(default=30.0, gt=0)
    strava_page_size: int = Field(default=200, ge=1, le=200)
    intervals_page_size: int = Field(default=366, ge=1)
    max_pages: int = Field(default=30, ge=1)

    cache_database_url: str = Field(
        default="sqlite:///./data/recap_cache.db",
        description="SQLAlchemy-compatible database URL for the client cache.",
    )
    app_version: str = Field(default="1.0.0")
    api_base_url: str = Field(default="http://localhost:8000/api")

    app_host: str = Field(default="127.0.0.1")
    app_port: int = Field(default=8000, ge=1, le=65535)

    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")
    provider_log_level: str | None = Field(
        default=None,
        description="Level for provider HTTP logging; defaults to LOG_LEVEL.",
    )
    log_dir: Path = Field(default=Path("logs"))

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        upper = value.strip().upper()
        if upper not in LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {', '.join(sorted(LOG_LEVELS))}")
        return upper

    @field_validator("provider_log_level")
    @classmethod
    def normalize_provider_log_level(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        upper = value.strip().upper()
        if upper not in LOG_LEVELS:
            raise ValueError(f"PROVIDER_LOG_LEVEL must be one of {', '.join(sorted(LOG_LEVELS))}")
        return upper

    @field_validator("default_provider")
    @classmethod
    def validate_default_provider(cls, value: str) -> str:
        """Reject default providers that the registry could never resolve."""

        from recap.services.providers.base import PROVIDER_ALIASES

        normalized = value.strip().lower()
        if normalized not in PROVIDER_ALIASES:
            raise ValueError(
                f"DEFAULT_PROVIDER must be one of {', '.join(sorted(PROVIDER_ALIASES))}"
            )
        return PROVIDER_ALIASES[normalized].value


@lru_cache()
def get_settings() -> Settings:
    """Return cached settings instance so it can be reused across the app."""

    settings = Settings()
    settings.log_dir.mkdir(parents=True, exist_ok=True)
    return settings
