"""Application settings using Pydantic."""

from functools import lru_cache
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_NOBL9_URL = "https://app.nobl9.com"


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    environment: str = Field(
        default="development",
        description="Deployment environment (development|test|production)",
    )

    # Logging
    log_level: str = Field(default="WARNING", description="stdlib log level name")
    log_format: Literal["json", "console"] = Field(
        default="json",
        description="structlog renderer: json lines or human-readable console output",
    )

    # Backend
    backend_provider: Literal["real", "fake"] = Field(
        default="real",
        description="real=call the Nobl9 API, fake=in-memory backend for demos and tests.",
    )
    nobl9_client_id: str = ""
    nobl9_client_secret: str = ""
    nobl9_organization: str = ""
    nobl9_url: str = DEFAULT_NOBL9_URL
    nobl9_config_path: str = Field(
        default="",
        description="Credentials file path (empty = ~/.nobl9/config.json)",
    )
    http_timeout_seconds: float = Field(default=30.0, gt=0)

    # Conversations
    conversation_ttl_seconds: int = Field(
        default=0,
        ge=0,
        description="Drop conversations idle for longer than this (0 = keep forever).",
    )

    # Metrics
    metrics_port: int = Field(
        default=0,
        ge=0,
        description="Port for the Prometheus exporter (0 = disabled).",
    )

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        level = (value or "WARNING").strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value}")
        return level

    @field_validator("nobl9_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return (value or DEFAULT_NOBL9_URL).rstrip("/")


# Global settings instance
@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Lazily construct Settings so tests and CLIs can set env vars before first access.
    return Settings()


def reset_settings_cache() -> None:
    get_settings.cache_clear()


class _SettingsProxy:
    """Lazy proxy for Settings.

    This avoids eager settings instantiation at import time, which can make tests
    order-dependent when env vars are changed during `pytest_configure()`.
    """

    def __getattr__(self, name: str) -> Any:
        return getattr(get_settings(), name)

    def __repr__(self) -> str:  # pragma: no cover
        return f"<SettingsProxy {get_settings()!r}>"


settings = _SettingsProxy()
