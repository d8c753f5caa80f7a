"""Nobl9 credentials file (``~/.nobl9/config.json``).

Values are resolved with the precedence: explicit override (CLI flag) >
environment settings > credentials file > built-in default.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError as PydanticValidationError

from projectbot.config.settings import DEFAULT_NOBL9_URL, Settings
from projectbot.errors import ConfigurationError
from projectbot.observability.logging import get_logger
from projectbot.paths import default_credentials_path

logger = get_logger(__name__)

__all__ = [
    "Credentials",
    "load_credentials",
    "save_credentials",
    "resolve_credentials",
]


class Credentials(BaseModel):
    model_config = ConfigDict(extra="ignore")

    client_id: str = ""
    client_secret: str = ""
    organization: str = ""
    url: str = DEFAULT_NOBL9_URL

    def missing_fields(self) -> list[str]:
        return [
            name
            for name in ("client_id", "client_secret", "organization")
            if not getattr(self, name)
        ]

    def require_complete(self) -> "Credentials":
        missing = self.missing_fields()
        if missing:
            raise ConfigurationError(
                "missing Nobl9 credentials: "
                + ", ".join(missing)
                + " (use flags, NOBL9_* environment variables or ~/.nobl9/config.json)"
            )
        return self


def _resolve_path(path: str | Path | None) -> Path:
    if path:
        return Path(path).expanduser()
    return default_credentials_path()


def load_credentials(path: str | Path | None = None) -> Credentials:
    """Load credentials from disk. A missing file yields defaults."""
    target = _resolve_path(path)
    if not target.is_file():
        return Credentials()
    try:
        data = json.loads(target.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigurationError(f"failed to read config file {target}", cause=exc) from exc
    try:
        creds = Credentials.model_validate(data)
    except PydanticValidationError as exc:
        raise ConfigurationError(f"failed to parse config file {target}", cause=exc) from exc
    if not creds.url:
        creds.url = DEFAULT_NOBL9_URL
    return creds


def save_credentials(creds: Credentials, path: str | Path | None = None) -> Path:
    """Write credentials as indented JSON with owner-only permissions."""
    target = _resolve_path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    payload = json.dumps(creds.model_dump(), indent=2)
    fd = os.open(target, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "w", encoding="utf-8") as f:
        f.write(payload)
    os.chmod(target, 0o600)
    logger.info("credentials_saved", path=str(target))
    return target


def resolve_credentials(
    settings: Settings,
    *,
    overrides: dict[str, Any] | None = None,
    path: str | Path | None = None,
) -> Credentials:
    """Merge credentials from file, environment settings and explicit overrides."""
    file_creds = load_credentials(path or settings.nobl9_config_path or None)
    merged = file_creds.model_dump()

    from_settings = {
        "client_id": settings.nobl9_client_id,
        "client_secret": settings.nobl9_client_secret,
        "organization": settings.nobl9_organization,
    }
    if settings.nobl9_url != DEFAULT_NOBL9_URL:
        from_settings["url"] = settings.nobl9_url
    for source in (from_settings, overrides or {}):
        for key, value in source.items():
            if value:
                merged[key] = value

    merged["url"] = (merged.get("url") or DEFAULT_NOBL9_URL).rstrip("/")
    return Credentials.model_validate(merged)
