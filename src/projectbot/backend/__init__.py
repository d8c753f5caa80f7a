"""Backends implementing the project/role contract."""

from __future__ import annotations

from projectbot.backend.base import DEFAULT_ROLE, ROLE_TYPES, NameCheck, Project, ProjectBackend
from projectbot.backend.client import Nobl9Client
from projectbot.backend.fake import InMemoryBackend

__all__ = [
    "DEFAULT_ROLE",
    "ROLE_TYPES",
    "NameCheck",
    "Project",
    "ProjectBackend",
    "Nobl9Client",
    "InMemoryBackend",
    "build_backend",
]


def build_backend(settings, *, overrides: dict | None = None) -> ProjectBackend:
    """Construct the backend selected by ``settings.backend_provider``."""
    if settings.backend_provider == "fake":
        return InMemoryBackend(
            projects=[Project(name="demo", description="Demo project", owner="projectbot")],
            users=["user@example.com", "admin@example.com"],
        )

    from projectbot.config.credentials import resolve_credentials

    creds = resolve_credentials(settings, overrides=overrides).require_complete()
    return Nobl9Client(creds, timeout=settings.http_timeout_seconds)
