"""Backend contract consumed by the conversation orchestrator."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol, runtime_checkable

__all__ = ["Project", "NameCheck", "ProjectBackend", "ROLE_TYPES", "DEFAULT_ROLE"]

ROLE_TYPES: tuple[str, ...] = ("admin", "member", "viewer")
DEFAULT_ROLE = "member"


@dataclass
class Project:
    name: str
    description: str = ""
    owner: str = ""
    created_at: datetime | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "Project":
        created = data.get("created_at")
        created_at = None
        if isinstance(created, str) and created:
            try:
                created_at = datetime.fromisoformat(created.replace("Z", "+00:00"))
            except ValueError:
                created_at = None
        return cls(
            name=str(data.get("name") or ""),
            description=str(data.get("description") or ""),
            owner=str(data.get("owner") or ""),
            created_at=created_at,
        )


@dataclass(frozen=True)
class NameCheck:
    """Result of a project-name availability check."""

    available: bool
    current_owner: str = ""


@runtime_checkable
class ProjectBackend(Protocol):
    def validate_project_name(self, name: str) -> NameCheck: ...

    def create_project(self, name: str, description: str) -> Project: ...

    def validate_user(self, email: str) -> bool: ...

    def assign_roles(self, project: str, assignments: dict[str, list[str]]) -> None: ...

    def list_projects(self) -> list[Project]: ...
