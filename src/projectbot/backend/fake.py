"""In-memory backend used for demos (`BACKEND_PROVIDER=fake`) and tests."""

from __future__ import annotations

import threading
from datetime import UTC, datetime
from typing import Iterable

from projectbot.backend.base import NameCheck, Project
from projectbot.errors import ConflictError, NotFoundError, ValidationError
from projectbot.observability.logging import get_logger

logger = get_logger(__name__)


class InMemoryBackend:
    """Thread-safe fake of the Nobl9 project/role API."""

    def __init__(
        self,
        *,
        projects: Iterable[Project] = (),
        users: Iterable[str] = (),
        owner: str = "projectbot",
    ):
        self._lock = threading.Lock()
        self._projects: dict[str, Project] = {p.name: p for p in projects}
        self._users: set[str] = {u.lower() for u in users}
        self._roles: dict[tuple[str, str], list[str]] = {}
        self.owner = owner

    def add_user(self, email: str) -> None:
        with self._lock:
            self._users.add(email.lower())

    def roles_for(self, project: str, email: str) -> list[str]:
        with self._lock:
            return list(self._roles.get((project, email.lower()), []))

    def validate_project_name(self, name: str) -> NameCheck:
        with self._lock:
            existing = self._projects.get(name)
        if existing is None:
            return NameCheck(available=True)
        return NameCheck(available=False, current_owner=existing.owner)

    def create_project(self, name: str, description: str) -> Project:
        with self._lock:
            if name in self._projects:
                raise ConflictError(f"project '{name}' already exists")
            project = Project(
                name=name,
                description=description,
                owner=self.owner,
                created_at=datetime.now(UTC),
            )
            self._projects[name] = project
        logger.info("fake_project_created", project=name)
        return project

    def validate_user(self, email: str) -> bool:
        with self._lock:
            return email.lower() in self._users

    def assign_roles(self, project: str, assignments: dict[str, list[str]]) -> None:
        with self._lock:
            if project not in self._projects:
                raise NotFoundError(f"project '{project}' not found")
            for email, roles in assignments.items():
                key = (project, email.lower())
                if email.lower() not in self._users:
                    raise ValidationError(f"user {email} does not exist")
                existing = self._roles.get(key, [])
                redundant = [r for r in roles if r in existing]
                if redundant:
                    raise ConflictError(
                        f"redundant roles found for user {email}: {', '.join(redundant)}"
                    )
                self._roles[key] = existing + list(roles)

    def list_projects(self) -> list[Project]:
        with self._lock:
            return sorted(self._projects.values(), key=lambda p: p.name)
