"""Conversation state and the registry that owns it."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Callable, Iterator

from projectbot.conversation.prompts import PendingPrompt
from projectbot.observability.logging import get_logger

logger = get_logger(__name__)

__all__ = ["Step", "ConversationState", "ConversationRegistry"]

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Step(str, Enum):
    IDLE = "idle"
    PROJECT_NAME = "project_name"
    PROJECT_DESCRIPTION = "project_description"
    CONFIRM_CREATION = "confirm_creation"
    PROJECT_SELECTION = "project_selection"
    ROLE_USER = "role_user"
    ROLE_TYPE = "role_type"
    CONFIRM_ROLE = "confirm_role"


@dataclass
class ConversationState:
    """Mutable record of one conversation.

    ``pending_prompt`` is set exactly when ``current_step`` is not IDLE.
    ``user_roles`` keeps the roles assigned during this conversation and
    survives :meth:`reset`.
    """

    conversation_id: str
    created_at: datetime = field(default_factory=_utcnow)
    last_updated: datetime = field(default_factory=_utcnow)
    current_step: Step = Step.IDLE
    pending_prompt: PendingPrompt | None = None
    project_name: str = ""
    project_description: str = ""
    owner: str = ""
    role_user: str = ""
    role_type: str = ""
    user_roles: dict[str, list[str]] = field(default_factory=dict)

    @property
    def is_idle(self) -> bool:
        return self.current_step is Step.IDLE

    def ask(self, step: Step, prompt: PendingPrompt) -> str:
        """Move to ``step`` and make ``prompt`` the pending question; return its text."""
        self.current_step = step
        self.pending_prompt = prompt
        return prompt.render()

    def reset(self) -> None:
        self.project_name = ""
        self.project_description = ""
        self.owner = ""
        self.role_user = ""
        self.role_type = ""
        self.pending_prompt = None
        self.current_step = Step.IDLE

    def record_roles(self, user: str, roles: list[str]) -> None:
        assigned = self.user_roles.setdefault(user, [])
        for role in roles:
            if role not in assigned:
                assigned.append(role)

    def touch(self, now: datetime | None = None) -> None:
        self.last_updated = now or _utcnow()


@dataclass
class _Entry:
    state: ConversationState
    lock: threading.Lock = field(default_factory=threading.Lock)


class ConversationRegistry:
    """Lock-guarded map of conversation id to state.

    The registry lock covers lookup-or-create and removal only. Each
    conversation has its own lock, held for the whole handling of a message,
    so one slow conversation never blocks the others.
    """

    def __init__(self, *, ttl: timedelta | None = None, clock: Clock = _utcnow):
        self._lock = threading.Lock()
        self._entries: dict[str, _Entry] = {}
        self.ttl = ttl
        self._clock = clock

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, conversation_id: object) -> bool:
        with self._lock:
            return conversation_id in self._entries

    def _get_or_create_entry(self, conversation_id: str) -> tuple[_Entry, bool]:
        with self._lock:
            entry = self._entries.get(conversation_id)
            if entry is not None:
                return entry, False
            now = self._clock()
            entry = _Entry(
                ConversationState(conversation_id=conversation_id, created_at=now, last_updated=now)
            )
            self._entries[conversation_id] = entry
            return entry, True

    def get_or_create(self, conversation_id: str) -> tuple[ConversationState, bool]:
        """Return ``(state, created)`` for ``conversation_id``."""
        entry, created = self._get_or_create_entry(conversation_id)
        if created:
            logger.debug("conversation_created", conversation_id=conversation_id)
        return entry.state, created

    def get(self, conversation_id: str) -> ConversationState | None:
        with self._lock:
            entry = self._entries.get(conversation_id)
        return entry.state if entry is not None else None

    @contextmanager
    def session(self, conversation_id: str) -> Iterator[tuple[ConversationState, bool]]:
        """Hold the conversation's lock while a message is handled.

        Yields ``(state, created)`` and stamps ``last_updated`` on exit.
        """
        self.sweep()
        entry, created = self._get_or_create_entry(conversation_id)
        with entry.lock:
            try:
                yield entry.state, created
            finally:
                entry.state.touch(self._clock())

    def end(self, conversation_id: str) -> bool:
        with self._lock:
            removed = self._entries.pop(conversation_id, None)
        if removed is not None:
            logger.info("conversation_ended", conversation_id=conversation_id)
        return removed is not None

    def sweep(self) -> list[str]:
        """Drop conversations idle for longer than the TTL; return their ids."""
        if not self.ttl:
            return []
        cutoff = self._clock() - self.ttl
        with self._lock:
            expired = [
                cid
                for cid, entry in self._entries.items()
                if entry.state.last_updated < cutoff and not entry.lock.locked()
            ]
            for cid in expired:
                del self._entries[cid]
        if expired:
            logger.info("conversations_expired", count=len(expired))
        return expired
