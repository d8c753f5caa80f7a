"""Recovery policy: map a classified error to a retry/fallback/cancel decision.

Delays are fixed per error kind; there is no exponential backoff.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from projectbot.errors import ErrorKind, classify

__all__ = [
    "Strategy",
    "Recovery",
    "recovery_for_kind",
    "recovery_for_error",
    "should_retry",
    "retry_delay",
]


class Strategy(str, Enum):
    RETRY = "retry"
    FALLBACK = "fallback"
    CANCEL = "cancel"


@dataclass(frozen=True)
class Recovery:
    strategy: Strategy
    max_attempts: int
    delay: float
    message: str

    def format(self) -> str:
        if self.strategy is Strategy.RETRY:
            return f"Retrying... ({self.max_attempts} attempts remaining)"
        if self.strategy is Strategy.FALLBACK:
            return f"Using fallback strategy: {self.message}"
        return f"Operation cancelled: {self.message}"


_DEFAULT = Recovery(Strategy.CANCEL, 1, 0.0, "An unexpected error occurred")

_POLICY: dict[ErrorKind, Recovery] = {
    ErrorKind.RATE_LIMIT: Recovery(Strategy.RETRY, 3, 5.0, "Rate limit exceeded, retrying..."),
    ErrorKind.TIMEOUT: Recovery(Strategy.RETRY, 2, 2.0, "Operation timed out, retrying..."),
    ErrorKind.NOT_FOUND: Recovery(
        Strategy.FALLBACK, 1, 0.0, "Resource not found, using default values"
    ),
    ErrorKind.CONFLICT: Recovery(Strategy.CANCEL, 1, 0.0, "Resource already exists"),
    ErrorKind.VALIDATION: Recovery(
        Strategy.CANCEL, 1, 0.0, "Invalid input, please check your request"
    ),
    ErrorKind.INTERNAL: _DEFAULT,
    ErrorKind.CANCELLED: Recovery(Strategy.CANCEL, 1, 0.0, "Operation was cancelled"),
}


def recovery_for_kind(kind: ErrorKind) -> Recovery:
    return _POLICY.get(kind, _DEFAULT)


def recovery_for_error(exc: BaseException) -> Recovery:
    """Return the recovery decision for ``exc``."""
    return recovery_for_kind(classify(exc))


def should_retry(exc: BaseException, attempts: int) -> bool:
    """True when the policy retries ``exc`` and fewer than its max attempts were made."""
    recovery = recovery_for_error(exc)
    return recovery.strategy is Strategy.RETRY and attempts < recovery.max_attempts


def retry_delay(exc: BaseException) -> float:
    """Seconds to wait before retrying ``exc``."""
    return recovery_for_error(exc).delay
