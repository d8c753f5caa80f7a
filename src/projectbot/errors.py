"""Bot error taxonomy and classification helpers.

Every failure the bot raises or receives from the backend is classified into
exactly one :class:`ErrorKind`. The kind drives both the recovery policy and the
user-facing message prefix.
"""

from __future__ import annotations

from enum import Enum

import httpx

__all__ = [
    "ErrorKind",
    "BotError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "RateLimitError",
    "OperationTimeoutError",
    "InternalError",
    "CancelledError",
    "ConfigurationError",
    "classify",
    "as_bot_error",
    "kind_for_status",
]


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    RATE_LIMIT = "rate_limit"
    TIMEOUT = "timeout"
    INTERNAL = "internal"
    CANCELLED = "cancelled"


class BotError(Exception):
    """Base class for classified bot errors."""

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        cause: BaseException | None = None,
        kind: ErrorKind | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.cause = cause
        if kind is not None:
            self.kind = kind
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        if self.cause is not None:
            return f"{self.kind.value}_error: {self.message} ({self.cause})"
        return f"{self.kind.value}_error: {self.message}"


class ValidationError(BotError):
    kind = ErrorKind.VALIDATION


class NotFoundError(BotError):
    kind = ErrorKind.NOT_FOUND


class ConflictError(BotError):
    kind = ErrorKind.CONFLICT


class RateLimitError(BotError):
    kind = ErrorKind.RATE_LIMIT


class OperationTimeoutError(BotError):
    kind = ErrorKind.TIMEOUT


class InternalError(BotError):
    kind = ErrorKind.INTERNAL


class CancelledError(BotError):
    """Raised when a pending operation is aborted by shutdown."""

    kind = ErrorKind.CANCELLED


class ConfigurationError(BotError):
    """Missing or invalid configuration (credentials, config file)."""

    kind = ErrorKind.VALIDATION


_STATUS_KINDS = {
    400: ErrorKind.VALIDATION,
    404: ErrorKind.NOT_FOUND,
    408: ErrorKind.TIMEOUT,
    409: ErrorKind.CONFLICT,
    422: ErrorKind.VALIDATION,
    429: ErrorKind.RATE_LIMIT,
    504: ErrorKind.TIMEOUT,
}


def kind_for_status(status_code: int) -> ErrorKind:
    """Map an HTTP status code to an error kind."""
    return _STATUS_KINDS.get(status_code, ErrorKind.INTERNAL)


def classify(exc: BaseException) -> ErrorKind:
    """Return the error kind for any exception."""
    if isinstance(exc, BotError):
        return exc.kind
    if isinstance(exc, (httpx.TimeoutException, TimeoutError)):
        return ErrorKind.TIMEOUT
    if isinstance(exc, httpx.HTTPStatusError):
        return kind_for_status(exc.response.status_code)
    return ErrorKind.INTERNAL


_KIND_CLASSES: dict[ErrorKind, type[BotError]] = {
    ErrorKind.VALIDATION: ValidationError,
    ErrorKind.NOT_FOUND: NotFoundError,
    ErrorKind.CONFLICT: ConflictError,
    ErrorKind.RATE_LIMIT: RateLimitError,
    ErrorKind.TIMEOUT: OperationTimeoutError,
    ErrorKind.INTERNAL: InternalError,
    ErrorKind.CANCELLED: CancelledError,
}


def as_bot_error(exc: BaseException, message: str | None = None) -> BotError:
    """Wrap a foreign exception into the matching :class:`BotError` subclass."""
    if isinstance(exc, BotError):
        return exc
    kind = classify(exc)
    return _KIND_CLASSES[kind](message or "backend call failed", cause=exc)
