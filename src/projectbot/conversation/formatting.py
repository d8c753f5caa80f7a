"""User-facing message formatting."""

from __future__ import annotations

from projectbot.errors import ErrorKind, classify

_ERROR_PREFIXES: dict[ErrorKind, str] = {
    ErrorKind.VALIDATION: "❌ Validation error:",
    ErrorKind.NOT_FOUND: "🔍 Not found:",
    ErrorKind.CONFLICT: "⚠️ Conflict:",
    ErrorKind.RATE_LIMIT: "⏳ Rate limited:",
    ErrorKind.TIMEOUT: "⌛ Timed out:",
    ErrorKind.INTERNAL: "💥 Internal error:",
}


def format_prompt(message: str) -> str:
    return f"🤖 {message}"


def format_error(exc: BaseException) -> str:
    prefix = _ERROR_PREFIXES.get(classify(exc), "❌ Error:")
    return f"{prefix} {exc}"


def format_success(message: str) -> str:
    return f"✅ {message}"


def format_warning(message: str) -> str:
    return f"⚠️ {message}"
