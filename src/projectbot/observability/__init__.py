"""projectbot observability - structured logging and Prometheus metrics.

Usage:
    from projectbot.observability import get_logger

    logger = get_logger(__name__)
    logger.info("project_created", project=name)
"""

from __future__ import annotations

from projectbot.observability.logging import (
    configure_logging,
    conversation_id_var,
    get_conversation_id,
    get_logger,
)

__all__ = [
    "configure_logging",
    "conversation_id_var",
    "get_conversation_id",
    "get_logger",
    "init_observability",
]

_OBSERVABILITY_INITIALIZED = False


def init_observability(level: str | None = None, fmt: str | None = None) -> None:
    """Initialize logging for the process (idempotent).

    Not executed on import so `projectbot` can be used as a library without
    mutating global logging configuration.
    """
    global _OBSERVABILITY_INITIALIZED
    if _OBSERVABILITY_INITIALIZED:
        return
    from projectbot.config import settings

    configure_logging(
        level=level or settings.log_level,
        fmt=fmt or settings.log_format,
    )
    _OBSERVABILITY_INITIALIZED = True
