from __future__ import annotations

import logging
import sys
from contextvars import ContextVar
from typing import Any, MutableMapping

import structlog

conversation_id_var: ContextVar[str] = ContextVar("conversation_id", default="")


def _add_conversation_id(
    _logger: logging.Logger,
    _method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    conversation_id = conversation_id_var.get("")
    if conversation_id:
        event_dict["conversation_id"] = conversation_id
    return event_dict


def configure_logging(level: str = "WARNING", fmt: str = "json") -> None:
    """Configure structlog with contextvar support.

    Logs go to stderr so they never interleave with the chat transcript on stdout.
    """

    timestamper = structlog.processors.TimeStamper(fmt="iso")
    renderer: Any
    if fmt == "console":
        renderer = structlog.dev.ConsoleRenderer(colors=False)
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            timestamper,
            _add_conversation_id,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(message)s",
        stream=sys.stderr,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a configured structlog logger."""

    if name is None:
        return structlog.get_logger()
    return structlog.get_logger(name)


def get_conversation_id() -> str:
    """Return the conversation ID bound to the current context."""

    return conversation_id_var.get("")


logger = get_logger("projectbot")
