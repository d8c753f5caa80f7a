"""Prometheus metrics for the conversation loop and backend calls."""

from __future__ import annotations

from prometheus_client import Counter, Histogram, start_http_server

from projectbot.observability.logging import get_logger

logger = get_logger(__name__)

MESSAGES_HANDLED = Counter(
    "projectbot_messages_total",
    "Messages handled by the orchestrator",
    ["outcome"],
)
COMMANDS_DISPATCHED = Counter(
    "projectbot_commands_total",
    "Commands dispatched from the idle step",
    ["command"],
)
BACKEND_CALLS = Counter(
    "projectbot_backend_calls_total",
    "Backend calls by operation and outcome",
    ["operation", "outcome"],
)
BACKEND_RETRIES = Counter(
    "projectbot_backend_retries_total",
    "Backend call retries by operation and error kind",
    ["operation", "kind"],
)
BACKEND_LATENCY = Histogram(
    "projectbot_backend_call_duration_seconds",
    "Backend call duration in seconds, retries included",
    buckets=(0.05, 0.1, 0.25, 0.5, 1, 2, 5, 10, 30),
    labelnames=["operation"],
)

_EXPORTER_STARTED = False


def start_metrics_exporter(port: int) -> bool:
    """Expose /metrics on ``port`` (idempotent). Returns True when started."""
    global _EXPORTER_STARTED
    if _EXPORTER_STARTED or port <= 0:
        return False
    start_http_server(port)
    _EXPORTER_STARTED = True
    logger.info("metrics_exporter_started", port=port)
    return True
