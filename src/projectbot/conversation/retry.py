"""Retry combinator driven by the recovery policy.

Wraps a backend call in a `tenacity.Retrying` loop whose stop/wait/retry
decisions come from :mod:`projectbot.conversation.recovery`. The sleep
function is injectable so tests never block, and an optional
``threading.Event`` aborts pending waits on shutdown.
"""

from __future__ import annotations

import threading
import time
from typing import Callable, TypeVar

from tenacity import RetryCallState, Retrying

from projectbot.conversation.recovery import recovery_for_error, retry_delay, should_retry
from projectbot.errors import CancelledError, as_bot_error, classify
from projectbot.observability import metrics
from projectbot.observability.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

SleepFn = Callable[[float], None]

__all__ = ["with_retry", "SleepFn", "cancellable_sleep"]


def cancellable_sleep(event: threading.Event, sleep: SleepFn | None = None) -> SleepFn:
    """Return a sleep function that fails fast once ``event`` is set."""

    def _sleep(seconds: float) -> None:
        if event.is_set():
            raise CancelledError("operation aborted during shutdown")
        if sleep is not None:
            sleep(seconds)
        elif event.wait(seconds):
            raise CancelledError("operation aborted during shutdown")
        if event.is_set():
            raise CancelledError("operation aborted during shutdown")

    return _sleep


def _exception(retry_state: RetryCallState) -> BaseException | None:
    outcome = retry_state.outcome
    if outcome is None or not outcome.failed:
        return None
    return outcome.exception()


def with_retry(
    operation: Callable[[], T],
    *,
    name: str,
    sleep: SleepFn | None = None,
    cancel_event: threading.Event | None = None,
) -> T:
    """Run ``operation`` and retry it while the recovery policy allows.

    ``sleep`` defaults to :func:`time.sleep`, or to waiting on ``cancel_event``
    when one is given so that setting the event cuts a pending wait short.
    Errors the policy does not retry, and errors left over once the allowed
    attempts are used up, are raised as :class:`BotError`.
    """
    sleeper: SleepFn
    if cancel_event is not None:
        # Without an injected sleep the wait happens on the event itself.
        sleeper = cancellable_sleep(cancel_event, sleep)
    else:
        sleeper = sleep or time.sleep

    def _retry(retry_state: RetryCallState) -> bool:
        exc = _exception(retry_state)
        if exc is None or isinstance(exc, CancelledError):
            return False
        # attempt_number counts calls; the policy counts retries already made.
        return should_retry(exc, retry_state.attempt_number - 1)

    def _wait(retry_state: RetryCallState) -> float:
        exc = _exception(retry_state)
        return retry_delay(exc) if exc is not None else 0.0

    def _before_sleep(retry_state: RetryCallState) -> None:
        exc = _exception(retry_state)
        kind = classify(exc).value if exc is not None else "unknown"
        policy = recovery_for_error(exc).format() if exc is not None else ""
        metrics.BACKEND_RETRIES.labels(operation=name, kind=kind).inc()
        logger.warning(
            "backend_call_retry",
            operation=name,
            attempt=retry_state.attempt_number,
            error=str(exc),
            kind=kind,
            delay=retry_delay(exc) if exc is not None else 0.0,
            policy=policy,
        )

    if cancel_event is not None and cancel_event.is_set():
        raise CancelledError(f"{name} aborted during shutdown")

    retrying = Retrying(
        retry=_retry,
        wait=_wait,
        sleep=sleeper,
        before_sleep=_before_sleep,
        reraise=True,
    )
    calls = 0

    def _attempt() -> T:
        nonlocal calls
        calls += 1
        return operation()

    started = time.perf_counter()
    try:
        result = retrying(_attempt)
    except Exception as exc:
        err = as_bot_error(exc, f"{name} failed")
        metrics.BACKEND_CALLS.labels(operation=name, outcome=err.kind.value).inc()
        logger.error(
            "backend_call_failed",
            operation=name,
            error=str(err),
            kind=err.kind.value,
            attempts=calls,
        )
        if err is exc:
            raise
        raise err from exc
    finally:
        metrics.BACKEND_LATENCY.labels(operation=name).observe(time.perf_counter() - started)
    metrics.BACKEND_CALLS.labels(operation=name, outcome="ok").inc()
    return result
