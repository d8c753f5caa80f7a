from __future__ import annotations

import threading
import time

import httpx
import pytest

from projectbot.conversation.retry import cancellable_sleep, with_retry
from projectbot.errors import (
    CancelledError,
    InternalError,
    OperationTimeoutError,
    RateLimitError,
    ValidationError,
)


class Flaky:
    """Callable failing with ``errors`` in order, then returning ``result``."""

    def __init__(self, errors, result="ok"):
        self.errors = list(errors)
        self.result = result
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return self.result


def test_with_retry_returns_on_first_try() -> None:
    sleeps: list[float] = []
    op = Flaky([])
    assert with_retry(op, name="op", sleep=sleeps.append) == "ok"
    assert op.calls == 1
    assert sleeps == []


def test_with_retry_retries_rate_limit_then_succeeds() -> None:
    sleeps: list[float] = []
    op = Flaky([RateLimitError("429"), RateLimitError("429")], result="done")
    assert with_retry(op, name="op", sleep=sleeps.append) == "done"
    assert op.calls == 3
    assert sleeps == [5.0, 5.0]


def test_with_retry_rate_limit_budget_exhausted() -> None:
    sleeps: list[float] = []
    op = Flaky([RateLimitError("429")] * 10)
    with pytest.raises(RateLimitError):
        with_retry(op, name="op", sleep=sleeps.append)
    # First call plus three retries.
    assert op.calls == 4
    assert sleeps == [5.0, 5.0, 5.0]


def test_with_retry_timeout_budget_uses_fixed_delay() -> None:
    sleeps: list[float] = []
    op = Flaky([httpx.ReadTimeout("slow")] * 10)
    with pytest.raises(OperationTimeoutError) as excinfo:
        with_retry(op, name="validate_user", sleep=sleeps.append)
    assert op.calls == 3
    assert sleeps == [2.0, 2.0]
    assert isinstance(excinfo.value.cause, httpx.ReadTimeout)


def test_with_retry_does_not_retry_validation() -> None:
    sleeps: list[float] = []
    op = Flaky([ValidationError("bad name")])
    with pytest.raises(ValidationError):
        with_retry(op, name="op", sleep=sleeps.append)
    assert op.calls == 1
    assert sleeps == []


def test_with_retry_wraps_unknown_errors_as_internal() -> None:
    op = Flaky([RuntimeError("kaboom")])
    with pytest.raises(InternalError) as excinfo:
        with_retry(op, name="create_project", sleep=lambda _s: None)
    assert "create_project failed" in str(excinfo.value)
    assert isinstance(excinfo.value.__cause__, RuntimeError)
    assert op.calls == 1


def test_with_retry_aborts_when_already_cancelled() -> None:
    event = threading.Event()
    event.set()
    op = Flaky([])
    with pytest.raises(CancelledError):
        with_retry(op, name="op", sleep=lambda _s: None, cancel_event=event)
    assert op.calls == 0


def test_with_retry_aborts_pending_wait_on_cancel() -> None:
    event = threading.Event()
    op = Flaky([RateLimitError("429")] * 10)

    def sleep_and_shutdown(_seconds: float) -> None:
        event.set()

    with pytest.raises(CancelledError):
        with_retry(op, name="op", sleep=sleep_and_shutdown, cancel_event=event)
    assert op.calls == 1


def test_cancellable_sleep_waits_on_event_without_sleep_fn() -> None:
    event = threading.Event()
    sleeper = cancellable_sleep(event)
    sleeper(0)  # returns immediately, event not set
    event.set()
    with pytest.raises(CancelledError):
        sleeper(0)


def test_cancel_cuts_default_wait_short() -> None:
    event = threading.Event()
    op = Flaky([RateLimitError("429")] * 10)
    timer = threading.Timer(0.2, event.set)
    timer.start()
    started = time.monotonic()
    try:
        with pytest.raises(CancelledError):
            with_retry(op, name="op", cancel_event=event)
    finally:
        timer.cancel()
    # The rate-limit delay is 5s; the wait must end as soon as the event is set.
    assert time.monotonic() - started < 1.0
    assert op.calls == 1
