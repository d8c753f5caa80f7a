from __future__ import annotations

import httpx
import pytest

from projectbot.errors import (
    BotError,
    CancelledError,
    ConflictError,
    ErrorKind,
    InternalError,
    NotFoundError,
    OperationTimeoutError,
    RateLimitError,
    ValidationError,
    as_bot_error,
    classify,
    kind_for_status,
)


@pytest.mark.parametrize(
    ("exc", "kind"),
    [
        (ValidationError("bad"), ErrorKind.VALIDATION),
        (NotFoundError("missing"), ErrorKind.NOT_FOUND),
        (ConflictError("dup"), ErrorKind.CONFLICT),
        (RateLimitError("slow down"), ErrorKind.RATE_LIMIT),
        (OperationTimeoutError("late"), ErrorKind.TIMEOUT),
        (InternalError("boom"), ErrorKind.INTERNAL),
        (CancelledError("stop"), ErrorKind.CANCELLED),
        (TimeoutError(), ErrorKind.TIMEOUT),
        (httpx.ReadTimeout("read"), ErrorKind.TIMEOUT),
        (RuntimeError("other"), ErrorKind.INTERNAL),
    ],
)
def test_classify(exc: BaseException, kind: ErrorKind) -> None:
    assert classify(exc) is kind


def test_classify_http_status_error() -> None:
    request = httpx.Request("GET", "http://localhost/x")
    response = httpx.Response(429, request=request)
    exc = httpx.HTTPStatusError("limited", request=request, response=response)
    assert classify(exc) is ErrorKind.RATE_LIMIT


def test_kind_for_status_defaults_to_internal() -> None:
    assert kind_for_status(404) is ErrorKind.NOT_FOUND
    assert kind_for_status(409) is ErrorKind.CONFLICT
    assert kind_for_status(422) is ErrorKind.VALIDATION
    assert kind_for_status(500) is ErrorKind.INTERNAL


def test_bot_error_str_includes_kind_and_cause() -> None:
    assert str(ValidationError("name required")) == "validation_error: name required"
    err = InternalError("save failed", cause=OSError("disk full"))
    assert str(err) == "internal_error: save failed (disk full)"
    assert err.__cause__ is err.cause


def test_explicit_kind_overrides_class_kind() -> None:
    err = BotError("limited", kind=ErrorKind.RATE_LIMIT)
    assert err.kind is ErrorKind.RATE_LIMIT
    assert classify(err) is ErrorKind.RATE_LIMIT


def test_as_bot_error_wraps_foreign_exceptions() -> None:
    original = ConflictError("dup")
    assert as_bot_error(original) is original

    wrapped = as_bot_error(TimeoutError("slow"), "create_project failed")
    assert isinstance(wrapped, OperationTimeoutError)
    assert wrapped.message == "create_project failed"
    assert isinstance(wrapped.cause, TimeoutError)
