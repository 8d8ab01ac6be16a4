from __future__ import annotations

import pytest

from sponsormatch.core.errors import (
    Conflict,
    InvalidTransition,
    NotFound,
    PermissionDenied,
    TransientNetwork,
    ValidationFailure,
    call_store,
    user_message,
)


def test_call_store_retries_only_transient_failures() -> None:
    attempts: list[int] = []

    def flaky() -> str:
        attempts.append(1)
        if len(attempts) == 1:
            raise TransientNetwork("reset")
        return "ok"

    assert call_store(flaky) == "ok"
    assert len(attempts) == 2


def test_call_store_does_not_retry_conflicts() -> None:
    attempts: list[int] = []

    def conflicting() -> None:
        attempts.append(1)
        raise Conflict("dup")

    with pytest.raises(Conflict):
        call_store(conflicting)
    assert len(attempts) == 1


def test_call_store_marks_exhausted_failures_retryable() -> None:
    def down() -> None:
        raise TransientNetwork("down")

    with pytest.raises(TransientNetwork) as excinfo:
        call_store(down, retries=0)

    assert excinfo.value.retryable
    assert isinstance(excinfo.value.__cause__, TransientNetwork)


@pytest.mark.parametrize(
    ("exc", "expected"),
    [
        (InvalidTransition("x", current_status="accepted"), "Already handled (now accepted)"),
        (Conflict("dup"), "Already handled by someone else"),
        (NotFound("gone"), "This item is no longer available"),
        (PermissionDenied("rls"), "You do not have permission to do that"),
        (TransientNetwork("down"), "Network problem, please retry"),
        (ValidationFailure("is required", field="title"), "title: is required"),
    ],
)
def test_user_messages(exc: Exception, expected: str) -> None:
    assert user_message(exc) == expected
