"""Error taxonomy shared by the core and every store adapter.

Adapters translate their native exceptions into these kinds so the core and
the presentation layer only ever reason about a closed set of outcomes.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional, TypeVar

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


class SponsorMatchError(Exception):
    """Base class for every handled failure."""

    kind = "error"


class StoreError(SponsorMatchError):
    """A failure signalled by the external store."""

    kind = "store"


class NotFound(StoreError):
    kind = "not_found"


class PermissionDenied(StoreError):
    kind = "permission_denied"


class Conflict(StoreError):
    """Another actor changed the row first (unique key or conditional update)."""

    kind = "conflict"


class TransientNetwork(StoreError):
    kind = "transient"

    def __init__(self, message: str, retryable: bool = False) -> None:
        super().__init__(message)
        self.retryable = retryable


class ValidationFailure(SponsorMatchError):
    """Malformed input, caught locally or reported by the store."""

    kind = "validation"

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field


class InvalidTransition(SponsorMatchError):
    """A status change was requested from a state that does not allow it."""

    kind = "invalid_transition"

    def __init__(self, message: str, current_status: Optional[str] = None) -> None:
        super().__init__(message)
        self.current_status = current_status


def call_store(func: Callable[..., T], *args: Any, retries: int = 1, **kwargs: Any) -> T:
    """Invoke a store operation, retrying transient failures.

    Only TransientNetwork is retried. When the retries are exhausted the last
    error is re-raised flagged as retryable so the UI can offer a manual retry.
    """

    attempt = 0
    while True:
        try:
            return func(*args, **kwargs)
        except TransientNetwork as exc:
            if attempt >= retries:
                raise TransientNetwork(str(exc), retryable=True) from exc
            attempt += 1
            LOGGER.warning(
                "Transient store failure in %s, retrying (%s/%s): %s",
                getattr(func, "__name__", "store call"),
                attempt,
                retries,
                exc,
            )


def user_message(exc: BaseException) -> str:
    """Return the short, non-blocking text shown for a handled failure."""

    if isinstance(exc, InvalidTransition):
        if exc.current_status:
            return f"Already handled (now {exc.current_status})"
        return str(exc) or "That action is no longer available"
    if isinstance(exc, Conflict):
        return "Already handled by someone else"
    if isinstance(exc, NotFound):
        return "This item is no longer available"
    if isinstance(exc, PermissionDenied):
        return "You do not have permission to do that"
    if isinstance(exc, TransientNetwork):
        return "Network problem, please retry"
    if isinstance(exc, ValidationFailure):
        if exc.field:
            return f"{exc.field}: {exc}"
        return str(exc)
    return str(exc) or exc.__class__.__name__
