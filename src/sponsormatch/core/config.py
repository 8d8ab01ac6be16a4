"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class SwipeConfig:
    """Swipe gesture settings for the discovery deck."""

    threshold: float = 100.0
    # Terminal cells are much wider than pixels; drag deltas are scaled by this.
    units_per_cell: float = 10.0


@dataclass(frozen=True)
class RetryConfig:
    """How many times a transient store failure is retried automatically."""

    transient_retries: int = 1


@dataclass(frozen=True)
class NotificationConfig:
    """Notification settings consumed by notifier adapters and the UI."""

    method: str = "log"
    format: str = "markdown"
    banner_seconds: float = 5.0
