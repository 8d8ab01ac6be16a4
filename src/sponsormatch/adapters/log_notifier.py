"""Logging notification adapter.

Writes formatted notifications to the application log. Used when no
delivery channel is configured, and handy when running against SQLite.
"""

from __future__ import annotations

import logging
from typing import Optional

from sponsormatch.adapters.notification_formatting import (
    format_decision_notification,
    format_interest_notification,
)
from sponsormatch.core.models import Listing, Match, Profile

LOGGER = logging.getLogger(__name__)


class LogNotifier:
    """Notifier adapter that logs messages instead of delivering them."""

    def __init__(self, mode: str = "markdown") -> None:
        self._mode = mode

    async def send_interest(self, match: Match, listing: Listing, brand: Optional[Profile]) -> None:
        LOGGER.info("%s", format_interest_notification(match, listing, brand, self._mode))

    async def send_decision(self, match: Match, listing: Optional[Listing]) -> None:
        LOGGER.info("%s", format_decision_notification(match, listing, self._mode))
