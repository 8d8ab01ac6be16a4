"""Discovery deck for the brand dashboard.

The deck owns the visible cards and the current position; likes go through
the match controller, rejections are a local skip that is never persisted.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from sponsormatch.core.config import SwipeConfig
from sponsormatch.core.errors import NotFound
from sponsormatch.core.filters import FilterCriteria, apply_filters, exclude_engaged
from sponsormatch.core.lifecycle import InterestOutcome, MatchController
from sponsormatch.core.models import Listing
from sponsormatch.core.swipe import SwipeHandler

LOGGER = logging.getLogger(__name__)


class DiscoveryDeck:
    """Filtered card stack with one swipe handler bound to the top card."""

    def __init__(self, controller: MatchController, swipe_config: Optional[SwipeConfig] = None) -> None:
        self._controller = controller
        self._swipe = swipe_config or SwipeConfig()
        self._cards: List[Listing] = []
        # (kind, id) of cards passed on this session.
        self._skipped: set[tuple[str, str]] = set()
        self._index = 0
        self._handler: Optional[SwipeHandler] = None
        self._handler_card: Optional[str] = None
        self.last_outcome: Optional[InterestOutcome] = None

    @property
    def cards(self) -> List[Listing]:
        return list(self._cards)

    @property
    def skipped_keys(self) -> set[tuple[str, str]]:
        return set(self._skipped)

    @property
    def index(self) -> int:
        return self._index

    @property
    def current(self) -> Optional[Listing]:
        if not self._cards:
            return None
        return self._cards[self._index]

    def load(self, listings: Iterable[Listing], criteria: FilterCriteria) -> List[Listing]:
        """Rebuild the deck from fresh listings and the active filters."""

        visible = exclude_engaged(listings, self._controller.matches, self._skipped)
        self._cards = apply_filters(visible, criteria)
        self._index = 0
        self._handler = None
        return self.cards

    def handler(self) -> Optional[SwipeHandler]:
        """Return the swipe handler for the top card, or None when empty."""

        card = self.current
        if card is None:
            return None
        if self._handler is None or self._handler_card != card.id:
            self._handler = SwipeHandler(self._like_current, self._reject_current, self._swipe.threshold)
            self._handler_card = card.id
        return self._handler

    async def _like_current(self) -> None:
        card = self.current
        if card is None:
            return
        try:
            self.last_outcome = await self._controller.request_interest(card.id, card.kind)
        except NotFound:
            # The listing is gone; drop the card rather than offer it again.
            self._remove(card.id)
            raise
        except Exception:
            # Leave the card on top and re-arm the gesture so the user can retry.
            if self._handler is not None:
                self._handler.begin()
            raise
        self._remove(card.id)

    def _reject_current(self) -> None:
        card = self.current
        if card is None:
            return
        self._skipped.add((card.kind, card.id))
        self.last_outcome = None
        LOGGER.debug("Skipped %s %s", card.kind, card.id)
        self._remove(card.id)

    def _remove(self, card_id: str) -> None:
        self._cards = [card for card in self._cards if card.id != card_id]
        self._handler = None
        if not self._cards or self._index >= len(self._cards):
            self._index = 0
