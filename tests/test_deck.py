from __future__ import annotations

import asyncio

import pytest

from fakes import FakeNotifier, FakeStore, make_opportunity
from sponsormatch.core.config import SwipeConfig
from sponsormatch.core.deck import DiscoveryDeck
from sponsormatch.core.errors import NotFound, TransientNetwork
from sponsormatch.core.filters import FilterCriteria
from sponsormatch.core.lifecycle import MatchController
from sponsormatch.core.models import MATCH_REJECTED


def _setup(count: int = 3) -> tuple[FakeStore, MatchController, DiscoveryDeck]:
    store = FakeStore()
    for index in range(count):
        store.add_listing(make_opportunity(f"opp-{index}", title=f"Slot {index}"))
    controller = MatchController(store, FakeNotifier(), "brand-1")
    deck = DiscoveryDeck(controller)
    return store, controller, deck


def _listings(store: FakeStore) -> list:
    return list(store.listings["opportunity"].values())


def test_like_removes_card_and_records_outcome() -> None:
    store, _, deck = _setup()
    deck.load(_listings(store), FilterCriteria())

    asyncio.run(deck.handler().like())

    assert [card.id for card in deck.cards] == ["opp-1", "opp-2"]
    assert deck.last_outcome is not None and deck.last_outcome.created
    assert deck.index == 0


def test_reload_hides_liked_and_skipped_cards() -> None:
    store, controller, deck = _setup()
    deck.load(_listings(store), FilterCriteria())

    asyncio.run(deck.handler().like())
    asyncio.run(deck.handler().reject())
    deck.load(_listings(store), FilterCriteria())

    assert [card.id for card in deck.cards] == ["opp-2"]
    assert len(controller.matches) == 1


def test_rejected_match_listing_reappears() -> None:
    store, controller, deck = _setup(1)
    listing = _listings(store)[0]
    store.add_match(listing, brand_id="brand-1", status=MATCH_REJECTED)
    asyncio.run(controller.refresh())

    deck.load(_listings(store), FilterCriteria())

    assert [card.id for card in deck.cards] == ["opp-0"]


def test_filters_apply_after_exclusion() -> None:
    store, _, deck = _setup()

    deck.load(_listings(store), FilterCriteria(free_text="slot 2"))

    assert [card.id for card in deck.cards] == ["opp-2"]


def test_failed_like_keeps_card_and_rearms_gesture() -> None:
    store, controller, deck = _setup(1)
    deck.load(_listings(store), FilterCriteria())
    store.fail("insert_match", TransientNetwork("down"), TransientNetwork("down"))
    handler = deck.handler()

    with pytest.raises(TransientNetwork):
        asyncio.run(handler.like())

    assert deck.current is not None
    assert not controller.is_busy("opportunity:opp-0")
    assert asyncio.run(handler.like()) == "like"
    assert deck.current is None


def test_empty_deck_has_no_handler() -> None:
    _, _, deck = _setup(0)
    deck.load([], FilterCriteria())

    assert deck.current is None
    assert deck.handler() is None


def test_deck_uses_configured_threshold() -> None:
    store, controller, _ = _setup(1)
    deck = DiscoveryDeck(controller, SwipeConfig(threshold=30))
    deck.load(_listings(store), FilterCriteria())

    assert deck.handler().threshold == 30


def test_vanished_listing_is_dropped_from_the_deck() -> None:
    store, controller, deck = _setup(2)
    deck.load(_listings(store), FilterCriteria())
    store.fail("insert_match", NotFound("opportunity opp-0 not found"))

    with pytest.raises(NotFound):
        asyncio.run(deck.handler().like())

    assert [card.id for card in deck.cards] == ["opp-1"]
    assert controller.matches == []
    assert asyncio.run(deck.handler().like()) == "like"
    assert deck.current is None
