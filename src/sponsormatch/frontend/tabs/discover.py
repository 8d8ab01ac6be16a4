"""Discover tab: filter bar and swipe deck for brands."""

from __future__ import annotations

import logging
from typing import Any

from rich.console import Group
from rich.panel import Panel
from rich.text import Text
from textual import events, on
from textual.containers import Container, Horizontal, Vertical
from textual.message import Message
from textual.widgets import Button, Input, Select, Static

from sponsormatch.core.errors import SponsorMatchError
from sponsormatch.core.filters import AD_TYPE_OPTIONS, PRICE_RANGE_OPTIONS, FilterCriteria, reset_criteria
from sponsormatch.core.models import (
    KIND_OPPORTUNITY,
    KIND_POST,
    LISTING_ACTIVE,
    VERIFICATION_APPROVED,
    Listing,
)
from sponsormatch.core.swipe import ACTION_LIKE, ACTION_REJECT, SwipeHandler

from ..constants import BRAND_ORANGE

LOGGER = logging.getLogger(__name__)

KIND_OPTIONS = (("Opportunities", KIND_OPPORTUNITY), ("Influencer posts", KIND_POST))


def _price_label(listing: Listing) -> str:
    price = listing.price_range
    if price is None or not price.is_complete:
        return "Price on request"
    return f"₹{price.min:,.0f} - ₹{price.max:,.0f}"


def render_listing(listing: Listing, category: str = "") -> Panel:
    """Rich renderable for one card in the deck."""

    lines = [Text(listing.title, style="bold")]
    meta = [part for part in (category, listing.location, _price_label(listing)) if part]
    lines.append(Text(" | ".join(meta), style="dim"))
    if listing.description:
        lines.append(Text(""))
        lines.append(Text(listing.description))
    ad_type = getattr(listing, "ad_type", None)
    if ad_type:
        lines.append(Text(f"Ad type: {ad_type}", style="cyan"))
    hashtags = getattr(listing, "hashtags", "")
    if hashtags:
        lines.append(Text(hashtags, style="cyan"))
    if listing.reach:
        lines.append(Text(f"Reach: {listing.reach:,}", style="cyan"))
    if listing.media_urls:
        lines.append(Text(f"{len(listing.media_urls)} media file(s)", style="dim"))
    return Panel(Group(*lines), border_style=BRAND_ORANGE)


class SwipeCard(Static, can_focus=True):
    """Top card of the deck; drag it left or right with the mouse."""

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._drag_start: int | None = None

    class Dragged(Message):
        def __init__(self, handler: SwipeHandler) -> None:
            super().__init__()
            self.handler = handler

    class Released(Message):
        def __init__(self, offset: float) -> None:
            super().__init__()
            self.offset = offset

    def on_mouse_down(self, event: events.MouseDown) -> None:
        handler = self.app.deck.handler()
        if handler is None:
            return
        handler.begin()
        self._drag_start = event.screen_x
        self.capture_mouse()

    def on_mouse_move(self, event: events.MouseMove) -> None:
        if self._drag_start is None:
            return
        handler = self.app.deck.handler()
        if handler is None:
            return
        handler.on_drag((event.screen_x - self._drag_start) * self.app.swipe_config.units_per_cell)
        self.post_message(self.Dragged(handler))

    def on_mouse_up(self, event: events.MouseUp) -> None:
        if self._drag_start is None:
            return
        offset = (event.screen_x - self._drag_start) * self.app.swipe_config.units_per_cell
        self._drag_start = None
        self.release_mouse()
        self.post_message(self.Released(offset))


class DiscoverTab(Container):
    """Brand view: browse opportunities or influencer posts one card at a time."""

    BINDINGS = [
        ("right", "like", "Like"),
        ("left", "pass", "Pass"),
        ("ctrl+l", "reset_filters", "Reset filters"),
    ]

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._loading_filters = False

    def compose(self):
        with Vertical(id="discover-panel"):
            with Horizontal(id="discover-filters"):
                yield Select(KIND_OPTIONS, value=KIND_OPPORTUNITY, allow_blank=False, id="filter-kind")
                yield Select([], prompt="Category", id="filter-category")
                yield Select(
                    [(label, value) for value, label in AD_TYPE_OPTIONS],
                    prompt="Ad type",
                    id="filter-ad-type",
                )
                yield Select(
                    [(label, value) for value, label in PRICE_RANGE_OPTIONS],
                    prompt="Price",
                    id="filter-price",
                )
            with Horizontal(id="discover-search"):
                yield Input(placeholder="Location", id="filter-location")
                yield Input(placeholder="Search title, description, hashtags", id="filter-text")
                yield Button("Reset", id="filter-reset")
            yield Static("", id="discover-count", classes="subtle")
            with Horizontal(id="swipe-badges"):
                yield Static("PASS", id="badge-pass")
                yield Static("", id="swipe-tilt", classes="subtle")
                yield Static("LIKE", id="badge-like")
            yield SwipeCard(id="swipe-card")
            with Horizontal(id="swipe-actions"):
                yield Button("Pass", id="swipe-pass", variant="error")
                yield Button("Like", id="swipe-like", variant="success")

    async def on_mount(self) -> None:
        await self.reload_categories()
        await self.reload()

    async def reload_categories(self) -> None:
        await self.app.load_categories()
        categories = self.app.dashboard_state.categories
        select = self.query_one("#filter-category", Select)
        select.set_options([(category.name, category.id) for category in categories])

    async def reload(self) -> None:
        """Fetch approved, active listings and rebuild the deck."""

        state = self.app.dashboard_state
        try:
            await self.app.controller.refresh()
            listings = await self.app.call_store(
                self.app.store.list_listings,
                state.discover_kind,
                LISTING_ACTIVE,
                VERIFICATION_APPROVED,
            )
        except SponsorMatchError as exc:
            self.app.report_error(exc)
            return
        self.app.deck.load(listings, state.criteria)
        self.refresh_card()

    def refresh_card(self) -> None:
        deck = self.app.deck
        card = self.query_one("#swipe-card", SwipeCard)
        count = self.query_one("#discover-count", Static)
        listing = deck.current
        if listing is None:
            card.update(Panel(Text("No results found. Try adjusting your filters.", style="dim")))
            count.update("")
        else:
            category = self.app.dashboard_state.category_name(listing.category_id)
            card.update(render_listing(listing, category))
            count.update(f"{len(deck.cards)} to review")
        card.styles.offset = (0, 0)
        for button_id in ("#swipe-like", "#swipe-pass"):
            self.query_one(button_id, Button).disabled = listing is None
        self._set_badges(0.0, 0.0, 0.0)

    def on_swipe_card_dragged(self, message: SwipeCard.Dragged) -> None:
        handler = message.handler
        cells = int(handler.offset / self.app.swipe_config.units_per_cell)
        self.query_one("#swipe-card", SwipeCard).styles.offset = (cells, 0)
        self._set_badges(handler.like_opacity, handler.reject_opacity, handler.rotation)

    def _set_badges(self, like: float, reject: float, rotation: float) -> None:
        self.query_one("#badge-like", Static).styles.opacity = like
        self.query_one("#badge-pass", Static).styles.opacity = reject
        tilt = self.query_one("#swipe-tilt", Static)
        tilt.update(f"tilt {rotation:+.0f}°" if rotation else "")

    async def on_swipe_card_released(self, message: SwipeCard.Released) -> None:
        handler = self.app.deck.handler()
        if handler is None:
            return
        await self._run(handler.on_released, message.offset)

    async def _run(self, action, *args) -> None:
        listing = self.app.deck.current
        try:
            result = await action(*args)
        except SponsorMatchError as exc:
            self.app.report_error(exc)
            self.refresh_card()
            return
        if result == ACTION_LIKE and listing is not None:
            outcome = self.app.deck.last_outcome
            if outcome is not None and outcome.created:
                self.app.notify(f"Interest sent for {listing.title}", title="Match requested")
            else:
                self.app.notify(f"You already expressed interest in {listing.title}", severity="warning")
            self.app.matches_changed()
        elif result == ACTION_REJECT and listing is not None:
            LOGGER.debug("Passed on %s", listing.id)
        self.refresh_card()

    async def action_like(self) -> None:
        handler = self.app.deck.handler()
        if handler is not None:
            handler.begin()
            await self._run(handler.like)

    async def action_pass(self) -> None:
        handler = self.app.deck.handler()
        if handler is not None:
            handler.begin()
            await self._run(handler.reject)

    async def action_reset_filters(self) -> None:
        self._loading_filters = True
        for selector in ("#filter-category", "#filter-ad-type", "#filter-price"):
            self.query_one(selector, Select).clear()
        for selector in ("#filter-location", "#filter-text"):
            self.query_one(selector, Input).value = ""
        self._loading_filters = False
        self.app.dashboard_state.criteria = reset_criteria()
        await self.reload()

    @on(Button.Pressed, "#swipe-like")
    async def _on_like_pressed(self) -> None:
        await self.action_like()

    @on(Button.Pressed, "#swipe-pass")
    async def _on_pass_pressed(self) -> None:
        await self.action_pass()

    @on(Button.Pressed, "#filter-reset")
    async def _on_reset_pressed(self) -> None:
        await self.action_reset_filters()

    @on(Select.Changed, "#filter-kind")
    async def _on_kind_changed(self, event: Select.Changed) -> None:
        if not isinstance(event.value, str):
            return
        self.app.dashboard_state.discover_kind = event.value
        await self.reload()

    @on(Select.Changed, "#filter-category, #filter-ad-type, #filter-price")
    @on(Input.Submitted, "#filter-location, #filter-text")
    async def _on_filter_changed(self) -> None:
        if self._loading_filters:
            return
        self.app.dashboard_state.criteria = self._read_criteria()
        await self.reload()

    def _read_criteria(self) -> FilterCriteria:
        def selected(selector: str) -> str:
            value = self.query_one(selector, Select).value
            return value if isinstance(value, str) else ""

        return FilterCriteria(
            category=selected("#filter-category"),
            ad_type=selected("#filter-ad-type"),
            price_range=selected("#filter-price"),
            location=self.query_one("#filter-location", Input).value,
            free_text=self.query_one("#filter-text", Input).value,
        )
