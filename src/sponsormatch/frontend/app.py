"""Main Textual app for the sponsorship dashboards."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

from rich.text import Text
from textual.app import App, ComposeResult
from textual.containers import Center, Container, Horizontal, Vertical
from textual.widgets import ContentSwitcher, Footer, Static, Tab, Tabs

from sponsormatch import __version__
from sponsormatch.core.config import NotificationConfig, RetryConfig, SwipeConfig
from sponsormatch.core.deck import DiscoveryDeck
from sponsormatch.core.errors import (
    SponsorMatchError,
    TransientNetwork,
    ValidationFailure,
    call_store,
    user_message,
)
from sponsormatch.core.lifecycle import MatchController
from sponsormatch.core.listings import ListingService
from sponsormatch.core.models import KIND_OPPORTUNITY, KIND_POST, ROLE_BRAND, ROLE_INFLUENCER
from sponsormatch.core.ports import NotifierPort, StorePort

from .constants import BRAND_ORANGE
from .state import DashboardState
from .tabs.discover import DiscoverTab
from .tabs.listings import ListingsTab
from .tabs.matches import MatchesTab

LOGGER = logging.getLogger(__name__)


class SponsorMatchApp(App):
    """Role-aware dashboard: discovery for brands, listings for owners."""

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("ctrl+c", "quit", "Quit"),
    ]

    CSS_PATH = "app.tcss"

    def __init__(
        self,
        store: StorePort,
        notifier: NotifierPort,
        account_id: str,
        role: str = ROLE_BRAND,
        swipe_config: Optional[SwipeConfig] = None,
        retry: Optional[RetryConfig] = None,
        notifications: Optional[NotificationConfig] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.store = store
        self.account_id = account_id
        self.role = role
        self.swipe_config = swipe_config or SwipeConfig()
        self.retry = retry or RetryConfig()
        self.notifications = notifications or NotificationConfig()
        self.dashboard_state = DashboardState()
        self.controller = MatchController(store, notifier, account_id, role=role, retry=self.retry)
        self.deck = DiscoveryDeck(self.controller, self.swipe_config)
        self.listing_service = ListingService(store, account_id, retry=self.retry)

    @property
    def owned_kind(self) -> str:
        return KIND_POST if self.role == ROLE_INFLUENCER else KIND_OPPORTUNITY

    def _tab_ids(self) -> list[tuple[str, str]]:
        if self.role == ROLE_BRAND:
            return [("discover", "Discover"), ("matches", "Matches")]
        noun = "Posts" if self.role == ROLE_INFLUENCER else "Opportunities"
        return [("listings", noun), ("matches", "Match requests")]

    def compose(self) -> ComposeResult:
        with Container(id="header"):
            with Horizontal(id="header-row"):
                with Vertical(id="header-left"):
                    yield Static(self._title_text(), id="title")
                    yield Static(f"v{__version__}", classes="subtle")
                with Vertical(id="header-right"):
                    yield Static(f"{self.role}: {self.account_id}", classes="subtle")
                    yield Static("", id="header-status")

        with Container(id="tabs-bar"):
            with Center(id="tabs-center"):
                yield Tabs(*(Tab(label, id=tab_id) for tab_id, label in self._tab_ids()), id="tabs")

        with ContentSwitcher(id="content"):
            if self.role == ROLE_BRAND:
                yield DiscoverTab(id="discover")
            else:
                yield ListingsTab(self.owned_kind, id="listings")
            yield MatchesTab(id="matches")
        yield Footer()

    def on_mount(self) -> None:
        self._set_active_tab(self._tab_ids()[0][0])

    def on_tabs_tab_activated(self, event: Tabs.TabActivated) -> None:
        tab_id = event.tab.id or ""
        if tab_id:
            self._set_active_tab(tab_id)

    def _set_active_tab(self, tab_id: str) -> None:
        switcher = self.query_one("#content", ContentSwitcher)
        switcher.current = tab_id

    async def load_categories(self) -> None:
        """Fetch categories once; tabs call this from their own mount handlers."""

        if self.dashboard_state.categories:
            return
        try:
            self.dashboard_state.categories = await self.call_store(self.store.list_categories)
        except SponsorMatchError as exc:
            self.report_error(exc)

    async def call_store(self, func, *args, **kwargs):
        """Run a store call with retries in a worker thread."""

        return await self.in_thread(call_store, func, *args, retries=self.retry.transient_retries, **kwargs)

    async def in_thread(self, func, *args, **kwargs):
        # Store adapters block on network I/O; keep the event loop painting.
        return await asyncio.to_thread(func, *args, **kwargs)

    def report_error(self, exc: SponsorMatchError) -> None:
        """Show a handled failure as a non-blocking banner."""

        message = user_message(exc)
        if isinstance(exc, TransientNetwork) and exc.retryable:
            message = f"{message} (refresh to retry)"
        severity = "warning" if isinstance(exc, ValidationFailure) else "error"
        LOGGER.warning("%s: %s", exc.kind, exc)
        self.dashboard_state.error = message
        self.query_one("#header-status", Static).update(Text(message, style="red"))
        self.notify(message, severity=severity, timeout=self.notifications.banner_seconds)

    def matches_changed(self) -> None:
        """Redraw the matches tab after the controller's list changed."""

        self.dashboard_state.error = None
        self.query_one("#header-status", Static).update("")
        self.query_one(MatchesTab).reload_from_controller()

    @staticmethod
    def _title_text() -> Text:
        return Text.assemble(
            ("SPONSOR", BRAND_ORANGE),
            ("MATCH > Dashboard", "bold"),
        )
