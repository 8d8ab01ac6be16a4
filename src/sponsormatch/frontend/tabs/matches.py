"""Matches tab: partitioned match list with accept / decline for owners."""

from __future__ import annotations

from typing import Any, Optional

from rich.text import Text
from textual import on
from textual.containers import Container, Horizontal, Vertical
from textual.widgets import Button, DataTable, Input, Select, Static

from sponsormatch.core.errors import SponsorMatchError
from sponsormatch.core.filters import MATCH_FILTER_ALL, filter_matches
from sponsormatch.core.meetings import calendar_link
from sponsormatch.core.models import (
    MATCH_ACCEPTED,
    MATCH_PENDING,
    MATCH_REJECTED,
    ROLE_BRAND,
    Match,
    MeetingDetails,
)

from ..constants import MATCH_FILTER_OPTIONS, STATUS_STYLES
from ..modals import MeetingScreen


def _listing_title(match: Match) -> str:
    return match.listing.title if match.listing else match.listing_id


def _brand_label(match: Match) -> str:
    if match.brand is None:
        return match.brand_id
    if match.brand.industry:
        return f"{match.brand.display_name} ({match.brand.industry})"
    return match.brand.display_name


def _when(match: Match) -> str:
    if match.meeting_scheduled_at:
        return match.meeting_scheduled_at.astimezone().strftime("%d %b %Y %H:%M")
    return ""


class MatchesTab(Container):
    """Match requests for the signed-in account."""

    BINDINGS = [
        ("a", "accept", "Accept"),
        ("d", "decline", "Decline"),
        ("r", "refresh", "Refresh"),
    ]

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._current_id: Optional[str] = None
        self._table_ready = False

    def compose(self):
        with Vertical(id="matches-panel"):
            with Horizontal(id="matches-stats"):
                yield Static("", id="stat-total", classes="stat-card")
                yield Static("", id="stat-pending", classes="stat-card")
                yield Static("", id="stat-accepted", classes="stat-card")
                yield Static("", id="stat-rejected", classes="stat-card")
            with Horizontal(id="matches-filters"):
                yield Select(MATCH_FILTER_OPTIONS, value=MATCH_FILTER_ALL, allow_blank=False, id="match-status")
                yield Input(placeholder="Search company, listing or industry", id="match-search")
                yield Button("Refresh", id="match-refresh")
            with Horizontal(id="matches-body"):
                with Container(id="matches-left"):
                    yield DataTable(id="matches-table", cursor_type="row")
                with Container(id="matches-right"):
                    yield Static("Match details", id="matches-title")
                    yield Static("", id="match-detail")
                    yield Static("", id="match-calendar", classes="subtle")
                    with Horizontal(id="matches-actions"):
                        yield Button("Accept", id="match-accept", variant="success")
                        yield Button("Decline", id="match-decline", variant="error")

    async def on_mount(self) -> None:
        table = self.query_one("#matches-table", DataTable)
        table.add_column("status", key="status", width=10)
        table.add_column("listing", key="listing", width=30)
        table.add_column("brand", key="brand", width=28)
        table.add_column("meeting", key="meeting", width=18)
        table.zebra_stripes = True
        self._table_ready = True
        if self.app.role == ROLE_BRAND:
            self.query_one("#matches-actions", Horizontal).display = False
        await self.action_refresh()

    async def action_refresh(self) -> None:
        try:
            await self.app.controller.refresh()
        except SponsorMatchError as exc:
            self.app.report_error(exc)
        self.reload_from_controller()

    def reload_from_controller(self) -> None:
        if not self._table_ready:
            return
        controller = self.app.controller
        state = self.app.dashboard_state
        stats = controller.stats()
        self.query_one("#stat-total", Static).update(f"Total\n{stats.total}")
        self.query_one("#stat-pending", Static).update(f"Pending\n{stats.pending}")
        self.query_one("#stat-accepted", Static).update(f"Accepted\n{stats.accepted}")
        self.query_one("#stat-rejected", Static).update(f"Rejected\n{stats.rejected}")

        table = self.query_one("#matches-table", DataTable)
        table.clear()
        # Pending first, then decided ones, each group most recent first.
        groups = controller.partition()
        ordered = groups.pending + groups.accepted + groups.rejected + groups.completed
        for match in filter_matches(ordered, state.match_status, state.match_query):
            table.add_row(
                Text(match.status, style=STATUS_STYLES.get(match.status, "")),
                _listing_title(match),
                _brand_label(match),
                _when(match),
                key=match.id,
            )
        self._show_detail()

    def _selected(self) -> Optional[Match]:
        if self._current_id is None:
            return None
        for match in self.app.controller.matches:
            if match.id == self._current_id:
                return match
        return None

    def _show_detail(self) -> None:
        match = self._selected()
        detail = self.query_one("#match-detail", Static)
        calendar = self.query_one("#match-calendar", Static)
        accept_btn = self.query_one("#match-accept", Button)
        decline_btn = self.query_one("#match-decline", Button)
        if match is None:
            detail.update("Select a match to see details.")
            calendar.update("")
            accept_btn.disabled = True
            decline_btn.disabled = True
            return

        lines = [
            Text(_listing_title(match), style="bold"),
            Text.assemble("status: ", (match.status, STATUS_STYLES.get(match.status, ""))),
            Text(f"brand: {_brand_label(match)}"),
        ]
        brand = match.brand
        if brand and brand.contact_person_name:
            lines.append(Text(f"contact: {brand.contact_person_name} {brand.contact_person_phone or ''}".rstrip()))
        if brand and brand.email:
            lines.append(Text(f"email: {brand.email}"))
        if match.meeting_scheduled_at:
            lines.append(Text(f"meeting: {_when(match)}"))
        if match.meeting_link:
            lines.append(Text(f"join: {match.meeting_link}"))
        if match.notes:
            lines.append(Text(f"notes: {match.notes}"))
        detail.update(Text("\n").join(lines))

        if match.status == MATCH_ACCEPTED:
            calendar.update(f"Add to calendar: {calendar_link(match)}")
        else:
            calendar.update("")

        busy = self.app.controller.is_busy(match.id)
        actionable = match.status == MATCH_PENDING and not busy
        accept_btn.disabled = not actionable
        decline_btn.disabled = not actionable

    def on_data_table_row_selected(self, event: DataTable.RowSelected) -> None:
        self._current_id = self._coerce_row_key(event.row_key)
        self._show_detail()

    @on(Select.Changed, "#match-status")
    def _on_status_changed(self, event: Select.Changed) -> None:
        if not isinstance(event.value, str):
            return
        self.app.dashboard_state.match_status = event.value
        self.reload_from_controller()

    @on(Input.Changed, "#match-search")
    def _on_search_changed(self, event: Input.Changed) -> None:
        self.app.dashboard_state.match_query = event.value
        self.reload_from_controller()

    @on(Button.Pressed, "#match-refresh")
    async def _on_refresh_pressed(self) -> None:
        await self.action_refresh()

    @on(Button.Pressed, "#match-accept")
    def _on_accept_pressed(self) -> None:
        self.action_accept()

    @on(Button.Pressed, "#match-decline")
    async def _on_decline_pressed(self) -> None:
        await self.action_decline()

    def action_accept(self) -> None:
        match = self._selected()
        if match is None or self.app.role == ROLE_BRAND or match.status != MATCH_PENDING:
            return
        self.app.push_screen(MeetingScreen(_listing_title(match)), self._handle_meeting)

    async def action_decline(self) -> None:
        match = self._selected()
        if match is None or self.app.role == ROLE_BRAND:
            return
        await self._decide(match.id, MATCH_REJECTED, None)

    async def _handle_meeting(self, meeting: MeetingDetails | None) -> None:
        match = self._selected()
        if meeting is None or match is None:
            return
        await self._decide(match.id, MATCH_ACCEPTED, meeting)

    async def _decide(self, match_id: str, outcome: str, meeting: MeetingDetails | None) -> None:
        self.query_one("#match-accept", Button).disabled = True
        self.query_one("#match-decline", Button).disabled = True
        try:
            updated = await self.app.controller.decide(match_id, outcome, meeting)
        except SponsorMatchError as exc:
            self.app.report_error(exc)
        else:
            verb = "accepted" if updated.status == MATCH_ACCEPTED else "declined"
            self.app.notify(f"Match {verb}: {_listing_title(updated)}")
        self.reload_from_controller()

    @staticmethod
    def _coerce_row_key(value: Any) -> str:
        if hasattr(value, "value"):
            return str(value.value)
        return str(value)
