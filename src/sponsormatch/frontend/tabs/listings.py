"""Listings tab: the creator's opportunities or the influencer's posts."""

from __future__ import annotations

from dataclasses import replace
import mimetypes
from pathlib import Path
from typing import Any, Optional

from rich.text import Text
from textual import on
from textual.containers import Container, Horizontal, Vertical
from textual.widgets import Button, DataTable, Static

from sponsormatch.core.errors import SponsorMatchError, ValidationFailure
from sponsormatch.core.models import LISTING_ACTIVE, VERIFICATION_APPROVED, VERIFICATION_REJECTED, Listing

from ..constants import VERIFICATION_STYLES
from ..modals import DeleteListingScreen, ListingFormScreen
from ..validators import ListingFormInfo


def _price(listing: Listing) -> str:
    price = listing.price_range
    if price is None or not price.is_complete:
        return ""
    return f"{price.min:,.0f} - {price.max:,.0f}"


class ListingsTab(Container):
    """Create, edit, pause and delete the account's own listings."""

    BINDINGS = [
        ("n", "new_listing", "New"),
        ("e", "edit_listing", "Edit"),
        ("p", "toggle_listing", "Pause/Activate"),
    ]

    def __init__(self, kind: str, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._kind = kind
        self._listings: list[Listing] = []
        self._current_id: Optional[str] = None
        self._table_ready = False

    def compose(self):
        with Vertical(id="listings-panel"):
            with Horizontal(id="listings-body"):
                with Container(id="listings-left"):
                    yield DataTable(id="listings-table", cursor_type="row")
                with Container(id="listings-right"):
                    yield Static("Listing details", id="listings-title")
                    yield Static("", id="listing-detail")
            with Horizontal(id="listings-actions"):
                yield Button("New", id="listing-new", variant="success")
                yield Button("Edit", id="listing-edit")
                yield Button("Pause", id="listing-toggle", variant="warning")
                yield Button("Delete", id="listing-delete", variant="error")
                yield Button("Refresh", id="listing-refresh")

    async def on_mount(self) -> None:
        table = self.query_one("#listings-table", DataTable)
        table.add_column("title", key="title", width=30)
        table.add_column("status", key="status", width=10)
        table.add_column("verification", key="verification", width=13)
        table.add_column("price", key="price", width=22)
        table.add_column("location", key="location", width=16)
        table.zebra_stripes = True
        self._table_ready = True
        await self.app.load_categories()
        await self.reload_listings()

    async def reload_listings(self) -> None:
        if not self._table_ready:
            return
        try:
            self._listings = await self.app.in_thread(self.app.listing_service.list_own, self._kind)
        except SponsorMatchError as exc:
            self.app.report_error(exc)
            return
        table = self.query_one("#listings-table", DataTable)
        table.clear()
        for listing in self._listings:
            table.add_row(
                listing.title,
                listing.status,
                Text(listing.verification_status, style=VERIFICATION_STYLES.get(listing.verification_status, "")),
                _price(listing),
                listing.location,
                key=listing.id,
            )
        if self._selected() is None:
            self._current_id = None
        self._show_detail()

    def _selected(self) -> Optional[Listing]:
        for listing in self._listings:
            if listing.id == self._current_id:
                return listing
        return None

    def _show_detail(self) -> None:
        listing = self._selected()
        detail = self.query_one("#listing-detail", Static)
        edit_btn = self.query_one("#listing-edit", Button)
        toggle_btn = self.query_one("#listing-toggle", Button)
        delete_btn = self.query_one("#listing-delete", Button)
        edit_btn.disabled = delete_btn.disabled = listing is None
        if listing is None:
            detail.update("Select a listing to see details.")
            toggle_btn.disabled = True
            return

        lines = [
            Text(listing.title, style="bold"),
            Text(self.app.dashboard_state.category_name(listing.category_id), style="dim"),
            Text(listing.description),
            Text.assemble(
                "verification: ",
                (listing.verification_status, VERIFICATION_STYLES.get(listing.verification_status, "")),
            ),
        ]
        if listing.verification_status == VERIFICATION_REJECTED and listing.rejection_reason:
            lines.append(Text(f"reason: {listing.rejection_reason}", style="red"))
        if listing.verification_status != VERIFICATION_APPROVED:
            lines.append(Text("Pausing is available once the listing is approved.", style="dim"))
        if listing.media_urls:
            lines.append(Text("\n".join(listing.media_urls), style="dim"))
        detail.update(Text("\n").join(lines))

        toggle_btn.label = "Pause" if listing.status == LISTING_ACTIVE else "Activate"
        toggle_btn.disabled = listing.verification_status != VERIFICATION_APPROVED

    def on_data_table_row_selected(self, event: DataTable.RowSelected) -> None:
        self._current_id = self._coerce_row_key(event.row_key)
        self._show_detail()

    @on(Button.Pressed, "#listing-new")
    def action_new_listing(self) -> None:
        screen = ListingFormScreen(self._kind, self.app.dashboard_state.categories)
        self.app.push_screen(screen, self._handle_create)

    @on(Button.Pressed, "#listing-edit")
    def action_edit_listing(self) -> None:
        listing = self._selected()
        if listing is None:
            return
        screen = ListingFormScreen(self._kind, self.app.dashboard_state.categories, listing)
        self.app.push_screen(screen, self._handle_edit)

    @on(Button.Pressed, "#listing-toggle")
    async def action_toggle_listing(self) -> None:
        listing = self._selected()
        if listing is None:
            return
        try:
            updated = await self.app.in_thread(self.app.listing_service.toggle_status, self._kind, listing)
        except SponsorMatchError as exc:
            self.app.report_error(exc)
            return
        self.app.notify(f"{updated.title} is now {updated.status}")
        await self.reload_listings()

    @on(Button.Pressed, "#listing-delete")
    def _on_delete(self) -> None:
        listing = self._selected()
        if listing is None:
            return
        self.app.push_screen(DeleteListingScreen(listing.title), self._handle_delete)

    @on(Button.Pressed, "#listing-refresh")
    async def _on_refresh(self) -> None:
        await self.reload_listings()

    async def _handle_create(self, info: ListingFormInfo | None) -> None:
        await self._save(info, None)

    async def _handle_edit(self, info: ListingFormInfo | None) -> None:
        await self._save(info, self._current_id)

    async def _save(self, info: ListingFormInfo | None, listing_id: Optional[str]) -> None:
        if info is None or info.draft is None:
            return
        draft = info.draft
        service = self.app.listing_service
        try:
            if info.media_file:
                url = await self._upload(info.media_file)
                draft = replace(draft, media_urls=draft.media_urls + (url,))
            listing = await self.app.in_thread(service.save, self._kind, draft, listing_id)
        except SponsorMatchError as exc:
            self.app.report_error(exc)
            return
        self._current_id = listing.id
        self.app.notify(f"{listing.title} saved and submitted for review")
        await self.reload_listings()

    async def _upload(self, file_path: str) -> str:
        path = Path(file_path).expanduser()
        try:
            data = path.read_bytes()
        except OSError as exc:
            raise ValidationFailure(f"cannot read {path.name}: {exc.strerror or exc}", field="media") from exc
        content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        return await self.app.in_thread(
            self.app.listing_service.upload_media, self._kind, path.name, data, content_type
        )

    async def _handle_delete(self, confirmed: bool | None) -> None:
        if not confirmed or self._current_id is None:
            return
        try:
            await self.app.in_thread(self.app.listing_service.delete, self._kind, self._current_id)
        except SponsorMatchError as exc:
            self.app.report_error(exc)
            return
        self._current_id = None
        self.app.notify("Listing deleted")
        await self.reload_listings()

    @staticmethod
    def _coerce_row_key(value: Any) -> str:
        if hasattr(value, "value"):
            return str(value.value)
        return str(value)
