"""Modal dialogs for the dashboards."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import Container, Horizontal, VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Select, Static, TextArea

from sponsormatch.core.filters import AD_TYPE_OPTIONS
from sponsormatch.core.models import KIND_OPPORTUNITY, Category, Listing, MeetingDetails

from .validators import ListingFormInfo, parse_listing_form, parse_meeting_form


def _amount(value: float | None) -> str:
    if value is None:
        return ""
    return str(int(value)) if float(value).is_integer() else str(value)


class ListingFormScreen(ModalScreen[ListingFormInfo | None]):
    """Create or edit an opportunity or a post."""

    def __init__(self, kind: str, categories: list[Category], listing: Listing | None = None) -> None:
        super().__init__()
        self._kind = kind
        self._categories = categories
        self._listing = listing

    def compose(self) -> ComposeResult:
        listing = self._listing
        price = listing.price_range if listing else None
        noun = "opportunity" if self._kind == KIND_OPPORTUNITY else "post"
        title = f"Edit {noun}" if listing else f"New {noun}"

        fields = [
            Static(title, classes="modal-title"),
            Static("", id="listing-error", classes="modal-error"),
            Static("title", classes="form-label"),
            Input(listing.title if listing else "", id="listing-title"),
            Static("description", classes="form-label"),
            TextArea(listing.description if listing else "", id="listing-description"),
            Static("category", classes="form-label"),
            Select(
                [(category.name, category.id) for category in self._categories],
                prompt="Select category",
                value=listing.category_id if listing and listing.category_id else Select.BLANK,
                id="listing-category",
            ),
            Static("location", classes="form-label"),
            Input(listing.location if listing else "", id="listing-location"),
            Static("price min / max", classes="form-label"),
            Horizontal(
                Input(_amount(price.min) if price else "", placeholder="min", id="listing-price-min"),
                Input(_amount(price.max) if price else "", placeholder="max", id="listing-price-max"),
                classes="form-row",
            ),
            Static("reach", classes="form-label"),
            Input(str(listing.reach) if listing and listing.reach is not None else "", id="listing-reach"),
        ]
        if self._kind == KIND_OPPORTUNITY:
            fields.extend(
                [
                    Static("ad type", classes="form-label"),
                    Select(
                        [(label, value) for value, label in AD_TYPE_OPTIONS],
                        prompt="Select ad type",
                        value=getattr(listing, "ad_type", None) or Select.BLANK,
                        id="listing-ad-type",
                    ),
                    Static("booking link (optional)", classes="form-label"),
                    Input(getattr(listing, "calendly_link", None) or "", id="listing-calendly"),
                ]
            )
        else:
            fields.extend(
                [
                    Static("hashtags", classes="form-label"),
                    Input(getattr(listing, "hashtags", ""), placeholder="#travel #food", id="listing-hashtags"),
                ]
            )
        fields.extend(
            [
                Static("media URLs (one per line)", classes="form-label"),
                TextArea("\n".join(listing.media_urls) if listing else "", id="listing-media"),
                Static("upload file (optional local path)", classes="form-label"),
                Input(placeholder="/path/to/image.jpg", id="listing-media-file"),
                Horizontal(
                    Button("Save", id="listing-save", variant="success"),
                    Button("Cancel", id="listing-cancel"),
                    classes="modal-actions",
                ),
            ]
        )
        yield VerticalScroll(*fields, classes="modal-dialog modal-dialog--form")

    def _select_value(self, selector: str) -> str:
        value = self.query_one(selector, Select).value
        return value if isinstance(value, str) else ""

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "listing-cancel":
            self.dismiss(None)
            return
        if event.button.id != "listing-save":
            return
        values = {
            "title": self.query_one("#listing-title", Input).value,
            "description": self.query_one("#listing-description", TextArea).text,
            "category_id": self._select_value("#listing-category"),
            "location": self.query_one("#listing-location", Input).value,
            "price_min": self.query_one("#listing-price-min", Input).value,
            "price_max": self.query_one("#listing-price-max", Input).value,
            "reach": self.query_one("#listing-reach", Input).value,
            "media_urls": self.query_one("#listing-media", TextArea).text,
            "media_file": self.query_one("#listing-media-file", Input).value,
        }
        if self._kind == KIND_OPPORTUNITY:
            values["ad_type"] = self._select_value("#listing-ad-type")
            values["calendly_link"] = self.query_one("#listing-calendly", Input).value
        else:
            values["hashtags"] = self.query_one("#listing-hashtags", Input).value
        info = parse_listing_form(values, self._kind)
        if info.error or info.draft is None:
            self.query_one("#listing-error", Static).update(info.error or "invalid listing")
            return
        self.dismiss(info)


class MeetingScreen(ModalScreen[MeetingDetails | None]):
    """Optional meeting details collected when accepting a match."""

    def __init__(self, listing_title: str) -> None:
        super().__init__()
        self._listing_title = listing_title

    def compose(self) -> ComposeResult:
        yield Container(
            Static("Accept match", classes="modal-title"),
            Static(self._listing_title, classes="modal-body"),
            Static("", id="meeting-error", classes="modal-error"),
            Static("date / time (optional)", classes="form-label"),
            Horizontal(
                Input(placeholder="YYYY-MM-DD", id="meeting-date"),
                Input(placeholder="HH:MM", id="meeting-time"),
                classes="form-row",
            ),
            Static("meeting link (optional)", classes="form-label"),
            Input(placeholder="https://meet.example.com/...", id="meeting-link"),
            Static("notes (optional)", classes="form-label"),
            Input(id="meeting-notes"),
            Horizontal(
                Button("Accept", id="meeting-accept", variant="success"),
                Button("Cancel", id="meeting-cancel"),
                classes="modal-actions",
            ),
            classes="modal-dialog modal-dialog--form",
        )

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "meeting-cancel":
            self.dismiss(None)
            return
        if event.button.id != "meeting-accept":
            return
        info = parse_meeting_form(
            self.query_one("#meeting-date", Input).value,
            self.query_one("#meeting-time", Input).value,
            self.query_one("#meeting-link", Input).value,
            self.query_one("#meeting-notes", Input).value,
        )
        if info.error or info.meeting is None:
            self.query_one("#meeting-error", Static).update(info.error or "invalid meeting")
            return
        self.dismiss(info.meeting)


class DeleteListingScreen(ModalScreen[bool]):
    """Confirm deletion of a listing."""

    def __init__(self, title: str) -> None:
        super().__init__()
        self._title = title or "(untitled listing)"

    def compose(self) -> ComposeResult:
        yield Container(
            Static("Delete listing?", classes="modal-title"),
            Static(self._title, classes="modal-body"),
            Static("Matches on this listing are removed as well.", classes="modal-body subtle"),
            Horizontal(
                Button("Delete", id="delete-listing-confirm", variant="error"),
                Button("Cancel", id="delete-listing-cancel"),
                classes="modal-actions",
            ),
            classes="modal-dialog modal-dialog--confirm",
        )

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "delete-listing-confirm":
            self.dismiss(True)
        else:
            self.dismiss(False)
