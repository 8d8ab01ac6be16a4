"""Shared notification formatting helpers.

Keeping formatting here prevents drift between adapters and keeps messages
consistent regardless of delivery channel.
"""

from __future__ import annotations

import html
from typing import Optional

from sponsormatch.core.meetings import calendar_link
from sponsormatch.core.models import MATCH_ACCEPTED, Listing, Match, Profile

DIVIDER = "──────────────"


def format_listing_label(listing: Optional[Listing]) -> str:
    """Return a short human-friendly label for a listing."""

    if listing is None:
        return "(listing unavailable)"
    label = listing.title
    if listing.location:
        label = f"{label} ({listing.location})"
    return label


def _interest_lines(match: Match, listing: Optional[Listing], brand: Optional[Profile]) -> list[tuple[str, str]]:
    brand_name = brand.display_name if brand else match.brand_id
    fields = [
        ("Listing", format_listing_label(listing)),
        ("Brand", brand_name),
    ]
    if brand and brand.industry:
        fields.append(("Industry", brand.industry))
    if brand and brand.email:
        fields.append(("Contact", brand.email))
    return fields


def _decision_lines(match: Match, listing: Optional[Listing]) -> list[tuple[str, str]]:
    fields = [
        ("Listing", format_listing_label(listing)),
        ("Status", match.status),
    ]
    if match.status == MATCH_ACCEPTED:
        if match.meeting_scheduled_at:
            fields.append(("Meeting", match.meeting_scheduled_at.astimezone().strftime("%H:%M %d-%m-%Y")))
        if match.meeting_link:
            fields.append(("Join", match.meeting_link))
        calendly = getattr(listing, "calendly_link", None)
        if calendly:
            fields.append(("Book a slot", calendly))
        fields.append(("Calendar", calendar_link(match)))
    return fields


def _render_markdown(title: str, fields: list[tuple[str, str]]) -> str:
    def escape_md(value: str) -> str:
        for ch in r"*[`":
            value = value.replace(ch, f"\\{ch}")
        return value

    lines = [f"**{escape_md(title)}**", DIVIDER]
    lines.extend(f"**{name}:** {escape_md(value)}" for name, value in fields)
    lines.append(DIVIDER)
    return "\n".join(lines)


def _render_html(title: str, fields: list[tuple[str, str]]) -> str:
    parts = [f"<b>{html.escape(title)}</b>", DIVIDER]
    for name, value in fields:
        safe = html.escape(value)
        if value.startswith(("http://", "https://")):
            safe = f"<a href=\"{safe}\">{safe}</a>"
        parts.append(f"<b>{html.escape(name)}:</b> {safe}")
    parts.append(DIVIDER)
    return "\n".join(parts)


def _render(title: str, fields: list[tuple[str, str]], mode: str) -> str:
    if mode == "markdown":
        return _render_markdown(title, fields)
    if mode == "html":
        return _render_html(title, fields)
    raise ValueError(f"Unsupported notification format: {mode}")


def format_interest_notification(
    match: Match,
    listing: Optional[Listing],
    brand: Optional[Profile],
    mode: str,
) -> str:
    """Message sent to a listing owner when a brand shows interest."""

    return _render("New sponsorship interest", _interest_lines(match, listing, brand), mode)


def format_decision_notification(match: Match, listing: Optional[Listing], mode: str) -> str:
    """Message sent to a brand when a match is decided."""

    title = "Your match was accepted" if match.status == MATCH_ACCEPTED else "Your match was declined"
    return _render(title, _decision_lines(match, listing), mode)
