"""Meeting helpers for accepted matches (core domain)."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional
from urllib.parse import quote, urlparse

from sponsormatch.core.errors import ValidationFailure
from sponsormatch.core.models import Match, MeetingDetails

CALENDAR_BASE_URL = "https://calendar.google.com/calendar/render"
MEETING_DURATION = timedelta(hours=1)


def is_http_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def validate_meeting(meeting: MeetingDetails) -> MeetingDetails:
    """Check meeting fields before they are attached to an acceptance."""

    if meeting.link and not is_http_url(meeting.link):
        raise ValidationFailure("meeting link must be an http(s) URL", field="meeting_link")
    if meeting.scheduled_at is not None and meeting.scheduled_at.tzinfo is None:
        raise ValidationFailure("meeting time must include a timezone", field="meeting_scheduled_at")
    return meeting


def _calendar_stamp(value: datetime) -> str:
    return value.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%SZ")


def calendar_link(match: Match, now: Optional[datetime] = None) -> str:
    """Build a Google Calendar "add event" URL for an accepted match.

    The slot is one hour long. Without a schedule the slot starts now; the
    location falls back from the meeting link to the listing location.
    """

    listing = match.listing
    title = f"Meeting for {listing.title if listing else 'Opportunity'}"
    description = f"Meeting with brand and creator.\nJoin Meeting: {match.meeting_link or ''}"
    start = match.meeting_scheduled_at or now or datetime.now(timezone.utc)
    end = start + MEETING_DURATION
    location = match.meeting_link or (listing.location if listing else "") or "TBD"

    params = [
        "action=TEMPLATE",
        f"text={quote(title.strip()).replace('%20', '+')}",
        f"dates={_calendar_stamp(start)}%2F{_calendar_stamp(end)}",
        f"details={quote(description.strip())}",
        f"location={quote(location.strip())}",
    ]
    return f"{CALENDAR_BASE_URL}?{'&'.join(params)}"
