"""Validation helpers for dashboard forms.

Parsers return an info object carrying either a value or an error string so
modals can show the problem inline instead of raising.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, tzinfo

from sponsormatch.core.errors import ValidationFailure, user_message
from sponsormatch.core.filters import AD_TYPE_OPTIONS
from sponsormatch.core.listings import validate_draft
from sponsormatch.core.meetings import validate_meeting
from sponsormatch.core.models import KIND_OPPORTUNITY, KIND_POST, ListingDraft, MeetingDetails

AD_TYPES = {value for value, _ in AD_TYPE_OPTIONS}


@dataclass
class ListingFormInfo:
    draft: ListingDraft | None
    media_file: str | None = None
    error: str | None = None


@dataclass
class MeetingFormInfo:
    meeting: MeetingDetails | None
    error: str | None = None


def _parse_amount(raw_value: str, field: str) -> float | None:
    raw_value = raw_value.strip().replace(",", "")
    if not raw_value:
        return None
    try:
        return float(raw_value)
    except ValueError as exc:
        raise ValidationFailure("must be a number", field=field) from exc


def _parse_count(raw_value: str, field: str) -> int | None:
    raw_value = raw_value.strip().replace(",", "")
    if not raw_value:
        return None
    if not _is_int(raw_value):
        raise ValidationFailure("must be a whole number", field=field)
    return int(raw_value)


def _split_urls(raw_value: str) -> tuple[str, ...]:
    parts = raw_value.replace(",", "\n").splitlines()
    return tuple(part.strip() for part in parts if part.strip())


def parse_listing_form(values: dict[str, str], kind: str) -> ListingFormInfo:
    """Turn raw form strings into a validated ListingDraft."""

    def text(name: str) -> str:
        return str(values.get(name) or "").strip()

    try:
        ad_type = text("ad_type").lower() or None
        if kind == KIND_OPPORTUNITY and ad_type and ad_type not in AD_TYPES:
            raise ValidationFailure("unknown ad type", field="ad_type")
        draft = ListingDraft(
            title=text("title"),
            description=text("description"),
            location=text("location"),
            category_id=text("category_id"),
            price_min=_parse_amount(text("price_min"), "price_min"),
            price_max=_parse_amount(text("price_max"), "price_max"),
            media_urls=_split_urls(text("media_urls")),
            hashtags=text("hashtags") if kind == KIND_POST else "",
            reach=_parse_count(text("reach"), "reach"),
            ad_type=ad_type if kind == KIND_OPPORTUNITY else None,
            calendly_link=(text("calendly_link") or None) if kind == KIND_OPPORTUNITY else None,
        )
        validate_draft(draft, kind)
    except ValidationFailure as exc:
        return ListingFormInfo(None, error=user_message(exc))
    return ListingFormInfo(draft, media_file=text("media_file") or None)


def parse_meeting_form(
    date_value: str,
    time_value: str,
    link: str,
    notes: str,
    tz: tzinfo | None = None,
) -> MeetingFormInfo:
    """Parse the optional meeting fields entered when accepting a match.

    Date (YYYY-MM-DD) and time (HH:MM) are given together or not at all and
    are read in the local timezone unless tz is passed.
    """

    date_value = date_value.strip()
    time_value = time_value.strip()
    scheduled_at = None
    if bool(date_value) != bool(time_value):
        return MeetingFormInfo(None, "date and time are required together")
    if date_value:
        try:
            naive = datetime.strptime(f"{date_value} {time_value}", "%Y-%m-%d %H:%M")
        except ValueError:
            return MeetingFormInfo(None, "use YYYY-MM-DD and HH:MM")
        scheduled_at = naive.replace(tzinfo=tz) if tz else naive.astimezone()

    meeting = MeetingDetails(
        scheduled_at=scheduled_at,
        link=link.strip() or None,
        notes=notes.strip() or None,
    )
    try:
        validate_meeting(meeting)
    except ValidationFailure as exc:
        return MeetingFormInfo(None, user_message(exc))
    return MeetingFormInfo(meeting)


def _is_int(value: str) -> bool:
    try:
        int(value)
    except ValueError:
        return False
    return True
