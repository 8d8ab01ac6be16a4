"""Row-to-record mapping at the store boundary.

Store rows arrive as loosely typed dicts (JSON columns for price ranges and
media lists). Everything is validated here so malformed shapes never reach
the core; failures raise ValidationFailure naming the offending field.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Tuple

from sponsormatch.core.errors import ValidationFailure
from sponsormatch.core.models import (
    KIND_OPPORTUNITY,
    KIND_POST,
    LISTING_STATUSES,
    MATCH_STATUSES,
    VERIFICATION_REJECTED,
    VERIFICATION_STATUSES,
    Category,
    Listing,
    ListingDraft,
    Match,
    MeetingDetails,
    Opportunity,
    Post,
    PriceRange,
    Profile,
)

TABLES = {KIND_OPPORTUNITY: "opportunities", KIND_POST: "posts"}
LISTING_COLUMNS = {KIND_OPPORTUNITY: "opportunity_id", KIND_POST: "post_id"}


def _required(row: Mapping[str, Any], key: str) -> Any:
    value = row.get(key)
    if value is None or value == "":
        raise ValidationFailure("missing required column", field=key)
    return value


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value)
    return text or None


def _enum(value: Any, allowed: Tuple[str, ...], field: str, default: Optional[str] = None) -> str:
    if value is None and default is not None:
        return default
    if value not in allowed:
        raise ValidationFailure(f"unexpected value {value!r}", field=field)
    return value


def _number(value: Any, field: str) -> Optional[float]:
    if value is None or value == "":
        return None
    # bool is an int subclass; a JSON true/false is never a price.
    if isinstance(value, bool):
        raise ValidationFailure("expected a number", field=field)
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError as exc:
            raise ValidationFailure("expected a number", field=field) from exc
    raise ValidationFailure("expected a number", field=field)


def _int(value: Any, field: str) -> Optional[int]:
    number = _number(value, field)
    if number is None:
        return None
    if number < 0 or number != int(number):
        raise ValidationFailure("expected a non-negative integer", field=field)
    return int(number)


def parse_timestamp(value: Any, field: str = "created_at") -> Optional[datetime]:
    """Parse ISO-8601 timestamps as returned by PostgREST or SQLite."""

    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        text = value.strip().replace("Z", "+00:00")
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError as exc:
            raise ValidationFailure("expected an ISO timestamp", field=field) from exc
    else:
        raise ValidationFailure("expected an ISO timestamp", field=field)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def price_range_from_json(value: Any) -> Optional[PriceRange]:
    """Validate the untyped price_range column into a PriceRange."""

    if value is None:
        return None
    if not isinstance(value, Mapping):
        raise ValidationFailure("expected an object with min/max", field="price_range")
    low = _number(value.get("min"), "price_range.min")
    high = _number(value.get("max"), "price_range.max")
    if low is None and high is None:
        return None
    if low is not None and high is not None and low > high:
        raise ValidationFailure("min is greater than max", field="price_range")
    return PriceRange(min=low, max=high)


def price_range_to_json(price: Optional[PriceRange]) -> Optional[dict]:
    if price is None:
        return None
    return {"min": price.min, "max": price.max}


def media_from_json(value: Any) -> Tuple[str, ...]:
    """Validate the media_urls column into an ordered tuple of URLs."""

    if value is None:
        return ()
    if not isinstance(value, (list, tuple)):
        raise ValidationFailure("expected a list of URLs", field="media_urls")
    urls = []
    for item in value:
        if not isinstance(item, str) or not item.strip():
            raise ValidationFailure("expected a list of URLs", field="media_urls")
        urls.append(item)
    return tuple(urls)


def category_from_row(row: Mapping[str, Any]) -> Category:
    return Category(
        id=str(_required(row, "id")),
        name=str(_required(row, "name")),
        description=_optional_str(row.get("description")),
    )


def profile_from_row(row: Mapping[str, Any]) -> Profile:
    return Profile(
        id=str(_required(row, "id")),
        user_type=str(row.get("user_type") or "brand"),
        company_name=_optional_str(row.get("company_name")),
        industry=_optional_str(row.get("industry")),
        contact_person_name=_optional_str(row.get("contact_person_name")),
        contact_person_phone=_optional_str(row.get("contact_person_phone")),
        email=_optional_str(row.get("email")),
    )


def _verification(row: Mapping[str, Any]) -> Tuple[str, Optional[str]]:
    verification = _enum(row.get("verification_status"), VERIFICATION_STATUSES, "verification_status", "pending")
    reason = _optional_str(row.get("rejection_reason"))
    # A rejection reason is only meaningful for rejected listings.
    if verification != VERIFICATION_REJECTED:
        reason = None
    return verification, reason


def opportunity_from_row(row: Mapping[str, Any]) -> Opportunity:
    verification, reason = _verification(row)
    return Opportunity(
        id=str(_required(row, "id")),
        creator_id=str(_required(row, "creator_id")),
        title=str(_required(row, "title")),
        description=str(row.get("description") or ""),
        location=str(row.get("location") or ""),
        price_range=price_range_from_json(row.get("price_range")),
        media_urls=media_from_json(row.get("media_urls")),
        category_id=_optional_str(row.get("category_id")),
        status=_enum(row.get("status"), LISTING_STATUSES, "status", "active"),
        verification_status=verification,
        rejection_reason=reason,
        ad_type=_optional_str(row.get("ad_type")),
        reach=_int(row.get("reach"), "reach"),
        calendly_link=_optional_str(row.get("calendly_link")),
        brochure_url=_optional_str(row.get("sponsorship_brochure_url")),
        created_at=parse_timestamp(row.get("created_at")),
    )


def post_from_row(row: Mapping[str, Any]) -> Post:
    verification, reason = _verification(row)
    return Post(
        id=str(_required(row, "id")),
        creator_id=str(_required(row, "creator_id")),
        title=str(_required(row, "title")),
        description=str(row.get("description") or ""),
        location=str(row.get("location") or ""),
        price_range=price_range_from_json(row.get("price_range")),
        media_urls=media_from_json(row.get("media_urls")),
        hashtags=str(row.get("hashtags") or ""),
        reach=_int(row.get("reach"), "reach") or 0,
        category_id=_optional_str(row.get("category_id")),
        status=_enum(row.get("status"), LISTING_STATUSES, "status", "active"),
        verification_status=verification,
        rejection_reason=reason,
        created_at=parse_timestamp(row.get("created_at")),
    )


def listing_from_row(kind: str, row: Mapping[str, Any]) -> Listing:
    if kind == KIND_OPPORTUNITY:
        return opportunity_from_row(row)
    if kind == KIND_POST:
        return post_from_row(row)
    raise ValidationFailure(f"Unsupported listing kind: {kind}", field="kind")


def match_from_row(row: Mapping[str, Any]) -> Match:
    """Build a Match, including joined listing and brand rows when present."""

    opportunity_id = _optional_str(row.get("opportunity_id"))
    post_id = _optional_str(row.get("post_id"))
    if bool(opportunity_id) == bool(post_id):
        raise ValidationFailure("exactly one of opportunity_id/post_id is required", field="opportunity_id")

    listing: Optional[Listing] = None
    if isinstance(row.get("opportunities"), Mapping):
        listing = opportunity_from_row(row["opportunities"])
    elif isinstance(row.get("posts"), Mapping):
        listing = post_from_row(row["posts"])

    brand: Optional[Profile] = None
    if isinstance(row.get("profiles"), Mapping):
        brand = profile_from_row(row["profiles"])

    return Match(
        id=str(_required(row, "id")),
        brand_id=str(_required(row, "brand_id")),
        status=_enum(row.get("status"), MATCH_STATUSES, "status", "pending"),
        opportunity_id=opportunity_id,
        post_id=post_id,
        created_at=parse_timestamp(row.get("created_at")),
        meeting_scheduled_at=parse_timestamp(row.get("meeting_scheduled_at"), "meeting_scheduled_at"),
        meeting_link=_optional_str(row.get("meeting_link")),
        notes=_optional_str(row.get("notes")),
        listing=listing,
        brand=brand,
    )


def _draft_price(draft: ListingDraft) -> dict[str, Any]:
    # An unpriced listing is stored as 0-0; a single given bound stays open.
    if draft.price_min is None and draft.price_max is None:
        return {"min": 0, "max": 0}
    return {"min": draft.price_min, "max": draft.price_max}


def draft_to_row(kind: str, draft: ListingDraft) -> dict[str, Any]:
    """Return the column values written for a listing draft."""

    row: dict[str, Any] = {
        "title": draft.title.strip(),
        "description": draft.description.strip(),
        "location": draft.location.strip(),
        "category_id": draft.category_id,
        "price_range": _draft_price(draft),
        "media_urls": list(draft.media_urls),
        "reach": draft.reach if draft.reach is not None else 0,
    }
    if kind == KIND_OPPORTUNITY:
        row["ad_type"] = draft.ad_type
        row["calendly_link"] = draft.calendly_link
    else:
        row["hashtags"] = draft.hashtags.strip()
    return row


def meeting_to_row(meeting: Optional[MeetingDetails]) -> dict[str, Any]:
    if meeting is None:
        return {}
    return {
        "meeting_scheduled_at": meeting.scheduled_at.isoformat() if meeting.scheduled_at else None,
        "meeting_link": meeting.link,
        "notes": meeting.notes,
    }
