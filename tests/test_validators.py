from __future__ import annotations

from datetime import datetime, timedelta, timezone

from sponsormatch.core.models import KIND_OPPORTUNITY, KIND_POST
from sponsormatch.frontend.validators import parse_listing_form, parse_meeting_form

IST = timezone(timedelta(hours=5, minutes=30))


def _values(**overrides: str) -> dict[str, str]:
    values = {
        "title": " Derby boards ",
        "description": "Perimeter boards",
        "location": "Mumbai",
        "category_id": "cat-sports",
        "price_min": "20,000",
        "price_max": "40000",
        "ad_type": "Digital",
        "media_urls": "https://cdn.example.com/a.png, https://cdn.example.com/b.png",
        "reach": "",
    }
    values.update(overrides)
    return values


def test_listing_form_builds_draft() -> None:
    info = parse_listing_form(_values(media_file="~/banner.png"), KIND_OPPORTUNITY)

    assert info.error is None
    assert info.draft is not None
    assert info.draft.title == "Derby boards"
    assert info.draft.price_min == 20000
    assert info.draft.ad_type == "digital"
    assert info.draft.media_urls == ("https://cdn.example.com/a.png", "https://cdn.example.com/b.png")
    assert info.media_file == "~/banner.png"


def test_listing_form_reports_field_errors() -> None:
    assert parse_listing_form(_values(price_min="cheap"), KIND_OPPORTUNITY).error == "price_min: must be a number"
    assert parse_listing_form(_values(ad_type="blimp"), KIND_OPPORTUNITY).error == "ad_type: unknown ad type"
    assert parse_listing_form(_values(title=""), KIND_OPPORTUNITY).error == "title: is required"
    assert parse_listing_form(_values(reach="1.5"), KIND_OPPORTUNITY).error == "reach: must be a whole number"


def test_post_form_drops_ad_type_and_keeps_hashtags() -> None:
    info = parse_listing_form(_values(hashtags="#travel", reach="12,000"), KIND_POST)

    assert info.draft is not None
    assert info.draft.ad_type is None
    assert info.draft.hashtags == "#travel"
    assert info.draft.reach == 12000


def test_meeting_form_reads_time_in_given_zone() -> None:
    info = parse_meeting_form("2024-06-01", "15:00", "https://meet.example.com/x", " bring deck ", tz=IST)

    assert info.error is None
    assert info.meeting is not None
    assert info.meeting.scheduled_at == datetime(2024, 6, 1, 9, 30, tzinfo=timezone.utc)
    assert info.meeting.notes == "bring deck"


def test_meeting_form_everything_optional() -> None:
    info = parse_meeting_form("", "", "", "")

    assert info.meeting is not None and info.meeting.is_empty


def test_meeting_form_errors() -> None:
    assert parse_meeting_form("2024-06-01", "", "", "").error == "date and time are required together"
    assert parse_meeting_form("01/06/2024", "15:00", "", "").error == "use YYYY-MM-DD and HH:MM"
    assert parse_meeting_form("", "", "meet.example.com", "").error is not None
