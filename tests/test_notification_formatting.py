from __future__ import annotations

from datetime import datetime, timezone

import pytest

from fakes import make_opportunity, make_post
from sponsormatch.adapters.notification_formatting import (
    format_decision_notification,
    format_interest_notification,
    format_listing_label,
)
from sponsormatch.core.models import Match, Profile


def _match(**overrides) -> Match:
    values = {"id": "m1", "brand_id": "brand-1", "opportunity_id": "opp-1", "status": "pending"}
    values.update(overrides)
    return Match(**values)


def test_format_listing_label_with_location() -> None:
    assert format_listing_label(make_opportunity(title="Derby boards", location="Mumbai")) == "Derby boards (Mumbai)"
    assert format_listing_label(make_post(title="Reel", location="")) == "Reel"
    assert format_listing_label(None) == "(listing unavailable)"


def test_interest_markdown_escapes_user_text() -> None:
    brand = Profile(id="brand-1", company_name="Acme *Foods*", industry="Food", email="deals@acme.test")

    text = format_interest_notification(_match(), make_opportunity(title="Boards [north]"), brand, "markdown")

    assert text.startswith("**New sponsorship interest**")
    assert "**Brand:** Acme \\*Foods\\*" in text
    assert "Boards \\[north]" in text
    assert "**Contact:** deals@acme.test" in text


def test_interest_without_profile_falls_back_to_brand_id() -> None:
    text = format_interest_notification(_match(), make_opportunity(), None, "markdown")

    assert "**Brand:** brand-1" in text
    assert "Industry" not in text


def test_accepted_decision_html_links_meeting_and_calendar() -> None:
    match = _match(
        status="accepted",
        meeting_scheduled_at=datetime(2024, 6, 1, 9, 30, tzinfo=timezone.utc),
        meeting_link="https://meet.example.com/abc",
    )
    listing = make_opportunity(title="Derby <boards>", calendly_link="https://calendly.com/stadium")

    text = format_decision_notification(match, listing, "html")

    assert text.startswith("<b>Your match was accepted</b>")
    assert "Derby &lt;boards&gt;" in text
    assert '<a href="https://meet.example.com/abc">' in text
    assert '<a href="https://calendly.com/stadium">' in text
    assert "<b>Calendar:</b> <a href=\"https://calendar.google.com/calendar/render?" in text
    assert "<b>Meeting:</b>" in text


def test_rejected_decision_has_no_meeting_fields() -> None:
    text = format_decision_notification(_match(status="rejected"), make_opportunity(), "markdown")

    assert text.startswith("**Your match was declined**")
    assert "Calendar" not in text
    assert "Meeting" not in text


def test_unknown_mode_is_rejected() -> None:
    with pytest.raises(ValueError):
        format_interest_notification(_match(), make_opportunity(), None, "plain")
