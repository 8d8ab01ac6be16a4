"""Shared constants for the Textual UI."""

from __future__ import annotations

BRAND_ORANGE = "#F97316"

STATUS_STYLES = {
    "pending": "yellow",
    "accepted": "green",
    "rejected": "red",
    "completed": "blue",
}

VERIFICATION_STYLES = {
    "pending": "yellow",
    "approved": "green",
    "rejected": "red",
}

MATCH_FILTER_OPTIONS = (
    ("All", "all"),
    ("Pending", "pending"),
    ("Accepted", "accepted"),
    ("Rejected", "rejected"),
)
