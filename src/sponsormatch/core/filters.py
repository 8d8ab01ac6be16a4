"""Filter predicates for opportunities, posts and match lists (core domain)."""

from __future__ import annotations

from dataclasses import dataclass
import math
from typing import Iterable, List, Optional, Sequence, Tuple, TypeVar

from sponsormatch.core.models import (
    MATCH_ACCEPTED,
    MATCH_PENDING,
    MATCH_STATUSES,
    Listing,
    Match,
)

T = TypeVar("T")

# Select options offered by the brand dashboard, as (value, label).
AD_TYPE_OPTIONS: Tuple[Tuple[str, str], ...] = (
    ("digital", "Digital Displays"),
    ("static", "Static Displays"),
    ("video", "Video Ads"),
    ("interactive", "Interactive Displays"),
)

PRICE_RANGE_OPTIONS: Tuple[Tuple[str, str], ...] = (
    ("0-10000", "Under ₹10,000"),
    ("10000-50000", "₹10,000 - ₹50,000"),
    ("50000-100000", "₹50,000 - ₹1,00,000"),
    ("100000-500000", "₹1,00,000 - ₹5,00,000"),
    ("500000-1000000", "₹5,00,000 - ₹10,00,000"),
    ("1000000-", "Above ₹10,00,000"),
)

MATCH_FILTER_ALL = "all"


@dataclass(frozen=True)
class FilterCriteria:
    """Current filter selection; an empty string means the criterion is off."""

    category: str = ""
    ad_type: str = ""
    price_range: str = ""
    location: str = ""
    free_text: str = ""

    @property
    def is_empty(self) -> bool:
        return not any(
            value.strip()
            for value in (self.category, self.ad_type, self.price_range, self.location, self.free_text)
        )


def reset_criteria() -> FilterCriteria:
    """Return criteria with every filter cleared."""

    return FilterCriteria()


def parse_price_range(raw: str) -> Optional[Tuple[float, float]]:
    """Parse "min-max" or "min-" into numeric bounds.

    Returns None for empty or malformed input, which callers treat as
    "no constraint". An omitted max is unbounded above.
    """

    raw = (raw or "").strip()
    if not raw:
        return None
    low_text, sep, high_text = raw.partition("-")
    if not sep:
        return None
    try:
        low = float(low_text.strip())
        high = float(high_text.strip()) if high_text.strip() else math.inf
    except ValueError:
        return None
    if math.isnan(low) or math.isnan(high) or low < 0 or high < low:
        return None
    return low, high


def _contains(haystack: Optional[str], needle: str) -> bool:
    return bool(haystack) and needle in haystack.lower()


def _matches_price(record: Listing, bounds: Tuple[float, float]) -> bool:
    price = record.price_range
    if price is None or not price.is_complete:
        return False
    low, high = bounds
    return low <= price.min and price.max <= high


def _search_fields(record: Listing) -> List[Optional[str]]:
    fields = [record.title, record.description]
    hashtags = getattr(record, "hashtags", None)
    if hashtags is not None:
        fields.append(hashtags)
    return fields


def matches_criteria(record: Listing, criteria: FilterCriteria) -> bool:
    """Return True when the record satisfies every active criterion.

    Matching logic:
    - category is an exact id comparison.
    - ad type only applies to records that carry one (posts do not).
    - price requires both record bounds inside the filter band, inclusive.
    - location and free text are case-insensitive substring checks; free text
      succeeds if any of title, description or hashtags contains it.
    """

    category = criteria.category.strip()
    if category and record.category_id != category:
        return False

    ad_type = criteria.ad_type.strip().lower()
    if ad_type and hasattr(record, "ad_type"):
        if (record.ad_type or "").lower() != ad_type:
            return False

    bounds = parse_price_range(criteria.price_range)
    if bounds is not None and not _matches_price(record, bounds):
        return False

    location = criteria.location.strip().lower()
    if location and not _contains(record.location, location):
        return False

    free_text = criteria.free_text.strip().lower()
    if free_text and not any(_contains(value, free_text) for value in _search_fields(record)):
        return False

    return True


def apply_filters(records: Iterable[T], criteria: FilterCriteria) -> List[T]:
    """Return the records matching all active criteria, preserving order."""

    if criteria.is_empty:
        return list(records)
    return [record for record in records if matches_criteria(record, criteria)]


def exclude_engaged(
    records: Iterable[T],
    matches: Iterable[Match],
    skipped: Iterable[Tuple[str, str]] = (),
) -> List[T]:
    """Drop listings the brand already pursued or skipped this session.

    Listings are keyed by (kind, id). Pending and accepted matches hide a
    listing; rejected ones do not, so a declined brand may see the listing
    again on a later visit.
    """

    engaged = {
        (match.listing_kind, match.listing_id)
        for match in matches
        if match.status in (MATCH_PENDING, MATCH_ACCEPTED)
    }
    engaged.update(skipped)
    return [record for record in records if (record.kind, record.id) not in engaged]


def filter_matches(matches: Sequence[Match], status: str = MATCH_FILTER_ALL, query: str = "") -> List[Match]:
    """Filter a match list by status tab and a free-text query.

    The query is matched against the brand's company name and industry and
    the listing title.
    """

    if status != MATCH_FILTER_ALL and status not in MATCH_STATUSES:
        raise ValueError(f"Unsupported match filter: {status}")

    needle = query.strip().lower()
    selected: List[Match] = []
    for match in matches:
        if status != MATCH_FILTER_ALL and match.status != status:
            continue
        if needle:
            brand = match.brand
            listing = match.listing
            haystacks = [
                brand.company_name if brand else None,
                brand.industry if brand else None,
                listing.title if listing else None,
            ]
            if not any(_contains(value, needle) for value in haystacks):
                continue
        selected.append(match)
    return selected
