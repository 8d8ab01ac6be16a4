"""Core domain models.

These dataclasses mirror the marketplace tables and are shared across the
core and adapters to avoid tight coupling to any store-specific row types.
Adapters are responsible for validating raw rows before building them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Tuple, Union

KIND_OPPORTUNITY = "opportunity"
KIND_POST = "post"
LISTING_KINDS = (KIND_OPPORTUNITY, KIND_POST)

LISTING_ACTIVE = "active"
LISTING_PAUSED = "paused"
LISTING_COMPLETED = "completed"
LISTING_STATUSES = (LISTING_ACTIVE, LISTING_PAUSED, LISTING_COMPLETED)

VERIFICATION_PENDING = "pending"
VERIFICATION_APPROVED = "approved"
VERIFICATION_REJECTED = "rejected"
VERIFICATION_STATUSES = (VERIFICATION_PENDING, VERIFICATION_APPROVED, VERIFICATION_REJECTED)

MATCH_PENDING = "pending"
MATCH_ACCEPTED = "accepted"
MATCH_REJECTED = "rejected"
# Reserved for the external store; nothing in this package transitions into it.
MATCH_COMPLETED = "completed"
MATCH_STATUSES = (MATCH_PENDING, MATCH_ACCEPTED, MATCH_REJECTED, MATCH_COMPLETED)
MATCH_DECISIONS = (MATCH_ACCEPTED, MATCH_REJECTED)

ROLE_BRAND = "brand"
ROLE_CREATOR = "creator"
ROLE_INFLUENCER = "influencer"
ROLES = (ROLE_BRAND, ROLE_CREATOR, ROLE_INFLUENCER)


@dataclass(frozen=True)
class PriceRange:
    """Budget band of a listing; either bound may be missing."""

    min: Optional[float] = None
    max: Optional[float] = None

    @property
    def is_complete(self) -> bool:
        return self.min is not None and self.max is not None


@dataclass(frozen=True)
class Category:
    id: str
    name: str
    description: Optional[str] = None


@dataclass(frozen=True)
class Profile:
    """Account metadata joined onto matches for display."""

    id: str
    user_type: str = ROLE_BRAND
    company_name: Optional[str] = None
    industry: Optional[str] = None
    contact_person_name: Optional[str] = None
    contact_person_phone: Optional[str] = None
    email: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.company_name or self.contact_person_name or self.email or self.id


@dataclass(frozen=True)
class Opportunity:
    """A sponsorship slot offered by a creator or event organizer."""

    id: str
    creator_id: str
    title: str
    description: str = ""
    location: str = ""
    price_range: Optional[PriceRange] = None
    media_urls: Tuple[str, ...] = ()
    category_id: Optional[str] = None
    status: str = LISTING_ACTIVE
    verification_status: str = VERIFICATION_PENDING
    rejection_reason: Optional[str] = None
    ad_type: Optional[str] = None
    reach: Optional[int] = None
    calendly_link: Optional[str] = None
    brochure_url: Optional[str] = None
    created_at: Optional[datetime] = None

    kind = KIND_OPPORTUNITY


@dataclass(frozen=True)
class Post:
    """An influencer-authored offering, analogous to an Opportunity."""

    id: str
    creator_id: str
    title: str
    description: str = ""
    location: str = ""
    price_range: Optional[PriceRange] = None
    media_urls: Tuple[str, ...] = ()
    hashtags: str = ""
    reach: int = 0
    category_id: Optional[str] = None
    status: str = LISTING_ACTIVE
    verification_status: str = VERIFICATION_PENDING
    rejection_reason: Optional[str] = None
    created_at: Optional[datetime] = None

    kind = KIND_POST


Listing = Union[Opportunity, Post]


@dataclass(frozen=True)
class MeetingDetails:
    """Meeting fields attached to a match when it is accepted."""

    scheduled_at: Optional[datetime] = None
    link: Optional[str] = None
    notes: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return self.scheduled_at is None and not self.link and not self.notes


@dataclass(frozen=True)
class Match:
    """A brand's expression of interest in an opportunity or post."""

    id: str
    brand_id: str
    status: str = MATCH_PENDING
    opportunity_id: Optional[str] = None
    post_id: Optional[str] = None
    created_at: Optional[datetime] = None
    meeting_scheduled_at: Optional[datetime] = None
    meeting_link: Optional[str] = None
    notes: Optional[str] = None
    # Joined records, populated by the store for display only.
    listing: Optional[Listing] = field(default=None, compare=False)
    brand: Optional[Profile] = field(default=None, compare=False)

    @property
    def listing_id(self) -> str:
        return self.opportunity_id or self.post_id or ""

    @property
    def listing_kind(self) -> str:
        return KIND_POST if self.post_id else KIND_OPPORTUNITY

    @property
    def is_decided(self) -> bool:
        return self.status != MATCH_PENDING


@dataclass(frozen=True)
class ListingDraft:
    """Form payload for creating or editing a listing."""

    title: str
    description: str
    location: str
    category_id: str
    price_min: Optional[float] = None
    price_max: Optional[float] = None
    media_urls: Tuple[str, ...] = ()
    hashtags: str = ""
    reach: Optional[int] = None
    ad_type: Optional[str] = None
    calendly_link: Optional[str] = None
