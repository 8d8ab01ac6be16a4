"""Ports (interfaces) used by the core controllers.

Ports define the minimal contracts for store and notification adapters so
that the core can run against the hosted backend, a local SQLite file or an
in-memory fake without changes.
"""

from __future__ import annotations

from typing import List, Optional, Protocol

from sponsormatch.core.models import (
    Category,
    Listing,
    ListingDraft,
    Match,
    MeetingDetails,
    Profile,
)


class StorePort(Protocol):
    """Store operations required by the core.

    Implementations raise the kinds from core.errors (NotFound,
    PermissionDenied, Conflict, ValidationFailure, TransientNetwork).
    """

    def list_categories(self) -> List[Category]:
        ...

    def list_listings(self, kind: str, status: str, verification_status: str) -> List[Listing]:
        ...

    def list_owner_listings(self, kind: str, owner_id: str) -> List[Listing]:
        ...

    def get_listing(self, kind: str, listing_id: str) -> Listing:
        ...

    def get_profile(self, account_id: str) -> Profile:
        ...

    def list_brand_matches(self, brand_id: str) -> List[Match]:
        ...

    def list_creator_matches(self, creator_id: str) -> List[Match]:
        ...

    def get_match(self, match_id: str) -> Match:
        ...

    def insert_match(self, brand_id: str, listing_id: str, kind: str) -> Match:
        """Insert a pending match; raise Conflict if the pair already exists."""
        ...

    def update_match_status(
        self,
        match_id: str,
        expected_status: str,
        status: str,
        meeting: Optional[MeetingDetails] = None,
    ) -> Match:
        """Conditionally update a match; raise Conflict if the status moved on."""
        ...

    def save_listing(
        self,
        kind: str,
        owner_id: str,
        draft: ListingDraft,
        listing_id: Optional[str] = None,
    ) -> Listing:
        ...

    def set_listing_status(self, kind: str, listing_id: str, status: str) -> Listing:
        ...

    def delete_listing(self, kind: str, listing_id: str) -> None:
        ...

    def upload_media(self, path: str, data: bytes, content_type: str) -> str:
        ...


class NotifierPort(Protocol):
    """Notification operations required by the match controller."""

    async def send_interest(self, match: Match, listing: Listing, brand: Optional[Profile]) -> None:
        ...

    async def send_decision(self, match: Match, listing: Optional[Listing]) -> None:
        ...
