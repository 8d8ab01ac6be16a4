"""Listing management for creators and influencers (core domain)."""

from __future__ import annotations

import logging
import re
import time
from typing import List, Optional

from sponsormatch.core.config import RetryConfig
from sponsormatch.core.errors import InvalidTransition, ValidationFailure, call_store
from sponsormatch.core.meetings import is_http_url
from sponsormatch.core.models import (
    KIND_OPPORTUNITY,
    KIND_POST,
    LISTING_ACTIVE,
    LISTING_KINDS,
    LISTING_PAUSED,
    VERIFICATION_APPROVED,
    Listing,
    ListingDraft,
)
from sponsormatch.core.ports import StorePort

LOGGER = logging.getLogger(__name__)

MEDIA_FOLDERS = {KIND_OPPORTUNITY: "opportunities", KIND_POST: "posts"}
_UNSAFE_NAME_CHARS = re.compile(r"[^a-zA-Z0-9._-]")


def validate_draft(draft: ListingDraft, kind: str) -> ListingDraft:
    """Reject malformed form input before it is sent to the store."""

    if kind not in LISTING_KINDS:
        raise ValidationFailure(f"Unsupported listing kind: {kind}", field="kind")
    for name in ("title", "description", "location", "category_id"):
        if not (getattr(draft, name) or "").strip():
            raise ValidationFailure("is required", field=name)

    for name in ("price_min", "price_max"):
        value = getattr(draft, name)
        if value is not None and value < 0:
            raise ValidationFailure("must not be negative", field=name)
    if draft.price_min is not None and draft.price_max is not None and draft.price_min > draft.price_max:
        raise ValidationFailure("minimum must not exceed maximum", field="price_max")

    if draft.reach is not None and draft.reach < 0:
        raise ValidationFailure("must not be negative", field="reach")
    if kind == KIND_OPPORTUNITY and draft.hashtags.strip():
        raise ValidationFailure("hashtags are only supported on posts", field="hashtags")
    if kind == KIND_POST and draft.ad_type:
        raise ValidationFailure("ad type is only supported on opportunities", field="ad_type")
    if draft.calendly_link and not is_http_url(draft.calendly_link):
        raise ValidationFailure("must be an http(s) URL", field="calendly_link")
    for url in draft.media_urls:
        if not url.strip():
            raise ValidationFailure("media URLs must not be blank", field="media_urls")
    return draft


def media_path(kind: str, owner_id: str, filename: str, timestamp_ms: Optional[int] = None) -> str:
    """Return the object path for an uploaded media file."""

    stamp = timestamp_ms if timestamp_ms is not None else int(time.time() * 1000)
    safe_name = _UNSAFE_NAME_CHARS.sub("_", filename)
    return f"{MEDIA_FOLDERS[kind]}/{owner_id}/{stamp}_{safe_name}"


class ListingService:
    """Create, edit, pause and delete the current account's listings."""

    def __init__(self, store: StorePort, owner_id: str, retry: Optional[RetryConfig] = None) -> None:
        self._store = store
        self._owner_id = owner_id
        self._retries = (retry or RetryConfig()).transient_retries

    def _call(self, func, *args, **kwargs):
        return call_store(func, *args, retries=self._retries, **kwargs)

    def list_own(self, kind: str) -> List[Listing]:
        return self._call(self._store.list_owner_listings, kind, self._owner_id)

    def save(self, kind: str, draft: ListingDraft, listing_id: Optional[str] = None) -> Listing:
        """Create or edit a listing; every save goes back to moderation."""

        validate_draft(draft, kind)
        listing = self._call(self._store.save_listing, kind, self._owner_id, draft, listing_id)
        LOGGER.info("%s %s %s", kind, listing.id, "updated" if listing_id else "created")
        return listing

    def toggle_status(self, kind: str, listing: Listing) -> Listing:
        """Flip an approved listing between active and paused."""

        if listing.verification_status != VERIFICATION_APPROVED:
            raise InvalidTransition(
                "Only approved listings can be paused or activated",
                current_status=listing.status,
            )
        if listing.status == LISTING_ACTIVE:
            target = LISTING_PAUSED
        elif listing.status == LISTING_PAUSED:
            target = LISTING_ACTIVE
        else:
            raise InvalidTransition(f"Listing is {listing.status}", current_status=listing.status)
        updated = self._call(self._store.set_listing_status, kind, listing.id, target)
        LOGGER.info("%s %s is now %s", kind, listing.id, target)
        return updated

    def delete(self, kind: str, listing_id: str) -> None:
        self._call(self._store.delete_listing, kind, listing_id)
        LOGGER.info("%s %s deleted", kind, listing_id)

    def upload_media(self, kind: str, filename: str, data: bytes, content_type: str) -> str:
        """Upload a media file and return its public URL."""

        if kind not in LISTING_KINDS:
            raise ValidationFailure(f"Unsupported listing kind: {kind}", field="kind")
        if not data:
            raise ValidationFailure("file is empty", field="media")
        path = media_path(kind, self._owner_id, filename)
        return self._call(self._store.upload_media, path, data, content_type)
