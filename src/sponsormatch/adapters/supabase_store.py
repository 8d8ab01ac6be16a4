"""Supabase store adapter.

Implements the core StorePort against the hosted PostgREST tables and the
"media" storage bucket. Row-level security stays on the server; this
adapter only maps rows and translates errors into the core taxonomy.
"""

from __future__ import annotations

from contextlib import contextmanager
import logging
from datetime import datetime, timezone
from typing import Iterator, List, Optional

import httpx
from postgrest.exceptions import APIError
from storage3.utils import StorageException
from supabase import Client

from sponsormatch.adapters.records import (
    LISTING_COLUMNS,
    TABLES,
    category_from_row,
    draft_to_row,
    listing_from_row,
    match_from_row,
    meeting_to_row,
    profile_from_row,
)
from sponsormatch.core.errors import (
    Conflict,
    NotFound,
    PermissionDenied,
    SponsorMatchError,
    StoreError,
    TransientNetwork,
    ValidationFailure,
)
from sponsormatch.core.models import (
    LISTING_ACTIVE,
    LISTING_KINDS,
    MATCH_PENDING,
    VERIFICATION_PENDING,
    Category,
    Listing,
    ListingDraft,
    Match,
    MeetingDetails,
    Profile,
)

LOGGER = logging.getLogger(__name__)

MATCH_SELECT = "*, opportunities:opportunity_id(*), posts:post_id(*), profiles:brand_id(*)"

# PostgreSQL / PostgREST error codes mapped onto the core taxonomy.
_CONFLICT_CODES = {"23505"}
_PERMISSION_CODES = {"42501", "PGRST301", "PGRST302"}
_NOT_FOUND_CODES = {"PGRST116", "PGRST205"}
_VALIDATION_CODES = {"22P02", "23502", "23503", "23514", "PGRST204"}
_HTTP_KINDS = {401: PermissionDenied, 403: PermissionDenied, 404: NotFound, 409: Conflict}


def translate_error(exc: Exception) -> SponsorMatchError:
    """Map a client exception onto one of the core error kinds."""

    if isinstance(exc, APIError):
        code = str(exc.code or "")
        message = exc.message or str(exc)
        if code in _CONFLICT_CODES:
            return Conflict(message)
        if code in _PERMISSION_CODES:
            return PermissionDenied(message)
        if code in _NOT_FOUND_CODES:
            return NotFound(message)
        if code in _VALIDATION_CODES:
            return ValidationFailure(message)
        return StoreError(f"{code}: {message}" if code else message)
    if isinstance(exc, (httpx.TransportError, httpx.TimeoutException)):
        return TransientNetwork(str(exc) or exc.__class__.__name__)
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        if status >= 500:
            return TransientNetwork(f"HTTP {status}")
        return _HTTP_KINDS.get(status, StoreError)(f"HTTP {status}")
    if isinstance(exc, StorageException):
        payload = exc.args[0] if exc.args else {}
        status = 0
        if isinstance(payload, dict):
            try:
                status = int(payload.get("statusCode") or payload.get("status") or 0)
            except (TypeError, ValueError):
                status = 0
        if status >= 500:
            return TransientNetwork(str(exc))
        return _HTTP_KINDS.get(status, StoreError)(str(exc))
    return StoreError(str(exc))


@contextmanager
def _translating() -> Iterator[None]:
    try:
        yield
    except (APIError, httpx.HTTPError, StorageException) as exc:
        raise translate_error(exc) from exc


def _table(kind: str) -> str:
    if kind not in LISTING_KINDS:
        raise ValidationFailure(f"Unsupported listing kind: {kind}", field="kind")
    return TABLES[kind]


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _created_key(match: Match) -> datetime:
    return match.created_at or datetime.min.replace(tzinfo=timezone.utc)


class SupabaseStore:
    """StorePort implementation on top of a supabase-py Client."""

    def __init__(self, client: Client, media_bucket: str = "media") -> None:
        self._client = client
        self._bucket = media_bucket

    def _first(self, table: str, column: str, value: str, select: str = "*") -> Optional[dict]:
        with _translating():
            response = self._client.table(table).select(select).eq(column, value).limit(1).execute()
        return response.data[0] if response.data else None

    def list_categories(self) -> List[Category]:
        with _translating():
            response = self._client.table("categories").select("*").order("name").execute()
        return [category_from_row(row) for row in response.data or []]

    def list_listings(self, kind: str, status: str, verification_status: str) -> List[Listing]:
        with _translating():
            response = (
                self._client.table(_table(kind))
                .select("*")
                .eq("status", status)
                .eq("verification_status", verification_status)
                .order("created_at", desc=True)
                .execute()
            )
        return [listing_from_row(kind, row) for row in response.data or []]

    def list_owner_listings(self, kind: str, owner_id: str) -> List[Listing]:
        with _translating():
            response = (
                self._client.table(_table(kind))
                .select("*")
                .eq("creator_id", owner_id)
                .order("created_at", desc=True)
                .execute()
            )
        return [listing_from_row(kind, row) for row in response.data or []]

    def get_listing(self, kind: str, listing_id: str) -> Listing:
        row = self._first(_table(kind), "id", listing_id)
        if row is None:
            raise NotFound(f"{kind} {listing_id} not found")
        return listing_from_row(kind, row)

    def get_profile(self, account_id: str) -> Profile:
        row = self._first("profiles", "id", account_id)
        if row is None:
            raise NotFound(f"profile {account_id} not found")
        return profile_from_row(row)

    def list_brand_matches(self, brand_id: str) -> List[Match]:
        with _translating():
            response = (
                self._client.table("matches")
                .select(MATCH_SELECT)
                .eq("brand_id", brand_id)
                .order("created_at", desc=True)
                .execute()
            )
        return [match_from_row(row) for row in response.data or []]

    def list_creator_matches(self, creator_id: str) -> List[Match]:
        """Matches on any listing the creator owns, most recent first."""

        matches: List[Match] = []
        for kind in LISTING_KINDS:
            table = TABLES[kind]
            select = f"*, {table}:{LISTING_COLUMNS[kind]}!inner(*), profiles:brand_id(*)"
            with _translating():
                response = (
                    self._client.table("matches")
                    .select(select)
                    .eq(f"{table}.creator_id", creator_id)
                    .order("created_at", desc=True)
                    .execute()
                )
            matches.extend(match_from_row(row) for row in response.data or [])
        return sorted(matches, key=_created_key, reverse=True)

    def get_match(self, match_id: str) -> Match:
        row = self._first("matches", "id", match_id, select=MATCH_SELECT)
        if row is None:
            raise NotFound(f"match {match_id} not found")
        return match_from_row(row)

    def insert_match(self, brand_id: str, listing_id: str, kind: str) -> Match:
        if kind not in LISTING_KINDS:
            raise ValidationFailure(f"Unsupported listing kind: {kind}", field="kind")
        payload = {LISTING_COLUMNS[kind]: listing_id, "brand_id": brand_id, "status": MATCH_PENDING}
        with _translating():
            response = self._client.table("matches").insert(payload).execute()
        if not response.data:
            raise StoreError("insert returned no row")
        return self.get_match(str(response.data[0]["id"]))

    def update_match_status(
        self,
        match_id: str,
        expected_status: str,
        status: str,
        meeting: Optional[MeetingDetails] = None,
    ) -> Match:
        """Conditional update: only rows still in expected_status change."""

        values = {"status": status, "updated_at": _now(), **meeting_to_row(meeting)}
        with _translating():
            response = (
                self._client.table("matches")
                .update(values)
                .eq("id", match_id)
                .eq("status", expected_status)
                .execute()
            )
        if not response.data:
            # Nothing updated: either the row is gone or another actor won the race.
            current = self._first("matches", "id", match_id, select="id, status")
            if current is None:
                raise NotFound(f"match {match_id} not found")
            raise Conflict(f"match {match_id} is {current['status']}, expected {expected_status}")
        return self.get_match(match_id)

    def save_listing(
        self,
        kind: str,
        owner_id: str,
        draft: ListingDraft,
        listing_id: Optional[str] = None,
    ) -> Listing:
        table = _table(kind)
        values = draft_to_row(kind, draft)
        values.update(verification_status=VERIFICATION_PENDING, rejection_reason=None, updated_at=_now())
        with _translating():
            if listing_id is None:
                values.update(creator_id=owner_id, status=LISTING_ACTIVE)
                response = self._client.table(table).insert(values).execute()
            else:
                response = (
                    self._client.table(table)
                    .update(values)
                    .eq("id", listing_id)
                    .eq("creator_id", owner_id)
                    .execute()
                )
        if not response.data:
            raise NotFound(f"{kind} {listing_id} not found")
        return listing_from_row(kind, response.data[0])

    def set_listing_status(self, kind: str, listing_id: str, status: str) -> Listing:
        with _translating():
            response = (
                self._client.table(_table(kind))
                .update({"status": status, "updated_at": _now()})
                .eq("id", listing_id)
                .execute()
            )
        if not response.data:
            raise NotFound(f"{kind} {listing_id} not found")
        return listing_from_row(kind, response.data[0])

    def delete_listing(self, kind: str, listing_id: str) -> None:
        with _translating():
            response = self._client.table(_table(kind)).delete().eq("id", listing_id).execute()
        if not response.data:
            raise NotFound(f"{kind} {listing_id} not found")

    def upload_media(self, path: str, data: bytes, content_type: str) -> str:
        bucket = self._client.storage.from_(self._bucket)
        with _translating():
            bucket.upload(
                path,
                data,
                {"content-type": content_type, "cache-control": "3600", "upsert": "false"},
            )
            url = bucket.get_public_url(path)
        if not url:
            raise StoreError(f"no public URL for {path}")
        LOGGER.info("Uploaded media to %s", path)
        return url
