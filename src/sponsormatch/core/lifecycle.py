"""Match lifecycle controller.

This module is store-agnostic. It only relies on ports for persistence and
notifications, so the dashboards can run against the hosted backend, a
local SQLite file, or an in-memory fake in tests.

Status machine: pending -> accepted, pending -> rejected. Decided matches
never return to pending; "completed" belongs to the external store.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field, replace
import logging
from typing import Iterable, List, Optional

from sponsormatch.core.config import RetryConfig
from sponsormatch.core.errors import (
    Conflict,
    InvalidTransition,
    NotFound,
    StoreError,
    ValidationFailure,
    call_store,
)
from sponsormatch.core.meetings import validate_meeting
from sponsormatch.core.models import (
    KIND_OPPORTUNITY,
    LISTING_KINDS,
    MATCH_ACCEPTED,
    MATCH_COMPLETED,
    MATCH_DECISIONS,
    MATCH_PENDING,
    MATCH_REJECTED,
    ROLE_BRAND,
    Match,
    MeetingDetails,
)
from sponsormatch.core.ports import NotifierPort, StorePort

LOGGER = logging.getLogger(__name__)

INTEREST_CREATED = "created"
INTEREST_DUPLICATE = "duplicate"


@dataclass(frozen=True)
class MatchPartition:
    """Matches grouped by status for display; never persisted."""

    pending: List[Match] = field(default_factory=list)
    accepted: List[Match] = field(default_factory=list)
    rejected: List[Match] = field(default_factory=list)
    completed: List[Match] = field(default_factory=list)


@dataclass(frozen=True)
class MatchStats:
    total: int
    pending: int
    accepted: int
    rejected: int


@dataclass(frozen=True)
class InterestOutcome:
    """Result of a brand expressing interest in a listing."""

    status: str
    match: Optional[Match]

    @property
    def created(self) -> bool:
        return self.status == INTEREST_CREATED


def partition(matches: Iterable[Match]) -> MatchPartition:
    """Split matches by status, keeping each group's relative order."""

    groups = MatchPartition()
    buckets = {
        MATCH_PENDING: groups.pending,
        MATCH_ACCEPTED: groups.accepted,
        MATCH_REJECTED: groups.rejected,
        MATCH_COMPLETED: groups.completed,
    }
    for match in matches:
        bucket = buckets.get(match.status)
        if bucket is None:
            LOGGER.warning("Ignoring match %s with unknown status %r", match.id, match.status)
            continue
        bucket.append(match)
    return groups


class MatchController:
    """Owns the local match list and issues status transitions to the store."""

    def __init__(
        self,
        store: StorePort,
        notifier: NotifierPort,
        account_id: str,
        role: str = ROLE_BRAND,
        retry: Optional[RetryConfig] = None,
    ) -> None:
        self._store = store
        self._notifier = notifier
        self._account_id = account_id
        self._role = role
        self._retries = (retry or RetryConfig()).transient_retries
        self._matches: List[Match] = []
        # Keys of requests awaiting a store response; the UI disables their controls.
        self._in_flight: set[str] = set()

    @property
    def matches(self) -> List[Match]:
        return list(self._matches)

    def is_busy(self, key: str) -> bool:
        return key in self._in_flight

    def partition(self) -> MatchPartition:
        return partition(self._matches)

    def stats(self) -> MatchStats:
        groups = self.partition()
        return MatchStats(
            total=len(self._matches),
            pending=len(groups.pending),
            accepted=len(groups.accepted),
            rejected=len(groups.rejected),
        )

    async def _call(self, func, *args, **kwargs):
        # Store adapters block on I/O; run them in a worker thread.
        return await asyncio.to_thread(call_store, func, *args, retries=self._retries, **kwargs)

    async def refresh(self) -> List[Match]:
        """Reload this account's matches from the store, most recent first."""

        if self._role == ROLE_BRAND:
            loaded = await self._call(self._store.list_brand_matches, self._account_id)
        else:
            loaded = await self._call(self._store.list_creator_matches, self._account_id)
        self._matches = list(loaded)
        return self.matches

    def _find(self, match_id: str) -> Optional[Match]:
        for match in self._matches:
            if match.id == match_id:
                return match
        return None

    def _replace(self, updated: Match) -> None:
        for index, match in enumerate(self._matches):
            if match.id == updated.id:
                self._matches[index] = updated
                return
        self._matches.insert(0, updated)

    def _forget(self, match_id: str) -> None:
        self._matches = [match for match in self._matches if match.id != match_id]

    def _existing_interest(self, kind: str, listing_id: str) -> Optional[Match]:
        for match in self._matches:
            if (
                match.listing_kind == kind
                and match.listing_id == listing_id
                and match.status in (MATCH_PENDING, MATCH_ACCEPTED)
            ):
                return match
        return None

    async def request_interest(self, listing_id: str, kind: str = KIND_OPPORTUNITY) -> InterestOutcome:
        """Create a pending match for the current brand and notify the owner.

        A pending or accepted match for the same listing, whether known
        locally or reported by the store's unique key, yields a duplicate
        outcome instead of an error.
        """

        if kind not in LISTING_KINDS:
            raise ValidationFailure(f"Unsupported listing kind: {kind}", field="kind")
        if self._role != ROLE_BRAND:
            raise InvalidTransition("Only brands can express interest")

        existing = self._existing_interest(kind, listing_id)
        if existing is not None:
            LOGGER.info("Duplicate interest in %s %s ignored", kind, listing_id)
            return InterestOutcome(INTEREST_DUPLICATE, existing)

        key = f"{kind}:{listing_id}"
        if key in self._in_flight:
            return InterestOutcome(INTEREST_DUPLICATE, None)

        self._in_flight.add(key)
        try:
            try:
                match = await self._call(self._store.insert_match, self._account_id, listing_id, kind)
            except Conflict:
                LOGGER.info("Store already holds a match for %s %s", kind, listing_id)
                await self.refresh()
                return InterestOutcome(INTEREST_DUPLICATE, self._existing_interest(kind, listing_id))

            self._replace(match)
            LOGGER.info("Interest registered for %s %s (match %s)", kind, listing_id, match.id)

            # The match is committed from here on; lookups below only feed the notification.
            listing = match.listing
            if listing is None:
                try:
                    listing = await self._call(self._store.get_listing, kind, listing_id)
                except StoreError as exc:
                    LOGGER.warning("No interest notification for match %s: %s", match.id, exc)
            if listing is not None:
                await self._notify_interest(match, listing)
            return InterestOutcome(INTEREST_CREATED, match)
        finally:
            self._in_flight.discard(key)

    async def decide(
        self,
        match_id: str,
        outcome: str,
        meeting: Optional[MeetingDetails] = None,
    ) -> Match:
        """Move a pending match to accepted or rejected.

        Deciding a match that is not pending, or that already has a decision
        in flight, raises InvalidTransition and changes nothing. Losing a race
        against another session surfaces the same way after the local copy is
        refreshed from the store.
        """

        if outcome not in MATCH_DECISIONS:
            raise ValidationFailure(f"Unsupported decision: {outcome}", field="status")
        if meeting is not None and not meeting.is_empty:
            if outcome != MATCH_ACCEPTED:
                raise ValidationFailure("Meetings can only be attached to accepted matches", field="meeting")
            validate_meeting(meeting)

        current = self._find(match_id)
        if current is None:
            current = await self._call(self._store.get_match, match_id)
            self._replace(current)
        if current.status != MATCH_PENDING:
            raise InvalidTransition(
                f"Match {match_id} is already {current.status}",
                current_status=current.status,
            )
        if match_id in self._in_flight:
            raise InvalidTransition(f"A decision for match {match_id} is already in progress")

        self._in_flight.add(match_id)
        try:
            try:
                updated = await self._call(
                    self._store.update_match_status,
                    match_id,
                    MATCH_PENDING,
                    outcome,
                    meeting if outcome == MATCH_ACCEPTED else None,
                )
            except Conflict as exc:
                try:
                    fresh = await self._call(self._store.get_match, match_id)
                except NotFound:
                    # Decided elsewhere, then deleted.
                    self._forget(match_id)
                    raise
                self._replace(fresh)
                LOGGER.info("Match %s was already decided elsewhere (%s)", match_id, fresh.status)
                raise InvalidTransition(
                    f"Match {match_id} is already {fresh.status}",
                    current_status=fresh.status,
                ) from exc
            except NotFound:
                self._forget(match_id)
                raise

            if updated.listing is None and current.listing is not None:
                updated = _with_joins(updated, current)
            self._replace(updated)
            LOGGER.info("Match %s %s", match_id, outcome)

            if outcome == MATCH_ACCEPTED:
                await self._notify_decision(updated)
            return updated
        finally:
            self._in_flight.discard(match_id)

    async def _notify_interest(self, match: Match, listing) -> None:
        try:
            brand = await self._call(self._store.get_profile, self._account_id)
        except NotFound:
            brand = None
        except StoreError as exc:
            LOGGER.warning("Brand profile unavailable for match %s: %s", match.id, exc)
            brand = None
        try:
            await self._notifier.send_interest(match, listing, brand)
        except (RuntimeError, OSError):
            # The match is committed; a lost notification must not undo it.
            LOGGER.exception("Failed to send interest notification for match %s", match.id)

    async def _notify_decision(self, match: Match) -> None:
        try:
            await self._notifier.send_decision(match, match.listing)
        except (RuntimeError, OSError):
            LOGGER.exception("Failed to send decision notification for match %s", match.id)


def _with_joins(updated: Match, previous: Match) -> Match:
    return replace(updated, listing=previous.listing, brand=updated.brand or previous.brand)
