from __future__ import annotations

import asyncio
import threading
from datetime import datetime, timezone

import pytest

from fakes import FakeNotifier, FakeStore, make_opportunity, make_post
from sponsormatch.core.errors import Conflict, InvalidTransition, NotFound, TransientNetwork, ValidationFailure
from sponsormatch.core.lifecycle import INTEREST_CREATED, INTEREST_DUPLICATE, MatchController, partition
from sponsormatch.core.models import (
    KIND_POST,
    MATCH_ACCEPTED,
    MATCH_PENDING,
    MATCH_REJECTED,
    ROLE_CREATOR,
    Match,
    MeetingDetails,
    Profile,
)


def _creator_setup(
    notifier: FakeNotifier | None = None,
) -> tuple[FakeStore, FakeNotifier, MatchController, Match]:
    store = FakeStore()
    listing = store.add_listing(make_opportunity("opp-1", creator_id="creator-1"))
    match = store.add_match(listing, brand_id="brand-1")
    notifier = notifier or FakeNotifier()
    controller = MatchController(store, notifier, "creator-1", role=ROLE_CREATOR)
    asyncio.run(controller.refresh())
    return store, notifier, controller, match


def test_accept_then_reject_keeps_accepted() -> None:
    store, notifier, controller, match = _creator_setup()

    accepted = asyncio.run(controller.decide(match.id, MATCH_ACCEPTED))
    with pytest.raises(InvalidTransition) as excinfo:
        asyncio.run(controller.decide(match.id, MATCH_REJECTED))

    assert accepted.status == MATCH_ACCEPTED
    assert excinfo.value.current_status == MATCH_ACCEPTED
    assert store.matches[match.id].status == MATCH_ACCEPTED
    assert store.mutations() == ["update_match_status"]
    assert [sent.id for sent in notifier.decisions] == [match.id]


def test_rejection_does_not_notify() -> None:
    _, notifier, controller, match = _creator_setup()

    rejected = asyncio.run(controller.decide(match.id, MATCH_REJECTED))

    assert rejected.status == MATCH_REJECTED
    assert notifier.decisions == []


def test_accept_attaches_meeting_details() -> None:
    store, _, controller, match = _creator_setup()
    when = datetime(2024, 6, 1, 9, 30, tzinfo=timezone.utc)
    meeting = MeetingDetails(scheduled_at=when, link="https://meet.example.com/abc", notes="Bring deck")

    updated = asyncio.run(controller.decide(match.id, MATCH_ACCEPTED, meeting))

    assert updated.meeting_scheduled_at == when
    assert updated.meeting_link == "https://meet.example.com/abc"
    assert store.matches[match.id].notes == "Bring deck"


def test_meeting_on_rejection_is_a_validation_failure() -> None:
    store, _, controller, match = _creator_setup()

    with pytest.raises(ValidationFailure):
        asyncio.run(controller.decide(match.id, MATCH_REJECTED, MeetingDetails(notes="no")))

    assert store.matches[match.id].status == MATCH_PENDING
    assert store.mutations() == []


def test_concurrent_decisions_only_one_wins() -> None:
    class SlowNotifier(FakeNotifier):
        async def send_decision(self, match, listing) -> None:
            await asyncio.sleep(0)
            await super().send_decision(match, listing)

    store, _, controller, match = _creator_setup(SlowNotifier())

    async def race():
        return await asyncio.gather(
            controller.decide(match.id, MATCH_ACCEPTED),
            controller.decide(match.id, MATCH_REJECTED),
            return_exceptions=True,
        )

    first, second = asyncio.run(race())

    assert isinstance(first, Match) and first.status == MATCH_ACCEPTED
    assert isinstance(second, InvalidTransition)
    assert store.mutations() == ["update_match_status"]
    assert not controller.is_busy(match.id)


def test_lost_race_refreshes_and_reports_current_status() -> None:
    store, _, controller, match = _creator_setup()
    store.decide_elsewhere(match.id, MATCH_REJECTED)

    with pytest.raises(InvalidTransition) as excinfo:
        asyncio.run(controller.decide(match.id, MATCH_ACCEPTED))

    assert excinfo.value.current_status == MATCH_REJECTED
    assert [m.status for m in controller.matches] == [MATCH_REJECTED]
    assert not controller.is_busy(match.id)


def test_deleted_match_is_forgotten() -> None:
    store, _, controller, match = _creator_setup()
    del store.matches[match.id]

    with pytest.raises(NotFound):
        asyncio.run(controller.decide(match.id, MATCH_ACCEPTED))

    assert controller.matches == []


def test_match_deleted_after_losing_the_race_is_forgotten() -> None:
    store, _, controller, match = _creator_setup()
    store.fail("update_match_status", Conflict("status moved on"))
    store.fail("get_match", NotFound("row deleted"))

    with pytest.raises(NotFound):
        asyncio.run(controller.decide(match.id, MATCH_ACCEPTED))

    assert controller.matches == []
    assert not controller.is_busy(match.id)


def test_store_calls_run_off_the_event_loop_thread() -> None:
    class ThreadRecordingStore(FakeStore):
        def __init__(self) -> None:
            super().__init__()
            self.threads: list[int] = []

        def list_brand_matches(self, brand_id: str) -> list[Match]:
            self.threads.append(threading.get_ident())
            return super().list_brand_matches(brand_id)

    store = ThreadRecordingStore()
    controller = MatchController(store, FakeNotifier(), "brand-1")

    async def refresh_on_loop() -> int:
        await controller.refresh()
        return threading.get_ident()

    loop_thread = asyncio.run(refresh_on_loop())

    assert store.threads and store.threads[0] != loop_thread


def test_transient_failure_is_retried_once() -> None:
    store, _, controller, match = _creator_setup()
    store.fail("update_match_status", TransientNetwork("timeout"))

    updated = asyncio.run(controller.decide(match.id, MATCH_ACCEPTED))

    assert updated.status == MATCH_ACCEPTED
    assert store.calls.count("update_match_status") == 2


def test_exhausted_retries_flag_retryable_and_clear_busy() -> None:
    store, _, controller, match = _creator_setup()
    store.fail("update_match_status", TransientNetwork("timeout"), TransientNetwork("timeout"))

    with pytest.raises(TransientNetwork) as excinfo:
        asyncio.run(controller.decide(match.id, MATCH_ACCEPTED))

    assert excinfo.value.retryable
    assert not controller.is_busy(match.id)
    assert store.matches[match.id].status == MATCH_PENDING


def test_notifier_failure_keeps_the_transition() -> None:
    store, _, controller, match = _creator_setup(FakeNotifier(error=RuntimeError("smtp down")))

    updated = asyncio.run(controller.decide(match.id, MATCH_ACCEPTED))

    assert updated.status == MATCH_ACCEPTED
    assert store.matches[match.id].status == MATCH_ACCEPTED


def test_request_interest_creates_pending_match_and_notifies_owner() -> None:
    store = FakeStore()
    listing = store.add_listing(make_opportunity("opp-1"))
    store.profiles["brand-1"] = Profile(id="brand-1", company_name="Acme")
    notifier = FakeNotifier()
    controller = MatchController(store, notifier, "brand-1")

    outcome = asyncio.run(controller.request_interest(listing.id))

    assert outcome.status == INTEREST_CREATED
    assert outcome.match is not None and outcome.match.status == MATCH_PENDING
    assert outcome.match.opportunity_id == "opp-1"
    assert len(notifier.interests) == 1
    assert notifier.interests[0][2].company_name == "Acme"


def test_interest_survives_failed_listing_lookup() -> None:
    store = FakeStore()
    store.join_on_insert = False
    listing = store.add_listing(make_opportunity("opp-1"))
    store.fail("get_listing", TransientNetwork("down"), TransientNetwork("down"))
    notifier = FakeNotifier()
    controller = MatchController(store, notifier, "brand-1")

    outcome = asyncio.run(controller.request_interest(listing.id))

    assert outcome.created
    assert [m.id for m in controller.matches] == [outcome.match.id]
    assert notifier.interests == []
    assert not controller.is_busy("opportunity:opp-1")


def test_interest_in_post_does_not_block_opportunity_with_same_id() -> None:
    store = FakeStore()
    post = store.add_listing(make_post("shared-1"))
    opportunity = store.add_listing(make_opportunity("shared-1"))
    controller = MatchController(store, FakeNotifier(), "brand-1")

    first = asyncio.run(controller.request_interest(post.id, KIND_POST))
    second = asyncio.run(controller.request_interest(opportunity.id))

    assert first.created and second.created
    assert store.mutations() == ["insert_match", "insert_match"]


def test_duplicate_interest_is_reported_not_raised() -> None:
    store = FakeStore()
    listing = store.add_listing(make_post("post-1"))
    controller = MatchController(store, FakeNotifier(), "brand-1")

    first = asyncio.run(controller.request_interest(listing.id, KIND_POST))
    second = asyncio.run(controller.request_interest(listing.id, KIND_POST))

    assert first.created
    assert second.status == INTEREST_DUPLICATE
    assert second.match == first.match
    assert store.mutations() == ["insert_match"]


def test_interest_conflict_from_another_session_is_a_duplicate() -> None:
    store = FakeStore()
    listing = store.add_listing(make_opportunity("opp-1"))
    controller = MatchController(store, FakeNotifier(), "brand-1")
    existing = store.add_match(listing, brand_id="brand-1")

    outcome = asyncio.run(controller.request_interest(listing.id))

    assert outcome.status == INTEREST_DUPLICATE
    assert outcome.match is not None and outcome.match.id == existing.id
    assert len(store.matches) == 1


def test_interest_after_rejection_creates_a_new_match() -> None:
    store = FakeStore()
    listing = store.add_listing(make_opportunity("opp-1"))
    store.add_match(listing, brand_id="brand-1", status=MATCH_REJECTED)
    controller = MatchController(store, FakeNotifier(), "brand-1")
    asyncio.run(controller.refresh())

    outcome = asyncio.run(controller.request_interest(listing.id))

    assert outcome.created
    assert len(store.matches) == 2


def test_only_brands_can_request_interest() -> None:
    store = FakeStore()
    listing = store.add_listing(make_opportunity("opp-1"))
    controller = MatchController(store, FakeNotifier(), "creator-1", role=ROLE_CREATOR)

    with pytest.raises(InvalidTransition):
        asyncio.run(controller.request_interest(listing.id))


def test_partition_counts_and_order() -> None:
    matches = [
        Match(id="1", brand_id="b", status=MATCH_PENDING, opportunity_id="o1"),
        Match(id="2", brand_id="b", status=MATCH_ACCEPTED, opportunity_id="o2"),
        Match(id="3", brand_id="b", status=MATCH_PENDING, opportunity_id="o3"),
        Match(id="4", brand_id="b", status=MATCH_REJECTED, opportunity_id="o4"),
    ]

    groups = partition(matches)

    assert [m.id for m in groups.pending] == ["1", "3"]
    assert [m.id for m in groups.accepted] == ["2"]
    assert [m.id for m in groups.rejected] == ["4"]
    assert groups.completed == []


def test_refresh_and_stats_for_creator() -> None:
    store = FakeStore()
    mine = store.add_listing(make_opportunity("opp-1", creator_id="creator-1"))
    other = store.add_listing(make_opportunity("opp-2", creator_id="creator-2"))
    store.add_match(mine, brand_id="brand-1")
    store.add_match(mine, brand_id="brand-2", status=MATCH_ACCEPTED)
    store.add_match(other, brand_id="brand-1")
    controller = MatchController(store, FakeNotifier(), "creator-1", role=ROLE_CREATOR)

    loaded = asyncio.run(controller.refresh())
    stats = controller.stats()

    assert [m.brand_id for m in loaded] == ["brand-2", "brand-1"]
    assert (stats.total, stats.pending, stats.accepted, stats.rejected) == (2, 1, 1, 0)
