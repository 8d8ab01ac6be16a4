from __future__ import annotations

from types import SimpleNamespace
from typing import Any, List

import httpx
import pytest
from postgrest.exceptions import APIError
from storage3.utils import StorageException

from sponsormatch.adapters.supabase_store import SupabaseStore, translate_error
from sponsormatch.core.errors import (
    Conflict,
    NotFound,
    PermissionDenied,
    StoreError,
    TransientNetwork,
    ValidationFailure,
)
from sponsormatch.core.models import KIND_OPPORTUNITY, MATCH_ACCEPTED, MATCH_PENDING

MATCH_ROW = {
    "id": "m1",
    "brand_id": "brand-1",
    "opportunity_id": "opp-1",
    "post_id": None,
    "status": "pending",
    "created_at": "2024-05-01T10:00:00+00:00",
    "opportunities": {"id": "opp-1", "creator_id": "creator-1", "title": "Derby boards"},
    "profiles": {"id": "brand-1", "company_name": "Acme"},
}


class FakeQuery:
    """Chainable stand-in for a PostgREST request builder."""

    def __init__(self, client: "FakeClient", table: str) -> None:
        self._client = client
        self.table = table
        self.calls: List[tuple] = []

    def __getattr__(self, name: str):
        def record(*args: Any, **kwargs: Any) -> "FakeQuery":
            self.calls.append((name, args, kwargs))
            return self

        return record

    def execute(self) -> SimpleNamespace:
        self._client.queries.append(self)
        result = self._client.responses.pop(0)
        if isinstance(result, Exception):
            raise result
        return SimpleNamespace(data=result)


class FakeBucket:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.uploads: List[tuple] = []

    def upload(self, path: str, data: bytes, options: dict) -> None:
        if self.error is not None:
            raise self.error
        self.uploads.append((path, data, options))

    def get_public_url(self, path: str) -> str:
        return f"https://project.supabase.co/storage/v1/object/public/media/{path}"


class FakeClient:
    def __init__(self, *responses: Any, bucket: FakeBucket | None = None) -> None:
        self.responses = list(responses)
        self.queries: List[FakeQuery] = []
        self.bucket = bucket or FakeBucket()
        self.storage = SimpleNamespace(from_=lambda name: self.bucket)

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)


@pytest.mark.parametrize(
    ("code", "kind"),
    [
        ("23505", Conflict),
        ("42501", PermissionDenied),
        ("PGRST116", NotFound),
        ("23503", ValidationFailure),
        ("XX000", StoreError),
    ],
)
def test_translate_api_error_codes(code: str, kind: type) -> None:
    error = translate_error(APIError({"code": code, "message": "boom"}))

    assert type(error) is kind
    assert "boom" in str(error)


def test_translate_http_failures() -> None:
    request = httpx.Request("GET", "https://project.supabase.co/rest/v1/matches")

    unavailable = httpx.HTTPStatusError("503", request=request, response=httpx.Response(503, request=request))
    forbidden = httpx.HTTPStatusError("403", request=request, response=httpx.Response(403, request=request))

    assert isinstance(translate_error(httpx.ConnectError("refused", request=request)), TransientNetwork)
    assert isinstance(translate_error(httpx.ReadTimeout("slow", request=request)), TransientNetwork)
    assert isinstance(translate_error(unavailable), TransientNetwork)
    assert isinstance(translate_error(forbidden), PermissionDenied)


def test_translate_storage_failures() -> None:
    duplicate = StorageException({"statusCode": 409, "message": "exists"})
    outage = StorageException({"statusCode": "502", "message": "bad gateway"})

    assert isinstance(translate_error(duplicate), Conflict)
    assert isinstance(translate_error(outage), TransientNetwork)


def test_insert_match_duplicate_is_conflict() -> None:
    client = FakeClient(APIError({"code": "23505", "message": "duplicate key value"}))
    store = SupabaseStore(client)

    with pytest.raises(Conflict):
        store.insert_match("brand-1", "opp-1", KIND_OPPORTUNITY)

    (query,) = client.queries
    assert query.calls[0] == ("insert", ({"opportunity_id": "opp-1", "brand_id": "brand-1", "status": "pending"},), {})


def test_update_match_status_is_conditional() -> None:
    client = FakeClient([{"id": "m1"}], [dict(MATCH_ROW, status="accepted")])
    store = SupabaseStore(client)

    match = store.update_match_status("m1", MATCH_PENDING, MATCH_ACCEPTED)

    update = client.queries[0]
    assert ("eq", ("id", "m1"), {}) in update.calls
    assert ("eq", ("status", MATCH_PENDING), {}) in update.calls
    assert match.status == MATCH_ACCEPTED
    assert match.listing is not None and match.listing.title == "Derby boards"


def test_update_match_status_reports_lost_race_and_missing_row() -> None:
    raced = SupabaseStore(FakeClient([], [{"id": "m1", "status": "rejected"}]))
    missing = SupabaseStore(FakeClient([], []))

    with pytest.raises(Conflict):
        raced.update_match_status("m1", MATCH_PENDING, MATCH_ACCEPTED)
    with pytest.raises(NotFound):
        missing.update_match_status("m1", MATCH_PENDING, MATCH_ACCEPTED)


def test_list_creator_matches_merges_both_kinds_recent_first() -> None:
    older_post = {
        "id": "m0",
        "brand_id": "brand-2",
        "post_id": "post-1",
        "status": "pending",
        "created_at": "2024-04-01T10:00:00+00:00",
        "posts": {"id": "post-1", "creator_id": "creator-1", "title": "Reel"},
    }
    store = SupabaseStore(FakeClient([MATCH_ROW], [older_post]))

    matches = store.list_creator_matches("creator-1")

    assert [match.id for match in matches] == ["m1", "m0"]


def test_network_failure_surfaces_as_transient() -> None:
    store = SupabaseStore(FakeClient(httpx.ConnectError("refused")))

    with pytest.raises(TransientNetwork):
        store.list_categories()


def test_upload_media_returns_public_url() -> None:
    bucket = FakeBucket()
    store = SupabaseStore(FakeClient(bucket=bucket))

    url = store.upload_media("posts/inf-1/1_reel.mp4", b"data", "video/mp4")

    assert url.endswith("/media/posts/inf-1/1_reel.mp4")
    (path, data, options) = bucket.uploads[0]
    assert path == "posts/inf-1/1_reel.mp4"
    assert options["content-type"] == "video/mp4"


def test_upload_media_translates_storage_errors() -> None:
    store = SupabaseStore(FakeClient(bucket=FakeBucket(StorageException({"statusCode": 403, "message": "rls"}))))

    with pytest.raises(PermissionDenied):
        store.upload_media("posts/inf-1/x.png", b"x", "image/png")
