"""SQLite store adapter.

Implements the core StorePort on a local SQLite database. It mirrors the
hosted schema closely enough to run the dashboards offline and to exercise
the same uniqueness and conditional-update semantics.
"""

from __future__ import annotations

from contextlib import contextmanager
import json
import sqlite3
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterator, List, Mapping, Optional

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
    StoreError,
    TransientNetwork,
    ValidationFailure,
)
from sponsormatch.core.models import (
    LISTING_ACTIVE,
    LISTING_KINDS,
    LISTING_STATUSES,
    MATCH_PENDING,
    VERIFICATION_PENDING,
    Category,
    Listing,
    ListingDraft,
    Match,
    MeetingDetails,
    Profile,
)

_JSON_COLUMNS = ("price_range", "media_urls")

_SCHEMA = (
    # profiles mirrors the account metadata table; read-only for the core.
    """
    CREATE TABLE IF NOT EXISTS profiles (
        id TEXT PRIMARY KEY,
        user_type TEXT NOT NULL DEFAULT 'brand',
        company_name TEXT,
        industry TEXT,
        contact_person_name TEXT,
        contact_person_phone TEXT,
        email TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS categories (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        description TEXT
    )
    """,
    # price_range and media_urls hold JSON text, validated when read back.
    """
    CREATE TABLE IF NOT EXISTS opportunities (
        id TEXT PRIMARY KEY,
        creator_id TEXT NOT NULL,
        category_id TEXT,
        title TEXT NOT NULL,
        description TEXT,
        location TEXT,
        price_range TEXT,
        media_urls TEXT,
        status TEXT NOT NULL DEFAULT 'active',
        verification_status TEXT NOT NULL DEFAULT 'pending',
        rejection_reason TEXT,
        ad_type TEXT,
        reach INTEGER,
        calendly_link TEXT,
        sponsorship_brochure_url TEXT,
        created_at TIMESTAMP NOT NULL,
        updated_at TIMESTAMP NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS posts (
        id TEXT PRIMARY KEY,
        creator_id TEXT NOT NULL,
        category_id TEXT,
        title TEXT NOT NULL,
        description TEXT,
        location TEXT,
        price_range TEXT,
        media_urls TEXT,
        hashtags TEXT,
        reach INTEGER,
        status TEXT NOT NULL DEFAULT 'active',
        verification_status TEXT NOT NULL DEFAULT 'pending',
        rejection_reason TEXT,
        created_at TIMESTAMP NOT NULL,
        updated_at TIMESTAMP NOT NULL
    )
    """,
    # Exactly one of opportunity_id / post_id is set per match.
    """
    CREATE TABLE IF NOT EXISTS matches (
        id TEXT PRIMARY KEY,
        opportunity_id TEXT,
        post_id TEXT,
        brand_id TEXT NOT NULL,
        status TEXT NOT NULL DEFAULT 'pending',
        meeting_scheduled_at TIMESTAMP,
        meeting_link TEXT,
        notes TEXT,
        created_at TIMESTAMP NOT NULL,
        updated_at TIMESTAMP NOT NULL
    )
    """,
    # One live (pending/accepted) match per brand x listing pair.
    """
    CREATE UNIQUE INDEX IF NOT EXISTS matches_brand_opportunity
    ON matches (brand_id, opportunity_id)
    WHERE status IN ('pending', 'accepted') AND opportunity_id IS NOT NULL
    """,
    """
    CREATE UNIQUE INDEX IF NOT EXISTS matches_brand_post
    ON matches (brand_id, post_id)
    WHERE status IN ('pending', 'accepted') AND post_id IS NOT NULL
    """,
)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _new_id() -> str:
    return uuid.uuid4().hex


def _table(kind: str) -> str:
    if kind not in LISTING_KINDS:
        raise ValidationFailure(f"Unsupported listing kind: {kind}", field="kind")
    return TABLES[kind]


def _decode(row: sqlite3.Row) -> dict[str, Any]:
    data = dict(row)
    for column in _JSON_COLUMNS:
        raw = data.get(column)
        if raw is None:
            continue
        try:
            data[column] = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ValidationFailure("column holds invalid JSON", field=column) from exc
    return data


def _encode(values: Mapping[str, Any]) -> dict[str, Any]:
    encoded = dict(values)
    for column in _JSON_COLUMNS:
        if column in encoded and encoded[column] is not None:
            encoded[column] = json.dumps(encoded[column])
    return encoded


class SQLiteStore:
    """Thin SQLite wrapper that satisfies the StorePort contract."""

    def __init__(self, db_path: str, media_dir: Optional[str] = None) -> None:
        self._db_path = db_path
        self._media_dir = Path(media_dir) if media_dir else Path(db_path).resolve().parent / "media"

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def _session(self) -> Iterator[sqlite3.Connection]:
        """Open a transaction and translate sqlite errors into store kinds."""

        conn = self._connect()
        try:
            with conn:
                yield conn
        except sqlite3.IntegrityError as exc:
            if "UNIQUE" in str(exc).upper():
                raise Conflict(str(exc)) from exc
            raise ValidationFailure(str(exc)) from exc
        except sqlite3.OperationalError as exc:
            message = str(exc).lower()
            if "locked" in message or "busy" in message:
                raise TransientNetwork(str(exc)) from exc
            raise StoreError(str(exc)) from exc
        except sqlite3.Error as exc:
            raise StoreError(str(exc)) from exc
        finally:
            conn.close()

    def init_db(self) -> None:
        """Create tables and indexes if they do not exist."""

        with self._session() as conn:
            for statement in _SCHEMA:
                conn.execute(statement)

    def list_categories(self) -> List[Category]:
        with self._session() as conn:
            rows = conn.execute("SELECT * FROM categories ORDER BY name").fetchall()
        return [category_from_row(dict(row)) for row in rows]

    def list_listings(self, kind: str, status: str, verification_status: str) -> List[Listing]:
        table = _table(kind)
        with self._session() as conn:
            rows = conn.execute(
                f"""
                SELECT * FROM {table}
                WHERE status = ? AND verification_status = ?
                ORDER BY created_at DESC, rowid DESC
                """,
                (status, verification_status),
            ).fetchall()
        return [listing_from_row(kind, _decode(row)) for row in rows]

    def list_owner_listings(self, kind: str, owner_id: str) -> List[Listing]:
        table = _table(kind)
        with self._session() as conn:
            rows = conn.execute(
                f"SELECT * FROM {table} WHERE creator_id = ? ORDER BY created_at DESC, rowid DESC",
                (owner_id,),
            ).fetchall()
        return [listing_from_row(kind, _decode(row)) for row in rows]

    def _listing_row(self, conn: sqlite3.Connection, kind: str, listing_id: str) -> Optional[sqlite3.Row]:
        return conn.execute(
            f"SELECT * FROM {_table(kind)} WHERE id = ?",
            (listing_id,),
        ).fetchone()

    def get_listing(self, kind: str, listing_id: str) -> Listing:
        with self._session() as conn:
            row = self._listing_row(conn, kind, listing_id)
        if row is None:
            raise NotFound(f"{kind} {listing_id} not found")
        return listing_from_row(kind, _decode(row))

    def get_profile(self, account_id: str) -> Profile:
        with self._session() as conn:
            row = conn.execute("SELECT * FROM profiles WHERE id = ?", (account_id,)).fetchone()
        if row is None:
            raise NotFound(f"profile {account_id} not found")
        return profile_from_row(dict(row))

    def _hydrate(self, conn: sqlite3.Connection, row: sqlite3.Row) -> Match:
        data = dict(row)
        if data.get("opportunity_id"):
            joined = self._listing_row(conn, "opportunity", data["opportunity_id"])
            if joined is not None:
                data["opportunities"] = _decode(joined)
        elif data.get("post_id"):
            joined = self._listing_row(conn, "post", data["post_id"])
            if joined is not None:
                data["posts"] = _decode(joined)
        brand = conn.execute("SELECT * FROM profiles WHERE id = ?", (data["brand_id"],)).fetchone()
        if brand is not None:
            data["profiles"] = dict(brand)
        return match_from_row(data)

    def list_brand_matches(self, brand_id: str) -> List[Match]:
        with self._session() as conn:
            rows = conn.execute(
                "SELECT * FROM matches WHERE brand_id = ? ORDER BY created_at DESC, rowid DESC",
                (brand_id,),
            ).fetchall()
            return [self._hydrate(conn, row) for row in rows]

    def list_creator_matches(self, creator_id: str) -> List[Match]:
        with self._session() as conn:
            rows = conn.execute(
                """
                SELECT m.* FROM matches m
                LEFT JOIN opportunities o ON m.opportunity_id = o.id
                LEFT JOIN posts p ON m.post_id = p.id
                WHERE o.creator_id = ? OR p.creator_id = ?
                ORDER BY m.created_at DESC, m.rowid DESC
                """,
                (creator_id, creator_id),
            ).fetchall()
            return [self._hydrate(conn, row) for row in rows]

    def get_match(self, match_id: str) -> Match:
        with self._session() as conn:
            row = conn.execute("SELECT * FROM matches WHERE id = ?", (match_id,)).fetchone()
            if row is None:
                raise NotFound(f"match {match_id} not found")
            return self._hydrate(conn, row)

    def insert_match(self, brand_id: str, listing_id: str, kind: str) -> Match:
        """Insert a pending match; the partial unique index rejects duplicates."""

        match_id = _new_id()
        now = _now()
        with self._session() as conn:
            if self._listing_row(conn, kind, listing_id) is None:
                raise NotFound(f"{kind} {listing_id} not found")
            conn.execute(
                f"""
                INSERT INTO matches (id, {LISTING_COLUMNS[kind]}, brand_id, status, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (match_id, listing_id, brand_id, MATCH_PENDING, now, now),
            )
        return self.get_match(match_id)

    def update_match_status(
        self,
        match_id: str,
        expected_status: str,
        status: str,
        meeting: Optional[MeetingDetails] = None,
    ) -> Match:
        """Update a match only if it still has the expected status."""

        values = {"status": status, "updated_at": _now(), **meeting_to_row(meeting)}
        assignments = ", ".join(f"{column} = ?" for column in values)
        with self._session() as conn:
            cur = conn.execute(
                f"UPDATE matches SET {assignments} WHERE id = ? AND status = ?",
                (*values.values(), match_id, expected_status),
            )
            if cur.rowcount == 0:
                exists = conn.execute("SELECT status FROM matches WHERE id = ?", (match_id,)).fetchone()
                if exists is None:
                    raise NotFound(f"match {match_id} not found")
                raise Conflict(f"match {match_id} is {exists['status']}, expected {expected_status}")
        return self.get_match(match_id)

    def save_listing(
        self,
        kind: str,
        owner_id: str,
        draft: ListingDraft,
        listing_id: Optional[str] = None,
    ) -> Listing:
        table = _table(kind)
        now = _now()
        values = _encode(draft_to_row(kind, draft))
        # Edits go back through moderation, exactly like new listings.
        values.update(verification_status=VERIFICATION_PENDING, rejection_reason=None, updated_at=now)
        with self._session() as conn:
            if listing_id is None:
                listing_id = _new_id()
                values.update(id=listing_id, creator_id=owner_id, status=LISTING_ACTIVE, created_at=now)
                columns = ", ".join(values)
                placeholders = ", ".join("?" for _ in values)
                conn.execute(f"INSERT INTO {table} ({columns}) VALUES ({placeholders})", tuple(values.values()))
            else:
                assignments = ", ".join(f"{column} = ?" for column in values)
                cur = conn.execute(
                    f"UPDATE {table} SET {assignments} WHERE id = ? AND creator_id = ?",
                    (*values.values(), listing_id, owner_id),
                )
                if cur.rowcount == 0:
                    raise NotFound(f"{kind} {listing_id} not found")
        return self.get_listing(kind, listing_id)

    def set_listing_status(self, kind: str, listing_id: str, status: str) -> Listing:
        if status not in LISTING_STATUSES:
            raise ValidationFailure(f"unexpected value {status!r}", field="status")
        with self._session() as conn:
            cur = conn.execute(
                f"UPDATE {_table(kind)} SET status = ?, updated_at = ? WHERE id = ?",
                (status, _now(), listing_id),
            )
            if cur.rowcount == 0:
                raise NotFound(f"{kind} {listing_id} not found")
        return self.get_listing(kind, listing_id)

    def delete_listing(self, kind: str, listing_id: str) -> None:
        """Delete a listing and, like the hosted cascade, its matches."""

        with self._session() as conn:
            cur = conn.execute(f"DELETE FROM {_table(kind)} WHERE id = ?", (listing_id,))
            if cur.rowcount == 0:
                raise NotFound(f"{kind} {listing_id} not found")
            conn.execute(f"DELETE FROM matches WHERE {LISTING_COLUMNS[kind]} = ?", (listing_id,))

    def upload_media(self, path: str, data: bytes, content_type: str) -> str:
        """Store a media blob under the media directory and return a file URL."""

        target = (self._media_dir / path).resolve()
        if self._media_dir.resolve() not in target.parents:
            raise ValidationFailure("media path escapes the media directory", field="media")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as exc:
            raise StoreError(f"media upload failed: {exc.strerror or exc}") from exc
        return target.as_uri()

    def load_fixtures(self, payload: Mapping[str, Any]) -> dict[str, int]:
        """Insert reference data and listings from a seed payload.

        The payload mirrors the hosted tables: "profiles", "categories",
        "opportunities" and "posts" lists of row objects. Rows are validated
        through the same record mappers used on read.
        """

        counts: dict[str, int] = {}
        now = _now()
        with self._session() as conn:
            for row in payload.get("profiles", []):
                profile_from_row(row)
                self._upsert(conn, "profiles", row)
            counts["profiles"] = len(payload.get("profiles", []))
            for row in payload.get("categories", []):
                category_from_row(row)
                self._upsert(conn, "categories", row)
            counts["categories"] = len(payload.get("categories", []))
            for kind in LISTING_KINDS:
                table = TABLES[kind]
                rows = payload.get(table, [])
                for row in rows:
                    values = {"created_at": now, "updated_at": now, **row}
                    listing_from_row(kind, values)
                    self._upsert(conn, table, _encode(values))
                counts[table] = len(rows)
        return counts

    @staticmethod
    def _upsert(conn: sqlite3.Connection, table: str, values: Mapping[str, Any]) -> None:
        columns = ", ".join(values)
        placeholders = ", ".join("?" for _ in values)
        conn.execute(
            f"INSERT OR REPLACE INTO {table} ({columns}) VALUES ({placeholders})",
            tuple(values.values()),
        )
