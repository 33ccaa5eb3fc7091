"""Pytest configuration and shared fixtures.

Provides in-memory stand-ins for the local library store and the Supabase
remote so the push engine can be exercised without SQLite or HTTP.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from stashbox.adapters.supabase.client import SupabaseAuthError
from stashbox.adapters.supabase.models import RemoteIdentity

BASE_TIME = datetime(2025, 3, 1, 9, 0, 0, tzinfo=UTC)


def ts(minutes: int) -> datetime:
    return BASE_TIME + timedelta(minutes=minutes)


class FakeLibraryStore:
    """In-memory local store. Rows are returned sorted by ``created_at``."""

    def __init__(self, tables: dict[str, list[dict[str, Any]]] | None = None) -> None:
        self.tables: dict[str, list[dict[str, Any]]] = {
            "folders": [],
            "tags": [],
            "items": [],
            "item_folders": [],
            "item_tags": [],
        }
        if tables:
            self.tables.update(tables)
        self.fetch_calls: list[str] = []
        self.fail_fetch: dict[str, Exception] = {}
        self.fail_count: dict[str, Exception] = {}

    async def async_fetch_all(self, table: str) -> list[dict[str, Any]]:
        self.fetch_calls.append(table)
        if table in self.fail_fetch:
            raise self.fail_fetch[table]
        return sorted(self.tables[table], key=lambda row: row["created_at"])

    async def async_count(self, table: str) -> int:
        if table in self.fail_count:
            raise self.fail_count[table]
        return len(self.tables[table])


class FakeRemoteStore:
    """Records every upsert and lets tests fail specific ones."""

    def __init__(self, identity: RemoteIdentity | None = None) -> None:
        self.identity = identity or RemoteIdentity(id="user-1", email="ada@example.com")
        self.identity_error: Exception | None = None
        self.upserts: list[tuple[str, dict[str, Any], str]] = []
        self.failures: dict[tuple[str, str], Exception] = {}
        self.rows: dict[str, dict[str, dict[str, Any]]] = {}
        self.profiles: dict[str, dict[str, Any]] = {}
        self.profile_error: Exception | None = None
        self.identity_calls = 0

    async def get_current_identity(self) -> RemoteIdentity:
        self.identity_calls += 1
        if self.identity_error is not None:
            raise self.identity_error
        return self.identity

    async def upsert(self, collection: str, record: dict[str, Any], *, on_conflict: str) -> None:
        self.upserts.append((collection, record, on_conflict))
        key = ",".join(str(record[name]) for name in on_conflict.split(","))
        error = self.failures.get((collection, key))
        if error is not None:
            raise error
        self.rows.setdefault(collection, {})[key] = record

    async def fetch_profile(self, user_id: str) -> dict[str, Any] | None:
        if self.profile_error is not None:
            raise self.profile_error
        return self.profiles.get(user_id)

    async def insert_profile(self, profile: dict[str, Any]) -> None:
        self.profiles[profile["id"]] = profile

    def collections_in_order(self) -> list[str]:
        return [collection for collection, _, _ in self.upserts]


def make_folder(folder_id: str, minute: int, **overrides: Any) -> dict[str, Any]:
    row = {
        "id": folder_id,
        "name": f"Folder {folder_id}",
        "description": None,
        "color": "#3366ff",
        "created_at": ts(minute),
        "updated_at": ts(minute),
    }
    row.update(overrides)
    return row


def make_tag(tag_id: str, minute: int, **overrides: Any) -> dict[str, Any]:
    row = {
        "id": tag_id,
        "name": f"tag-{tag_id}",
        "color": None,
        "created_at": ts(minute),
        "updated_at": ts(minute),
    }
    row.update(overrides)
    return row


def make_item(item_id: str, minute: int, **overrides: Any) -> dict[str, Any]:
    row = {
        "id": item_id,
        "title": f"Item {item_id}",
        "description": "Saved for later",
        "content_url": f"https://example.com/{item_id}",
        "thumbnail_url": None,
        "source": "shared_url",
        "platform": "web",
        "created_at": ts(minute),
        "ingested_at": ts(minute),
        "updated_at": ts(minute),
    }
    row.update(overrides)
    return row


def make_link(item_id: str, other_key: str, other_id: str, minute: int) -> dict[str, Any]:
    return {"item_id": item_id, other_key: other_id, "created_at": ts(minute)}


@pytest.fixture
def library() -> FakeLibraryStore:
    """Two folders, one tag, three items, two item-folder links, one item-tag link."""
    return FakeLibraryStore(
        {
            "folders": [make_folder("f2", 2), make_folder("f1", 1)],
            "tags": [make_tag("t1", 3)],
            "items": [make_item("i1", 4), make_item("i3", 6), make_item("i2", 5)],
            "item_folders": [
                make_link("i1", "folder_id", "f1", 7),
                make_link("i2", "folder_id", "f2", 8),
            ],
            "item_tags": [make_link("i3", "tag_id", "t1", 9)],
        }
    )


@pytest.fixture
def remote() -> FakeRemoteStore:
    return FakeRemoteStore()


@pytest.fixture
def signed_out_remote() -> FakeRemoteStore:
    fake = FakeRemoteStore()
    fake.identity_error = SupabaseAuthError("get_user failed (401): invalid JWT", status_code=401)
    return fake
