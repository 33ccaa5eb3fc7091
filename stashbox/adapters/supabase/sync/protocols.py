"""Protocol definitions (ports) for the Supabase push.

The engine depends only on these, so tests can hand it in-memory fakes and the
CLI can hand it the SQLite repository and the httpx client.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from stashbox.adapters.supabase.models import RemoteIdentity


class LocalLibraryStore(Protocol):
    async def async_fetch_all(self, table: str) -> list[dict[str, Any]]: ...

    async def async_count(self, table: str) -> int: ...


class RemoteStore(Protocol):
    async def get_current_identity(self) -> RemoteIdentity: ...

    async def upsert(
        self,
        collection: str,
        record: dict[str, Any],
        *,
        on_conflict: str,
    ) -> None: ...

    async def fetch_profile(self, user_id: str) -> dict[str, Any] | None: ...

    async def insert_profile(self, profile: dict[str, Any]) -> None: ...
