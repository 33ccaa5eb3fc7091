"""Read-only sync status: auth state plus local table sizes."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from stashbox.adapters.supabase.models import LocalCounts, SyncStatus
from stashbox.adapters.supabase.sync import constants
from stashbox.adapters.supabase.sync.errors import describe_cause

if TYPE_CHECKING:
    from datetime import datetime

    from stashbox.adapters.supabase.sync.auth_guard import AuthGuard
    from stashbox.adapters.supabase.sync.protocols import LocalLibraryStore

logger = logging.getLogger(__name__)

_COUNTED_TABLES = (constants.ITEMS, constants.FOLDERS, constants.TAGS)


class StatusReporter:
    def __init__(self, auth_guard: AuthGuard, local: LocalLibraryStore) -> None:
        self._auth = auth_guard
        self._local = local

    async def get_status(self, *, last_sync_at: datetime | None = None) -> SyncStatus:
        """Never raises. A failed count is reported as 0 with a warning attached."""
        probe, *counts = await asyncio.gather(
            self._auth.probe(),
            *(self._local.async_count(table) for table in _COUNTED_TABLES),
            return_exceptions=True,
        )

        warnings: list[str] = []
        if isinstance(probe, BaseException):
            is_authenticated = False
            warnings.append(f"Identity check failed: {describe_cause(probe)}")
        else:
            is_authenticated, probe_error = probe
            if probe_error:
                warnings.append(f"Identity check failed: {probe_error}")

        resolved: dict[str, int] = {}
        for table, count in zip(_COUNTED_TABLES, counts, strict=True):
            if isinstance(count, BaseException):
                resolved[table] = 0
                warnings.append(f"Could not count local {table}: {describe_cause(count)}")
                logger.warning(
                    "cloud_sync_status_count_failed",
                    extra={"table": table, "error": describe_cause(count)},
                )
            else:
                resolved[table] = int(count)

        return SyncStatus(
            is_authenticated=is_authenticated,
            last_sync_at=last_sync_at,
            local_counts=LocalCounts(
                items=resolved[constants.ITEMS],
                folders=resolved[constants.FOLDERS],
                tags=resolved[constants.TAGS],
            ),
            warnings=warnings,
        )
