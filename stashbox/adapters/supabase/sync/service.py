"""Public Supabase push service composed of small use-case classes."""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from stashbox.adapters.supabase.models import SyncResult
from stashbox.adapters.supabase.sync.auth_guard import AuthGuard
from stashbox.adapters.supabase.sync.entity_syncer import EntitySyncer
from stashbox.adapters.supabase.sync.errors import (
    NotAuthenticatedError,
    ProfileProvisioningError,
    format_phase_error,
    record_error,
)
from stashbox.adapters.supabase.sync.profile import ProfileProvisioner
from stashbox.adapters.supabase.sync.relation_syncer import RelationSyncer
from stashbox.adapters.supabase.sync.specs import (
    FOLDER_SPEC,
    ITEM_FOLDER_SPEC,
    ITEM_SPEC,
    ITEM_TAG_SPEC,
    TAG_SPEC,
)
from stashbox.adapters.supabase.sync.status import StatusReporter
from stashbox.core.logging_utils import generate_correlation_id
from stashbox.core.time_utils import utc_now
from stashbox.utils.retry_utils import is_transient_error

if TYPE_CHECKING:
    from datetime import datetime

    from stashbox.adapters.supabase.models import SyncStatus
    from stashbox.adapters.supabase.sync.protocols import LocalLibraryStore, RemoteStore

logger = logging.getLogger(__name__)


class CloudSyncService:
    """One-way push of the local library to Supabase.

    Phases run strictly in order: folders, tags, items, then the item-folder and
    item-tag links, so a link is never pushed before the rows it references.
    Every run re-pushes the full local snapshot; upserts make that repeatable.

    Runs are not serialized against each other. Two overlapping ``sync_all``
    calls only duplicate idempotent upserts.
    """

    def __init__(
        self,
        local: LocalLibraryStore,
        remote: RemoteStore,
        *,
        ensure_profile: bool = True,
    ) -> None:
        self._local = local
        self._remote = remote
        self._ensure_profile = ensure_profile

        self._auth = AuthGuard(remote)
        self._profiles = ProfileProvisioner(remote)
        self._folders = EntitySyncer(FOLDER_SPEC, local=local, remote=remote)
        self._tags = EntitySyncer(TAG_SPEC, local=local, remote=remote)
        self._items = EntitySyncer(ITEM_SPEC, local=local, remote=remote)
        self._item_folders = RelationSyncer(ITEM_FOLDER_SPEC, local=local, remote=remote)
        self._item_tags = RelationSyncer(ITEM_TAG_SPEC, local=local, remote=remote)
        self._status = StatusReporter(self._auth, local)
        self._last_sync_at: datetime | None = None

    async def sync_all(self) -> SyncResult:
        correlation_id = generate_correlation_id()
        start_time = time.monotonic()
        result = SyncResult(correlation_id=correlation_id, started_at=utc_now())

        try:
            identity = await self._auth.resolve_identity(correlation_id=correlation_id)
            if self._ensure_profile:
                await self._profiles.ensure(identity, correlation_id=correlation_id)
        except (NotAuthenticatedError, ProfileProvisioningError) as exc:
            record_error(result, str(exc), is_transient_error(exc.__cause__ or exc))
            return self._finish(result, start_time)

        logger.info(
            "cloud_sync_start",
            extra={"correlation_id": correlation_id, "user_id": identity.id},
        )

        phase = self._folders.phase
        try:
            outcome = await self._folders.run(identity, correlation_id=correlation_id)
            result.folders_synced = outcome.synced
            self._collect(result, outcome.failures)

            phase = self._tags.phase
            outcome = await self._tags.run(identity, correlation_id=correlation_id)
            result.tags_synced = outcome.synced
            self._collect(result, outcome.failures)

            phase = self._items.phase
            outcome = await self._items.run(identity, correlation_id=correlation_id)
            result.items_synced = outcome.synced
            self._collect(result, outcome.failures)

            for relation_syncer in (self._item_folders, self._item_tags):
                phase = relation_syncer.phase
                outcome = await relation_syncer.run(correlation_id=correlation_id)
                self._collect(result, outcome.failures)
        except Exception as exc:
            record_error(result, format_phase_error(phase, exc), is_transient_error(exc))
            logger.exception(
                "cloud_sync_phase_aborted",
                extra={"correlation_id": correlation_id, "phase": phase},
            )

        self._finish(result, start_time)
        if result.success:
            self._last_sync_at = utc_now()
        return result

    async def pull_from_cloud(self) -> SyncResult:
        """Placeholder for the cloud -> local direction.

        Resolves identity like a push does, then returns a zero-count result
        flagged ``not_implemented``. Nothing is read from or written to either store.
        """
        correlation_id = generate_correlation_id()
        start_time = time.monotonic()
        result = SyncResult(
            correlation_id=correlation_id, started_at=utc_now(), not_implemented=True
        )

        try:
            identity = await self._auth.resolve_identity(correlation_id=correlation_id)
        except NotAuthenticatedError as exc:
            record_error(result, str(exc), is_transient_error(exc.__cause__ or exc))
            return self._finish(result, start_time)

        logger.info(
            "cloud_pull_not_implemented",
            extra={"correlation_id": correlation_id, "user_id": identity.id},
        )
        return self._finish(result, start_time)

    async def is_authenticated(self) -> bool:
        return await self._auth.is_authenticated()

    async def get_sync_status(self) -> SyncStatus:
        return await self._status.get_status(last_sync_at=self._last_sync_at)

    @staticmethod
    def _collect(result: SyncResult, failures: list[tuple[str, bool]]) -> None:
        for message, retryable in failures:
            record_error(result, message, retryable)

    @staticmethod
    def _finish(result: SyncResult, start_time: float) -> SyncResult:
        result.success = not result.errors
        result.duration_seconds = time.monotonic() - start_time
        log = logger.info if result.success else logger.warning
        log(
            "cloud_sync_complete",
            extra={
                "correlation_id": result.correlation_id,
                "folders_synced": result.folders_synced,
                "tags_synced": result.tags_synced,
                "items_synced": result.items_synced,
                "error_count": len(result.errors),
                "duration_seconds": result.duration_seconds,
                "not_implemented": result.not_implemented,
            },
        )
        return result
