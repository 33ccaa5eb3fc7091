"""Push one junction table (item-folder or item-tag links) to Supabase."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from stashbox.adapters.supabase.sync.errors import describe_cause, format_record_error
from stashbox.adapters.supabase.sync.outcome import PhaseOutcome
from stashbox.utils.retry_utils import is_transient_error

if TYPE_CHECKING:
    from collections.abc import Sequence

    from stashbox.adapters.supabase.sync.protocols import LocalLibraryStore, RemoteStore
    from stashbox.adapters.supabase.sync.specs import RelationSpec

logger = logging.getLogger(__name__)


class RelationSyncer:
    """Like ``EntitySyncer`` but keyed by the id pair and not stamped with an owner.

    Links are not counted in the run totals; only their failures surface.
    """

    def __init__(
        self, spec: RelationSpec, *, local: LocalLibraryStore, remote: RemoteStore
    ) -> None:
        self.spec = spec
        self._local = local
        self._remote = remote

    @property
    def phase(self) -> str:
        return self.spec.table

    async def run(self, *, correlation_id: str) -> PhaseOutcome:
        records = await self._local.async_fetch_all(self.spec.table)
        return await self.sync_records(records, correlation_id=correlation_id)

    async def sync_records(
        self, records: Sequence[dict[str, Any]], *, correlation_id: str
    ) -> PhaseOutcome:
        outcome = PhaseOutcome()
        for record in records:
            record_id = self.spec.record_id(record)
            try:
                await self._remote.upsert(
                    self.spec.collection,
                    self.spec.build_payload(record),
                    on_conflict=self.spec.conflict_key,
                )
            except Exception as exc:
                message = format_record_error(self.spec.entity, record_id, exc)
                outcome.failures.append((message, is_transient_error(exc)))
                logger.warning(
                    "cloud_sync_link_failed",
                    extra={
                        "correlation_id": correlation_id,
                        "entity": self.spec.entity,
                        "record_id": record_id,
                        "error": describe_cause(exc),
                    },
                )
                continue
            outcome.synced += 1

        if records:
            logger.info(
                "cloud_sync_phase_complete",
                extra={
                    "correlation_id": correlation_id,
                    "phase": self.phase,
                    "total": len(records),
                    "error_count": len(outcome.failures),
                },
            )
        return outcome
