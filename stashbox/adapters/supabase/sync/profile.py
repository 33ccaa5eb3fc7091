"""Make sure the remote ``users`` row exists before anything references it."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from stashbox.adapters.supabase.sync.constants import DEFAULT_PROFILE_NAME
from stashbox.adapters.supabase.sync.errors import ProfileProvisioningError, describe_cause

if TYPE_CHECKING:
    from stashbox.adapters.supabase.models import RemoteIdentity
    from stashbox.adapters.supabase.sync.protocols import RemoteStore

logger = logging.getLogger(__name__)


def build_profile(identity: RemoteIdentity) -> dict[str, Any]:
    return {
        "id": identity.id,
        "email": identity.email,
        "name": identity.name or DEFAULT_PROFILE_NAME,
        "created_at": identity.created_at,
        "updated_at": identity.updated_at,
    }


class ProfileProvisioner:
    def __init__(self, remote: RemoteStore) -> None:
        self._remote = remote

    async def ensure(self, identity: RemoteIdentity, *, correlation_id: str | None = None) -> bool:
        """Create the profile row if it is missing. An existing row is left untouched.

        Returns:
            True when a row was created.

        Raises:
            ProfileProvisioningError: If the lookup or the insert fails.
        """
        try:
            existing = await self._remote.fetch_profile(identity.id)
            if existing:
                return False
            await self._remote.insert_profile(build_profile(identity))
        except Exception as exc:
            logger.error(
                "cloud_sync_profile_failed",
                extra={
                    "correlation_id": correlation_id,
                    "user_id": identity.id,
                    "error": describe_cause(exc),
                },
            )
            msg = f"Failed to ensure user profile: {describe_cause(exc)}"
            raise ProfileProvisioningError(msg) from exc

        logger.info(
            "cloud_sync_profile_created",
            extra={"correlation_id": correlation_id, "user_id": identity.id},
        )
        return True
