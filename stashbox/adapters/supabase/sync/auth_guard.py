"""Identity resolution gate for sync runs."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from stashbox.adapters.supabase.client import SupabaseAuthError
from stashbox.adapters.supabase.sync.errors import NotAuthenticatedError, describe_cause

if TYPE_CHECKING:
    from stashbox.adapters.supabase.models import RemoteIdentity
    from stashbox.adapters.supabase.sync.protocols import RemoteStore

logger = logging.getLogger(__name__)


class AuthGuard:
    def __init__(self, remote: RemoteStore) -> None:
        self._remote = remote

    async def resolve_identity(self, *, correlation_id: str | None = None) -> RemoteIdentity:
        """Look up the signed-in user once.

        Raises:
            NotAuthenticatedError: If the lookup fails or yields no identity.
        """
        try:
            identity = await self._remote.get_current_identity()
        except Exception as exc:
            logger.warning(
                "cloud_sync_identity_lookup_failed",
                extra={"correlation_id": correlation_id, "error": describe_cause(exc)},
            )
            msg = f"User not authenticated: {describe_cause(exc)}"
            raise NotAuthenticatedError(msg) from exc

        if identity is None or not getattr(identity, "id", None):
            raise NotAuthenticatedError("User not authenticated")

        logger.info(
            "cloud_sync_identity_resolved",
            extra={"correlation_id": correlation_id, "user_id": identity.id},
        )
        return identity

    async def probe(self) -> tuple[bool, str | None]:
        """Check for a signed-in user without raising.

        Returns:
            ``(authenticated, error)``; ``error`` is set only when the lookup itself
            failed, as opposed to finding nobody signed in.
        """
        try:
            identity = await self._remote.get_current_identity()
        except SupabaseAuthError:
            return False, None
        except Exception as exc:
            logger.debug("cloud_sync_auth_probe_failed", extra={"error": describe_cause(exc)})
            return False, describe_cause(exc)
        return identity is not None and bool(getattr(identity, "id", None)), None

    async def is_authenticated(self) -> bool:
        """Probe used for status reporting; never raises."""
        authenticated, _ = await self.probe()
        return authenticated
