"""Local -> Supabase push engine."""

from stashbox.adapters.supabase.sync.errors import (
    NotAuthenticatedError,
    ProfileProvisioningError,
)
from stashbox.adapters.supabase.sync.service import CloudSyncService

__all__ = ["CloudSyncService", "NotAuthenticatedError", "ProfileProvisioningError"]
