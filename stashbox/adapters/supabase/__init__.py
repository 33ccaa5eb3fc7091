"""Supabase integration adapter for pushing the local library to the cloud."""

from stashbox.adapters.supabase.client import SupabaseClient
from stashbox.adapters.supabase.sync.service import CloudSyncService

__all__ = ["CloudSyncService", "SupabaseClient"]
