from __future__ import annotations

from .infrastructure import DatabaseConfig
from .integrations import CloudSyncConfig, SupabaseConfig
from .settings import AppConfig, RuntimeConfig, Settings, load_config

__all__ = [
    "AppConfig",
    "CloudSyncConfig",
    "DatabaseConfig",
    "RuntimeConfig",
    "Settings",
    "SupabaseConfig",
    "load_config",
]
