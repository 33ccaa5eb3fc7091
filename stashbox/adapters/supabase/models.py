"""Pydantic models for the Supabase push and its results."""

from __future__ import annotations

from datetime import datetime  # noqa: TC003 - Pydantic needs this at runtime
from typing import Any

from pydantic import BaseModel, Field, model_validator


class RemoteIdentity(BaseModel):
    """Authenticated Supabase user, as returned by ``/auth/v1/user``."""

    id: str
    email: str | None = None
    name: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    model_config = {"populate_by_name": True, "extra": "ignore"}

    @model_validator(mode="before")
    @classmethod
    def _lift_metadata_name(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("name"):
            metadata = data.get("user_metadata") or {}
            if isinstance(metadata, dict) and metadata.get("name"):
                data = {**data, "name": metadata["name"]}
        return data


class SyncResult(BaseModel):
    """Outcome of one push (or pull) run.

    ``success`` is settled by the orchestrator at the end of the run and is true
    only when no error was recorded.
    """

    success: bool = True
    items_synced: int = 0
    folders_synced: int = 0
    tags_synced: int = 0
    errors: list[str] = Field(default_factory=list)
    retryable_errors: list[str] = Field(default_factory=list)
    permanent_errors: list[str] = Field(default_factory=list)
    correlation_id: str | None = None
    started_at: datetime | None = None
    duration_seconds: float = 0.0
    not_implemented: bool = False


class LocalCounts(BaseModel):
    items: int = 0
    folders: int = 0
    tags: int = 0


class SyncStatus(BaseModel):
    """Read-only snapshot of authentication state and local table sizes.

    ``warnings`` lists every probe that failed and was reported as a default
    value, so a zero count can be told apart from an empty table.
    """

    is_authenticated: bool = False
    last_sync_at: datetime | None = None
    local_counts: LocalCounts = Field(default_factory=LocalCounts)
    warnings: list[str] = Field(default_factory=list)
