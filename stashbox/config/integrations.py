from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)


class SupabaseConfig(BaseModel):
    """Supabase connection used by the cloud push."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    enabled: bool = Field(default=False, validation_alias="SUPABASE_ENABLED")
    api_url: str = Field(default="", validation_alias="SUPABASE_URL")
    anon_key: str = Field(default="", validation_alias="SUPABASE_ANON_KEY")
    access_token: str = Field(default="", validation_alias="SUPABASE_ACCESS_TOKEN")
    timeout_sec: float = Field(default=30.0, validation_alias="SUPABASE_TIMEOUT_SEC")
    max_retries: int = Field(default=3, validation_alias="SUPABASE_MAX_RETRIES")

    @field_validator("api_url", mode="before")
    @classmethod
    def _validate_api_url(cls, value: Any) -> str:
        url = str(value or "").strip()
        if not url:
            return ""
        if not url.startswith(("http://", "https://")):
            msg = "Supabase URL must start with http:// or https://"
            raise ValueError(msg)
        return url.rstrip("/")

    @field_validator("anon_key", "access_token", mode="before")
    @classmethod
    def _validate_key(cls, value: Any) -> str:
        if value in (None, ""):
            return ""
        key = str(value).strip()
        if len(key) > 4096:
            msg = "Supabase key appears to be too long"
            raise ValueError(msg)
        return key

    @field_validator("timeout_sec", mode="before")
    @classmethod
    def _validate_timeout(cls, value: Any) -> float:
        try:
            parsed = float(str(value if value not in (None, "") else 30.0))
        except ValueError as exc:
            msg = "Supabase timeout must be a valid number"
            raise ValueError(msg) from exc
        if parsed <= 0 or parsed > 300:
            msg = "Supabase timeout must be between 0 and 300 seconds"
            raise ValueError(msg)
        return parsed

    @field_validator("max_retries", mode="before")
    @classmethod
    def _validate_max_retries(cls, value: Any) -> int:
        try:
            parsed = int(str(value if value not in (None, "") else 3))
        except ValueError as exc:
            msg = "Supabase max retries must be a valid integer"
            raise ValueError(msg) from exc
        if parsed < 0 or parsed > 10:
            msg = "Supabase max retries must be between 0 and 10"
            raise ValueError(msg)
        return parsed

    @property
    def is_configured(self) -> bool:
        return bool(self.api_url and self.anon_key and self.access_token)


class CloudSyncConfig(BaseModel):
    """Behaviour of the local -> cloud push."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    ensure_profile: bool = Field(default=True, validation_alias="CLOUD_SYNC_ENSURE_PROFILE")
