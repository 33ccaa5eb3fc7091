from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


class DatabaseConfig(BaseModel):
    """Local SQLite access tuning."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    operation_timeout: float = Field(default=30.0, validation_alias="DB_OPERATION_TIMEOUT")
    max_retries: int = Field(default=3, validation_alias="DB_MAX_RETRIES")

    @field_validator("operation_timeout", mode="before")
    @classmethod
    def _validate_timeout(cls, value: Any) -> float:
        try:
            parsed = float(str(value if value not in (None, "") else 30.0))
        except ValueError as exc:
            msg = "Database operation timeout must be a valid number"
            raise ValueError(msg) from exc
        if parsed <= 0 or parsed > 3600:
            msg = "Database operation timeout must be between 0 and 3600 seconds"
            raise ValueError(msg)
        return parsed

    @field_validator("max_retries", mode="before")
    @classmethod
    def _validate_retries(cls, value: Any, info: ValidationInfo) -> int:
        default = cls.model_fields[info.field_name].default
        try:
            parsed = int(str(value if value not in (None, "") else default))
        except ValueError as exc:
            msg = "Database max retries must be a valid integer"
            raise ValueError(msg) from exc
        if parsed < 0 or parsed > 10:
            msg = "Database max retries must be between 0 and 10"
            raise ValueError(msg)
        return parsed
