"""Error types and error collection helpers for sync results."""

from __future__ import annotations

from typing import TYPE_CHECKING

from stashbox.adapters.supabase.sync.constants import (
    PHASE_ERROR_TEMPLATE,
    RECORD_ERROR_TEMPLATE,
)

if TYPE_CHECKING:
    from stashbox.adapters.supabase.models import SyncResult


class NotAuthenticatedError(Exception):
    """No signed-in identity could be resolved; nothing may be pushed."""


class ProfileProvisioningError(Exception):
    """The remote profile row for the identity could not be checked or created."""


def describe_cause(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


def format_record_error(entity: str, record_id: str, exc: BaseException) -> str:
    return RECORD_ERROR_TEMPLATE.format(
        entity=entity, record_id=record_id, cause=describe_cause(exc)
    )


def format_phase_error(phase: str, exc: BaseException) -> str:
    return PHASE_ERROR_TEMPLATE.format(phase=phase, cause=describe_cause(exc))


def record_error(result: SyncResult, message: str, retryable: bool) -> None:
    """Append ``message`` once; ``errors`` stays the union of the two classified lists."""
    if message in result.errors:
        return
    result.errors.append(message)
    if retryable:
        result.retryable_errors.append(message)
    else:
        result.permanent_errors.append(message)
