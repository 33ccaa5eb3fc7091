from __future__ import annotations

from datetime import UTC, datetime


def utc_now() -> datetime:
    """Return a timezone-aware UTC datetime."""
    return datetime.now(UTC)


def to_iso(value: datetime | str | None) -> str | None:
    """Render a timestamp the way the remote store expects it.

    Naive datetimes are assumed to be UTC, matching how the local store writes them.
    Strings are passed through untouched.
    """
    if value is None or isinstance(value, str):
        return value
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.isoformat()
