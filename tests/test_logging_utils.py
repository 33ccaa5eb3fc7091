"""Tests for JSON log formatting helpers."""

from __future__ import annotations

import json
import logging
import sys

from stashbox.core.logging_utils import (
    EnhancedJsonFormatter,
    generate_correlation_id,
    truncate_log_content,
)


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="stashbox.adapters.supabase.sync.service",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg="cloud_sync_complete",
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_sync_fields_are_grouped() -> None:
    formatter = EnhancedJsonFormatter(include_location=False)

    payload = json.loads(
        formatter.format(
            _record(correlation_id="abc123", items_synced=3, error_count=0, user_id="u1")
        )
    )

    assert payload["message"] == "cloud_sync_complete"
    assert payload["level"] == "INFO"
    assert payload["correlation_id"] == "abc123"
    assert payload["sync"] == {"items_synced": 3, "error_count": 0}
    assert payload["extra"] == {"user_id": "u1"}
    assert "module" not in payload


def test_exception_details_are_included() -> None:
    formatter = EnhancedJsonFormatter()
    try:
        raise OSError("disk full")
    except OSError:
        record = _record()
        record.exc_info = sys.exc_info()

    payload = json.loads(formatter.format(record))

    assert payload["exception"]["type"] == "OSError"
    assert payload["exception"]["message"] == "disk full"
    assert payload["line"] == 10


def test_correlation_ids_are_short_and_unique() -> None:
    first, second = generate_correlation_id(), generate_correlation_id()

    assert len(first) == 12
    assert first != second


def test_truncate_log_content() -> None:
    assert truncate_log_content(None) is None
    assert truncate_log_content("short") == "short"
    assert truncate_log_content("x" * 20, max_length=5) == "xxxxx... [truncated]"
