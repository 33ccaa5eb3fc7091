from __future__ import annotations

import datetime as dt
import json
import logging
import os
import sys
import uuid
from typing import Any

from loguru import logger as loguru_logger

UTC = dt.UTC

# Attributes every LogRecord carries; anything else arrived through ``extra=``.
_STANDARD_FIELDS = frozenset(
    {
        "args",
        "msg",
        "name",
        "levelno",
        "levelname",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
        "getMessage",
        "message",
    }
)

# Extra fields grouped under "sync" in JSON output.
_SYNC_FIELDS = frozenset(
    {
        "folders_synced",
        "tags_synced",
        "items_synced",
        "errors",
        "error_count",
        "duration_seconds",
        "phase",
        "entity",
        "record_id",
    }
)


class EnhancedJsonFormatter(logging.Formatter):
    """JSON formatter that splits ``extra`` fields into sync counters and everything else."""

    def __init__(self, include_location: bool = True, include_process_info: bool = False):
        super().__init__()
        self.include_location = include_location
        self.include_process_info = include_process_info
        self.hostname = os.uname().nodename if hasattr(os, "uname") else "unknown"

    def format(self, record: logging.LogRecord) -> str:
        base: dict[str, Any] = {
            "timestamp": dt.datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "hostname": self.hostname,
        }

        if self.include_location:
            base.update(
                {
                    "module": record.module,
                    "function": record.funcName,
                    "line": record.lineno,
                }
            )

        if self.include_process_info:
            base.update(
                {
                    "process": record.process,
                    "thread": record.thread,
                    "thread_name": getattr(record, "threadName", "MainThread"),
                }
            )

        if record.exc_info:
            base["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": self.formatException(record.exc_info),
            }

        extra_fields: dict[str, Any] = {}
        sync_fields: dict[str, Any] = {}
        for key, value in record.__dict__.items():
            if key.startswith("_") or key in _STANDARD_FIELDS or key in base:
                continue
            if key == "correlation_id":
                continue
            if key in _SYNC_FIELDS:
                sync_fields[key] = value
            else:
                extra_fields[key] = value

        if sync_fields:
            base["sync"] = sync_fields
        if extra_fields:
            base["extra"] = extra_fields

        if hasattr(record, "correlation_id"):
            base["correlation_id"] = record.correlation_id

        return json.dumps(
            base, ensure_ascii=False, default=self._json_serializer, separators=(",", ":")
        )

    def _json_serializer(self, obj: Any) -> str:
        if isinstance(obj, dt.datetime):
            return obj.isoformat()
        if hasattr(obj, "__dict__"):
            return f"<{obj.__class__.__name__}>"
        return str(obj)


class _InterceptHandler(logging.Handler):
    """Forward stdlib records into loguru, keeping ``extra`` fields bound."""

    def emit(self, record: logging.LogRecord) -> None:
        level: int | str
        try:
            level = loguru_logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        extra = {
            key: value
            for key, value in record.__dict__.items()
            if not key.startswith("_") and key not in _STANDARD_FIELDS
        }
        loguru_logger.bind(**extra).opt(depth=6, exception=record.exc_info).log(
            level, record.getMessage()
        )


def setup_json_logging(
    level: str = "INFO",
    *,
    use_loguru: bool = False,
    include_location: bool = True,
    log_file: str | None = None,
) -> None:
    """Configure JSON logging for command-line entry points.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        use_loguru: Route stdlib records through loguru sinks instead of a stdlib handler
        include_location: Include module/function/line information
        log_file: Optional log file path
    """
    lvl = getattr(logging, level.upper(), logging.INFO)
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(lvl)

    if use_loguru:
        loguru_logger.remove()
        loguru_logger.add(sys.stderr, level=level.upper(), serialize=True, backtrace=False)
        if log_file:
            loguru_logger.add(
                log_file,
                level=level.upper(),
                serialize=True,
                rotation="50 MB",
                retention="14 days",
            )
        root.addHandler(_InterceptHandler())
    else:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(EnhancedJsonFormatter(include_location=include_location))
        root.addHandler(handler)
        if log_file:
            from logging.handlers import RotatingFileHandler

            file_handler = RotatingFileHandler(log_file, maxBytes=50 * 1024 * 1024, backupCount=5)
            file_handler.setFormatter(EnhancedJsonFormatter(include_location=include_location))
            root.addHandler(file_handler)

    for noisy_logger in ("httpx", "httpcore", "peewee"):
        logging.getLogger(noisy_logger).setLevel(max(lvl, logging.WARNING))


def generate_correlation_id() -> str:
    """Generate a short correlation ID for tracing one sync run across logs."""
    return uuid.uuid4().hex[:12]


def truncate_log_content(content: str | None, max_length: int = 300) -> str | None:
    """Truncate large content (e.g. error bodies) for logs and error messages."""
    if not content:
        return content
    if len(content) <= max_length:
        return content
    return content[:max_length] + "... [truncated]"


__all__ = [
    "EnhancedJsonFormatter",
    "generate_correlation_id",
    "setup_json_logging",
    "truncate_log_content",
]
