"""Retry utilities for handling transient errors with exponential backoff.

The sync engine itself never retries a record; these helpers classify failures
for the caller and drive the retries the remote client performs on read calls.
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

T = TypeVar("T")

_TRANSIENT_KEYWORDS = (
    "timeout",
    "timed out",
    "connection",
    "network",
    "rate limit",
    "too many requests",
    "temporary",
    "unavailable",
    "bad gateway",
    "gateway timeout",
    "try again",
)

_TRANSIENT_TYPES = (
    "timeout",
    "connecterror",
    "connectionerror",
    "networkerror",
    "readerror",
    "writeerror",
    "retryableerror",
)


def is_transient_error(error: BaseException) -> bool:
    """Determine if an error is transient and worth retrying.

    Transient errors include:
    - Network-related errors (connection, timeout, DNS)
    - Rate limiting errors
    - Temporary server errors (5xx)
    """
    status_code = getattr(error, "status_code", None)
    if status_code is None:
        status_code = getattr(getattr(error, "response", None), "status_code", None)
    # An HTTP status is authoritative; message wording only matters without one.
    if isinstance(status_code, int):
        return status_code in (408, 429) or status_code >= 500

    error_str = str(error).lower()
    if any(keyword in error_str for keyword in _TRANSIENT_KEYWORDS):
        return True

    exception_type = type(error).__name__.lower()
    return any(exc_type in exception_type for exc_type in _TRANSIENT_TYPES)


def calculate_delay(attempt: int, base_delay: float, max_delay: float, jitter: float) -> float:
    """Exponential backoff with proportional random jitter.

    Args:
        attempt: Current attempt number (0-indexed)
        base_delay: Base delay in seconds
        max_delay: Maximum delay in seconds
        jitter: Jitter factor (0.1 = 10% random variation)
    """
    delay = min(base_delay * (2**attempt), max_delay)
    return delay + delay * jitter * random.random()


async def retry_with_backoff(
    func: Callable[[], Awaitable[T]],
    *,
    should_retry: Callable[[Exception], bool] = is_transient_error,
    max_retries: int = 3,
    base_delay: float = 0.5,
    max_delay: float = 10.0,
    jitter: float = 0.1,
    operation_name: str = "operation",
) -> T:
    """Await ``func`` and retry it while ``should_retry`` accepts the raised error.

    The last error is re-raised once retries are exhausted or the error is not
    retryable.
    """
    attempt = 0
    while True:
        try:
            return await func()
        except Exception as exc:
            if attempt >= max_retries or not should_retry(exc):
                if attempt:
                    logger.warning(
                        "retry_exhausted",
                        extra={
                            "operation": operation_name,
                            "attempts": attempt + 1,
                            "error": str(exc),
                        },
                    )
                raise

            delay = calculate_delay(attempt, base_delay, max_delay, jitter)
            logger.debug(
                "retry_attempt",
                extra={
                    "operation": operation_name,
                    "attempt": attempt + 1,
                    "max_retries": max_retries,
                    "delay_seconds": round(delay, 2),
                    "error": str(exc),
                },
            )
            await asyncio.sleep(delay)
            attempt += 1
