from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable

    from stashbox.db.session import DatabaseSessionManager


class SqliteBaseRepository:
    """Base repository for SQLite implementations."""

    def __init__(self, session_manager: DatabaseSessionManager) -> None:
        self._session = session_manager

    async def _execute(
        self,
        operation: Callable[..., Any],
        *args: Any,
        timeout: float | None = None,
        operation_name: str = "repository_operation",
        **kwargs: Any,
    ) -> Any:
        """Run a blocking peewee callable through the session manager."""
        return await self._session._safe_db_operation(
            operation,
            *args,
            timeout=timeout,
            operation_name=operation_name,
            **kwargs,
        )
