"""Database session management for the local SQLite store.

``DatabaseSessionManager`` owns the peewee database, creates the schema and
runs blocking peewee calls off the event loop with a timeout and a retry on
``database is locked``.
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import peewee

from stashbox.db.models import ALL_MODELS, database_proxy

DB_OPERATION_TIMEOUT = 30.0
DB_MAX_RETRIES = 3


class RowSqliteDatabase(peewee.SqliteDatabase):
    """SQLite database subclass that configures the row factory for dict-like access."""

    def _connect(self) -> sqlite3.Connection:
        conn = super()._connect()
        conn.row_factory = sqlite3.Row
        return conn


@dataclass
class DatabaseSessionManager:
    """Peewee-backed database session manager.

    Attributes:
        path: Path to the SQLite database file, or ":memory:" for in-memory
        operation_timeout: Default timeout for database operations in seconds
        max_retries: Maximum retries when the database is locked or busy
    """

    path: str
    operation_timeout: float = field(default=DB_OPERATION_TIMEOUT)
    max_retries: int = field(default=DB_MAX_RETRIES)
    _logger: logging.Logger = field(default_factory=lambda: logging.getLogger(__name__))
    _database: peewee.SqliteDatabase = field(init=False)

    def __post_init__(self) -> None:
        if self.path != ":memory:":
            Path(self.path).parent.mkdir(parents=True, exist_ok=True)

        self._database = RowSqliteDatabase(
            self.path,
            pragmas={
                "journal_mode": "wal",
                "synchronous": "normal",
                "foreign_keys": 1,
            },
            check_same_thread=False,
        )
        database_proxy.initialize(self._database)

    @property
    def database(self) -> peewee.SqliteDatabase:
        return self._database

    def connection_context(self) -> Any:
        return self._database.connection_context()

    def migrate(self) -> None:
        """Create tables if they do not exist yet."""
        with self._database.connection_context(), self._database.bind_ctx(ALL_MODELS):
            self._database.create_tables(ALL_MODELS, safe=True)
        self._logger.info("db_migrated", extra={"path": self._mask_path(self.path)})

    async def _safe_db_operation(
        self,
        operation: Any,
        *args: Any,
        timeout: float | None = None,
        operation_name: str = "database_operation",
        **kwargs: Any,
    ) -> Any:
        """Execute a blocking database operation in a worker thread.

        Raises:
            TimeoutError: If the operation exceeds ``timeout``
            peewee.OperationalError: If the database stays locked after retries
        """
        if timeout is None:
            timeout = self.operation_timeout

        def _op_wrapper() -> Any:
            with self._database.connection_context():
                return operation(*args, **kwargs)

        retries = 0
        while True:
            try:
                return await asyncio.wait_for(asyncio.to_thread(_op_wrapper), timeout=timeout)
            except TimeoutError:
                self._logger.exception(
                    "db_operation_timeout",
                    extra={"operation": operation_name, "timeout": timeout},
                )
                raise
            except peewee.OperationalError as exc:
                error_msg = str(exc).lower()
                if ("locked" in error_msg or "busy" in error_msg) and retries < self.max_retries:
                    retries += 1
                    wait_time = 0.1 * (2**retries)
                    self._logger.warning(
                        "db_locked_retrying",
                        extra={
                            "operation": operation_name,
                            "retry": retries,
                            "max_retries": self.max_retries,
                            "wait_time": wait_time,
                        },
                    )
                    await asyncio.sleep(wait_time)
                    continue
                self._logger.exception(
                    "db_operational_error",
                    extra={"operation": operation_name, "retries": retries, "error": str(exc)},
                )
                raise

    def close(self) -> None:
        if not self._database.is_closed():
            self._database.close()

    @staticmethod
    def _mask_path(path: str) -> str:
        try:
            p = Path(path)
            return f".../{p.parent.name}/{p.name}" if p.parent.name else p.name
        except (TypeError, ValueError):
            return "..."
