"""SQLite repository adapters."""

from stashbox.infrastructure.persistence.sqlite.repositories.library_repository import (
    SqliteLibraryRepositoryAdapter,
)

__all__ = ["SqliteLibraryRepositoryAdapter"]
