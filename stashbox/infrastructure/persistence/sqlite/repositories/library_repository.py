"""SQLite implementation of the read surface the cloud push consumes.

The push engine only needs two queries per table: the full ordered snapshot and
a row count. Both go through the session manager so they run off the event loop.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import peewee

from stashbox.db.models import MODELS_BY_TABLE, model_to_dict
from stashbox.infrastructure.persistence.sqlite.base import SqliteBaseRepository

if TYPE_CHECKING:
    from stashbox.db.models import BaseModel


class SqliteLibraryRepositoryAdapter(SqliteBaseRepository):
    """Read-only access to the local items/folders/tags tables and their links."""

    @staticmethod
    def _model_for(table: str) -> type[BaseModel]:
        model = MODELS_BY_TABLE.get(table)
        if model is None:
            msg = f"Unknown local table: {table!r}"
            raise ValueError(msg)
        return model

    async def async_fetch_all(self, table: str) -> list[dict[str, Any]]:
        """Return every row of ``table`` as a dict, oldest first.

        Rows sharing a ``created_at`` are ordered by primary key so the push order
        is reproducible between runs.
        """
        model = self._model_for(table)

        def _query() -> list[dict[str, Any]]:
            pk = model._meta.primary_key
            if isinstance(pk, peewee.CompositeKey):
                tie_breakers = [model._meta.fields[name] for name in pk.field_names]
            else:
                tie_breakers = [pk]
            query = model.select().order_by(model.created_at.asc(), *tie_breakers)
            return [row for row in (model_to_dict(obj) for obj in query) if row is not None]

        return await self._execute(_query, operation_name=f"fetch_all_{table}")

    async def async_count(self, table: str) -> int:
        model = self._model_for(table)

        def _query() -> int:
            return model.select().count()

        return await self._execute(_query, operation_name=f"count_{table}")
