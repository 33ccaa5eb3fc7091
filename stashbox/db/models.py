"""Peewee ORM models for the local capture library."""

from __future__ import annotations

import datetime as _dt
import uuid
from typing import Any

import peewee

from stashbox.core.time_utils import utc_now

# A proxy that will be initialised with the concrete database instance at runtime.
database_proxy: peewee.Database = peewee.DatabaseProxy()

ITEM_SOURCES = ("shared_url", "photo_scan")
_SOURCE_CHECK = "source IN ({})".format(", ".join(f"'{source}'" for source in ITEM_SOURCES))


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> _dt.datetime:
    return utc_now()


class BaseModel(peewee.Model):
    """Base Peewee model bound to the lazily initialised database proxy."""

    def save(self, *args: Any, **kwargs: Any) -> int:
        """Keep updated_at current on every save."""
        if "updated_at" in self._meta.fields:
            self.updated_at = _utcnow()
        return super().save(*args, **kwargs)

    class Meta:
        database = database_proxy
        legacy_table_names = False


class Item(BaseModel):
    id = peewee.TextField(primary_key=True, default=_new_id)
    title = peewee.TextField()
    description = peewee.TextField(null=True)
    content_url = peewee.TextField(null=True)
    thumbnail_url = peewee.TextField(null=True)
    source = peewee.TextField(constraints=[peewee.Check(_SOURCE_CHECK)])
    platform = peewee.TextField(null=True)
    created_at = peewee.DateTimeField(default=_utcnow, index=True)
    ingested_at = peewee.DateTimeField(default=_utcnow)
    updated_at = peewee.DateTimeField(default=_utcnow)

    class Meta:
        table_name = "items"


class Folder(BaseModel):
    id = peewee.TextField(primary_key=True, default=_new_id)
    name = peewee.TextField(index=True)
    description = peewee.TextField(null=True)
    color = peewee.TextField(null=True)
    created_at = peewee.DateTimeField(default=_utcnow)
    updated_at = peewee.DateTimeField(default=_utcnow)

    class Meta:
        table_name = "folders"


class Tag(BaseModel):
    id = peewee.TextField(primary_key=True, default=_new_id)
    name = peewee.TextField(unique=True)
    color = peewee.TextField(null=True)
    created_at = peewee.DateTimeField(default=_utcnow)
    updated_at = peewee.DateTimeField(default=_utcnow)

    class Meta:
        table_name = "tags"


class ItemFolder(BaseModel):
    item = peewee.ForeignKeyField(
        Item, column_name="item_id", backref="folder_links", on_delete="CASCADE"
    )
    folder = peewee.ForeignKeyField(
        Folder, column_name="folder_id", backref="item_links", on_delete="CASCADE"
    )
    created_at = peewee.DateTimeField(default=_utcnow)

    class Meta:
        table_name = "item_folders"
        primary_key = peewee.CompositeKey("item", "folder")


class ItemTag(BaseModel):
    item = peewee.ForeignKeyField(
        Item, column_name="item_id", backref="tag_links", on_delete="CASCADE"
    )
    tag = peewee.ForeignKeyField(
        Tag, column_name="tag_id", backref="item_links", on_delete="CASCADE"
    )
    created_at = peewee.DateTimeField(default=_utcnow)

    class Meta:
        table_name = "item_tags"
        primary_key = peewee.CompositeKey("item", "tag")


ALL_MODELS: tuple[type[BaseModel], ...] = (
    Item,
    Folder,
    Tag,
    ItemFolder,
    ItemTag,
)

MODELS_BY_TABLE: dict[str, type[BaseModel]] = {
    model._meta.table_name: model for model in ALL_MODELS
}


def model_to_dict(model: BaseModel | None) -> dict[str, Any] | None:
    """Convert a Peewee model instance to a plain dictionary keyed by column name."""
    if model is None:
        return None
    data: dict[str, Any] = {}
    for field in model._meta.sorted_fields:
        if isinstance(field, peewee.ForeignKeyField):
            data[field.column_name] = model.__data__.get(field.name)
        else:
            data[field.column_name] = getattr(model, field.name)
    return data
