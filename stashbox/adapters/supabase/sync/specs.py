"""Table-driven description of what gets pushed and how.

One ``EntitySpec`` per top-level record type and one ``RelationSpec`` per
junction table. The syncers are generic; everything entity-specific lives here.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from stashbox.adapters.supabase.sync import constants
from stashbox.core.time_utils import to_iso

_TIMESTAMP_FIELDS = frozenset({"created_at", "updated_at", "ingested_at"})


def _copy_fields(record: dict[str, Any], fields: tuple[str, ...]) -> dict[str, Any]:
    payload: dict[str, Any] = {}
    for name in fields:
        value = record.get(name)
        payload[name] = to_iso(value) if name in _TIMESTAMP_FIELDS else value
    return payload


@dataclass(frozen=True)
class EntitySpec:
    """A top-level record type keyed by its own ``id``.

    Attributes:
        entity: Label used in error messages and logs
        table: Local table to read
        collection: Remote collection to upsert into
        fields: Local fields copied 1:1 into the payload
        server_only_fields: Remote columns computed server-side, always sent as null
    """

    entity: str
    table: str
    collection: str
    fields: tuple[str, ...]
    server_only_fields: tuple[str, ...] = ()
    conflict_key: str = constants.PRIMARY_KEY

    def record_id(self, record: dict[str, Any]) -> str:
        return str(record.get(constants.PRIMARY_KEY))

    def build_payload(self, record: dict[str, Any], owner_id: str) -> dict[str, Any]:
        payload = _copy_fields(record, self.fields)
        payload[constants.OWNER_FIELD] = owner_id
        for name in self.server_only_fields:
            payload[name] = None
        return payload


@dataclass(frozen=True)
class RelationSpec:
    """A junction table keyed by the pair of ids it links."""

    entity: str
    table: str
    collection: str
    key_fields: tuple[str, str]
    fields: tuple[str, ...] = ("created_at",)

    @property
    def conflict_key(self) -> str:
        return ",".join(self.key_fields)

    def record_id(self, record: dict[str, Any]) -> str:
        return "/".join(str(record.get(name)) for name in self.key_fields)

    def build_payload(self, record: dict[str, Any]) -> dict[str, Any]:
        return _copy_fields(record, (*self.key_fields, *self.fields))


FOLDER_SPEC = EntitySpec(
    entity="folder",
    table=constants.FOLDERS,
    collection=constants.FOLDERS,
    fields=("id", "name", "description", "color", "created_at", "updated_at"),
)

TAG_SPEC = EntitySpec(
    entity="tag",
    table=constants.TAGS,
    collection=constants.TAGS,
    fields=("id", "name", "color", "created_at", "updated_at"),
)

ITEM_SPEC = EntitySpec(
    entity="item",
    table=constants.ITEMS,
    collection=constants.ITEMS,
    fields=(
        "id",
        "title",
        "description",
        "content_url",
        "thumbnail_url",
        "source",
        "platform",
        "created_at",
        "ingested_at",
        "updated_at",
    ),
    server_only_fields=("items_embedding",),
)

ITEM_FOLDER_SPEC = RelationSpec(
    entity="item-folder link",
    table=constants.ITEM_FOLDERS,
    collection=constants.ITEM_FOLDERS,
    key_fields=("item_id", "folder_id"),
)

ITEM_TAG_SPEC = RelationSpec(
    entity="item-tag link",
    table=constants.ITEM_TAGS,
    collection=constants.ITEM_TAGS,
    key_fields=("item_id", "tag_id"),
)
