"""Map remote Zotero records onto flat destination rows.

Each entity has an explicit field-transform table. Columns without a
transform are copied verbatim when the remote ``data`` payload carries them;
columns the remote record does not carry are left out of the row and end up
NULL on write unless the attachment pipeline fills them. Columns that must
never be NULL (the `deleted` flags) always get an explicit transform.
"""

import json
from collections.abc import Callable
from typing import Any

from zotmirror.core.models import CollectionRow, GroupRow, ItemRow, RemoteRecord
from zotmirror.core.schema import COLLECTION_COLUMNS, ITEM_COLUMNS
from zotmirror.utils.datetime import iso_to_datetime

# Sentinel: the column is not set by the mapper
UNSET: Any = object()

Transform = Callable[[dict[str, Any]], Any]


def _relations(data: dict[str, Any]) -> Any:
    relations = data.get("relations")
    if isinstance(relations, dict) and relations:
        return json.dumps(relations)
    return UNSET


def _tags(data: dict[str, Any]) -> list[str]:
    return [tag["tag"] for tag in data.get("tags") or [] if isinstance(tag, dict) and "tag" in tag]


def _timestamp(field: str) -> Transform:
    def transform(data: dict[str, Any]) -> Any:
        parsed = iso_to_datetime(data.get(field))
        return parsed if parsed is not None else UNSET

    return transform


def _reference(field: str) -> Transform:
    # Zotero sends `false` for "no parent"; only a non-empty key is a reference
    def transform(data: dict[str, Any]) -> Any:
        value = data.get(field)
        return value if isinstance(value, str) and value else UNSET

    return transform


def _flag(field: str) -> Transform:
    def transform(data: dict[str, Any]) -> int:
        return 1 if data.get(field) else 0

    return transform


ITEM_TRANSFORMS: dict[str, Transform] = {
    "relations": _relations,
    "tags": _tags,
    "dateAdded": _timestamp("dateAdded"),
    "dateModified": _timestamp("dateModified"),
    "parentItem": _reference("parentItem"),
    "deleted": _flag("deleted"),
}

COLLECTION_TRANSFORMS: dict[str, Transform] = {
    "relations": _relations,
    "parentCollection": _reference("parentCollection"),
    "deleted": _flag("deleted"),
}

# Set from the record envelope rather than the data payload
_ITEM_IDENTITY = ("key", "version", "groupExternalId", "languageName")
_COLLECTION_IDENTITY = ("key", "version", "groupExternalId", "numCollections", "numItems")


def _apply(row: dict[str, Any], columns: tuple[str, ...], transforms: dict[str, Transform], data: dict[str, Any]) -> None:
    for column in columns:
        transform = transforms.get(column)
        if transform is not None:
            value = transform(data)
        else:
            value = data.get(column, UNSET)
        if value is not UNSET:
            row[column] = value


def _library_id(record: RemoteRecord) -> int | None:
    library = record.get("library")
    if not isinstance(library, dict) or library.get("id") is None:
        return None
    try:
        return int(library["id"])
    except (TypeError, ValueError):
        return None


def language_of(record: RemoteRecord) -> str | None:
    """Return the record's non-empty language string, if any."""
    language = (record.get("data") or {}).get("language")
    return language if isinstance(language, str) and language else None


def map_item(record: RemoteRecord) -> ItemRow:
    """Convert a type-normalized item record into an ``item`` row."""
    data = record.get("data") or {}
    row: ItemRow = {
        "key": record.get("key") or data.get("key"),
        "version": record.get("version", data.get("version", 0)),
        "groupExternalId": _library_id(record),
    }
    columns = tuple(c for c in ITEM_COLUMNS if c not in _ITEM_IDENTITY)
    _apply(row, columns, ITEM_TRANSFORMS, data)
    if language := language_of(record):
        row["languageName"] = language
    return row


def map_collection(record: RemoteRecord) -> CollectionRow:
    """Convert a collection record into a ``collection`` row."""
    data = record.get("data") or {}
    meta = record.get("meta") or {}
    row: CollectionRow = {
        "key": record.get("key") or data.get("key"),
        "version": record.get("version", data.get("version", 0)),
        "groupExternalId": _library_id(record),
        "numCollections": meta.get("numCollections", 0),
        "numItems": meta.get("numItems", 0),
    }
    columns = tuple(c for c in COLLECTION_COLUMNS if c not in _COLLECTION_IDENTITY)
    _apply(row, columns, COLLECTION_TRANSFORMS, data)
    return row


def map_group(record: RemoteRecord) -> GroupRow:
    """Convert a group record into a ``group`` row (cursor excluded)."""
    data = record.get("data") or {}
    meta = record.get("meta") or {}
    return {
        "externalId": int(record.get("id", data.get("id"))),
        "version": record.get("version", 0),
        "name": data.get("name") or "",
        "type": data.get("type") or "",
        "description": data.get("description"),
        "url": data.get("url"),
        "numItems": meta.get("numItems") or 0,
    }


__all__ = [
    "ITEM_TRANSFORMS",
    "COLLECTION_TRANSFORMS",
    "map_item",
    "map_collection",
    "map_group",
    "language_of",
]
