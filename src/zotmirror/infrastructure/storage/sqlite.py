"""SQLite storage implementation of the mirrored library."""

import json
import logging
import sqlite3
from collections.abc import Iterable, Iterator, Sequence
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Self

from zotmirror.core.constants import DEFAULT_WRITE_BATCH_SIZE
from zotmirror.core.exceptions import StorageError
from zotmirror.core.models import (
    AssociationKey,
    CollectionRow,
    GroupRow,
    ItemRow,
    ItemToCollectionRow,
    LanguageRow,
    StoredFileState,
)
from zotmirror.core.schema import (
    COLLECTION_COLUMNS,
    GROUP_COLUMNS,
    ITEM_COLUMNS,
    ITEM_FIELD_COLUMNS,
    ITEM_TO_COLLECTION_COLUMNS,
    LANGUAGE_COLUMNS,
)
from zotmirror.utils.datetime import format_sqlite_datetime
from zotmirror.utils.text import iter_batches

logger = logging.getLogger(__name__)

_ITEM_FIELDS_SQL = ",\n    ".join(f'"{name}" TEXT' for name in ITEM_FIELD_COLUMNS)

SCHEMA = f"""
CREATE TABLE IF NOT EXISTS "group" (
    "externalId" INTEGER PRIMARY KEY,
    "name" TEXT NOT NULL,
    "version" INTEGER NOT NULL DEFAULT 0,
    "type" TEXT NOT NULL,
    "description" TEXT,
    "url" TEXT,
    "numItems" INTEGER DEFAULT 0,
    "itemsVersion" INTEGER DEFAULT 0,
    "createdAt" TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    "updatedAt" TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS "language" (
    "name" TEXT PRIMARY KEY,
    "createdAt" TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    "updatedAt" TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS "item" (
    "key" TEXT PRIMARY KEY,
    "version" INTEGER DEFAULT 0,
    "itemType" TEXT NOT NULL,
    {_ITEM_FIELDS_SQL},
    "dateAdded" TIMESTAMP,
    "dateModified" TIMESTAMP,
    "fullTextPDF" TEXT,
    "PDFCoverPageImage" TEXT,
    "deleted" INTEGER DEFAULT 0,
    "languageName" TEXT REFERENCES "language"("name"),
    "groupExternalId" INTEGER REFERENCES "group"("externalId"),
    "parentItem" TEXT REFERENCES "item"("key"),
    "tags" TEXT,
    "collections" TEXT,
    "relations" TEXT,
    "createdAt" TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    "updatedAt" TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS "collection" (
    "key" TEXT PRIMARY KEY,
    "version" INTEGER DEFAULT 0,
    "name" TEXT,
    "groupExternalId" INTEGER REFERENCES "group"("externalId"),
    "parentCollection" TEXT REFERENCES "collection"("key"),
    "numCollections" INTEGER DEFAULT 0,
    "numItems" INTEGER DEFAULT 0,
    "relations" TEXT,
    "deleted" INTEGER DEFAULT 0,
    "createdAt" TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    "updatedAt" TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS "itemToCollection" (
    "itemKey" TEXT NOT NULL REFERENCES "item"("key"),
    "collectionKey" TEXT NOT NULL REFERENCES "collection"("key"),
    "createdAt" TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    "updatedAt" TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    PRIMARY KEY ("itemKey", "collectionKey")
);

CREATE TABLE IF NOT EXISTS "tag" (
    "name" TEXT PRIMARY KEY,
    "createdAt" TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    "updatedAt" TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS "itemToTag" (
    "itemKey" TEXT NOT NULL REFERENCES "item"("key"),
    "tagName" TEXT NOT NULL REFERENCES "tag"("name"),
    "createdAt" TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    "updatedAt" TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    PRIMARY KEY ("itemKey", "tagName")
);

CREATE INDEX IF NOT EXISTS idx_item_group ON "item"("groupExternalId");
CREATE INDEX IF NOT EXISTS idx_item_parent ON "item"("parentItem");
CREATE INDEX IF NOT EXISTS idx_collection_group ON "collection"("groupExternalId");
"""

# Columns stored as JSON text
_JSON_ARRAY_COLUMNS = ("tags", "collections")

# Never overwritten on conflict
_IMMUTABLE_COLUMNS = ("id", "createdAt")


def on_conflict_update_except(columns: Sequence[str], except_: Iterable[str] = ()) -> str:
    """Build the ``DO UPDATE SET`` clause for an upsert.

    Every column takes the incoming value except the identity/``createdAt``
    columns and ``except_``. ``updatedAt`` is refreshed unless excluded.
    """
    excluded = set(_IMMUTABLE_COLUMNS) | set(except_)
    assignments = [f'"{col}"=excluded."{col}"' for col in columns if col not in excluded and col != "updatedAt"]
    if "updatedAt" not in excluded:
        assignments.append('"updatedAt"=CURRENT_TIMESTAMP')
    return ", ".join(assignments)


def _encode(column: str, value: Any) -> Any:
    if value is None:
        return None
    if column in _JSON_ARRAY_COLUMNS or isinstance(value, (list, tuple, dict)):
        return json.dumps(value)
    if isinstance(value, datetime):
        return format_sqlite_datetime(value)
    if isinstance(value, bool):
        return int(value)
    return value


def _decode_row(row: sqlite3.Row) -> dict[str, Any]:
    data = dict(row)
    for column in _JSON_ARRAY_COLUMNS:
        if column in data and data[column] is not None:
            data[column] = json.loads(data[column])
    return data


class LibraryStorage:
    """SQLite storage for mirrored groups, items and collections."""

    def __init__(self, path: Path | str):
        self.path = Path(path)
        if str(path) != ":memory:":
            self.path.parent.mkdir(parents=True, exist_ok=True)
        self._conn: sqlite3.Connection | None = None

    def connect(self) -> sqlite3.Connection:
        """Get or create database connection."""
        if self._conn is None:
            self._conn = sqlite3.connect(str(self.path))
            self._conn.row_factory = sqlite3.Row
        return self._conn

    def initialize(self) -> None:
        """Initialize database schema."""
        with self._transaction() as conn:
            conn.executescript(SCHEMA)

    def close(self) -> None:
        """Close database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> Self:
        """Enter context manager."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        """Exit context manager and close resources."""
        self.close()

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        conn = self.connect()
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            raise StorageError(f"SQLite operation failed: {exc}") from exc

    def _upsert(
        self,
        table: str,
        columns: Sequence[str],
        conflict: Sequence[str],
        rows: Sequence[dict[str, Any]],
        except_: Iterable[str] = (),
    ) -> None:
        col_sql = ", ".join(f'"{c}"' for c in columns)
        placeholders = ", ".join("?" for _ in columns)
        target = ", ".join(f'"{c}"' for c in conflict)
        updates = on_conflict_update_except(columns, (*conflict, *except_))
        sql = f'INSERT INTO "{table}" ({col_sql}) VALUES ({placeholders}) ON CONFLICT({target}) DO UPDATE SET {updates}'
        params = [tuple(_encode(c, row.get(c)) for c in columns) for row in rows]
        with self._transaction() as conn:
            conn.executemany(sql, params)

    def _insert_ignore(self, table: str, columns: Sequence[str], rows: Sequence[dict[str, Any]]) -> None:
        col_sql = ", ".join(f'"{c}"' for c in columns)
        placeholders = ", ".join("?" for _ in columns)
        sql = f'INSERT INTO "{table}" ({col_sql}) VALUES ({placeholders}) ON CONFLICT DO NOTHING'
        params = [tuple(_encode(c, row.get(c)) for c in columns) for row in rows]
        with self._transaction() as conn:
            conn.executemany(sql, params)

    # Group helpers

    def save_groups(self, rows: Sequence[GroupRow]) -> None:
        """Upsert groups by external id, leaving the items version cursor alone."""
        if not rows:
            return
        columns = [c for c in GROUP_COLUMNS if c != "itemsVersion"]
        self._upsert("group", columns, ["externalId"], rows, except_=["itemsVersion"])

    def get_groups(self) -> list[dict[str, Any]]:
        """Return all stored groups."""
        cur = self.connect().execute('SELECT * FROM "group" ORDER BY "externalId"')
        return [dict(row) for row in cur]

    def items_versions(self) -> dict[str, int]:
        """Map of group external id (as string) to its items version cursor."""
        cur = self.connect().execute('SELECT "externalId", "itemsVersion" FROM "group"')
        return {str(row["externalId"]): row["itemsVersion"] or 0 for row in cur}

    def advance_items_version(self, external_id: int | str, version: int) -> None:
        """Move a group's cursor forward; it never decreases."""
        with self._transaction() as conn:
            conn.execute(
                """
                UPDATE "group"
                SET "itemsVersion" = MAX(COALESCE("itemsVersion", 0), ?), "updatedAt" = CURRENT_TIMESTAMP
                WHERE "externalId" = ?
                """,
                (int(version), int(external_id)),
            )

    # Language helpers

    def insert_languages(self, rows: Sequence[LanguageRow]) -> None:
        """Insert languages, ignoring names already present."""
        if rows:
            self._insert_ignore("language", LANGUAGE_COLUMNS, rows)

    def language_names(self) -> set[str]:
        cur = self.connect().execute('SELECT "name" FROM "language"')
        return {row["name"] for row in cur}

    # Item helpers

    def upsert_items(self, rows: Sequence[ItemRow], batch_size: int = DEFAULT_WRITE_BATCH_SIZE) -> None:
        """Upsert items by key in batches, in the given order."""
        for batch in iter_batches(rows, batch_size):
            self._upsert("item", ITEM_COLUMNS, ["key"], batch)

    def get_item(self, key: str) -> dict[str, Any] | None:
        """Get an item row by key."""
        cur = self.connect().execute('SELECT * FROM "item" WHERE "key" = ?', (key,))
        row = cur.fetchone()
        return _decode_row(row) if row else None

    def lookup_items(self, keys: Iterable[str]) -> list[dict[str, Any]]:
        """Get item rows for the given keys."""
        keys = list(keys)
        if not keys:
            return []
        placeholders = ",".join("?" for _ in keys)
        cur = self.connect().execute(f'SELECT * FROM "item" WHERE "key" IN ({placeholders})', keys)
        return [_decode_row(row) for row in cur]

    def file_states(self) -> dict[str, StoredFileState]:
        """Attachment columns of every stored item that has file content."""
        cur = self.connect().execute(
            """
            SELECT "key", "md5", "mtime", "filename", "url", "fullTextPDF", "PDFCoverPageImage"
            FROM "item" WHERE "md5" IS NOT NULL
            """
        )
        return {row["key"]: StoredFileState(**dict(row)) for row in cur}

    # Collection helpers

    def upsert_collections(self, rows: Sequence[CollectionRow], batch_size: int = DEFAULT_WRITE_BATCH_SIZE) -> None:
        """Upsert collections by key, in the given order."""
        for batch in iter_batches(rows, batch_size):
            self._upsert("collection", COLLECTION_COLUMNS, ["key"], batch)

    def collection_keys(self) -> set[str]:
        cur = self.connect().execute('SELECT "key" FROM "collection"')
        return {row["key"] for row in cur}

    def get_collection(self, key: str) -> dict[str, Any] | None:
        cur = self.connect().execute('SELECT * FROM "collection" WHERE "key" = ?', (key,))
        row = cur.fetchone()
        return dict(row) if row else None

    # Item-to-collection helpers

    def item_collections(self) -> dict[str, set[str]]:
        """Map of item key to the collection keys it is stored as belonging to."""
        memberships: dict[str, set[str]] = {}
        cur = self.connect().execute('SELECT "itemKey", "collectionKey" FROM "itemToCollection"')
        for row in cur:
            memberships.setdefault(row["itemKey"], set()).add(row["collectionKey"])
        return memberships

    def insert_item_collections(self, rows: Sequence[ItemToCollectionRow]) -> None:
        """Insert associations, ignoring pairs already present."""
        if rows:
            self._insert_ignore("itemToCollection", ITEM_TO_COLLECTION_COLUMNS, rows)

    def delete_item_collections(self, pairs: Iterable[AssociationKey]) -> None:
        """Delete associations by exact (itemKey, collectionKey) pairs."""
        pairs = list(pairs)
        if not pairs:
            return
        with self._transaction() as conn:
            conn.executemany(
                'DELETE FROM "itemToCollection" WHERE "itemKey" = ? AND "collectionKey" = ?',
                pairs,
            )

    def count(self, table: str) -> int:
        """Count rows in a table."""
        cur = self.connect().execute(f'SELECT COUNT(*) FROM "{table}"')
        return cur.fetchone()[0]


__all__ = ["LibraryStorage", "SCHEMA", "on_conflict_update_except"]
