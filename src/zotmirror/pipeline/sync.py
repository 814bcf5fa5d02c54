"""Sync orchestration: one incremental pass per group."""

import logging
from collections.abc import Mapping, Sequence
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

from zotmirror.config.settings import Settings, SyncConfig
from zotmirror.core.models import (
    AssociationKey,
    CollectionRow,
    ItemRow,
    ItemToCollectionRow,
    LanguageRow,
    RemoteRecord,
)
from zotmirror.core.protocols import RemoteLibrary
from zotmirror.infrastructure.storage import LibraryStorage
from zotmirror.utils.snapshots import write_snapshot

from .attachments import AttachmentJob, AttachmentPipeline, AttachmentStatus, qualifies
from .hierarchy import order_collections
from .mapping import language_of, map_collection, map_group, map_item
from .membership import MembershipReconciler
from .normalize import normalize_item_type

logger = logging.getLogger(__name__)


@dataclass
class SyncStats:
    """Counters from one group sync pass."""

    group_id: str
    items: int = 0
    collections: int = 0
    languages: int = 0
    associations_inserted: int = 0
    associations_deleted: int = 0
    unknown_types: int = 0
    malformed_records: int = 0
    unresolved_memberships: int = 0
    malformed_chunks: int = 0
    hierarchy_cycles: int = 0
    attachments_done: int = 0
    attachments_skipped: int = 0
    attachments_failed: int = 0
    items_version: int | None = None

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


class SyncOrchestrator:
    """Mirror remote groups, items and collections into the relational store.

    Args:
        storage: Destination store.
        library: Remote API used for groups, items and collections.
        attachments: Attachment pipeline; None disables PDF archiving.
        config: Batch sizes, snapshot settings.
    """

    def __init__(
        self,
        storage: LibraryStorage,
        library: RemoteLibrary,
        attachments: AttachmentPipeline | None,
        config: SyncConfig | None = None,
    ):
        self.storage = storage
        self.library = library
        self.attachments = attachments
        self.config = config or SyncConfig()

    @classmethod
    def from_settings(cls, settings: Settings, base_dir: Path | str = ".") -> "SyncOrchestrator":
        """Wire the default Zotero, SQLite, Supabase and PyMuPDF implementations."""
        from zotmirror.infrastructure.object_store import SupabaseObjectStore
        from zotmirror.infrastructure.pdf import PdfExtractor
        from zotmirror.sources.zotero import ZoteroClient

        base = Path(base_dir)
        config = settings.sync.model_copy(
            update={
                "scratch_dir": str(base / settings.sync.scratch_dir),
                "snapshot_dir": str(base / settings.sync.snapshot_dir),
            }
        )
        storage = LibraryStorage(base / settings.database.path)
        library = ZoteroClient(settings.zotero)
        attachments = None
        if config.process_attachments:
            attachments = AttachmentPipeline(
                library,
                SupabaseObjectStore.from_config(settings.storage),
                PdfExtractor(cover_width=config.cover_width),
                config,
            )
        return cls(storage, library, attachments, config)

    def _snapshot(self, name: str, payload: Any) -> None:
        if self.config.write_snapshots:
            write_snapshot(self.config.snapshot_dir, name, payload)

    def save_groups(self, groups: Sequence[RemoteRecord]) -> None:
        """Upsert group metadata; existing cursors are left untouched."""
        self._snapshot("groupData.json", groups)
        rows = [map_group(group) for group in groups]
        self.storage.save_groups(rows)
        logger.info("Saved %d groups", len(rows))

    def run(self, *, full: bool = False) -> list[SyncStats]:
        """Sync every group the credential can read.

        Args:
            full: Ignore stored cursors and refetch everything.
        """
        self.storage.initialize()
        groups = self.library.fetch_groups()
        self.save_groups(groups)
        cursors = self.storage.items_versions()
        if full:
            cursors = {key: 0 for key in cursors}

        results = []
        for group in groups:
            group_id = str(group["id"])
            since = cursors.get(group_id) or None
            pages, last_version = self.library.fetch_items(group_id, since)
            results.append(self.sync_group(group_id, pages, {group_id: last_version}, cursors))
        return results

    def _fetch_collections(
        self, group_id: str, items_version: Mapping[str, int], stats: SyncStats
    ) -> tuple[dict[str, CollectionRow], list[CollectionRow]]:
        since = items_version.get(group_id) or 0
        fetched = self.library.fetch_collections(group_id, since)
        self._snapshot(f"fetchedCollections-{group_id}.json", fetched)

        by_key: dict[str, CollectionRow] = {}
        for record in fetched:
            row = map_collection(record)
            by_key[row["key"]] = row
        order = order_collections(by_key)
        stats.hierarchy_cycles = len(order.cycles)
        return by_key, order.ordered

    def sync_group(
        self,
        group_id: str | int,
        item_batches: Sequence[Any],
        last_modified_version: Mapping[str, int],
        items_version: Mapping[str, int] | None = None,
    ) -> SyncStats:
        """Run one sync pass for a group.

        Args:
            group_id: External id of the group being synced.
            item_batches: Fetched item records, one list per page.
            last_modified_version: Library version observed per group id.
            items_version: Stored cursors per group id; when given, the
                group's collections changed since its cursor are fetched too.

        Returns:
            Counters for the pass.
        """
        group_id = str(group_id)
        stats = SyncStats(group_id=group_id)
        self._snapshot("lastModifiedVersion.json", dict(last_modified_version))
        self._snapshot("fetchedItems.json", item_batches)

        file_states = self.storage.file_states()
        collections: dict[str, CollectionRow] = {}
        ordered_collections: list[CollectionRow] = []
        if items_version is not None:
            collections, ordered_collections = self._fetch_collections(group_id, items_version, stats)

        reconciler = MembershipReconciler(
            collections,
            self.storage.collection_keys(),
            self.storage.item_collections(),
        )

        items: dict[str, ItemRow] = {}
        languages: dict[str, LanguageRow] = {}
        inserts: dict[AssociationKey, ItemToCollectionRow] = {}
        deletions: set[AssociationKey] = set()
        jobs: dict[str, AttachmentJob] = {}

        for chunk in item_batches:
            if not isinstance(chunk, list):
                logger.error("Invalid chunk structure: %r", chunk)
                stats.malformed_chunks += 1
                continue
            for record in chunk:
                if not isinstance(record, dict):
                    logger.error("Invalid record structure: %r", record)
                    stats.malformed_records += 1
                    continue
                if not normalize_item_type(record):
                    stats.unknown_types += 1
                    continue
                row = map_item(record)
                key = row["key"]
                items[key] = row
                data = record["data"]

                label = f"{data.get('parentItem') or '-'} / {key}"
                for assoc in reconciler.reconcile(key, data.get("collections"), deletions, label=label):
                    inserts[(assoc["itemKey"], assoc["collectionKey"])] = assoc

                # the last record seen for a key decides its job
                jobs.pop(key, None)
                if qualifies(record):
                    stored = file_states.get(key)
                    if self.attachments is not None:
                        jobs[key] = AttachmentJob(record, group_id, stored)
                    elif stored is not None:
                        row.update(stored.file_fields())

                if language := language_of(record):
                    languages.setdefault(language, {"name": language})

        stats.unresolved_memberships = reconciler.unresolved
        if stats.unknown_types:
            logger.info("Skipped %d records with unrecognized item types", stats.unknown_types)

        if jobs:
            logger.info("Processing %d PDF attachments", len(jobs))
            for result in self.attachments.run(list(jobs.values())):
                items[result.key].update(result.fields)
                if result.status is AttachmentStatus.DONE:
                    stats.attachments_done += 1
                elif result.status is AttachmentStatus.SKIPPED:
                    stats.attachments_skipped += 1
                else:
                    stats.attachments_failed += 1

        self._persist(
            stats,
            list(languages.values()),
            list(items.values()),
            ordered_collections,
            list(inserts.values()),
            deletions,
        )

        for external_id, version in last_modified_version.items():
            self.storage.advance_items_version(external_id, version)
        stats.items_version = last_modified_version.get(group_id)
        logger.info("Group %s synced: %s", group_id, stats.as_dict())
        return stats

    def _persist(
        self,
        stats: SyncStats,
        languages: list[LanguageRow],
        items: list[ItemRow],
        collections: list[CollectionRow],
        inserts: list[ItemToCollectionRow],
        deletions: set[AssociationKey],
    ) -> None:
        if languages:
            self.storage.insert_languages(languages)
            stats.languages = len(languages)

        if items:
            logger.info("Adding %d items", len(items))
            # stable: parentless items first
            items.sort(key=lambda row: bool(row.get("parentItem")))
            self.storage.upsert_items(items, self.config.write_batch_size)
            stats.items = len(items)

        if collections:
            logger.info("Adding %d collections", len(collections))
            self.storage.upsert_collections(collections, self.config.write_batch_size)
            stats.collections = len(collections)

        if inserts:
            logger.info("Adding %d itemToCollections", len(inserts))
            self.storage.insert_item_collections(inserts)
            stats.associations_inserted = len(inserts)

        if deletions:
            logger.info("Deleting %d itemToCollections", len(deletions))
            self.storage.delete_item_collections(sorted(deletions))
            stats.associations_deleted = len(deletions)


__all__ = ["SyncOrchestrator", "SyncStats"]
