"""Item-to-collection membership reconciliation."""

import logging
from collections.abc import Iterable, Mapping

from zotmirror.core.models import AssociationKey, CollectionRow, ItemToCollectionRow

logger = logging.getLogger(__name__)


class MembershipReconciler:
    """Diff each item's remote collection list against persisted associations.

    Args:
        fetched_collections: Collections fetched this pass, by key.
        persisted_collection_keys: Keys of collections already stored.
        persisted_associations: Stored collection keys per item key.
    """

    def __init__(
        self,
        fetched_collections: Mapping[str, CollectionRow],
        persisted_collection_keys: Iterable[str],
        persisted_associations: Mapping[str, set[str]],
    ):
        self.fetched_collections = fetched_collections
        self.persisted_collection_keys = set(persisted_collection_keys)
        self.persisted_associations = persisted_associations
        self.unresolved = 0

    def resolves(self, collection_key: str) -> bool:
        """Whether a collection key is known, this pass or from storage."""
        return collection_key in self.fetched_collections or collection_key in self.persisted_collection_keys

    def reconcile(
        self,
        item_key: str,
        remote_collection_keys: Iterable[str] | None,
        deletions: set[AssociationKey],
        *,
        label: str | None = None,
    ) -> list[ItemToCollectionRow]:
        """Return new association rows for one item and collect stale ones.

        Args:
            item_key: The item's key.
            remote_collection_keys: Collection keys listed on the remote record.
            deletions: Shared set receiving stale (item, collection) pairs.
            label: Log prefix, defaults to the item key.

        Returns:
            Rows for resolvable memberships that are not stored yet.
        """
        remote = list(dict.fromkeys(remote_collection_keys or []))
        stored = self.persisted_associations.get(item_key, set())
        inserts: list[ItemToCollectionRow] = []

        for collection_key in remote:
            if not self.resolves(collection_key):
                self.unresolved += 1
                logger.warning("[%s] Collection %s not found", label or item_key, collection_key)
                continue
            if collection_key not in stored:
                inserts.append({"itemKey": item_key, "collectionKey": collection_key})

        remote_set = set(remote)
        for collection_key in stored:
            if collection_key not in remote_set:
                deletions.add((item_key, collection_key))

        return inserts


__all__ = ["MembershipReconciler"]
