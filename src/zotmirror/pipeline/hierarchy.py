"""Parent-before-child ordering of collections."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field

from zotmirror.core.models import CollectionRow

logger = logging.getLogger(__name__)


@dataclass
class CollectionOrder:
    """Result of ordering a batch of collections."""

    ordered: list[CollectionRow] = field(default_factory=list)
    cycles: list[list[str]] = field(default_factory=list)  # key paths, first key repeated at the end


def order_collections(collections: Mapping[str, CollectionRow]) -> CollectionOrder:
    """Order collections so every in-batch parent precedes its children.

    Parents outside the batch are assumed to be persisted already and impose
    no ordering. A parent reference that closes a cycle is reported and not
    enforced; every collection still appears exactly once.
    """
    result = CollectionOrder()
    visited: set[str] = set()
    path: list[str] = []
    on_path: set[str] = set()

    def visit(key: str) -> None:
        visited.add(key)
        path.append(key)
        on_path.add(key)
        parent = collections[key].get("parentCollection")
        if parent in collections:
            if parent in on_path:
                cycle = path[path.index(parent) :] + [parent]
                result.cycles.append(cycle)
                logger.warning("Collection hierarchy cycle detected: %s", " -> ".join(cycle))
            elif parent not in visited:
                visit(parent)
        path.pop()
        on_path.discard(key)
        result.ordered.append(collections[key])

    for key in collections:
        if key not in visited:
            visit(key)

    return result


__all__ = ["CollectionOrder", "order_collections"]
