"""Item type normalization."""

import logging

from zotmirror.core.item_types import canonical_item_type
from zotmirror.core.models import RemoteRecord

logger = logging.getLogger(__name__)


def normalize_item_type(record: RemoteRecord) -> bool:
    """Rewrite ``record["data"]["itemType"]`` to its canonical variant in place.

    Matching is case-insensitive. Returns False, leaving the record untouched,
    when the type is not in the catalogue; the caller must then skip it.
    """
    data = record.get("data")
    if not isinstance(data, dict):
        return False
    canonical = canonical_item_type(data.get("itemType"))
    if canonical is None:
        logger.debug("Unrecognized item type %r for item %s", data.get("itemType"), record.get("key"))
        return False
    data["itemType"] = canonical
    return True


__all__ = ["normalize_item_type"]
