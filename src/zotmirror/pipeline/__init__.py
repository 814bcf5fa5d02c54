"""Sync pipeline components."""

from .attachments import AttachmentJob, AttachmentPipeline, AttachmentResult, AttachmentStatus, qualifies
from .hierarchy import CollectionOrder, order_collections
from .mapping import language_of, map_collection, map_group, map_item
from .membership import MembershipReconciler
from .normalize import normalize_item_type
from .sync import SyncOrchestrator, SyncStats

__all__ = [
    # Mapping
    "normalize_item_type",
    "map_item",
    "map_collection",
    "map_group",
    "language_of",
    # Reconciliation
    "CollectionOrder",
    "order_collections",
    "MembershipReconciler",
    # Attachments
    "AttachmentJob",
    "AttachmentPipeline",
    "AttachmentResult",
    "AttachmentStatus",
    "qualifies",
    # Orchestration
    "SyncOrchestrator",
    "SyncStats",
]
