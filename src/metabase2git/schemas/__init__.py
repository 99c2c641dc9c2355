"""Shared schemas for metabase2git."""

from metabase2git.schemas.cards import BUILDER_QUERY_TYPE, NATIVE_QUERY_TYPE, Card
from metabase2git.schemas.nodes import (
    COLLECTION_MODEL,
    CollectionNode,
    ItemNode,
    NodeId,
    TreeNode,
    entry_from_payload,
)
from metabase2git.schemas.report import IssueKind, SyncIssue, SyncReport
from metabase2git.schemas.results import SnapshotResult, SyncResult

__all__ = [
    "BUILDER_QUERY_TYPE",
    "COLLECTION_MODEL",
    "Card",
    "CollectionNode",
    "IssueKind",
    "ItemNode",
    "NATIVE_QUERY_TYPE",
    "NodeId",
    "SnapshotResult",
    "SyncIssue",
    "SyncReport",
    "SyncResult",
    "TreeNode",
    "entry_from_payload",
]
