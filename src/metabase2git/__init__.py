"""metabase2git: mirror Metabase collections into a git repository."""

from metabase2git.client import MetabaseClient
from metabase2git.config import SyncConfig
from metabase2git.exceptions import (
    AuthError,
    ConfigError,
    FilesystemError,
    IntegrityError,
    Metabase2gitError,
    SerializationGap,
    TransportError,
    VersionControlError,
)
from metabase2git.git import GitRepository
from metabase2git.materialize import materialize_tree
from metabase2git.resolver import build_card_map
from metabase2git.schemas import Card, CollectionNode, ItemNode, SyncReport, SyncResult
from metabase2git.snapshot import commit_snapshot
from metabase2git.sync import run_sync
from metabase2git.tree import build_tree

__all__ = [
    "AuthError",
    "Card",
    "CollectionNode",
    "ConfigError",
    "FilesystemError",
    "GitRepository",
    "IntegrityError",
    "ItemNode",
    "Metabase2gitError",
    "MetabaseClient",
    "SerializationGap",
    "SyncConfig",
    "SyncReport",
    "SyncResult",
    "TransportError",
    "VersionControlError",
    "build_card_map",
    "build_tree",
    "commit_snapshot",
    "materialize_tree",
    "run_sync",
]
