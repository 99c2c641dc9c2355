"""Run output models."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field

from metabase2git.schemas.nodes import NodeId
from metabase2git.schemas.report import SyncReport


class SnapshotResult(BaseModel):
    """Outcome of the commit step.

    Attributes:
        revision: Commit id of HEAD after the run, or None if unreadable.
        committed: True if this run created a new commit.
        fresh: True if the repository was initialized by this run.
        message: Commit message used.
        archive_path: Zip archive written by this run, if any.
    """

    revision: str | None = None
    committed: bool = False
    fresh: bool = False
    message: str
    archive_path: Path | None = None


class SyncResult(BaseModel):
    """Final output of a sync run."""

    snapshot: SnapshotResult
    path_index: dict[NodeId, Path] = Field(default_factory=dict)
    report: SyncReport = Field(default_factory=SyncReport)
