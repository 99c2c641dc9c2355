"""Degraded-item report collected during a run."""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field

from metabase2git.schemas.nodes import NodeId

logger = logging.getLogger(__name__)


class IssueKind(str, Enum):
    """Category of a non-fatal failure."""

    TRANSPORT = "transport"
    INTEGRITY = "integrity"
    SERIALIZATION = "serialization"
    FILESYSTEM = "filesystem"
    VERSION_CONTROL = "version_control"
    CYCLE = "cycle"


class SyncIssue(BaseModel):
    """One skipped or degraded item."""

    kind: IssueKind
    message: str
    node_id: NodeId | None = None
    path: Path | None = None


class SyncReport(BaseModel):
    """Every issue recorded by the pipeline, in the order they occurred."""

    issues: list[SyncIssue] = Field(default_factory=list)

    def record(
        self,
        kind: IssueKind,
        message: str,
        *,
        node_id: NodeId | None = None,
        path: Path | None = None,
    ) -> SyncIssue:
        """Append an issue and log it."""
        issue = SyncIssue(kind=kind, message=message, node_id=node_id, path=path)
        level = logging.ERROR if kind is IssueKind.VERSION_CONTROL else logging.WARNING
        logger.log(
            level,
            "%s: %s",
            kind.value,
            message,
            extra={"node_id": node_id, "path": str(path) if path else None},
        )
        self.issues.append(issue)
        return issue

    def of_kind(self, kind: IssueKind) -> list[SyncIssue]:
        """Issues of a single kind."""
        return [issue for issue in self.issues if issue.kind is kind]

    @property
    def ok(self) -> bool:
        return not self.issues
