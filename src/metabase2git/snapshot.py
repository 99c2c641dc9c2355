"""Commit the materialized tree as one git snapshot."""

from __future__ import annotations

from pathlib import Path

from metabase2git.exceptions import VersionControlError
from metabase2git.git import GitRepository
from metabase2git.schemas import IssueKind, SnapshotResult, SyncReport
from metabase2git.utils.logging_config import get_logger

logger = get_logger(__name__)

INIT_MESSAGE = "Init Metabase Git Migration"
SYNC_MESSAGE = "Sync Metabase Git"
ARCHIVE_PREFIX = "metabase-git-sync/"


def archive_name(revision: str) -> str:
    return f"metabase-git-sync-{revision}.zip"


def archive_path_for(repo_path: Path, revision: str) -> Path:
    """Archives go next to the repository, never inside the tracked tree."""
    return repo_path.parent / archive_name(revision)


async def commit_snapshot(
    repo: GitRepository,
    report: SyncReport,
    *,
    archive: bool = False,
) -> SnapshotResult:
    """Stage everything under the repository root and commit it.

    A missing ``.git`` directory means this is the first run: the repository
    is initialized and the commit is labelled as the initial migration.
    When nothing changed no commit is made and the current head is reported
    instead.

    Args:
        repo: Repository rooted at the materialized tree.
        report: Issue sink; version-control failures are recorded here.
        archive: If True, zip the head revision unless that archive exists.

    Returns:
        The snapshot outcome. ``revision`` is None only if HEAD is unreadable.
    """
    fresh = not repo.exists()
    if fresh:
        logger.info("Couldn't find git repo at %s. Will initialize repo.", repo.git_dir)
        try:
            await repo.init()
        except VersionControlError as exc:
            report.record(IssueKind.VERSION_CONTROL, f"error initializing repo: {exc}", path=repo.path)
            return SnapshotResult(fresh=True, message=INIT_MESSAGE)
    else:
        logger.info("Found git repo at %s", repo.git_dir)

    message = INIT_MESSAGE if fresh else SYNC_MESSAGE
    revision: str | None = None
    try:
        await repo.add_all()
        revision = await repo.commit(message)
    except VersionControlError as exc:
        report.record(IssueKind.VERSION_CONTROL, f"could not commit: {exc}", path=repo.path)

    committed = revision is not None
    if not committed:
        logger.info("Did not commit anything.")
        try:
            revision = await repo.head_revision()
        except VersionControlError as exc:
            report.record(IssueKind.VERSION_CONTROL, f"could not read HEAD: {exc}", path=repo.path)

    result = SnapshotResult(revision=revision, committed=committed, fresh=fresh, message=message)
    if archive and revision:
        result.archive_path = await _archive_revision(repo, revision, report)
    return result


async def _archive_revision(repo: GitRepository, revision: str, report: SyncReport) -> Path | None:
    output = archive_path_for(repo.path, revision)
    if output.exists():
        logger.info("Archive already exists: %s", output)
        return None
    try:
        await repo.archive(revision, output, prefix=ARCHIVE_PREFIX)
    except VersionControlError as exc:
        report.record(IssueKind.VERSION_CONTROL, f"could not git archive: {exc}", path=output)
        return None
    logger.info("Archive created: %s", output)
    return output
