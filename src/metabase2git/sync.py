"""End-to-end sync: Metabase -> directory tree -> git commit."""

from __future__ import annotations

from metabase2git.client import MetabaseClient
from metabase2git.config import SyncConfig
from metabase2git.git import GitRepository
from metabase2git.materialize import materialize_tree
from metabase2git.resolver import build_card_map
from metabase2git.schemas import SyncReport, SyncResult
from metabase2git.snapshot import commit_snapshot
from metabase2git.tree import build_tree
from metabase2git.utils.logging_config import get_logger

logger = get_logger(__name__)


async def run_sync(
    config: SyncConfig,
    *,
    client: MetabaseClient | None = None,
    repo: GitRepository | None = None,
) -> SyncResult:
    """Mirror every collection and card into ``config.repo_path`` and commit.

    Every stage runs to completion even when individual items fail; those
    failures end up in ``result.report``.

    Args:
        config: Run settings.
        client: Metabase client to use. One is built from ``config`` if omitted.
        repo: Git wrapper to use. One is built from ``config`` if omitted.

    Returns:
        The snapshot outcome, path index, and report of degraded items.

    Raises:
        AuthError: If no Metabase session could be opened.
    """
    report = SyncReport()
    client = client or MetabaseClient(config.metabase_url, config.username, config.password)
    repo = repo or GitRepository(
        config.repo_path,
        author_name=config.author_name,
        author_email=config.author_email,
    )

    async with client:
        await client.authenticate()
        tree = await build_tree(client, report)
        cards = await build_card_map(client, report)

    # A failed top-level listing means the previous mirror is kept as is.
    complete = tree is not None and cards is not None
    path_index = await materialize_tree(tree or [], cards or {}, config.repo_path, report, prune=complete)
    snapshot = await commit_snapshot(repo, report, archive=config.archive)

    if report.issues:
        logger.warning("sync finished with %d skipped or degraded items", len(report.issues))
    logger.info("head revision %s", snapshot.revision)
    return SyncResult(snapshot=snapshot, path_index=path_index, report=report)
