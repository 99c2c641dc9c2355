"""Command-line entry point for metabase2git."""

from __future__ import annotations

import argparse
import asyncio
from typing import Sequence

from metabase2git.config import SyncConfig
from metabase2git.exceptions import AuthError, ConfigError
from metabase2git.sync import run_sync
from metabase2git.utils.logging_config import configure_logging, get_logger

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="metabase2git",
        description="Mirror Metabase collections and cards into a git repository.",
    )
    parser.add_argument("--archive", action="store_true", help="Zip the head revision next to the repository")
    parser.add_argument("--repo-path", help="Destination directory (overrides REPO_PATH, default: repo)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(verbose=args.verbose)

    try:
        config = SyncConfig.from_env(repo_path=args.repo_path, archive=args.archive)
    except ConfigError as exc:
        logger.error("%s", exc)
        return 1

    try:
        result = asyncio.run(run_sync(config))
    except AuthError as exc:
        logger.error("%s", exc)
        return 1

    for issue in result.report.issues:
        print(f"[{issue.kind.value}] {issue.message}")
    print(f"revision: {result.snapshot.revision}")
    return 0
