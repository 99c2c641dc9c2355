"""Thin async wrapper around the ``git`` command line."""

from __future__ import annotations

import asyncio
import os
import subprocess
from pathlib import Path

from metabase2git.config import DEFAULT_AUTHOR_EMAIL, DEFAULT_AUTHOR_NAME, METABASE2GIT_GIT_BINARY
from metabase2git.exceptions import VersionControlError
from metabase2git.utils.logging_config import get_logger

logger = get_logger(__name__)


class GitRepository:
    """Run git commands with ``path`` as the working directory.

    Each command runs in a worker thread. A non-zero exit raises
    ``VersionControlError`` carrying git's stderr.
    """

    def __init__(
        self,
        path: Path,
        *,
        binary: str = METABASE2GIT_GIT_BINARY,
        author_name: str = DEFAULT_AUTHOR_NAME,
        author_email: str = DEFAULT_AUTHOR_EMAIL,
    ) -> None:
        self.path = path
        self.binary = binary
        self.author_name = author_name
        self.author_email = author_email

    @property
    def git_dir(self) -> Path:
        return self.path / ".git"

    def exists(self) -> bool:
        """Return True if ``path`` already holds a repository."""
        return self.git_dir.exists()

    async def init(self) -> None:
        logger.info("Initializing repo at %s", self.path)
        await self._run("init")

    async def add_all(self) -> None:
        await self._run("add", ".")

    async def has_staged_changes(self) -> bool:
        """Return True if the index differs from HEAD (or from empty, before the first commit)."""
        result = await self._run("diff", "--cached", "--quiet", check=False)
        if result.returncode not in (0, 1):
            raise VersionControlError(f"git diff --cached failed: {result.stderr.strip()}")
        return result.returncode == 1

    async def commit(self, message: str) -> str | None:
        """Commit the index.

        Returns:
            The new commit id, or None when there was nothing to commit.
        """
        if not await self.has_staged_changes():
            return None
        await self._run("commit", "-m", message)
        revision = await self.head_revision()
        logger.info("Added commit %s %s", revision, message)
        return revision

    async def head_revision(self) -> str:
        result = await self._run("rev-parse", "HEAD")
        return result.stdout.strip()

    async def archive(self, revision: str, output_path: Path, *, prefix: str) -> None:
        """Write a zip of ``revision`` to ``output_path``."""
        await self._run(
            "archive",
            "--format=zip",
            f"--prefix={prefix}",
            f"--output={output_path}",
            revision,
        )

    async def _run(self, *args: str, check: bool = True) -> subprocess.CompletedProcess[str]:
        return await asyncio.to_thread(self._run_sync, list(args), check)

    def _run_sync(self, args: list[str], check: bool) -> subprocess.CompletedProcess[str]:
        env = {
            **os.environ,
            "GIT_AUTHOR_NAME": self.author_name,
            "GIT_AUTHOR_EMAIL": self.author_email,
            "GIT_COMMITTER_NAME": self.author_name,
            "GIT_COMMITTER_EMAIL": self.author_email,
        }
        try:
            result = subprocess.run(
                [self.binary, *args],
                cwd=self.path,
                env=env,
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError as exc:
            raise VersionControlError(f"Could not run {self.binary} {args[0]}: {exc}") from exc

        if check and result.returncode != 0:
            raise VersionControlError(f"git {args[0]} failed: {result.stderr.strip()}")
        return result
