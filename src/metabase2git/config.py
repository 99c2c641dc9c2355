"""Configuration for metabase2git."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping

from pydantic import BaseModel, Field, field_validator

from metabase2git.exceptions import ConfigError

DEFAULT_REPO_PATH = "repo"
DEFAULT_FETCH_TIMEOUT_S = 30.0
DEFAULT_FETCH_MAX_RETRIES = 0
DEFAULT_FETCH_BACKOFF_S = 0.5
DEFAULT_USER_AGENT = "metabase2git/0.1"
DEFAULT_GIT_BINARY = "git"
DEFAULT_AUTHOR_NAME = "metabase2git"
DEFAULT_AUTHOR_EMAIL = "metabase2git@localhost"

REQUIRED_ENV_VARS = ("METABASE_URL", "METABASE_USER", "METABASE_PASSWORD")

METABASE2GIT_FETCH_TIMEOUT_S = float(os.getenv("METABASE2GIT_FETCH_TIMEOUT_S", str(DEFAULT_FETCH_TIMEOUT_S)))
METABASE2GIT_FETCH_MAX_RETRIES = int(os.getenv("METABASE2GIT_FETCH_MAX_RETRIES", str(DEFAULT_FETCH_MAX_RETRIES)))
METABASE2GIT_FETCH_BACKOFF_S = float(os.getenv("METABASE2GIT_FETCH_BACKOFF_S", str(DEFAULT_FETCH_BACKOFF_S)))
METABASE2GIT_USER_AGENT = os.getenv("METABASE2GIT_USER_AGENT", DEFAULT_USER_AGENT)
METABASE2GIT_GIT_BINARY = os.getenv("METABASE2GIT_GIT_BINARY", DEFAULT_GIT_BINARY)


class SyncConfig(BaseModel):
    """Settings for one sync run.

    Attributes:
        metabase_url: Base URL of the Metabase instance (no trailing slash).
        username: Login used for the session exchange.
        password: Password used for the session exchange.
        repo_path: Destination root of the mirrored tree and git repository.
        archive: If True, zip the head revision after committing.
        author_name: Name recorded on commits.
        author_email: Email recorded on commits.
    """

    metabase_url: str
    username: str
    password: str = Field(repr=False)
    repo_path: Path = Field(default_factory=lambda: Path(DEFAULT_REPO_PATH), validate_default=True)
    archive: bool = False
    author_name: str = DEFAULT_AUTHOR_NAME
    author_email: str = DEFAULT_AUTHOR_EMAIL

    @field_validator("metabase_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize ``metabase_url`` so paths can be appended directly."""
        if not v.strip():
            err = "metabase_url cannot be empty"
            raise ValueError(err)
        return v.strip().rstrip("/")

    @field_validator("repo_path")
    @classmethod
    def resolve_repo_path(cls, v: Path) -> Path:
        """Make ``repo_path`` absolute so the path index holds absolute paths."""
        return v.expanduser().resolve()

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        *,
        repo_path: str | Path | None = None,
        archive: bool = False,
    ) -> "SyncConfig":
        """Build a config from environment variables.

        Args:
            environ: Mapping to read from. Defaults to ``os.environ``.
            repo_path: Explicit destination root, overriding ``REPO_PATH``.
            archive: Whether an archive of the head revision is requested.

        Returns:
            The populated config.

        Raises:
            ConfigError: If any required variable is missing.
        """
        env = os.environ if environ is None else environ
        missing = [name for name in REQUIRED_ENV_VARS if not env.get(name)]
        if missing:
            raise ConfigError(f"Missing required environment variables: {', '.join(missing)}")

        root = Path(repo_path or env.get("REPO_PATH") or DEFAULT_REPO_PATH)
        return cls(
            metabase_url=env["METABASE_URL"],
            username=env["METABASE_USER"],
            password=env["METABASE_PASSWORD"],
            repo_path=root,
            archive=archive,
            author_name=env.get("METABASE2GIT_AUTHOR_NAME", DEFAULT_AUTHOR_NAME),
            author_email=env.get("METABASE2GIT_AUTHOR_EMAIL", DEFAULT_AUTHOR_EMAIL),
        )
