"""Filesystem helpers that keep blocking I/O off the event loop."""

from __future__ import annotations

import asyncio
import json
import shutil
from pathlib import Path
from typing import Any

from metabase2git.exceptions import FilesystemError


async def write_text_async(path: Path, content: str, encoding: str = "utf-8") -> None:
    """Write text to a file asynchronously using a thread pool.

    The text is written without newline translation so file bytes match
    ``content`` exactly on every platform.

    Args:
        path: Path to the file to write.
        content: Text content to write.
        encoding: Text encoding to use.

    Raises:
        FilesystemError: If the file cannot be written.
    """
    try:
        await asyncio.to_thread(path.write_bytes, content.encode(encoding))
    except OSError as exc:
        raise FilesystemError(f"could not write {path}: {exc}") from exc


async def mkdir_async(path: Path, parents: bool = False, exist_ok: bool = False) -> None:
    """Create a directory asynchronously using a thread pool.

    Args:
        path: Path to the directory to create.
        parents: If True, create parent directories as needed.
        exist_ok: If True, don't raise an error if directory exists.

    Raises:
        FilesystemError: If the directory cannot be created.
    """
    try:
        await asyncio.to_thread(path.mkdir, parents=parents, exist_ok=exist_ok)
    except OSError as exc:
        raise FilesystemError(f"could not mkdir {path}: {exc}") from exc


async def list_dir_async(path: Path) -> list[Path]:
    """List the entries of a directory asynchronously using a thread pool.

    Raises:
        FilesystemError: If the directory cannot be read.
    """
    try:
        return await asyncio.to_thread(lambda: sorted(path.iterdir()))
    except OSError as exc:
        raise FilesystemError(f"could not list {path}: {exc}") from exc


async def remove_path_async(path: Path) -> None:
    """Delete a file, or a directory and everything below it.

    Raises:
        FilesystemError: If the path cannot be removed.
    """
    try:
        if path.is_dir() and not path.is_symlink():
            await asyncio.to_thread(shutil.rmtree, path)
        else:
            await asyncio.to_thread(path.unlink)
    except OSError as exc:
        raise FilesystemError(f"could not remove {path}: {exc}") from exc


def dump_json(record: Any) -> str:
    """Serialize a metadata record the same way on every run."""
    return json.dumps(record, indent=2, ensure_ascii=False)
