"""Filesystem primitives used by the generation pipeline.

Reads, writes, listings and stats are pushed to worker threads with
``asyncio.to_thread`` so they never block the event loop.  Directory creation
is synchronous because later writes depend on it.  Errors surface as the
usual ``OSError`` subclasses.
"""

from __future__ import annotations

import asyncio
import os
from pathlib import Path

from .errors import StaticCopyError
from .utils import run_command


async def list_dir(path: Path) -> list[str]:
    """Return the entry names in *path*, in the order the OS lists them."""
    return await asyncio.to_thread(os.listdir, path)


async def is_dir(path: Path) -> bool:
    return await asyncio.to_thread(Path(path).is_dir)


async def read_bytes(path: Path) -> bytes:
    return await asyncio.to_thread(Path(path).read_bytes)


async def read_text(path: Path) -> str:
    return await asyncio.to_thread(Path(path).read_text, "utf-8")


async def write_text(path: Path, content: str) -> Path:
    """Write *content* to *path* and return the path."""
    out = Path(path)
    await asyncio.to_thread(_write_file, out, content)
    return out


def make_dir(path: Path) -> None:
    """Create *path* (and parents) synchronously; no-op if it exists."""
    Path(path).mkdir(parents=True, exist_ok=True)


async def copy_file(command: list[str], source: Path, destination: Path) -> Path:
    """Copy *source* to *destination* with an external command.

    Runs ``command + [source, destination]``.

    Raises:
        StaticCopyError: If the command exits non-zero or cannot be started.
    """
    returncode, _, stderr = await run_command([*command, str(source), str(destination)])
    if returncode != 0:
        raise StaticCopyError(Path(source), Path(destination), returncode, stderr)
    return Path(destination)


def _write_file(path: Path, content: str) -> None:
    """Synchronous helper: create parent dirs and write content."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
