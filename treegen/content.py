"""Structured content lookup.

The content for a logical path ``contents/blog/post`` comes from two places:

* the JSON file ``contents/blog/post.json``
* the directory ``contents/blog/post/``, whose files become keys (JSON parsed
  directly, other extensions through a registered parser)

Directory entries are layered on top of the file's entries.  Missing content
is not an error: a page without either source simply gets ``{}``.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any

from . import fs
from .errors import ContentDirectoryError, ContentError
from .registry import Registry
from .singleflight import SingleFlight
from .utils import parse_json_object, print_warning


class ContentFetcher:
    """Resolves merged content objects for logical content paths."""

    def __init__(self, registry: Registry, shared_path: Path | None = None) -> None:
        self.registry = registry
        self.shared_path = shared_path
        self._shared: SingleFlight[Path, dict[str, Any]] = SingleFlight()

    async def fetch_content(self, content_path: Path) -> dict[str, Any]:
        """Return the merged content for *content_path* (``{}`` if none).

        Raises:
            ContentError: If ``<content_path>.json`` exists but is malformed.
        """
        content_path = Path(content_path)
        from_file, from_dir = await asyncio.gather(
            self._fetch_content_file(content_path),
            self.fetch_content_from_dir(content_path),
            return_exceptions=True,
        )
        if isinstance(from_file, BaseException):
            raise from_file

        content = dict(from_file)
        if isinstance(from_dir, ContentDirectoryError):
            return content
        if isinstance(from_dir, BaseException):
            raise from_dir
        content.update(from_dir)
        return content

    async def fetch_content_from_dir(self, dir_path: Path) -> dict[str, Any]:
        """Aggregate every non-hidden file in *dir_path* into one object.

        Keys are file names without their last extension; sub-directories
        become nested objects.

        Raises:
            ContentDirectoryError: If *dir_path* cannot be listed.
            ContentError: If a JSON file in the directory is malformed.
        """
        dir_path = Path(dir_path)
        try:
            names = await fs.list_dir(dir_path)
        except OSError as exc:
            raise ContentDirectoryError(dir_path, exc.strerror or str(exc)) from exc

        names = [name for name in names if not name.startswith(".")]
        values = await asyncio.gather(*(self._fetch_entry(dir_path / name) for name in names))

        content: dict[str, Any] = {}
        for name, value in zip(names, values):
            if value is _SKIP:
                continue
            content[Path(name).stem] = value
        return content

    async def fetch_shared_content(self) -> dict[str, Any]:
        """Return the shared content, fetched at most once per fetcher."""
        if self.shared_path is None:
            return {}
        return await self._shared.get(self.shared_path, self.fetch_content)

    # -- Internals ---------------------------------------------------------

    async def _fetch_content_file(self, content_path: Path) -> dict[str, Any]:
        json_path = content_path.with_name(content_path.name + ".json")
        try:
            raw = await fs.read_bytes(json_path)
        except OSError:
            return {}
        try:
            return parse_json_object(raw)
        except json.JSONDecodeError as exc:
            raise ContentError(json_path, f"invalid JSON: {exc}") from exc

    async def _fetch_entry(self, path: Path) -> Any:
        if await fs.is_dir(path):
            return await self.fetch_content_from_dir(path)

        extension = path.suffix.lstrip(".")
        if extension == "json":
            raw = await fs.read_bytes(path)
            try:
                return json.loads(raw)
            except json.JSONDecodeError as exc:
                raise ContentError(path, f"invalid JSON: {exc}") from exc

        if not self.registry.has_parser(extension):
            print_warning(f"Skipping content file with no registered parser: {path}")
            return _SKIP

        parser = self.registry.parser_for(extension)
        raw = await fs.read_bytes(path)
        try:
            return await parser.parse(raw)
        except Exception as exc:
            raise ContentError(path, f"cannot parse as '{extension}': {exc}") from exc


_SKIP = object()
