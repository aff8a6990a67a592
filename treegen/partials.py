"""Partial template resolution.

A partial is a template file whose name starts with ``_`` and whose last
extension is a registered renderer key, e.g. ``_header.j2``.  A template sees
the partials of its own directory and of every ancestor up to the template
root.  Each directory is scanned at most once per run, however many templates
ask for it concurrently.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

from . import fs
from .registry import Registry
from .singleflight import SingleFlight

PARTIAL_PREFIX = "_"


def partial_name(filename: str) -> str:
    """``_header.html.j2`` -> ``header.html``."""
    stem = filename[len(PARTIAL_PREFIX):] if filename.startswith(PARTIAL_PREFIX) else filename
    base, _, _ = stem.rpartition(".")
    return base


def ancestor_dirs(template_dir: Path, dir_path: Path) -> list[Path]:
    """Directories from *template_dir* down to *dir_path*, root first.

    A *dir_path* outside the template root only yields itself.
    """
    template_dir = Path(template_dir)
    dir_path = Path(dir_path)
    try:
        relative = dir_path.relative_to(template_dir)
    except ValueError:
        return [dir_path]

    dirs = [template_dir]
    current = template_dir
    for part in relative.parts:
        current = current / part
        dirs.append(current)
    return dirs


class PartialCache:
    """Run-scoped cache of partial sets keyed by directory."""

    def __init__(self, template_dir: Path, registry: Registry) -> None:
        self.template_dir = Path(template_dir)
        self.registry = registry
        self.flight: SingleFlight[Path, dict[str, str]] = SingleFlight()

    @property
    def partials(self) -> dict[Path, dict[str, str]]:
        """Resolved partial sets by directory."""
        return self.flight.results

    async def fetch_partials(self, dir_path: Path) -> dict[str, str]:
        """Merge the partials of *dir_path* and all of its ancestors.

        On a name collision the deeper directory wins.
        """
        dirs = ancestor_dirs(self.template_dir, dir_path)
        partial_sets = await asyncio.gather(*(self.fetch_partials_with_cache(d) for d in dirs))

        merged: dict[str, str] = {}
        for partial_set in partial_sets:
            merged.update(partial_set)
        return merged

    async def fetch_partials_with_cache(self, dir_path: Path) -> dict[str, str]:
        """Return the partial set of one directory, scanning it at most once."""
        return await self.flight.get(Path(dir_path), self.fetch_partials_in_dir)

    async def fetch_partials_in_dir(self, dir_path: Path) -> dict[str, str]:
        """Read every partial directly inside *dir_path*.

        An unreadable or missing directory contributes no partials.
        """
        try:
            names = await fs.list_dir(dir_path)
        except OSError:
            return {}

        names = [name for name in names if self._is_partial(name)]
        bodies = await asyncio.gather(*(fs.read_text(Path(dir_path) / name) for name in names))
        return {partial_name(name): body for name, body in zip(names, bodies)}

    def _is_partial(self, name: str) -> bool:
        if not name.startswith(PARTIAL_PREFIX) or "." not in name:
            return False
        return self.registry.has_renderer(name.rsplit(".", 1)[1])
