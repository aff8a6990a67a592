"""Template tree traversal.

Mirrors the template tree into the output tree.  Every file becomes one unit
of tracked work: a render when its last extension is a registered renderer
key, a verbatim copy otherwise.  Partials (names starting with ``_``) are
skipped here and only reached through the partial cache.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

from . import fs
from .config import GeneratorConfig
from .errors import TemplateDirectoryError, TreegenError
from .partials import PARTIAL_PREFIX
from .pipeline import RenderPipeline
from .registry import Registry
from .tracker import GeneratedItem, RunningActions
from .utils import print_warning


class DirectoryWalker:
    """Depth-first walk of ``template_dir`` dispatching renders and copies.

    Static copies share ``limit`` with the render pipeline, so at most
    ``config.max_concurrency`` copy processes run at once.
    """

    def __init__(
        self,
        config: GeneratorConfig,
        registry: Registry,
        tracker: RunningActions,
        pipeline: RenderPipeline,
        limit: asyncio.Semaphore | None = None,
    ) -> None:
        self.config = config
        self.registry = registry
        self.tracker = tracker
        self.pipeline = pipeline
        self.limit = limit if limit is not None else asyncio.Semaphore(config.max_concurrency)

    async def traverse_templates(self, dir_path: Path | None = None) -> None:
        """Walk *dir_path* (default: the template root) and everything below it.

        The traversal itself counts as outstanding work until every entry has
        been classified and dispatched, so the run cannot drain while parts of
        the tree are still unexplored.  Sub-directories are created in the
        output tree before they are entered.  A directory that cannot be
        listed is reported as a failed item and the rest of the tree is
        still walked.
        """
        dir_path = Path(dir_path) if dir_path is not None else self.config.template_dir
        with self.tracker.hold():
            try:
                names = await fs.list_dir(dir_path)
            except OSError as exc:
                error = TemplateDirectoryError(dir_path, exc.strerror or str(exc))
                error.__cause__ = exc
                print_warning(str(error))
                self.tracker.dispatch(self._unreadable(dir_path, error))
                return
            kinds = await asyncio.gather(*(fs.is_dir(dir_path / name) for name in names))

            subdirs: list[Path] = []
            for name, is_directory in zip(names, kinds):
                entry = dir_path / name
                if is_directory:
                    subdirs.append(entry)
                    continue
                if name.startswith(PARTIAL_PREFIX):
                    continue
                if self.is_template(name):
                    self.tracker.dispatch(self.pipeline.fetch_and_render(entry))
                else:
                    self.tracker.dispatch(self.static_file_handler(entry))

            for subdir in subdirs:
                fs.make_dir(self.config.mirror_path(subdir))
                await self.traverse_templates(subdir)

    def is_template(self, name: str) -> bool:
        """Whether *name*'s last extension is a registered renderer key."""
        if "." not in name:
            return False
        return self.registry.has_renderer(name.rsplit(".", 1)[1])

    async def static_file_handler(self, source: Path) -> GeneratedItem:
        """Copy *source* verbatim to its mirrored output path.

        A failed copy is not retried; it is reported on the returned item.
        """
        source = Path(source)
        destination = self.config.mirror_path(source)
        try:
            async with self.limit:
                await fs.copy_file(self.config.copy_command, source, destination)
        except TreegenError as exc:
            print_warning(f"Failed to copy {source}: {exc}")
            return GeneratedItem("static", source, destination, exc)
        return GeneratedItem("static", source, destination)

    async def _unreadable(self, dir_path: Path, error: TemplateDirectoryError) -> GeneratedItem:
        return GeneratedItem("directory", dir_path, self.config.mirror_path(dir_path), error)
