"""Rendering of a single template.

A template name carries up to three parts: ``<stem>[.<output ext>].<key>``.
The key selects the renderer; the optional output extension is kept verbatim
on the generated file, otherwise the configured default is appended::

    about.j2           -> about.html      (content: <content_dir>/about)
    styles/site.css.j2 -> styles/site.css (content: <content_dir>/styles/site)
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

from . import fs
from .config import GeneratorConfig
from .content import ContentFetcher
from .errors import TemplateError, TreegenError
from .partials import PartialCache
from .registry import Registry
from .tracker import GeneratedItem
from .utils import print_warning


def split_template_name(name: str) -> tuple[str, str | None, str]:
    """Split a template file name into ``(stem, output_extension, key)``.

    Examples::

        split_template_name("page.j2")          -> ("page", None, "j2")
        split_template_name("page.css.j2")      -> ("page", "css", "j2")
        split_template_name("app.min.js.j2")    -> ("app.min", "js", "j2")
        split_template_name("page.v2.j2")       -> ("page", "v2", "j2")

    Whatever sits between the stem and the key is taken as the output
    extension; it is not checked against a list of known types.

    Raises:
        ValueError: If *name* has no extension at all.
    """
    parts = name.rsplit(".", 2)
    if len(parts) == 1:
        raise ValueError(f"Template name has no content-type extension: {name!r}")
    if len(parts) == 2:
        return parts[0], None, parts[1]
    stem, output_extension, key = parts
    if not stem:
        # ".css.j2": a dotfile, not an output extension override.
        return f".{output_extension}", None, key
    return stem, output_extension, key


def content_path_for(config: GeneratorConfig, template_path: Path) -> Path | None:
    """Logical content path of *template_path*, or ``None`` without a content dir."""
    if config.content_dir is None:
        return None
    stem, _, _ = split_template_name(template_path.name)
    relative_dir = template_path.parent.relative_to(config.template_dir)
    return config.content_dir / relative_dir / stem


def output_path_for(config: GeneratorConfig, template_path: Path) -> Path:
    """Mirrored output path of *template_path* with its final extension."""
    stem, output_extension, _ = split_template_name(template_path.name)
    relative_dir = template_path.parent.relative_to(config.template_dir)
    extension = output_extension or config.output_extension
    return config.output_dir / relative_dir / f"{stem}.{extension}"


class RenderPipeline:
    """Fetches everything one template needs, renders it and writes the result.

    At most ``config.max_concurrency`` templates are rendered at once; the
    limit is shared with static copies when a run passes the same semaphore
    to both.
    """

    def __init__(
        self,
        config: GeneratorConfig,
        registry: Registry,
        content: ContentFetcher,
        partials: PartialCache,
        limit: asyncio.Semaphore | None = None,
    ) -> None:
        self.config = config
        self.registry = registry
        self.content = content
        self.partials = partials
        self.limit = limit if limit is not None else asyncio.Semaphore(config.max_concurrency)

    async def fetch_and_render(self, template_path: Path) -> GeneratedItem:
        """Render *template_path* into the output tree.

        Failures are reported on the returned item instead of raised, so one
        broken template never stops the rest of the run.
        """
        template_path = Path(template_path)
        output_path = output_path_for(self.config, template_path)
        try:
            async with self.limit:
                output = await self._render(template_path)
                await fs.write_text(output_path, output)
        except Exception as exc:
            if isinstance(exc, TreegenError):
                error = exc
            else:
                error = TemplateError(template_path, str(exc))
                error.__cause__ = exc
            print_warning(f"Failed to render {template_path}: {error}")
            return GeneratedItem("render", template_path, output_path, error)
        return GeneratedItem("render", template_path, output_path)

    async def _render(self, template_path: Path) -> str:
        _, _, key = split_template_name(template_path.name)
        renderer = self.registry.renderer_for(key)

        body, shared, own, partials = await asyncio.gather(
            fs.read_text(template_path),
            self.content.fetch_shared_content(),
            self._fetch_own_content(template_path),
            self.partials.fetch_partials(template_path.parent),
        )

        renderer.set_content({**shared, **own})
        renderer.set_template(body, partials)
        return await renderer.render()

    async def _fetch_own_content(self, template_path: Path) -> dict[str, Any]:
        content_path = content_path_for(self.config, template_path)
        if content_path is None:
            return {}
        return await self.content.fetch_content(content_path)
