"""treegen generation orchestrator.

Wires one run together: builds a fresh :class:`RunContext` from the
configuration, prepares the output root, walks the template tree and waits
until every render and copy has finished.

Usage::

    python -m treegen templates public --content-dir contents --shared-content shared
    python -m treegen --config site.json
"""

from __future__ import annotations

import asyncio
import sys
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from . import fs
from .config import GeneratorConfig
from .content import ContentFetcher
from .errors import ConfigurationError
from .partials import PartialCache
from .pipeline import RenderPipeline
from .registry import Registry, default_registry
from .tracker import GeneratedItem, GenerationResult, RunningActions, maybe_await
from .utils import (
    console,
    format_duration,
    print_error,
    print_header,
    print_success,
    print_summary_table,
)
from .walker import DirectoryWalker

# ---------------------------------------------------------------------------
# Run context
# ---------------------------------------------------------------------------


@dataclass
class RunContext:
    """State owned by one generation run.

    Nothing here outlives the run, so consecutive or concurrent runs never
    share caches or counters.
    """

    config: GeneratorConfig
    registry: Registry
    result: GenerationResult = field(default_factory=GenerationResult)
    tracker: RunningActions = field(init=False)
    limit: asyncio.Semaphore = field(init=False)
    content: ContentFetcher = field(init=False)
    partials: PartialCache = field(init=False)
    pipeline: RenderPipeline = field(init=False)
    walker: DirectoryWalker = field(init=False)

    def __post_init__(self) -> None:
        self.tracker = RunningActions(on_item=self._report)
        self.content = ContentFetcher(self.registry, self.config.shared_content_path)
        self.partials = PartialCache(self.config.template_dir, self.registry)
        self.limit = asyncio.Semaphore(self.config.max_concurrency)
        self.pipeline = RenderPipeline(
            self.config, self.registry, self.content, self.partials, self.limit
        )
        self.walker = DirectoryWalker(
            self.config, self.registry, self.tracker, self.pipeline, self.limit
        )

    async def _report(self, item: GeneratedItem) -> None:
        self.result.items.append(item)
        if self.config.on_each is not None:
            await maybe_await(self.config.on_each(item))


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------


class Generator:
    """Entry point for generation runs.

    Attributes:
        registry: Renderers and parsers available to every run.
    """

    def __init__(self, registry: Registry | None = None) -> None:
        self.registry = registry if registry is not None else default_registry()

    async def generate(self, config: GeneratorConfig) -> GenerationResult:
        """Run one generation and return what it produced.

        Without ``on_start`` the run starts immediately.  With it, ``on_start``
        receives a ``start`` callable; calling it schedules the run and
        returns an awaitable task.  ``start`` may be called from inside the
        hook, awaited by an async hook, or handed to a loop callback and
        called after the hook has returned: this coroutine waits until it has
        been called.  ``on_complete`` is called exactly once, after every
        item has been reported.

        Raises:
            ConfigurationError: If ``template_dir`` is not a directory.
        """
        loop = asyncio.get_running_loop()
        ctx = RunContext(config=config, registry=self.registry)
        started: asyncio.Future[asyncio.Task[None]] = loop.create_future()

        def start() -> asyncio.Task[None]:
            if not started.done():
                started.set_result(loop.create_task(self.prepare_output_directory(ctx)))
            return started.result()

        if config.on_start is None:
            start()
        else:
            await maybe_await(config.on_start(start))
        start_task = await started

        try:
            await start_task
        finally:
            if ctx.tracker.started:
                await ctx.tracker.wait()
            ctx.result.duration = time.monotonic() - ctx.result.started_at

        if config.on_complete is not None:
            await maybe_await(config.on_complete(ctx.result))
        return ctx.result

    async def prepare_output_directory(self, ctx: RunContext) -> None:
        """Ensure ``output_dir`` exists, then walk the template tree."""
        config = ctx.config
        if not await fs.is_dir(config.template_dir):
            raise ConfigurationError(f"Template directory not found: {config.template_dir}")
        if not await fs.is_dir(config.output_dir):
            fs.make_dir(config.output_dir)
        await ctx.walker.traverse_templates(config.template_dir)


async def generate(
    config: GeneratorConfig, registry: Registry | None = None
) -> GenerationResult:
    """Convenience wrapper around :meth:`Generator.generate`."""
    return await Generator(registry).generate(config)


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def _build_config(args: Any) -> GeneratorConfig:
    """Merge ``--config`` JSON (if any) with command-line overrides."""
    overrides: dict[str, Any] = {}
    if args.template_dir:
        overrides["template_dir"] = Path(args.template_dir)
    if args.output_dir:
        overrides["output_dir"] = Path(args.output_dir)
    if args.content_dir:
        overrides["content_dir"] = Path(args.content_dir)
    if args.shared_content:
        overrides["shared_content"] = args.shared_content
    if args.output_extension:
        overrides["output_extension"] = args.output_extension
    if args.max_concurrency:
        overrides["max_concurrency"] = args.max_concurrency

    if args.config:
        return GeneratorConfig.load(Path(args.config), **overrides)
    return GeneratorConfig(**overrides)


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for ``python -m treegen``.

    Returns:
        Process exit status: 0 on success, 1 on invalid configuration or when
        any template or static file failed.
    """
    import argparse

    parser = argparse.ArgumentParser(
        prog="treegen",
        description="treegen -- render a template tree into a mirrored output tree",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  treegen templates public\n"
            "  treegen templates public --content-dir contents --shared-content shared\n"
            "  treegen --config site.json --output-extension htm\n"
        ),
    )
    parser.add_argument("template_dir", nargs="?", help="Root of the template tree")
    parser.add_argument("output_dir", nargs="?", help="Root of the generated tree")
    parser.add_argument("--content-dir", default=None, help="Root of the JSON/markdown content")
    parser.add_argument(
        "--shared-content",
        default=None,
        help="Content path (relative to --content-dir) merged into every page",
    )
    parser.add_argument(
        "--output-extension",
        default=None,
        help="Extension for templates without an explicit one (default: html)",
    )
    parser.add_argument(
        "--max-concurrency",
        type=int,
        default=None,
        help="Maximum renders and copies in progress at once (default: 32)",
    )
    parser.add_argument("--config", "-c", default=None, help="JSON configuration file")
    parser.add_argument("--quiet", "-q", action="store_true", help="Only print failures")

    args = parser.parse_args(argv)

    try:
        config = _build_config(args)
    except (ValidationError, OSError) as exc:
        print_error(f"Invalid configuration: {exc}")
        return 1

    if not args.quiet:
        print_header(f"treegen: {config.template_dir} -> {config.output_dir}")

    try:
        result = asyncio.run(generate(config))
    except ConfigurationError as exc:
        print_error(str(exc))
        return 1

    if not args.quiet:
        print_summary_table(
            {
                "Rendered": str(len(result.rendered)),
                "Copied": str(len(result.copied)),
                "Failed": str(len(result.failures)),
                "Duration": format_duration(result.duration),
            },
            title="Generation",
        )

    if result.success:
        if not args.quiet:
            print_success("Generation completed successfully!")
        return 0

    for item in result.failures:
        console.print(f"  [red]x[/red] {item.source}: {item.error}")
    print_error("Generation finished with failures.")
    return 1


if __name__ == "__main__":
    sys.exit(main())
