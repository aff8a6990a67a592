"""Unit tests for template tree traversal (treegen.walker).

Tests cover:
- Classification: templates, partials, static files, directories
- Recursion and output directory mirroring
- The static file handler (success, reported failure, concurrency limit)
- Template directories that cannot be listed
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from treegen import fs
from treegen.config import GeneratorConfig
from treegen.content import ContentFetcher
from treegen.errors import StaticCopyError, TemplateDirectoryError
from treegen.partials import PartialCache
from treegen.pipeline import RenderPipeline
from treegen.tracker import GeneratedItem, RunningActions
from treegen.walker import DirectoryWalker


def _walker(config: GeneratorConfig, registry, on_item=None) -> DirectoryWalker:
    pipeline = RenderPipeline(
        config,
        registry,
        ContentFetcher(registry, config.shared_content_path),
        PartialCache(config.template_dir, registry),
    )
    return DirectoryWalker(config, registry, RunningActions(on_item=on_item), pipeline)


def _stub_item(kind: str):
    async def stub(path: Path) -> GeneratedItem:
        return GeneratedItem(kind, Path(path), None)

    return stub


class TestClassification:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_partials_are_never_rendered(self, config, site_dirs, make_tree, registry):
        make_tree(site_dirs["templates"], {"_header.mustache": "h", "index.mustache": "i"})
        walker = _walker(config, registry)

        with patch.object(walker.pipeline, "fetch_and_render", side_effect=_stub_item("render")) as render, \
             patch.object(walker, "static_file_handler", side_effect=_stub_item("static")) as static:
            await walker.traverse_templates()
            await walker.tracker.wait()

        render.assert_called_once_with(site_dirs["templates"] / "index.mustache")
        static.assert_not_called()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_other_files_are_static(self, config, site_dirs, make_tree, registry):
        make_tree(
            site_dirs["templates"],
            {"index.html": "<p/>", "index.mustache.swp": "swap", "LICENSE": "MIT"},
        )
        walker = _walker(config, registry)

        with patch.object(walker.pipeline, "fetch_and_render", side_effect=_stub_item("render")) as render, \
             patch.object(walker, "static_file_handler", side_effect=_stub_item("static")) as static:
            await walker.traverse_templates()
            await walker.tracker.wait()

        render.assert_not_called()
        assert sorted(call.args[0].name for call in static.call_args_list) == [
            "LICENSE",
            "index.html",
            "index.mustache.swp",
        ]

    @pytest.mark.unit
    def test_is_template(self, config, registry):
        walker = _walker(config, registry)
        assert walker.is_template("test.html.mustache")
        assert walker.is_template("page.j2")
        assert not walker.is_template("index.mustache.swp")
        assert not walker.is_template("README")


class TestRecursion:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_traverses_recursively(self, config, site_dirs, make_tree, registry):
        make_tree(site_dirs["templates"], {"index.mustache": "i", "sub_dir": {"sub.mustache": "s"}})
        walker = _walker(config, registry)

        with patch.object(walker.pipeline, "fetch_and_render", side_effect=_stub_item("render")) as render:
            await walker.traverse_templates()
            await walker.tracker.wait()

        rendered = {call.args[0] for call in render.call_args_list}
        assert rendered == {
            site_dirs["templates"] / "index.mustache",
            site_dirs["templates"] / "sub_dir" / "sub.mustache",
        }

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_creates_mirrored_subdirectories(self, config, site_dirs, make_tree, registry):
        make_tree(site_dirs["templates"], {"a": {"b": {}}, "c": {}})
        site_dirs["public"].mkdir()
        walker = _walker(config, registry)

        await walker.traverse_templates()
        await walker.tracker.wait()

        assert (site_dirs["public"] / "a" / "b").is_dir()
        assert (site_dirs["public"] / "c").is_dir()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_directory_exists_before_children_are_written(
        self, config, site_dirs, make_tree, registry
    ):
        make_tree(site_dirs["templates"], {"sub": {"page.j2": "x", "logo.svg": "<svg/>"}})
        site_dirs["public"].mkdir()
        seen: list[bool] = []

        def on_item(item: GeneratedItem) -> None:
            seen.append(item.ok and item.output.parent.is_dir())

        walker = _walker(config, registry, on_item=on_item)
        with patch("treegen.walker.fs.make_dir", wraps=lambda p: Path(p).mkdir()) as make_dir:
            await walker.traverse_templates()
            await walker.tracker.wait()

        make_dir.assert_called_once_with(site_dirs["public"] / "sub")
        assert seen == [True, True]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_drains_only_after_whole_tree(self, config, site_dirs, make_tree, registry):
        make_tree(
            site_dirs["templates"],
            {"a.j2": "a", "one": {"b.j2": "b", "two": {"c.j2": "c", "three": {"d.txt": "d"}}}},
        )
        site_dirs["public"].mkdir()
        reported: list[GeneratedItem] = []
        walker = _walker(config, registry, on_item=reported.append)
        drained_with: list[int] = []
        walker.tracker.on_drain = lambda: drained_with.append(len(reported))

        await walker.traverse_templates()
        await walker.tracker.wait()

        assert drained_with == [4]
        assert all(item.ok for item in reported)


class TestStaticFileHandler:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_copies_to_mirrored_path(self, config, site_dirs, make_tree, registry):
        make_tree(site_dirs["templates"], {"sub": {"foo": {"static.html": "<b>hi</b>"}}})
        (site_dirs["public"] / "sub" / "foo").mkdir(parents=True)
        walker = _walker(config, registry)

        item = await walker.static_file_handler(site_dirs["templates"] / "sub" / "foo" / "static.html")

        assert item.ok
        assert item.kind == "static"
        assert item.output == site_dirs["public"] / "sub" / "foo" / "static.html"
        assert item.output.read_text(encoding="utf-8") == "<b>hi</b>"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_issues_copy_command(self, config, site_dirs, registry):
        walker = _walker(config, registry)
        source = site_dirs["templates"] / "sub" / "foo" / "static.html"

        with patch("treegen.fs.run_command", new=AsyncMock(return_value=(0, "", ""))) as run:
            item = await walker.static_file_handler(source)

        run.assert_awaited_once_with(
            ["cp", str(source), str(site_dirs["public"] / "sub" / "foo" / "static.html")]
        )
        assert item.ok

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_copy_failure_is_reported(self, config, site_dirs, make_tree, registry):
        make_tree(site_dirs["templates"], {"missing-dir": {"a.css": "x"}})
        walker = _walker(config, registry)

        # Destination directory does not exist, so cp fails.
        item = await walker.static_file_handler(site_dirs["templates"] / "missing-dir" / "a.css")

        assert not item.ok
        assert isinstance(item.error, StaticCopyError)
        assert item.error.returncode != 0

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_copy_command_not_found(self, site_dirs, make_tree, registry):
        make_tree(site_dirs["templates"], {"a.css": "x"})
        config = GeneratorConfig(
            template_dir=site_dirs["templates"],
            output_dir=site_dirs["public"],
            copy_command=["treegen-no-such-copy-program"],
        )
        walker = _walker(config, registry)

        item = await walker.static_file_handler(site_dirs["templates"] / "a.css")

        assert isinstance(item.error, StaticCopyError)
        assert item.error.returncode == 127

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_copy_waits_for_a_free_slot(self, config, site_dirs, registry):
        walker = _walker(config, registry)
        walker.limit = asyncio.Semaphore(1)
        source = site_dirs["templates"] / "a.css"

        with patch("treegen.fs.run_command", new=AsyncMock(return_value=(0, "", ""))) as run:
            await walker.limit.acquire()
            copy = asyncio.create_task(walker.static_file_handler(source))
            await asyncio.sleep(0.01)
            run.assert_not_awaited()

            walker.limit.release()
            item = await copy

        run.assert_awaited_once()
        assert item.ok


class TestUnreadableDirectory:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_listing_failure_is_reported_and_walk_continues(
        self, config, site_dirs, make_tree, registry
    ):
        make_tree(site_dirs["templates"], {"locked": {"a.j2": "a"}, "open": {"b.j2": "b"}})
        site_dirs["public"].mkdir()
        locked = site_dirs["templates"] / "locked"
        list_dir = fs.list_dir

        async def failing_list_dir(path: Path) -> list[str]:
            if Path(path) == locked:
                raise PermissionError(13, "Permission denied", str(path))
            return await list_dir(path)

        reported: list[GeneratedItem] = []
        walker = _walker(config, registry, on_item=reported.append)
        with patch("treegen.walker.fs.list_dir", new=failing_list_dir):
            await walker.traverse_templates()
            await walker.tracker.wait()

        failures = [item for item in reported if not item.ok]
        assert [(item.kind, item.source) for item in failures] == [("directory", locked)]
        assert isinstance(failures[0].error, TemplateDirectoryError)
        assert isinstance(failures[0].error.__cause__, PermissionError)
        assert failures[0].output == site_dirs["public"] / "locked"
        assert (site_dirs["public"] / "open" / "b.html").read_text(encoding="utf-8") == "b"
