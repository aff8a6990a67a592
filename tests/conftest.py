"""Shared pytest fixtures for the treegen test suite.

Provides reusable fixtures for:
- Building template / content trees on disk from plain dicts
- A recording renderer registered under the ``mustache`` key
- Registries and configurations pointing at temporary directories
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from treegen.config import GeneratorConfig
from treegen.registry import Registry, default_registry
from treegen.renderers import Renderer


# ---------------------------------------------------------------------------
# Test renderer
# ---------------------------------------------------------------------------


class RecordingRenderer(Renderer):
    """Renderer that echoes its inputs so tests can inspect them.

    Output format: ``<template>|<sorted content keys>|<sorted partial names>``.
    """

    instances: list["RecordingRenderer"] = []

    def __init__(self) -> None:
        super().__init__()
        RecordingRenderer.instances.append(self)

    async def render(self) -> str:
        keys = ",".join(sorted(self.content))
        partials = ",".join(sorted(self.partials))
        return f"{self.template}|{keys}|{partials}"


@pytest.fixture(autouse=True)
def _reset_recording_renderer():
    RecordingRenderer.instances.clear()
    yield
    RecordingRenderer.instances.clear()


@pytest.fixture
def recording_renderer() -> type[RecordingRenderer]:
    """The :class:`RecordingRenderer` class (instances are reset per test)."""
    return RecordingRenderer


# ---------------------------------------------------------------------------
# Trees on disk
# ---------------------------------------------------------------------------


def write_tree(root: Path, tree: dict[str, Any]) -> Path:
    """Create files and directories under *root* from a nested dict.

    String values become UTF-8 files, bytes are written as-is and dict values
    become sub-directories.
    """
    root.mkdir(parents=True, exist_ok=True)
    for name, value in tree.items():
        path = root / name
        if isinstance(value, dict):
            write_tree(path, value)
        elif isinstance(value, bytes):
            path.write_bytes(value)
        else:
            path.write_text(value, encoding="utf-8")
    return root


@pytest.fixture
def make_tree():
    """Factory fixture wrapping :func:`write_tree`."""
    return write_tree


# ---------------------------------------------------------------------------
# Registry & configuration
# ---------------------------------------------------------------------------


@pytest.fixture
def registry() -> Registry:
    """Default registry plus the recording renderer under ``mustache``."""
    reg = default_registry()
    reg.register_renderer("mustache", RecordingRenderer)
    return reg


@pytest.fixture
def site_dirs(tmp_path: Path) -> dict[str, Path]:
    """Empty template / output / content roots inside ``tmp_path``."""
    dirs = {
        "templates": tmp_path / "templates",
        "public": tmp_path / "public",
        "contents": tmp_path / "contents",
    }
    dirs["templates"].mkdir()
    dirs["contents"].mkdir()
    return dirs


@pytest.fixture
def config(site_dirs: dict[str, Path]) -> GeneratorConfig:
    """Configuration over ``site_dirs`` with shared content at ``shared``."""
    return GeneratorConfig(
        template_dir=site_dirs["templates"],
        output_dir=site_dirs["public"],
        content_dir=site_dirs["contents"],
        shared_content="shared",
        output_extension="html",
    )
