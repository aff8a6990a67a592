"""Template renderers.

A renderer is constructed with no arguments, receives the merged content and
the template body with its partial set, and produces the output text from
:meth:`Renderer.render`.  The walker picks a renderer class from the
:class:`~treegen.registry.Registry` by the template's last extension and
creates a fresh instance per template.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from jinja2 import DictLoader, Environment


class Renderer(ABC):
    """Base class for template renderers."""

    def __init__(self) -> None:
        self.content: dict[str, Any] = {}
        self.template: str = ""
        self.partials: dict[str, str] = {}

    def set_content(self, content: dict[str, Any]) -> None:
        """Receive the merged content object for this template."""
        self.content = content

    def set_template(self, body: str, partials: dict[str, str]) -> None:
        """Receive the template body and the partials visible to it."""
        self.template = body
        self.partials = partials

    @abstractmethod
    async def render(self) -> str:
        """Render the template and return the output text."""


class Jinja2Renderer(Renderer):
    """Renders templates with Jinja2.

    Partials are exposed through a ``DictLoader`` keyed by partial name, so a
    template includes ``_header.j2`` with ``{% include "header" %}``.
    """

    def __init__(self) -> None:
        super().__init__()
        self.env = Environment(
            loader=DictLoader({}),
            autoescape=False,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def set_template(self, body: str, partials: dict[str, str]) -> None:
        super().set_template(body, partials)
        self.env.loader = DictLoader(dict(partials))

    async def render(self) -> str:
        template = self.env.from_string(self.template)
        return template.render(**self.content)
