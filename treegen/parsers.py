"""Content parsers for non-JSON files in content directories."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

import markdown
import yaml


class Parser(ABC):
    """Base class for content parsers.

    ``parse`` receives the raw bytes of one content file and returns the value
    stored under the file's basename in the content object.
    """

    @abstractmethod
    async def parse(self, raw: bytes) -> Any:
        """Parse *raw* into a structured value."""


class TextParser(Parser):
    """Returns the file as UTF-8 text."""

    async def parse(self, raw: bytes) -> str:
        return raw.decode("utf-8")


class MarkdownParser(Parser):
    """Converts Markdown to an HTML fragment."""

    extensions = ["extra", "sane_lists"]

    async def parse(self, raw: bytes) -> str:
        return markdown.markdown(raw.decode("utf-8"), extensions=self.extensions)


class YamlParser(Parser):
    """Loads a YAML document (``safe_load``); an empty file yields ``{}``."""

    async def parse(self, raw: bytes) -> Any:
        data = yaml.safe_load(raw.decode("utf-8"))
        return {} if data is None else data
