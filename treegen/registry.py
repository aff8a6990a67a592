"""Renderer and parser registry.

Maps a content-type key (a file's last extension, without the dot) to the
class that handles it.  Registrations accept either the class itself or an
import reference string of the form ``"package.module:Attribute"``.
"""

from __future__ import annotations

import importlib
from typing import Any

from .errors import UnregisteredTypeError
from .parsers import MarkdownParser, Parser, TextParser, YamlParser
from .renderers import Jinja2Renderer, Renderer

BUILTIN_RENDERERS: dict[str, type[Renderer]] = {
    "j2": Jinja2Renderer,
    "jinja": Jinja2Renderer,
}

BUILTIN_PARSERS: dict[str, type[Parser]] = {
    "md": MarkdownParser,
    "markdown": MarkdownParser,
    "yaml": YamlParser,
    "yml": YamlParser,
    "txt": TextParser,
}


def load_reference(ref: str | type) -> type:
    """Resolve ``"package.module:Attribute"`` to the attribute it names.

    Classes pass through unchanged.  ``"package.module.Attribute"`` is accepted
    too.

    Raises:
        ImportError: If the module cannot be imported or lacks the attribute.
    """
    if not isinstance(ref, str):
        return ref

    if ":" in ref:
        module_name, _, attr = ref.partition(":")
    else:
        module_name, _, attr = ref.rpartition(".")
    if not module_name or not attr:
        raise ImportError(f"Invalid import reference: {ref!r}")

    module = importlib.import_module(module_name)
    try:
        return getattr(module, attr)
    except AttributeError as exc:
        raise ImportError(f"Module '{module_name}' has no attribute '{attr}'") from exc


class Registry:
    """Two lookup tables: renderer key -> class and parser key -> class.

    Tables are filled before a run starts and only read while it runs.
    """

    def __init__(self) -> None:
        self.renderers: dict[str, type[Any]] = {}
        self.parsers: dict[str, type[Any]] = {}

    # -- Registration ------------------------------------------------------

    def register_renderer(self, key: str, ref: str | type) -> None:
        """Register (or replace) the renderer for *key*."""
        self.renderers[_normalise_key(key)] = load_reference(ref)

    def register_parser(self, key: str, ref: str | type) -> None:
        """Register (or replace) the parser for *key*."""
        self.parsers[_normalise_key(key)] = load_reference(ref)

    # -- Lookup ------------------------------------------------------------

    def has_renderer(self, key: str) -> bool:
        return _normalise_key(key) in self.renderers

    def has_parser(self, key: str) -> bool:
        return _normalise_key(key) in self.parsers

    def renderer_for(self, key: str) -> Any:
        """Return a new renderer instance for *key*.

        Raises:
            UnregisteredTypeError: If no renderer is registered for *key*.
        """
        try:
            cls = self.renderers[_normalise_key(key)]
        except KeyError:
            raise UnregisteredTypeError("renderer", key) from None
        return cls()

    def parser_for(self, key: str) -> Any:
        """Return a new parser instance for *key*.

        Raises:
            UnregisteredTypeError: If no parser is registered for *key*.
        """
        try:
            cls = self.parsers[_normalise_key(key)]
        except KeyError:
            raise UnregisteredTypeError("parser", key) from None
        return cls()


def default_registry() -> Registry:
    """Return a registry preloaded with the built-in renderers and parsers."""
    registry = Registry()
    for key, renderer in BUILTIN_RENDERERS.items():
        registry.register_renderer(key, renderer)
    for key, parser in BUILTIN_PARSERS.items():
        registry.register_parser(key, parser)
    return registry


def _normalise_key(key: str) -> str:
    return key.lstrip(".")
