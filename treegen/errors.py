"""Exception types raised by treegen."""

from __future__ import annotations

from pathlib import Path


class TreegenError(Exception):
    """Base class for every error raised by treegen."""


class ConfigurationError(TreegenError):
    """Raised when the run configuration cannot be used (e.g. no template root)."""


class UnregisteredTypeError(TreegenError, KeyError):
    """Raised when a renderer or parser is requested for an unknown key."""

    def __init__(self, kind: str, key: str) -> None:
        self.kind = kind
        self.key = key
        super().__init__(f"No {kind} registered for '{key}'")

    def __str__(self) -> str:
        # KeyError.__str__ would repr() the message.
        return str(self.args[0])


class ContentError(TreegenError):
    """Raised when a content file exists but cannot be parsed."""

    def __init__(self, path: Path, message: str) -> None:
        self.path = path
        super().__init__(f"{path}: {message}")


class ContentDirectoryError(TreegenError):
    """Raised when a content directory cannot be listed."""

    def __init__(self, path: Path, message: str) -> None:
        self.path = path
        super().__init__(f"Cannot read content directory {path}: {message}")


class TemplateDirectoryError(TreegenError):
    """Raised when a directory of the template tree cannot be listed."""

    def __init__(self, path: Path, message: str) -> None:
        self.path = path
        super().__init__(f"Cannot read template directory {path}: {message}")


class TemplateError(TreegenError):
    """Raised when a template cannot be read, rendered or written."""

    def __init__(self, path: Path, message: str) -> None:
        self.path = path
        super().__init__(f"{path}: {message}")


class StaticCopyError(TreegenError):
    """Raised when the copy command for a static file fails."""

    def __init__(self, source: Path, destination: Path, returncode: int, stderr: str = "") -> None:
        self.source = source
        self.destination = destination
        self.returncode = returncode
        self.stderr = stderr
        detail = f": {stderr}" if stderr else ""
        super().__init__(
            f"Copying {source} -> {destination} failed with exit code {returncode}{detail}"
        )
