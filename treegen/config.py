"""treegen configuration.

A single typed, immutable configuration record for one generation run.  The
model is built with Pydantic v2 so paths and options are validated at
construction time and can be round-tripped through JSON or read from
environment variables.
"""

from __future__ import annotations

import os
from collections.abc import Callable
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class GeneratorConfig(BaseModel):
    """Configuration for one generation run.

    ``template_dir`` and ``output_dir`` are required; everything else is
    optional.  The hooks are plain callables (sync or async) and are never
    serialised:

    * ``on_start(start)`` receives a zero-argument ``start`` callable.
      Calling it (now, later from a loop callback, or after awaiting
      something) schedules output-root preparation and the walk, and returns
      the task.  The run waits until ``start`` has been called.
    * ``on_each(item)`` receives a :class:`~treegen.tracker.GeneratedItem`
      after every render, static copy or unreadable template directory,
      successful or not.
    * ``on_complete(result)`` receives the
      :class:`~treegen.tracker.GenerationResult` exactly once per run.
    """

    model_config = ConfigDict(frozen=True)

    template_dir: Path = Field(..., description="Root of the template tree to mirror")
    output_dir: Path = Field(..., description="Root of the generated tree")
    content_dir: Path | None = Field(default=None, description="Root of the structured content")
    shared_content: str | None = Field(
        default=None, description="Content path, relative to content_dir, merged into every page"
    )
    output_extension: str = Field(
        default="html", description="Extension for templates without an explicit one"
    )
    copy_command: list[str] = Field(
        default_factory=lambda: ["cp"],
        min_length=1,
        description="Program (and leading arguments) used to copy static files",
    )
    max_concurrency: int = Field(
        default=32, ge=1, description="Maximum renders and static copies in progress at once"
    )

    on_start: Callable[..., Any] | None = Field(default=None, exclude=True)
    on_complete: Callable[..., Any] | None = Field(default=None, exclude=True)
    on_each: Callable[..., Any] | None = Field(default=None, exclude=True)

    @field_validator("output_extension")
    @classmethod
    def _strip_leading_dot(cls, value: str) -> str:
        value = value.strip()
        if value.startswith("."):
            value = value[1:]
        if not value:
            raise ValueError("output_extension must not be empty")
        return value

    # ------------------------------------------------------------------
    # Derived paths
    # ------------------------------------------------------------------

    @property
    def shared_content_path(self) -> Path | None:
        """Logical content path of the shared content, if configured."""
        if self.content_dir is None or not self.shared_content:
            return None
        return self.content_dir / self.shared_content

    def mirror_path(self, source: Path) -> Path:
        """Return *source* with ``template_dir`` replaced by ``output_dir``."""
        return self.output_dir / Path(source).relative_to(self.template_dir)

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path) -> Path:
        """Persist the configuration (without hooks) to a JSON file."""
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return target

    @classmethod
    def load(cls, path: Path, **overrides: Any) -> "GeneratorConfig":
        """Load a configuration from JSON.

        Args:
            path: The JSON file to read.
            **overrides: Values (including hooks) that replace or extend the
                file's settings.

        Returns:
            A validated ``GeneratorConfig`` instance.
        """
        raw = Path(path).read_text(encoding="utf-8")
        if not overrides:
            return cls.model_validate_json(raw)
        data = cls.model_validate_json(raw).model_dump()
        data.update(overrides)
        return cls(**data)

    @classmethod
    def from_env(cls, **overrides: Any) -> "GeneratorConfig":
        """Build a ``GeneratorConfig`` from environment variables.

        Recognised variables:
            TREEGEN_TEMPLATE_DIR, TREEGEN_OUTPUT_DIR (required unless given in
            *overrides*), TREEGEN_CONTENT_DIR, TREEGEN_SHARED_CONTENT,
            TREEGEN_OUTPUT_EXTENSION, TREEGEN_COPY_COMMAND (space separated),
            TREEGEN_MAX_CONCURRENCY.
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("TREEGEN_TEMPLATE_DIR"):
            kwargs["template_dir"] = Path(os.environ["TREEGEN_TEMPLATE_DIR"])
        if os.environ.get("TREEGEN_OUTPUT_DIR"):
            kwargs["output_dir"] = Path(os.environ["TREEGEN_OUTPUT_DIR"])
        if os.environ.get("TREEGEN_CONTENT_DIR"):
            kwargs["content_dir"] = Path(os.environ["TREEGEN_CONTENT_DIR"])
        if os.environ.get("TREEGEN_SHARED_CONTENT"):
            kwargs["shared_content"] = os.environ["TREEGEN_SHARED_CONTENT"]
        if os.environ.get("TREEGEN_OUTPUT_EXTENSION"):
            kwargs["output_extension"] = os.environ["TREEGEN_OUTPUT_EXTENSION"]
        if os.environ.get("TREEGEN_COPY_COMMAND"):
            kwargs["copy_command"] = os.environ["TREEGEN_COPY_COMMAND"].split()
        if os.environ.get("TREEGEN_MAX_CONCURRENCY"):
            kwargs["max_concurrency"] = int(os.environ["TREEGEN_MAX_CONCURRENCY"])

        kwargs.update(overrides)
        return cls(**kwargs)
