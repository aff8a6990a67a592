"""treegen -- asynchronous template-tree to output-tree generator.

Walks a directory of templates, merges shared and per-page structured content,
renders every template through a registered renderer and writes the result to
a mirrored output tree, copying everything else verbatim.

Quick usage::

    from treegen import GeneratorConfig, generate

    config = GeneratorConfig(
        template_dir="templates",
        output_dir="public",
        content_dir="contents",
        shared_content="shared",
    )
    result = await generate(config)
"""

from treegen.config import GeneratorConfig
from treegen.generator import Generator, RunContext, generate
from treegen.registry import Registry, default_registry
from treegen.tracker import GeneratedItem, GenerationResult

__version__ = "0.1.0"

__all__ = [
    "GeneratedItem",
    "GenerationResult",
    "Generator",
    "GeneratorConfig",
    "Registry",
    "RunContext",
    "default_registry",
    "generate",
]
