"""Rendering adapters: Markdown bodies via patitas, pages via kida.

Basic usage::

    from plume.rendering import TemplateRenderer

    renderer = TemplateRenderer(config, hooks=hooks)
    response = renderer.render(match, request)

Both are imported lazily, so ``import plume`` stays cheap.
"""

from plume.rendering.errors import (
    MarkdownNotInstalledError,
    RenderingError,
    TemplateNotFoundError,
)
from plume.rendering.markdown import MarkdownRenderer
from plume.rendering.protocol import Renderer

__all__ = [
    "MarkdownNotInstalledError",
    "MarkdownRenderer",
    "Renderer",
    "RenderingError",
    "TemplateNotFoundError",
    "TemplateRenderer",
]


def __getattr__(name: str) -> object:
    """Load the kida-backed renderer only when asked for."""
    if name == "TemplateRenderer":
        from plume.rendering.templates import TemplateRenderer

        return TemplateRenderer

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
