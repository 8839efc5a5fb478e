"""Markdown renderer wrapping patitas.

Item bodies are rendered on demand, per request. The router never
touches Markdown; only the template renderer does.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from plume.rendering.errors import MarkdownNotInstalledError

if TYPE_CHECKING:
    from patitas import Markdown

    from plume.content.item import Item


class MarkdownRenderer:
    """Render Markdown source to HTML via patitas.

    Args:
        plugins: Patitas plugins to enable (default: all).
        highlight: Enable syntax highlighting for fenced code blocks.
    """

    __slots__ = ("_md",)

    def __init__(
        self,
        *,
        plugins: list[str] | None = None,
        highlight: bool = False,
    ) -> None:
        self._md: Markdown = _get_markdown(plugins=plugins, highlight=highlight)

    def render(self, source: str) -> str:
        """Render Markdown source to an HTML string."""
        if not source:
            return ""
        return self._md(source)

    def render_item(self, item: Item) -> Item:
        """Return *item* with ``html`` set. Already-rendered items pass through."""
        if item.html is not None:
            return item
        if item.raw_html:
            return item.with_html(item.body)
        return item.with_html(self.render(item.body))


def _get_markdown(
    *,
    plugins: list[str] | None,
    highlight: bool,
) -> Markdown:
    """Create a patitas Markdown instance, raising a clear error if missing."""
    try:
        from patitas import Markdown
    except ImportError:
        msg = (
            "plume.rendering.markdown requires 'patitas' for Markdown rendering. "
            "Reinstall plume or run: pip install patitas"
        )
        raise MarkdownNotInstalledError(msg) from None

    return Markdown(plugins=plugins or ["all"], highlight=highlight)
