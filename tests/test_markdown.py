"""Tests for plume.rendering.markdown — patitas wrapper and item rendering."""

from __future__ import annotations

import sys

import pytest

from plume.content.item import Item
from plume.errors import PlumeError
from plume.rendering.errors import MarkdownNotInstalledError, RenderingError


class TestMarkdownRenderer:
    """Test the core MarkdownRenderer wrapper over patitas."""

    @pytest.fixture(autouse=True)
    def _needs_patitas(self) -> None:
        pytest.importorskip("patitas")

    def test_renders_heading(self) -> None:
        from plume.rendering.markdown import MarkdownRenderer

        html = MarkdownRenderer().render("# Hello")
        assert "<h1" in html
        assert "Hello" in html

    def test_renders_emphasis(self) -> None:
        from plume.rendering.markdown import MarkdownRenderer

        html = MarkdownRenderer().render("**bold** and *italic*")
        assert "<strong>" in html
        assert "<em>" in html

    def test_empty_source_returns_empty(self) -> None:
        from plume.rendering.markdown import MarkdownRenderer

        assert MarkdownRenderer().render("") == ""

    def test_plugins_forwarded(self) -> None:
        from plume.rendering.markdown import MarkdownRenderer

        html = MarkdownRenderer(plugins=["strikethrough"]).render("~~deleted~~")
        assert "<del>" in html

    def test_render_item(self) -> None:
        from plume.rendering.markdown import MarkdownRenderer

        item = Item({"title": "T"}, body="Some *text*")
        rendered = MarkdownRenderer().render_item(item)
        assert rendered.html is not None
        assert "<em>text</em>" in rendered.html
        assert item.html is None

    def test_raw_html_passes_through(self) -> None:
        from plume.rendering.markdown import MarkdownRenderer

        item = Item({"raw_html": True}, body="<div>*not markdown*</div>")
        assert MarkdownRenderer().render_item(item).html == "<div>*not markdown*</div>"

    def test_already_rendered(self) -> None:
        from plume.rendering.markdown import MarkdownRenderer

        item = Item(body="# x").with_html("<b>cached</b>")
        assert MarkdownRenderer().render_item(item) is item


class TestErrorHandling:
    def test_hierarchy(self) -> None:
        assert issubclass(RenderingError, PlumeError)
        assert issubclass(MarkdownNotInstalledError, RenderingError)

    def test_error_message(self) -> None:
        err = MarkdownNotInstalledError("plume.rendering.markdown requires 'patitas'")
        assert "patitas" in str(err)

    def test_missing_patitas_raises_clear_error(self, monkeypatch: pytest.MonkeyPatch) -> None:
        from plume.rendering.markdown import MarkdownRenderer

        monkeypatch.setitem(sys.modules, "patitas", None)
        with pytest.raises(MarkdownNotInstalledError, match="pip install patitas"):
            MarkdownRenderer()
