"""Tests for plume.content.parser — frontmatter splitting and validation."""

from datetime import date
from pathlib import Path

import pytest

from plume.content.item import Item
from plume.content.parser import Parser
from plume.errors import ContentError


class TestSplit:
    def test_header_and_body(self) -> None:
        header, body = Parser.split("---\ntitle: Hi\n---\nBody\n")
        assert header == "title: Hi"
        assert body == "Body\n"

    def test_no_header(self) -> None:
        assert Parser.split("Just text") == ("", "Just text")

    def test_leading_whitespace(self) -> None:
        header, _ = Parser.split("\n\n---\na: 1\n---\n")
        assert header == "a: 1"

    def test_unterminated(self) -> None:
        with pytest.raises(ContentError, match="closing frontmatter delimiter"):
            Parser.split("---\ntitle: Hi\nBody\n")


class TestParse:
    def test_fields(self) -> None:
        item = Parser().parse(
            "---\ntitle: Hello\nstatus: published\ndate: 2024-01-02\n---\n# Hi\n",
            "posts/hello.md",
            "post",
        )
        assert item.title == "Hello"
        assert item.slug == "hello"
        assert item.is_published
        assert item.frontmatter["date"] == date(2024, 1, 2)
        assert item.body == "# Hi\n"
        assert item.type == "post"
        assert item.file_path == "posts/hello.md"

    def test_defaults_from_filename(self) -> None:
        item = Parser().parse("Body only", "posts/my_first-post.md", "post")
        assert item.slug == "my_first-post"
        assert item.title == "My First Post"
        assert item.status == "draft"

    def test_empty_header(self) -> None:
        item = Parser().parse("---\n---\nBody", "a.md", "page")
        assert item.slug == "a"
        assert item.body == "Body"

    def test_invalid_yaml(self) -> None:
        with pytest.raises(ContentError, match="Invalid YAML"):
            Parser().parse("---\ntitle: [unclosed\n---\n", "bad.md", "post")

    def test_non_mapping(self) -> None:
        with pytest.raises(ContentError, match="must be a mapping"):
            Parser().parse("---\n- a\n- b\n---\n", "list.md", "post")

    def test_parse_file(self, tmp_path: Path) -> None:
        path = tmp_path / "about.md"
        path.write_text("---\ntitle: About us\n---\nWho we are.", encoding="utf-8")
        item = Parser().parse_file(path, "page")
        assert item.title == "About us"
        assert item.body == "Who we are."

    def test_parse_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ContentError, match="not found"):
            Parser().parse_file(tmp_path / "nope.md", "page")


class TestValidate:
    def test_valid(self) -> None:
        item = Item({"title": "T", "slug": "a-b-1", "status": "published"})
        assert Parser.validate(item) == []

    def test_missing_fields(self) -> None:
        errors = Parser.validate(Item({"status": "draft"}))
        assert "Missing required field: title" in errors
        assert "Missing required field: slug" in errors

    def test_bad_status(self) -> None:
        errors = Parser.validate(Item({"title": "T", "slug": "t", "status": "live"}))
        assert errors == ["Invalid status: live (must be one of draft, published, unlisted, private)"]

    def test_bad_slug(self) -> None:
        errors = Parser.validate(Item({"title": "T", "slug": "Hello World"}))
        assert errors == ["Slug must be lowercase alphanumeric with hyphens: Hello World"]
