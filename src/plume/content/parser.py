"""Markdown files with YAML frontmatter.

::

    ---
    title: Hello
    status: published
    ---
    Body text in **Markdown**.
"""

import re
from pathlib import Path

import yaml

from plume.content.item import Item
from plume.errors import ContentError

DELIMITER = "---"

_SLUG_RE = re.compile(r"^[a-z0-9-]+$")
VALID_STATUSES = ("draft", "published", "unlisted", "private")


class Parser:
    """Split frontmatter from body and build ``Item`` objects."""

    __slots__ = ()

    def parse_file(self, path: str | Path, content_type: str) -> Item:
        path = Path(path)
        if not path.is_file():
            msg = f"Content file not found: {path}"
            raise ContentError(msg)
        return self.parse(path.read_text(encoding="utf-8"), str(path), content_type)

    def parse(self, content: str, file_path: str, content_type: str) -> Item:
        """Parse *content* into an ``Item``.

        Raises ``ContentError`` for an unterminated frontmatter block or
        frontmatter that is not a YAML mapping.
        """
        header, body = self.split(content)
        meta: dict = {}
        if header:
            try:
                loaded = yaml.safe_load(header)
            except yaml.YAMLError as exc:
                msg = f"Invalid YAML frontmatter in {file_path}: {exc}"
                raise ContentError(msg) from exc
            if loaded is not None and not isinstance(loaded, dict):
                msg = f"Frontmatter in {file_path} must be a mapping"
                raise ContentError(msg)
            meta = loaded or {}
        return Item(
            frontmatter=self._apply_defaults(meta, file_path),
            body=body,
            file_path=file_path,
            type=content_type,
        )

    @staticmethod
    def split(content: str) -> tuple[str, str]:
        """Return ``(frontmatter, body)``. No header yields ``("", content)``."""
        content = content.lstrip()
        if not content.startswith(DELIMITER):
            return "", content
        end = content.find("\n" + DELIMITER, len(DELIMITER))
        if end == -1:
            msg = (
                "Missing closing frontmatter delimiter (---). Files must start "
                "with --- and have a closing --- on its own line."
            )
            raise ContentError(msg)
        header = content[len(DELIMITER) : end]
        body = content[end + 1 + len(DELIMITER) :]
        return header.strip(), body.lstrip("\r\n")

    @staticmethod
    def _apply_defaults(meta: dict, file_path: str) -> dict:
        meta = dict(meta)
        if not meta.get("slug"):
            meta["slug"] = Path(file_path).stem
        if not meta.get("title"):
            meta["title"] = str(meta["slug"]).replace("-", " ").replace("_", " ").title()
        if not meta.get("status"):
            meta["status"] = "draft"
        return meta

    @staticmethod
    def validate(item: Item) -> list[str]:
        """Return human-readable problems with *item*; empty means valid."""
        errors: list[str] = []
        if not item.title:
            errors.append("Missing required field: title")
        if not item.slug:
            errors.append("Missing required field: slug")
        if item.status not in VALID_STATUSES:
            allowed = ", ".join(VALID_STATUSES)
            errors.append(f"Invalid status: {item.status} (must be one of {allowed})")
        if item.slug and not _SLUG_RE.match(item.slug):
            errors.append(f"Slug must be lowercase alphanumeric with hyphens: {item.slug}")
        return errors
