"""Content item: frontmatter plus Markdown body.

Items are immutable. Rendering produces a new item through
``with_html()``, so the cached item held by the repository is never
touched by a request.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import date, datetime, time
from types import MappingProxyType
from typing import Any


def parse_date(value: Any) -> datetime | None:
    """Coerce a frontmatter date into a ``datetime``.

    PyYAML already yields ``date``/``datetime`` objects for unquoted
    ISO dates; strings and Unix timestamps are accepted too. Anything
    unparseable is ``None``.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time())
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value)
    try:
        return datetime.fromisoformat(str(value).strip())
    except ValueError:
        return None


def _as_list(value: Any) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


@dataclass(frozen=True, slots=True)
class Item:
    """A single piece of content.

    ``frontmatter`` is the parsed YAML header; ``body`` is the raw
    Markdown that followed it. ``html`` is only set on rendered copies.
    """

    frontmatter: Mapping[str, Any] = field(default_factory=dict)
    body: str = ""
    file_path: str = ""
    type: str = ""
    html: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.frontmatter, MappingProxyType):
            object.__setattr__(self, "frontmatter", MappingProxyType(dict(self.frontmatter)))

    # -- Core fields --

    @property
    def id(self) -> str | None:
        return self.frontmatter.get("id")

    @property
    def title(self) -> str:
        return str(self.frontmatter.get("title") or "")

    @property
    def slug(self) -> str:
        return str(self.frontmatter.get("slug") or "")

    @property
    def status(self) -> str:
        return str(self.frontmatter.get("status") or "draft")

    @property
    def is_published(self) -> bool:
        return self.status == "published"

    @property
    def is_draft(self) -> bool:
        return self.status == "draft"

    @property
    def is_unlisted(self) -> bool:
        return self.status == "unlisted"

    # -- Dates --

    @property
    def date(self) -> datetime | None:
        return parse_date(self.frontmatter.get("date"))

    @property
    def updated(self) -> datetime | None:
        """Last modification date, falling back to ``date``."""
        return parse_date(self.frontmatter.get("updated")) or self.date

    # -- Content --

    @property
    def excerpt(self) -> str | None:
        return self.frontmatter.get("excerpt")

    @property
    def raw_html(self) -> bool:
        return bool(self.frontmatter.get("raw_html", False))

    @property
    def template(self) -> str | None:
        return self.frontmatter.get("template")

    def with_html(self, html: str) -> Item:
        """Return a copy carrying rendered HTML."""
        return replace(self, html=html)

    # -- Taxonomies --

    def terms(self, taxonomy: str | None = None) -> Any:
        """Term slugs for *taxonomy*.

        Supports both the nested ``tax: {category: [...]}`` form and the
        flat ``category: [...]`` form. Without *taxonomy*, returns the
        whole nested mapping (flat frontmatter yields ``{}``).
        """
        nested = self.frontmatter.get("tax")
        if isinstance(nested, Mapping):
            if taxonomy is None:
                return dict(nested)
            return _as_list(nested.get(taxonomy))
        if taxonomy is None:
            return {}
        return _as_list(self.frontmatter.get(taxonomy))

    # -- SEO --

    @property
    def meta_title(self) -> str | None:
        return self.frontmatter.get("meta_title")

    @property
    def meta_description(self) -> str | None:
        return self.frontmatter.get("meta_description")

    @property
    def noindex(self) -> bool:
        return bool(self.frontmatter.get("noindex", False))

    @property
    def canonical(self) -> str | None:
        return self.frontmatter.get("canonical")

    @property
    def og_image(self) -> str | None:
        return self.frontmatter.get("og_image")

    @property
    def redirect_from(self) -> list[str]:
        return [str(url) for url in _as_list(self.frontmatter.get("redirect_from"))]

    # -- Hierarchy --

    @property
    def parent(self) -> str | None:
        return self.frontmatter.get("parent")

    @property
    def order(self) -> int:
        try:
            return int(self.frontmatter.get("order") or 0)
        except (TypeError, ValueError):
            return 0

    # -- Generic access --

    def get(self, key: str, default: Any = None) -> Any:
        value = self.frontmatter.get(key)
        return default if value is None else value

    def has(self, key: str) -> bool:
        return key in self.frontmatter

    # -- Serialization --

    def to_dict(self) -> dict[str, Any]:
        item_date = self.date
        updated = self.updated
        return {
            "id": self.id,
            "title": self.title,
            "slug": self.slug,
            "status": self.status,
            "type": self.type,
            "file_path": self.file_path,
            "date": item_date.isoformat() if item_date else None,
            "updated": updated.isoformat() if updated else None,
            "excerpt": self.excerpt,
            "body": self.body,
            "template": self.template,
            "parent": self.parent,
            "order": self.order,
            "redirect_from": self.redirect_from,
            "frontmatter": dict(self.frontmatter),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], body: str = "") -> Item:
        """Build from an index record or a ``to_dict()`` result.

        Index records carry the frontmatter either nested under
        ``frontmatter`` or flattened into the record itself.
        """
        frontmatter = data.get("frontmatter")
        if not isinstance(frontmatter, Mapping):
            frontmatter = data
        return cls(
            frontmatter=frontmatter,
            body=body or str(data.get("body") or ""),
            file_path=str(data.get("file_path") or ""),
            type=str(data.get("type") or ""),
        )
