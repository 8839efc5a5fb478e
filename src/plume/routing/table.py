"""Route table snapshot produced by the content indexer.

The indexer writes ``routes.json``; this module turns it into frozen,
read-only lookup maps. A ``RouteTable`` is never mutated: reloading the
index produces a new table, so a request that already holds one keeps a
consistent view for its whole lifetime.

Shape of ``routes.json``::

    {
      "exact":     {"/blog/hello": {"type": "single", "file": "posts/hello.md",
                                    "content_type": "post", "slug": "hello"}},
      "redirects": {"/old": {"to": "/blog/hello", "code": 301}},
      "taxonomy":  {"category": {"base": "/category"}},
      "reverse":   {"post:hello": "/blog/hello"}
    }
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any

from plume.errors import ConfigurationError

logger = logging.getLogger("plume.routing")

_EMPTY: Mapping[str, Any] = MappingProxyType({})


@dataclass(frozen=True, slots=True)
class ExactRoute:
    """An ``exact`` entry: one content file, or one content type's archive."""

    kind: str
    content_type: str
    file: str | None = None
    slug: str | None = None
    template: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ExactRoute:
        return cls(
            kind=data.get("type", "single"),
            content_type=data.get("content_type", ""),
            file=data.get("file"),
            slug=data.get("slug"),
            template=data.get("template"),
        )


@dataclass(frozen=True, slots=True)
class RedirectRule:
    """A static redirect (usually from ``redirect_from`` frontmatter)."""

    to: str
    code: int = 301


@dataclass(frozen=True, slots=True)
class TaxonomyRoute:
    """Public base path of a taxonomy, e.g. ``/category``."""

    name: str
    base: str
    hierarchical: bool = False

    @property
    def trimmed_base(self) -> str:
        return self.base.rstrip("/")


@dataclass(frozen=True, slots=True)
class RouteTable:
    """Immutable URL -> descriptor maps built by the indexer."""

    exact: Mapping[str, ExactRoute] = field(default_factory=lambda: _EMPTY)
    redirects: Mapping[str, RedirectRule] = field(default_factory=lambda: _EMPTY)
    taxonomy: Mapping[str, TaxonomyRoute] = field(default_factory=lambda: _EMPTY)
    reverse: Mapping[str, str] = field(default_factory=lambda: _EMPTY)

    # -- Construction --

    @classmethod
    def empty(cls) -> RouteTable:
        return cls()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> RouteTable:
        """Build a table from the decoded ``routes.json`` structure.

        Raises ``ConfigurationError`` if a section has the wrong shape.
        """
        if not isinstance(data, Mapping):
            msg = f"Route table must be a mapping, got {type(data).__name__}"
            raise ConfigurationError(msg)

        exact = {
            url: ExactRoute.from_dict(entry)
            for url, entry in _section(data, "exact").items()
        }

        redirects: dict[str, RedirectRule] = {}
        for url, entry in _section(data, "redirects").items():
            if "to" not in entry:
                msg = f"Redirect for {url!r} has no 'to' target"
                raise ConfigurationError(msg)
            redirects[url] = RedirectRule(to=entry["to"], code=_redirect_code(url, entry.get("code")))

        taxonomy = {
            name: TaxonomyRoute(
                name=name,
                base=entry.get("base", f"/{name}"),
                hierarchical=bool(entry.get("hierarchical", False)),
            )
            for name, entry in _section(data, "taxonomy").items()
        }

        reverse = {str(key): str(url) for key, url in (data.get("reverse") or {}).items()}

        return cls(
            exact=MappingProxyType(exact),
            redirects=MappingProxyType(redirects),
            taxonomy=MappingProxyType(taxonomy),
            reverse=MappingProxyType(reverse),
        )

    @classmethod
    def load(cls, path: str | Path) -> RouteTable:
        """Read ``routes.json``. A missing file yields an empty table."""
        path = Path(path)
        if not path.exists():
            logger.warning("Route table %s not found; serving an empty table", path)
            return cls.empty()
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            msg = f"Route table {path} is not valid JSON: {exc}"
            raise ConfigurationError(msg) from exc
        return cls.from_dict(data)

    # -- URL generation --

    def url_for(self, content_type: str, slug: str) -> str | None:
        """URL of the item ``content_type:slug``, or ``None``.

        Uses the reverse index; tables written without one fall back to a
        linear scan of ``exact``.
        """
        url = self.reverse.get(f"{content_type}:{slug}")
        if url is not None:
            return url
        for candidate, entry in self.exact.items():
            if entry.content_type == content_type and entry.slug == slug:
                return candidate
        return None

    def url_for_term(self, taxonomy: str, term: str) -> str | None:
        """URL of a taxonomy term. The term itself is not validated."""
        route = self.taxonomy.get(taxonomy)
        if route is None:
            return None
        return f"{route.trimmed_base}/{term}"


def _section(data: Mapping[str, Any], name: str) -> Mapping[str, Mapping[str, Any]]:
    section = data.get(name) or {}
    if not isinstance(section, Mapping):
        msg = f"Route table section {name!r} must be a mapping"
        raise ConfigurationError(msg)
    for key, entry in section.items():
        if not isinstance(entry, Mapping):
            msg = f"Route table entry {name}[{key!r}] must be a mapping"
            raise ConfigurationError(msg)
    return section


def _redirect_code(url: str, value: Any) -> int:
    """Status code of a redirect entry; missing or null means 301."""
    if value is None:
        return 301
    try:
        return int(value)
    except (TypeError, ValueError):
        msg = f"Redirect for {url!r} has an invalid code {value!r}"
        raise ConfigurationError(msg) from None
