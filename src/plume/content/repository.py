"""Read access to the indexer's JSON snapshots.

The indexer (outside this package) writes three files into the cache
directory::

    content_index.json   {"by_type": {type: {slug: record}},
                          "by_path": {relative_path: record},
                          "by_id":   {id: record}}
    tax_index.json       {taxonomy: {"config": {...},
                                     "terms": {slug: {"name", "count", "items"}}}}
    routes.json          see ``plume.routing.table``

All three are loaded together, lazily, into one immutable snapshot.
``reload()`` swaps in a new snapshot; callers that already hold the old
one keep a consistent view.

Free-threading safety:
    - The snapshot is a frozen dataclass of read-only mappings
    - Loading is guarded by a Lock with a double check
    - Readers grab the snapshot reference once and never lock
"""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Protocol, runtime_checkable

from plume.content.item import Item
from plume.content.parser import Parser
from plume.errors import ConfigurationError, ContentError
from plume.routing.table import RouteTable

logger = logging.getLogger("plume.content")

CONTENT_INDEX = "content_index.json"
TAX_INDEX = "tax_index.json"
ROUTES = "routes.json"

_EMPTY: Mapping[str, Any] = MappingProxyType({})


@dataclass(frozen=True, slots=True)
class Term:
    """A taxonomy term and the items filed under it.

    ``items`` holds ``"type:slug"`` keys as written by the indexer.
    """

    slug: str
    name: str = ""
    count: int = 0
    items: tuple[str, ...] = ()
    extra: Mapping[str, Any] = field(default_factory=lambda: _EMPTY)

    @classmethod
    def from_dict(cls, slug: str, data: Mapping[str, Any]) -> Term:
        known = {"slug", "name", "count", "items"}
        items = tuple(str(key) for key in data.get("items") or ())
        return cls(
            slug=str(data.get("slug") or slug),
            name=str(data.get("name") or slug),
            count=int(data.get("count", len(items))),
            items=items,
            extra=MappingProxyType({k: v for k, v in data.items() if k not in known}),
        )


@runtime_checkable
class ContentRepository(Protocol):
    """What the router and the query builder need from content storage."""

    def get(self, content_type: str, slug: str) -> Item | None: ...

    def get_by_path(self, relative_path: str) -> Item | None: ...

    def terms(self, taxonomy: str) -> Mapping[str, Term]: ...

    def term(self, taxonomy: str, slug: str) -> Term | None: ...

    def routes(self) -> RouteTable: ...

    def types(self) -> list[str]: ...

    def all_raw(self, content_type: str) -> list[Mapping[str, Any]]: ...


@dataclass(frozen=True, slots=True)
class _Snapshot:
    by_type: Mapping[str, Mapping[str, Mapping[str, Any]]]
    by_path: Mapping[str, Mapping[str, Any]]
    by_id: Mapping[str, Mapping[str, Any]]
    taxonomies: Mapping[str, Mapping[str, Term]]
    taxonomy_config: Mapping[str, Mapping[str, Any]]
    routes: RouteTable


class IndexRepository:
    """``ContentRepository`` backed by the indexer's JSON snapshots.

    Construct with a cache directory (``IndexRepository(cache_dir)``) or
    from in-memory structures (``IndexRepository.from_data(...)``).
    Relative ``file_path`` values are resolved against *content_dir*.
    """

    __slots__ = ("_cache_dir", "_content_dir", "_data", "_lock", "_parser", "_snapshot")

    def __init__(
        self,
        cache_dir: str | Path | None = None,
        *,
        content_dir: str | Path | None = None,
        parser: Parser | None = None,
    ) -> None:
        self._cache_dir = Path(cache_dir) if cache_dir is not None else None
        self._content_dir = Path(content_dir) if content_dir is not None else None
        self._parser = parser or Parser()
        self._lock = threading.Lock()
        self._snapshot: _Snapshot | None = None
        self._data: tuple[Mapping[str, Any], Mapping[str, Any], Mapping[str, Any]] | None = None

    @classmethod
    def from_data(
        cls,
        *,
        content: Mapping[str, Any] | None = None,
        taxonomies: Mapping[str, Any] | None = None,
        routes: Mapping[str, Any] | None = None,
        content_dir: str | Path | None = None,
    ) -> IndexRepository:
        """Build a repository from already-decoded index structures."""
        repo = cls(content_dir=content_dir)
        repo._data = (content or {}, taxonomies or {}, routes or {})
        return repo

    # -- Snapshot management --

    def _current(self) -> _Snapshot:
        snapshot = self._snapshot
        if snapshot is not None:
            return snapshot
        with self._lock:
            if self._snapshot is None:
                self._snapshot = self._load()
            return self._snapshot

    def reload(self) -> None:
        """Re-read the index files. In-flight readers keep the old snapshot."""
        snapshot = self._load()
        with self._lock:
            self._snapshot = snapshot
        logger.info("Content index reloaded (%d types)", len(snapshot.by_type))

    def _load(self) -> _Snapshot:
        if self._data is not None:
            content, tax, routes = self._data
            table = RouteTable.from_dict(routes)
        else:
            content = self._read_json(CONTENT_INDEX)
            tax = self._read_json(TAX_INDEX)
            table = (
                RouteTable.load(self._cache_dir / ROUTES)
                if self._cache_dir is not None
                else RouteTable.empty()
            )

        by_type = {
            str(ct): MappingProxyType({str(slug): rec for slug, rec in (records or {}).items()})
            for ct, records in (content.get("by_type") or {}).items()
        }
        taxonomies: dict[str, Mapping[str, Term]] = {}
        config: dict[str, Mapping[str, Any]] = {}
        for name, entry in tax.items():
            entry = entry or {}
            terms = entry.get("terms") or {}
            taxonomies[name] = MappingProxyType(
                {str(slug): Term.from_dict(str(slug), data or {}) for slug, data in terms.items()}
            )
            config[name] = MappingProxyType(dict(entry.get("config") or {}))

        return _Snapshot(
            by_type=MappingProxyType(by_type),
            by_path=MappingProxyType(dict(content.get("by_path") or {})),
            by_id=MappingProxyType(dict(content.get("by_id") or {})),
            taxonomies=MappingProxyType(taxonomies),
            taxonomy_config=MappingProxyType(config),
            routes=table,
        )

    def _read_json(self, name: str) -> Mapping[str, Any]:
        if self._cache_dir is None:
            return {}
        path = self._cache_dir / name
        if not path.exists():
            logger.warning("Index file %s not found; treating it as empty", path)
            return {}
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            msg = f"Index file {path} is not valid JSON: {exc}"
            raise ConfigurationError(msg) from exc
        if isinstance(data, list) and not data:
            # Empty JSON arrays stand in for empty objects
            return {}
        if not isinstance(data, Mapping):
            msg = f"Index file {path} must contain a JSON object"
            raise ConfigurationError(msg)
        return data

    # -- Hydration --

    def _resolve(self, file_path: str) -> Path:
        path = Path(file_path)
        if not path.is_absolute() and self._content_dir is not None:
            path = self._content_dir / path
        return path

    def _hydrate(self, record: Mapping[str, Any]) -> Item:
        """Build an item from an index record, reading its body from disk."""
        body = ""
        file_path = str(record.get("file_path") or "")
        if file_path:
            path = self._resolve(file_path)
            if path.is_file():
                try:
                    body = self._parser.parse_file(path, str(record.get("type") or "")).body
                except ContentError:
                    logger.warning("Could not parse %s; serving index data only", path)
        return Item.from_dict(record, body)

    # -- Content retrieval --

    def get(self, content_type: str, slug: str) -> Item | None:
        record = self._current().by_type.get(content_type, _EMPTY).get(slug)
        return self._hydrate(record) if record is not None else None

    def get_by_id(self, item_id: str) -> Item | None:
        record = self._current().by_id.get(item_id)
        return self._hydrate(record) if record is not None else None

    def get_by_path(self, relative_path: str) -> Item | None:
        record = self._current().by_path.get(relative_path)
        return self._hydrate(record) if record is not None else None

    def all(self, content_type: str) -> list[Item]:
        return [self._hydrate(r) for r in self.all_raw(content_type)]

    def published(self, content_type: str) -> list[Item]:
        return [item for item in self.all(content_type) if item.is_published]

    def all_raw(self, content_type: str) -> list[Mapping[str, Any]]:
        """Index records for *content_type*, without touching the disk."""
        return list(self._current().by_type.get(content_type, _EMPTY).values())

    def exists(self, content_type: str, slug: str) -> bool:
        return slug in self._current().by_type.get(content_type, _EMPTY)

    def types(self) -> list[str]:
        return list(self._current().by_type)

    def count(self, content_type: str, status: str | None = None) -> int:
        records = self.all_raw(content_type)
        if status is None:
            return len(records)
        return sum(1 for r in records if Item.from_dict(r).status == status)

    # -- Taxonomies --

    def terms(self, taxonomy: str) -> Mapping[str, Term]:
        return self._current().taxonomies.get(taxonomy, _EMPTY)

    def term(self, taxonomy: str, slug: str) -> Term | None:
        return self.terms(taxonomy).get(slug)

    def items_with_term(self, taxonomy: str, slug: str) -> list[Item]:
        term = self.term(taxonomy, slug)
        if term is None:
            return []
        items: list[Item] = []
        for key in term.items:
            content_type, _, item_slug = key.partition(":")
            item = self.get(content_type, item_slug)
            if item is not None:
                items.append(item)
        return items

    def taxonomy_config(self, taxonomy: str) -> Mapping[str, Any] | None:
        return self._current().taxonomy_config.get(taxonomy)

    def taxonomies(self) -> list[str]:
        return list(self._current().taxonomies)

    # -- Routes --

    def routes(self) -> RouteTable:
        """The route table snapshot. Never mutated; replaced by ``reload()``."""
        return self._current().routes
