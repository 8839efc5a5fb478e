"""Immutable content query builder.

Accumulates filters through chaining methods and runs them against a
``ContentRepository``'s raw index records. Items are only built for the
requested page.

Each method returns a new frozen ``Query``; the original is never mutated.
Same pattern as ``Response.with_*()``.

Usage::

    posts = (
        Query(repository)
        .type("post")
        .published()
        .where_tax("category", "news")
        .order_by("date", "desc")
        .per_page(10)
        .page(2)
        .get()
    )

Query-string parameters map onto the same builder::

    Query(repository).from_params(request.query).type("post").published()

Free-threading safety:
    - Frozen dataclass, immutable after creation
    - Tuple accumulators, no shared mutable state
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping
from dataclasses import dataclass, replace
from datetime import datetime
from typing import TYPE_CHECKING, Any

from plume.content.item import Item, parse_date

if TYPE_CHECKING:
    from plume.content.repository import ContentRepository

MAX_PER_PAGE = 100
DEFAULT_PER_PAGE = 10

_TOKEN_SPLIT = re.compile(r"\s+")


def _clamp_per_page(count: int) -> int:
    return max(1, min(MAX_PER_PAGE, count))


def _to_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


@dataclass(frozen=True, slots=True)
class FieldFilter:
    """``where(field, value, operator)`` clause."""

    field: str
    value: Any
    operator: str = "="

    def matches(self, record: Mapping[str, Any]) -> bool:
        meta = record.get("meta")
        actual = meta.get(self.field) if isinstance(meta, Mapping) else None
        if actual is None:
            actual = record.get(self.field)
        expected = self.value
        try:
            match self.operator:
                case "=":
                    return actual == expected
                case "!=":
                    return actual != expected
                case ">":
                    return actual is not None and actual > expected
                case ">=":
                    return actual is not None and actual >= expected
                case "<":
                    return actual is not None and actual < expected
                case "<=":
                    return actual is not None and actual <= expected
                case "in":
                    return isinstance(expected, (list, tuple, set, frozenset)) and actual in expected
                case "not_in":
                    return isinstance(expected, (list, tuple, set, frozenset)) and actual not in expected
                case "like":
                    return isinstance(actual, str) and str(expected).lower() in actual.lower()
                case _:
                    return False
        except TypeError:
            # Incomparable types never match
            return False


@dataclass(frozen=True, slots=True)
class Query:
    """Immutable content query.

    Construct with a repository, chain methods to add filters, then
    execute with ``get()``, ``first()``, ``count()`` and friends. Every
    execution re-reads the repository; results are not cached.
    """

    _repository: ContentRepository
    _type: str | None = None
    _status: str | None = None
    _taxonomies: tuple[tuple[str, str], ...] = ()
    _fields: tuple[FieldFilter, ...] = ()
    _order_by: str = "date"
    _order: str = "desc"
    _per_page: int = DEFAULT_PER_PAGE
    _page: int = 1
    _search: str | None = None

    # -- Building --

    def type(self, content_type: str) -> Query:
        return replace(self, _type=content_type)

    def status(self, status: str) -> Query:
        return replace(self, _status=status)

    def published(self) -> Query:
        return self.status("published")

    def where_tax(self, taxonomy: str, term: str) -> Query:
        """Require *term* in *taxonomy*. Replaces an earlier filter on the same taxonomy."""
        kept = tuple((t, v) for t, v in self._taxonomies if t != taxonomy)
        return replace(self, _taxonomies=(*kept, (taxonomy, term)))

    def where(self, field: str, value: Any, operator: str = "=") -> Query:
        """Add a field filter. Multiple calls are ANDed.

        Operators: ``=``, ``!=``, ``>``, ``>=``, ``<``, ``<=``, ``in``,
        ``not_in``, ``like`` (case-insensitive substring).
        """
        return replace(self, _fields=(*self._fields, FieldFilter(field, value, operator)))

    def order_by(self, field: str, direction: str = "desc") -> Query:
        return replace(self, _order_by=field, _order=direction.lower())

    def per_page(self, count: int) -> Query:
        """Page size, clamped to 1..100."""
        return replace(self, _per_page=_clamp_per_page(count))

    def page(self, page: int) -> Query:
        return replace(self, _page=max(1, page))

    def search(self, text: str) -> Query:
        return replace(self, _search=text.strip())

    def from_params(self, params: Mapping[str, Any]) -> Query:
        """Apply query-string style parameters.

        Recognized keys: ``type``, ``status``, ``orderby``, ``order``,
        ``per_page``, ``paged``, ``q`` (or ``search``), ``tax_<name>``.
        Unknown keys are ignored. Later builder calls override these, so
        apply request parameters before scoping calls such as
        ``published()``.
        """
        query = self
        if params.get("type") is not None:
            query = replace(query, _type=str(params["type"]))
        if params.get("status") is not None:
            query = replace(query, _status=str(params["status"]))
        if params.get("orderby") is not None:
            query = replace(query, _order_by=str(params["orderby"]))
        if params.get("order") is not None:
            query = replace(query, _order=str(params["order"]).lower())
        if params.get("per_page") is not None:
            query = replace(query, _per_page=_clamp_per_page(_to_int(params["per_page"], 1)))
        if params.get("paged") is not None:
            query = replace(query, _page=max(1, _to_int(params["paged"], 1)))
        text = params.get("q")
        if text is None:
            text = params.get("search")
        if text is not None:
            query = replace(query, _search=str(text).strip())
        for key in params:
            if key.startswith("tax_") and len(key) > 4:
                query = query.where_tax(key[4:], str(params[key]))
        return query

    # -- Introspection --

    @property
    def content_type(self) -> str | None:
        return self._type

    @property
    def taxonomy_filters(self) -> dict[str, str]:
        return dict(self._taxonomies)

    @property
    def search_text(self) -> str | None:
        return self._search

    @property
    def page_size(self) -> int:
        return self._per_page

    # -- Execution --

    def get(self) -> list[Item]:
        """Items on the current page."""
        records = self._sorted(self._matching())
        offset = (self._page - 1) * self._per_page
        return [Item.from_dict(r) for r in records[offset : offset + self._per_page]]

    def first(self) -> Item | None:
        results = self.per_page(1).page(1).get()
        return results[0] if results else None

    def count(self) -> int:
        """Total matches before pagination."""
        return len(self._matching())

    def total_pages(self) -> int:
        return math.ceil(self.count() / self._per_page)

    def current_page(self) -> int:
        return self._page

    def has_more(self) -> bool:
        return self._page < self.total_pages()

    def has_previous(self) -> bool:
        return self._page > 1

    def is_empty(self) -> bool:
        return self.count() == 0

    def pagination(self) -> dict[str, Any]:
        total = self.count()
        total_pages = math.ceil(total / self._per_page)
        return {
            "current_page": self._page,
            "per_page": self._per_page,
            "total": total,
            "total_pages": total_pages,
            "has_more": self._page < total_pages,
            "has_previous": self._page > 1,
        }

    # -- Internals --

    def _records(self) -> list[Mapping[str, Any]]:
        repo = self._repository
        if self._type is not None:
            return repo.all_raw(self._type)
        records: list[Mapping[str, Any]] = []
        for content_type in repo.types():
            records.extend(repo.all_raw(content_type))
        return records

    def _matching(self) -> list[Mapping[str, Any]]:
        records = [r for r in self._records() if self._accepts(r)]
        if self._search:
            records = self._apply_search(records)
        return records

    def _accepts(self, record: Mapping[str, Any]) -> bool:
        if self._status is not None and (record.get("status") or "draft") != self._status:
            return False
        for taxonomy, term in self._taxonomies:
            if term not in _record_terms(record, taxonomy):
                return False
        return all(f.matches(record) for f in self._fields)

    def _apply_search(self, records: list[Mapping[str, Any]]) -> list[Mapping[str, Any]]:
        phrase = (self._search or "").lower()
        tokens = [t for t in _TOKEN_SPLIT.split(phrase) if t]
        scored = [(score_record(r, phrase, tokens), r) for r in records]
        scored = [pair for pair in scored if pair[0] > 0]
        scored.sort(key=lambda pair: pair[0], reverse=True)
        return [r for _, r in scored]

    def _sorted(self, records: list[Mapping[str, Any]]) -> list[Mapping[str, Any]]:
        # Stable sorts: title ascending first, then the requested key
        ordered = sorted(records, key=lambda r: str(r.get("title") or ""))
        ordered.sort(key=self._sort_value, reverse=self._order == "desc")
        return ordered

    def _sort_value(self, record: Mapping[str, Any]) -> tuple[int, Any]:
        meta = record.get("meta") if isinstance(record.get("meta"), Mapping) else {}
        match self._order_by:
            case "date":
                value: Any = record.get("date")
            case "updated":
                value = record.get("updated") or record.get("date")
            case "title":
                return (2, str(record.get("title") or "").lower())
            case "order" | "menu_order":
                value = meta.get("order", record.get("order", 0))
            case field:
                value = meta.get(field, record.get(field, ""))
        return _comparable(value, dates=self._order_by in ("date", "updated"))


def _record_terms(record: Mapping[str, Any], taxonomy: str) -> list[Any]:
    taxonomies = record.get("taxonomies")
    if isinstance(taxonomies, Mapping) and taxonomy in taxonomies:
        terms = taxonomies[taxonomy]
        return list(terms) if isinstance(terms, (list, tuple)) else [terms]
    return Item.from_dict(record).terms(taxonomy)


def _comparable(value: Any, *, dates: bool) -> tuple[int, Any]:
    """Rank values so mixed types never raise during sorting."""
    if value is None or value == "":
        return (0, 0)
    if dates:
        parsed = parse_date(value)
        return (1, parsed.timestamp()) if parsed else (0, 0)
    if isinstance(value, datetime):
        return (1, value.timestamp())
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return (1, value)
    return (2, str(value).lower())


def score_record(record: Mapping[str, Any], phrase: str, tokens: list[str]) -> int:
    """Search relevance of an index record. Zero means no match.

    ==============================  ==========
    title contains the phrase       +80
    title contains every token      +40 (2+ tokens)
    each token in title             +10, max 30
    excerpt contains the phrase     +30
    each token in excerpt           +3, max 15
    featured                        +15
    ==============================  ==========
    """
    meta = record.get("meta") if isinstance(record.get("meta"), Mapping) else {}
    title = str(record.get("title") or "").lower()
    excerpt = str(meta.get("excerpt") or record.get("excerpt") or "").lower()

    score = 0
    if phrase in title:
        score += 80

    title_hits = sum(1 for t in tokens if t in title)
    if len(tokens) > 1 and title_hits == len(tokens):
        score += 40
    score += min(30, title_hits * 10)

    if phrase in excerpt:
        score += 30
    score += min(15, sum(3 for t in tokens if t in excerpt))

    if meta.get("featured") or record.get("featured"):
        score += 15
    return score
