"""RouteMatch — the immutable result of resolving a request."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from plume.content.item import Item
    from plume.content.query import Query
    from plume.content.repository import Term
    from plume.http.response import Redirect, Response


class MatchType(StrEnum):
    """How a request resolved. Dispatch switches on this first."""

    SINGLE = "single"
    ARCHIVE = "archive"
    REDIRECT = "redirect"
    TAXONOMY = "taxonomy"
    TAXONOMY_INDEX = "taxonomy_index"
    PLUGIN = "plugin"
    RESPONSE = "response"


# Template name used when a handler produced the whole response itself
RAW_TEMPLATE = "__raw__"


@dataclass(frozen=True, slots=True)
class TaxonomyContext:
    """Taxonomy payload: a single term page, or the index of all terms."""

    name: str
    term: Term | None = None
    terms: Mapping[str, Term] | None = None


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """Result of a successful route match.

    Exactly one payload field is meaningful per ``type``:

    ========================  =================================
    ``single``                ``content_item``
    ``archive`` / taxonomy    ``query`` (may be empty)
    ``taxonomy_index``        ``taxonomy.terms``
    ``redirect``              ``redirect_url`` / ``redirect_code``
    ``plugin`` / ``response`` ``response``
    ========================  =================================

    Never infer the kind from which payload happens to be set.
    """

    type: MatchType
    content_item: Item | None = None
    query: Query | None = None
    taxonomy: TaxonomyContext | None = None
    template: str = "index"
    redirect_url: str | None = None
    redirect_code: int = 302
    params: Mapping[str, Any] = field(default_factory=dict)
    response: Response | Redirect | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "type", MatchType(self.type))
        if not isinstance(self.params, MappingProxyType):
            object.__setattr__(self, "params", MappingProxyType(dict(self.params)))

    @property
    def is_redirect(self) -> bool:
        return self.redirect_url is not None

    @property
    def has_response(self) -> bool:
        return self.response is not None

    def param(self, name: str, default: Any = None) -> Any:
        """Return a single route parameter, or *default*."""
        return self.params.get(name, default)
