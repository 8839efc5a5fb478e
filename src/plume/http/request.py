"""Immutable HTTP request.

Frozen metadata only. The router reads the path and query string;
nothing in the matching pipeline needs the body.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from plume.http.query import QueryParams


def _freeze_headers(headers: Mapping[str, str] | None) -> Mapping[str, str]:
    return MappingProxyType({k.lower(): v for k, v in (headers or {}).items()})


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request.

    ``path`` is the raw request path as received; ``normalized_path``
    is what the router compares against route tables.
    """

    method: str
    path: str
    query: QueryParams = field(default_factory=QueryParams)
    headers: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    client: tuple[str, int] | None = None

    @property
    def normalized_path(self) -> str:
        """Path with a single trailing slash removed (root stays ``/``)."""
        path = self.path or "/"
        if path != "/" and path.endswith("/"):
            return path[:-1]
        return path

    @property
    def url(self) -> str:
        """Request path plus query string."""
        qs = self.query.raw
        if qs:
            return f"{self.path}?{qs}"
        return self.path

    def header(self, name: str, default: str | None = None) -> str | None:
        """Case-insensitive header lookup."""
        return self.headers.get(name.lower(), default)

    # -- Factories --

    @classmethod
    def build(
        cls,
        method: str,
        target: str,
        *,
        query: Mapping[str, str | list[str]] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Request:
        """Create a Request from a request target like ``/blog?page=2``.

        An explicit *query* mapping replaces any query string in *target*.
        """
        path, _, query_string = target.partition("?")
        params = QueryParams.from_mapping(query) if query is not None else QueryParams(query_string)
        return cls(
            method=method.upper(),
            path=path or "/",
            query=params,
            headers=_freeze_headers(headers),
        )

    @classmethod
    def from_asgi(cls, scope: Mapping[str, Any]) -> Request:
        """Create a Request from an ASGI HTTP scope."""
        headers = {
            name.decode("latin-1"): value.decode("latin-1")
            for name, value in scope.get("headers", ())
        }
        client = scope.get("client")
        return cls(
            method=scope["method"],
            path=scope["path"] or "/",
            query=QueryParams(scope.get("query_string", b"")),
            headers=_freeze_headers(headers),
            client=tuple(client) if client else None,
        )
