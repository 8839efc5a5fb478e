"""Extension registries and handler outcome adaptation.

Themes and plugins register *system routes* (exact or ``{name}``
placeholder patterns) and *prefix routes* at boot. Registration happens
once, before the first request; ``freeze()`` makes the registries
read-only for the rest of the process lifetime.

A handler is ``handler(request, params) -> object``. Whatever it returns
is folded into a ``HandlerOutcome``:

- ``RouteMatch``        -> ``Matched``
- ``Response``/``Redirect`` -> ``Responded``
- anything else         -> ``Declined``
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from plume.http.response import RAW_RESPONSE_TYPES, Redirect, Response
from plume.routing.match import RAW_TEMPLATE, MatchType, RouteMatch
from plume.routing.pattern import RoutePattern, compile_pattern

if TYPE_CHECKING:
    from plume.http.request import Request

type RouteHandler = Callable[[Request, Mapping[str, str]], Any]

_NO_PARAMS: Mapping[str, str] = MappingProxyType({})


# -- Handler outcomes --


@dataclass(frozen=True, slots=True)
class Matched:
    """The handler resolved the request itself."""

    match: RouteMatch

    def to_match(self) -> RouteMatch | None:
        return self.match


@dataclass(frozen=True, slots=True)
class Responded:
    """The handler produced the complete response."""

    response: Response | Redirect

    def to_match(self) -> RouteMatch | None:
        return RouteMatch(
            type=MatchType.PLUGIN,
            template=RAW_TEMPLATE,
            response=self.response,
        )


@dataclass(frozen=True, slots=True)
class Declined:
    """The handler matched the path but produced nothing."""

    def to_match(self) -> RouteMatch | None:
        return None


type HandlerOutcome = Matched | Responded | Declined

DECLINED = Declined()


def adapt_result(value: object) -> HandlerOutcome:
    """Fold an arbitrary handler return value into a ``HandlerOutcome``."""
    if isinstance(value, (Matched, Responded, Declined)):
        return value
    if isinstance(value, RouteMatch):
        return Matched(value)
    if isinstance(value, RAW_RESPONSE_TYPES):
        return Responded(value)
    return DECLINED


# -- Route definitions --


@dataclass(frozen=True, slots=True)
class SystemRoute:
    """A compiled system route. Created at registration, never mutated."""

    pattern: RoutePattern
    handler: RouteHandler

    @property
    def path(self) -> str:
        return self.pattern.source

    def match(self, path: str) -> dict[str, str] | None:
        return self.pattern.match(path)

    def invoke(self, request: Request, params: Mapping[str, str]) -> HandlerOutcome:
        return adapt_result(self.handler(request, MappingProxyType(dict(params))))


@dataclass(frozen=True, slots=True)
class PrefixRoute:
    """A catch-all handler for every path starting with ``prefix``."""

    prefix: str
    handler: RouteHandler

    def matches(self, path: str) -> bool:
        return path.startswith(self.prefix)

    def invoke(self, request: Request) -> HandlerOutcome:
        return adapt_result(self.handler(request, _NO_PARAMS))


class RouteRegistry:
    """Insertion-ordered system and prefix routes.

    Re-registering the same pattern (or prefix) replaces the handler and
    keeps the original position.
    """

    __slots__ = ("_frozen", "_prefix", "_system")

    def __init__(self) -> None:
        self._system: dict[str, SystemRoute] = {}
        self._prefix: dict[str, PrefixRoute] = {}
        self._frozen = False

    def add_route(self, pattern: str | RoutePattern, handler: RouteHandler) -> SystemRoute:
        """Compile and register a system route. Precompiled patterns are used as is.

        Raises ``ConfigurationError`` for a malformed pattern and
        ``RuntimeError`` once the registry is frozen.
        """
        self._check_not_frozen()
        compiled = pattern if isinstance(pattern, RoutePattern) else compile_pattern(pattern)
        self._check_callable(handler, compiled.source)
        route = SystemRoute(pattern=compiled, handler=handler)
        self._system[compiled.source] = route
        return route

    def add_prefix_route(self, prefix: str, handler: RouteHandler) -> PrefixRoute:
        """Register a prefix route. Include the trailing ``/`` in *prefix*."""
        self._check_not_frozen()
        self._check_callable(handler, prefix)
        route = PrefixRoute(prefix=prefix, handler=handler)
        self._prefix[prefix] = route
        return route

    def freeze(self) -> None:
        """Reject any further registration."""
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def system_routes(self) -> tuple[SystemRoute, ...]:
        return tuple(self._system.values())

    @property
    def prefix_routes(self) -> tuple[PrefixRoute, ...]:
        return tuple(self._prefix.values())

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = "Cannot add routes after the router is frozen."
            raise RuntimeError(msg)

    @staticmethod
    def _check_callable(handler: object, where: str) -> None:
        if not callable(handler):
            msg = f"Handler for {where!r} is not callable: {handler!r}"
            raise TypeError(msg)
