"""Renderer protocol: turns a RouteMatch into a Response."""

from typing import Protocol

from plume.http.request import Request
from plume.http.response import Response
from plume.routing.match import RouteMatch


class Renderer(Protocol):
    """Anything the site can hand a resolved match to."""

    def render(self, match: RouteMatch, request: Request) -> Response: ...

    def render_not_found(self, request: Request) -> Response: ...
