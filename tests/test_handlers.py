"""Tests for plume.routing.handlers — outcomes and the route registry."""

import pytest

from plume.http.request import Request
from plume.http.response import Redirect, Response
from plume.routing.handlers import (
    DECLINED,
    Declined,
    Matched,
    Responded,
    RouteRegistry,
    adapt_result,
)
from plume.routing.match import RAW_TEMPLATE, MatchType, RouteMatch


class TestAdaptResult:
    def test_route_match(self) -> None:
        match = RouteMatch(type=MatchType.SINGLE)
        outcome = adapt_result(match)
        assert outcome == Matched(match)
        assert outcome.to_match() is match

    def test_response(self) -> None:
        response = Response("hi")
        outcome = adapt_result(response)
        assert isinstance(outcome, Responded)
        match = outcome.to_match()
        assert match is not None
        assert match.type == MatchType.PLUGIN
        assert match.template == RAW_TEMPLATE
        assert match.response is response

    def test_redirect(self) -> None:
        assert isinstance(adapt_result(Redirect("/x")), Responded)

    @pytest.mark.parametrize("value", [None, False, "", "<p>html</p>", 0, {"a": 1}])
    def test_anything_else_declines(self, value: object) -> None:
        outcome = adapt_result(value)
        assert outcome is DECLINED
        assert outcome.to_match() is None

    def test_outcomes_pass_through(self) -> None:
        outcome = Declined()
        assert adapt_result(outcome) is outcome


class TestRouteRegistry:
    def test_insertion_order(self) -> None:
        registry = RouteRegistry()
        registry.add_route("/b", lambda r, p: None)
        registry.add_route("/a", lambda r, p: None)
        assert [r.path for r in registry.system_routes] == ["/b", "/a"]

    def test_replace_keeps_position(self) -> None:
        registry = RouteRegistry()

        def first(request: Request, params: object) -> None:
            return None

        def replacement(request: Request, params: object) -> None:
            return None

        registry.add_route("/a", first)
        registry.add_route("/b", first)
        registry.add_route("/a", replacement)
        routes = registry.system_routes
        assert [r.path for r in routes] == ["/a", "/b"]
        assert routes[0].handler is replacement

    def test_prefix_routes(self) -> None:
        registry = RouteRegistry()
        route = registry.add_prefix_route("/feeds/", lambda r, p: None)
        assert registry.prefix_routes == (route,)
        assert route.matches("/feeds/rss")
        assert not route.matches("/feed")

    def test_invoke_passes_params(self) -> None:
        registry = RouteRegistry()
        route = registry.add_route("/api/{id}", lambda r, p: Response(p["id"]))
        params = route.match("/api/7")
        assert params == {"id": "7"}
        outcome = route.invoke(Request.build("GET", "/api/7"), params)
        assert isinstance(outcome, Responded)
        assert isinstance(outcome.response, Response)
        assert outcome.response.text == "7"

    def test_non_callable(self) -> None:
        with pytest.raises(TypeError, match="not callable"):
            RouteRegistry().add_route("/x", "handler")  # type: ignore[arg-type]
        with pytest.raises(TypeError, match="not callable"):
            RouteRegistry().add_prefix_route("/x/", None)  # type: ignore[arg-type]

    def test_freeze(self) -> None:
        registry = RouteRegistry()
        assert not registry.frozen
        registry.freeze()
        assert registry.frozen
        with pytest.raises(RuntimeError, match="frozen"):
            registry.add_route("/x", lambda r, p: None)
