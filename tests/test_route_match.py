"""Tests for plume.routing.match — RouteMatch payloads."""

import pytest

from plume.content.item import Item
from plume.http.response import Response
from plume.routing.match import MatchType, RouteMatch


class TestRouteMatch:
    def test_defaults(self) -> None:
        match = RouteMatch(type=MatchType.SINGLE)
        assert match.template == "index"
        assert match.redirect_code == 302
        assert not match.is_redirect
        assert not match.has_response
        assert dict(match.params) == {}

    def test_type_coerced_from_string(self) -> None:
        match = RouteMatch(type="taxonomy_index")  # type: ignore[arg-type]
        assert match.type is MatchType.TAXONOMY_INDEX

    def test_unknown_type_rejected(self) -> None:
        with pytest.raises(ValueError):
            RouteMatch(type="bogus")  # type: ignore[arg-type]

    def test_params_read_only(self) -> None:
        source = {"content_type": "post"}
        match = RouteMatch(type=MatchType.SINGLE, params=source)
        source["content_type"] = "page"
        assert match.param("content_type") == "post"
        assert match.param("missing", "x") == "x"
        with pytest.raises(TypeError):
            match.params["x"] = "y"  # type: ignore[index]

    def test_redirect(self) -> None:
        match = RouteMatch(type=MatchType.REDIRECT, redirect_url="/new", redirect_code=301)
        assert match.is_redirect

    def test_response(self) -> None:
        match = RouteMatch(type=MatchType.PLUGIN, response=Response("x"))
        assert match.has_response

    def test_frozen(self) -> None:
        match = RouteMatch(type=MatchType.SINGLE, content_item=Item({"title": "T"}))
        with pytest.raises(AttributeError):
            match.template = "other"  # type: ignore[misc]

    def test_match_type_is_str(self) -> None:
        assert MatchType.SINGLE == "single"
        assert f"{MatchType.PLUGIN}" == "plugin"
