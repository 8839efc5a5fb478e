"""Tests for plume's lazy top-level API."""

import pytest

import plume


class TestLazyImports:
    @pytest.mark.parametrize("name", plume.__all__)
    def test_every_public_name_resolves(self, name: str) -> None:
        assert getattr(plume, name) is not None

    def test_same_objects_as_modules(self) -> None:
        from plume.app import Site
        from plume.routing.router import Router

        assert plume.Site is Site
        assert plume.Router is Router

    def test_unknown_name(self) -> None:
        with pytest.raises(AttributeError, match="no attribute 'Nope'"):
            plume.Nope  # noqa: B018

    def test_version(self) -> None:
        assert plume.__version__ == "0.1.0"
