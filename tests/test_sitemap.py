"""Tests for plume.plugins.sitemap — XML sitemap routes."""

from typing import Any

import pytest

from plume.app import Site
from plume.config import ContentType, SiteConfig
from plume.content.repository import IndexRepository
from plume.http.request import Request
from plume.http.response import Response
from plume.plugins.sitemap import XML_CONTENT_TYPE, register_sitemap
from plume.routing.match import RouteMatch
from plume.testing import TestClient, assert_not_found


class StubRenderer:
    def render(self, match: RouteMatch, request: Request) -> Response:
        return Response(str(match.type))

    def render_not_found(self, request: Request) -> Response:
        return Response.plain("missing", status=404)


@pytest.fixture
def site(repository: IndexRepository, content_types: dict[str, ContentType]) -> Site:
    site = Site(
        SiteConfig(base_url="https://example.com/"),
        repository=repository,
        renderer=StubRenderer(),
        content_types=content_types,
    )
    register_sitemap(site)
    return site


async def fetch(site: Site, path: str) -> Response:
    async with TestClient(site) as client:
        return await client.get(path)


class TestSitemapIndex:
    async def test_lists_types(self, site: Site) -> None:
        response = await fetch(site, "/sitemap.xml")
        assert response.status == 200
        assert response.content_type == XML_CONTENT_TYPE
        assert "<sitemapindex" in response.text
        assert "<loc>https://example.com/sitemap-post.xml</loc>" in response.text
        assert "<loc>https://example.com/sitemap-page.xml</loc>" in response.text

    async def test_newest_lastmod(self, site: Site) -> None:
        response = await fetch(site, "/sitemap.xml")
        # Newest published post is hello (2024-01-02); drafts are ignored
        assert "<lastmod>2024-01-02</lastmod>" in response.text
        assert "2024-02-01" not in response.text


class TestTypeSitemap:
    async def test_urls(self, site: Site) -> None:
        response = await fetch(site, "/sitemap-post.xml")
        text = response.text
        assert "<urlset" in text
        assert "<loc>https://example.com/blog/hello</loc>" in text
        assert "<loc>https://example.com/blog/older</loc>" in text
        assert "<lastmod>2023-06-01</lastmod>" in text

    async def test_only_published(self, site: Site) -> None:
        text = (await fetch(site, "/sitemap-post.xml")).text
        for slug in ("draft-post", "wip", "idea", "secret"):
            assert slug not in text

    async def test_pattern_fallback_and_noindex(self, content_types: dict[str, ContentType]) -> None:
        records: dict[str, Any] = {
            "news": {"slug": "news", "status": "published", "type": "post"},
            "hidden": {"slug": "hidden", "status": "published", "type": "post", "noindex": True},
            "a&b": {"slug": "a&b", "status": "published", "type": "post"},
        }
        repository = IndexRepository.from_data(content={"by_type": {"post": records}})
        site = Site(repository=repository, renderer=StubRenderer(), content_types=content_types)
        register_sitemap(site)

        text = (await fetch(site, "/sitemap-post.xml")).text
        assert "<loc>http://localhost:8000/blog/news</loc>" in text
        assert "<loc>http://localhost:8000/blog/a&amp;b</loc>" in text
        assert "hidden" not in text

    async def test_items_needing_more_than_slug_skipped(self) -> None:
        records: dict[str, Any] = {
            "intro": {"slug": "intro", "status": "published", "type": "doc"},
            "setup": {"slug": "setup", "status": "published", "type": "doc"},
        }
        repository = IndexRepository.from_data(
            content={"by_type": {"doc": records}},
            routes={"reverse": {"doc:setup": "/docs/guide/setup"}},
        )
        site = Site(
            repository=repository,
            renderer=StubRenderer(),
            content_types={"doc": ContentType(name="doc", url_pattern="/docs/{parent}/{slug}")},
        )
        register_sitemap(site)

        text = (await fetch(site, "/sitemap-doc.xml")).text
        assert "<loc>http://localhost:8000/docs/guide/setup</loc>" in text
        assert "intro" not in text
        assert "{" not in text

    async def test_unknown_type(self, site: Site) -> None:
        assert_not_found(await fetch(site, "/sitemap-nope.xml"))

    async def test_explicit_content_types(self, repository: IndexRepository) -> None:
        site = Site(repository=repository, renderer=StubRenderer(), content_types={})
        register_sitemap(site, content_types={"page": ContentType(name="page")})
        assert (await fetch(site, "/sitemap-page.xml")).status == 200
        assert_not_found(await fetch(site, "/sitemap-post.xml"))
