"""XML sitemaps.

- ``/sitemap.xml``: index of per-type sitemaps, with the newest lastmod
- ``/sitemap-{type}.xml``: one ``<url>`` per published, indexable item

Usage::

    from plume.plugins.sitemap import register_sitemap

    register_sitemap(site)
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import TYPE_CHECKING
from xml.sax.saxutils import escape

from plume.content.item import Item
from plume.http.response import Response

if TYPE_CHECKING:
    from plume.app import Site
    from plume.config import ContentType
    from plume.http.request import Request

XML_CONTENT_TYPE = "application/xml; charset=utf-8"
SITEMAP_NS = "http://www.sitemaps.org/schemas/sitemap/0.9"


def _indexable(site: Site, content_type: str) -> list[Item]:
    """Published, non-noindex items, from index metadata only."""
    items = (Item.from_dict(record) for record in site.repository.all_raw(content_type))
    return [item for item in items if item.is_published and not item.noindex]


def _lastmod(value: datetime | None) -> str:
    return f"    <lastmod>{value.strftime('%Y-%m-%d')}</lastmod>\n" if value else ""


def register_sitemap(site: Site, content_types: Mapping[str, ContentType] | None = None) -> None:
    """Add the sitemap routes to *site*.

    *content_types* defaults to the site's configured content types;
    URLs for items missing from the route table are built from the
    type's URL pattern; items whose pattern needs more than ``{slug}``
    are left out.
    """

    def base_url() -> str:
        return site.config.base_url.rstrip("/")

    def types() -> Mapping[str, ContentType]:
        return content_types if content_types is not None else site.router.content_types

    @site.route("/sitemap.xml")
    def sitemap_index(request: Request, params: Mapping[str, str]) -> Response:
        parts = [
            '<?xml version="1.0" encoding="UTF-8"?>\n',
            f'<sitemapindex xmlns="{SITEMAP_NS}">\n',
        ]
        for content_type in types():
            items = _indexable(site, content_type)
            if not items:
                continue
            dates = [item.updated for item in items if item.updated is not None]
            parts.append("  <sitemap>\n")
            parts.append(f"    <loc>{escape(base_url())}/sitemap-{escape(content_type)}.xml</loc>\n")
            parts.append(_lastmod(max(dates) if dates else None))
            parts.append("  </sitemap>\n")
        parts.append("</sitemapindex>")
        return Response(body="".join(parts), content_type=XML_CONTENT_TYPE)

    @site.route("/sitemap-{type}.xml")
    def sitemap_for_type(request: Request, params: Mapping[str, str]) -> Response | None:
        content_type = params["type"]
        configured = types().get(content_type)
        if configured is None:
            # Unknown type: decline, the request ends in a 404
            return None

        parts = [
            '<?xml version="1.0" encoding="UTF-8"?>\n',
            f'<urlset xmlns="{SITEMAP_NS}">\n',
        ]
        for item in _indexable(site, content_type):
            url = site.url_for(content_type, item.slug) or configured.url_for_slug(item.slug)
            if url is None:
                # Not routable from the slug alone
                continue
            parts.append("  <url>\n")
            parts.append(f"    <loc>{escape(base_url() + url)}</loc>\n")
            parts.append(_lastmod(item.updated))
            parts.append("  </url>\n")
        parts.append("</urlset>")
        return Response(body="".join(parts), content_type=XML_CONTENT_TYPE)
