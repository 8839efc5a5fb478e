"""RSS 2.0 feeds.

- ``/feed.xml``: newest items across content types
- ``/feed/{type}.xml``: newest items of one configured content type

Items are published and not ``noindex``, newest first. Each entry carries
the item's excerpt, or its rendered body with ``full_content=True``.

Usage::

    from plume.plugins.feed import register_feed

    register_feed(site, items_per_feed=10)
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime
from email.utils import format_datetime
from typing import TYPE_CHECKING
from xml.sax.saxutils import escape, quoteattr

from plume.content.item import Item
from plume.http.response import Response

if TYPE_CHECKING:
    from plume.app import Site
    from plume.config import ContentType
    from plume.http.request import Request
    from plume.rendering.markdown import MarkdownRenderer

RSS_CONTENT_TYPE = "application/rss+xml; charset=utf-8"
ATOM_NS = "http://www.w3.org/2005/Atom"
DEFAULT_ITEMS_PER_FEED = 20


@dataclass(frozen=True, slots=True)
class _Entry:
    content_type: str
    item: Item


def _rfc822(value: datetime) -> str:
    return format_datetime(value)


def _cdata(text: str) -> str:
    return "<![CDATA[" + text.replace("]]>", "]]]]><![CDATA[>") + "]]>"


def _newest_first(entries: Iterable[_Entry]) -> list[_Entry]:
    """Sort by ``date`` descending; undated items go last."""
    entries = list(entries)
    dated = [e for e in entries if e.item.date is not None]
    dated.sort(key=lambda e: e.item.date, reverse=True)  # type: ignore[arg-type,return-value]
    return dated + [e for e in entries if e.item.date is None]


def register_feed(
    site: Site,
    content_types: Mapping[str, ContentType] | None = None,
    *,
    items_per_feed: int = DEFAULT_ITEMS_PER_FEED,
    full_content: bool = False,
    types: Iterable[str] | None = None,
    markdown: MarkdownRenderer | None = None,
) -> None:
    """Add the feed routes to *site*.

    Args:
        content_types: Types with a per-type feed. Defaults to the site's
            configured content types.
        items_per_feed: Maximum number of entries per feed.
        full_content: Emit the rendered body instead of the excerpt.
        types: Content types merged into ``/feed.xml``. Defaults to every
            type in the repository.
        markdown: Renderer for ``full_content``; created on first use.
    """
    combined_types = tuple(types) if types is not None else None
    renderers: list[MarkdownRenderer] = [markdown] if markdown is not None else []

    def base_url() -> str:
        return site.config.base_url.rstrip("/")

    def configured() -> Mapping[str, ContentType]:
        return content_types if content_types is not None else site.router.content_types

    def feed_items(content_type: str) -> list[_Entry]:
        items = (Item.from_dict(record) for record in site.repository.all_raw(content_type))
        return [
            _Entry(content_type, item)
            for item in items
            if item.is_published and not item.noindex
        ]

    def item_url(entry: _Entry) -> str | None:
        url = site.url_for(entry.content_type, entry.item.slug)
        if url is not None:
            return url
        content_type = configured().get(entry.content_type)
        return content_type.url_for_slug(entry.item.slug) if content_type is not None else None

    def description(entry: _Entry) -> str | None:
        if not full_content:
            return entry.item.excerpt
        item = site.repository.get(entry.content_type, entry.item.slug) or entry.item
        if not renderers:
            from plume.rendering.markdown import MarkdownRenderer

            renderers.append(MarkdownRenderer())
        return renderers[0].render_item(item).html

    def render_feed(entries: list[_Entry], title: str, summary: str, feed_path: str) -> Response:
        root = base_url()
        parts = [
            '<?xml version="1.0" encoding="UTF-8"?>\n',
            f'<rss version="2.0" xmlns:atom="{ATOM_NS}">\n',
            "<channel>\n",
            f"  <title>{escape(title)}</title>\n",
            f"  <link>{escape(root)}</link>\n",
            f"  <description>{escape(summary)}</description>\n",
            "  <language>en</language>\n",
            f"  <atom:link href={quoteattr(root + feed_path)} rel=\"self\" type=\"application/rss+xml\"/>\n",
        ]
        if entries and entries[0].item.updated is not None:
            parts.append(f"  <lastBuildDate>{_rfc822(entries[0].item.updated)}</lastBuildDate>\n")

        for entry in entries:
            url = item_url(entry)
            if url is None:
                continue
            link = escape(root + url)
            parts.append("  <item>\n")
            parts.append(f"    <title>{escape(entry.item.title)}</title>\n")
            parts.append(f"    <link>{link}</link>\n")
            parts.append(f'    <guid isPermaLink="true">{link}</guid>\n')
            if entry.item.date is not None:
                parts.append(f"    <pubDate>{_rfc822(entry.item.date)}</pubDate>\n")
            text = description(entry)
            if text:
                parts.append(f"    <description>{_cdata(text)}</description>\n")
            parts.append("  </item>\n")

        parts.append("</channel>\n</rss>")
        return Response(body="".join(parts), content_type=RSS_CONTENT_TYPE)

    @site.route("/feed.xml")
    def combined_feed(request: Request, params: Mapping[str, str]) -> Response:
        names = combined_types if combined_types is not None else site.repository.types()
        entries = [entry for name in names for entry in feed_items(name)]
        name = site.config.name
        return render_feed(
            _newest_first(entries)[:items_per_feed],
            name,
            f"Latest content from {name}",
            "/feed.xml",
        )

    @site.route("/feed/{type}.xml")
    def type_feed(request: Request, params: Mapping[str, str]) -> Response | None:
        content_type = configured().get(params["type"])
        if content_type is None:
            return None
        label = content_type.label or f"{content_type.name.title()}s"
        name = site.config.name
        return render_feed(
            _newest_first(feed_items(content_type.name))[:items_per_feed],
            f"{name} - {label}",
            f"{label} from {name}",
            f"/feed/{content_type.name}.xml",
        )
