"""Plume: a flat-file CMS core.

Content lives in Markdown files with YAML frontmatter. An indexer writes
JSON snapshots; plume maps requests onto that content through an
ordered router and renders the result.

Basic usage::

    from plume import Response, Site, SiteConfig

    site = Site(SiteConfig(preview_token="s3cr3t"))

    @site.route("/api/{type}/{slug}")
    def api(request, params):
        item = site.repository.get(params["type"], params["slug"])
        return Response.json(item.to_dict()) if item else None

Serve with any ASGI server::

    uvicorn myblog:site
"""

__version__ = "0.1.0"
__all__ = [
    "ConfigurationError",
    "ContentError",
    "HTTPError",
    "Hooks",
    "MatchType",
    "NotFound",
    "PlumeError",
    "Redirect",
    "Request",
    "Response",
    "RouteMatch",
    "Router",
    "Site",
    "SiteConfig",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import plume`` fast while providing a clean top-level API.
    """
    if name == "Site":
        from plume.app import Site

        return Site

    if name == "SiteConfig":
        from plume.config import SiteConfig

        return SiteConfig

    if name == "Hooks":
        from plume.hooks import Hooks

        return Hooks

    if name == "Request":
        from plume.http.request import Request

        return Request

    if name in ("Response", "Redirect"):
        from plume.http import response as _resp

        return getattr(_resp, name)

    if name == "Router":
        from plume.routing.router import Router

        return Router

    if name in ("RouteMatch", "MatchType"):
        from plume.routing import match as _match

        return getattr(_match, name)

    if name in ("PlumeError", "ConfigurationError", "ContentError", "HTTPError", "NotFound"):
        from plume import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
