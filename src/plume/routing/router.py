"""Request-to-content router.

``Router.match()`` runs a fixed pipeline and returns at the first stage
that produces a result:

1. ``router.before_match`` hook (full override)
2. trailing-slash canonicalization (301)
3. static redirects from the route table
4. system routes (exact or ``{name}`` patterns)
5. exact content routes (single item / archive)
6. preview-mode draft matching (token-gated)
7. prefix routes
8. taxonomy index and term archives
9. ``None`` (the caller renders a 404)

A system or prefix route whose pattern matches is terminal: if its
handler declines, the whole request is a miss. An ``exact`` entry is
terminal in the same way.

Usage::

    router = Router(repository, preview_token="s3cr3t", hooks=hooks)
    router.add_route("/api/{type}/{id}", api_handler)
    router.add_prefix_route("/feeds/", feed_handler)
    router.freeze()
    match = router.match(request)
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from typing import TYPE_CHECKING

from plume.content.query import Query
from plume.hooks import BEFORE_MATCH, Hooks
from plume.http.response import RAW_RESPONSE_TYPES
from plume.routing.handlers import PrefixRoute, RouteHandler, RouteRegistry, SystemRoute
from plume.routing.match import MatchType, RouteMatch, TaxonomyContext
from plume.routing.pattern import RoutePattern, compile_pattern
from plume.routing.preview import has_preview_access

if TYPE_CHECKING:
    from plume.config import ContentType
    from plume.content.repository import ContentRepository
    from plume.http.request import Request
    from plume.routing.table import ExactRoute, RouteTable

logger = logging.getLogger("plume.routing")

type QueryFactory = Callable[[ContentRepository], Query]

SINGLE_TEMPLATE = "single"
ARCHIVE_TEMPLATE = "archive"
TAXONOMY_TEMPLATE = "taxonomy"
TAXONOMY_INDEX_TEMPLATE = "taxonomy-index"


class Router:
    """Ordered, multi-stage request matcher.

    Route tables come from the repository (one snapshot per ``match``
    call); system and prefix routes are registered at boot and frozen.
    """

    __slots__ = (
        "_content_types",
        "_hooks",
        "_preview_patterns",
        "_preview_token",
        "_query_factory",
        "_registry",
        "_repository",
        "_trailing_slash",
    )

    def __init__(
        self,
        repository: ContentRepository,
        *,
        trailing_slash: bool = False,
        preview_token: str | None = None,
        content_types: Mapping[str, ContentType] | Iterable[ContentType] | None = None,
        hooks: Hooks | None = None,
        query_factory: QueryFactory | None = None,
    ) -> None:
        self._repository = repository
        self._trailing_slash = trailing_slash
        self._preview_token = preview_token or None
        self._hooks = hooks if hooks is not None else Hooks()
        self._query_factory: QueryFactory = query_factory or Query
        self._registry = RouteRegistry()

        if content_types is None:
            types: list[ContentType] = []
        elif isinstance(content_types, Mapping):
            types = list(content_types.values())
        else:
            types = list(content_types)
        self._content_types = {ct.name: ct for ct in types}
        self._preview_patterns = self._compile_preview_patterns(types)

    @staticmethod
    def _compile_preview_patterns(
        types: list[ContentType],
    ) -> tuple[tuple[ContentType, RoutePattern], ...]:
        compiled: list[tuple[ContentType, RoutePattern]] = []
        for ct in types:
            pattern = compile_pattern(ct.pattern)
            if "slug" not in pattern.names:
                logger.warning(
                    "Content type %r URL pattern %r has no {slug}; skipped for preview",
                    ct.name,
                    ct.pattern,
                )
                continue
            compiled.append((ct, pattern))
        return tuple(compiled)

    # -- Registration --

    def add_route(self, pattern: str | RoutePattern, handler: RouteHandler) -> None:
        """Register a system route. Same pattern again replaces the handler."""
        self._registry.add_route(pattern, handler)

    def add_prefix_route(self, prefix: str, handler: RouteHandler) -> None:
        """Register a prefix route. Include the trailing ``/`` (``/api/``, not ``/api``)."""
        self._registry.add_prefix_route(prefix, handler)

    def freeze(self) -> None:
        """Freeze the registries. No more routes can be added."""
        self._registry.freeze()

    @property
    def frozen(self) -> bool:
        return self._registry.frozen

    @property
    def routes(self) -> list[SystemRoute | PrefixRoute]:
        """System routes then prefix routes, each in registration order."""
        return [*self._registry.system_routes, *self._registry.prefix_routes]

    @property
    def hooks(self) -> Hooks:
        return self._hooks

    @property
    def repository(self) -> ContentRepository:
        return self._repository

    @property
    def content_types(self) -> Mapping[str, ContentType]:
        return dict(self._content_types)

    # -- Matching --

    def match(self, request: Request) -> RouteMatch | None:
        """Resolve *request*. Returns ``None`` when nothing matches.

        Handler exceptions propagate to the caller.
        """
        intercepted = self._hooks.apply(BEFORE_MATCH, None, request, self)
        if isinstance(intercepted, RouteMatch):
            return intercepted
        if isinstance(intercepted, RAW_RESPONSE_TYPES):
            return RouteMatch(type=MatchType.RESPONSE, response=intercepted)

        redirect = self._canonical_redirect(request)
        if redirect is not None:
            return redirect

        path = request.normalized_path
        routes = self._repository.routes()

        rule = routes.redirects.get(path)
        if rule is not None:
            return RouteMatch(
                type=MatchType.REDIRECT,
                redirect_url=rule.to,
                redirect_code=rule.code,
            )

        for route in self._registry.system_routes:
            params = route.match(path)
            if params is not None:
                logger.debug("System route %r matched %s", route.path, path)
                return route.invoke(request, params).to_match()

        entry = routes.exact.get(path)
        if entry is not None:
            return self._match_exact(entry, request)

        if self._preview_patterns and self._has_preview_access(request):
            preview = self._match_preview(path)
            if preview is not None:
                return preview

        for prefix_route in self._registry.prefix_routes:
            if prefix_route.matches(path):
                logger.debug("Prefix route %r matched %s", prefix_route.prefix, path)
                return prefix_route.invoke(request).to_match()

        return self._match_taxonomy(path, routes, request)

    def _canonical_redirect(self, request: Request) -> RouteMatch | None:
        path = request.path
        if path == "/" or not path:
            return None
        has_slash = path.endswith("/")
        if self._trailing_slash and not has_slash:
            target = path + "/"
        elif not self._trailing_slash and has_slash:
            target = path.rstrip("/") or "/"
        else:
            return None
        if request.query.raw:
            target = f"{target}?{request.query.raw}"
        return RouteMatch(type=MatchType.REDIRECT, redirect_url=target, redirect_code=301)

    def _has_preview_access(self, request: Request) -> bool:
        return has_preview_access(request.query, self._preview_token)

    def _match_exact(self, entry: ExactRoute, request: Request) -> RouteMatch | None:
        params = {"content_type": entry.content_type}

        if entry.kind == "single":
            if not entry.file:
                return None
            item = self._repository.get_by_path(entry.file)
            if item is None:
                logger.warning("Route table references missing content file %s", entry.file)
                return None
            if (
                not item.is_published
                and not item.is_unlisted
                and not self._has_preview_access(request)
            ):
                logger.debug("Denied unpublished item %s without preview access", entry.file)
                return None
            return RouteMatch(
                type=MatchType.SINGLE,
                content_item=item,
                template=entry.template or SINGLE_TEMPLATE,
                params=params,
            )

        if entry.kind == "archive":
            query = (
                self._query_factory(self._repository)
                # Request parameters first so they cannot widen the scope
                .from_params(request.query)
                .type(entry.content_type)
                .published()
            )
            return RouteMatch(
                type=MatchType.ARCHIVE,
                query=query,
                template=entry.template or ARCHIVE_TEMPLATE,
                params=params,
            )

        logger.warning("Unknown exact route kind %r", entry.kind)
        return None

    def _match_preview(self, path: str) -> RouteMatch | None:
        for content_type, pattern in self._preview_patterns:
            captured = pattern.match(path)
            if captured is None:
                continue
            item = self._repository.get(content_type.name, captured["slug"])
            if item is None:
                continue
            return RouteMatch(
                type=MatchType.SINGLE,
                content_item=item,
                template=item.template or content_type.single_template or SINGLE_TEMPLATE,
                params={"content_type": content_type.name},
            )
        return None

    def _match_taxonomy(
        self, path: str, routes: RouteTable, request: Request
    ) -> RouteMatch | None:
        for name, taxonomy in routes.taxonomy.items():
            base = taxonomy.trimmed_base
            if path == base:
                return RouteMatch(
                    type=MatchType.TAXONOMY_INDEX,
                    taxonomy=TaxonomyContext(name=name, terms=self._repository.terms(name)),
                    template=TAXONOMY_INDEX_TEMPLATE,
                )
            if path.startswith(base + "/"):
                term_path = path[len(base) + 1 :]
                term = self._repository.term(name, term_path)
                if term is None:
                    continue
                query = (
                    self._query_factory(self._repository)
                    .from_params(request.query)
                    .published()
                    .where_tax(name, term_path)
                )
                return RouteMatch(
                    type=MatchType.TAXONOMY,
                    query=query,
                    taxonomy=TaxonomyContext(name=name, term=term),
                    template=TAXONOMY_TEMPLATE,
                )
        return None

    # -- URL generation --

    def url_for(self, content_type: str, slug: str) -> str | None:
        """Public URL of an item, or ``None`` if the route table has none."""
        return self._repository.routes().url_for(content_type, slug)

    def url_for_term(self, taxonomy: str, term: str) -> str | None:
        """``base + "/" + term``; ``None`` only for an unknown taxonomy."""
        return self._repository.routes().url_for_term(taxonomy, term)

    def __repr__(self) -> str:
        return (
            f"Router(system_routes={len(self._registry.system_routes)}, "
            f"prefix_routes={len(self._registry.prefix_routes)}, frozen={self.frozen})"
        )
