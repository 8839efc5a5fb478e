"""Plume site: route registration, request dispatch, ASGI entry point.

Mutable during setup (plugin and theme route registration, hooks).
Frozen when ``__call__()`` or ``handle()`` is first invoked.
"""

import inspect
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import anyio

from plume._internal.asgi import Receive, Scope, Send
from plume.config import ContentType, SiteConfig, load_content_types
from plume.content.repository import ContentRepository, IndexRepository
from plume.errors import HTTPError, NotFound
from plume.hooks import Hooks
from plume.http.request import Request
from plume.http.response import Redirect, Response
from plume.rendering.protocol import Renderer
from plume.routing.handlers import RouteHandler
from plume.routing.match import MatchType
from plume.routing.pattern import RoutePattern, compile_pattern
from plume.routing.router import Router
from plume.server.sender import send_response

logger = logging.getLogger("plume.server")

# Action fired once the site is frozen: callback(site)
SITE_READY = "site.ready"


def _check_handler(handler: object, where: str) -> None:
    if not callable(handler):
        msg = f"Handler for {where!r} is not callable: {handler!r}"
        raise TypeError(msg)


@dataclass(slots=True)
class _PendingRoute:
    """A route waiting to be registered on the router."""

    pattern: str | RoutePattern
    handler: RouteHandler
    prefix: bool = False


class Site:
    """A plume site.

    Mutable during setup (routes, hooks). Frozen on first request.

    Thread safety:
        Setup is single-threaded (plugins register at import or boot).
        The freeze transition uses a Lock + double-check so exactly one
        thread builds the router, even when several ASGI workers hit
        ``__call__()`` concurrently on the first request.
    """

    __slots__ = (
        "_content_types",
        "_freeze_lock",
        "_frozen",
        "_pending_routes",
        "_renderer",
        "_repository",
        "_router",
        "_shutdown_hooks",
        "_startup_hooks",
        "config",
        "hooks",
    )

    def __init__(
        self,
        config: SiteConfig | None = None,
        *,
        repository: ContentRepository | None = None,
        hooks: Hooks | None = None,
        renderer: Renderer | None = None,
        content_types: dict[str, ContentType] | None = None,
    ) -> None:
        self.config: SiteConfig = config or SiteConfig()
        self.hooks: Hooks = hooks if hooks is not None else Hooks()
        self._repository: ContentRepository = repository or IndexRepository(
            self.config.cache_dir, content_dir=self.config.content_dir
        )
        self._renderer: Renderer | None = renderer
        self._content_types = content_types
        self._pending_routes: list[_PendingRoute] = []
        self._startup_hooks: list[Callable[..., Any]] = []
        self._shutdown_hooks: list[Callable[..., Any]] = []
        self._router: Router | None = None
        self._frozen = False
        self._freeze_lock = threading.Lock()

    # -- Route registration --

    def route(self, pattern: str) -> Callable[[RouteHandler], RouteHandler]:
        """Register a system route via decorator.

        ``pattern`` is an exact path or contains ``{name}`` placeholders.
        The handler is called as ``handler(request, params)``.
        """

        def decorator(func: RouteHandler) -> RouteHandler:
            self.add_route(pattern, func)
            return func

        return decorator

    def prefix_route(self, prefix: str) -> Callable[[RouteHandler], RouteHandler]:
        """Register a prefix route via decorator. Include the trailing ``/``."""

        def decorator(func: RouteHandler) -> RouteHandler:
            self.add_prefix_route(prefix, func)
            return func

        return decorator

    def add_route(self, pattern: str, handler: RouteHandler) -> None:
        """Register a system route.

        The pattern is compiled now, so a malformed pattern raises
        ``ConfigurationError`` here rather than on the first request.
        """
        self._check_not_frozen()
        _check_handler(handler, pattern)
        self._pending_routes.append(_PendingRoute(compile_pattern(pattern), handler))

    def add_prefix_route(self, prefix: str, handler: RouteHandler) -> None:
        self._check_not_frozen()
        _check_handler(handler, prefix)
        self._pending_routes.append(_PendingRoute(prefix, handler, prefix=True))

    # -- Lifecycle hooks --

    def on_startup(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync startup hook via decorator."""
        self._check_not_frozen()
        self._startup_hooks.append(func)
        return func

    def on_shutdown(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync shutdown hook via decorator."""
        self._check_not_frozen()
        self._shutdown_hooks.append(func)
        return func

    # -- Runtime accessors --

    @property
    def router(self) -> Router:
        self._ensure_frozen()
        assert self._router is not None
        return self._router

    @property
    def repository(self) -> ContentRepository:
        return self._repository

    @property
    def renderer(self) -> Renderer:
        self._ensure_frozen()
        assert self._renderer is not None
        return self._renderer

    def url_for(self, content_type: str, slug: str) -> str | None:
        return self.router.url_for(content_type, slug)

    def url_for_term(self, taxonomy: str, term: str) -> str | None:
        return self.router.url_for_term(taxonomy, term)

    # -- Dispatch --

    def handle(self, request: Request) -> Response | Redirect:
        """Resolve and render *request*. Blocking; runs in a worker thread.

        Handler exceptions propagate; ``__call__`` turns them into 500s.
        """
        self._ensure_frozen()
        assert self._router is not None
        assert self._renderer is not None

        match = self._router.match(request)
        if match is None:
            return self._renderer.render_not_found(request)
        match match.type:
            case MatchType.REDIRECT:
                if match.redirect_url is None:
                    msg = "Redirect match has no redirect_url"
                    raise ValueError(msg)
                return Redirect(match.redirect_url, status=match.redirect_code)
            case MatchType.PLUGIN | MatchType.RESPONSE:
                if match.response is None:
                    msg = f"{match.type} match has no response"
                    raise ValueError(msg)
                return match.response
            case _:
                return self._renderer.render(match, request)

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point."""
        if scope["type"] == "lifespan":
            await self._handle_lifespan(scope, receive, send)
            return

        if scope["type"] != "http":
            msg = f"Unsupported ASGI scope type {scope['type']!r}"
            raise RuntimeError(msg)

        self._ensure_frozen()
        request = Request.from_asgi(scope)
        try:
            response = await anyio.to_thread.run_sync(self.handle, request)
        except NotFound:
            response = self.renderer.render_not_found(request)
        except HTTPError as exc:
            response = Response.plain(exc.detail or str(exc.status), status=exc.status)
            response = response.with_headers(dict(exc.headers))
        except Exception:
            logger.exception("Unhandled error serving %s %s", request.method, request.path)
            response = self._internal_error()

        await send_response(response, send, head=request.method == "HEAD")

    def _internal_error(self) -> Response:
        if self.config.debug:
            import traceback

            return Response.plain(traceback.format_exc(), status=500)
        return Response.plain("Internal Server Error", status=500)

    async def _handle_lifespan(self, scope: Scope, receive: Receive, send: Send) -> None:
        """Run the ASGI lifespan protocol.

        Freezes the site at startup (before the first HTTP request), then
        runs registered startup/shutdown hooks.
        """
        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    await anyio.to_thread.run_sync(self._ensure_frozen)
                    for hook in self._startup_hooks:
                        result = hook()
                        if inspect.isawaitable(result):
                            await result
                    await send({"type": "lifespan.startup.complete"})
                except Exception as exc:
                    logger.exception("Site startup failed")
                    await send({"type": "lifespan.startup.failed", "message": str(exc)})
                    return

            elif msg_type == "lifespan.shutdown":
                for hook in self._shutdown_hooks:
                    result = hook()
                    if inspect.isawaitable(result):
                        await result
                await send({"type": "lifespan.shutdown.complete"})
                return

    # -- Internal --

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = "Cannot modify the site after it has started serving requests."
            raise RuntimeError(msg)

    def _ensure_frozen(self) -> None:
        """Thread-safe freeze with double-check locking."""
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self._freeze()

    def _freeze(self) -> None:
        """Build the router and renderer.

        MUST only be called while holding _freeze_lock.
        """
        content_types = self._content_types
        if content_types is None:
            content_types = load_content_types(self.config.content_types_file)

        router = Router(
            self._repository,
            trailing_slash=self.config.trailing_slash,
            preview_token=self.config.preview_token,
            content_types=content_types,
            hooks=self.hooks,
        )
        for pending in self._pending_routes:
            if pending.prefix:
                router.add_prefix_route(pending.pattern, pending.handler)
            else:
                router.add_route(pending.pattern, pending.handler)
        router.freeze()
        self._router = router

        if self._renderer is None:
            from plume.rendering.templates import TemplateRenderer

            self._renderer = TemplateRenderer(
                self.config,
                hooks=self.hooks,
                globals_={"url_for": router.url_for, "url_for_term": router.url_for_term},
            )

        self._frozen = True
        logger.debug(
            "Site frozen with %d system/prefix routes and %d content types",
            len(router.routes),
            len(content_types),
        )
        self.hooks.do_action(SITE_READY, self)
