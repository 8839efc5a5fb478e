"""Kida template rendering for resolved routes.

The environment is created once, when the site freezes, and shared
read-only by every request. Each match is rendered with::

    site        {"name", "url"}
    request     the Request
    route       the RouteMatch
    params      route parameters
    page        the content item, body rendered to ``page.html`` (single)
    query       the Query (archive, taxonomy)
    items       the current page of ``query``
    pagination  ``query.pagination()``
    tax         the TaxonomyContext (taxonomy, taxonomy_index)

Template lookup tries ``<match.template>.html``, then ``single.html``,
then ``index.html``.
"""

from collections.abc import Callable
from pathlib import Path
from typing import Any

from kida import ChoiceLoader, Environment, FileSystemLoader

from plume.config import SiteConfig
from plume.hooks import Hooks
from plume.http.request import Request
from plume.http.response import Response
from plume.rendering.errors import TemplateNotFoundError
from plume.rendering.markdown import MarkdownRenderer
from plume.routing.match import RouteMatch

# Filter hooks: render.context(context, match) and render.output(html, template, context)
RENDER_CONTEXT = "render.context"
RENDER_OUTPUT = "render.output"

FALLBACK_TEMPLATES = ("single.html", "index.html")
NOT_FOUND_TEMPLATE = "404.html"
TEMPLATE_SUFFIX = ".html"


def create_environment(
    config: SiteConfig,
    template_dirs: tuple[str | Path, ...] = (),
    filters: dict[str, Callable[..., Any]] | None = None,
    globals_: dict[str, Any] | None = None,
) -> Environment:
    """Create a kida Environment from site configuration.

    Called once when the site freezes. The returned environment is
    immutable for the lifetime of the site.
    """
    loaders = [FileSystemLoader(str(config.template_dir))]
    loaders.extend(FileSystemLoader(str(d)) for d in template_dirs)

    env = Environment(
        loader=ChoiceLoader(loaders),
        autoescape=config.autoescape,
        auto_reload=config.debug,
    )
    if filters:
        env.update_filters(filters)
    for name, value in (globals_ or {}).items():
        env.add_global(name, value)
    return env


def template_file(name: str) -> str:
    """``"post"`` -> ``"post.html"``; names with a suffix are kept."""
    return name if Path(name).suffix else name + TEMPLATE_SUFFIX


class TemplateRenderer:
    """Render route matches through kida templates.

    Item bodies are converted by a ``MarkdownRenderer``, created on first
    use because it needs ``patitas``; pass ``markdown=`` to supply your own.
    """

    __slots__ = ("_config", "_dirs", "_env", "_hooks", "_markdown")

    def __init__(
        self,
        config: SiteConfig,
        *,
        hooks: Hooks | None = None,
        markdown: MarkdownRenderer | None = None,
        template_dirs: tuple[str | Path, ...] = (),
        filters: dict[str, Callable[..., Any]] | None = None,
        globals_: dict[str, Any] | None = None,
    ) -> None:
        self._config = config
        self._hooks = hooks if hooks is not None else Hooks()
        self._markdown = markdown
        self._dirs = (Path(config.template_dir), *(Path(d) for d in template_dirs))
        all_filters = {"markdown": self._render_markdown, **(filters or {})}
        self._env = create_environment(config, template_dirs, all_filters, globals_)

    @property
    def env(self) -> Environment:
        return self._env

    @property
    def markdown(self) -> MarkdownRenderer:
        if self._markdown is None:
            self._markdown = MarkdownRenderer()
        return self._markdown

    def _render_markdown(self, source: str) -> str:
        return self.markdown.render(source)

    def has_template(self, name: str) -> bool:
        return any((d / name).is_file() for d in self._dirs)

    def resolve(self, template: str) -> str:
        """First existing candidate for *template*.

        Raises ``TemplateNotFoundError`` if none exist.
        """
        candidates = (template_file(template), *FALLBACK_TEMPLATES)
        for candidate in candidates:
            if self.has_template(candidate):
                return candidate
        msg = f"Template not found: {template} (tried {', '.join(candidates)})"
        raise TemplateNotFoundError(msg)

    def context(self, match: RouteMatch, request: Request) -> dict[str, Any]:
        context: dict[str, Any] = {
            "site": {"name": self._config.name, "url": self._config.base_url},
            "request": request,
            "route": match,
            "params": dict(match.params),
        }
        if match.content_item is not None:
            context["page"] = self.markdown.render_item(match.content_item)
        if match.query is not None:
            context["query"] = match.query
            context["items"] = match.query.get()
            context["pagination"] = match.query.pagination()
        if match.taxonomy is not None:
            context["tax"] = match.taxonomy
        return self._hooks.apply(RENDER_CONTEXT, context, match)

    def render(self, match: RouteMatch, request: Request) -> Response:
        name = self.resolve(match.template)
        context = self.context(match, request)
        html = self._env.get_template(name).render(context)
        html = self._hooks.apply(RENDER_OUTPUT, html, name, context)
        return Response(body=html)

    def render_not_found(self, request: Request) -> Response:
        """Render ``404.html`` if the theme has one, else a plain 404."""
        if not self.has_template(NOT_FOUND_TEMPLATE):
            return Response.plain("Not Found", status=404)
        context = {
            "site": {"name": self._config.name, "url": self._config.base_url},
            "request": request,
        }
        html = self._env.get_template(NOT_FOUND_TEMPLATE).render(context)
        return Response(body=html, status=404)
