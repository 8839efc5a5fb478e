"""Site configuration.

SiteConfig is a frozen dataclass: immutable after creation,
IDE-autocompletable, no string-key dict lookups.

Content types live in their own YAML file (``content_types.yaml``) so
themes and the indexer can share it::

    post:
      label: Posts
      content_dir: posts
      url:
        type: pattern
        pattern: /blog/{slug}
        archive: /blog
      templates:
        single: post
        archive: archive
      taxonomies: [category, tag]
"""

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

import yaml

from plume.errors import ConfigurationError

logger = logging.getLogger("plume.config")

_PLACEHOLDER = re.compile(r"\{([^{}]*)\}")


@dataclass(frozen=True, slots=True)
class SiteConfig:
    """Site configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = SiteConfig(debug=True, preview_token="s3cr3t")
    """

    # Server
    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False

    # Site
    name: str = "Plume"
    base_url: str = "http://localhost:8000"

    # Routing
    trailing_slash: bool = False  # True = /about/, False = /about

    # Security
    preview_token: str | None = None  # Secret for ?preview=1&token=...

    # Paths
    content_dir: str | Path = "content"
    cache_dir: str | Path = "storage/cache"
    template_dir: str | Path = "templates"
    content_types_file: str | Path | None = "content_types.yaml"

    # Templates
    autoescape: bool = True

    # Logging
    log_level: str = "info"

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SiteConfig":
        """Build from a flat mapping. Unknown keys raise ``ConfigurationError``."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            msg = f"Unknown site config keys: {', '.join(unknown)}"
            raise ConfigurationError(msg)
        return cls(**dict(data))

    @classmethod
    def load(cls, path: str | Path) -> "SiteConfig":
        """Read a YAML config file. Sections are flattened one level deep.

        ::

            site:    {name: My Blog, base_url: https://example.com}
            routing: {trailing_slash: true}
            security: {preview_token: s3cr3t}
        """
        data = _read_yaml(Path(path))
        flat: dict[str, Any] = {}
        for key, value in data.items():
            if isinstance(value, Mapping):
                flat.update(value)
            else:
                flat[key] = value
        return cls.from_dict(flat)


@dataclass(frozen=True, slots=True)
class ContentType:
    """How one content type is stored, addressed and rendered."""

    name: str
    label: str = ""
    content_dir: str = ""
    url_type: str = "pattern"
    url_pattern: str | None = None
    archive_url: str | None = None
    single_template: str | None = None
    archive_template: str | None = None
    taxonomies: tuple[str, ...] = ()

    @property
    def pattern(self) -> str:
        """Single-item URL pattern; defaults to ``/{name}/{slug}``."""
        return self.url_pattern or f"/{self.name}/{{slug}}"

    def url_for_slug(self, slug: str) -> str | None:
        """Fill ``{slug}`` in ``pattern``.

        ``None`` when the pattern needs anything besides the slug
        (``/docs/{parent}/{slug}``), or has no ``{slug}`` at all.
        """
        if set(_PLACEHOLDER.findall(self.pattern)) != {"slug"}:
            return None
        return self.pattern.replace("{slug}", slug)

    @classmethod
    def from_dict(cls, name: str, data: Mapping[str, Any]) -> "ContentType":
        url = data.get("url") or {}
        templates = data.get("templates") or {}
        if not isinstance(url, Mapping) or not isinstance(templates, Mapping):
            msg = f"Content type {name!r}: 'url' and 'templates' must be mappings"
            raise ConfigurationError(msg)
        return cls(
            name=name,
            label=str(data.get("label") or name.title()),
            content_dir=str(data.get("content_dir") or name),
            url_type=str(url.get("type") or "pattern"),
            url_pattern=url.get("pattern"),
            archive_url=url.get("archive"),
            single_template=templates.get("single"),
            archive_template=templates.get("archive"),
            taxonomies=tuple(data.get("taxonomies") or ()),
        )


def load_content_types(path: str | Path | None) -> dict[str, ContentType]:
    """Read content-type definitions, keyed by type name.

    A missing file is not an error: preview matching simply finds
    nothing. A malformed file raises ``ConfigurationError``.
    """
    if path is None:
        return {}
    path = Path(path)
    if not path.exists():
        logger.warning("Content types file %s not found; preview matching disabled", path)
        return {}
    data = _read_yaml(path)
    types: dict[str, ContentType] = {}
    for name, entry in data.items():
        if not isinstance(entry, Mapping):
            msg = f"Content type {name!r} in {path} must be a mapping"
            raise ConfigurationError(msg)
        types[str(name)] = ContentType.from_dict(str(name), entry)
    return types


def _read_yaml(path: Path) -> Mapping[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        msg = f"{path} is not valid YAML: {exc}"
        raise ConfigurationError(msg) from exc
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        msg = f"{path} must contain a mapping at the top level"
        raise ConfigurationError(msg)
    return data
