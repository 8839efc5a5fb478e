"""Plume exception hierarchy.

Shared across Router, Site, repository, and renderers so every module
raises and catches the same types.

Ordinary routing misses are not errors: ``Router.match()`` returns
``None`` and the site renders a 404.
"""

from dataclasses import dataclass


class PlumeError(Exception):
    """Base for all plume-specific errors."""


class ConfigurationError(PlumeError):
    """Raised when site configuration is invalid.

    Malformed route patterns, content-type files, and route tables all
    fail fast with this error, at registration or load time.
    """


class ContentError(PlumeError):
    """Raised when a content file cannot be parsed (bad frontmatter)."""


@dataclass(frozen=True, slots=True)
class HTTPError(PlumeError):
    """An error that maps directly to an HTTP status code."""

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818
    """404: nothing resolved for the request path."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)
