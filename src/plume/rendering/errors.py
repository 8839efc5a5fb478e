"""Rendering layer error hierarchy."""

from plume.errors import PlumeError


class RenderingError(PlumeError):
    """Base for all plume.rendering errors."""


class TemplateNotFoundError(RenderingError):
    """Raised when no candidate template exists for a match."""


class MarkdownNotInstalledError(RenderingError):
    """Raised when patitas is not installed."""
