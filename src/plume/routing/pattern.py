"""Route pattern compilation.

Patterns are compiled once, when they are registered. Matching a
request then costs one string comparison (literal patterns) or one
anchored regex match (placeholder patterns).

Examples::

    "/sitemap.xml"         -> literal, equality only
    "/api/{type}/{id}"     -> ^/api/(?P<type>[^/]+)/(?P<id>[^/]+)$
    "/sitemap-{type}.xml"  -> ^/sitemap\\-(?P<type>[^/]+)\\.xml$
"""

import re
from dataclasses import dataclass

from plume.errors import ConfigurationError

# One placeholder consumes one or more characters of a single segment
SEGMENT_PATTERN = r"[^/]+"


@dataclass(frozen=True, slots=True)
class RoutePattern:
    """A compiled route pattern."""

    source: str
    regex: re.Pattern[str] | None = None
    names: tuple[str, ...] = ()

    @property
    def is_literal(self) -> bool:
        return self.regex is None

    def match(self, path: str) -> dict[str, str] | None:
        """Return captured placeholders on success, ``None`` on failure."""
        if self.regex is None:
            return {} if path == self.source else None
        m = self.regex.match(path)
        if m is None:
            return None
        return m.groupdict()


def compile_pattern(pattern: str) -> RoutePattern:
    """Compile a ``{name}`` placeholder pattern.

    Raises ``ConfigurationError`` for unbalanced braces, empty or
    non-identifier placeholder names, and duplicate names.
    """
    if "{" not in pattern and "}" not in pattern:
        return RoutePattern(source=pattern)

    parts: list[str] = []
    names: list[str] = []
    pos = 0
    while pos < len(pattern):
        open_at = pattern.find("{", pos)
        close_at = pattern.find("}", pos)

        if open_at == -1:
            if close_at != -1:
                msg = f"Unbalanced '}}' in route pattern {pattern!r}"
                raise ConfigurationError(msg)
            parts.append(re.escape(pattern[pos:]))
            break

        if close_at != -1 and close_at < open_at:
            msg = f"Unbalanced '}}' in route pattern {pattern!r}"
            raise ConfigurationError(msg)

        end = pattern.find("}", open_at + 1)
        nested = pattern.find("{", open_at + 1)
        if end == -1 or (nested != -1 and nested < end):
            msg = f"Unbalanced '{{' in route pattern {pattern!r}"
            raise ConfigurationError(msg)

        name = pattern[open_at + 1 : end]
        if not name.isidentifier():
            msg = (
                f"Invalid placeholder {{{name}}} in route pattern {pattern!r}: "
                "placeholder names must be identifiers"
            )
            raise ConfigurationError(msg)
        if name in names:
            msg = f"Duplicate placeholder {{{name}}} in route pattern {pattern!r}"
            raise ConfigurationError(msg)

        parts.append(re.escape(pattern[pos:open_at]))
        parts.append(f"(?P<{name}>{SEGMENT_PATTERN})")
        names.append(name)
        pos = end + 1

    regex = re.compile("^" + "".join(parts) + "$")
    return RoutePattern(source=pattern, regex=regex, names=tuple(names))
