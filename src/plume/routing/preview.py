"""Preview access for unpublished content.

A request may see drafts only when it carries ``?preview=1&token=...``
and the token equals the configured secret. No secret configured means
no preview, ever.
"""

import hmac
from collections.abc import Mapping

_FALSY = frozenset({"", "0", "false", "no", "off"})


def is_truthy(value: str | None) -> bool:
    """Query-flag truthiness. ``None`` (absent) is false."""
    if value is None:
        return False
    return value.strip().lower() not in _FALSY


def has_preview_access(query: Mapping[str, str], secret: str | None) -> bool:
    """Check preview credentials in constant time.

    *query* is any mapping from parameter name to its first value
    (``QueryParams`` qualifies).
    """
    if not secret:
        return False
    if not is_truthy(query.get("preview")):
        return False
    token = query.get("token")
    if not token:
        return False
    return hmac.compare_digest(token.encode("utf-8"), secret.encode("utf-8"))
