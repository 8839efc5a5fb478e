"""ASGI response sending: translates plume responses to ASGI messages."""

import logging

from plume._internal.asgi import Send
from plume.http.response import Redirect, Response

logger = logging.getLogger("plume.server")


def _body_allowed(status: int) -> bool:
    """Whether an HTTP status code permits a response body."""
    # RFC: 1xx, 204, and 304 responses do not include a message body.
    return not (100 <= status < 200 or status in {204, 304})


async def send_response(response: Response | Redirect, send: Send, *, head: bool = False) -> None:
    """Translate a Response (or Redirect) into ASGI ``send()`` calls.

    With *head*, headers (including content-length) are sent as for GET
    but the body is empty.
    """
    if isinstance(response, Redirect):
        response = response.to_response()

    raw_headers: list[tuple[bytes, bytes]] = [
        (b"content-type", response.content_type.encode("latin-1")),
    ]
    for name, value in response.headers:
        raw_headers.append((name.lower().encode("latin-1"), value.encode("latin-1")))

    body = response.body_bytes if _body_allowed(response.status) else b""
    raw_headers.append((b"content-length", str(len(body)).encode("latin-1")))

    await send(
        {
            "type": "http.response.start",
            "status": response.status,
            "headers": raw_headers,
        }
    )
    await send(
        {
            "type": "http.response.body",
            "body": b"" if head else body,
        }
    )
