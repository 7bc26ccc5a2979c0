"""Request context middleware.

Forwards or generates the request id and correlation id, echoes both on the
response, and binds them to context vars for the duration of the request so
log lines from the workflow carry them. Client values are sanitized (length
and character set) before they reach the logs. Raw ASGI, no
BaseHTTPMiddleware.
"""

import re
import uuid
from typing import Callable

from taskdesk.shared.context import clear_current_actor, reset_request_ids, set_request_ids

ID_MAX_LENGTH = 64
_ID_PATTERN = re.compile(r"^[a-zA-Z0-9_-]{1," + str(ID_MAX_LENGTH) + r"}$")


def _get_header(scope: dict, name: str) -> str | None:
    """Return first header value for name (case-insensitive)."""
    want = name.lower().encode()
    for k, v in scope.get("headers", []):
        if k.lower() == want:
            return v.decode("utf-8", errors="replace")
    return None


def _clean(raw: str | None) -> str | None:
    if raw and _ID_PATTERN.match(raw.strip()):
        return raw.strip()
    return None


def RequestContextMiddleware(
    app: Callable,
    request_id_header: str = "X-Request-ID",
    correlation_id_header: str = "X-Correlation-ID",
) -> Callable:
    """Bind request/correlation ids; correlation id falls back to the request id."""

    async def asgi_app(scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await app(scope, receive, send)
            return
        request_id = _clean(_get_header(scope, request_id_header)) or str(uuid.uuid4())
        correlation_id = _clean(_get_header(scope, correlation_id_header)) or request_id
        state = scope.setdefault("state", {})
        state["request_id"] = request_id
        state["correlation_id"] = correlation_id

        async def send_wrapper(message: dict) -> None:
            if message["type"] == "http.response.start":
                headers = list(message.get("headers", []))
                headers.append((request_id_header.encode(), request_id.encode()))
                headers.append((correlation_id_header.encode(), correlation_id.encode()))
                message["headers"] = headers
            await send(message)

        tokens = set_request_ids(request_id, correlation_id)
        try:
            await app(scope, receive, send_wrapper)
        finally:
            reset_request_ids(tokens)
            clear_current_actor()

    return asgi_app
