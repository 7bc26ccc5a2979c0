"""Request context management using contextvars.

Async-safe storage for request-scoped data: the request and correlation ids
(set by RequestContextMiddleware) and the authenticated actor (set by the
``get_current_actor`` dependency). Read by the logging filter so every log
line carries them.

Usage:
    token = set_request_ids(request_id="abc", correlation_id="abc")
    ...
    reset_request_ids(token)
"""

from contextvars import ContextVar, Token
from dataclasses import dataclass

_request_id: ContextVar[str | None] = ContextVar("request_id", default=None)
_correlation_id: ContextVar[str | None] = ContextVar("correlation_id", default=None)
_actor_id: ContextVar[str | None] = ContextVar("actor_id", default=None)
_actor_role: ContextVar[str | None] = ContextVar("actor_role", default=None)


@dataclass(frozen=True)
class RequestContext:
    """Immutable snapshot of the current request context."""

    request_id: str | None
    correlation_id: str | None
    actor_id: str | None
    actor_role: str | None


def set_request_ids(
    request_id: str, correlation_id: str
) -> tuple[Token[str | None], Token[str | None]]:
    """Bind request and correlation ids; returns tokens for reset_request_ids."""
    return _request_id.set(request_id), _correlation_id.set(correlation_id)


def reset_request_ids(tokens: tuple[Token[str | None], Token[str | None]]) -> None:
    request_token, correlation_token = tokens
    _request_id.reset(request_token)
    _correlation_id.reset(correlation_token)


def set_current_actor(user_id: str | None, role: str | None) -> None:
    """Bind the authenticated actor for the rest of this request."""
    _actor_id.set(user_id)
    _actor_role.set(role)


def clear_current_actor() -> None:
    _actor_id.set(None)
    _actor_role.set(None)


def get_request_context() -> RequestContext:
    """Return a snapshot of the current request context."""
    return RequestContext(
        request_id=_request_id.get(),
        correlation_id=_correlation_id.get(),
        actor_id=_actor_id.get(),
        actor_role=_actor_role.get(),
    )
