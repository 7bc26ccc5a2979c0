"""JWT verification for the actor context (and token minting for dev/tests).

Tokens are issued by the surrounding identity system; this service only
needs ``sub`` (user or employee id) and ``role`` (admin or employee).
"""

from datetime import UTC, datetime, timedelta
from typing import Any, cast

from jose import JWTError, jwt

from taskdesk.core.config import get_settings
from taskdesk.domain.enums import ActorRole
from taskdesk.domain.exceptions import AuthenticationException
from taskdesk.domain.value_objects.core import Actor

_TOKEN_ROLES = frozenset({ActorRole.ADMIN.value, ActorRole.EMPLOYEE.value})


def create_access_token(
    user_id: str,
    role: ActorRole | str,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a signed access token for ``user_id`` acting as ``role``."""
    settings = get_settings()
    expire = datetime.now(UTC) + (
        expires_delta
        if expires_delta is not None
        else timedelta(minutes=settings.access_token_expire_minutes)
    )
    claims = {"sub": user_id, "role": ActorRole(role).value, "exp": expire}
    encoded = jwt.encode(
        claims,
        settings.secret_key.get_secret_value(),
        algorithm=settings.algorithm,
    )
    return cast(str, encoded)


def verify_token(token: str) -> dict[str, Any]:
    """Verify and decode a JWT. Returns the payload.

    Raises:
        ValueError: If token is invalid, expired, or missing exp/sub.
    """
    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.secret_key.get_secret_value(),
            algorithms=[settings.algorithm],
            options={"require_exp": True, "require_sub": True},
        )
    except JWTError as e:
        raise ValueError(f"Invalid token: {e!s}") from e
    return payload


def actor_from_token(token: str) -> Actor:
    """Resolve the acting party from a bearer token.

    Raises:
        AuthenticationException: Invalid token or unusable role claim.
    """
    try:
        payload = verify_token(token)
    except ValueError as e:
        raise AuthenticationException(str(e)) from e
    role = payload.get("role")
    if role not in _TOKEN_ROLES:
        raise AuthenticationException("Token missing or invalid claim: role")
    return Actor(user_id=str(payload["sub"]), role=ActorRole(role))
