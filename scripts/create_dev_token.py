"""Mint a bearer token for local development.

Usage:
    uv run python -m scripts.create_dev_token <user_id> <admin|employee> [minutes]
Uses SECRET_KEY/ALGORITHM from the environment, so the running API accepts it.
"""

import sys
from datetime import timedelta

from taskdesk.domain.enums import ActorRole
from taskdesk.infrastructure.security.jwt import create_access_token


def main() -> None:
    if len(sys.argv) < 3 or sys.argv[2] not in ("admin", "employee"):
        print(
            "Usage: uv run python -m scripts.create_dev_token <user_id> <admin|employee> [minutes]",
            file=sys.stderr,
        )
        sys.exit(1)
    expires = timedelta(minutes=int(sys.argv[3])) if len(sys.argv) > 3 else None
    print(create_access_token(sys.argv[1], ActorRole(sys.argv[2]), expires_delta=expires))


if __name__ == "__main__":
    main()
