"""Expire overdue modification requests (cron entry point).

Moves pending/approved requests whose expires_at has passed to expired and
adds the timeline entry on their task. Reads already show the expired
status; this makes it durable.

Usage:
    uv run python -m scripts.expire_modification_requests [batch_size]
Requires DATABASE_URL. Each batch runs in its own transaction.
"""

import asyncio
import sys

import taskdesk.infrastructure.persistence.database as database
from taskdesk.application.use_cases.modifications import ExpireOverdueRequestsUseCase
from taskdesk.application.use_cases.modifications.expire_overdue import EXPIRY_BATCH_SIZE
from taskdesk.core.config import get_settings
from taskdesk.infrastructure.locking import KeyedLockManager
from taskdesk.infrastructure.persistence.repositories import (
    ModificationRequestRepository,
    TaskRepository,
)
from taskdesk.shared.telemetry.logging import setup_logging


async def main() -> None:
    """Sweep in batches until a batch comes back short."""
    get_settings()
    setup_logging()
    database._ensure_engine()
    if database.AsyncSessionLocal is None:
        print("AsyncSessionLocal not configured", file=sys.stderr)
        sys.exit(1)
    batch_size = int(sys.argv[1]) if len(sys.argv) > 1 else EXPIRY_BATCH_SIZE

    locks = KeyedLockManager()
    total = 0
    while True:
        async with database.AsyncSessionLocal() as session:
            async with session.begin():
                use_case = ExpireOverdueRequestsUseCase(
                    task_repo=TaskRepository(session),
                    request_repo=ModificationRequestRepository(session),
                    locks=locks,
                )
                result = await use_case.run(limit=batch_size)
        total += result.expired_count
        if result.expired_count < batch_size:
            break

    await database.dispose_engine()
    print(f"Done. Total expired: {total}")


if __name__ == "__main__":
    asyncio.run(main())
