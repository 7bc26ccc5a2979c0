"""Keyed asyncio lock manager.

One ``asyncio.Lock`` per key (task id), created on demand and dropped when
the last holder or waiter leaves. Use via app.state.lock_manager (set in
create_app). Serializes writers within one process; across processes the
row lock and version check in the repositories take over.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager


class KeyedLockManager:
    """Implements IKeyedLock."""

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                del self._locks[key]

    @property
    def active_keys(self) -> int:
        """Number of keys currently held or awaited."""
        return len(self._locks)
