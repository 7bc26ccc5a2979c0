"""Service interfaces (ports) for the application layer."""

from __future__ import annotations

from contextlib import AbstractAsyncContextManager
from datetime import datetime
from typing import Protocol


class IKeyedLock(Protocol):
    """Mutual exclusion per key (e.g. a task id) within one process."""

    def hold(self, key: str) -> AbstractAsyncContextManager[None]:
        """Async context manager that holds the lock for ``key``."""


class IClock(Protocol):
    """Single authoritative time source; one reading per operation."""

    def __call__(self) -> datetime:
        """Return the current UTC time."""
