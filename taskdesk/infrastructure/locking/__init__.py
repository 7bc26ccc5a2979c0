"""In-process locks for serializing workflow writes."""

from taskdesk.infrastructure.locking.keyed_lock import KeyedLockManager

__all__ = ["KeyedLockManager"]
