"""UTC datetime helpers.

Every timestamp the workflow compares (deadlines, view and decision stamps)
is timezone-aware UTC. ``utc_now`` is the default clock injected into the
use cases; tests pass their own.
"""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(UTC)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Normalize a datetime read from storage to aware UTC.

    Naive values are taken to be UTC (SQLite drops tzinfo); aware values are
    converted. None passes through.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)
