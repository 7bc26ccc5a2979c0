"""SLA evaluation: classify the time left before a deadline.

Pure and deterministic given ``now``. The same function backs both the
modification request deadline (``expires_at``) and the reopen deadline
(``reopen_due_at``) of a task.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta

from taskdesk.domain.enums import SlaLevel

DEFAULT_WARNING_WINDOW = timedelta(hours=12)

_ONE_MS = timedelta(milliseconds=1)


@dataclass(frozen=True)
class SlaMeta:
    """Remaining time and its classification."""

    remaining_ms: int
    level: SlaLevel


def evaluate(
    now: datetime,
    expires_at: datetime | None,
    warning_window: timedelta = DEFAULT_WARNING_WINDOW,
) -> SlaMeta | None:
    """Return SLA meta for a deadline, or None when there is no deadline.

    ``danger`` once the deadline is reached, ``warning`` inside the warning
    window, ``neutral`` otherwise.
    """
    if expires_at is None:
        return None
    remaining = expires_at - now
    remaining_ms = remaining // _ONE_MS
    if remaining_ms <= 0:
        level = SlaLevel.DANGER
    elif remaining <= warning_window:
        level = SlaLevel.WARNING
    else:
        level = SlaLevel.NEUTRAL
    return SlaMeta(remaining_ms=remaining_ms, level=level)
