"""Transition functions for modification requests and task recovery.

One table per entity. Each transition function returns the next status or
raises InvalidStateTransitionException; nothing here mutates state or reads
the clock. Callers pass the *effective* request status so that a request
whose deadline has passed behaves as expired even when the stored status
still says otherwise.
"""

from collections.abc import Iterable
from datetime import datetime
from enum import Enum
from typing import Protocol, TypeVar

from taskdesk.domain.enums import (
    EXPIRABLE_REQUEST_STATUSES,
    OPEN_REQUEST_STATUSES,
    DeclineType,
    RequestStatus,
    TaskStatus,
)
from taskdesk.domain.exceptions import InvalidStateTransitionException


class RequestEvent(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"
    EXPIRE = "expire"
    EXECUTE = "execute"


class TaskEvent(str, Enum):
    REASSIGN = "reassign"
    REOPEN = "reopen"


_REQUEST_TRANSITIONS: dict[RequestStatus, dict[RequestEvent, RequestStatus]] = {
    RequestStatus.PENDING: {
        RequestEvent.APPROVE: RequestStatus.APPROVED,
        RequestEvent.REJECT: RequestStatus.REJECTED,
        RequestEvent.EXPIRE: RequestStatus.EXPIRED,
    },
    RequestStatus.APPROVED: {
        RequestEvent.EXECUTE: RequestStatus.EXECUTED,
        RequestEvent.EXPIRE: RequestStatus.EXPIRED,
    },
}

# Declines that leave the task free for another assignee.
_REASSIGNABLE_DECLINES = frozenset({None, DeclineType.ASSIGNMENT_DECLINE})


def effective_status(
    status: RequestStatus,
    expires_at: datetime | None,
    now: datetime,
) -> RequestStatus:
    """Overlay the SLA deadline on a stored status (read-time only)."""
    if (
        status in EXPIRABLE_REQUEST_STATUSES
        and expires_at is not None
        and expires_at <= now
    ):
        return RequestStatus.EXPIRED
    return status


def is_open(status: RequestStatus) -> bool:
    """True for statuses that block a new request on the same task."""
    return status in OPEN_REQUEST_STATUSES


def transition_request(current: RequestStatus, event: RequestEvent) -> RequestStatus:
    """Return the status reached by applying ``event`` to ``current``."""
    target = _REQUEST_TRANSITIONS.get(current, {}).get(event)
    if target is None:
        raise InvalidStateTransitionException(
            f"Cannot {event.value} a request that is {current.value}",
            current_status=current.value,
            action=event.value,
        )
    return target


def can_transition_request(current: RequestStatus, event: RequestEvent) -> bool:
    return event in _REQUEST_TRANSITIONS.get(current, {})


def transition_task(
    current: TaskStatus,
    event: TaskEvent,
    decline_type: DeclineType | None = None,
) -> TaskStatus:
    """Return the task status reached by a recovery event.

    Reassign applies to withdrawn tasks and to tasks the employee declined as
    an assignment (not a deadline decline). Reopen applies to completed tasks.
    """
    if event is TaskEvent.REASSIGN:
        if current == TaskStatus.WITHDRAWN or (
            current == TaskStatus.DECLINED_BY_EMPLOYEE
            and decline_type in _REASSIGNABLE_DECLINES
        ):
            return TaskStatus.ASSIGNED
    elif event is TaskEvent.REOPEN:
        if current == TaskStatus.COMPLETED:
            return TaskStatus.REOPENED
    raise InvalidStateTransitionException(
        f"Cannot {event.value} a task that is {current.value}",
        current_status=current.value,
        action=event.value,
    )


class _HasRequestedAt(Protocol):
    requested_at: datetime


R = TypeVar("R", bound=_HasRequestedAt)


def latest_request(requests: Iterable[R]) -> R | None:
    """Most recent request by ``requested_at``; the task's active badge."""
    return max(requests, key=lambda r: r.requested_at, default=None)
