"""Transition tables for requests and task recovery."""

from datetime import UTC, datetime, timedelta
from types import SimpleNamespace

import pytest

from taskdesk.domain.enums import DeclineType, RequestStatus, TaskStatus
from taskdesk.domain.exceptions import InvalidStateTransitionException
from taskdesk.domain.workflow.state_machine import (
    RequestEvent,
    TaskEvent,
    can_transition_request,
    effective_status,
    is_open,
    latest_request,
    transition_request,
    transition_task,
)

NOW = datetime(2025, 8, 1, 9, 0, tzinfo=UTC)


@pytest.mark.parametrize(
    ("current", "event", "expected"),
    [
        (RequestStatus.PENDING, RequestEvent.APPROVE, RequestStatus.APPROVED),
        (RequestStatus.PENDING, RequestEvent.REJECT, RequestStatus.REJECTED),
        (RequestStatus.PENDING, RequestEvent.EXPIRE, RequestStatus.EXPIRED),
        (RequestStatus.APPROVED, RequestEvent.EXECUTE, RequestStatus.EXECUTED),
        (RequestStatus.APPROVED, RequestEvent.EXPIRE, RequestStatus.EXPIRED),
    ],
)
def test_allowed_request_transitions(current, event, expected) -> None:
    assert transition_request(current, event) == expected
    assert can_transition_request(current, event)


@pytest.mark.parametrize(
    "current",
    [
        RequestStatus.PENDING,
        RequestStatus.REJECTED,
        RequestStatus.EXPIRED,
        RequestStatus.EXECUTED,
        RequestStatus.COUNTER_PROPOSED,
    ],
)
def test_execute_requires_approved(current) -> None:
    """Execute is only reachable from approved."""
    with pytest.raises(InvalidStateTransitionException) as exc_info:
        transition_request(current, RequestEvent.EXECUTE)
    assert exc_info.value.details["current_status"] == current.value
    assert exc_info.value.details["action"] == "execute"


def test_counter_proposed_has_no_outgoing_transitions() -> None:
    for event in RequestEvent:
        assert not can_transition_request(RequestStatus.COUNTER_PROPOSED, event)


def test_terminal_statuses_reject_every_event() -> None:
    for status in (RequestStatus.REJECTED, RequestStatus.EXPIRED, RequestStatus.EXECUTED):
        for event in RequestEvent:
            assert not can_transition_request(status, event)


def test_effective_status_overlays_expiry_on_pending_and_approved() -> None:
    past = NOW - timedelta(seconds=1)
    assert effective_status(RequestStatus.PENDING, past, NOW) == RequestStatus.EXPIRED
    assert effective_status(RequestStatus.APPROVED, past, NOW) == RequestStatus.EXPIRED
    # Deadline equal to now counts as passed.
    assert effective_status(RequestStatus.PENDING, NOW, NOW) == RequestStatus.EXPIRED


def test_effective_status_leaves_other_statuses_alone() -> None:
    past = NOW - timedelta(days=1)
    for status in (
        RequestStatus.REJECTED,
        RequestStatus.EXECUTED,
        RequestStatus.COUNTER_PROPOSED,
    ):
        assert effective_status(status, past, NOW) == status
    assert effective_status(RequestStatus.PENDING, None, NOW) == RequestStatus.PENDING
    assert (
        effective_status(RequestStatus.PENDING, NOW + timedelta(hours=1), NOW)
        == RequestStatus.PENDING
    )


def test_open_statuses() -> None:
    assert is_open(RequestStatus.PENDING)
    assert is_open(RequestStatus.APPROVED)
    assert is_open(RequestStatus.COUNTER_PROPOSED)
    assert not is_open(RequestStatus.EXPIRED)
    assert not is_open(RequestStatus.EXECUTED)
    assert not is_open(RequestStatus.REJECTED)


@pytest.mark.parametrize(
    ("status", "decline_type"),
    [
        (TaskStatus.WITHDRAWN, None),
        (TaskStatus.DECLINED_BY_EMPLOYEE, None),
        (TaskStatus.DECLINED_BY_EMPLOYEE, DeclineType.ASSIGNMENT_DECLINE),
    ],
)
def test_reassign_sources(status, decline_type) -> None:
    assert transition_task(status, TaskEvent.REASSIGN, decline_type) == TaskStatus.ASSIGNED


@pytest.mark.parametrize(
    ("status", "decline_type"),
    [
        (TaskStatus.COMPLETED, None),
        (TaskStatus.IN_PROGRESS, None),
        (TaskStatus.DECLINED_BY_EMPLOYEE, DeclineType.DEADLINE_DECLINE),
    ],
)
def test_reassign_rejects_other_sources(status, decline_type) -> None:
    with pytest.raises(InvalidStateTransitionException):
        transition_task(status, TaskEvent.REASSIGN, decline_type)


def test_reopen_only_from_completed() -> None:
    assert transition_task(TaskStatus.COMPLETED, TaskEvent.REOPEN) == TaskStatus.REOPENED
    with pytest.raises(InvalidStateTransitionException):
        transition_task(TaskStatus.IN_PROGRESS, TaskEvent.REOPEN)


def test_latest_request_is_max_requested_at() -> None:
    older = SimpleNamespace(requested_at=NOW - timedelta(days=2))
    newest = SimpleNamespace(requested_at=NOW)
    middle = SimpleNamespace(requested_at=NOW - timedelta(days=1))
    assert latest_request([older, newest, middle]) is newest
    assert latest_request([]) is None
