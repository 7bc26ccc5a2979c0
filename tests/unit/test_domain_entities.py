"""Modification request and task entities: creation rules and transitions."""

from datetime import UTC, date, datetime, timedelta

import pytest

from taskdesk.domain.entities.modification_request import ModificationRequestEntity
from taskdesk.domain.entities.task import TaskEntity
from taskdesk.domain.enums import (
    ActivityAction,
    ActorRole,
    RequestOrigin,
    RequestStatus,
    RequestType,
    ResponseDecision,
    TaskPriority,
    TaskStatus,
)
from taskdesk.domain.exceptions import InvalidStateTransitionException, ValidationException
from taskdesk.domain.value_objects.core import Actor, WorkflowPolicy

NOW = datetime(2025, 8, 1, 9, 0, tzinfo=UTC)
ADMIN = Actor("admin-1", ActorRole.ADMIN)
EMPLOYEE = Actor("emp-1", ActorRole.EMPLOYEE)
POLICY = WorkflowPolicy()


def _create(**overrides) -> ModificationRequestEntity:
    kwargs = {
        "request_id": "req-1",
        "task_id": "task-1",
        "origin": RequestOrigin.ADMIN_INITIATED,
        "request_type": RequestType.EDIT,
        "reason": "Please fix the due date for Q3",
        "requested_by": ADMIN.user_id,
        "now": NOW,
        "policy": POLICY,
        "proposed_changes": {"due_date": "2025-09-01"},
        "current_due_date": date(2025, 8, 15),
    }
    kwargs.update(overrides)
    return ModificationRequestEntity.create(**kwargs)


def test_create_computes_deadline_from_sla_hours() -> None:
    request = _create(sla_hours=24)
    assert request.status == RequestStatus.PENDING
    assert request.sla_hours == 24
    assert request.expires_at == NOW + timedelta(hours=24)
    assert request.requested_at == NOW


def test_create_defaults_sla_to_24_hours() -> None:
    assert _create().expires_at == NOW + timedelta(hours=24)


def test_admin_edit_requires_long_reason_and_changes() -> None:
    with pytest.raises(ValidationException) as exc_info:
        _create(reason="Fix it")
    assert exc_info.value.details["field"] == "reason"
    with pytest.raises(ValidationException) as exc_info:
        _create(proposed_changes={})
    assert exc_info.value.details["field"] == "proposed_changes"


def test_admin_delete_requires_impact_note() -> None:
    with pytest.raises(ValidationException) as exc_info:
        _create(request_type=RequestType.DELETE, proposed_changes=None, impact_note="short")
    assert exc_info.value.details["field"] == "impact_note"
    request = _create(
        request_type=RequestType.DELETE,
        proposed_changes=None,
        impact_note="Client cancelled the engagement",
    )
    assert request.impact_note == "Client cancelled the engagement"


def test_admin_cannot_open_extension() -> None:
    with pytest.raises(ValidationException) as exc_info:
        _create(request_type=RequestType.EXTENSION, proposed_changes=None)
    assert exc_info.value.details["field"] == "request_type"


def test_changes_only_on_edit_requests() -> None:
    with pytest.raises(ValidationException):
        _create(
            request_type=RequestType.DELETE,
            impact_note="Client cancelled the engagement",
        )


def test_employee_extension_needs_later_date() -> None:
    base = {
        "origin": RequestOrigin.EMPLOYEE_INITIATED,
        "request_type": RequestType.EXTENSION,
        "reason": "Waiting on data",
        "requested_by": EMPLOYEE.user_id,
        "proposed_changes": None,
    }
    with pytest.raises(ValidationException):
        _create(**base)
    with pytest.raises(ValidationException):
        _create(**base, requested_extension="2025-08-10")
    request = _create(**base, requested_extension="2025-08-30")
    assert request.requested_extension == date(2025, 8, 30)


def test_employee_reason_may_be_short_but_not_blank() -> None:
    base = {
        "origin": RequestOrigin.EMPLOYEE_INITIATED,
        "request_type": RequestType.EXTENSION,
        "requested_by": EMPLOYEE.user_id,
        "proposed_changes": None,
        "requested_extension": "2025-08-30",
    }
    assert _create(**base, reason="Sick").reason == "Sick"
    with pytest.raises(ValidationException):
        _create(**base, reason="  ")


def test_mark_viewed_is_idempotent() -> None:
    request = _create()
    assert request.mark_viewed(NOW, EMPLOYEE) is True
    assert request.mark_viewed(NOW + timedelta(hours=1), EMPLOYEE) is False
    assert request.employee_viewed_at == NOW
    assert request.status == RequestStatus.PENDING


def test_respond_requires_note_and_pending() -> None:
    request = _create()
    with pytest.raises(ValidationException):
        request.respond(ResponseDecision.APPROVED, "", NOW, EMPLOYEE)
    request.respond(ResponseDecision.APPROVED, "ok", NOW, EMPLOYEE)
    assert request.status == RequestStatus.APPROVED
    assert request.response_note == "ok"
    with pytest.raises(InvalidStateTransitionException):
        request.respond(ResponseDecision.REJECTED, "changed my mind", NOW, EMPLOYEE)


def test_respond_after_deadline_fails_without_mutating() -> None:
    request = _create(sla_hours=1)
    later = NOW + timedelta(hours=1)
    with pytest.raises(InvalidStateTransitionException) as exc_info:
        request.respond(ResponseDecision.APPROVED, "ok", later, EMPLOYEE)
    assert exc_info.value.details["current_status"] == "expired"
    assert request.status == RequestStatus.PENDING
    assert request.effective_status(later) == RequestStatus.EXPIRED


def test_expire_is_idempotent() -> None:
    request = _create(sla_hours=1)
    assert request.expire(NOW) is False
    later = NOW + timedelta(hours=2)
    assert request.expire(later) is True
    assert request.status == RequestStatus.EXPIRED
    assert request.expired_at == later
    assert request.expire(later) is False


def test_discussion_locks_after_rejection() -> None:
    request = _create()
    first = request.add_message("m1", "Why this date?", NOW, EMPLOYEE)
    assert first.position == 0
    assert first.sender_role == ActorRole.EMPLOYEE
    request.respond(ResponseDecision.REJECTED, "Not feasible", NOW, EMPLOYEE)
    with pytest.raises(InvalidStateTransitionException):
        request.add_message("m2", "Please reconsider", NOW, ADMIN)
    assert len(request.discussion) == 1


def test_discussion_locks_once_expired() -> None:
    request = _create(sla_hours=1)
    with pytest.raises(InvalidStateTransitionException):
        request.add_message("m1", "Hello?", NOW + timedelta(hours=1), ADMIN)


def test_task_apply_changes_returns_diff_of_changed_fields() -> None:
    task = TaskEntity(
        id="task-1",
        title="Quarterly report",
        status=TaskStatus.IN_PROGRESS,
        assigned_to="emp-1",
        due_date=date(2025, 8, 15),
    )
    request = _create(
        proposed_changes={
            "due_date": "2025-09-01",
            "priority": "high",
            "title": "Quarterly report",
        }
    )
    diff = task.apply_changes(request.proposed_changes)
    assert diff == {
        "due_date": {"old": "2025-08-15", "new": "2025-09-01"},
        "priority": {"old": "medium", "new": "high"},
    }
    assert task.due_date == date(2025, 9, 1)
    assert task.priority == TaskPriority.HIGH


def test_task_record_drops_empty_details() -> None:
    task = TaskEntity(id="task-1", title="T", status=TaskStatus.ASSIGNED, assigned_to="emp-1")
    entry = task.record(ActivityAction.TASK_EDITED, ADMIN, NOW, request_id="r1", note=None)
    assert entry.details == {"request_id": "r1"}
    assert task.new_activity() == [entry]
    task.mark_activity_persisted()
    assert task.new_activity() == []


def test_closed_or_deleted_task_refuses_requests() -> None:
    task = TaskEntity(id="task-1", title="T", status=TaskStatus.FAILED, assigned_to="emp-1")
    with pytest.raises(InvalidStateTransitionException):
        task.ensure_accepts_request(RequestType.EDIT)
    task = TaskEntity(id="task-2", title="T", status=TaskStatus.COMPLETED, assigned_to="emp-1")
    task.ensure_accepts_request(RequestType.EDIT)
    with pytest.raises(InvalidStateTransitionException):
        task.ensure_accepts_request(RequestType.EXTENSION)
    task.soft_delete(NOW, ADMIN)
    with pytest.raises(InvalidStateTransitionException):
        task.ensure_accepts_request(RequestType.DELETE)


def test_task_requires_title() -> None:
    with pytest.raises(ValidationException):
        TaskEntity(id="task-1", title=" ", status=TaskStatus.ASSIGNED, assigned_to=None)


def test_decisions_on_expired_request_report_state_before_note() -> None:
    admin_side = _create(sla_hours=1)
    later = NOW + timedelta(hours=2)
    with pytest.raises(InvalidStateTransitionException) as exc_info:
        admin_side.respond(ResponseDecision.APPROVED, "", later, EMPLOYEE)
    assert exc_info.value.details["current_status"] == "expired"

    employee_side = _create(
        origin=RequestOrigin.EMPLOYEE_INITIATED,
        request_type=RequestType.EXTENSION,
        requested_by=EMPLOYEE.user_id,
        reason="Need more time",
        proposed_changes=None,
        requested_extension="2025-08-29",
        sla_hours=1,
    )
    with pytest.raises(InvalidStateTransitionException):
        employee_side.approve(None, later, ADMIN)
    with pytest.raises(InvalidStateTransitionException):
        employee_side.reject("  ", later, ADMIN)
    assert employee_side.status == RequestStatus.PENDING


def test_terminal_request_is_never_expired() -> None:
    request = _create(sla_hours=1)
    request.respond(ResponseDecision.REJECTED, "Not feasible", NOW, EMPLOYEE)
    assert request.expire(NOW + timedelta(hours=2)) is False
    assert request.status == RequestStatus.REJECTED
    assert request.expired_at is None
