"""TaskRecoveryService: reassign, reopen, reopen acknowledgement, task detail."""

from datetime import timedelta

import pytest

from taskdesk.application.dtos.modification_request import CreateModificationRequestCommand
from taskdesk.domain.enums import (
    ActivityAction,
    DeclineType,
    ReopenSlaStatus,
    RequestStatus,
    RequestType,
    SlaLevel,
    TaskPriority,
    TaskStatus,
)
from taskdesk.domain.exceptions import (
    AuthorizationException,
    InvalidStateTransitionException,
    ResourceNotFoundException,
    ValidationException,
)

# ---- reassign ----------------------------------------------------------------


async def test_reassign_withdrawn_task(recovery, make_task, task_repo, admin, clock) -> None:
    make_task(status=TaskStatus.WITHDRAWN)

    task = await recovery.reassign(
        admin,
        "task-1",
        "emp-2",
        reason="Original assignee left the project",
        handover_notes="Draft is in the shared drive",
        priority="high",
    )

    assert task.status == TaskStatus.ASSIGNED
    assert task.assigned_to == "emp-2"
    assert task.priority == TaskPriority.HIGH
    assert task.reassigned_at == clock.now
    assert task.reassigned_by == admin.user_id
    stored = task_repo.rows["task-1"]
    assert stored.handover_notes == "Draft is in the shared drive"
    entry = stored.activity_timeline[-1]
    assert entry.action == ActivityAction.TASK_REASSIGNED
    assert entry.details["previous_assignee"] == "emp-1"
    assert entry.details["new_assignee"] == "emp-2"


async def test_reassign_assignment_decline_clears_decline(recovery, make_task, admin) -> None:
    make_task(
        status=TaskStatus.DECLINED_BY_EMPLOYEE,
        decline_type=DeclineType.ASSIGNMENT_DECLINE,
        decline_reason="On leave",
    )
    task = await recovery.reassign(admin, "task-1", "emp-2")
    assert task.status == TaskStatus.ASSIGNED
    assert task.decline_type is None
    assert task.decline_reason is None
    assert task.reassignment_reason == "Admin reassignment"


async def test_reassign_completed_task_fails(recovery, make_task, task_repo, admin) -> None:
    make_task(status=TaskStatus.COMPLETED)
    with pytest.raises(InvalidStateTransitionException) as exc_info:
        await recovery.reassign(admin, "task-1", "emp-2", reason="Needs another pair of eyes")
    assert exc_info.value.details["current_status"] == "completed"
    assert task_repo.rows["task-1"].assigned_to == "emp-1"


async def test_reassign_deadline_decline_fails(recovery, make_task, admin) -> None:
    """A deadline decline is negotiated through an extension, not a new assignee."""
    make_task(
        status=TaskStatus.DECLINED_BY_EMPLOYEE,
        decline_type=DeclineType.DEADLINE_DECLINE,
    )
    with pytest.raises(InvalidStateTransitionException):
        await recovery.reassign(admin, "task-1", "emp-2")


async def test_reassign_checks_employee(recovery, make_task, admin) -> None:
    make_task(status=TaskStatus.WITHDRAWN)
    with pytest.raises(ResourceNotFoundException) as exc_info:
        await recovery.reassign(admin, "task-1", "emp-404")
    assert exc_info.value.details["resource_type"] == "employee"
    with pytest.raises(ValidationException):
        await recovery.reassign(admin, "task-1", "emp-3")
    with pytest.raises(ValidationException):
        await recovery.reassign(admin, "task-1", "")
    with pytest.raises(ValidationException) as exc_info:
        await recovery.reassign(admin, "task-1", "emp-2", priority="urgent")
    assert exc_info.value.details["field"] == "priority"


async def test_reassign_is_admin_only(recovery, make_task, employee) -> None:
    make_task(status=TaskStatus.WITHDRAWN)
    with pytest.raises(AuthorizationException):
        await recovery.reassign(employee, "task-1", "emp-2")


async def test_reassign_unknown_task(recovery, admin) -> None:
    with pytest.raises(ResourceNotFoundException):
        await recovery.reassign(admin, "missing", "emp-2")


# ---- reopen ------------------------------------------------------------------


async def test_reopen_completed_task(recovery, make_task, task_repo, admin, clock) -> None:
    make_task(status=TaskStatus.COMPLETED, closed_at=clock.now - timedelta(days=1))

    task = await recovery.reopen(admin, "task-1", "  Totals do not match the ledger ")

    assert task.status == TaskStatus.REOPENED
    assert task.reopen_reason == "Totals do not match the ledger"
    assert task.reopened_at == clock.now
    assert task.reopen_due_at == clock.now + timedelta(days=3)
    assert task.reopen_sla_status == ReopenSlaStatus.PENDING
    assert task.closed_at is None
    assert task_repo.rows["task-1"].activity_timeline[-1].action == ActivityAction.TASK_REOPENED


async def test_reopen_requires_reason(recovery, make_task, admin) -> None:
    make_task(status=TaskStatus.COMPLETED)
    with pytest.raises(ValidationException) as exc_info:
        await recovery.reopen(admin, "task-1", "   ")
    assert exc_info.value.details["field"] == "reason"


async def test_reopen_only_completed(recovery, task, admin) -> None:
    with pytest.raises(InvalidStateTransitionException):
        await recovery.reopen(admin, "task-1", "Redo the intro")


async def test_reopen_is_admin_only(recovery, make_task, employee) -> None:
    make_task(status=TaskStatus.COMPLETED)
    with pytest.raises(AuthorizationException):
        await recovery.reopen(employee, "task-1", "Redo the intro")


async def test_mark_reopen_viewed_is_idempotent(
    recovery, make_task, task_repo, admin, employee, clock
) -> None:
    make_task(status=TaskStatus.COMPLETED)
    await recovery.reopen(admin, "task-1", "Redo the intro")
    clock.advance(hours=2)
    first = await recovery.mark_reopen_viewed(employee, "task-1")
    clock.advance(hours=2)
    second = await recovery.mark_reopen_viewed(employee, "task-1")

    assert first.reopen_viewed_at == second.reopen_viewed_at
    assert second.reopen_sla_status == ReopenSlaStatus.VIEWED
    actions = [e.action for e in task_repo.rows["task-1"].activity_timeline]
    assert actions.count(ActivityAction.REOPEN_VIEWED) == 1


async def test_mark_reopen_viewed_needs_assignee_and_reopened(
    recovery, make_task, admin, employee, other_employee
) -> None:
    make_task(status=TaskStatus.COMPLETED)
    with pytest.raises(InvalidStateTransitionException):
        await recovery.mark_reopen_viewed(employee, "task-1")
    await recovery.reopen(admin, "task-1", "Redo the intro")
    with pytest.raises(AuthorizationException):
        await recovery.mark_reopen_viewed(other_employee, "task-1")


# ---- reads -------------------------------------------------------------------


async def test_task_detail_latest_request_and_reopen_sla(
    recovery, workflow, make_task, admin, employee, clock
) -> None:
    make_task(status=TaskStatus.COMPLETED)
    first = await workflow.create_request(
        admin,
        CreateModificationRequestCommand(
            task_id="task-1",
            request_type=RequestType.EDIT,
            reason="Appendix title is wrong",
            sla_hours=1,
            proposed_changes={"title": "Quarterly report (final)"},
        ),
    )
    clock.advance(hours=2)
    second = await workflow.create_request(
        admin,
        CreateModificationRequestCommand(
            task_id="task-1",
            request_type=RequestType.EDIT,
            reason="Appendix title is still wrong",
            proposed_changes={"title": "Quarterly report v2"},
        ),
    )
    await recovery.reopen(admin, "task-1", "Totals do not match")
    clock.advance(days=2, hours=13)

    detail = await recovery.get_task_detail(employee, "task-1")

    assert [v.request.id for v in detail.requests] == [first.request.id, second.request.id]
    assert detail.requests[0].effective_status == RequestStatus.EXPIRED
    assert detail.latest_request.request.id == second.request.id
    assert detail.reopen_sla.level == SlaLevel.WARNING


async def test_task_detail_without_requests(recovery, task, admin) -> None:
    detail = await recovery.get_task_detail(admin, "task-1")
    assert detail.requests == []
    assert detail.latest_request is None
    assert detail.reopen_sla is None


async def test_task_detail_hidden_from_other_employees(recovery, task, other_employee) -> None:
    with pytest.raises(AuthorizationException):
        await recovery.get_task_detail(other_employee, "task-1")


async def test_list_active_employees(recovery, admin, employee) -> None:
    active = await recovery.list_active_employees(admin)
    assert [e.id for e in active] == ["emp-1", "emp-2"]
    with pytest.raises(AuthorizationException):
        await recovery.list_active_employees(employee)
