"""Task reads and the recovery sub-flows: reassign and reopen.

Unlike modification requests these act on the task status directly; the
transition rules live in ``taskdesk.domain.workflow.state_machine``.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable

from taskdesk.application.dtos.modification_request import ModificationRequestView
from taskdesk.application.dtos.task import TaskDetail
from taskdesk.application.interfaces.repositories import (
    IEmployeeDirectory,
    IModificationRequestRepository,
    ITaskRepository,
)
from taskdesk.application.interfaces.services import IClock, IKeyedLock
from taskdesk.application.services.authorization_service import AuthorizationService
from taskdesk.application.use_cases.modifications.workflow import build_request_view
from taskdesk.domain.entities.employee import EmployeeEntity
from taskdesk.domain.entities.task import TaskEntity
from taskdesk.domain.enums import TaskPriority
from taskdesk.domain.exceptions import ResourceNotFoundException, ValidationException
from taskdesk.domain.sla import evaluate
from taskdesk.domain.value_objects.core import Actor, WorkflowPolicy, require_text
from taskdesk.domain.workflow.state_machine import latest_request
from taskdesk.shared.telemetry.logging import get_logger
from taskdesk.shared.telemetry.tracing import traced
from taskdesk.shared.utils.datetime import utc_now

logger = get_logger(__name__)

DEFAULT_REASSIGNMENT_REASON = "Admin reassignment"


class TaskRecoveryService:
    """Reassigns withdrawn/declined tasks and reopens completed ones."""

    def __init__(
        self,
        task_repo: ITaskRepository,
        request_repo: IModificationRequestRepository,
        employee_directory: IEmployeeDirectory,
        locks: IKeyedLock,
        policy: WorkflowPolicy | None = None,
        clock: IClock = utc_now,
        authorization: AuthorizationService | None = None,
    ) -> None:
        self.task_repo = task_repo
        self.request_repo = request_repo
        self.employee_directory = employee_directory
        self.locks = locks
        self.policy = policy or WorkflowPolicy()
        self.clock = clock
        self.authorization = authorization or AuthorizationService()

    async def get_task_detail(self, actor: Actor, task_id: str) -> TaskDetail:
        """Task with request history, active badge and reopen SLA as of now."""
        now = self.clock()
        task = await self._get_task(self.task_repo.get_by_id, task_id)
        self.authorization.require_task_access(actor, task, "read")
        views = [
            build_request_view(r, now, self.policy, task.title)
            for r in await self.request_repo.list_by_task(task_id)
        ]
        return TaskDetail(
            task=task,
            requests=views,
            latest_request=latest_request_view(views),
            reopen_sla=evaluate(now, task.reopen_due_at, self.policy.sla_warning_window),
        )

    async def list_active_employees(self, actor: Actor) -> list[EmployeeEntity]:
        self.authorization.require_admin(actor, "employee", "list")
        return await self.employee_directory.list_active()

    @traced("task.reassign")
    async def reassign(
        self,
        actor: Actor,
        task_id: str,
        new_employee_id: str,
        reason: str | None = None,
        handover_notes: str | None = None,
        priority: TaskPriority | str | None = None,
    ) -> TaskEntity:
        self.authorization.require_admin(actor, "task", "reassign")
        if not new_employee_id:
            raise ValidationException("New employee is required", field="new_employee_id")
        new_priority = _parse_priority(priority)
        async with self.locks.hold(task_id):
            now = self.clock()
            task = await self._get_task(self.task_repo.get_for_update, task_id)
            employee = await self.employee_directory.get_by_id(new_employee_id)
            if employee is None:
                raise ResourceNotFoundException("employee", new_employee_id)
            if not employee.is_active:
                raise ValidationException(
                    "Tasks can only be reassigned to active employees",
                    field="new_employee_id",
                )
            task.reassign(
                employee.id,
                (reason or "").strip() or DEFAULT_REASSIGNMENT_REASON,
                (handover_notes or "").strip() or None,
                now,
                actor,
                priority=new_priority,
            )
            await self.task_repo.save(task)
            logger.info("Task %s reassigned to %s by %s", task.id, employee.id, actor.user_id)
            return task

    @traced("task.reopen")
    async def reopen(self, actor: Actor, task_id: str, reason: str | None) -> TaskEntity:
        self.authorization.require_admin(actor, "task", "reopen")
        text = require_text(reason, "reason", label="Reopen reason")
        async with self.locks.hold(task_id):
            now = self.clock()
            task = await self._get_task(self.task_repo.get_for_update, task_id)
            task.reopen(text, now, actor, self.policy.reopen_sla_days)
            await self.task_repo.save(task)
            logger.info(
                "Task %s reopened by %s, due %s",
                task.id,
                actor.user_id,
                task.reopen_due_at.isoformat() if task.reopen_due_at else None,
            )
            return task

    @traced("task.mark_reopen_viewed")
    async def mark_reopen_viewed(self, actor: Actor, task_id: str) -> TaskEntity:
        """Assignee acknowledges a reopened task; repeat calls are no-ops."""
        async with self.locks.hold(task_id):
            now = self.clock()
            task = await self._get_task(self.task_repo.get_for_update, task_id)
            self.authorization.require_assignee(actor, task, "view_reopen")
            if task.mark_reopen_viewed(now, actor):
                await self.task_repo.save(task)
            return task

    @staticmethod
    async def _get_task(
        loader: Callable[[str], Awaitable[TaskEntity | None]], task_id: str
    ) -> TaskEntity:
        task = await loader(task_id)
        if task is None:
            raise ResourceNotFoundException("task", task_id)
        return task


def latest_request_view(
    views: list[ModificationRequestView],
) -> ModificationRequestView | None:
    """Active badge: the view of the most recently requested request."""
    latest = latest_request(v.request for v in views)
    if latest is None:
        return None
    return next(v for v in views if v.request is latest)


def _parse_priority(priority: TaskPriority | str | None) -> TaskPriority | None:
    if priority is None or priority == "":
        return None
    try:
        return TaskPriority(priority)
    except ValueError:
        raise ValidationException(
            f"priority must be one of {TaskPriority.values()}", field="priority"
        ) from None
