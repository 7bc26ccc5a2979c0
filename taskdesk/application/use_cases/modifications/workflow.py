"""Modification request workflow: create, view, discuss, decide, execute.

Each public method is one operation of the negotiation. It reads the clock
once, takes the per-task lock, loads state through the repositories, applies
the domain transition, and saves. Repositories raise on lost version checks,
so a concurrent approve/execute pair cannot both commit.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime

from taskdesk.application.dtos.modification_request import (
    CreateModificationRequestCommand,
    ExecuteModificationCommand,
    ExecutionResult,
    ModificationRequestView,
)
from taskdesk.application.interfaces.repositories import (
    IModificationRequestRepository,
    ITaskRepository,
)
from taskdesk.application.interfaces.services import IClock, IKeyedLock
from taskdesk.application.services.authorization_service import AuthorizationService
from taskdesk.domain.entities.modification_request import (
    MessageEntity,
    ModificationRequestEntity,
)
from taskdesk.domain.entities.task import TaskEntity
from taskdesk.domain.enums import (
    ActivityAction,
    RequestOrigin,
    RequestType,
    ResponseDecision,
)
from taskdesk.domain.exceptions import (
    InvalidStateTransitionException,
    ResourceNotFoundException,
    ValidationException,
)
from taskdesk.domain.value_objects.core import (
    SYSTEM_ACTOR,
    Actor,
    ProposedChanges,
    WorkflowPolicy,
    parse_date,
    require_text,
)
from taskdesk.shared.telemetry.logging import get_logger
from taskdesk.shared.telemetry.tracing import add_span_attributes, traced
from taskdesk.shared.utils.datetime import utc_now
from taskdesk.shared.utils.generators import generate_cuid

logger = get_logger(__name__)

_EXPIRED_ACTION = {
    RequestOrigin.ADMIN_INITIATED: ActivityAction.MODIFICATION_EXPIRED,
    RequestOrigin.EMPLOYEE_INITIATED: ActivityAction.EMPLOYEE_MODIFICATION_EXPIRED,
}
_MESSAGE_ACTION = {
    RequestOrigin.ADMIN_INITIATED: ActivityAction.MODIFICATION_MESSAGE,
    RequestOrigin.EMPLOYEE_INITIATED: ActivityAction.EMPLOYEE_MODIFICATION_MESSAGE,
}


def build_request_view(
    request: ModificationRequestEntity,
    now: datetime,
    policy: WorkflowPolicy,
    task_title: str | None = None,
) -> ModificationRequestView:
    """Project a request with its effective status and SLA as of ``now``."""
    return ModificationRequestView(
        request=request,
        effective_status=request.effective_status(now),
        sla=request.sla(now, policy),
        task_title=task_title,
    )


def record_expiry(task: TaskEntity, request: ModificationRequestEntity, now: datetime) -> None:
    """Append the timeline entry for a request that just expired."""
    task.record(
        _EXPIRED_ACTION[request.origin],
        SYSTEM_ACTOR,
        now,
        request_id=request.id,
        request_type=request.request_type.value,
        expires_at=request.expires_at.isoformat() if request.expires_at else None,
    )


class ModificationWorkflowService:
    """Drives the admin/employee negotiation over one task's modification requests."""

    def __init__(
        self,
        task_repo: ITaskRepository,
        request_repo: IModificationRequestRepository,
        locks: IKeyedLock,
        policy: WorkflowPolicy | None = None,
        clock: IClock = utc_now,
        authorization: AuthorizationService | None = None,
    ) -> None:
        self.task_repo = task_repo
        self.request_repo = request_repo
        self.locks = locks
        self.policy = policy or WorkflowPolicy()
        self.clock = clock
        self.authorization = authorization or AuthorizationService()

    # -- reads -----------------------------------------------------------

    async def get_request(self, actor: Actor, request_id: str) -> ModificationRequestView:
        now = self.clock()
        request = await self._get_request(request_id)
        task = await self._get_task(request.task_id)
        self.authorization.require_task_access(actor, task, "read")
        return build_request_view(request, now, self.policy, task.title)

    async def list_task_requests(
        self, actor: Actor, task_id: str
    ) -> list[ModificationRequestView]:
        """Request history of a task, oldest first."""
        now = self.clock()
        task = await self._get_task(task_id)
        self.authorization.require_task_access(actor, task, "read")
        requests = await self.request_repo.list_by_task(task_id)
        return [build_request_view(r, now, self.policy, task.title) for r in requests]

    # -- operations ------------------------------------------------------

    @traced("modification.create")
    async def create_request(
        self, actor: Actor, command: CreateModificationRequestCommand
    ) -> ModificationRequestView:
        """Open a request on a task; origin follows the actor's role.

        Stale open requests on the task are expired first, so only requests
        that are open *now* block the new one.
        """
        async with self.locks.hold(command.task_id):
            now = self.clock()
            task = await self.task_repo.get_for_update(command.task_id)
            if task is None:
                raise ResourceNotFoundException("task", command.task_id)
            if actor.is_admin:
                origin = RequestOrigin.ADMIN_INITIATED
            else:
                self.authorization.require_assignee(actor, task, "create_modification_request")
                origin = RequestOrigin.EMPLOYEE_INITIATED

            request = ModificationRequestEntity.create(
                request_id=generate_cuid(),
                task_id=task.id,
                origin=origin,
                request_type=command.request_type,
                reason=command.reason,
                requested_by=actor.user_id,
                now=now,
                policy=self.policy,
                sla_hours=command.sla_hours,
                proposed_changes=command.proposed_changes,
                impact_note=command.impact_note,
                requested_extension=command.requested_extension,
                urgency=command.urgency,
                current_due_date=task.due_date,
            )
            task.ensure_accepts_request(request.request_type)

            for existing in await self.request_repo.list_by_task(task.id):
                if existing.expire(now):
                    await self.request_repo.save(existing)
                    record_expiry(task, existing, now)
                elif existing.is_open(now):
                    raise InvalidStateTransitionException(
                        "Task already has an open modification request",
                        current_status=existing.effective_status(now).value,
                        action="create",
                    )

            request = await self.request_repo.create(request)
            add_span_attributes(
                task_id=task.id,
                request_id=request.id,
                origin=origin.value,
                request_type=request.request_type.value,
            )
            action = (
                ActivityAction.MODIFICATION_REQUESTED
                if origin == RequestOrigin.ADMIN_INITIATED
                else ActivityAction.EMPLOYEE_MODIFICATION_REQUESTED
            )
            task.record(
                action,
                actor,
                now,
                request_id=request.id,
                request_type=request.request_type.value,
                reason=request.reason,
                expires_at=request.expires_at.isoformat() if request.expires_at else None,
            )
            await self.task_repo.save(task)
            logger.info(
                "Modification request %s opened on task %s (%s %s) by %s",
                request.id,
                task.id,
                origin.value,
                request.request_type.value,
                actor.user_id,
            )
            return build_request_view(request, now, self.policy, task.title)

    @traced("modification.mark_viewed")
    async def mark_viewed(self, actor: Actor, request_id: str) -> ModificationRequestView:
        """Employee opens an admin-initiated request; repeat calls are no-ops."""
        async with self._locked_request(request_id) as (request, task):
            now = self.clock()
            self.authorization.require_assignee(actor, task, "view_modification_request")
            if request.mark_viewed(now, actor):
                task.record(
                    ActivityAction.MODIFICATION_VIEWED, actor, now, request_id=request.id
                )
                await self.request_repo.save(request)
                await self.task_repo.save(task)
            return build_request_view(request, now, self.policy, task.title)

    @traced("modification.post_message")
    async def post_message(
        self, actor: Actor, request_id: str, text: str | None
    ) -> MessageEntity:
        async with self._locked_request(request_id) as (request, task):
            now = self.clock()
            self.authorization.require_task_access(actor, task, "message")
            message = request.add_message(generate_cuid(), text, now, actor)
            task.record(
                _MESSAGE_ACTION[request.origin],
                actor,
                now,
                request_id=request.id,
                message_id=message.id,
            )
            await self.request_repo.save(request)
            await self.task_repo.save(task)
            return message

    @traced("modification.respond")
    async def respond(
        self,
        actor: Actor,
        request_id: str,
        decision: ResponseDecision | str,
        note: str | None,
    ) -> ModificationRequestView:
        """Employee approves or rejects an admin-initiated request.

        The deadline is re-checked against this operation's clock reading, so
        a response arriving after ``expires_at`` fails even if the stored
        status still says pending.
        """
        decision = _parse_decision(decision)
        async with self._locked_request(request_id) as (request, task):
            now = self.clock()
            self.authorization.require_assignee(actor, task, "respond")
            request.respond(decision, note, now, actor)
            action = (
                ActivityAction.MODIFICATION_APPROVED
                if decision == ResponseDecision.APPROVED
                else ActivityAction.MODIFICATION_REJECTED
            )
            task.record(action, actor, now, request_id=request.id, note=request.response_note)
            await self.request_repo.save(request)
            await self.task_repo.save(task)
            logger.info(
                "Modification request %s %s by employee %s",
                request.id,
                request.status.value,
                actor.user_id,
            )
            return build_request_view(request, now, self.policy, task.title)

    @traced("modification.approve")
    async def approve_employee_request(
        self, actor: Actor, request_id: str, admin_note: str | None
    ) -> ModificationRequestView:
        self.authorization.require_admin(actor, "modification_request", "approve")
        async with self._locked_request(request_id) as (request, task):
            now = self.clock()
            request.approve(admin_note, now, actor)
            task.record(
                ActivityAction.MODIFICATION_APPROVED,
                actor,
                now,
                request_id=request.id,
                note=request.admin_note,
            )
            await self.request_repo.save(request)
            await self.task_repo.save(task)
            logger.info("Employee request %s approved by %s", request.id, actor.user_id)
            return build_request_view(request, now, self.policy, task.title)

    @traced("modification.reject")
    async def reject_employee_request(
        self, actor: Actor, request_id: str, reason: str | None
    ) -> ModificationRequestView:
        self.authorization.require_admin(actor, "modification_request", "reject")
        async with self._locked_request(request_id) as (request, task):
            now = self.clock()
            request.reject(reason, now, actor)
            task.record(
                ActivityAction.MODIFICATION_REJECTED,
                actor,
                now,
                request_id=request.id,
                reason=request.rejection_reason,
            )
            await self.request_repo.save(request)
            await self.task_repo.save(task)
            logger.info("Employee request %s rejected by %s", request.id, actor.user_id)
            return build_request_view(request, now, self.policy, task.title)

    @traced("modification.execute")
    async def execute(
        self, actor: Actor, command: ExecuteModificationCommand
    ) -> ExecutionResult:
        """Apply an approved request to its task, exactly once.

        The admin may adjust the proposal (``final_proposed_changes`` for
        edits, ``final_requested_extension`` for extensions) before it is
        applied; the diff and whether it was adjusted are kept on the request.
        """
        self.authorization.require_admin(actor, "modification_request", "execute")
        async with self._locked_request(command.request_id) as (request, task):
            now = self.clock()
            request.ensure_executable(now)
            note = require_text(command.admin_note, "admin_note", label="Admin note")
            if task.is_deleted:
                raise InvalidStateTransitionException(
                    "Task has been deleted", current_status="deleted", action="execute"
                )

            if request.request_type == RequestType.EDIT:
                applied, adjusted = self._apply_edit(task, request, command, note, now, actor)
            elif request.request_type == RequestType.DELETE:
                task.soft_delete(now, actor)
                applied = {"deleted_at": {"old": None, "new": now.isoformat()}}
                adjusted = False
                task.record(
                    ActivityAction.TASK_DELETED,
                    actor,
                    now,
                    request_id=request.id,
                    reason=request.reason,
                    impact_note=request.impact_note,
                )
            else:
                applied, adjusted = self._apply_extension(task, request, command, note, now, actor)

            request.mark_executed(now, actor, note, applied, adjusted)
            await self.request_repo.save(request)
            await self.task_repo.save(task)
            logger.info(
                "Modification request %s executed on task %s by %s (adjusted=%s)",
                request.id,
                task.id,
                actor.user_id,
                adjusted,
            )
            return ExecutionResult(
                task=task,
                request=build_request_view(request, now, self.policy, task.title),
            )

    # -- helpers ---------------------------------------------------------

    def _apply_edit(
        self,
        task: TaskEntity,
        request: ModificationRequestEntity,
        command: ExecuteModificationCommand,
        note: str,
        now: datetime,
        actor: Actor,
    ) -> tuple[dict, bool]:
        proposed = request.proposed_changes or ProposedChanges()
        if command.final_proposed_changes is not None:
            changes = ProposedChanges.from_mapping(command.final_proposed_changes)
        else:
            changes = proposed
        if changes.is_empty():
            raise ValidationException(
                "No changes to apply; supply final proposed changes",
                field="final_proposed_changes",
            )
        adjusted = changes != proposed
        diff = task.apply_changes(changes)
        task.record(
            ActivityAction.TASK_EDITED,
            actor,
            now,
            request_id=request.id,
            changes=diff,
            approval_note=note,
            admin_adjusted=adjusted,
        )
        return diff, adjusted

    def _apply_extension(
        self,
        task: TaskEntity,
        request: ModificationRequestEntity,
        command: ExecuteModificationCommand,
        note: str,
        now: datetime,
        actor: Actor,
    ) -> tuple[dict, bool]:
        if command.final_requested_extension is not None:
            new_due = parse_date(command.final_requested_extension, "final_requested_extension")
        elif request.requested_extension is not None:
            new_due = request.requested_extension
        else:
            raise ValidationException(
                "Extension request has no date to apply", field="final_requested_extension"
            )
        adjusted = new_due != request.requested_extension
        diff = task.extend_due_date(new_due)
        task.record(
            ActivityAction.EXTENSION_APPROVED,
            actor,
            now,
            request_id=request.id,
            changes=diff,
            approval_note=note,
            admin_adjusted=adjusted,
        )
        return diff, adjusted

    async def _get_request(self, request_id: str) -> ModificationRequestEntity:
        request = await self.request_repo.get_by_id(request_id)
        if request is None:
            raise ResourceNotFoundException("modification_request", request_id)
        return request

    async def _get_task(self, task_id: str) -> TaskEntity:
        task = await self.task_repo.get_by_id(task_id)
        if task is None:
            raise ResourceNotFoundException("task", task_id)
        return task

    @asynccontextmanager
    async def _locked_request(
        self, request_id: str
    ) -> AsyncIterator[tuple[ModificationRequestEntity, TaskEntity]]:
        """Hold the task lock and yield fresh copies of the request and its task."""
        task_id = (await self._get_request(request_id)).task_id
        async with self.locks.hold(task_id):
            request = await self._get_request(request_id)
            task = await self.task_repo.get_for_update(task_id)
            if task is None:
                raise ResourceNotFoundException("task", task_id)
            yield request, task


def _parse_decision(decision: ResponseDecision | str) -> ResponseDecision:
    try:
        return ResponseDecision(decision)
    except ValueError:
        raise ValidationException(
            f"decision must be one of {ResponseDecision.values()}", field="decision"
        ) from None
