"""Task API: detail, reassign/reopen sub-flows, and opening modification requests."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from taskdesk.api.v1.dependencies import (
    get_current_actor,
    get_task_service,
    get_task_service_for_write,
    get_workflow_service,
    get_workflow_service_for_write,
)
from taskdesk.application.dtos.modification_request import CreateModificationRequestCommand
from taskdesk.application.use_cases.modifications import ModificationWorkflowService
from taskdesk.application.use_cases.tasks import TaskRecoveryService
from taskdesk.core.limiter import limit_writes
from taskdesk.domain.value_objects.core import Actor
from taskdesk.schemas.modification_request import (
    ModificationRequestCreate,
    ModificationRequestResponse,
)
from taskdesk.schemas.task import (
    ReassignRequest,
    ReopenRequest,
    TaskDetailResponse,
    TaskResponse,
)

router = APIRouter()


@router.get("/{task_id}", response_model=TaskDetailResponse)
async def get_task(
    task_id: str,
    actor: Annotated[Actor, Depends(get_current_actor)],
    service: Annotated[TaskRecoveryService, Depends(get_task_service)],
):
    """Task with its timeline, request history, active request and reopen SLA."""
    detail = await service.get_task_detail(actor, task_id)
    return TaskDetailResponse.from_detail(detail)


@router.post("/{task_id}/reassign", response_model=TaskResponse)
@limit_writes
async def reassign_task(
    request: Request,
    task_id: str,
    body: ReassignRequest,
    actor: Annotated[Actor, Depends(get_current_actor)],
    service: Annotated[TaskRecoveryService, Depends(get_task_service_for_write)],
):
    """Reassign a withdrawn or assignment-declined task to an active employee."""
    task = await service.reassign(
        actor,
        task_id,
        new_employee_id=body.new_employee_id,
        reason=body.reason,
        handover_notes=body.handover_notes,
        priority=body.priority,
    )
    return TaskResponse.from_entity(task)


@router.post("/{task_id}/reopen", response_model=TaskResponse)
@limit_writes
async def reopen_task(
    request: Request,
    task_id: str,
    body: ReopenRequest,
    actor: Annotated[Actor, Depends(get_current_actor)],
    service: Annotated[TaskRecoveryService, Depends(get_task_service_for_write)],
):
    """Reopen a completed task; the assignee has a fixed window to acknowledge it."""
    task = await service.reopen(actor, task_id, body.reason)
    return TaskResponse.from_entity(task)


@router.post("/{task_id}/reopen/viewed", response_model=TaskResponse)
@limit_writes
async def mark_reopen_viewed(
    request: Request,
    task_id: str,
    actor: Annotated[Actor, Depends(get_current_actor)],
    service: Annotated[TaskRecoveryService, Depends(get_task_service_for_write)],
):
    task = await service.mark_reopen_viewed(actor, task_id)
    return TaskResponse.from_entity(task)


@router.get(
    "/{task_id}/modification-requests",
    response_model=list[ModificationRequestResponse],
)
async def list_task_requests(
    task_id: str,
    actor: Annotated[Actor, Depends(get_current_actor)],
    service: Annotated[ModificationWorkflowService, Depends(get_workflow_service)],
):
    """Request history of the task, oldest first."""
    views = await service.list_task_requests(actor, task_id)
    return [ModificationRequestResponse.from_view(v) for v in views]


@router.post(
    "/{task_id}/modification-requests",
    response_model=ModificationRequestResponse,
    status_code=201,
)
@limit_writes
async def create_modification_request(
    request: Request,
    task_id: str,
    body: ModificationRequestCreate,
    actor: Annotated[Actor, Depends(get_current_actor)],
    service: Annotated[ModificationWorkflowService, Depends(get_workflow_service_for_write)],
):
    """Open a request on the task.

    Admins open edit/delete requests for the assignee to answer; the assignee
    opens edit/delete/extension requests for an admin to decide. A task has
    at most one open request at a time (409 otherwise).
    """
    view = await service.create_request(
        actor,
        CreateModificationRequestCommand(
            task_id=task_id,
            request_type=body.request_type,
            reason=body.reason,
            sla_hours=body.sla_hours,
            proposed_changes=body.proposed_changes,
            impact_note=body.impact_note,
            requested_extension=body.requested_extension,
            urgency=body.urgency,
        ),
    )
    return ModificationRequestResponse.from_view(view)
