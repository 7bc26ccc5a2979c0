"""Modification request API: queue, detail, discussion, decisions, execution."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from taskdesk.api.v1.dependencies import (
    get_authorization_service,
    get_current_actor,
    get_expire_overdue_use_case,
    get_queue_service,
    get_workflow_service,
    get_workflow_service_for_write,
)
from taskdesk.application.dtos.modification_request import (
    ExecuteModificationCommand,
    ModificationQueueFilters,
)
from taskdesk.application.services.authorization_service import AuthorizationService
from taskdesk.application.use_cases.modifications import (
    ExpireOverdueRequestsUseCase,
    ModificationQueueService,
    ModificationWorkflowService,
)
from taskdesk.core.config import get_settings
from taskdesk.core.limiter import limit_sweep, limit_writes
from taskdesk.domain.enums import RequestOrigin
from taskdesk.domain.value_objects.core import Actor
from taskdesk.schemas.modification_request import (
    ApproveRequest,
    ExecuteRequest,
    ExpirySweepResponse,
    MessageCreate,
    MessageResponse,
    ModificationQueueResponse,
    ModificationRequestResponse,
    RejectRequest,
    RespondRequest,
)
from taskdesk.schemas.task import ExecutionResponse, TaskResponse

router = APIRouter()


@router.get("", response_model=ModificationQueueResponse)
async def list_modification_requests(
    actor: Annotated[Actor, Depends(get_current_actor)],
    service: Annotated[ModificationQueueService, Depends(get_queue_service)],
    status: str | None = Query(None, description="pending (pending+approved) or a request status"),
    origin: RequestOrigin | None = Query(None),
    search: str | None = Query(None, max_length=200),
    sort: str = Query("urgency", description="urgency, oldest or recent"),
    skip: int = Query(0, ge=0),
    limit: int | None = Query(None, ge=1),
):
    """Queue of requests with effective status and summary counts.

    Admins see every request; employees see requests on their own tasks.
    """
    page = await service.list_requests(
        actor,
        ModificationQueueFilters(
            status=status,
            origin=origin,
            search=search,
            sort=sort,
            skip=skip,
            limit=limit or get_settings().queue_default_limit,
        ),
    )
    return ModificationQueueResponse.from_page(page)


@router.post("/expire", response_model=ExpirySweepResponse)
@limit_sweep
async def expire_overdue_requests(
    request: Request,
    actor: Annotated[Actor, Depends(get_current_actor)],
    authorization: Annotated[AuthorizationService, Depends(get_authorization_service)],
    use_case: Annotated[ExpireOverdueRequestsUseCase, Depends(get_expire_overdue_use_case)],
):
    """Persist expiry for overdue pending/approved requests (admin; also run by cron)."""
    authorization.require_admin(actor, "modification_request", "expire")
    result = await use_case.run()
    return ExpirySweepResponse.from_result(result)


@router.get("/{request_id}", response_model=ModificationRequestResponse)
async def get_modification_request(
    request_id: str,
    actor: Annotated[Actor, Depends(get_current_actor)],
    service: Annotated[ModificationWorkflowService, Depends(get_workflow_service)],
):
    view = await service.get_request(actor, request_id)
    return ModificationRequestResponse.from_view(view)


@router.post("/{request_id}/viewed", response_model=ModificationRequestResponse)
@limit_writes
async def mark_request_viewed(
    request: Request,
    request_id: str,
    actor: Annotated[Actor, Depends(get_current_actor)],
    service: Annotated[ModificationWorkflowService, Depends(get_workflow_service_for_write)],
):
    """Assignee opened an admin-initiated request (first view only is recorded)."""
    view = await service.mark_viewed(actor, request_id)
    return ModificationRequestResponse.from_view(view)


@router.post(
    "/{request_id}/messages",
    response_model=MessageResponse,
    status_code=201,
)
@limit_writes
async def post_message(
    request: Request,
    request_id: str,
    body: MessageCreate,
    actor: Annotated[Actor, Depends(get_current_actor)],
    service: Annotated[ModificationWorkflowService, Depends(get_workflow_service_for_write)],
):
    """Append to the request's discussion thread."""
    message = await service.post_message(actor, request_id, body.text)
    return MessageResponse.from_entity(message)


@router.post("/{request_id}/respond", response_model=ModificationRequestResponse)
@limit_writes
async def respond_to_request(
    request: Request,
    request_id: str,
    body: RespondRequest,
    actor: Annotated[Actor, Depends(get_current_actor)],
    service: Annotated[ModificationWorkflowService, Depends(get_workflow_service_for_write)],
):
    """Assignee approves or rejects an admin-initiated request before it expires."""
    view = await service.respond(actor, request_id, body.decision, body.note)
    return ModificationRequestResponse.from_view(view)


@router.post("/{request_id}/approve", response_model=ModificationRequestResponse)
@limit_writes
async def approve_employee_request(
    request: Request,
    request_id: str,
    body: ApproveRequest,
    actor: Annotated[Actor, Depends(get_current_actor)],
    service: Annotated[ModificationWorkflowService, Depends(get_workflow_service_for_write)],
):
    view = await service.approve_employee_request(actor, request_id, body.admin_note)
    return ModificationRequestResponse.from_view(view)


@router.post("/{request_id}/reject", response_model=ModificationRequestResponse)
@limit_writes
async def reject_employee_request(
    request: Request,
    request_id: str,
    body: RejectRequest,
    actor: Annotated[Actor, Depends(get_current_actor)],
    service: Annotated[ModificationWorkflowService, Depends(get_workflow_service_for_write)],
):
    view = await service.reject_employee_request(actor, request_id, body.reason)
    return ModificationRequestResponse.from_view(view)


@router.post("/{request_id}/execute", response_model=ExecutionResponse)
@limit_writes
async def execute_request(
    request: Request,
    request_id: str,
    body: ExecuteRequest,
    actor: Annotated[Actor, Depends(get_current_actor)],
    service: Annotated[ModificationWorkflowService, Depends(get_workflow_service_for_write)],
):
    """Apply an approved request to its task (admin; exactly once)."""
    result = await service.execute(
        actor,
        ExecuteModificationCommand(
            request_id=request_id,
            admin_note=body.admin_note,
            final_proposed_changes=body.final_proposed_changes,
            final_requested_extension=body.final_requested_extension,
        ),
    )
    return ExecutionResponse(
        task=TaskResponse.from_entity(result.task),
        request=ModificationRequestResponse.from_view(result.request),
    )
