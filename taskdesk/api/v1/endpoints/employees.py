"""Employee directory API: reassignment targets."""

from typing import Annotated

from fastapi import APIRouter, Depends

from taskdesk.api.v1.dependencies import get_current_actor, get_task_service
from taskdesk.application.use_cases.tasks import TaskRecoveryService
from taskdesk.domain.value_objects.core import Actor
from taskdesk.schemas.employee import EmployeeResponse

router = APIRouter()


@router.get("", response_model=list[EmployeeResponse])
async def list_active_employees(
    actor: Annotated[Actor, Depends(get_current_actor)],
    service: Annotated[TaskRecoveryService, Depends(get_task_service)],
):
    """Active employees a task can be reassigned to (admin only)."""
    employees = await service.list_active_employees(actor)
    return [EmployeeResponse.model_validate(e) for e in employees]
