"""Task API schemas: detail read and the reassign/reopen bodies."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from taskdesk.application.dtos.task import TaskDetail
from taskdesk.domain.entities.task import TaskEntity
from taskdesk.domain.enums import (
    ActivityAction,
    ActorRole,
    DeclineType,
    ReopenSlaStatus,
    TaskPriority,
    TaskStatus,
)
from taskdesk.schemas.modification_request import ModificationRequestResponse, SlaResponse


class ActivityEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    action: ActivityAction
    actor_id: str
    actor_role: ActorRole
    occurred_at: datetime
    details: dict[str, Any]


class TaskResponse(BaseModel):
    """Task with its activity timeline."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    description: str | None
    category: str | None
    priority: TaskPriority
    due_date: date | None
    status: TaskStatus
    assigned_to: str | None
    decline_type: DeclineType | None
    closed_at: datetime | None
    deleted_at: datetime | None
    reassignment_reason: str | None
    handover_notes: str | None
    reassigned_at: datetime | None
    reopen_reason: str | None
    reopen_due_at: datetime | None
    reopen_viewed_at: datetime | None
    reopen_sla_status: ReopenSlaStatus | None
    version: int
    activity_timeline: list[ActivityEntryResponse]

    @classmethod
    def from_entity(cls, task: TaskEntity) -> TaskResponse:
        return cls.model_validate(task)


class TaskDetailResponse(BaseModel):
    """Task plus request history, active request badge and reopen SLA."""

    task: TaskResponse
    requests: list[ModificationRequestResponse]
    latest_request: ModificationRequestResponse | None
    reopen_sla: SlaResponse | None

    @classmethod
    def from_detail(cls, detail: TaskDetail) -> TaskDetailResponse:
        return cls(
            task=TaskResponse.from_entity(detail.task),
            requests=[ModificationRequestResponse.from_view(v) for v in detail.requests],
            latest_request=(
                ModificationRequestResponse.from_view(detail.latest_request)
                if detail.latest_request
                else None
            ),
            reopen_sla=SlaResponse.from_meta(detail.reopen_sla),
        )


class ReassignRequest(BaseModel):
    """Request body for POST /tasks/{task_id}/reassign."""

    new_employee_id: str = Field(..., min_length=1)
    reason: str | None = Field(default=None, max_length=2000)
    handover_notes: str | None = Field(default=None, max_length=5000)
    priority: str | None = None


class ReopenRequest(BaseModel):
    """Request body for POST /tasks/{task_id}/reopen."""

    reason: str | None = Field(default=None, max_length=2000)


class ExecutionResponse(BaseModel):
    """Executed request together with the task it changed."""

    task: TaskResponse
    request: ModificationRequestResponse
