"""Modification request API schemas."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from taskdesk.application.dtos.modification_request import (
    ExpirySweepResult,
    ModificationQueuePage,
    ModificationRequestView,
)
from taskdesk.domain.entities.modification_request import MessageEntity
from taskdesk.domain.enums import (
    ActorRole,
    RequestOrigin,
    RequestStatus,
    RequestType,
    RequestUrgency,
    SlaLevel,
)
from taskdesk.domain.sla import SlaMeta


class ModificationRequestCreate(BaseModel):
    """Request body for opening a request; origin follows the caller's role.

    Text and range rules (reason length, SLA bounds) are enforced by the
    workflow and reported as 400 VALIDATION_ERROR.
    """

    request_type: RequestType
    reason: str | None = Field(default=None, max_length=2000)
    sla_hours: int | None = None
    proposed_changes: dict[str, Any] | None = None
    impact_note: str | None = Field(default=None, max_length=2000)
    requested_extension: date | None = None
    urgency: RequestUrgency = RequestUrgency.NORMAL


class RespondRequest(BaseModel):
    decision: str
    note: str | None = Field(default=None, max_length=2000)


class ApproveRequest(BaseModel):
    admin_note: str | None = Field(default=None, max_length=2000)


class RejectRequest(BaseModel):
    reason: str | None = Field(default=None, max_length=2000)


class ExecuteRequest(BaseModel):
    """Request body for execution; ``final_*`` replace what was proposed."""

    admin_note: str | None = Field(default=None, max_length=2000)
    final_proposed_changes: dict[str, Any] | None = None
    final_requested_extension: date | None = None


class MessageCreate(BaseModel):
    text: str | None = Field(default=None, max_length=5000)


class MessageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    position: int
    sender_id: str
    sender_role: ActorRole
    text: str
    created_at: datetime

    @classmethod
    def from_entity(cls, message: MessageEntity) -> MessageResponse:
        return cls.model_validate(message)


class SlaResponse(BaseModel):
    remaining_ms: int
    level: SlaLevel

    @classmethod
    def from_meta(cls, meta: SlaMeta | None) -> SlaResponse | None:
        if meta is None:
            return None
        return cls(remaining_ms=meta.remaining_ms, level=meta.level)


class ModificationRequestResponse(BaseModel):
    """Request as stored plus its effective status and SLA at read time."""

    id: str
    task_id: str
    task_title: str | None
    origin: RequestOrigin
    request_type: RequestType
    status: RequestStatus
    effective_status: RequestStatus
    reason: str
    urgency: RequestUrgency
    requested_by: str
    requested_at: datetime
    sla_hours: int | None
    expires_at: datetime | None
    sla: SlaResponse | None
    proposed_changes: dict[str, Any] | None
    impact_note: str | None
    requested_extension: date | None
    employee_viewed_at: datetime | None
    response_note: str | None
    responded_at: datetime | None
    admin_note: str | None
    reviewed_at: datetime | None
    rejection_reason: str | None
    rejected_at: datetime | None
    expired_at: datetime | None
    executed_at: datetime | None
    executed_by: str | None
    applied_changes: dict[str, Any] | None
    admin_adjusted: bool
    discussion: list[MessageResponse]

    @classmethod
    def from_view(cls, view: ModificationRequestView) -> ModificationRequestResponse:
        r = view.request
        return cls(
            id=r.id,
            task_id=r.task_id,
            task_title=view.task_title,
            origin=r.origin,
            request_type=r.request_type,
            status=r.status,
            effective_status=view.effective_status,
            reason=r.reason,
            urgency=r.urgency,
            requested_by=r.requested_by,
            requested_at=r.requested_at,
            sla_hours=r.sla_hours,
            expires_at=r.expires_at,
            sla=SlaResponse.from_meta(view.sla),
            proposed_changes=r.proposed_changes.to_dict() if r.proposed_changes else None,
            impact_note=r.impact_note,
            requested_extension=r.requested_extension,
            employee_viewed_at=r.employee_viewed_at,
            response_note=r.response_note,
            responded_at=r.responded_at,
            admin_note=r.admin_note,
            reviewed_at=r.reviewed_at,
            rejection_reason=r.rejection_reason,
            rejected_at=r.rejected_at,
            expired_at=r.expired_at,
            executed_at=r.executed_at,
            executed_by=r.executed_by,
            applied_changes=r.applied_changes,
            admin_adjusted=r.admin_adjusted,
            discussion=[MessageResponse.from_entity(m) for m in r.discussion],
        )


class QueueSummaryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total: int
    pending: int
    approved: int
    rejected: int
    expired: int
    executed: int
    counter_proposed: int
    admin_initiated: int
    employee_initiated: int


class ModificationQueueResponse(BaseModel):
    items: list[ModificationRequestResponse]
    total: int
    skip: int
    limit: int
    summary: QueueSummaryResponse

    @classmethod
    def from_page(cls, page: ModificationQueuePage) -> ModificationQueueResponse:
        return cls(
            items=[ModificationRequestResponse.from_view(v) for v in page.items],
            total=page.total,
            skip=page.skip,
            limit=page.limit,
            summary=QueueSummaryResponse.model_validate(page.summary),
        )


class ExpirySweepResponse(BaseModel):
    expired_count: int
    expired_request_ids: list[str]

    @classmethod
    def from_result(cls, result: ExpirySweepResult) -> ExpirySweepResponse:
        return cls(
            expired_count=result.expired_count,
            expired_request_ids=result.expired_request_ids,
        )
