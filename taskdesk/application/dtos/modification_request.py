"""DTOs for modification request use cases (no dependency on ORM)."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any

from taskdesk.domain.entities.modification_request import ModificationRequestEntity
from taskdesk.domain.entities.task import TaskEntity
from taskdesk.domain.enums import (
    RequestOrigin,
    RequestStatus,
    RequestType,
    RequestUrgency,
)
from taskdesk.domain.sla import SlaMeta


@dataclass(frozen=True)
class CreateModificationRequestCommand:
    """Input for opening a request; origin comes from the acting party."""

    task_id: str
    request_type: RequestType
    reason: str | None
    sla_hours: int | None = None
    proposed_changes: dict[str, Any] | None = None
    impact_note: str | None = None
    requested_extension: date | str | None = None
    urgency: RequestUrgency = RequestUrgency.NORMAL


@dataclass(frozen=True)
class ExecuteModificationCommand:
    """Admin execution input; ``final_*`` override what was proposed."""

    request_id: str
    admin_note: str | None
    final_proposed_changes: dict[str, Any] | None = None
    final_requested_extension: date | str | None = None


@dataclass(frozen=True)
class ModificationRequestView:
    """Request read-model with the effective status and SLA at read time."""

    request: ModificationRequestEntity
    effective_status: RequestStatus
    sla: SlaMeta | None
    task_title: str | None = None


@dataclass(frozen=True)
class ExecutionResult:
    task: TaskEntity
    request: ModificationRequestView


@dataclass(frozen=True)
class QueueRow:
    """Repository row for the queue: a request plus the task fields it is listed with."""

    request: ModificationRequestEntity
    task_title: str
    assigned_to: str | None


@dataclass(frozen=True)
class ModificationQueueFilters:
    """Queue filters. ``status='pending'`` covers pending and approved (still open)."""

    status: str | None = None
    origin: RequestOrigin | None = None
    search: str | None = None
    sort: str = "urgency"
    skip: int = 0
    limit: int = 50


@dataclass(frozen=True)
class ModificationQueueSummary:
    total: int = 0
    pending: int = 0
    approved: int = 0
    rejected: int = 0
    expired: int = 0
    executed: int = 0
    counter_proposed: int = 0
    admin_initiated: int = 0
    employee_initiated: int = 0


@dataclass(frozen=True)
class ModificationQueuePage:
    items: list[ModificationRequestView]
    total: int
    skip: int
    limit: int
    summary: ModificationQueueSummary = field(default_factory=ModificationQueueSummary)


@dataclass(frozen=True)
class ExpirySweepResult:
    """Outcome of one expiry sweep."""

    expired_request_ids: list[str]

    @property
    def expired_count(self) -> int:
        return len(self.expired_request_ids)
