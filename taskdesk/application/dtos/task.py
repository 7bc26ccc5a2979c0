"""DTOs for task reads (no dependency on ORM)."""

from __future__ import annotations

from dataclasses import dataclass

from taskdesk.application.dtos.modification_request import ModificationRequestView
from taskdesk.domain.entities.task import TaskEntity
from taskdesk.domain.sla import SlaMeta


@dataclass(frozen=True)
class TaskDetail:
    """Task with its request history, active request badge and reopen SLA."""

    task: TaskEntity
    requests: list[ModificationRequestView]
    latest_request: ModificationRequestView | None
    reopen_sla: SlaMeta | None
