"""Application DTOs (no ORM dependency)."""

from taskdesk.application.dtos.modification_request import (
    CreateModificationRequestCommand,
    ExecuteModificationCommand,
    ExecutionResult,
    ExpirySweepResult,
    ModificationQueueFilters,
    ModificationQueuePage,
    ModificationQueueSummary,
    ModificationRequestView,
    QueueRow,
)
from taskdesk.application.dtos.task import TaskDetail

__all__ = [
    "CreateModificationRequestCommand",
    "ExecuteModificationCommand",
    "ExecutionResult",
    "ExpirySweepResult",
    "ModificationQueueFilters",
    "ModificationQueuePage",
    "ModificationQueueSummary",
    "ModificationRequestView",
    "QueueRow",
    "TaskDetail",
]
