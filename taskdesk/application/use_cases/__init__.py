"""Application use cases: one entry point per workflow."""

from taskdesk.application.use_cases.modifications import (
    ExpireOverdueRequestsUseCase,
    ModificationQueueService,
    ModificationWorkflowService,
)
from taskdesk.application.use_cases.tasks import TaskRecoveryService

__all__ = [
    "ExpireOverdueRequestsUseCase",
    "ModificationQueueService",
    "ModificationWorkflowService",
    "TaskRecoveryService",
]
