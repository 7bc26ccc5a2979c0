"""Modification request use cases."""

from taskdesk.application.use_cases.modifications.expire_overdue import (
    ExpireOverdueRequestsUseCase,
)
from taskdesk.application.use_cases.modifications.queue import ModificationQueueService
from taskdesk.application.use_cases.modifications.workflow import (
    ModificationWorkflowService,
    build_request_view,
)

__all__ = [
    "ExpireOverdueRequestsUseCase",
    "ModificationQueueService",
    "ModificationWorkflowService",
    "build_request_view",
]
