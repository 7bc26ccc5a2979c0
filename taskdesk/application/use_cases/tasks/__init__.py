"""Task use cases: detail read, reassign, reopen."""

from taskdesk.application.use_cases.tasks.recovery import TaskRecoveryService

__all__ = ["TaskRecoveryService"]
