"""Persistence repositories. Re-exports for dependency injection."""

from taskdesk.infrastructure.persistence.repositories.employee_repo import EmployeeRepository
from taskdesk.infrastructure.persistence.repositories.modification_request_repo import (
    ModificationRequestRepository,
)
from taskdesk.infrastructure.persistence.repositories.task_repo import TaskRepository

__all__ = [
    "EmployeeRepository",
    "ModificationRequestRepository",
    "TaskRepository",
]
