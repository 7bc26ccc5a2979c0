"""Domain entities: tasks, modification requests, employees."""

from taskdesk.domain.entities.employee import EmployeeEntity
from taskdesk.domain.entities.modification_request import (
    MessageEntity,
    ModificationRequestEntity,
)
from taskdesk.domain.entities.task import ActivityEntry, TaskEntity

__all__ = [
    "ActivityEntry",
    "EmployeeEntity",
    "MessageEntity",
    "ModificationRequestEntity",
    "TaskEntity",
]
