"""Persistence models: ORM entities and mixins."""

from taskdesk.infrastructure.persistence.models.employee import Employee
from taskdesk.infrastructure.persistence.models.mixins import (
    CuidMixin,
    SoftDeleteMixin,
    TimestampMixin,
    VersionedMixin,
)
from taskdesk.infrastructure.persistence.models.modification_request import (
    ModificationRequest,
    ModificationRequestMessage,
)
from taskdesk.infrastructure.persistence.models.task import Task, TaskActivity

__all__ = [
    "CuidMixin",
    "Employee",
    "ModificationRequest",
    "ModificationRequestMessage",
    "SoftDeleteMixin",
    "Task",
    "TaskActivity",
    "TimestampMixin",
    "VersionedMixin",
]
