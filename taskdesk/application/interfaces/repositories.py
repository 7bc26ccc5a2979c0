"""Repository interfaces (ports) for the application layer.

Protocols define contracts that infrastructure implementations must fulfill.
They speak in domain entities and application DTOs; no infrastructure imports.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from taskdesk.application.dtos.modification_request import QueueRow
    from taskdesk.domain.entities.employee import EmployeeEntity
    from taskdesk.domain.entities.modification_request import ModificationRequestEntity
    from taskdesk.domain.entities.task import TaskEntity
    from taskdesk.domain.enums import RequestOrigin


class ITaskRepository(Protocol):
    """Task store: reads, locked reads, and versioned saves with timeline append."""

    async def get_by_id(self, task_id: str) -> TaskEntity | None:
        """Return task with its activity timeline, including soft-deleted tasks."""

    async def get_for_update(self, task_id: str) -> TaskEntity | None:
        """Like get_by_id but locks the task row until the transaction ends."""

    async def save(self, task: TaskEntity) -> TaskEntity:
        """Persist scalar changes and new timeline entries.

        Raises ConcurrentModificationException when the stored version no
        longer matches ``task.version``. Bumps ``task.version`` on success.
        """


class IModificationRequestRepository(Protocol):
    """Modification request store (requests and their discussion)."""

    async def get_by_id(self, request_id: str) -> ModificationRequestEntity | None:
        """Return request with its discussion in insertion order."""

    async def list_by_task(self, task_id: str) -> list[ModificationRequestEntity]:
        """Return all requests of a task, oldest first."""

    async def create(self, request: ModificationRequestEntity) -> ModificationRequestEntity:
        """Insert a new request.

        Raises InvalidStateTransitionException when the store already holds
        an open request for the task.
        """

    async def save(self, request: ModificationRequestEntity) -> ModificationRequestEntity:
        """Persist changes and new messages with an optimistic version check."""

    async def list_expirable(
        self, now: datetime, limit: int = 500
    ) -> list[ModificationRequestEntity]:
        """Return stored pending/approved requests whose deadline is at or before now."""

    async def list_for_queue(
        self,
        assigned_to: str | None = None,
        origin: RequestOrigin | None = None,
        search: str | None = None,
    ) -> list[QueueRow]:
        """Return requests on non-deleted tasks, optionally scoped to one assignee."""


class IEmployeeDirectory(Protocol):
    """Read-only employee lookup."""

    async def get_by_id(self, employee_id: str) -> EmployeeEntity | None:
        """Return employee or None."""

    async def list_active(self) -> list[EmployeeEntity]:
        """Return active employees ordered by name."""
