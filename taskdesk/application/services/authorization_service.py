"""Authorization service: role and ownership checks for workflow operations."""

from __future__ import annotations

from taskdesk.domain.entities.task import TaskEntity
from taskdesk.domain.exceptions import AuthorizationException
from taskdesk.domain.value_objects.core import Actor


class AuthorizationService:
    """Centralized actor checks.

    Admins act on every task. Employees act only on tasks assigned to them,
    and only through the employee side of the negotiation.
    """

    def can_access_task(self, actor: Actor, task: TaskEntity) -> bool:
        """Return True if the actor may read the task and its requests."""
        return actor.is_admin or task.is_assignee(actor)

    def require_admin(self, actor: Actor, resource: str, action: str) -> None:
        """Raise AuthorizationException unless the actor is an admin."""
        if not actor.is_admin:
            raise AuthorizationException(resource=resource, action=action)

    def require_assignee(self, actor: Actor, task: TaskEntity, action: str) -> None:
        """Raise AuthorizationException unless the actor is the task's employee."""
        if not task.is_assignee(actor):
            raise AuthorizationException(resource="task", action=action)

    def require_task_access(self, actor: Actor, task: TaskEntity, action: str) -> None:
        if not self.can_access_task(actor, task):
            raise AuthorizationException(resource="task", action=action)
