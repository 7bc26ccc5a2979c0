"""Task repository: tasks with their activity timeline."""

from __future__ import annotations

from typing import Any

from sqlalchemy import Select, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from taskdesk.domain.entities.task import ActivityEntry, TaskEntity
from taskdesk.domain.enums import (
    ActivityAction,
    ActorRole,
    DeclineType,
    ReopenSlaStatus,
    TaskPriority,
    TaskStatus,
)
from taskdesk.domain.exceptions import ConcurrentModificationException
from taskdesk.infrastructure.persistence.models.task import Task, TaskActivity
from taskdesk.shared.utils.datetime import ensure_utc


def _activity_to_entry(a: TaskActivity) -> ActivityEntry:
    return ActivityEntry(
        id=a.id,
        action=ActivityAction(a.action),
        actor_id=a.actor_id,
        actor_role=ActorRole(a.actor_role),
        occurred_at=ensure_utc(a.occurred_at),
        details=dict(a.details or {}),
    )


def _task_to_entity(t: Task, activities: list[TaskActivity]) -> TaskEntity:
    """Map Task ORM (plus ordered timeline rows) to TaskEntity."""
    return TaskEntity(
        id=t.id,
        title=t.title,
        status=TaskStatus(t.status),
        assigned_to=t.assigned_to,
        description=t.description,
        category=t.category,
        priority=TaskPriority(t.priority),
        due_date=t.due_date,
        decline_type=DeclineType(t.decline_type) if t.decline_type else None,
        decline_reason=t.decline_reason,
        closed_at=ensure_utc(t.closed_at),
        deleted_at=ensure_utc(t.deleted_at),
        deleted_by=t.deleted_by,
        reassignment_reason=t.reassignment_reason,
        handover_notes=t.handover_notes,
        reassigned_at=ensure_utc(t.reassigned_at),
        reassigned_by=t.reassigned_by,
        reopen_reason=t.reopen_reason,
        reopened_at=ensure_utc(t.reopened_at),
        reopened_by=t.reopened_by,
        reopen_due_at=ensure_utc(t.reopen_due_at),
        reopen_viewed_at=ensure_utc(t.reopen_viewed_at),
        reopen_sla_status=ReopenSlaStatus(t.reopen_sla_status) if t.reopen_sla_status else None,
        version=t.version,
        activity_timeline=[_activity_to_entry(a) for a in activities],
        _persisted_activity_count=len(activities),
    )


def _task_values(task: TaskEntity) -> dict[str, Any]:
    """Mutable task columns written on save."""
    return {
        "title": task.title,
        "description": task.description,
        "category": task.category,
        "priority": task.priority.value,
        "due_date": task.due_date,
        "status": task.status.value,
        "assigned_to": task.assigned_to,
        "decline_type": task.decline_type.value if task.decline_type else None,
        "decline_reason": task.decline_reason,
        "closed_at": task.closed_at,
        "deleted_at": task.deleted_at,
        "deleted_by": task.deleted_by,
        "reassignment_reason": task.reassignment_reason,
        "handover_notes": task.handover_notes,
        "reassigned_at": task.reassigned_at,
        "reassigned_by": task.reassigned_by,
        "reopen_reason": task.reopen_reason,
        "reopened_at": task.reopened_at,
        "reopened_by": task.reopened_by,
        "reopen_due_at": task.reopen_due_at,
        "reopen_viewed_at": task.reopen_viewed_at,
        "reopen_sla_status": task.reopen_sla_status.value if task.reopen_sla_status else None,
    }


class TaskRepository:
    """Task repository. Implements ITaskRepository."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get_by_id(self, task_id: str) -> TaskEntity | None:
        return await self._load(select(Task).where(Task.id == task_id))

    async def get_for_update(self, task_id: str) -> TaskEntity | None:
        """Load the task with a row lock held until the transaction ends."""
        return await self._load(select(Task).where(Task.id == task_id).with_for_update())

    async def add(self, task: TaskEntity) -> TaskEntity:
        """Insert a new task (task creation lives outside the workflow engine)."""
        self.db.add(Task(id=task.id, version=task.version, **_task_values(task)))
        await self.db.flush()
        await self._append_activity(task)
        return task

    async def save(self, task: TaskEntity) -> TaskEntity:
        """Write changed columns and new timeline entries under a version check."""
        stmt = (
            update(Task)
            .where(Task.id == task.id, Task.version == task.version)
            .values(**_task_values(task), version=task.version + 1)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        if result.rowcount != 1:
            raise ConcurrentModificationException("task", task.id)
        task.version += 1
        await self._append_activity(task)
        return task

    async def _append_activity(self, task: TaskEntity) -> None:
        start = task._persisted_activity_count
        rows = [
            TaskActivity(
                id=entry.id,
                task_id=task.id,
                position=start + offset,
                action=entry.action.value,
                actor_id=entry.actor_id,
                actor_role=entry.actor_role.value,
                occurred_at=entry.occurred_at,
                details=entry.details,
            )
            for offset, entry in enumerate(task.new_activity())
        ]
        if rows:
            self.db.add_all(rows)
            await self.db.flush()
        task.mark_activity_persisted()

    async def _load(self, stmt: Select) -> TaskEntity | None:
        result = await self.db.execute(stmt)
        orm = result.scalar_one_or_none()
        if orm is None:
            return None
        activities = await self.db.execute(
            select(TaskActivity)
            .where(TaskActivity.task_id == orm.id)
            .order_by(TaskActivity.position)
        )
        return _task_to_entity(orm, list(activities.scalars().all()))
