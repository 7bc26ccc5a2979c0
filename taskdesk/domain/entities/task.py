"""Task domain entity and its activity timeline.

Represents the task as the workflow engine sees it, independent of
persistence. The timeline is append-only: entries added here are flushed by
the repository on save.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any

from taskdesk.domain.enums import (
    CLOSED_TASK_STATUSES,
    EXTENDABLE_TASK_STATUSES,
    ActivityAction,
    ActorRole,
    DeclineType,
    ReopenSlaStatus,
    RequestType,
    TaskPriority,
    TaskStatus,
)
from taskdesk.domain.exceptions import InvalidStateTransitionException, ValidationException
from taskdesk.domain.value_objects.core import Actor, ProposedChanges
from taskdesk.domain.workflow.state_machine import TaskEvent, transition_task
from taskdesk.shared.utils.generators import generate_cuid


@dataclass(frozen=True)
class ActivityEntry:
    """One immutable timeline event."""

    id: str
    action: ActivityAction
    actor_id: str
    actor_role: ActorRole
    occurred_at: datetime
    details: dict[str, Any] = field(default_factory=dict)


@dataclass
class TaskEntity:
    """Domain entity for a task under negotiation.

    ``version`` is the optimistic-lock counter the repository checks on
    save. ``_persisted_activity_count`` marks how much of the timeline is
    already stored.
    """

    id: str
    title: str
    status: TaskStatus
    assigned_to: str | None
    description: str | None = None
    category: str | None = None
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: date | None = None
    decline_type: DeclineType | None = None
    decline_reason: str | None = None
    closed_at: datetime | None = None
    deleted_at: datetime | None = None
    deleted_by: str | None = None
    reassignment_reason: str | None = None
    handover_notes: str | None = None
    reassigned_at: datetime | None = None
    reassigned_by: str | None = None
    reopen_reason: str | None = None
    reopened_at: datetime | None = None
    reopened_by: str | None = None
    reopen_due_at: datetime | None = None
    reopen_viewed_at: datetime | None = None
    reopen_sla_status: ReopenSlaStatus | None = None
    version: int = 1
    activity_timeline: list[ActivityEntry] = field(default_factory=list)

    _persisted_activity_count: int = field(default=0, repr=False)

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Validate task invariants. Raises ValidationException if invalid."""
        if not self.id:
            raise ValidationException("Task ID is required", field="id")
        if not self.title or not self.title.strip():
            raise ValidationException("Task title is required", field="title")

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def is_assignee(self, actor: Actor) -> bool:
        return actor.is_employee and self.assigned_to == actor.user_id

    def record(
        self,
        action: ActivityAction,
        actor: Actor,
        now: datetime,
        **details: Any,
    ) -> ActivityEntry:
        """Append a timeline entry and return it."""
        entry = ActivityEntry(
            id=generate_cuid(),
            action=action,
            actor_id=actor.user_id,
            actor_role=actor.role,
            occurred_at=now,
            details={k: v for k, v in details.items() if v is not None},
        )
        self.activity_timeline.append(entry)
        return entry

    def new_activity(self) -> list[ActivityEntry]:
        """Timeline entries not yet written by the repository."""
        return self.activity_timeline[self._persisted_activity_count :]

    def mark_activity_persisted(self) -> None:
        self._persisted_activity_count = len(self.activity_timeline)

    # -- modification requests -------------------------------------------

    def ensure_accepts_request(self, request_type: RequestType) -> None:
        """Raise when no new request of this type may target the task."""
        if self.is_deleted:
            raise InvalidStateTransitionException(
                "Task has been deleted", current_status="deleted", action="create_request"
            )
        if self.status in CLOSED_TASK_STATUSES:
            raise InvalidStateTransitionException(
                f"Task is {self.status.value}; no modification requests allowed",
                current_status=self.status.value,
                action="create_request",
            )
        if (
            request_type == RequestType.EXTENSION
            and self.status not in EXTENDABLE_TASK_STATUSES
        ):
            raise InvalidStateTransitionException(
                f"Cannot request an extension on a {self.status.value} task",
                current_status=self.status.value,
                action="create_request",
            )

    def apply_changes(self, changes: ProposedChanges) -> dict[str, dict[str, Any]]:
        """Apply edited fields and return the diff ``{field: {old, new}}``.

        Fields whose value does not change are left out of the diff.
        """
        diff: dict[str, dict[str, Any]] = {}
        for name, new_value in changes.values.items():
            old_value = getattr(self, name)
            if old_value == new_value:
                continue
            setattr(self, name, new_value)
            diff[name] = {"old": _plain(old_value), "new": _plain(new_value)}
        self.validate()
        return diff

    def extend_due_date(self, new_due_date: date) -> dict[str, dict[str, Any]]:
        old = self.due_date
        self.due_date = new_due_date
        return {"due_date": {"old": _plain(old), "new": _plain(new_due_date)}}

    def soft_delete(self, now: datetime, actor: Actor) -> None:
        if self.is_deleted:
            raise InvalidStateTransitionException(
                "Task has already been deleted", current_status="deleted", action="delete"
            )
        self.deleted_at = now
        self.deleted_by = actor.user_id
        self.closed_at = now

    # -- recovery sub-flows ----------------------------------------------

    def reassign(
        self,
        employee_id: str,
        reason: str,
        handover_notes: str | None,
        now: datetime,
        actor: Actor,
        priority: TaskPriority | None = None,
    ) -> None:
        """Hand a withdrawn or declined task to another employee."""
        self._ensure_not_deleted("reassign")
        self.status = transition_task(self.status, TaskEvent.REASSIGN, self.decline_type)
        previous = self.assigned_to
        self.assigned_to = employee_id
        self.reassignment_reason = reason
        self.handover_notes = handover_notes
        self.reassigned_at = now
        self.reassigned_by = actor.user_id
        self.decline_type = None
        self.decline_reason = None
        if priority is not None:
            self.priority = priority
        self.record(
            ActivityAction.TASK_REASSIGNED,
            actor,
            now,
            previous_assignee=previous,
            new_assignee=employee_id,
            reason=reason,
            handover_notes=handover_notes,
            priority=priority.value if priority else None,
        )

    def reopen(self, reason: str, now: datetime, actor: Actor, sla_days: int) -> None:
        """Send a completed task back to the assignee for correction."""
        self._ensure_not_deleted("reopen")
        self.status = transition_task(self.status, TaskEvent.REOPEN)
        self.closed_at = None
        self.reopen_reason = reason
        self.reopened_at = now
        self.reopened_by = actor.user_id
        self.reopen_due_at = now + timedelta(days=sla_days)
        self.reopen_viewed_at = None
        self.reopen_sla_status = ReopenSlaStatus.PENDING
        self.record(
            ActivityAction.TASK_REOPENED,
            actor,
            now,
            reason=reason,
            reopen_due_at=self.reopen_due_at.isoformat(),
        )

    def mark_reopen_viewed(self, now: datetime, actor: Actor) -> bool:
        """Record the assignee's acknowledgement; False if already viewed."""
        if self.status != TaskStatus.REOPENED:
            raise InvalidStateTransitionException(
                "Task is not reopened",
                current_status=self.status.value,
                action="view_reopen",
            )
        if self.reopen_viewed_at is not None:
            return False
        self.reopen_viewed_at = now
        self.reopen_sla_status = ReopenSlaStatus.VIEWED
        self.record(ActivityAction.REOPEN_VIEWED, actor, now)
        return True

    def _ensure_not_deleted(self, action: str) -> None:
        if self.is_deleted:
            raise InvalidStateTransitionException(
                "Task has been deleted", current_status="deleted", action=action
            )


def _plain(value: Any) -> Any:
    if isinstance(value, TaskPriority):
        return value.value
    if isinstance(value, date):
        return value.isoformat()
    return value
