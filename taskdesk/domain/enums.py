"""Domain enumerations for task negotiation.

Task and request statuses, request kinds, and the activity timeline
vocabulary. All are ``str`` enums so they serialize as their values.
"""

from enum import Enum


class _ValuesMixin:
    """Mixin that adds a values() classmethod to str Enums."""

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid values as strings."""
        return [member.value for member in cls]


class TaskStatus(_ValuesMixin, str, Enum):
    """Task lifecycle status.

    Owned by the surrounding task system; the workflow engine only reads it,
    except for reopen (-> reopened) and reassign (-> assigned).
    """

    ASSIGNED = "assigned"
    ACCEPTED = "accepted"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    WITHDRAWN = "withdrawn"
    DECLINED_BY_EMPLOYEE = "declined_by_employee"
    REOPENED = "reopened"


# No new modification requests on these.
CLOSED_TASK_STATUSES = frozenset({TaskStatus.FAILED, TaskStatus.WITHDRAWN})

# Extension requests only while work is still ongoing.
EXTENDABLE_TASK_STATUSES = frozenset(
    {
        TaskStatus.ASSIGNED,
        TaskStatus.ACCEPTED,
        TaskStatus.IN_PROGRESS,
        TaskStatus.REOPENED,
    }
)


class DeclineType(_ValuesMixin, str, Enum):
    """Why an employee declined a task."""

    ASSIGNMENT_DECLINE = "assignment_decline"
    DEADLINE_DECLINE = "deadline_decline"


class TaskPriority(_ValuesMixin, str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ActorRole(_ValuesMixin, str, Enum):
    """Role of the party performing an operation (from the auth context)."""

    ADMIN = "admin"
    EMPLOYEE = "employee"
    SYSTEM = "system"


class RequestOrigin(_ValuesMixin, str, Enum):
    """Which party initiated a modification request."""

    ADMIN_INITIATED = "admin_initiated"
    EMPLOYEE_INITIATED = "employee_initiated"


class RequestType(_ValuesMixin, str, Enum):
    EDIT = "edit"
    DELETE = "delete"
    EXTENSION = "extension"


ADMIN_REQUEST_TYPES = frozenset({RequestType.EDIT, RequestType.DELETE})


class RequestStatus(_ValuesMixin, str, Enum):
    """Persisted modification request status.

    COUNTER_PROPOSED is reserved: it counts as open but nothing moves a
    request into or out of it.
    """

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    COUNTER_PROPOSED = "counter_proposed"
    EXPIRED = "expired"
    EXECUTED = "executed"


OPEN_REQUEST_STATUSES = frozenset(
    {RequestStatus.PENDING, RequestStatus.APPROVED, RequestStatus.COUNTER_PROPOSED}
)

# Statuses that the SLA deadline can overlay with EXPIRED.
EXPIRABLE_REQUEST_STATUSES = frozenset({RequestStatus.PENDING, RequestStatus.APPROVED})

# Discussion is locked once the effective status is one of these.
MESSAGE_LOCKED_STATUSES = frozenset(
    {RequestStatus.REJECTED, RequestStatus.EXPIRED, RequestStatus.EXECUTED}
)


class RequestUrgency(_ValuesMixin, str, Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        """Sort rank, most urgent first."""
        return _URGENCY_RANK[self]


_URGENCY_RANK = {
    RequestUrgency.CRITICAL: 0,
    RequestUrgency.HIGH: 1,
    RequestUrgency.NORMAL: 2,
    RequestUrgency.LOW: 3,
}


class ResponseDecision(_ValuesMixin, str, Enum):
    """Employee decision on an admin-initiated request."""

    APPROVED = "approved"
    REJECTED = "rejected"


class SlaLevel(_ValuesMixin, str, Enum):
    """Remaining-time classification of a deadline."""

    NEUTRAL = "neutral"
    WARNING = "warning"
    DANGER = "danger"


class EmployeeStatus(_ValuesMixin, str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class ReopenSlaStatus(_ValuesMixin, str, Enum):
    """Acknowledgement state of a reopened task."""

    PENDING = "pending"
    VIEWED = "viewed"


class ActivityAction(_ValuesMixin, str, Enum):
    """Activity timeline vocabulary appended by the workflow engine."""

    MODIFICATION_REQUESTED = "MODIFICATION_REQUESTED"
    EMPLOYEE_MODIFICATION_REQUESTED = "EMPLOYEE_MODIFICATION_REQUESTED"
    MODIFICATION_VIEWED = "MODIFICATION_VIEWED"
    MODIFICATION_APPROVED = "MODIFICATION_APPROVED"
    MODIFICATION_REJECTED = "MODIFICATION_REJECTED"
    MODIFICATION_EXPIRED = "MODIFICATION_EXPIRED"
    EMPLOYEE_MODIFICATION_EXPIRED = "EMPLOYEE_MODIFICATION_EXPIRED"
    MODIFICATION_MESSAGE = "MODIFICATION_MESSAGE"
    EMPLOYEE_MODIFICATION_MESSAGE = "EMPLOYEE_MODIFICATION_MESSAGE"
    TASK_EDITED = "TASK_EDITED"
    TASK_DELETED = "TASK_DELETED"
    EXTENSION_APPROVED = "EXTENSION_APPROVED"
    TASK_REASSIGNED = "TASK_REASSIGNED"
    TASK_REOPENED = "TASK_REOPENED"
    REOPEN_VIEWED = "REOPEN_VIEWED"
