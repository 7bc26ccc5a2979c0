"""Domain value objects for task negotiation.

Immutable types with self-validation: the acting party, the workflow
policy knobs, and the set of task fields an edit request may propose.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, ClassVar

from taskdesk.domain.enums import ActorRole, TaskPriority
from taskdesk.domain.exceptions import ValidationException


def require_text(
    value: str | None,
    field_name: str,
    min_length: int = 1,
    label: str | None = None,
) -> str:
    """Return ``value`` stripped, or raise ValidationException when too short."""
    label = label or field_name.replace("_", " ").capitalize()
    if value is not None and not isinstance(value, str):
        raise ValidationException(f"{label} must be a string", field=field_name)
    text = (value or "").strip()
    if not text:
        raise ValidationException(f"{label} is required", field=field_name)
    if len(text) < min_length:
        raise ValidationException(
            f"{label} must be at least {min_length} characters", field=field_name
        )
    return text


def parse_date(value: Any, field_name: str) -> date:
    """Coerce an ISO string, date or datetime into a date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            # Accept full timestamps too ("2025-09-01T00:00:00Z").
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            pass
    raise ValidationException(
        f"{field_name} must be an ISO date (YYYY-MM-DD)", field=field_name
    )


@dataclass(frozen=True)
class Actor:
    """Authenticated party performing an operation."""

    user_id: str
    role: ActorRole

    def __post_init__(self) -> None:
        if not self.user_id:
            raise ValidationException("Actor id is required", field="user_id")

    @property
    def is_admin(self) -> bool:
        return self.role == ActorRole.ADMIN

    @property
    def is_employee(self) -> bool:
        return self.role == ActorRole.EMPLOYEE


SYSTEM_ACTOR = Actor(user_id="system", role=ActorRole.SYSTEM)


@dataclass(frozen=True)
class WorkflowPolicy:
    """Tunable limits of the negotiation workflow.

    Built from settings by the composition root; defaults match production.
    """

    default_sla_hours: int = 24
    min_sla_hours: int = 1
    max_sla_hours: int = 168
    sla_warning_hours: int = 12
    min_reason_length: int = 10
    min_impact_note_length: int = 10
    reopen_sla_days: int = 3

    @property
    def sla_warning_window(self) -> timedelta:
        return timedelta(hours=self.sla_warning_hours)

    def resolve_sla_hours(self, sla_hours: int | None) -> int:
        """Apply the default and range check to a requested SLA window."""
        if sla_hours is None:
            return self.default_sla_hours
        if isinstance(sla_hours, bool) or not isinstance(sla_hours, int):
            raise ValidationException("SLA hours must be an integer", field="sla_hours")
        if not self.min_sla_hours <= sla_hours <= self.max_sla_hours:
            raise ValidationException(
                f"SLA hours must be between {self.min_sla_hours} and {self.max_sla_hours}",
                field="sla_hours",
            )
        return sla_hours


@dataclass(frozen=True)
class ProposedChanges:
    """Partial set of task fields proposed by an edit request.

    Only the editable task fields are accepted; unknown keys are rejected
    rather than silently dropped so a typo never turns into a no-op edit.
    """

    EDITABLE_FIELDS: ClassVar[tuple[str, ...]] = (
        "title",
        "description",
        "category",
        "priority",
        "due_date",
    )

    values: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        unknown = sorted(set(self.values) - set(self.EDITABLE_FIELDS))
        if unknown:
            raise ValidationException(
                f"Unsupported proposed change fields: {', '.join(unknown)}",
                field="proposed_changes",
            )

    @classmethod
    def from_mapping(cls, raw: dict[str, Any] | None) -> "ProposedChanges":
        """Validate and normalize raw input (priority enum, ISO due date)."""
        if raw is None:
            return cls()
        if not isinstance(raw, dict):
            raise ValidationException(
                "Proposed changes must be an object", field="proposed_changes"
            )
        normalized: dict[str, Any] = {}
        for key, value in raw.items():
            if key == "priority":
                if value not in TaskPriority.values():
                    raise ValidationException(
                        f"priority must be one of {TaskPriority.values()}",
                        field="proposed_changes.priority",
                    )
                normalized[key] = TaskPriority(value)
            elif key == "due_date":
                normalized[key] = parse_date(value, "proposed_changes.due_date")
            elif key == "title":
                normalized[key] = require_text(value, "proposed_changes.title", label="Title")
            else:
                if value is not None and not isinstance(value, str):
                    raise ValidationException(
                        f"{key} must be a string or null", field=f"proposed_changes.{key}"
                    )
                normalized[key] = value
        return cls(values=normalized)

    def is_empty(self) -> bool:
        return not self.values

    def to_dict(self) -> dict[str, Any]:
        """JSON-safe form (enums as values, dates as ISO strings)."""
        out: dict[str, Any] = {}
        for key, value in self.values.items():
            if isinstance(value, TaskPriority):
                value = value.value
            elif isinstance(value, date):
                value = value.isoformat()
            out[key] = value
        return out
