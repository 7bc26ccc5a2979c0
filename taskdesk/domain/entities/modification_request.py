"""Modification request domain entity and its discussion thread.

A request proposes an edit, deletion, or due-date extension of one task.
Status changes go through the transition table in
``taskdesk.domain.workflow.state_machine``; every method that changes status
takes the caller's ``now`` so one operation sees one clock reading.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any

from taskdesk.domain.enums import (
    ADMIN_REQUEST_TYPES,
    MESSAGE_LOCKED_STATUSES,
    ActorRole,
    RequestOrigin,
    RequestStatus,
    RequestType,
    RequestUrgency,
    ResponseDecision,
)
from taskdesk.domain.exceptions import InvalidStateTransitionException, ValidationException
from taskdesk.domain.sla import SlaMeta, evaluate
from taskdesk.domain.value_objects.core import (
    Actor,
    ProposedChanges,
    WorkflowPolicy,
    parse_date,
    require_text,
)
from taskdesk.domain.workflow import state_machine
from taskdesk.domain.workflow.state_machine import RequestEvent


@dataclass(frozen=True)
class MessageEntity:
    """One discussion message; immutable once appended."""

    id: str
    request_id: str
    position: int
    sender_id: str
    sender_role: ActorRole
    text: str
    created_at: datetime


@dataclass
class ModificationRequestEntity:
    """Domain entity for an admin- or employee-initiated modification request."""

    id: str
    task_id: str
    origin: RequestOrigin
    request_type: RequestType
    reason: str
    requested_by: str
    requested_at: datetime
    status: RequestStatus = RequestStatus.PENDING
    sla_hours: int | None = None
    expires_at: datetime | None = None
    urgency: RequestUrgency = RequestUrgency.NORMAL
    proposed_changes: ProposedChanges | None = None
    impact_note: str | None = None
    requested_extension: date | None = None
    employee_viewed_at: datetime | None = None
    employee_viewed_by: str | None = None
    response_note: str | None = None
    responded_at: datetime | None = None
    responded_by: str | None = None
    admin_note: str | None = None
    reviewed_at: datetime | None = None
    reviewed_by: str | None = None
    rejection_reason: str | None = None
    rejected_at: datetime | None = None
    rejected_by: str | None = None
    expired_at: datetime | None = None
    executed_at: datetime | None = None
    executed_by: str | None = None
    applied_changes: dict[str, Any] | None = None
    admin_adjusted: bool = False
    version: int = 1
    discussion: list[MessageEntity] = field(default_factory=list)

    _persisted_message_count: int = field(default=0, repr=False)

    @classmethod
    def create(
        cls,
        *,
        request_id: str,
        task_id: str,
        origin: RequestOrigin,
        request_type: RequestType,
        reason: str | None,
        requested_by: str,
        now: datetime,
        policy: WorkflowPolicy,
        sla_hours: int | None = None,
        proposed_changes: dict[str, Any] | None = None,
        impact_note: str | None = None,
        requested_extension: Any = None,
        urgency: RequestUrgency = RequestUrgency.NORMAL,
        current_due_date: date | None = None,
    ) -> "ModificationRequestEntity":
        """Validate input and build a pending request.

        Raises:
            ValidationException: Missing or too-short text, SLA out of range,
                a request type the origin may not use, or a malformed payload.
        """
        if origin == RequestOrigin.ADMIN_INITIATED and request_type not in ADMIN_REQUEST_TYPES:
            raise ValidationException(
                "Admin-initiated requests must be edit or delete", field="request_type"
            )
        min_reason = (
            policy.min_reason_length if origin == RequestOrigin.ADMIN_INITIATED else 1
        )
        reason_text = require_text(reason, "reason", min_reason)
        hours = policy.resolve_sla_hours(sla_hours)

        changes: ProposedChanges | None = None
        note: str | None = None
        extension: date | None = None
        if request_type == RequestType.EDIT:
            changes = ProposedChanges.from_mapping(proposed_changes)
            if origin == RequestOrigin.ADMIN_INITIATED and changes.is_empty():
                raise ValidationException(
                    "Edit requests must propose at least one change",
                    field="proposed_changes",
                )
        elif proposed_changes:
            raise ValidationException(
                "Proposed changes are only accepted on edit requests",
                field="proposed_changes",
            )
        if request_type == RequestType.DELETE:
            if origin == RequestOrigin.ADMIN_INITIATED:
                note = require_text(
                    impact_note, "impact_note", policy.min_impact_note_length, "Impact note"
                )
            elif impact_note and impact_note.strip():
                note = impact_note.strip()
        if request_type == RequestType.EXTENSION:
            if requested_extension is None:
                raise ValidationException(
                    "Requested extension date is required", field="requested_extension"
                )
            extension = parse_date(requested_extension, "requested_extension")
            if current_due_date is not None and extension <= current_due_date:
                raise ValidationException(
                    "Requested extension must be after the current due date",
                    field="requested_extension",
                )

        return cls(
            id=request_id,
            task_id=task_id,
            origin=origin,
            request_type=request_type,
            reason=reason_text,
            requested_by=requested_by,
            requested_at=now,
            status=RequestStatus.PENDING,
            sla_hours=hours,
            expires_at=now + timedelta(hours=hours),
            urgency=urgency,
            proposed_changes=changes,
            impact_note=note,
            requested_extension=extension,
        )

    # -- read-side -------------------------------------------------------

    def effective_status(self, now: datetime) -> RequestStatus:
        return state_machine.effective_status(self.status, self.expires_at, now)

    def is_open(self, now: datetime) -> bool:
        return state_machine.is_open(self.effective_status(now))

    def sla(self, now: datetime, policy: WorkflowPolicy | None = None) -> SlaMeta | None:
        policy = policy or WorkflowPolicy()
        return evaluate(now, self.expires_at, policy.sla_warning_window)

    def new_messages(self) -> list[MessageEntity]:
        return self.discussion[self._persisted_message_count :]

    def mark_messages_persisted(self) -> None:
        self._persisted_message_count = len(self.discussion)

    # -- transitions -----------------------------------------------------

    def mark_viewed(self, now: datetime, actor: Actor) -> bool:
        """Stamp the first employee view; later calls change nothing.

        Returns:
            True when this call recorded the view.
        """
        if self.origin != RequestOrigin.ADMIN_INITIATED:
            raise InvalidStateTransitionException(
                "Only admin-initiated requests track employee views",
                current_status=self.status.value,
                action="view",
            )
        if self.employee_viewed_at is not None:
            return False
        self.employee_viewed_at = now
        self.employee_viewed_by = actor.user_id
        return True

    def respond(
        self,
        decision: ResponseDecision,
        note: str | None,
        now: datetime,
        actor: Actor,
    ) -> None:
        """Employee decision on an admin-initiated request."""
        self._require_origin(RequestOrigin.ADMIN_INITIATED, "respond")
        self._require_pending(now, "respond")
        text = require_text(note, "note", label="Response note")
        event = RequestEvent.APPROVE if decision == ResponseDecision.APPROVED else RequestEvent.REJECT
        self.status = state_machine.transition_request(self.effective_status(now), event)
        self.response_note = text
        self.responded_at = now
        self.responded_by = actor.user_id

    def approve(self, admin_note: str | None, now: datetime, actor: Actor) -> None:
        """Admin approval of an employee-initiated request."""
        self._require_origin(RequestOrigin.EMPLOYEE_INITIATED, "approve")
        self._require_pending(now, "approve")
        text = require_text(admin_note, "admin_note", label="Admin note")
        self.status = state_machine.transition_request(
            self.effective_status(now), RequestEvent.APPROVE
        )
        self.admin_note = text
        self.reviewed_at = now
        self.reviewed_by = actor.user_id

    def reject(self, reason: str | None, now: datetime, actor: Actor) -> None:
        """Admin rejection of an employee-initiated request."""
        self._require_origin(RequestOrigin.EMPLOYEE_INITIATED, "reject")
        self._require_pending(now, "reject")
        text = require_text(reason, "reason", label="Rejection reason")
        self.status = state_machine.transition_request(
            self.effective_status(now), RequestEvent.REJECT
        )
        self.rejection_reason = text
        self.rejected_at = now
        self.rejected_by = actor.user_id

    def expire(self, now: datetime) -> bool:
        """Persist the SLA overlay; False when not (yet) expired or already terminal."""
        if not state_machine.can_transition_request(self.status, RequestEvent.EXPIRE):
            return False
        if self.effective_status(now) != RequestStatus.EXPIRED:
            return False
        self.status = state_machine.transition_request(self.status, RequestEvent.EXPIRE)
        self.expired_at = now
        return True

    def ensure_executable(self, now: datetime) -> None:
        """Raise unless the effective status is approved."""
        state_machine.transition_request(self.effective_status(now), RequestEvent.EXECUTE)

    def mark_executed(
        self,
        now: datetime,
        actor: Actor,
        admin_note: str,
        applied_changes: dict[str, Any],
        admin_adjusted: bool,
    ) -> None:
        self.status = state_machine.transition_request(
            self.effective_status(now), RequestEvent.EXECUTE
        )
        self.executed_at = now
        self.executed_by = actor.user_id
        self.admin_note = admin_note
        self.applied_changes = applied_changes
        self.admin_adjusted = admin_adjusted

    def add_message(
        self,
        message_id: str,
        text: str | None,
        now: datetime,
        actor: Actor,
    ) -> MessageEntity:
        """Append to the discussion unless it is locked."""
        body = require_text(text, "text", label="Message text")
        current = self.effective_status(now)
        if current in MESSAGE_LOCKED_STATUSES:
            raise InvalidStateTransitionException(
                f"Discussion is closed for a {current.value} request",
                current_status=current.value,
                action="message",
            )
        message = MessageEntity(
            id=message_id,
            request_id=self.id,
            position=len(self.discussion),
            sender_id=actor.user_id,
            sender_role=actor.role,
            text=body,
            created_at=now,
        )
        self.discussion.append(message)
        return message

    def _require_origin(self, origin: RequestOrigin, action: str) -> None:
        if self.origin != origin:
            raise InvalidStateTransitionException(
                f"Cannot {action} a {self.origin.value} request",
                current_status=self.status.value,
                action=action,
            )

    def _require_pending(self, now: datetime, action: str) -> None:
        current = self.effective_status(now)
        if current != RequestStatus.PENDING:
            raise InvalidStateTransitionException(
                f"Request is {current.value}; only pending requests accept a decision",
                current_status=current.value,
                action=action,
            )
