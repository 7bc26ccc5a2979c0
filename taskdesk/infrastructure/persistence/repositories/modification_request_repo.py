"""Modification request repository: requests and their discussion messages."""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime
from typing import Any

from sqlalchemy import or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from taskdesk.application.dtos.modification_request import QueueRow
from taskdesk.domain.entities.modification_request import (
    MessageEntity,
    ModificationRequestEntity,
)
from taskdesk.domain.enums import (
    EXPIRABLE_REQUEST_STATUSES,
    ActorRole,
    RequestOrigin,
    RequestStatus,
    RequestType,
    RequestUrgency,
)
from taskdesk.domain.exceptions import (
    ConcurrentModificationException,
    InvalidStateTransitionException,
)
from taskdesk.domain.value_objects.core import ProposedChanges
from taskdesk.infrastructure.persistence.models.modification_request import (
    ModificationRequest,
    ModificationRequestMessage,
)
from taskdesk.infrastructure.persistence.models.task import Task
from taskdesk.shared.utils.datetime import ensure_utc


def _message_to_entity(m: ModificationRequestMessage) -> MessageEntity:
    return MessageEntity(
        id=m.id,
        request_id=m.request_id,
        position=m.position,
        sender_id=m.sender_id,
        sender_role=ActorRole(m.sender_role),
        text=m.text,
        created_at=ensure_utc(m.created_at),
    )


def _to_entity(
    r: ModificationRequest, messages: list[ModificationRequestMessage]
) -> ModificationRequestEntity:
    """Map ModificationRequest ORM (plus ordered messages) to the domain entity."""
    return ModificationRequestEntity(
        id=r.id,
        task_id=r.task_id,
        origin=RequestOrigin(r.origin),
        request_type=RequestType(r.request_type),
        reason=r.reason,
        requested_by=r.requested_by,
        requested_at=ensure_utc(r.requested_at),
        status=RequestStatus(r.status),
        sla_hours=r.sla_hours,
        expires_at=ensure_utc(r.expires_at),
        urgency=RequestUrgency(r.urgency),
        proposed_changes=(
            ProposedChanges.from_mapping(r.proposed_changes)
            if r.proposed_changes is not None
            else None
        ),
        impact_note=r.impact_note,
        requested_extension=r.requested_extension,
        employee_viewed_at=ensure_utc(r.employee_viewed_at),
        employee_viewed_by=r.employee_viewed_by,
        response_note=r.response_note,
        responded_at=ensure_utc(r.responded_at),
        responded_by=r.responded_by,
        admin_note=r.admin_note,
        reviewed_at=ensure_utc(r.reviewed_at),
        reviewed_by=r.reviewed_by,
        rejection_reason=r.rejection_reason,
        rejected_at=ensure_utc(r.rejected_at),
        rejected_by=r.rejected_by,
        expired_at=ensure_utc(r.expired_at),
        executed_at=ensure_utc(r.executed_at),
        executed_by=r.executed_by,
        applied_changes=r.applied_changes,
        admin_adjusted=r.admin_adjusted,
        version=r.version,
        discussion=[_message_to_entity(m) for m in messages],
        _persisted_message_count=len(messages),
    )


def _mutable_values(request: ModificationRequestEntity) -> dict[str, Any]:
    """Columns that change after creation."""
    return {
        "status": request.status.value,
        "employee_viewed_at": request.employee_viewed_at,
        "employee_viewed_by": request.employee_viewed_by,
        "response_note": request.response_note,
        "responded_at": request.responded_at,
        "responded_by": request.responded_by,
        "admin_note": request.admin_note,
        "reviewed_at": request.reviewed_at,
        "reviewed_by": request.reviewed_by,
        "rejection_reason": request.rejection_reason,
        "rejected_at": request.rejected_at,
        "rejected_by": request.rejected_by,
        "expired_at": request.expired_at,
        "executed_at": request.executed_at,
        "executed_by": request.executed_by,
        "applied_changes": request.applied_changes,
        "admin_adjusted": request.admin_adjusted,
    }


class ModificationRequestRepository:
    """Implements IModificationRequestRepository."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get_by_id(self, request_id: str) -> ModificationRequestEntity | None:
        result = await self.db.execute(
            select(ModificationRequest).where(ModificationRequest.id == request_id)
        )
        orm = result.scalar_one_or_none()
        if orm is None:
            return None
        messages = await self._messages_for([orm.id])
        return _to_entity(orm, messages[orm.id])

    async def list_by_task(self, task_id: str) -> list[ModificationRequestEntity]:
        result = await self.db.execute(
            select(ModificationRequest)
            .where(ModificationRequest.task_id == task_id)
            .order_by(ModificationRequest.requested_at, ModificationRequest.id)
        )
        return await self._with_messages(list(result.scalars().all()))

    async def create(self, request: ModificationRequestEntity) -> ModificationRequestEntity:
        """Insert; the partial unique index rejects a second open request per task."""
        orm = ModificationRequest(
            id=request.id,
            task_id=request.task_id,
            origin=request.origin.value,
            request_type=request.request_type.value,
            reason=request.reason,
            urgency=request.urgency.value,
            requested_by=request.requested_by,
            requested_at=request.requested_at,
            sla_hours=request.sla_hours,
            expires_at=request.expires_at,
            proposed_changes=(
                request.proposed_changes.to_dict() if request.proposed_changes else None
            ),
            impact_note=request.impact_note,
            requested_extension=request.requested_extension,
            version=request.version,
            **_mutable_values(request),
        )
        self.db.add(orm)
        try:
            await self.db.flush()
        except IntegrityError as e:
            raise InvalidStateTransitionException(
                "Task already has an open modification request",
                action="create",
            ) from e
        await self._append_messages(request)
        return request

    async def save(self, request: ModificationRequestEntity) -> ModificationRequestEntity:
        stmt = (
            update(ModificationRequest)
            .where(
                ModificationRequest.id == request.id,
                ModificationRequest.version == request.version,
            )
            .values(**_mutable_values(request), version=request.version + 1)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        if result.rowcount != 1:
            raise ConcurrentModificationException("modification_request", request.id)
        request.version += 1
        await self._append_messages(request)
        return request

    async def list_expirable(
        self, now: datetime, limit: int = 500
    ) -> list[ModificationRequestEntity]:
        result = await self.db.execute(
            select(ModificationRequest)
            .where(
                ModificationRequest.status.in_([s.value for s in EXPIRABLE_REQUEST_STATUSES]),
                ModificationRequest.expires_at.is_not(None),
                ModificationRequest.expires_at <= now,
            )
            .order_by(ModificationRequest.expires_at)
            .limit(limit)
        )
        return await self._with_messages(list(result.scalars().all()))

    async def list_for_queue(
        self,
        assigned_to: str | None = None,
        origin: RequestOrigin | None = None,
        search: str | None = None,
    ) -> list[QueueRow]:
        stmt = (
            select(ModificationRequest, Task.title, Task.assigned_to)
            .join(Task, Task.id == ModificationRequest.task_id)
            .where(Task.deleted_at.is_(None))
        )
        if assigned_to is not None:
            stmt = stmt.where(Task.assigned_to == assigned_to)
        if origin is not None:
            stmt = stmt.where(ModificationRequest.origin == origin.value)
        if search:
            pattern = f"%{search}%"
            stmt = stmt.where(
                or_(Task.title.ilike(pattern), ModificationRequest.reason.ilike(pattern))
            )
        result = await self.db.execute(stmt)
        rows = result.all()
        messages = await self._messages_for([orm.id for orm, _, _ in rows])
        return [
            QueueRow(
                request=_to_entity(orm, messages[orm.id]),
                task_title=title,
                assigned_to=assignee,
            )
            for orm, title, assignee in rows
        ]

    async def _with_messages(
        self, orms: list[ModificationRequest]
    ) -> list[ModificationRequestEntity]:
        messages = await self._messages_for([o.id for o in orms])
        return [_to_entity(o, messages[o.id]) for o in orms]

    async def _messages_for(
        self, request_ids: list[str]
    ) -> dict[str, list[ModificationRequestMessage]]:
        grouped: dict[str, list[ModificationRequestMessage]] = defaultdict(list)
        if not request_ids:
            return grouped
        result = await self.db.execute(
            select(ModificationRequestMessage)
            .where(ModificationRequestMessage.request_id.in_(request_ids))
            .order_by(ModificationRequestMessage.request_id, ModificationRequestMessage.position)
        )
        for m in result.scalars().all():
            grouped[m.request_id].append(m)
        return grouped

    async def _append_messages(self, request: ModificationRequestEntity) -> None:
        rows = [
            ModificationRequestMessage(
                id=m.id,
                request_id=request.id,
                position=m.position,
                sender_id=m.sender_id,
                sender_role=m.sender_role.value,
                text=m.text,
                created_at=m.created_at,
            )
            for m in request.new_messages()
        ]
        if rows:
            self.db.add_all(rows)
            await self.db.flush()
        request.mark_messages_persisted()
