"""Modification request and discussion message ORM models."""

from datetime import date, datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    text as sql_text,
)
from sqlalchemy.orm import Mapped, mapped_column

from taskdesk.infrastructure.persistence.database import Base
from taskdesk.infrastructure.persistence.models.mixins import (
    CuidMixin,
    TimestampMixin,
    VersionedMixin,
)

# Keep in sync with OPEN_REQUEST_STATUSES.
OPEN_STATUS_PREDICATE = "status IN ('pending', 'approved', 'counter_proposed')"


class ModificationRequest(CuidMixin, TimestampMixin, VersionedMixin, Base):
    """Edit/delete/extension request on a task. Table: modification_request."""

    __tablename__ = "modification_request"

    task_id: Mapped[str] = mapped_column(
        String, ForeignKey("task.id", ondelete="CASCADE"), nullable=False, index=True
    )
    origin: Mapped[str] = mapped_column(String(32), nullable=False)
    request_type: Mapped[str] = mapped_column(String(16), nullable=False)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="pending")
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    urgency: Mapped[str] = mapped_column(
        String(16), nullable=False, default="normal", server_default="normal"
    )
    requested_by: Mapped[str] = mapped_column(String, nullable=False)
    requested_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    sla_hours: Mapped[int | None] = mapped_column(Integer, nullable=True)
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    proposed_changes: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    impact_note: Mapped[str | None] = mapped_column(Text, nullable=True)
    requested_extension: Mapped[date | None] = mapped_column(Date, nullable=True)

    employee_viewed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    employee_viewed_by: Mapped[str | None] = mapped_column(String, nullable=True)
    response_note: Mapped[str | None] = mapped_column(Text, nullable=True)
    responded_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    responded_by: Mapped[str | None] = mapped_column(String, nullable=True)
    admin_note: Mapped[str | None] = mapped_column(Text, nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    reviewed_by: Mapped[str | None] = mapped_column(String, nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    rejected_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    rejected_by: Mapped[str | None] = mapped_column(String, nullable=True)
    expired_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    executed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    executed_by: Mapped[str | None] = mapped_column(String, nullable=True)
    applied_changes: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    admin_adjusted: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=sql_text("false")
    )

    __table_args__ = (
        Index(
            "uq_modification_request_open_per_task",
            "task_id",
            unique=True,
            postgresql_where=sql_text(OPEN_STATUS_PREDICATE),
            sqlite_where=sql_text(OPEN_STATUS_PREDICATE),
        ),
        Index("ix_modification_request_status_expires", "status", "expires_at"),
    )


class ModificationRequestMessage(CuidMixin, Base):
    """Discussion message on a request. Table: modification_request_message."""

    __tablename__ = "modification_request_message"

    request_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("modification_request.id", ondelete="CASCADE"),
        nullable=False,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    sender_id: Mapped[str] = mapped_column(String, nullable=False)
    sender_role: Mapped[str] = mapped_column(String(16), nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("uq_modification_request_message_position", "request_id", "position", unique=True),
    )
