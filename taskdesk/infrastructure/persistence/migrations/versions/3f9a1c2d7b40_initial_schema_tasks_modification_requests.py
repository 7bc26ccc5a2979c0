"""Initial schema: employees, tasks, activity, modification requests, messages

Revision ID: 3f9a1c2d7b40
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3f9a1c2d7b40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    """Create initial schema."""
    op.create_table(
        "employee",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("status", sa.String(length=16), server_default="active", nullable=False),
        *_timestamps(),
        sa.CheckConstraint(
            "status IN ('active', 'inactive')", name="employee_status_check"
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )
    op.create_index(op.f("ix_employee_status"), "employee", ["status"], unique=False)

    op.create_table(
        "task",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("category", sa.String(length=100), nullable=True),
        sa.Column("priority", sa.String(length=16), server_default="medium", nullable=False),
        sa.Column("due_date", sa.Date(), nullable=True),
        sa.Column("status", sa.String(length=32), server_default="assigned", nullable=False),
        sa.Column("assigned_to", sa.String(), nullable=True),
        sa.Column("decline_type", sa.String(length=32), nullable=True),
        sa.Column("decline_reason", sa.Text(), nullable=True),
        sa.Column("closed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deleted_by", sa.String(), nullable=True),
        sa.Column("reassignment_reason", sa.Text(), nullable=True),
        sa.Column("handover_notes", sa.Text(), nullable=True),
        sa.Column("reassigned_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reassigned_by", sa.String(), nullable=True),
        sa.Column("reopen_reason", sa.Text(), nullable=True),
        sa.Column("reopened_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reopened_by", sa.String(), nullable=True),
        sa.Column("reopen_due_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reopen_viewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reopen_sla_status", sa.String(length=16), nullable=True),
        sa.Column("version", sa.Integer(), server_default="1", nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["assigned_to"], ["employee.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_task_assigned_to"), "task", ["assigned_to"], unique=False)
    op.create_index(op.f("ix_task_deleted_at"), "task", ["deleted_at"], unique=False)
    op.create_index("ix_task_status", "task", ["status"], unique=False)

    op.create_table(
        "task_activity",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("task_id", sa.String(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("action", sa.String(length=64), nullable=False),
        sa.Column("actor_id", sa.String(), nullable=False),
        sa.Column("actor_role", sa.String(length=16), nullable=False),
        sa.Column("occurred_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("details", sa.JSON(), nullable=False),
        sa.ForeignKeyConstraint(["task_id"], ["task.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "uq_task_activity_position", "task_activity", ["task_id", "position"], unique=True
    )

    op.create_table(
        "modification_request",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("task_id", sa.String(), nullable=False),
        sa.Column("origin", sa.String(length=32), nullable=False),
        sa.Column("request_type", sa.String(length=16), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("urgency", sa.String(length=16), server_default="normal", nullable=False),
        sa.Column("requested_by", sa.String(), nullable=False),
        sa.Column("requested_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("sla_hours", sa.Integer(), nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("proposed_changes", sa.JSON(), nullable=True),
        sa.Column("impact_note", sa.Text(), nullable=True),
        sa.Column("requested_extension", sa.Date(), nullable=True),
        sa.Column("employee_viewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("employee_viewed_by", sa.String(), nullable=True),
        sa.Column("response_note", sa.Text(), nullable=True),
        sa.Column("responded_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("responded_by", sa.String(), nullable=True),
        sa.Column("admin_note", sa.Text(), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reviewed_by", sa.String(), nullable=True),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.Column("rejected_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rejected_by", sa.String(), nullable=True),
        sa.Column("expired_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("executed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("executed_by", sa.String(), nullable=True),
        sa.Column("applied_changes", sa.JSON(), nullable=True),
        sa.Column(
            "admin_adjusted", sa.Boolean(), server_default=sa.text("false"), nullable=False
        ),
        sa.Column("version", sa.Integer(), server_default="1", nullable=False),
        *_timestamps(),
        sa.CheckConstraint(
            "origin IN ('admin_initiated', 'employee_initiated')",
            name="modification_request_origin_check",
        ),
        sa.CheckConstraint(
            "request_type IN ('edit', 'delete', 'extension')",
            name="modification_request_type_check",
        ),
        sa.CheckConstraint(
            "status IN ('pending', 'approved', 'rejected', 'counter_proposed', "
            "'expired', 'executed')",
            name="modification_request_status_check",
        ),
        sa.ForeignKeyConstraint(["task_id"], ["task.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_modification_request_task_id"),
        "modification_request",
        ["task_id"],
        unique=False,
    )
    op.create_index(
        "ix_modification_request_status_expires",
        "modification_request",
        ["status", "expires_at"],
        unique=False,
    )
    # At most one open request per task.
    op.execute(
        "CREATE UNIQUE INDEX uq_modification_request_open_per_task "
        "ON modification_request (task_id) "
        "WHERE status IN ('pending', 'approved', 'counter_proposed')"
    )

    op.create_table(
        "modification_request_message",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("request_id", sa.String(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("sender_id", sa.String(), nullable=False),
        sa.Column("sender_role", sa.String(length=16), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["request_id"], ["modification_request.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "uq_modification_request_message_position",
        "modification_request_message",
        ["request_id", "position"],
        unique=True,
    )


def downgrade() -> None:
    """Drop initial schema."""
    op.drop_index(
        "uq_modification_request_message_position",
        table_name="modification_request_message",
    )
    op.drop_table("modification_request_message")
    op.execute("DROP INDEX IF EXISTS uq_modification_request_open_per_task")
    op.drop_index(
        "ix_modification_request_status_expires", table_name="modification_request"
    )
    op.drop_index(op.f("ix_modification_request_task_id"), table_name="modification_request")
    op.drop_table("modification_request")
    op.drop_index("uq_task_activity_position", table_name="task_activity")
    op.drop_table("task_activity")
    op.drop_index("ix_task_status", table_name="task")
    op.drop_index(op.f("ix_task_deleted_at"), table_name="task")
    op.drop_index(op.f("ix_task_assigned_to"), table_name="task")
    op.drop_table("task")
    op.drop_index(op.f("ix_employee_status"), table_name="employee")
    op.drop_table("employee")
