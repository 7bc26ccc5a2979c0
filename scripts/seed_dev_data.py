"""Seed a few employees and tasks for local development.

Usage:
    uv run python -m scripts.seed_dev_data
Requires DATABASE_URL and a migrated database (alembic upgrade head).
Employees are matched by email, so running twice does not duplicate them.
"""

from __future__ import annotations

import asyncio
import sys
from datetime import timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

import taskdesk.infrastructure.persistence.database as database
from taskdesk.core.config import get_settings
from taskdesk.domain.entities.task import TaskEntity
from taskdesk.domain.enums import DeclineType, TaskPriority, TaskStatus
from taskdesk.infrastructure.persistence.models import Employee
from taskdesk.infrastructure.persistence.repositories import TaskRepository
from taskdesk.shared.utils.datetime import utc_now
from taskdesk.shared.utils.generators import generate_cuid

EMPLOYEES = [
    ("Amara Okello", "amara@example.test", "active"),
    ("Jon Reyes", "jon@example.test", "active"),
    ("Lee Park", "lee@example.test", "inactive"),
]


async def _get_or_create_employee(
    session: AsyncSession, name: str, email: str, status: str
) -> str:
    result = await session.execute(select(Employee).where(Employee.email == email))
    existing = result.scalar_one_or_none()
    if existing:
        return existing.id
    employee = Employee(name=name, email=email, status=status)
    session.add(employee)
    await session.flush()
    return employee.id


async def main() -> None:
    get_settings()
    database._ensure_engine()
    if database.AsyncSessionLocal is None:
        print("AsyncSessionLocal not configured", file=sys.stderr)
        sys.exit(1)

    today = utc_now().date()
    async with database.AsyncSessionLocal() as session:
        async with session.begin():
            ids = [await _get_or_create_employee(session, *e) for e in EMPLOYEES]
            tasks = TaskRepository(session)
            seeded = [
                TaskEntity(
                    id=generate_cuid(),
                    title="Prepare quarterly report",
                    status=TaskStatus.IN_PROGRESS,
                    assigned_to=ids[0],
                    priority=TaskPriority.HIGH,
                    due_date=today + timedelta(days=7),
                ),
                TaskEntity(
                    id=generate_cuid(),
                    title="Update onboarding checklist",
                    status=TaskStatus.COMPLETED,
                    assigned_to=ids[1],
                    due_date=today - timedelta(days=1),
                ),
                TaskEntity(
                    id=generate_cuid(),
                    title="Migrate vendor contacts",
                    status=TaskStatus.DECLINED_BY_EMPLOYEE,
                    assigned_to=ids[0],
                    decline_type=DeclineType.ASSIGNMENT_DECLINE,
                    decline_reason="Out of office next two weeks",
                    due_date=today + timedelta(days=14),
                ),
            ]
            for task in seeded:
                await tasks.add(task)
                print(f"Task {task.id}: {task.title} ({task.status.value})")

    await database.dispose_engine()
    print(f"Done. Employees: {len(ids)}, tasks: {len(seeded)}")


if __name__ == "__main__":
    asyncio.run(main())
