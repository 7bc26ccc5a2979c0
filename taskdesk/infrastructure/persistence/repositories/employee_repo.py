"""Employee directory backed by the employee table (read-only)."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskdesk.domain.entities.employee import EmployeeEntity
from taskdesk.domain.enums import EmployeeStatus
from taskdesk.infrastructure.persistence.models.employee import Employee


def _to_entity(e: Employee) -> EmployeeEntity:
    return EmployeeEntity(
        id=e.id, name=e.name, email=e.email, status=EmployeeStatus(e.status)
    )


class EmployeeRepository:
    """Implements IEmployeeDirectory."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get_by_id(self, employee_id: str) -> EmployeeEntity | None:
        result = await self.db.execute(select(Employee).where(Employee.id == employee_id))
        orm = result.scalar_one_or_none()
        return _to_entity(orm) if orm else None

    async def list_active(self) -> list[EmployeeEntity]:
        result = await self.db.execute(
            select(Employee)
            .where(Employee.status == EmployeeStatus.ACTIVE.value)
            .order_by(Employee.name)
        )
        return [_to_entity(e) for e in result.scalars().all()]
