"""Employee domain entity (read-only to the workflow engine)."""

from dataclasses import dataclass

from taskdesk.domain.enums import EmployeeStatus


@dataclass(frozen=True)
class EmployeeEntity:
    id: str
    name: str
    email: str
    status: EmployeeStatus = EmployeeStatus.ACTIVE

    @property
    def is_active(self) -> bool:
        return self.status == EmployeeStatus.ACTIVE
