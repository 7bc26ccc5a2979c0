"""Employee API schemas."""

from pydantic import BaseModel, ConfigDict

from taskdesk.domain.enums import EmployeeStatus


class EmployeeResponse(BaseModel):
    """Employee as a reassignment target."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str
    status: EmployeeStatus
