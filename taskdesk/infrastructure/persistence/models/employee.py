"""Employee ORM model. Read-only directory for reassignment targets."""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from taskdesk.infrastructure.persistence.database import Base
from taskdesk.infrastructure.persistence.models.mixins import CuidMixin, TimestampMixin


class Employee(CuidMixin, TimestampMixin, Base):
    """Employee. Table: employee."""

    __tablename__ = "employee"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True)
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default="active", server_default="active", index=True
    )
