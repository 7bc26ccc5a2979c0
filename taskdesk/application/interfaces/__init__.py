"""Application ports (Protocols) implemented by infrastructure."""

from taskdesk.application.interfaces.repositories import (
    IEmployeeDirectory,
    IModificationRequestRepository,
    ITaskRepository,
)
from taskdesk.application.interfaces.services import IClock, IKeyedLock

__all__ = [
    "IClock",
    "IEmployeeDirectory",
    "IKeyedLock",
    "IModificationRequestRepository",
    "ITaskRepository",
]
