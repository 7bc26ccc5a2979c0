"""Domain exceptions for the task negotiation service.

Every business rule violation raised by the workflow engine is one of these.
They carry no HTTP knowledge; the presentation layer maps ``error_code`` to a
status in ``taskdesk.core.exception_handlers``.
"""

from typing import Any


class TaskDeskException(Exception):
    """Base exception for all task negotiation errors.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Additional error context (e.g. field, resource_id).
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for API error bodies."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class ValidationException(TaskDeskException):
    """Raised when input validation fails (missing field, too-short text, range)."""

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize with message and optional field name.

        Args:
            message: Description of the validation failure.
            field: Optional field or attribute that failed validation.
        """
        details = {"field": field} if field else {}
        super().__init__(message, "VALIDATION_ERROR", details)


class InvalidStateTransitionException(TaskDeskException):
    """Raised when an operation is not allowed from the current status.

    Distinct from validation: the input was fine but the request or task
    moved on (executed, expired, rejected, already open). Callers refresh
    rather than resubmit.
    """

    def __init__(
        self,
        message: str,
        current_status: str | None = None,
        action: str | None = None,
    ) -> None:
        details: dict[str, Any] = {}
        if current_status is not None:
            details["current_status"] = current_status
        if action is not None:
            details["action"] = action
        super().__init__(message, "INVALID_STATE_TRANSITION", details)


class ConcurrentModificationException(TaskDeskException):
    """Raised when another writer updated the row first (optimistic version check)."""

    def __init__(self, resource_type: str, resource_id: str) -> None:
        super().__init__(
            f"{resource_type} was updated by another request; reload and retry",
            "CONCURRENT_MODIFICATION",
            {"resource_type": resource_type, "resource_id": resource_id},
        )


class AuthenticationException(TaskDeskException):
    """Raised when the bearer token is missing, invalid, or lacks claims."""

    def __init__(self, message: str = "Authentication failed") -> None:
        super().__init__(message, "AUTHENTICATION_ERROR")


class AuthorizationException(TaskDeskException):
    """Raised when the actor's role or ownership does not permit the operation."""

    def __init__(
        self,
        resource: str | None = None,
        action: str | None = None,
        message: str = "Permission denied",
    ) -> None:
        """Initialize with optional resource, action, and message.

        Args:
            resource: Optional resource type (e.g. 'task', 'modification_request').
            action: Optional action that was attempted (e.g. 'execute').
            message: Human-readable message; default used when resource/action omitted.
        """
        if resource and action:
            message = f"Permission denied: {action} on {resource}"
        details: dict[str, Any] = {}
        if resource:
            details["resource"] = resource
        if action:
            details["action"] = action
        super().__init__(message, "PERMISSION_DENIED", details)


class ResourceNotFoundException(TaskDeskException):
    """Raised when a task, request, or employee id is unknown."""

    def __init__(self, resource_type: str, resource_id: str) -> None:
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            "RESOURCE_NOT_FOUND",
            {"resource_type": resource_type, "resource_id": resource_id},
        )


class SqlNotConfiguredException(TaskDeskException):
    """Raised when a route needs the database but DATABASE_URL is not set."""

    def __init__(self) -> None:
        super().__init__(
            "SQL database is not configured; set DATABASE_URL",
            "SQL_NOT_CONFIGURED",
        )
