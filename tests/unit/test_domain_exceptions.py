"""Tests for domain exceptions (error_code, message, details) and HTTP mapping."""

from taskdesk.core.exception_handlers import status_for
from taskdesk.domain.exceptions import (
    AuthenticationException,
    AuthorizationException,
    ConcurrentModificationException,
    InvalidStateTransitionException,
    ResourceNotFoundException,
    SqlNotConfiguredException,
    TaskDeskException,
    ValidationException,
)


def test_base_exception_default_error_code() -> None:
    """Base TaskDeskException uses class name as error_code when not provided."""
    exc = TaskDeskException("Something failed")
    assert exc.message == "Something failed"
    assert exc.error_code == "TaskDeskException"
    assert exc.details == {}


def test_to_dict_shape() -> None:
    exc = ValidationException("Reason is required", field="reason")
    assert exc.to_dict() == {
        "error": "VALIDATION_ERROR",
        "message": "Reason is required",
        "details": {"field": "reason"},
    }


def test_invalid_state_transition_details() -> None:
    exc = InvalidStateTransitionException(
        "Cannot execute", current_status="pending", action="execute"
    )
    assert exc.error_code == "INVALID_STATE_TRANSITION"
    assert exc.details == {"current_status": "pending", "action": "execute"}


def test_authorization_message_names_action_and_resource() -> None:
    exc = AuthorizationException(resource="modification_request", action="execute")
    assert exc.message == "Permission denied: execute on modification_request"
    assert exc.error_code == "PERMISSION_DENIED"


def test_not_found_details() -> None:
    exc = ResourceNotFoundException("task", "t-404")
    assert exc.details == {"resource_type": "task", "resource_id": "t-404"}


def test_status_mapping() -> None:
    """Each error code maps to its HTTP status."""
    assert status_for(ValidationException("x")) == 400
    assert status_for(AuthenticationException()) == 401
    assert status_for(AuthorizationException()) == 403
    assert status_for(ResourceNotFoundException("task", "t")) == 404
    assert status_for(InvalidStateTransitionException("x")) == 409
    assert status_for(ConcurrentModificationException("task", "t")) == 409
    assert status_for(SqlNotConfiguredException()) == 503
