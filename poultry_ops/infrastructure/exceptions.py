"""
Service exceptions and their mapping to HTTP responses.

Every exception carries a stable error_code that the dashboard reads from
the response detail, plus free-form details naming the resource involved.
"""
from fastapi import HTTPException, status
from typing import Any, Dict, Optional


class BaseServiceException(Exception):
    """Base exception for every service exception."""

    error_code = "internal_error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None, **context: Any):
        self.message = message
        self.details = dict(details or {})
        self.details.update({key: value for key, value in context.items() if value is not None})
        super().__init__(message)


class ConfigurationError(BaseServiceException):
    """Raised when a required setting is missing."""

    error_code = "configuration_error"


class StoreUnavailableError(BaseServiceException):
    """Raised when the realtime database (or Redis) cannot be reached."""

    error_code = "connection_error"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    def __init__(self, message: str, service_name: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details, service=service_name)


class DataAccessError(BaseServiceException):
    """Raised when a read from the realtime database fails."""

    error_code = "data_access_error"
    status_code = status.HTTP_502_BAD_GATEWAY

    def __init__(self, message: str, source: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details, source=source)


class CommandWriteError(BaseServiceException):
    """Raised when an actuator command could not be written."""

    error_code = "write_failed"
    status_code = status.HTTP_502_BAD_GATEWAY

    def __init__(self, message: str, actuator_type: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details, actuator_type=actuator_type)


class GuardViolationError(CommandWriteError):
    """Raised when a command is rejected because the previous one is still running."""

    error_code = "guard_violation"
    status_code = status.HTTP_409_CONFLICT


class ValidationError(BaseServiceException):
    """Raised on invalid input."""

    error_code = "validation_error"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, field: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details, field=field)


class AuthenticationError(BaseServiceException):
    """Raised on a failed login or a missing operator session."""

    error_code = "authentication_error"
    status_code = status.HTTP_401_UNAUTHORIZED


class ResourceNotFoundError(BaseServiceException):
    error_code = "resource_not_found"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(
        self,
        message: str,
        resource_type: str,
        resource_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, details, resource_type=resource_type, resource_id=resource_id)


def exception_from_result(result: Dict[str, Any], actuator_type: str) -> BaseServiceException:
    """
    Build the exception matching a failed controller result.

    Args:
        result: Dict returned by a controller with 'success' False
        actuator_type: Actuator the command targeted

    Returns:
        The exception to raise
    """
    message = result.get("message", f"Command to {actuator_type} failed")
    error_code = result.get("error_code")

    if error_code == GuardViolationError.error_code:
        return GuardViolationError(message=message, actuator_type=actuator_type)
    if error_code == ValidationError.error_code:
        return ValidationError(message=message, field=result.get("field"))
    return CommandWriteError(message=message, actuator_type=actuator_type)


def service_exception_handler(exc: BaseServiceException) -> HTTPException:
    """
    Convert a service exception to an HTTP exception.

    The detail body is {message, error_code, details}.
    """
    return HTTPException(
        status_code=exc.status_code,
        detail={
            "message": exc.message,
            "error_code": exc.error_code,
            "details": exc.details
        }
    )
