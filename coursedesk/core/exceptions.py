"""
Application exceptions.

Each class carries its HTTP status and error code; the handlers in
error_handlers.py turn them into {error, message, details, path}.
"""

from typing import Optional, Dict, Any


class BaseAppException(Exception):
    status_code: int = 500
    error_code: str = "INTERNAL_ERROR"
    default_message: str = "Internal error"

    def __init__(
        self,
        message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)


class AuthenticationError(BaseAppException):
    status_code = 401
    error_code = "AUTHENTICATION_ERROR"
    default_message = "Authentication failed"


class AuthorizationError(BaseAppException):
    status_code = 403
    error_code = "AUTHORIZATION_ERROR"
    default_message = "Access denied"


class ValidationError(BaseAppException):
    """Input rejected by a domain rule (400, unlike schema errors which are 422)"""

    status_code = 400
    error_code = "VALIDATION_ERROR"
    default_message = "Invalid input"


class BusinessLogicError(BaseAppException):
    status_code = 400
    error_code = "BUSINESS_LOGIC_ERROR"
    default_message = "Operation not allowed"


class DuplicateError(BaseAppException):
    status_code = 409
    error_code = "DUPLICATE_ERROR"

    def __init__(self, resource: str, field: str, value: str):
        super().__init__(
            f"{resource} with {field} '{value}' already exists",
            {"resource": resource, "field": field, "value": value},
        )


class NotFoundError(BaseAppException):
    status_code = 404
    error_code = "NOT_FOUND"

    def __init__(self, resource: str, identifier: Any = None):
        if identifier is None:
            super().__init__(f"{resource} not found", {"resource": resource})
        else:
            super().__init__(
                f"{resource} with identifier '{identifier}' not found",
                {"resource": resource, "identifier": str(identifier)},
            )


class DatabaseError(BaseAppException):
    error_code = "DATABASE_ERROR"
    default_message = "Database operation failed"


class DatabaseConnectionError(BaseAppException):
    status_code = 503
    error_code = "DATABASE_CONNECTION_ERROR"
    default_message = "Database connection failed"


class DatabaseTimeoutError(BaseAppException):
    status_code = 504
    error_code = "DATABASE_TIMEOUT"

    def __init__(self, operation: str, timeout: int):
        super().__init__(
            f"Database operation '{operation}' timed out after {timeout}s",
            {"operation": operation, "timeout": timeout},
        )


class DatabaseIntegrityError(BaseAppException):
    status_code = 409
    error_code = "DATABASE_INTEGRITY_ERROR"

    def __init__(self, constraint: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            f"Database integrity constraint violated: {constraint}",
            {"constraint": constraint, **(details or {})},
        )


class ExternalServiceError(BaseAppException):
    status_code = 502
    error_code = "EXTERNAL_SERVICE_ERROR"

    def __init__(self, service: str, message: str = None):
        super().__init__(message or f"External service '{service}' error", {"service": service})


class SmsDeliveryError(ExternalServiceError):
    """SMS provider missing credentials, rejected the message or was unreachable"""

    error_code = "SMS_DELIVERY_ERROR"

    def __init__(self, provider: str, message: str = None):
        super().__init__(provider, message or f"SMS provider '{provider}' failed")


class ConfigurationError(BaseAppException):
    status_code = 500
    error_code = "CONFIGURATION_ERROR"

    def __init__(self, parameter: str, message: str = None):
        super().__init__(
            message or f"Configuration parameter '{parameter}' is invalid or missing",
            {"parameter": parameter},
        )
