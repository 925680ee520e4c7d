"""
Coordination Service Errors

Typed outcomes raised by every coordinator. Each error carries a
machine-readable code and the HTTP status the API layer maps it to, so
route handlers never inspect message text to pick a status.
"""

from datetime import datetime
from typing import Any, Optional


class ServiceError(Exception):
    """Base exception for all coordinator failures"""

    status_code = 500
    default_code = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        """
        Initialize service error

        Args:
            message: Safe, user-facing error message
            error_code: Machine-readable code (e.g., "EVENT_FULL")
            status_code: Override for the kind's default HTTP status
            details: Optional additional error context
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.default_code
        if status_code is not None:
            self.status_code = status_code
        self.details = details or {}


class ValidationError(ServiceError):
    """Malformed or missing input"""

    status_code = 400
    default_code = "VALIDATION_ERROR"


class AuthenticationError(ServiceError):
    """No credential, or the credential was rejected"""

    status_code = 401
    default_code = "NOT_AUTHENTICATED"


class AuthorizationError(ServiceError):
    """Authenticated but not allowed to perform the operation"""

    status_code = 403
    default_code = "NOT_AUTHORIZED"


class NotFoundError(ServiceError):
    """Referenced entity is absent"""

    status_code = 404
    default_code = "NOT_FOUND"


class ConflictError(ServiceError):
    """Operation would violate a cross-document invariant"""

    status_code = 409
    default_code = "CONFLICT"


class RateLimitedError(ServiceError):
    """Submission quota exhausted"""

    status_code = 429
    default_code = "RATE_LIMIT_EXCEEDED"


class DependencyError(ServiceError):
    """Document store, verifier or another collaborator is unreachable or failing"""

    status_code = 500
    default_code = "DEPENDENCY_ERROR"


def format_error_response(
    error: ServiceError, request_id: Optional[str] = None
) -> dict[str, Any]:
    """
    Format a service error as a consistent JSON response body

    Args:
        error: ServiceError instance
        request_id: Optional request ID for tracing

    Returns:
        Dictionary with consistent error format:
        {
            "detail": "Human-readable error message",
            "error_code": "MACHINE_READABLE_CODE",
            "timestamp": "2025-12-28T12:34:56.789Z",
            "request_id": "req_123456" (optional)
        }

    Example:
        >>> response = format_error_response(ConflictError("Event is full", "EVENT_FULL"))
        >>> response["error_code"]
        'EVENT_FULL'
    """
    response = {
        "detail": error.message,
        "error_code": error.error_code,
        "timestamp": datetime.utcnow().isoformat() + "Z",
    }

    if request_id:
        response["request_id"] = request_id

    # Include additional details if present
    if error.details:
        response.update(error.details)

    return response
