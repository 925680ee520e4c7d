"""
Authentication Verifier Exceptions

Error types for the session/JWT verification call. Each carries the HTTP
status and machine-readable code the API dependency layer forwards.
"""

from typing import Any, Optional


class AuthError(Exception):
    """Base exception for all verifier errors"""

    def __init__(
        self,
        message: str,
        error_code: str,
        status_code: int = 401,
        details: Optional[dict[str, Any]] = None,
    ):
        """
        Initialize authentication error

        Args:
            message: Human-readable error message
            error_code: Machine-readable error code (e.g., "INVALID_SESSION")
            status_code: HTTP status code (default: 401)
            details: Optional additional error context
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}


class InvalidSessionError(AuthError):
    """Raised when a session cookie or JWT is missing, expired or revoked"""

    def __init__(self, message: str = "Invalid or expired session"):
        super().__init__(message=message, error_code="INVALID_SESSION", status_code=401)


class AuthConnectionError(AuthError):
    """Raised when the verifier cannot be reached"""

    def __init__(self, message: str = "Failed to connect to authentication service"):
        super().__init__(message=message, error_code="AUTH_CONNECTION_ERROR", status_code=503)


class AuthTimeoutError(AuthError):
    """Raised when the verifier does not answer in time"""

    def __init__(self, message: str = "Authentication service timed out"):
        super().__init__(message=message, error_code="AUTH_TIMEOUT", status_code=504)
