"""
Appwrite error types.

Each subclass fixes the HTTP status it stands for; ``error_for_status``
picks the class for a failed response so the client has one place that
knows the mapping.
"""

from typing import Optional


class AppwriteError(Exception):
    """Base exception for all Appwrite errors"""

    default_message = "Appwrite request failed"
    default_status: Optional[int] = None

    def __init__(
        self, message: str = None, status_code: int = None, response: Optional[dict] = None
    ):
        self.message = message or self.default_message
        super().__init__(self.message)
        self.status_code = status_code if status_code is not None else self.default_status
        self.response = response

    @property
    def error_type(self) -> str:
        """Appwrite error type string (e.g. "document_already_exists"), if any"""
        if isinstance(self.response, dict):
            return self.response.get("type") or ""
        return ""


class AppwriteAuthError(AppwriteError):
    """API key rejected (401) or missing scopes (403)"""

    default_message = "Authentication failed - invalid API key"
    default_status = 401


class AppwriteNotFound(AppwriteError):
    default_message = "Resource not found"
    default_status = 404


class AppwriteConflictError(AppwriteError):
    """A write hit a unique index or an existing document id (409)"""

    default_message = "Resource already exists"
    default_status = 409


class AppwriteRateLimitError(AppwriteError):
    default_message = "Rate limit exceeded - please retry later"
    default_status = 429


class AppwriteTimeoutError(AppwriteError):
    default_message = "Request timed out"
    default_status = 408


_BY_STATUS = {
    401: AppwriteAuthError,
    403: AppwriteAuthError,
    404: AppwriteNotFound,
    409: AppwriteConflictError,
    429: AppwriteRateLimitError,
}


def error_for_status(status_code: int, payload: Optional[dict]) -> AppwriteError:
    """
    Build the exception for a failed Appwrite response.

    Mapped statuses keep their fixed message; anything else carries the
    server's ``message`` field when the body has one.
    """
    error_class = _BY_STATUS.get(status_code)
    if error_class is AppwriteAuthError and status_code == 403:
        return error_class(
            "Permission denied - insufficient scopes", status_code=403, response=payload
        )
    if error_class is not None:
        return error_class(status_code=status_code, response=payload)

    message = f"API error: {status_code}"
    if isinstance(payload, dict):
        message = payload.get("message", message)
    return AppwriteError(message, status_code=status_code, response=payload)
