"""
Appwrite Integration Package

Provides client wrappers for the Appwrite Databases API with retry logic and error handling.
"""

from .client import AppwriteClient
from .exceptions import (
    AppwriteAuthError,
    AppwriteConflictError,
    AppwriteError,
    AppwriteNotFound,
    AppwriteRateLimitError,
    AppwriteTimeoutError,
)

__all__ = [
    "AppwriteClient",
    "AppwriteError",
    "AppwriteAuthError",
    "AppwriteConflictError",
    "AppwriteNotFound",
    "AppwriteRateLimitError",
    "AppwriteTimeoutError",
]
