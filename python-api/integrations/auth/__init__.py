"""
Appwrite Account Verifier

Resolves session cookies and JWTs to verified users.
"""

from .auth_client import AppwriteAuthClient
from .exceptions import AuthConnectionError, AuthError, AuthTimeoutError, InvalidSessionError

__all__ = [
    "AppwriteAuthClient",
    "AuthError",
    "InvalidSessionError",
    "AuthConnectionError",
    "AuthTimeoutError",
]
