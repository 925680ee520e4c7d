"""
FastAPI Dependencies

Authentication, admin gating and the document store client. Credentials
are verified against Appwrite's account endpoint on every request; the
verified user is turned into a ``Principal`` that the coordinators use.

Accepted credentials (checked in order):

1. ``Authorization: Bearer <jwt>``
2. ``X-Appwrite-JWT: <jwt>``
3. The ``a_session_<project>`` session cookie
"""

import logging
from functools import lru_cache
from typing import Optional, Tuple

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from config import settings
from integrations.appwrite.client import AppwriteClient
from integrations.appwrite.dependencies import get_appwrite_client
from integrations.auth.auth_client import AppwriteAuthClient
from integrations.auth.exceptions import AuthError, InvalidSessionError
from services.authorization import (
    AdminPolicy,
    Principal,
    build_admin_policy,
    principal_from_user,
    require_admin,
)
from services.errors import AuthenticationError, DependencyError

# Configure structured logging
logger = logging.getLogger(__name__)

# Bearer scheme; missing header falls through to the other credential sources
security = HTTPBearer(auto_error=False)


@lru_cache(maxsize=1)
def get_auth_client() -> AppwriteAuthClient:
    """
    Get the credential verifier (singleton via LRU cache).

    Raises:
        DependencyError: If APPWRITE_PROJECT_ID is not configured
    """
    try:
        return AppwriteAuthClient(
            endpoint=settings.APPWRITE_ENDPOINT,
            project_id=settings.APPWRITE_PROJECT_ID,
            timeout=settings.AUTH_TIMEOUT,
        )
    except ValueError as e:
        logger.error(f"Failed to initialize auth client: {str(e)}")
        raise DependencyError(
            "Authentication service unavailable. Please contact support.",
            error_code="AUTH_UNAVAILABLE",
            status_code=503,
        )


@lru_cache(maxsize=1)
def get_admin_policy() -> AdminPolicy:
    """Get the configured admin policy."""
    return build_admin_policy()


def get_document_client() -> AppwriteClient:
    """
    Dependency to provide the Appwrite client.

    Raises:
        DependencyError: 503 if the client cannot be configured
    """
    try:
        return get_appwrite_client()
    except ValueError as e:
        logger.error(f"Failed to initialize Appwrite client: {str(e)}")
        raise DependencyError(
            "Database service unavailable. Please contact support.",
            error_code="STORE_UNAVAILABLE",
            status_code=503,
        )


def _extract_credential(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials],
    session_cookie_name: str,
) -> Optional[Tuple[str, str]]:
    if credentials and credentials.credentials:
        return "jwt", credentials.credentials

    jwt = request.headers.get("x-appwrite-jwt")
    if jwt:
        return "jwt", jwt

    # Appwrite also sets a "_legacy" variant for older browsers
    session = request.cookies.get(session_cookie_name) or request.cookies.get(
        f"{session_cookie_name}_legacy"
    )
    if session:
        return "session", session

    return None


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    auth_client: AppwriteAuthClient = Depends(get_auth_client),
    policy: AdminPolicy = Depends(get_admin_policy),
) -> Principal:
    """
    Get the current authenticated caller.

    Args:
        request: FastAPI request object (headers and cookies)
        credentials: Bearer credentials, if present
        auth_client: Credential verifier
        policy: Admin policy

    Returns:
        Principal for the verified caller

    Raises:
        AuthenticationError: 401 if no credential is sent or it is rejected
        DependencyError: 503/504 if the verifier is unreachable

    Example:
        >>> @router.get("/protected")
        >>> async def protected_route(user: Principal = Depends(get_current_user)):
        ...     return {"user_id": user.user_id}
    """
    credential = _extract_credential(request, credentials, auth_client.session_cookie_name)
    if credential is None:
        logger.warning(
            "Missing credentials",
            extra={"event": "auth_failed", "reason": "missing_credentials", "path": request.url.path},
        )
        raise AuthenticationError("Authentication required")

    method, value = credential

    try:
        if method == "jwt":
            user = await auth_client.verify_jwt(value)
        else:
            user = await auth_client.verify_session(value)

    except InvalidSessionError as e:
        logger.warning(
            f"Authentication failed: {e.error_code}",
            extra={"event": "auth_failed", "method": method, "error_code": e.error_code},
        )
        raise AuthenticationError(e.message, error_code=e.error_code)

    except AuthError as e:
        logger.error(
            f"Authentication service error: {e.error_code}",
            extra={"event": "auth_error", "error_code": e.error_code, "status_code": e.status_code},
        )
        raise DependencyError(e.message, error_code=e.error_code, status_code=e.status_code)

    principal = principal_from_user(user, policy)
    logger.info(
        "Authentication successful",
        extra={
            "event": "auth_success",
            "method": method,
            "user_id": principal.user_id,
            "is_admin": principal.is_admin,
        },
    )
    return principal


async def get_current_user_optional(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    auth_client: AppwriteAuthClient = Depends(get_auth_client),
    policy: AdminPolicy = Depends(get_admin_policy),
) -> Optional[Principal]:
    """
    Optional authentication dependency

    Returns the caller if a valid credential was sent, None otherwise.
    Verifier outages still raise.
    """
    try:
        return await get_current_user(request, credentials, auth_client, policy)
    except AuthenticationError:
        logger.debug(
            "Optional authentication failed, returning None",
            extra={"event": "optional_auth_failed"},
        )
        return None


async def require_admin_user(principal: Principal = Depends(get_current_user)) -> Principal:
    """
    Dependency that only admits admins.

    Raises:
        AuthorizationError: 403 if the caller is not an admin
    """
    require_admin(principal, "access admin endpoint")
    return principal
