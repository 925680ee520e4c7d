"""
Appwrite Account Verification Client

Verifies end-user credentials against Appwrite's ``GET /account`` endpoint.
Both the browser session cookie and short-lived JWTs are supported. Only
connection failures and timeouts are retried; a rejected credential is
final.
"""

import logging
import os
from typing import Any, Dict, Optional

import httpx
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from .exceptions import AuthConnectionError, AuthTimeoutError, InvalidSessionError

# Configure structured logging
logger = logging.getLogger(__name__)


class AppwriteAuthClient:
    """
    Client that resolves a session or JWT to the user it belongs to.

    Features:
    - Automatic retry with exponential backoff (3 attempts)
    - Structured logging for all verification events
    - Custom exceptions for rejected credentials and unreachable service

    Example:
        >>> client = AppwriteAuthClient(project_id="proj-1")
        >>> user = await client.verify_jwt("eyJhbGciOiJIUzI1NiIs...")
        >>> user["$id"], user["labels"]
        ('user-123', ['admin'])
    """

    def __init__(
        self,
        endpoint: Optional[str] = None,
        project_id: Optional[str] = None,
        timeout: float = 10.0,
    ):
        """
        Initialize the verifier

        Args:
            endpoint: Appwrite API endpoint (or APPWRITE_ENDPOINT env var)
            project_id: Appwrite project ID (or APPWRITE_PROJECT_ID env var)
            timeout: Request timeout in seconds

        Raises:
            ValueError: If project_id is not provided
        """
        self.endpoint = (
            endpoint or os.getenv("APPWRITE_ENDPOINT") or "https://cloud.appwrite.io/v1"
        ).rstrip("/")
        self.project_id = project_id or os.getenv("APPWRITE_PROJECT_ID")

        if not self.project_id:
            raise ValueError(
                "project_id is required. Provide it as an argument or set APPWRITE_PROJECT_ID."
            )

        self.client = httpx.AsyncClient(
            base_url=self.endpoint,
            timeout=timeout,
            headers={"X-Appwrite-Project": self.project_id},
        )

    @property
    def session_cookie_name(self) -> str:
        """Name of the Appwrite session cookie for this project"""
        return f"a_session_{self.project_id}"

    async def verify_session(self, session: str) -> Dict[str, Any]:
        """
        Verify a session cookie value and get the user

        Args:
            session: Value of the ``a_session_<project>`` cookie

        Returns:
            User object with keys: $id, email, name, labels

        Raises:
            InvalidSessionError: If the session is rejected
            AuthConnectionError: If connection fails after retries
            AuthTimeoutError: If request times out after retries
        """
        return await self._verify(
            {"Cookie": f"{self.session_cookie_name}={session}"},
            credential="session",
        )

    async def verify_jwt(self, token: str) -> Dict[str, Any]:
        """
        Verify an Appwrite JWT and get the user

        Args:
            token: JWT created by the client SDK

        Returns:
            User object with keys: $id, email, name, labels

        Raises:
            InvalidSessionError: If the token is rejected
            AuthConnectionError: If connection fails after retries
            AuthTimeoutError: If request times out after retries
        """
        return await self._verify({"X-Appwrite-JWT": token}, credential="jwt")

    async def _verify(self, headers: Dict[str, str], credential: str) -> Dict[str, Any]:
        try:
            return await self._get_account_with_retry(headers, credential)
        except httpx.ConnectError as e:
            logger.error(
                "Connection error during credential verification",
                extra={
                    "event": "credential_verification_error",
                    "credential": credential,
                    "error_type": "connection_error",
                    "error": str(e),
                },
            )
            raise AuthConnectionError() from e
        except httpx.TimeoutException as e:
            logger.error(
                "Timeout during credential verification",
                extra={
                    "event": "credential_verification_error",
                    "credential": credential,
                    "error_type": "timeout",
                    "error": str(e),
                },
            )
            raise AuthTimeoutError() from e

    @retry(
        retry=retry_if_exception_type((httpx.ConnectError, httpx.TimeoutException)),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=4),  # 1s, 2s, 4s
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _get_account_with_retry(
        self, headers: Dict[str, str], credential: str
    ) -> Dict[str, Any]:
        """Internal method with retry logic for account lookup"""
        response = await self.client.get("/account", headers=headers)

        if response.status_code == 200:
            user = response.json()
            logger.info(
                "Credential verification successful",
                extra={
                    "event": "credential_verification_success",
                    "credential": credential,
                    "user_id": user.get("$id"),
                },
            )
            return user

        if response.status_code in (401, 403):
            logger.warning(
                "Credential rejected",
                extra={
                    "event": "credential_verification_failed",
                    "credential": credential,
                    "status_code": response.status_code,
                },
            )
            raise InvalidSessionError()

        logger.warning(
            "Credential verification failed with unexpected status",
            extra={
                "event": "credential_verification_failed",
                "credential": credential,
                "status_code": response.status_code,
                "detail": response.text,
            },
        )
        if response.status_code >= 500:
            raise AuthConnectionError(
                f"Authentication service failed with status {response.status_code}"
            )
        raise InvalidSessionError(f"Authentication failed with status {response.status_code}")

    async def close(self):
        """Close the HTTP client connection"""
        await self.client.aclose()
