"""
Appwrite Client Wrapper

Provides HTTP client for the Appwrite Databases API with authentication,
retry logic for idempotent reads, and error handling.
"""

import os
from typing import Any, Optional

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from .exceptions import AppwriteError, AppwriteTimeoutError, error_for_status


class AppwriteClient:
    """
    Appwrite API Client with retry logic and comprehensive error handling.

    Features:
    - X-Appwrite-Key server authentication
    - Exponential backoff retry (3 attempts) for GET requests only
    - Writes are sent exactly once; callers re-check invariants before retrying
    - Custom exceptions for different error types
    - Async context manager support
    - Configurable timeout (default 30s)

    Example:
        async with AppwriteClient(endpoint="...", project_id="...", api_key="...",
                                  database_id="...") as client:
            event = await client.documents.get_document("events", "evt-1")
    """

    def __init__(
        self,
        endpoint: Optional[str] = None,
        project_id: Optional[str] = None,
        api_key: Optional[str] = None,
        database_id: Optional[str] = None,
        timeout: float = 30.0,
    ):
        """
        Initialize Appwrite client.

        Args:
            endpoint: API endpoint, e.g. https://cloud.appwrite.io/v1
                (or set APPWRITE_ENDPOINT env var)
            project_id: Appwrite project ID (or set APPWRITE_PROJECT_ID env var)
            api_key: Server API key (or set APPWRITE_API_KEY env var)
            database_id: Database holding all collections (or set APPWRITE_DATABASE_ID env var)
            timeout: Request timeout in seconds (default: 30.0)

        Raises:
            ValueError: If project_id, api_key or database_id is not provided
        """
        self.endpoint = endpoint or os.getenv("APPWRITE_ENDPOINT", "https://cloud.appwrite.io/v1")
        self.project_id = project_id or os.getenv("APPWRITE_PROJECT_ID")
        self.api_key = api_key or os.getenv("APPWRITE_API_KEY")
        self.database_id = database_id or os.getenv("APPWRITE_DATABASE_ID")
        self.timeout = timeout

        if not self.project_id:
            raise ValueError(
                "project_id is required (set via parameter or APPWRITE_PROJECT_ID env var)"
            )
        if not self.api_key:
            raise ValueError("api_key is required (set via parameter or APPWRITE_API_KEY env var)")
        if not self.database_id:
            raise ValueError(
                "database_id is required (set via parameter or APPWRITE_DATABASE_ID env var)"
            )

        self._http_client = httpx.AsyncClient(
            base_url=self.endpoint,
            timeout=httpx.Timeout(timeout),
            headers={
                "X-Appwrite-Project": self.project_id,
                "X-Appwrite-Key": self.api_key,
                "Content-Type": "application/json",
            },
        )

        # API wrappers (lazy loading)
        self._documents = None
        self._collections = None

    @property
    def documents(self):
        """Access Documents API operations"""
        if self._documents is None:
            from .documents import DocumentsAPI

            self._documents = DocumentsAPI(self)
        return self._documents

    @property
    def collections(self):
        """Access Collections admin API operations"""
        if self._collections is None:
            from .collections import CollectionsAPI

            self._collections = CollectionsAPI(self)
        return self._collections

    @property
    def database_path(self) -> str:
        """Base path for this client's database"""
        return f"/databases/{self.database_id}"

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception_type((httpx.NetworkError, httpx.TimeoutException)),
        reraise=True,
    )
    async def _send_idempotent(self, method: str, path: str, **kwargs) -> httpx.Response:
        """Send a read request, retrying on transport failures."""
        return await self._http_client.request(method, path, **kwargs)

    async def _request(
        self,
        method: str,
        path: str,
        **kwargs,
    ) -> dict[str, Any]:
        """
        Make HTTP request with error handling.

        GET requests are retried on network errors and timeouts. POST, PATCH,
        PUT and DELETE are sent once: a write that timed out may still have
        been applied by the store.

        Args:
            method: HTTP method (GET, POST, PATCH, DELETE)
            path: API path relative to the endpoint
            **kwargs: Additional arguments passed to httpx.request

        Returns:
            Dict: JSON response from API (empty dict for 204 responses)

        Raises:
            AppwriteAuthError: API key rejected (401, 403)
            AppwriteNotFound: Resource not found (404)
            AppwriteConflictError: Unique index or duplicate id violation (409)
            AppwriteRateLimitError: Rate limit exceeded (429)
            AppwriteTimeoutError: Request timed out
            AppwriteError: Other API errors
        """
        try:
            if method.upper() == "GET":
                response = await self._send_idempotent(method, path, **kwargs)
            else:
                response = await self._http_client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            raise AppwriteTimeoutError(f"Request timed out after {self.timeout}s") from e
        except httpx.NetworkError as e:
            raise AppwriteError(f"Network error: {str(e)}") from e

        return self._handle_response(response)

    @staticmethod
    def _payload(response: httpx.Response) -> Optional[dict[str, Any]]:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return None

    def _handle_response(self, response: httpx.Response) -> dict[str, Any]:
        payload = self._payload(response)

        if response.status_code >= 400:
            raise error_for_status(response.status_code, payload)

        return payload or {}

    async def health(self) -> dict[str, Any]:
        """
        Fetch the database metadata as a connectivity check.

        Raises:
            AppwriteAuthError: If the API key is rejected
            AppwriteNotFound: If the database doesn't exist
        """
        return await self._request("GET", self.database_path)

    async def __aenter__(self):
        """Async context manager entry"""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit - close HTTP client"""
        await self._http_client.aclose()

    async def close(self):
        """Close the HTTP client connection"""
        await self._http_client.aclose()
