"""
Resend Email Client

Sends transactional email through the Resend HTTP API.
"""

import logging
from typing import Any, List, Optional, Union

import httpx
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

# Configure structured logging
logger = logging.getLogger(__name__)


class EmailDeliveryError(Exception):
    """Raised when an email could not be handed to the provider"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ResendClient:
    """
    Client for the Resend email API

    Features:
    - Bearer API key authentication
    - Retry on connection failures only (3 attempts); a request that
      reached the provider is never resent
    """

    def __init__(
        self,
        api_key: str,
        sender: str,
        base_url: str = "https://api.resend.com",
        timeout: float = 10.0,
    ):
        """
        Initialize Resend client

        Args:
            api_key: Resend API key
            sender: From address, e.g. "Community <events@example.com>"
            base_url: API base URL
            timeout: Request timeout in seconds
        """
        if not api_key:
            raise ValueError("api_key is required for email delivery")
        self.sender = sender
        self.client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            headers={"Authorization": f"Bearer {api_key}"},
        )

    @retry(
        retry=retry_if_exception_type(httpx.ConnectError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=4),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _post_email(self, payload: dict[str, Any]) -> httpx.Response:
        return await self.client.post("/emails", json=payload)

    async def send_email(
        self,
        to: Union[str, List[str]],
        subject: str,
        html: str,
    ) -> dict[str, Any]:
        """
        Send an email

        Args:
            to: Recipient address or list of addresses
            subject: Subject line
            html: HTML body

        Returns:
            Provider response containing the message "id"

        Raises:
            EmailDeliveryError: If the provider rejects the message or is unreachable
        """
        payload = {
            "from": self.sender,
            "to": [to] if isinstance(to, str) else to,
            "subject": subject,
            "html": html,
        }

        try:
            response = await self._post_email(payload)
        except httpx.HTTPError as e:
            raise EmailDeliveryError(f"Email provider unreachable: {str(e)}") from e

        if response.status_code >= 400:
            raise EmailDeliveryError(
                f"Email provider returned {response.status_code}",
                status_code=response.status_code,
            )

        return response.json()

    async def close(self):
        """Close the HTTP client connection"""
        await self.client.aclose()
