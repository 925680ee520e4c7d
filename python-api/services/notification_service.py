"""
Notification Service

Best-effort email notifications. Delivery runs after the triggering
operation has committed and can never fail it: every error is logged and
swallowed here.
"""

import html
import logging
from functools import lru_cache
from typing import Any, Dict, Optional

from config import settings
from integrations.resend.client import ResendClient

# Configure logger
logger = logging.getLogger(__name__)


class NotificationService:
    """
    Sends registration confirmations through the email provider.

    Example:
        >>> service = NotificationService(ResendClient(api_key="...", sender="..."))
        >>> await service.send_registration_confirmation(event, "ada@example.com", "Ada", "tkt-1")
        True
    """

    def __init__(self, email_client: Optional[ResendClient], site_name: str = "Community Platform"):
        """
        Initialize NotificationService.

        Args:
            email_client: Email client, or None when delivery is not configured
            site_name: Name shown in subject lines
        """
        self.email_client = email_client
        self.site_name = site_name

    def _render_registration(
        self, event: Dict[str, Any], user_name: str, ticket_id: str
    ) -> str:
        details = [
            ("Date", event.get("date")),
            ("Time", event.get("time")),
            ("Venue", event.get("venue")),
            ("Location", event.get("location")),
            ("Organizer", event.get("organizerName")),
        ]
        rows = "".join(
            f"<li><strong>{label}:</strong> {html.escape(str(value))}</li>"
            for label, value in details
            if value
        )
        return (
            f"<p>Hi {html.escape(user_name)},</p>"
            f"<p>You're registered for <strong>{html.escape(event.get('title', 'the event'))}</strong>.</p>"
            f"<ul>{rows}</ul>"
            f"<p>Your ticket ID is <code>{html.escape(ticket_id)}</code>.</p>"
        )

    async def send_registration_confirmation(
        self,
        event: Dict[str, Any],
        recipient_email: str,
        recipient_name: str,
        ticket_id: str,
    ) -> bool:
        """
        Send a registration confirmation. Never raises.

        Args:
            event: Event document
            recipient_email: Registrant email
            recipient_name: Registrant name
            ticket_id: Registration ID

        Returns:
            True if the provider accepted the message, False otherwise
        """
        if self.email_client is None:
            logger.info("Email delivery not configured, skipping registration confirmation")
            return False

        try:
            await self.email_client.send_email(
                to=recipient_email,
                subject=f"{self.site_name}: you're registered for {event.get('title', 'the event')}",
                html=self._render_registration(event, recipient_name, ticket_id),
            )
            logger.info(
                f"Registration confirmation sent for ticket {ticket_id}",
                extra={"event_id": event.get("$id"), "ticket_id": ticket_id},
            )
            return True
        except Exception as e:
            logger.warning(
                f"Failed to send registration email for ticket {ticket_id}: {str(e)}",
                extra={"event_id": event.get("$id"), "ticket_id": ticket_id},
            )
            return False


@lru_cache(maxsize=1)
def get_notification_service() -> NotificationService:
    """
    Get the NotificationService singleton configured from settings.

    Email delivery is disabled when RESEND_API_KEY is empty.
    """
    email_client = None
    if settings.RESEND_API_KEY:
        email_client = ResendClient(
            api_key=settings.RESEND_API_KEY,
            sender=settings.EMAIL_FROM,
            base_url=settings.RESEND_API_URL,
        )
    return NotificationService(email_client, site_name=settings.SITE_NAME)
