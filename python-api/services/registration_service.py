"""
Event Registration Service

Registers users for events while guarding two invariants over the
registrations collection:

- at most one registration per (event, user)
- registrations never exceed a finite event capacity (serially)

The store offers no transactions, so each check is a read issued right
before the guarded write. Two concurrent registrations for the last seat
can both pass; the unique (eventId, userId) index closes the duplicate
case, capacity stays best-effort under races.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict

from integrations.appwrite.client import AppwriteClient
from integrations.appwrite.exceptions import (
    AppwriteConflictError,
    AppwriteError,
    AppwriteNotFound,
    AppwriteTimeoutError,
)
from services import collections
from services.counters import increment_counter
from services.errors import (
    ConflictError,
    DependencyError,
    NotFoundError,
    ServiceError,
    ValidationError,
)

# Configure logger
logger = logging.getLogger(__name__)


def _has_finite_capacity(event: Dict[str, Any]) -> bool:
    capacity = event.get("capacity")
    return isinstance(capacity, int) and capacity > 0


async def _ensure_not_registered(client: AppwriteClient, event_id: str, user_id: str) -> None:
    existing = await client.documents.query_documents(
        collections.REGISTRATIONS,
        filter={"eventId": event_id, "userId": user_id},
        limit=1,
    )
    if existing:
        logger.warning(f"User {user_id} already registered for event {event_id}")
        raise ConflictError("Already registered for this event", error_code="ALREADY_REGISTERED")


async def _ensure_capacity(client: AppwriteClient, event: Dict[str, Any]) -> None:
    if not _has_finite_capacity(event):
        return

    registered = await client.documents.count_documents(
        collections.REGISTRATIONS,
        filter={"eventId": event["$id"]},
    )
    if registered >= event["capacity"]:
        logger.warning(
            f"Event {event['$id']} is full ({registered}/{event['capacity']})"
        )
        raise ConflictError("Event is full", error_code="EVENT_FULL")


async def register_for_event(
    client: AppwriteClient,
    event_id: str,
    user_id: str,
    user_name: str,
    user_email: str,
) -> Dict[str, Any]:
    """
    Register a user for an event and issue a ticket.

    Args:
        client: Appwrite client instance
        event_id: Event to register for
        user_id: Registering user
        user_name: Name printed on the ticket
        user_email: Address for the confirmation email

    Returns:
        Dict with "ticket_id" (registration document ID) and "event"

    Raises:
        ValidationError: If any field is missing or blank
        ConflictError: ALREADY_REGISTERED or EVENT_FULL
        NotFoundError: If the event does not exist
        DependencyError: If the document store fails

    Example:
        >>> result = await register_for_event(
        ...     client, "evt-1", "user-1", "Ada", "ada@example.com"
        ... )
        >>> result["ticket_id"]
        '65f0c1...'
    """
    fields = {
        "event_id": event_id,
        "user_id": user_id,
        "user_name": user_name,
        "user_email": user_email,
    }
    missing = [name for name, value in fields.items() if not value or not str(value).strip()]
    if missing:
        raise ValidationError(
            "Missing required fields",
            details={"missing": missing},
        )

    try:
        await _ensure_not_registered(client, event_id, user_id)

        try:
            event = await client.documents.get_document(collections.EVENTS, event_id)
        except AppwriteNotFound:
            logger.warning(f"Event not found: {event_id}")
            raise NotFoundError(f"Event {event_id} not found", error_code="EVENT_NOT_FOUND")

        await _ensure_capacity(client, event)

        try:
            registration = await client.documents.create_document(
                collections.REGISTRATIONS,
                {
                    "eventId": event_id,
                    "userId": user_id,
                    "userName": user_name.strip(),
                    "userEmail": user_email.strip(),
                    "registeredAt": datetime.now(timezone.utc).isoformat(),
                },
            )
        except AppwriteConflictError:
            # Unique (eventId, userId) index caught a concurrent duplicate
            logger.warning(f"Concurrent duplicate registration for {user_id} on {event_id}")
            raise ConflictError(
                "Already registered for this event", error_code="ALREADY_REGISTERED"
            )

        ticket_id = registration.get("$id")
        if not ticket_id:
            raise DependencyError("Registration created but no ticket ID returned")

        logger.info(f"Registered user {user_id} for event {event_id}: ticket {ticket_id}")

    except ServiceError:
        raise

    except AppwriteTimeoutError as e:
        logger.error(f"Timeout registering for event {event_id}: {str(e)}")
        raise DependencyError(
            "Request timed out. Please try again.", error_code="STORE_TIMEOUT"
        )

    except AppwriteError as e:
        logger.error(f"Database error registering for event {event_id}: {str(e)}")
        raise DependencyError("Failed to register for event. Please contact support.")

    # Display counter only; capacity is always checked by counting tickets
    await increment_counter(client, collections.EVENTS, event_id, "registered")

    return {"ticket_id": ticket_id, "event": event}
