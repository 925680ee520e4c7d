"""
Pydantic schemas for event registration.
"""

from typing import Optional

from pydantic import EmailStr, Field, field_validator

from api.schemas.common import CamelModel


class RegistrationRequest(CamelModel):
    """
    Request schema for registering for an event.

    Name and email default to the authenticated user's profile.

    Attributes:
        event_id: Event to register for
        user_name: Name printed on the ticket
        user_email: Address for the confirmation email
    """

    event_id: str = Field(..., min_length=1, description="Event ID")
    user_name: Optional[str] = Field(None, max_length=200, description="Attendee name")
    user_email: Optional[EmailStr] = Field(None, description="Attendee email")

    @field_validator("event_id")
    @classmethod
    def validate_event_id(cls, v: str) -> str:
        """Ensure event ID is not just whitespace."""
        if not v.strip():
            raise ValueError("Event ID cannot be empty or whitespace")
        return v.strip()


class RegistrationResponse(CamelModel):
    """Response schema for a successful registration."""

    success: bool = True
    message: str = "Registration successful"
    ticket_id: str = Field(..., description="Registration (ticket) ID")
    event_id: str = Field(..., description="Event ID")
