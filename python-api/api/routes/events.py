"""
Event Registration API Routes

POST /events/register issues a ticket for the authenticated user. The
confirmation email goes out as a background task after the response and
never affects it.
"""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, status

from api.dependencies import get_current_user, get_document_client
from api.schemas.common import ErrorResponse
from api.schemas.registration import RegistrationRequest, RegistrationResponse
from integrations.appwrite.client import AppwriteClient
from services.authorization import Principal
from services.notification_service import NotificationService, get_notification_service
from services.registration_service import register_for_event

# Configure logger
logger = logging.getLogger(__name__)

# Initialize router
router = APIRouter(prefix="/events", tags=["Events"])


@router.post(
    "/register",
    response_model=RegistrationResponse,
    status_code=status.HTTP_200_OK,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid request data"},
        401: {"model": ErrorResponse, "description": "Unauthorized"},
        404: {"model": ErrorResponse, "description": "Event not found"},
        409: {"model": ErrorResponse, "description": "Already registered or event full"},
        500: {"model": ErrorResponse, "description": "Internal server error"},
    },
    summary="Register for Event",
    description="""
    Register the authenticated user for an event.

    - One registration per user per event
    - Rejected when the event has reached capacity
    - A confirmation email is sent after the response (best-effort)
    """,
)
async def register_endpoint(
    request: RegistrationRequest,
    background_tasks: BackgroundTasks,
    current_user: Principal = Depends(get_current_user),
    client: AppwriteClient = Depends(get_document_client),
    notifications: NotificationService = Depends(get_notification_service),
) -> RegistrationResponse:
    """
    Register for an event.

    Raises:
        ServiceError: Mapped to its status by the application error handler
    """
    logger.info(
        f"Registering user {current_user.user_id} for event {request.event_id}",
        extra={"user_id": current_user.user_id, "event_id": request.event_id},
    )

    user_name = request.user_name or current_user.name
    user_email = request.user_email or current_user.email

    result = await register_for_event(
        client,
        event_id=request.event_id,
        user_id=current_user.user_id,
        user_name=user_name,
        user_email=user_email,
    )

    background_tasks.add_task(
        notifications.send_registration_confirmation,
        result["event"],
        user_email,
        user_name,
        result["ticket_id"],
    )

    return RegistrationResponse(ticket_id=result["ticket_id"], event_id=request.event_id)
