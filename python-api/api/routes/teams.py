"""
Hackathon Team API Routes

Team creation, invite-code joins, lookups and the admin recovery actions.
Service errors propagate to the application error handler, which maps
them to their HTTP status.
"""

import logging
from typing import Optional, Union

from fastapi import APIRouter, Depends, Query, status

from api.dependencies import get_current_user, get_document_client, require_admin_user
from api.schemas.common import ErrorResponse
from api.schemas.teams import (
    InvitePreviewResponse,
    ReconcileResponse,
    TeamContextResponse,
    TeamCreateRequest,
    TeamJoinRequest,
    TeamJoinResponse,
    TeamListResponse,
    TeamResponse,
)
from integrations.appwrite.client import AppwriteClient
from services.authorization import Principal
from services.errors import ValidationError
from services.team_service import (
    create_team,
    get_team_by_invite_code,
    get_team_context,
    join_team,
    list_event_teams,
    lock_team,
    reconcile_member_count,
)

# Configure logger
logger = logging.getLogger(__name__)

# Initialize router
router = APIRouter(prefix="/hackathon/teams", tags=["Teams"])


@router.get(
    "",
    response_model=None,
    responses={
        400: {"model": ErrorResponse, "description": "Missing query parameters"},
        404: {"model": ErrorResponse, "description": "Invalid invite code"},
    },
    summary="Find Teams",
    description="""
    Look up teams.

    - `invite_code`: invite preview (team and members)
    - `event_id` + `user_id`: that user's team for the event, or null
    - `event_id`: all teams for the event
    """,
)
async def get_teams_endpoint(
    event_id: Optional[str] = Query(None, description="Event ID"),
    invite_code: Optional[str] = Query(None, description="Invite code"),
    user_id: Optional[str] = Query(None, description="User ID for team context"),
    skip: int = Query(0, ge=0, description="Number of teams to skip"),
    limit: int = Query(100, ge=1, le=100, description="Maximum teams to return"),
    client: AppwriteClient = Depends(get_document_client),
) -> Union[InvitePreviewResponse, TeamContextResponse, TeamListResponse]:
    """Invite preview, team context or event team listing."""
    if invite_code:
        result = await get_team_by_invite_code(client, invite_code)
        return InvitePreviewResponse(team=result["team"], members=result["members"])

    if event_id and user_id:
        team = await get_team_context(client, event_id, user_id)
        return TeamContextResponse(team=team)

    if event_id:
        teams = await list_event_teams(client, event_id, skip=skip, limit=limit)
        return TeamListResponse(teams=teams, total=len(teams))

    raise ValidationError("event_id or invite_code required")


@router.post(
    "",
    response_model=TeamResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid request data"},
        401: {"model": ErrorResponse, "description": "Unauthorized"},
        409: {"model": ErrorResponse, "description": "Already in a team for this event"},
        500: {"model": ErrorResponse, "description": "Internal server error"},
    },
    summary="Create Team",
    description="""
    Create a new team for a hackathon event.

    - The caller becomes the team leader
    - Team starts in `forming` status with a fresh invite code
    """,
)
async def create_team_endpoint(
    request: TeamCreateRequest,
    current_user: Principal = Depends(get_current_user),
    client: AppwriteClient = Depends(get_document_client),
) -> TeamResponse:
    """Create a team led by the caller."""
    logger.info(
        f"Creating team '{request.team_name}' for event {request.event_id}",
        extra={"user_id": current_user.user_id, "event_id": request.event_id},
    )

    team = await create_team(
        client,
        event_id=request.event_id,
        team_name=request.team_name,
        leader_id=current_user.user_id,
        leader_name=current_user.name or current_user.email,
        leader_email=current_user.email,
        description=request.description,
        max_size=request.max_size,
    )
    return TeamResponse(team=team)


@router.post(
    "/join",
    response_model=TeamJoinResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Unauthorized"},
        403: {"model": ErrorResponse, "description": "Team locked or full"},
        404: {"model": ErrorResponse, "description": "Invalid invite code"},
        409: {"model": ErrorResponse, "description": "Already in a team"},
    },
    summary="Join Team",
)
async def join_team_endpoint(
    request: TeamJoinRequest,
    current_user: Principal = Depends(get_current_user),
    client: AppwriteClient = Depends(get_document_client),
) -> TeamJoinResponse:
    """Join a team with an invite code."""
    result = await join_team(
        client,
        invite_code=request.invite_code,
        user_id=current_user.user_id,
        user_name=current_user.name or current_user.email,
        user_email=current_user.email,
        event_id=request.event_id,
    )
    return TeamJoinResponse(
        message=f"You joined {result['team_name']}",
        team_name=result["team_name"],
        team_id=result["team_id"],
    )


@router.post(
    "/{team_id}/lock",
    response_model=TeamResponse,
    responses={
        403: {"model": ErrorResponse, "description": "Admin access required"},
        404: {"model": ErrorResponse, "description": "Team not found"},
        409: {"model": ErrorResponse, "description": "Team is not forming"},
    },
    summary="Lock Team (admin)",
)
async def lock_team_endpoint(
    team_id: str,
    current_user: Principal = Depends(require_admin_user),
    client: AppwriteClient = Depends(get_document_client),
) -> TeamResponse:
    """Close a forming team to new members."""
    team = await lock_team(client, team_id, current_user)
    return TeamResponse(team=team)


@router.post(
    "/{team_id}/reconcile",
    response_model=ReconcileResponse,
    responses={
        403: {"model": ErrorResponse, "description": "Admin access required"},
        404: {"model": ErrorResponse, "description": "Team not found"},
    },
    summary="Reconcile Member Count (admin)",
)
async def reconcile_team_endpoint(
    team_id: str,
    current_user: Principal = Depends(require_admin_user),
    client: AppwriteClient = Depends(get_document_client),
) -> ReconcileResponse:
    """Recompute memberCount from accepted memberships."""
    result = await reconcile_member_count(client, team_id, current_user)
    return ReconcileResponse(**result)
