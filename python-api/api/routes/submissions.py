"""
Hackathon Submission API Routes
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from api.dependencies import get_current_user, get_document_client
from api.schemas.common import ErrorResponse
from api.schemas.submissions import (
    SubmissionCreateRequest,
    SubmissionListResponse,
    SubmissionResponse,
    SubmissionUpdateRequest,
)
from integrations.appwrite.client import AppwriteClient
from services.authorization import Principal
from services.submission_service import list_submissions, submit_project, update_submission

# Configure logger
logger = logging.getLogger(__name__)

# Initialize router
router = APIRouter(prefix="/hackathon/submissions", tags=["Submissions"])


@router.get(
    "",
    response_model=SubmissionListResponse,
    summary="List Submissions",
)
async def list_submissions_endpoint(
    event_id: Optional[str] = Query(None, description="Filter by event"),
    team_id: Optional[str] = Query(None, description="Filter by team"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=100),
    client: AppwriteClient = Depends(get_document_client),
) -> SubmissionListResponse:
    """List submissions, newest first."""
    submissions = await list_submissions(
        client, event_id=event_id, team_id=team_id, skip=skip, limit=limit
    )
    return SubmissionListResponse(submissions=submissions)


@router.post(
    "",
    response_model=SubmissionResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid submission"},
        401: {"model": ErrorResponse, "description": "Unauthorized"},
        403: {"model": ErrorResponse, "description": "Not a team member"},
        404: {"model": ErrorResponse, "description": "Team not found"},
        409: {"model": ErrorResponse, "description": "Team already submitted"},
    },
    summary="Submit Project",
    description="""
    Submit a hackathon project.

    - One submission per team per event
    - The team moves to `submitted` and stops accepting members
    """,
)
async def submit_project_endpoint(
    request: SubmissionCreateRequest,
    current_user: Principal = Depends(get_current_user),
    client: AppwriteClient = Depends(get_document_client),
) -> SubmissionResponse:
    """Submit a project as the caller."""
    logger.info(
        f"User {current_user.user_id} submitting project for event {request.event_id}",
        extra={"user_id": current_user.user_id, "team_id": request.team_id},
    )

    submission = await submit_project(
        client,
        current_user,
        event_id=request.event_id,
        project_title=request.project_title,
        project_description=request.project_description,
        team_id=request.team_id,
        problem_statement_id=request.problem_statement_id,
        tech_stack=request.tech_stack,
        repo_url=request.repo_url,
        demo_url=request.demo_url,
        video_url=request.video_url,
        presentation_url=request.presentation_url,
        screenshots=request.screenshots,
        team_photo_url=request.team_photo_url,
        additional_notes=request.additional_notes,
    )
    return SubmissionResponse(submission=submission)


@router.patch(
    "",
    response_model=SubmissionResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid update"},
        403: {"model": ErrorResponse, "description": "Not allowed to edit"},
        404: {"model": ErrorResponse, "description": "Submission not found"},
    },
    summary="Update Submission",
)
async def update_submission_endpoint(
    request: SubmissionUpdateRequest,
    current_user: Principal = Depends(get_current_user),
    client: AppwriteClient = Depends(get_document_client),
) -> SubmissionResponse:
    """Update content fields of a submission."""
    submission = await update_submission(
        client, current_user, request.submission_id, request.changes()
    )
    return SubmissionResponse(submission=submission)
