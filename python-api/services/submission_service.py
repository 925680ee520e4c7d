"""
Submission Management Service

Accepts hackathon project submissions. A team submits at most one project
per event; accepting a submission moves the team to ``submitted`` so it
admits no further members.

The submission write and the team update are two separate writes. If the
second one fails the submission stands and the error is reported; the
duplicate check keys on the submissions collection, so a retry cannot
create a second project.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import HttpUrl, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from integrations.appwrite.client import AppwriteClient
from integrations.appwrite.exceptions import (
    AppwriteConflictError,
    AppwriteError,
    AppwriteNotFound,
    AppwriteTimeoutError,
)
from services import collections
from services.authorization import Principal
from services.errors import (
    AuthorizationError,
    ConflictError,
    DependencyError,
    NotFoundError,
    ServiceError,
    ValidationError,
)

# Configure logger
logger = logging.getLogger(__name__)

TITLE_MIN_LENGTH = 3
TITLE_MAX_LENGTH = 200
DESCRIPTION_MIN_LENGTH = 50
DESCRIPTION_MAX_LENGTH = 5000

URL_FIELDS = ("repoUrl", "demoUrl", "videoUrl", "presentationUrl", "teamPhotoUrl")

EDITABLE_FIELDS = (
    "projectTitle",
    "projectDescription",
    "problemStatementId",
    "techStack",
    "screenshots",
    "additionalNotes",
) + URL_FIELDS

# Only review tooling and the workflow itself write these
RESERVED_FIELDS = ("status", "totalScore", "reviewedBy", "reviewNotes", "eventId", "teamId", "userId")

_http_url = TypeAdapter(HttpUrl)


def _validate_url(field: str, value: str) -> str:
    try:
        _http_url.validate_python(value)
    except PydanticValidationError:
        raise ValidationError(
            f"{field} must be a valid http(s) URL",
            error_code="INVALID_URL",
            details={"field": field},
        )
    return value


def _validate_title(title: Optional[str]) -> str:
    title = (title or "").strip()
    if not TITLE_MIN_LENGTH <= len(title) <= TITLE_MAX_LENGTH:
        raise ValidationError(
            f"Project title must be {TITLE_MIN_LENGTH}-{TITLE_MAX_LENGTH} characters",
            details={"field": "projectTitle"},
        )
    return title


def _validate_description(description: Optional[str]) -> str:
    description = (description or "").strip()
    if not DESCRIPTION_MIN_LENGTH <= len(description) <= DESCRIPTION_MAX_LENGTH:
        raise ValidationError(
            f"Project description must be {DESCRIPTION_MIN_LENGTH}-{DESCRIPTION_MAX_LENGTH} "
            "characters",
            details={"field": "projectDescription"},
        )
    return description


def _clean_content(fields: Dict[str, Any]) -> Dict[str, Any]:
    """
    Validate and normalize the content fields present in ``fields``.

    Blank URLs are stored as None. Screenshots must all be valid URLs.
    """
    cleaned: Dict[str, Any] = {}

    if "projectTitle" in fields:
        cleaned["projectTitle"] = _validate_title(fields["projectTitle"])
    if "projectDescription" in fields:
        cleaned["projectDescription"] = _validate_description(fields["projectDescription"])

    for field in URL_FIELDS:
        if field in fields:
            value = (fields[field] or "").strip()
            cleaned[field] = _validate_url(field, value) if value else None

    if "screenshots" in fields:
        screenshots = [s.strip() for s in fields["screenshots"] or [] if s and s.strip()]
        cleaned["screenshots"] = [_validate_url("screenshots", s) for s in screenshots]

    if "techStack" in fields:
        cleaned["techStack"] = [t.strip() for t in fields["techStack"] or [] if t and t.strip()]

    for field in ("problemStatementId", "additionalNotes"):
        if field in fields:
            cleaned[field] = fields[field] or None

    return cleaned


async def _is_team_member(client: AppwriteClient, team: Dict[str, Any], user_id: str) -> bool:
    if team.get("leaderId") == user_id:
        return True
    memberships = await client.documents.query_documents(
        collections.TEAM_MEMBERS,
        filter={"teamId": team["$id"], "userId": user_id, "status": "accepted"},
        limit=1,
    )
    return bool(memberships)


async def _ensure_no_submission(client: AppwriteClient, event_id: str, team_id: str) -> None:
    existing = await client.documents.count_documents(
        collections.SUBMISSIONS,
        filter={"eventId": event_id, "teamId": team_id},
    )
    if existing > 0:
        logger.warning(f"Team {team_id} already submitted for event {event_id}")
        raise ConflictError(
            "Your team has already submitted a project for this event",
            error_code="DUPLICATE_SUBMISSION",
        )


async def submit_project(
    client: AppwriteClient,
    principal: Principal,
    event_id: str,
    project_title: str,
    project_description: str,
    team_id: Optional[str] = None,
    problem_statement_id: Optional[str] = None,
    tech_stack: Optional[List[str]] = None,
    repo_url: Optional[str] = None,
    demo_url: Optional[str] = None,
    video_url: Optional[str] = None,
    presentation_url: Optional[str] = None,
    screenshots: Optional[List[str]] = None,
    team_photo_url: Optional[str] = None,
    additional_notes: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Submit a project for a hackathon event.

    Submitter identity comes from the verified principal. With a team, the
    caller must belong to it (or be an admin), the team must not have
    submitted already, and the team moves to ``submitted`` afterwards.

    Args:
        client: Appwrite client instance
        principal: Verified caller
        event_id: Hackathon event ID
        project_title: Project title (3-200 characters)
        project_description: Project description (50-5000 characters)
        team_id: Optional submitting team
        problem_statement_id: Optional problem statement
        tech_stack: Optional list of technologies
        repo_url: Optional repository URL
        demo_url: Optional live demo URL
        video_url: Optional demo video URL
        presentation_url: Optional slides URL
        screenshots: Optional list of screenshot URLs
        team_photo_url: Optional team photo URL
        additional_notes: Optional free text

    Returns:
        Created submission document

    Raises:
        ValidationError: If content fails validation
        NotFoundError: TEAM_NOT_FOUND if the team is missing or belongs to another event
        AuthorizationError: NOT_TEAM_MEMBER
        ConflictError: DUPLICATE_SUBMISSION
        DependencyError: If the store fails

    Example:
        >>> submission = await submit_project(
        ...     client,
        ...     principal,
        ...     event_id="hack-456",
        ...     project_title="Awesome Project",
        ...     project_description="A tool that ...",
        ...     team_id="team-123",
        ...     repo_url="https://github.com/org/awesome",
        ... )
        >>> submission["status"]
        'submitted'
    """
    if not event_id or not event_id.strip():
        raise ValidationError("Missing required fields", details={"missing": ["event_id"]})

    content = _clean_content(
        {
            "projectTitle": project_title,
            "projectDescription": project_description,
            "problemStatementId": problem_statement_id,
            "techStack": tech_stack,
            "repoUrl": repo_url,
            "demoUrl": demo_url,
            "videoUrl": video_url,
            "presentationUrl": presentation_url,
            "screenshots": screenshots,
            "teamPhotoUrl": team_photo_url,
            "additionalNotes": additional_notes,
        }
    )

    try:
        if team_id:
            try:
                team = await client.documents.get_document(collections.TEAMS, team_id)
            except AppwriteNotFound:
                logger.warning(f"Team not found: {team_id}")
                raise NotFoundError(f"Team {team_id} not found", error_code="TEAM_NOT_FOUND")

            if team.get("eventId") != event_id:
                logger.warning(
                    f"Team {team_id} belongs to event {team.get('eventId')}, not {event_id}"
                )
                raise NotFoundError(
                    f"Team {team_id} is not registered for this event",
                    error_code="TEAM_NOT_FOUND",
                    details={"teamId": team_id, "eventId": event_id},
                )

            if not principal.is_admin and not await _is_team_member(
                client, team, principal.user_id
            ):
                logger.warning(
                    f"User {principal.user_id} attempted to submit for team {team_id} "
                    "without membership"
                )
                raise AuthorizationError(
                    "You are not a member of this team", error_code="NOT_TEAM_MEMBER"
                )

            await _ensure_no_submission(client, event_id, team_id)

        try:
            submission = await client.documents.create_document(
                collections.SUBMISSIONS,
                {
                    **content,
                    "eventId": event_id,
                    "teamId": team_id or None,
                    "userId": principal.user_id,
                    "userName": principal.name or principal.email,
                    "status": "submitted",
                    "submittedAt": datetime.now(timezone.utc).isoformat(),
                    "reviewedBy": None,
                    "reviewNotes": None,
                    "totalScore": 0,
                },
            )
        except AppwriteConflictError:
            # Unique (eventId, teamId) index caught a concurrent submission
            logger.warning(f"Concurrent duplicate submission for team {team_id}")
            raise ConflictError(
                "Your team has already submitted a project for this event",
                error_code="DUPLICATE_SUBMISSION",
            )

        logger.info(
            f"Created submission {submission['$id']} for event {event_id}"
            + (f" by team {team_id}" if team_id else "")
        )

        if team_id:
            await client.documents.update_document(
                collections.TEAMS,
                team_id,
                {"submissionId": submission["$id"], "status": "submitted"},
            )
            logger.info(f"Team {team_id} marked as submitted")

        return submission

    except ServiceError:
        raise

    except AppwriteTimeoutError as e:
        logger.error(f"Timeout submitting project for event {event_id}: {str(e)}")
        raise DependencyError("Request timed out. Please try again.", error_code="STORE_TIMEOUT")

    except AppwriteError as e:
        logger.error(f"Database error submitting project for event {event_id}: {str(e)}")
        raise DependencyError("Failed to submit project. Please contact support.")


async def update_submission(
    client: AppwriteClient,
    principal: Principal,
    submission_id: str,
    fields: Dict[str, Any],
) -> Dict[str, Any]:
    """
    Update content fields of a submission.

    Reserved fields (status, score, review and ownership fields) are dropped
    from ``fields``; what remains is validated like a new submission.

    Raises:
        NotFoundError: SUBMISSION_NOT_FOUND
        AuthorizationError: If the caller is not the submitter, a team member or an admin
        ValidationError: If nothing editable remains or content fails validation
        DependencyError: If the store fails
    """
    dropped = sorted(key for key in fields if key in RESERVED_FIELDS)
    if dropped:
        logger.info(f"Ignoring reserved submission fields: {', '.join(dropped)}")

    content = _clean_content({k: v for k, v in fields.items() if k in EDITABLE_FIELDS})
    if not content:
        raise ValidationError("No editable fields provided", error_code="NO_CHANGES")

    try:
        try:
            submission = await client.documents.get_document(
                collections.SUBMISSIONS, submission_id
            )
        except AppwriteNotFound:
            logger.warning(f"Submission not found: {submission_id}")
            raise NotFoundError(
                f"Submission {submission_id} not found", error_code="SUBMISSION_NOT_FOUND"
            )

        allowed = principal.is_admin or submission.get("userId") == principal.user_id
        if not allowed and submission.get("teamId"):
            try:
                team = await client.documents.get_document(collections.TEAMS, submission["teamId"])
                allowed = await _is_team_member(client, team, principal.user_id)
            except AppwriteNotFound:
                allowed = False

        if not allowed:
            logger.warning(
                f"User {principal.user_id} attempted to update submission {submission_id}"
            )
            raise AuthorizationError(
                "You cannot modify this submission", error_code="NOT_SUBMISSION_OWNER"
            )

        updated = await client.documents.update_document(
            collections.SUBMISSIONS, submission_id, content
        )
        logger.info(f"Updated submission {submission_id}: {', '.join(sorted(content))}")
        return updated

    except ServiceError:
        raise

    except AppwriteTimeoutError as e:
        logger.error(f"Timeout updating submission {submission_id}: {str(e)}")
        raise DependencyError("Request timed out. Please try again.", error_code="STORE_TIMEOUT")

    except AppwriteError as e:
        logger.error(f"Database error updating submission {submission_id}: {str(e)}")
        raise DependencyError("Failed to update submission. Please contact support.")


async def list_submissions(
    client: AppwriteClient,
    event_id: Optional[str] = None,
    team_id: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
) -> List[Dict[str, Any]]:
    """
    List submissions, optionally filtered by event and/or team.

    Returns:
        Submissions, newest first

    Raises:
        DependencyError: If the store fails
    """
    query_filter: Dict[str, Any] = {}
    if event_id:
        query_filter["eventId"] = event_id
    if team_id:
        query_filter["teamId"] = team_id

    try:
        return await client.documents.query_documents(
            collections.SUBMISSIONS,
            filter=query_filter or None,
            skip=skip,
            limit=limit,
            order_by="-$createdAt",
        )

    except AppwriteTimeoutError as e:
        logger.error(f"Timeout listing submissions: {str(e)}")
        raise DependencyError("Request timed out. Please try again.", error_code="STORE_TIMEOUT")

    except AppwriteError as e:
        logger.error(f"Database error listing submissions: {str(e)}")
        raise DependencyError("Failed to list submissions. Please contact support.")
