"""
Team Formation Service

Creates hackathon teams, issues invite codes and admits members while
guarding the membership invariants:

- an invite code resolves to exactly one team
- a user holds at most one accepted team role per event
- ``memberCount`` never exceeds ``maxSize`` (serially)
- locked or submitted teams admit nobody

Every guard is a separate read against the store followed immediately by
the write it protects. Concurrent joins against the last free slot can
both pass; ``memberCount`` is advisory and ``reconcile_member_count``
restores it from the membership records.
"""

import logging
import secrets
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional, Tuple

from config import settings
from integrations.appwrite.client import AppwriteClient
from integrations.appwrite.exceptions import (
    AppwriteConflictError,
    AppwriteError,
    AppwriteNotFound,
    AppwriteTimeoutError,
)
from services import collections
from services.authorization import Principal, require_admin
from services.counters import increment_counter, recount
from services.errors import (
    ConflictError,
    DependencyError,
    NotFoundError,
    ServiceError,
    ValidationError,
)

# Configure logger
logger = logging.getLogger(__name__)

# Type for valid team status
TeamStatus = Literal["forming", "locked", "submitted"]

# Type for valid team member roles
MemberRole = Literal["leader", "member"]

# Uppercase letters and digits without the look-alikes I, O, 0 and 1
INVITE_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
INVITE_CODE_LENGTH = 6

MIN_TEAM_SIZE = 1
MAX_TEAM_SIZE = 10
DEFAULT_TEAM_SIZE = 5

CLOSED_STATUSES: Tuple[TeamStatus, ...] = ("locked", "submitted")


def generate_invite_code() -> str:
    """
    Generate a random invite code.

    Returns:
        6 characters from the 32-symbol alphabet, drawn with ``secrets``
    """
    return "".join(secrets.choice(INVITE_CODE_ALPHABET) for _ in range(INVITE_CODE_LENGTH))


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _member_document(
    team_id: str, event_id: str, user_id: str, name: str, email: str, role: MemberRole
) -> Dict[str, Any]:
    return {
        "teamId": team_id,
        "eventId": event_id,
        "userId": user_id,
        "name": name,
        "email": email,
        "role": role,
        "status": "accepted",
        "joinedAt": _now(),
    }


def _store_timeout(action: str, e: Exception) -> DependencyError:
    logger.error(f"Timeout {action}: {str(e)}")
    return DependencyError("Request timed out. Please try again.", error_code="STORE_TIMEOUT")


def _store_failure(action: str, e: Exception) -> DependencyError:
    logger.error(f"Database error {action}: {str(e)}")
    return DependencyError(f"Failed {action}. Please contact support.")


async def _find_team_by_invite_code(
    client: AppwriteClient, invite_code: str
) -> Optional[Dict[str, Any]]:
    teams = await client.documents.query_documents(
        collections.TEAMS,
        filter={"inviteCode": invite_code},
        limit=1,
    )
    return teams[0] if teams else None


async def _find_led_team(
    client: AppwriteClient,
    event_id: str,
    user_id: str,
    exclude_team_id: Optional[str] = None,
) -> Optional[Dict[str, Any]]:
    teams = await client.documents.query_documents(
        collections.TEAMS,
        filter={"eventId": event_id, "leaderId": user_id},
        limit=10,
    )
    for team in teams:
        if team.get("$id") != exclude_team_id:
            return team
    return None


async def _find_accepted_membership(
    client: AppwriteClient,
    event_id: str,
    user_id: str,
    exclude_team_id: Optional[str] = None,
) -> Optional[Dict[str, Any]]:
    memberships = await client.documents.query_documents(
        collections.TEAM_MEMBERS,
        filter={"eventId": event_id, "userId": user_id, "status": "accepted"},
        limit=10,
    )
    for membership in memberships:
        if membership.get("teamId") != exclude_team_id:
            return membership
    return None


async def _create_team_with_unique_code(
    client: AppwriteClient,
    team_data: Dict[str, Any],
    max_attempts: int,
) -> Dict[str, Any]:
    """
    Create the team document under a fresh invite code.

    A code already in use, found either by the pre-check or by the unique
    ``inviteCode`` index rejecting the write, is a recoverable collision:
    draw another code, up to ``max_attempts`` times.
    """
    for attempt in range(1, max_attempts + 1):
        invite_code = generate_invite_code()

        if await _find_team_by_invite_code(client, invite_code) is not None:
            logger.warning(f"Invite code collision on attempt {attempt} (pre-check)")
            continue

        try:
            return await client.documents.create_document(
                collections.TEAMS,
                {**team_data, "inviteCode": invite_code},
            )
        except AppwriteConflictError:
            logger.warning(f"Invite code collision on attempt {attempt} (unique index)")

    logger.error(f"Could not allocate a unique invite code after {max_attempts} attempts")
    raise DependencyError(
        "Could not allocate an invite code. Please try again.",
        error_code="INVITE_CODE_EXHAUSTED",
    )


async def create_team(
    client: AppwriteClient,
    event_id: str,
    team_name: str,
    leader_id: str,
    leader_name: str,
    leader_email: str,
    description: Optional[str] = None,
    max_size: int = DEFAULT_TEAM_SIZE,
) -> Dict[str, Any]:
    """
    Create a new team for a hackathon event.

    The leader is added as an accepted ``leader`` member. The team starts
    in ``forming`` status with ``memberCount`` 1.

    Args:
        client: Appwrite client instance
        event_id: Event the team competes in
        team_name: Team name (required, non-empty)
        leader_id: User ID of the creator
        leader_name: Creator display name
        leader_email: Creator email
        description: Optional team description
        max_size: Maximum members including the leader (1-10, default 5)

    Returns:
        Created team document including "inviteCode"

    Raises:
        ValidationError: If a required field is blank or max_size is out of range
        ConflictError: ALREADY_IN_TEAM if the leader already has a team for the event
        DependencyError: If the store fails or no invite code could be allocated

    Example:
        >>> team = await create_team(
        ...     client,
        ...     event_id="evt-1",
        ...     team_name="Team Alpha",
        ...     leader_id="user-456",
        ...     leader_name="Ada",
        ...     leader_email="ada@example.com",
        ... )
        >>> team["inviteCode"]
        'K7QX2M'
    """
    required = {
        "event_id": event_id,
        "team_name": team_name,
        "leader_id": leader_id,
        "leader_name": leader_name,
        "leader_email": leader_email,
    }
    missing = [name for name, value in required.items() if not value or not str(value).strip()]
    if missing:
        raise ValidationError("Missing required fields", details={"missing": missing})

    if not MIN_TEAM_SIZE <= max_size <= MAX_TEAM_SIZE:
        raise ValidationError(
            f"Team size must be between {MIN_TEAM_SIZE} and {MAX_TEAM_SIZE}",
            error_code="INVALID_TEAM_SIZE",
        )

    try:
        if await _find_led_team(client, event_id, leader_id) or await _find_accepted_membership(
            client, event_id, leader_id
        ):
            logger.warning(f"User {leader_id} already has a team for event {event_id}")
            raise ConflictError(
                "You are already part of a team for this event",
                error_code="ALREADY_IN_TEAM",
            )

        team = await _create_team_with_unique_code(
            client,
            {
                "eventId": event_id,
                "teamName": team_name.strip(),
                "description": description or None,
                "leaderId": leader_id,
                "leaderName": leader_name,
                "leaderEmail": leader_email,
                "memberCount": 1,
                "maxSize": max_size,
                "status": "forming",
                "submissionId": None,
            },
            max_attempts=settings.INVITE_CODE_MAX_ATTEMPTS,
        )

        logger.info(f"Created team {team['$id']} for event {event_id}")

        await client.documents.create_document(
            collections.TEAM_MEMBERS,
            _member_document(
                team["$id"], event_id, leader_id, leader_name, leader_email, "leader"
            ),
        )

        logger.info(f"Added creator {leader_id} as leader of team {team['$id']}")

        return team

    except ServiceError:
        raise

    except AppwriteTimeoutError as e:
        raise _store_timeout("creating team", e)

    except AppwriteError as e:
        raise _store_failure("to create team", e)


async def join_team(
    client: AppwriteClient,
    invite_code: str,
    user_id: str,
    user_name: str,
    user_email: str,
    event_id: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Join a team using its invite code.

    Checks run in order, each against fresh store state: the invite code
    resolves, the team is open, the team has room, the user is not already
    in it, does not lead another team for the event, and holds no other
    accepted membership for the event. The membership record is then
    created and ``memberCount`` incremented (best-effort).

    Args:
        client: Appwrite client instance
        invite_code: Team invite code
        user_id: Joining user
        user_name: Joining user's name
        user_email: Joining user's email
        event_id: Optional event the caller expects the code to belong to

    Returns:
        Dict with "team_name", "team_id", "team" and "member"

    Raises:
        ValidationError: If a required field is blank
        NotFoundError: INVALID_INVITE_CODE
        ConflictError: TEAM_LOCKED or TEAM_FULL (403), ALREADY_MEMBER,
            ALREADY_LEADER or ALREADY_IN_TEAM (409)
        DependencyError: If the store fails
    """
    required = {
        "invite_code": invite_code,
        "user_id": user_id,
        "user_name": user_name,
        "user_email": user_email,
    }
    missing = [name for name, value in required.items() if not value or not str(value).strip()]
    if missing:
        raise ValidationError("Missing required fields", details={"missing": missing})

    invite_code = invite_code.strip().upper()

    try:
        team = await _find_team_by_invite_code(client, invite_code)
        if team is None or (event_id and team.get("eventId") != event_id):
            logger.warning(f"Invalid invite code: {invite_code}")
            raise NotFoundError("Invalid invite code", error_code="INVALID_INVITE_CODE")

        team_id = team["$id"]
        team_event_id = team.get("eventId")

        if team.get("status") in CLOSED_STATUSES:
            raise ConflictError(
                "This team is locked and no longer accepting members",
                error_code="TEAM_LOCKED",
                status_code=403,
            )

        max_size = int(team.get("maxSize") or DEFAULT_TEAM_SIZE)
        if int(team.get("memberCount") or 0) >= max_size:
            raise ConflictError(
                f"Team is full ({max_size} members max)",
                error_code="TEAM_FULL",
                status_code=403,
            )

        existing = await client.documents.query_documents(
            collections.TEAM_MEMBERS,
            filter={"teamId": team_id, "userId": user_id, "status": "accepted"},
            limit=1,
        )
        if existing:
            raise ConflictError(
                "You are already a member of this team", error_code="ALREADY_MEMBER"
            )

        if await _find_led_team(client, team_event_id, user_id, exclude_team_id=team_id):
            raise ConflictError(
                "You already lead another team for this event", error_code="ALREADY_LEADER"
            )

        if await _find_accepted_membership(client, team_event_id, user_id, exclude_team_id=team_id):
            raise ConflictError(
                "You are already part of another team for this event",
                error_code="ALREADY_IN_TEAM",
            )

        member = await client.documents.create_document(
            collections.TEAM_MEMBERS,
            _member_document(team_id, team_event_id, user_id, user_name, user_email, "member"),
        )

    except ServiceError as e:
        if e.status_code != 404:
            logger.warning(f"User {user_id} rejected from team via {invite_code}: {e.error_code}")
        raise

    except AppwriteTimeoutError as e:
        raise _store_timeout("joining team", e)

    except AppwriteError as e:
        raise _store_failure("to join team", e)

    await increment_counter(client, collections.TEAMS, team_id, "memberCount")

    logger.info(f"User {user_id} joined team {team_id}")

    return {"team_name": team.get("teamName"), "team_id": team_id, "team": team, "member": member}


async def get_team_context(
    client: AppwriteClient,
    event_id: str,
    user_id: str,
) -> Optional[Dict[str, Any]]:
    """
    Resolve the user's team for an event, as leader or accepted member.

    Returns:
        Team document, or None if the user has no team for the event

    Raises:
        DependencyError: If the store fails
    """
    try:
        team = await _find_led_team(client, event_id, user_id)
        if team:
            return team

        membership = await _find_accepted_membership(client, event_id, user_id)
        if membership is None:
            return None

        try:
            return await client.documents.get_document(collections.TEAMS, membership["teamId"])
        except AppwriteNotFound:
            logger.warning(
                f"Membership {membership.get('$id')} references missing team "
                f"{membership.get('teamId')}"
            )
            return None

    except AppwriteTimeoutError as e:
        raise _store_timeout("resolving team context", e)

    except AppwriteError as e:
        raise _store_failure("to resolve team", e)


async def get_team_by_invite_code(
    client: AppwriteClient,
    invite_code: str,
) -> Dict[str, Any]:
    """
    Get a team and its members by invite code (invite preview).

    Returns:
        Dict with "team" and "members"

    Raises:
        NotFoundError: INVALID_INVITE_CODE
        DependencyError: If the store fails
    """
    try:
        team = await _find_team_by_invite_code(client, invite_code.strip().upper())
        if team is None:
            raise NotFoundError("Invalid invite code", error_code="INVALID_INVITE_CODE")

        members = await client.documents.query_documents(
            collections.TEAM_MEMBERS,
            filter={"teamId": team["$id"]},
            limit=MAX_TEAM_SIZE * 2,
        )
        return {"team": team, "members": members}

    except ServiceError:
        raise

    except AppwriteTimeoutError as e:
        raise _store_timeout("fetching team", e)

    except AppwriteError as e:
        raise _store_failure("to retrieve team", e)


async def list_event_teams(
    client: AppwriteClient,
    event_id: str,
    skip: int = 0,
    limit: int = 100,
) -> List[Dict[str, Any]]:
    """
    List teams for an event.

    Raises:
        DependencyError: If the store fails
    """
    try:
        teams = await client.documents.query_documents(
            collections.TEAMS,
            filter={"eventId": event_id},
            skip=skip,
            limit=limit,
        )
        logger.info(f"Listed {len(teams)} teams for event {event_id}")
        return teams

    except AppwriteTimeoutError as e:
        raise _store_timeout("listing teams", e)

    except AppwriteError as e:
        raise _store_failure("to list teams", e)


async def _get_team(client: AppwriteClient, team_id: str) -> Dict[str, Any]:
    try:
        return await client.documents.get_document(collections.TEAMS, team_id)
    except AppwriteNotFound:
        logger.warning(f"Team not found: {team_id}")
        raise NotFoundError(f"Team {team_id} not found", error_code="TEAM_NOT_FOUND")


async def lock_team(
    client: AppwriteClient,
    team_id: str,
    principal: Principal,
) -> Dict[str, Any]:
    """
    Close a forming team to new members (admin only).

    Raises:
        AuthorizationError: If the caller is not an admin
        NotFoundError: TEAM_NOT_FOUND
        ConflictError: INVALID_TRANSITION if the team is not forming
        DependencyError: If the store fails
    """
    require_admin(principal, "lock team")

    try:
        team = await _get_team(client, team_id)
        if team.get("status") != "forming":
            raise ConflictError(
                f"Cannot lock a team in '{team.get('status')}' status",
                error_code="INVALID_TRANSITION",
            )

        updated = await client.documents.update_document(
            collections.TEAMS, team_id, {"status": "locked"}
        )
        logger.info(f"Team {team_id} locked by {principal.user_id}")
        return updated

    except ServiceError:
        raise

    except AppwriteTimeoutError as e:
        raise _store_timeout("locking team", e)

    except AppwriteError as e:
        raise _store_failure("to lock team", e)


async def reconcile_member_count(
    client: AppwriteClient,
    team_id: str,
    principal: Principal,
) -> Dict[str, Any]:
    """
    Recompute ``memberCount`` from accepted membership records (admin only).

    Returns:
        Dict with "team_id", "previous" and "member_count"

    Raises:
        AuthorizationError: If the caller is not an admin
        NotFoundError: TEAM_NOT_FOUND
        DependencyError: If the store fails
    """
    require_admin(principal, "reconcile team member count")

    try:
        team = await _get_team(client, team_id)
        member_count = await recount(
            client,
            collections.TEAMS,
            team_id,
            "memberCount",
            collections.TEAM_MEMBERS,
            {"teamId": team_id, "status": "accepted"},
        )
        return {
            "team_id": team_id,
            "previous": team.get("memberCount"),
            "member_count": member_count,
        }

    except ServiceError:
        raise

    except AppwriteTimeoutError as e:
        raise _store_timeout("reconciling team", e)

    except AppwriteError as e:
        raise _store_failure("to reconcile team", e)
