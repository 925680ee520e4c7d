"""
Pydantic schemas for hackathon team endpoints.

Team and member documents are returned as stored, so responses wrap them
as plain dictionaries.
"""

from typing import Any, Dict, List, Optional

from pydantic import Field, field_validator

from api.schemas.common import CamelModel


class TeamCreateRequest(CamelModel):
    """
    Request schema for creating a new team.

    The authenticated caller becomes the team leader.

    Attributes:
        event_id: Event the team competes in
        team_name: Team name (required, non-empty)
        description: Optional team description
        max_size: Maximum members including the leader (1-10)
    """

    event_id: str = Field(..., min_length=1, description="Event ID")
    team_name: str = Field(..., min_length=1, max_length=100, description="Team name")
    description: Optional[str] = Field(None, max_length=2000, description="Team description")
    max_size: int = Field(5, ge=1, le=10, description="Maximum team size")

    @field_validator("team_name")
    @classmethod
    def validate_team_name(cls, v: str) -> str:
        """Ensure name is not just whitespace."""
        if not v.strip():
            raise ValueError("Team name cannot be empty or whitespace")
        return v.strip()


class TeamJoinRequest(CamelModel):
    """
    Request schema for joining a team by invite code.

    Attributes:
        invite_code: 6-character invite code (case-insensitive)
        event_id: Optional event the code is expected to belong to
    """

    invite_code: str = Field(..., min_length=1, max_length=20, description="Invite code")
    event_id: Optional[str] = Field(None, description="Expected event ID")

    @field_validator("invite_code")
    @classmethod
    def normalize_invite_code(cls, v: str) -> str:
        """Invite codes are matched upper-case."""
        if not v.strip():
            raise ValueError("Invite code cannot be empty or whitespace")
        return v.strip().upper()


class TeamResponse(CamelModel):
    """Response schema wrapping a single team document."""

    success: bool = True
    team: Dict[str, Any]


class TeamListResponse(CamelModel):
    """Response schema for an event's teams."""

    teams: List[Dict[str, Any]]
    total: int


class TeamContextResponse(CamelModel):
    """The caller's team for an event, or None."""

    team: Optional[Dict[str, Any]] = None


class InvitePreviewResponse(CamelModel):
    """Team and members behind an invite code."""

    team: Dict[str, Any]
    members: List[Dict[str, Any]]


class TeamJoinResponse(CamelModel):
    """Response schema for a successful join."""

    success: bool = True
    message: str
    team_name: Optional[str] = None
    team_id: str


class ReconcileResponse(CamelModel):
    """Result of a member count reconciliation."""

    team_id: str
    previous: Optional[int] = None
    member_count: int
