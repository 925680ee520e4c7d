"""
Pydantic schemas for hackathon project submissions.

URL fields are checked by the submission service so that API and direct
service callers get the same validation errors.
"""

from typing import Any, Dict, List, Optional

from pydantic import Field

from api.schemas.common import CamelModel


class SubmissionCreateRequest(CamelModel):
    """
    Request schema for submitting a project.

    Attributes:
        event_id: Hackathon event ID
        team_id: Submitting team (optional for solo events)
        project_title: Project title (3-200 characters)
        project_description: Project description (50-5000 characters)
        problem_statement_id: Chosen problem statement
        tech_stack: Technologies used
        repo_url, demo_url, video_url, presentation_url, team_photo_url: Links
        screenshots: Screenshot URLs
        additional_notes: Free text for judges
    """

    event_id: str = Field(..., min_length=1, description="Event ID")
    team_id: Optional[str] = Field(None, description="Team ID")
    project_title: str = Field(..., description="Project title")
    project_description: str = Field(..., description="Project description")
    problem_statement_id: Optional[str] = None
    tech_stack: List[str] = Field(default_factory=list)
    repo_url: Optional[str] = None
    demo_url: Optional[str] = None
    video_url: Optional[str] = None
    presentation_url: Optional[str] = None
    screenshots: List[str] = Field(default_factory=list)
    team_photo_url: Optional[str] = None
    additional_notes: Optional[str] = Field(None, max_length=5000)


class SubmissionUpdateRequest(CamelModel):
    """
    Request schema for updating a submission.

    Only provided fields are changed. Review fields are ignored.
    """

    submission_id: str = Field(..., min_length=1, description="Submission ID")
    project_title: Optional[str] = None
    project_description: Optional[str] = None
    problem_statement_id: Optional[str] = None
    tech_stack: Optional[List[str]] = None
    repo_url: Optional[str] = None
    demo_url: Optional[str] = None
    video_url: Optional[str] = None
    presentation_url: Optional[str] = None
    screenshots: Optional[List[str]] = None
    team_photo_url: Optional[str] = None
    additional_notes: Optional[str] = Field(None, max_length=5000)

    def changes(self) -> Dict[str, Any]:
        """Fields the client actually sent, keyed as stored (camelCase)."""
        return self.model_dump(
            by_alias=True,
            exclude_unset=True,
            exclude={"submission_id"},
        )


class SubmissionResponse(CamelModel):
    """Response schema wrapping a submission document."""

    success: bool = True
    submission: Dict[str, Any]


class SubmissionListResponse(CamelModel):
    """Response schema for a submission listing."""

    submissions: List[Dict[str, Any]]
