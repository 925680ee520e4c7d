"""
Pydantic schemas for blog endpoints.
"""

from typing import Any, Dict, List, Optional, Union

from pydantic import Field

from api.schemas.common import CamelModel


class BlogCreateRequest(CamelModel):
    """
    Request schema for creating a blog post.

    Lengths and URLs are validated by the blog service.

    Attributes:
        title: Post title (5-150 characters)
        content: Markdown body (100-65536 characters)
        excerpt: Optional summary (defaults to the start of the content)
        cover_image: Optional cover image URL
        category: Category (defaults to "other")
        tags: List of tags or a comma-separated string
        author_name: Display name (defaults to the caller's name)
        author_avatar: Optional avatar URL
    """

    title: str
    content: str
    excerpt: Optional[str] = None
    cover_image: Optional[str] = None
    category: Optional[str] = None
    tags: Union[List[str], str, None] = None
    author_name: Optional[str] = None
    author_avatar: Optional[str] = None

    def post_fields(self) -> Dict[str, Any]:
        """Post fields keyed as stored (camelCase)."""
        return self.model_dump(by_alias=True)


class BlogUpdateRequest(CamelModel):
    """
    Request schema for editing a post.

    Only provided fields are changed. Moderation fields are honored for
    admins only.
    """

    title: Optional[str] = None
    content: Optional[str] = None
    excerpt: Optional[str] = None
    cover_image: Optional[str] = None
    category: Optional[str] = None
    tags: Union[List[str], str, None] = None
    author_name: Optional[str] = None
    author_avatar: Optional[str] = None
    status: Optional[str] = None
    featured: Optional[bool] = None
    views: Optional[int] = None
    likes: Optional[int] = None

    def changes(self) -> Dict[str, Any]:
        """Fields the client actually sent, keyed as stored (camelCase)."""
        return self.model_dump(by_alias=True, exclude_unset=True)


class RejectRequest(CamelModel):
    """Rejection reason shown to the author (10-500 characters)."""

    reason: str = Field(..., description="Rejection reason")


class FeaturedRequest(CamelModel):
    """Featured flag."""

    featured: bool


class BlogPostResponse(CamelModel):
    """Response schema wrapping a single post."""

    success: bool = True
    data: Dict[str, Any]
    message: Optional[str] = None


class BlogListResponse(CamelModel):
    """Response schema for a post listing."""

    success: bool = True
    data: List[Dict[str, Any]]
    total: int


class QuotaResponse(CamelModel):
    """Remaining blog submissions in the current window."""

    allowed: bool
    remaining: int
    limit: int
    window_hours: int
