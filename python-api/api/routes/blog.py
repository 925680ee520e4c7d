"""
Blog API Routes

Public listing and reading, author submission and editing, and the admin
moderation actions.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from api.dependencies import (
    get_current_user,
    get_current_user_optional,
    get_document_client,
    require_admin_user,
)
from api.schemas.blog import (
    BlogCreateRequest,
    BlogListResponse,
    BlogPostResponse,
    BlogUpdateRequest,
    FeaturedRequest,
    QuotaResponse,
    RejectRequest,
)
from api.schemas.common import ErrorResponse
from integrations.appwrite.client import AppwriteClient
from services import blog_service
from services.authorization import Principal
from services.rate_limit_service import check_quota

# Configure logger
logger = logging.getLogger(__name__)

# Initialize router
router = APIRouter(prefix="/blog", tags=["Blog"])


@router.get("", response_model=BlogListResponse, summary="List Published Posts")
async def list_posts_endpoint(
    category: Optional[str] = Query(None, description="Filter by category"),
    featured: Optional[bool] = Query(None, description="Only featured posts"),
    limit: int = Query(20, ge=1, le=100),
    client: AppwriteClient = Depends(get_document_client),
) -> BlogListResponse:
    """Public listing of published posts."""
    posts = await blog_service.list_published_posts(
        client, category=category, featured=featured, limit=limit
    )
    return BlogListResponse(data=posts, total=len(posts))


@router.post(
    "",
    response_model=BlogPostResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid post"},
        401: {"model": ErrorResponse, "description": "Unauthorized"},
        429: {"model": ErrorResponse, "description": "Submission quota exhausted"},
    },
    summary="Submit Post",
    description="""
    Submit a blog post for review.

    - At most 5 posts per author in any 24 hour window
    - Posts enter `pending` and are published after admin approval
    """,
)
async def create_post_endpoint(
    request: BlogCreateRequest,
    current_user: Principal = Depends(get_current_user),
    client: AppwriteClient = Depends(get_document_client),
) -> BlogPostResponse:
    """Create a pending post authored by the caller."""
    post = await blog_service.create_post(client, current_user, request.post_fields())
    return BlogPostResponse(data=post, message="Blog submitted for review")


@router.get("/quota", response_model=QuotaResponse, summary="Submission Quota")
async def quota_endpoint(
    current_user: Principal = Depends(get_current_user),
    client: AppwriteClient = Depends(get_document_client),
) -> QuotaResponse:
    """Remaining submissions for the caller."""
    quota = await check_quota(client, current_user.user_id)
    return QuotaResponse(
        allowed=quota.allowed,
        remaining=quota.remaining,
        limit=quota.limit,
        window_hours=quota.window_hours,
    )


@router.get(
    "/admin",
    response_model=BlogListResponse,
    responses={403: {"model": ErrorResponse, "description": "Admin access required"}},
    summary="Moderation Queue (admin)",
)
async def admin_list_endpoint(
    status_filter: Optional[str] = Query("all", alias="status", description="Post status or 'all'"),
    current_user: Principal = Depends(require_admin_user),
    client: AppwriteClient = Depends(get_document_client),
) -> BlogListResponse:
    """Posts by status for moderators."""
    posts = await blog_service.list_posts_by_status(client, current_user, status_filter)
    return BlogListResponse(data=posts, total=len(posts))


@router.get(
    "/{post_id}",
    response_model=BlogPostResponse,
    responses={404: {"model": ErrorResponse, "description": "Post not found"}},
    summary="Read Post",
)
async def get_post_endpoint(
    post_id: str,
    current_user: Optional[Principal] = Depends(get_current_user_optional),
    client: AppwriteClient = Depends(get_document_client),
) -> BlogPostResponse:
    """Read a post by slug or ID."""
    post = await blog_service.view_post(client, post_id, current_user)
    return BlogPostResponse(data=post)


@router.patch(
    "/{post_id}",
    response_model=BlogPostResponse,
    responses={
        403: {"model": ErrorResponse, "description": "Not the author"},
        404: {"model": ErrorResponse, "description": "Post not found"},
    },
    summary="Edit Post",
)
async def update_post_endpoint(
    post_id: str,
    request: BlogUpdateRequest,
    current_user: Principal = Depends(get_current_user),
    client: AppwriteClient = Depends(get_document_client),
) -> BlogPostResponse:
    """Edit a post as its author or an admin."""
    post = await blog_service.update_post(client, current_user, post_id, request.changes())
    return BlogPostResponse(data=post, message="Blog updated successfully")


@router.delete(
    "/{post_id}",
    responses={403: {"model": ErrorResponse, "description": "Admin access required"}},
    summary="Delete Post (admin)",
)
async def delete_post_endpoint(
    post_id: str,
    current_user: Principal = Depends(require_admin_user),
    client: AppwriteClient = Depends(get_document_client),
):
    """Delete a post."""
    await blog_service.delete_post(client, current_user, post_id)
    return {"success": True, "message": "Blog deleted successfully"}


@router.post(
    "/{post_id}/approve",
    response_model=BlogPostResponse,
    responses={409: {"model": ErrorResponse, "description": "Post is not pending"}},
    summary="Approve Post (admin)",
)
async def approve_post_endpoint(
    post_id: str,
    current_user: Principal = Depends(require_admin_user),
    client: AppwriteClient = Depends(get_document_client),
) -> BlogPostResponse:
    """Publish a pending post."""
    post = await blog_service.approve_post(client, current_user, post_id)
    return BlogPostResponse(data=post, message="Blog approved")


@router.post(
    "/{post_id}/reject",
    response_model=BlogPostResponse,
    responses={409: {"model": ErrorResponse, "description": "Post is not pending"}},
    summary="Reject Post (admin)",
)
async def reject_post_endpoint(
    post_id: str,
    request: RejectRequest,
    current_user: Principal = Depends(require_admin_user),
    client: AppwriteClient = Depends(get_document_client),
) -> BlogPostResponse:
    """Reject a pending post with a reason."""
    post = await blog_service.reject_post(client, current_user, post_id, request.reason)
    return BlogPostResponse(data=post, message="Blog rejected")


@router.post(
    "/{post_id}/featured",
    response_model=BlogPostResponse,
    summary="Feature Post (admin)",
)
async def featured_post_endpoint(
    post_id: str,
    request: FeaturedRequest,
    current_user: Principal = Depends(require_admin_user),
    client: AppwriteClient = Depends(get_document_client),
) -> BlogPostResponse:
    """Toggle the featured flag."""
    post = await blog_service.set_featured(client, current_user, post_id, request.featured)
    return BlogPostResponse(data=post)
