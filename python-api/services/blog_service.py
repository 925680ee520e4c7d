"""
Blog Moderation Service

Community blog posts move through a small state machine:

    draft -> pending -> published
                     -> rejected

Authors create posts (rate limited) which enter ``pending``; only admins
approve or reject them. Authors may edit their own posts but never the
moderation fields. Ownership keys on the author's immutable user ID.
"""

import logging
import math
import re
import secrets
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import HttpUrl, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from integrations.appwrite.client import AppwriteClient
from integrations.appwrite.exceptions import (
    AppwriteError,
    AppwriteNotFound,
    AppwriteTimeoutError,
)
from services import collections
from services.authorization import Principal, is_owner, require_admin
from services.counters import increment_counter
from services.errors import (
    AuthorizationError,
    ConflictError,
    DependencyError,
    NotFoundError,
    ServiceError,
    ValidationError,
)
from services.rate_limit_service import enforce_quota

# Configure logger
logger = logging.getLogger(__name__)

# Type for valid post status
PostStatus = Literal["draft", "pending", "published", "rejected"]

POST_STATUSES = ("draft", "pending", "published", "rejected")

# Allowed moderation transitions: target -> permitted source states
TRANSITIONS = {
    "published": ("pending",),
    "rejected": ("pending",),
}

TITLE_MIN_LENGTH = 5
TITLE_MAX_LENGTH = 150
CONTENT_MIN_LENGTH = 100
CONTENT_MAX_LENGTH = 65536
EXCERPT_MAX_LENGTH = 300
EXCERPT_DEFAULT_LENGTH = 150
REASON_MIN_LENGTH = 10
REASON_MAX_LENGTH = 500
WORDS_PER_MINUTE = 200
DEFAULT_CATEGORY = "other"
MAX_LIST_LIMIT = 100
SLUG_MAX_ATTEMPTS = 20

# Fields only admins may write through update_post
MODERATION_FIELDS = (
    "status",
    "views",
    "likes",
    "featured",
    "authorId",
    "authorEmail",
    "rejectionReason",
)

EDITABLE_FIELDS = (
    "title",
    "content",
    "excerpt",
    "coverImage",
    "category",
    "tags",
    "authorName",
    "authorAvatar",
)

_http_url = TypeAdapter(HttpUrl)


def generate_slug(title: str) -> str:
    """
    Derive a URL slug from a title.

    Example:
        >>> generate_slug("  Hello, World! 2024  ")
        'hello-world-2024'
    """
    slug = re.sub(r"[^a-z0-9]+", "-", title.lower()).strip("-")
    return slug or "post"


def calculate_read_time(content: str) -> int:
    """Estimated reading time in whole minutes, at least 1."""
    words = len(content.split())
    return max(1, math.ceil(words / WORDS_PER_MINUTE))


def _normalize_tags(tags: Union[str, List[str], None]) -> str:
    if not tags:
        return ""
    if isinstance(tags, str):
        tags = tags.split(",")
    return ", ".join(tag.strip() for tag in tags if tag and tag.strip())


def _validate_url(field: str, value: Optional[str]) -> Optional[str]:
    value = (value or "").strip()
    if not value:
        return None
    try:
        _http_url.validate_python(value)
    except PydanticValidationError:
        raise ValidationError(
            f"{field} must be a valid http(s) URL",
            error_code="INVALID_URL",
            details={"field": field},
        )
    return value


def _validate_length(field: str, value: Optional[str], minimum: int, maximum: int) -> str:
    # Bounds apply to the text as sent; it is stored unchanged
    value = value or ""
    if not value.strip() or not minimum <= len(value) <= maximum:
        raise ValidationError(
            f"{field} must be {minimum}-{maximum} characters",
            details={"field": field},
        )
    return value


def _clean_content(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Validate the content fields present in ``data`` and derive excerpt
    and read time from them.
    """
    cleaned: Dict[str, Any] = {}

    if "title" in data:
        cleaned["title"] = _validate_length("title", data["title"], TITLE_MIN_LENGTH, TITLE_MAX_LENGTH)

    if "content" in data:
        cleaned["content"] = _validate_length(
            "content", data["content"], CONTENT_MIN_LENGTH, CONTENT_MAX_LENGTH
        )
        cleaned["readTime"] = calculate_read_time(cleaned["content"])

    if "excerpt" in data:
        excerpt = (data["excerpt"] or "").strip()
        if len(excerpt) > EXCERPT_MAX_LENGTH:
            raise ValidationError(
                f"excerpt must be at most {EXCERPT_MAX_LENGTH} characters",
                details={"field": "excerpt"},
            )
        if excerpt:
            cleaned["excerpt"] = excerpt
        elif "content" in cleaned:
            cleaned["excerpt"] = cleaned["content"].strip()[:EXCERPT_DEFAULT_LENGTH]

    for field in ("coverImage", "authorAvatar"):
        if field in data:
            cleaned[field] = _validate_url(field, data[field])

    if "category" in data:
        cleaned["category"] = (data["category"] or "").strip() or DEFAULT_CATEGORY

    if "tags" in data:
        cleaned["tags"] = _normalize_tags(data["tags"])

    if "authorName" in data and data["authorName"]:
        cleaned["authorName"] = data["authorName"].strip()

    return cleaned


def _store_timeout(action: str, e: Exception) -> DependencyError:
    logger.error(f"Timeout {action}: {str(e)}")
    return DependencyError("Request timed out. Please try again.", error_code="STORE_TIMEOUT")


def _store_failure(action: str, e: Exception) -> DependencyError:
    logger.error(f"Database error {action}: {str(e)}")
    return DependencyError(f"Failed {action}. Please contact support.")


async def _unique_slug(
    client: AppwriteClient, title: str, post_id: Optional[str] = None
) -> str:
    """
    Slug for ``title`` that no other post uses.

    Taken slugs get a numeric suffix (``hello-world-2``); ``post_id`` keeps
    a post's own slug available to it on edit.
    """
    base = generate_slug(title)
    for attempt in range(1, SLUG_MAX_ATTEMPTS + 1):
        candidate = base if attempt == 1 else f"{base}-{attempt}"
        taken = await client.documents.query_documents(
            collections.BLOG, filter={"slug": candidate}, limit=1
        )
        if not taken or taken[0]["$id"] == post_id:
            return candidate
    return f"{base}-{secrets.token_hex(3)}"


async def _get_post(client: AppwriteClient, post_id: str) -> Dict[str, Any]:
    try:
        return await client.documents.get_document(collections.BLOG, post_id)
    except AppwriteNotFound:
        logger.warning(f"Blog post not found: {post_id}")
        raise NotFoundError("Blog post not found", error_code="POST_NOT_FOUND")


async def create_post(
    client: AppwriteClient,
    principal: Principal,
    data: Dict[str, Any],
) -> Dict[str, Any]:
    """
    Create a blog post on behalf of the caller.

    Content is validated first, then the submission quota is checked right
    before the write. The post enters ``pending`` and waits for moderation.

    Args:
        client: Appwrite client instance
        principal: Verified author
        data: Post fields (title, content, excerpt, coverImage, category,
            tags, authorName, authorAvatar)

    Returns:
        Created post document

    Raises:
        RateLimitedError: If the author's quota is exhausted or unverifiable
        ValidationError: If content fails validation
        DependencyError: If the store fails

    Example:
        >>> post = await create_post(client, principal, {
        ...     "title": "Getting started with FastAPI",
        ...     "content": "...",
        ...     "tags": ["python", "web"],
        ... })
        >>> post["status"], post["slug"]
        ('pending', 'getting-started-with-fastapi')
    """
    content = _clean_content(
        {
            "title": data.get("title"),
            "content": data.get("content"),
            "excerpt": data.get("excerpt"),
            "coverImage": data.get("coverImage"),
            "category": data.get("category"),
            "tags": data.get("tags"),
            "authorAvatar": data.get("authorAvatar"),
        }
    )

    post_data = {
        **content,
        "authorId": principal.user_id,
        "authorName": (data.get("authorName") or "").strip() or principal.name or principal.email,
        "authorEmail": principal.email,
        "status": "pending",
        "views": 0,
        "likes": 0,
        "featured": False,
        "rejectionReason": None,
        "publishedAt": None,
    }

    try:
        post_data["slug"] = await _unique_slug(client, post_data["title"])
        await enforce_quota(client, principal.user_id)
        post = await client.documents.create_document(collections.BLOG, post_data)
        logger.info(f"Created blog post {post['$id']} by {principal.user_id} (pending review)")
        return post

    except AppwriteTimeoutError as e:
        raise _store_timeout("creating blog post", e)

    except AppwriteError as e:
        raise _store_failure("to create blog post", e)


async def _transition(
    client: AppwriteClient,
    principal: Principal,
    post_id: str,
    target: PostStatus,
    changes: Dict[str, Any],
) -> Dict[str, Any]:
    require_admin(principal, f"move blog post to {target}")

    try:
        post = await _get_post(client, post_id)
        current = post.get("status")
        if current not in TRANSITIONS[target]:
            logger.warning(f"Rejected transition of post {post_id}: {current} -> {target}")
            raise ConflictError(
                f"Cannot move a '{current}' post to '{target}'",
                error_code="INVALID_TRANSITION",
            )

        updated = await client.documents.update_document(
            collections.BLOG, post_id, {"status": target, **changes}
        )
        logger.info(f"Blog post {post_id} {current} -> {target} by {principal.user_id}")
        return updated

    except ServiceError:
        raise

    except AppwriteTimeoutError as e:
        raise _store_timeout("moderating blog post", e)

    except AppwriteError as e:
        raise _store_failure("to moderate blog post", e)


async def approve_post(
    client: AppwriteClient,
    principal: Principal,
    post_id: str,
) -> Dict[str, Any]:
    """
    Publish a pending post (admin only).

    Raises:
        AuthorizationError: If the caller is not an admin
        NotFoundError: POST_NOT_FOUND
        ConflictError: INVALID_TRANSITION if the post is not pending
    """
    return await _transition(
        client,
        principal,
        post_id,
        "published",
        {"publishedAt": datetime.now(timezone.utc).isoformat(), "rejectionReason": None},
    )


async def reject_post(
    client: AppwriteClient,
    principal: Principal,
    post_id: str,
    reason: str,
) -> Dict[str, Any]:
    """
    Reject a pending post with a reason shown to the author (admin only).

    Raises:
        AuthorizationError: If the caller is not an admin
        ValidationError: If the reason is not 10-500 characters
        NotFoundError: POST_NOT_FOUND
        ConflictError: INVALID_TRANSITION if the post is not pending
    """
    require_admin(principal, "reject blog post")

    if not REASON_MIN_LENGTH <= len((reason or "").strip()) <= REASON_MAX_LENGTH:
        raise ValidationError(
            f"Rejection reason must be {REASON_MIN_LENGTH}-{REASON_MAX_LENGTH} characters",
            details={"field": "reason"},
        )

    return await _transition(client, principal, post_id, "rejected", {"rejectionReason": reason})


async def update_post(
    client: AppwriteClient,
    principal: Principal,
    post_id: str,
    data: Dict[str, Any],
) -> Dict[str, Any]:
    """
    Update a post as its author or an admin.

    Moderation fields are dropped for non-admins. Content is re-validated,
    and a changed title regenerates the slug.

    Raises:
        NotFoundError: POST_NOT_FOUND
        AuthorizationError: NOT_POST_OWNER
        ValidationError: If nothing editable remains or content fails validation
        DependencyError: If the store fails
    """
    try:
        post = await _get_post(client, post_id)

        owner = is_owner(principal, post.get("authorId"), post.get("authorEmail"))
        if not owner and not principal.is_admin:
            logger.warning(f"User {principal.user_id} attempted to edit blog post {post_id}")
            raise AuthorizationError(
                "You can only edit your own posts", error_code="NOT_POST_OWNER"
            )

        changes = _clean_content({k: v for k, v in data.items() if k in EDITABLE_FIELDS})
        if "title" in changes:
            changes["slug"] = await _unique_slug(client, changes["title"], post_id)

        moderation = {k: v for k, v in data.items() if k in MODERATION_FIELDS}
        if moderation and not principal.is_admin:
            logger.info(
                f"Dropping moderation fields from author edit of {post_id}: "
                f"{', '.join(sorted(moderation))}"
            )
            moderation = {}
        if "status" in moderation and moderation["status"] not in POST_STATUSES:
            raise ValidationError(
                f"Unknown status '{moderation['status']}'", details={"field": "status"}
            )
        changes.update(moderation)

        if not changes:
            raise ValidationError("No editable fields provided", error_code="NO_CHANGES")

        updated = await client.documents.update_document(collections.BLOG, post_id, changes)
        logger.info(f"Updated blog post {post_id}: {', '.join(sorted(changes))}")
        return updated

    except ServiceError:
        raise

    except AppwriteTimeoutError as e:
        raise _store_timeout("updating blog post", e)

    except AppwriteError as e:
        raise _store_failure("to update blog post", e)


async def delete_post(client: AppwriteClient, principal: Principal, post_id: str) -> None:
    """Delete a post (admin only)."""
    require_admin(principal, "delete blog post")

    try:
        try:
            await client.documents.delete_document(collections.BLOG, post_id)
        except AppwriteNotFound:
            raise NotFoundError("Blog post not found", error_code="POST_NOT_FOUND")
        logger.info(f"Deleted blog post {post_id} by {principal.user_id}")

    except ServiceError:
        raise

    except AppwriteTimeoutError as e:
        raise _store_timeout("deleting blog post", e)

    except AppwriteError as e:
        raise _store_failure("to delete blog post", e)


async def set_featured(
    client: AppwriteClient,
    principal: Principal,
    post_id: str,
    featured: bool,
) -> Dict[str, Any]:
    """Toggle the featured flag of a post (admin only)."""
    require_admin(principal, "feature blog post")

    try:
        await _get_post(client, post_id)
        updated = await client.documents.update_document(
            collections.BLOG, post_id, {"featured": bool(featured)}
        )
        logger.info(f"Blog post {post_id} featured={bool(featured)}")
        return updated

    except ServiceError:
        raise

    except AppwriteTimeoutError as e:
        raise _store_timeout("featuring blog post", e)

    except AppwriteError as e:
        raise _store_failure("to update blog post", e)


async def view_post(
    client: AppwriteClient,
    post_id_or_slug: str,
    principal: Optional[Principal] = None,
) -> Dict[str, Any]:
    """
    Fetch a post by slug or ID and count the view.

    Unpublished posts are only visible to their author and admins; anyone
    else gets a not-found, so their existence is not revealed.

    Raises:
        NotFoundError: POST_NOT_FOUND
        DependencyError: If the store fails
    """
    try:
        # Posts created before slugs were de-duplicated may share one
        matches = await client.documents.query_documents(
            collections.BLOG, filter={"slug": post_id_or_slug}, limit=MAX_LIST_LIMIT
        )
        published = [p for p in matches if p.get("status") == "published"]
        if published:
            post = published[0]
        elif matches:
            post = matches[0]
        else:
            post = await _get_post(client, post_id_or_slug)

    except ServiceError:
        raise

    except AppwriteTimeoutError as e:
        raise _store_timeout("fetching blog post", e)

    except AppwriteError as e:
        raise _store_failure("to fetch blog post", e)

    if post.get("status") != "published":
        visible = principal is not None and (
            principal.is_admin or is_owner(principal, post.get("authorId"), post.get("authorEmail"))
        )
        if not visible:
            raise NotFoundError("Blog post not found", error_code="POST_NOT_FOUND")

    views = await increment_counter(client, collections.BLOG, post["$id"], "views")
    if views is not None:
        post = {**post, "views": views}
    return post


async def list_published_posts(
    client: AppwriteClient,
    category: Optional[str] = None,
    featured: Optional[bool] = None,
    limit: int = 20,
) -> List[Dict[str, Any]]:
    """
    List published posts, newest first.

    Raises:
        DependencyError: If the store fails
    """
    query_filter: Dict[str, Any] = {"status": "published"}
    if category:
        query_filter["category"] = category
    if featured is not None:
        query_filter["featured"] = featured

    try:
        return await client.documents.query_documents(
            collections.BLOG,
            filter=query_filter,
            limit=max(1, min(limit, MAX_LIST_LIMIT)),
            order_by="-publishedAt",
        )

    except AppwriteTimeoutError as e:
        raise _store_timeout("listing blog posts", e)

    except AppwriteError as e:
        raise _store_failure("to list blog posts", e)


async def list_posts_by_status(
    client: AppwriteClient,
    principal: Principal,
    status: Optional[str] = None,
    limit: int = MAX_LIST_LIMIT,
) -> List[Dict[str, Any]]:
    """
    Moderation queue: posts in ``status``, or all posts for None/"all" (admin only).

    Raises:
        AuthorizationError: If the caller is not an admin
        ValidationError: If the status is unknown
        DependencyError: If the store fails
    """
    require_admin(principal, "list blog posts for moderation")

    query_filter = None
    if status and status != "all":
        if status not in POST_STATUSES:
            raise ValidationError(f"Unknown status '{status}'", details={"field": "status"})
        query_filter = {"status": status}

    try:
        return await client.documents.query_documents(
            collections.BLOG,
            filter=query_filter,
            limit=max(1, min(limit, MAX_LIST_LIMIT)),
            order_by="-$createdAt",
        )

    except AppwriteTimeoutError as e:
        raise _store_timeout("listing blog posts", e)

    except AppwriteError as e:
        raise _store_failure("to list blog posts", e)
