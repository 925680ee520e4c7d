"""
Blog Submission Rate Limiting

Stateless rolling-window quota: every check counts the caller's blog
posts created in the trailing window straight from the document store.
Nothing is persisted or cached between calls, so any number of API
instances agree on the count without sharing state.

Concurrent creations near the boundary can each observe a stale count and
all succeed; the quota is best-effort under bursts.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from config import settings
from integrations.appwrite.client import AppwriteClient
from services import collections
from services.errors import RateLimitedError

# Configure logger
logger = logging.getLogger(__name__)

BLOG_SUBMISSION_LIMIT = settings.BLOG_SUBMISSION_LIMIT
RATE_LIMIT_WINDOW = timedelta(hours=settings.BLOG_RATE_LIMIT_WINDOW_HOURS)


@dataclass(frozen=True)
class QuotaStatus:
    """Result of a quota check."""

    allowed: bool
    remaining: int
    limit: int = BLOG_SUBMISSION_LIMIT
    window_hours: int = settings.BLOG_RATE_LIMIT_WINDOW_HOURS


async def count_recent_posts(
    client: AppwriteClient,
    user_id: str,
    now: Optional[datetime] = None,
) -> int:
    """
    Count blog posts authored by ``user_id`` inside the trailing window.

    Args:
        client: Appwrite client instance
        user_id: Author ID
        now: Reference time (defaults to the current UTC time)

    Returns:
        Number of posts with ``$createdAt >= now - window``

    Raises:
        AppwriteError: If the count query fails
    """
    now = now or datetime.now(timezone.utc)
    since = now - RATE_LIMIT_WINDOW

    return await client.documents.count_documents(
        collections.BLOG,
        filter={
            "authorId": user_id,
            "$createdAt": {"$gte": since.isoformat()},
        },
    )


async def check_quota(
    client: AppwriteClient,
    user_id: str,
    now: Optional[datetime] = None,
) -> QuotaStatus:
    """
    Check whether a user may submit another blog post.

    Fails closed: if the count cannot be read the quota is reported as
    exhausted.

    Args:
        client: Appwrite client instance
        user_id: Author ID
        now: Reference time (defaults to the current UTC time)

    Returns:
        QuotaStatus with ``allowed`` and ``remaining``

    Example:
        >>> status = await check_quota(client, "user-123")
        >>> status.allowed, status.remaining
        (True, 3)
    """
    try:
        count = await count_recent_posts(client, user_id, now=now)
    except Exception as e:
        # Fail closed
        logger.error(
            f"Failed to count recent posts for user {user_id}, denying submission: {str(e)}",
            extra={"event": "quota_check_failed", "user_id": user_id},
        )
        return QuotaStatus(allowed=False, remaining=0)

    return QuotaStatus(
        allowed=count < BLOG_SUBMISSION_LIMIT,
        remaining=max(0, BLOG_SUBMISSION_LIMIT - count),
    )


async def enforce_quota(
    client: AppwriteClient,
    user_id: str,
    now: Optional[datetime] = None,
) -> QuotaStatus:
    """
    Raise if the user has exhausted their submission quota.

    Returns:
        QuotaStatus when the submission is allowed

    Raises:
        RateLimitedError: 429 when the quota is exhausted or cannot be verified
    """
    status = await check_quota(client, user_id, now=now)
    if not status.allowed:
        logger.warning(
            f"Blog submission quota exceeded for user {user_id}",
            extra={"event": "rate_limit_exceeded", "user_id": user_id},
        )
        raise RateLimitedError(
            f"Rate limit exceeded. You have {status.remaining} submissions remaining. "
            "Try again later.",
            details={
                "remaining": status.remaining,
                "limit": status.limit,
                "window_hours": status.window_hours,
            },
        )
    return status
