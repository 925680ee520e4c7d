"""
Process-wide Appwrite client for FastAPI dependencies.
"""

from functools import lru_cache

from config import settings
from .client import AppwriteClient


@lru_cache(maxsize=1)
def get_appwrite_client() -> AppwriteClient:
    """
    Return the shared Appwrite client, building it on first use.

    One client per process keeps a single httpx connection pool; it holds
    no per-request state. ``main.shutdown_event`` closes it.

    Raises:
        ValueError: If APPWRITE_PROJECT_ID, APPWRITE_API_KEY or
            APPWRITE_DATABASE_ID is not configured. Nothing is cached in
            that case, so the next call tries again.
    """
    return AppwriteClient(
        endpoint=settings.APPWRITE_ENDPOINT,
        project_id=settings.APPWRITE_PROJECT_ID,
        api_key=settings.APPWRITE_API_KEY,
        database_id=settings.APPWRITE_DATABASE_ID,
        timeout=settings.APPWRITE_TIMEOUT,
    )
