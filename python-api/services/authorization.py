"""
Authorization Service

Resolves verified users into principals and decides admin privilege.

Admin privilege has two backing sources: a user label assigned in the
identity provider, and an email allow-list from configuration. Both sit
behind the AdminPolicy interface so callers only ever read
``principal.is_admin``.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from config import settings
from services.errors import AuthorizationError

# Configure logger
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Principal:
    """
    Verified caller identity handed to every coordinator operation.

    Attributes:
        user_id: Immutable user identifier
        email: Verified email address
        name: Display name
        labels: Identity-provider labels
        is_admin: Result of the admin policy at verification time
    """

    user_id: str
    email: str
    name: str = ""
    labels: tuple = field(default_factory=tuple)
    is_admin: bool = False


class AdminPolicy:
    """Decides whether a verified user holds admin privilege."""

    def is_admin(self, user: Dict[str, Any]) -> bool:
        raise NotImplementedError


class LabelAdminStrategy(AdminPolicy):
    """Grants admin to users carrying a specific label."""

    def __init__(self, label: str = "admin"):
        self.label = label

    def is_admin(self, user: Dict[str, Any]) -> bool:
        labels = user.get("labels") or []
        return self.label in labels


class EmailAllowListStrategy(AdminPolicy):
    """Grants admin to users whose verified email is on an allow-list."""

    def __init__(self, emails: Iterable[str]):
        self.emails = {email.strip().lower() for email in emails if email and email.strip()}

    def is_admin(self, user: Dict[str, Any]) -> bool:
        email = (user.get("email") or "").strip().lower()
        return bool(email) and email in self.emails


class AnyOfAdminPolicy(AdminPolicy):
    """Admin if any of the wrapped strategies grants it."""

    def __init__(self, strategies: List[AdminPolicy]):
        self.strategies = strategies

    def is_admin(self, user: Dict[str, Any]) -> bool:
        return any(strategy.is_admin(user) for strategy in self.strategies)


def build_admin_policy(
    label: Optional[str] = None,
    emails: Optional[Iterable[str]] = None,
) -> AdminPolicy:
    """
    Build the configured admin policy.

    Args:
        label: Admin label (defaults to settings.ADMIN_LABEL)
        emails: Email allow-list (defaults to settings.ADMIN_EMAILS)

    Returns:
        Policy combining the label and allow-list strategies

    Example:
        >>> policy = build_admin_policy(label="admin", emails=["ops@example.com"])
        >>> policy.is_admin({"email": "OPS@example.com", "labels": []})
        True
    """
    strategies: List[AdminPolicy] = [LabelAdminStrategy(label or settings.ADMIN_LABEL)]
    allow_list = list(emails) if emails is not None else settings.admin_emails
    if allow_list:
        strategies.append(EmailAllowListStrategy(allow_list))
    return AnyOfAdminPolicy(strategies)


def principal_from_user(user: Dict[str, Any], policy: Optional[AdminPolicy] = None) -> Principal:
    """
    Build a Principal from a verified user payload.

    Args:
        user: Verifier payload with "$id", "email", "name", "labels"
        policy: Admin policy (defaults to build_admin_policy())

    Returns:
        Principal for the caller
    """
    policy = policy or build_admin_policy()
    return Principal(
        user_id=str(user.get("$id") or user.get("id") or ""),
        email=user.get("email") or "",
        name=user.get("name") or "",
        labels=tuple(user.get("labels") or ()),
        is_admin=policy.is_admin(user),
    )


def require_admin(principal: Principal, action: str) -> None:
    """
    Ensure the caller is an admin.

    Args:
        principal: Verified caller
        action: Description of the privileged action (for logs)

    Raises:
        AuthorizationError: If the caller is not an admin
    """
    if not principal.is_admin:
        logger.warning(
            f"Authorization failed: User {principal.user_id} attempted '{action}' "
            "without admin privilege"
        )
        raise AuthorizationError(
            "Admin access required",
            error_code="ADMIN_REQUIRED",
        )


def is_owner(principal: Principal, author_id: Optional[str], author_email: Optional[str]) -> bool:
    """
    Check whether the caller authored a document.

    Ownership keys on the immutable author ID. Documents written before
    author IDs were stored fall back to comparing the verified email.
    """
    if author_id:
        return author_id == principal.user_id
    if author_email and principal.email:
        return author_email.strip().lower() == principal.email.strip().lower()
    return False
