"""
Resend Integration Package

Provides an async client for transactional email delivery.
"""

from .client import EmailDeliveryError, ResendClient

__all__ = ["ResendClient", "EmailDeliveryError"]
