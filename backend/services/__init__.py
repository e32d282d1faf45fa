"""
Services layer for business logic.

This package contains service modules that encapsulate business logic
separate from the API routes.
"""

from .consent_service import ConsentService
from .contact_service import ContactService
from .email_service import EmailDispatcher
from .rate_limit_service import FixedWindowRateLimiter

__all__ = [
    "ConsentService",
    "ContactService",
    "EmailDispatcher",
    "FixedWindowRateLimiter",
]
