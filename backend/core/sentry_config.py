"""
Sentry SDK configuration with privacy-compliant settings.

Implements:
- Environment-based initialization
- PII scrubbing for GDPR compliance (contact submissions never leave the server)
- Sampling that skips health checks
- Loguru integration
"""

import os
from typing import Any

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.loguru import LoguruIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration
from sentry_sdk.types import Event, Hint

HEALTH_CHECK_PATHS = ("/health", "/api/health")


def _before_send(event: Event, hint: Hint) -> Event | None:
    """
    Scrub PII before sending to Sentry.

    - Remove email addresses and usernames
    - Anonymize IP addresses
    - Drop cookies, request bodies and the Authorization header

    Args:
        event: Sentry event.
        hint: Additional context about the event.

    Returns:
        Modified event with PII removed.
    """
    user = event.get("user")
    if user:
        user.pop("email", None)
        user.pop("username", None)
        if "ip_address" in user:
            user["ip_address"] = "{{auto}}"  # Anonymized by Sentry

    request = event.get("request")
    if request and isinstance(request, dict):
        request.pop("cookies", None)
        # Contact form bodies hold names, emails and messages
        request.pop("data", None)
        headers = request.get("headers")
        if isinstance(headers, dict):
            for name in list(headers):
                if name.lower() == "authorization":
                    headers[name] = "[Filtered]"

    return event


def _before_send_transaction(event: Event, hint: Hint) -> Event | None:
    """Drop health check transactions."""
    transaction_name = event.get("transaction", "")
    if transaction_name in [*HEALTH_CHECK_PATHS, "GET /health", "GET /api/health"]:
        return None
    return event


def _traces_sampler(sampling_context: dict[str, Any]) -> float:
    """
    Dynamic sampling based on endpoint and context.

    Args:
        sampling_context: Context about the request being sampled.

    Returns:
        Sample rate between 0.0 and 1.0.
    """
    if sampling_context.get("parent_sampled") is True:
        return 1.0

    asgi_scope = sampling_context.get("asgi_scope", {})
    path = asgi_scope.get("path", "")

    if path in HEALTH_CHECK_PATHS:
        return 0.0

    # Lead capture is the endpoint that matters
    if path.startswith("/api/contact"):
        return 1.0

    return 0.2


def init_sentry() -> bool:
    """
    Initialize Sentry SDK with FastAPI integration.

    Call this BEFORE creating the FastAPI app instance.
    Sentry is disabled if SENTRY_DSN environment variable is not set.

    Returns:
        True if Sentry was initialized.
    """
    dsn = os.getenv("SENTRY_DSN")

    if not dsn:
        return False

    sentry_sdk.init(
        dsn=dsn,
        environment=os.getenv("ENVIRONMENT", "development"),
        release=os.getenv("SENTRY_RELEASE", "unknown"),
        # Privacy: Do NOT send PII automatically
        send_default_pii=False,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            SqlalchemyIntegration(),
            LoguruIntegration(),
        ],
        traces_sampler=_traces_sampler,
        sample_rate=1.0,
        before_send=_before_send,
        before_send_transaction=_before_send_transaction,
        attach_stacktrace=True,
        max_breadcrumbs=50,
        ignore_errors=[
            KeyboardInterrupt,
            SystemExit,
        ],
    )
    return True
