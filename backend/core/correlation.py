"""
Correlation ID generation and context management.

Every request carries a short ID that appears in log lines, Sentry tags and
the X-Correlation-ID response header, so a visitor reporting a failed
submission can be matched to the server-side trace.
"""

import re
import uuid
from contextvars import ContextVar

# Context variable for request-scoped correlation ID
correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")

# IDs accepted from the X-Correlation-ID request header
_INCOMING_ID_PATTERN = re.compile(r"^[A-Za-z0-9-]{1,64}$")


def generate_correlation_id() -> str:
    """
    Generate a short, unique correlation ID.

    Format: 8 lowercase hex characters (e.g., "abc123de").

    Returns:
        8-character hexadecimal string.
    """
    return uuid.uuid4().hex[:8]


def resolve_correlation_id(incoming: str | None) -> str:
    """
    Pick the correlation ID for a request.

    A header value from the frontend is reused when it is short and made of
    letters, digits and dashes; anything else is replaced by a fresh ID so
    arbitrary client text never reaches the logs or response headers.

    Args:
        incoming: Raw X-Correlation-ID header value, if any.

    Returns:
        The ID to use for this request.
    """
    if incoming and _INCOMING_ID_PATTERN.match(incoming):
        return incoming
    return generate_correlation_id()


def get_correlation_id() -> str:
    """Correlation ID of the current request context, or "" outside a request."""
    return correlation_id_var.get()


def set_correlation_id(correlation_id: str) -> None:
    """Set correlation ID for current request context."""
    correlation_id_var.set(correlation_id)
