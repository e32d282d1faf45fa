"""
Request utilities for extracting client information.

Provides the client IP lookup used as the rate-limit and consent key,
handling proxy headers correctly.
"""

from starlette.requests import Request

UNKNOWN_CLIENT_IP = "unknown"


def get_client_ip(request: Request) -> str:
    """
    Extract the client's IP address from proxy headers.

    Handles proxy headers in order of precedence:
    1. X-Forwarded-For (first comma-separated entry, trimmed)
    2. X-Real-IP

    The socket peer address is deliberately not consulted: behind the
    hosting proxy it is always the proxy itself. Requests that carry neither
    header share the "unknown" key, so proxy-stripped traffic shares one
    rate-limit bucket.

    Args:
        request: Starlette/FastAPI request object

    Returns:
        Client IP address, or "unknown"
    """
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        # First IP in the list is the original client
        first_ip = forwarded_for.split(",")[0].strip()
        return first_ip or UNKNOWN_CLIENT_IP

    real_ip = request.headers.get("x-real-ip")
    if real_ip and real_ip.strip():
        return real_ip.strip()

    return UNKNOWN_CLIENT_IP
