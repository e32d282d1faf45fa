"""Rate limiter configuration module.

This module is separate from main.py to avoid circular imports when routers
need to access the limiter.

This is the decorator-style limiter for simple public endpoints. The contact
form uses its own fixed-window limiter (services.rate_limit_service) because
its remaining count is reported back to the client.
"""

from slowapi import Limiter

from helpers.request_utils import get_client_ip

# Create rate limiter - imported by routers and main.py
limiter = Limiter(key_func=get_client_ip)
