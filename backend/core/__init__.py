"""Core infrastructure: correlation IDs, logging, Sentry and scheduled jobs."""

from core.correlation import (
    correlation_id_var,
    generate_correlation_id,
    get_correlation_id,
    resolve_correlation_id,
    set_correlation_id,
)
from core.logging_config import configure_logging
from core.sentry_config import init_sentry

__all__ = [
    "configure_logging",
    "correlation_id_var",
    "generate_correlation_id",
    "get_correlation_id",
    "init_sentry",
    "resolve_correlation_id",
    "set_correlation_id",
]
