"""
Loguru logging configuration with Sentry integration.

Features:
- Console logging for development, JSON everywhere else
- Rotating file sink (not in tests)
- Correlation ID in all log messages
"""

import sys
from pathlib import Path
from typing import TYPE_CHECKING

from loguru import logger

from core.correlation import get_correlation_id

if TYPE_CHECKING:
    from loguru import Record

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[correlation_id]}</cyan> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)


def correlation_filter(record: "Record") -> bool:
    """
    Add correlation ID to log record.

    Args:
        record: Loguru log record.

    Returns:
        Always True (filter never drops messages).
    """
    record["extra"]["correlation_id"] = get_correlation_id() or "-"
    return True


def configure_logging(environment: str = "development", logs_dir: str = "logs") -> None:
    """
    Configure Loguru for the application.

    Args:
        environment: "development" for colored console output; anything else
            logs JSON. "test" skips the file sink.
        logs_dir: Directory for the rotating log file.
    """
    logger.remove()

    is_development = environment == "development"

    if is_development:
        logger.add(
            sys.stderr,
            format=LOG_FORMAT,
            level="DEBUG",
            filter=correlation_filter,
            colorize=True,
        )
    else:
        # JSON format (machine-parseable)
        logger.add(
            sys.stderr,
            format="{message}",
            level="INFO",
            filter=correlation_filter,
            serialize=True,
        )

    if environment == "test":
        return

    log_path = Path(logs_dir)
    log_path.mkdir(parents=True, exist_ok=True)

    logger.add(
        str(log_path / "app.log"),
        format=LOG_FORMAT if is_development else "{message}",
        level="INFO",
        filter=correlation_filter,
        rotation="10 MB",
        retention="7 days",
        serialize=not is_development,
    )
