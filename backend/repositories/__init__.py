"""
Repository pattern implementation for data access layer.
"""

from .base import BaseRepository
from .consent_log_repository import ConsentLogRepository

__all__ = [
    "BaseRepository",
    "ConsentLogRepository",
]
