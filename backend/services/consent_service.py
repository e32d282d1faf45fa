"""
Cookie consent audit logging for GDPR accountability.

Records the visitor's latest cookie-banner choice under a non-reversible
IP key, with a 13-month retention period. Logging is best-effort: a storage
failure is logged and never reaches the visitor.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from helpers.ip_utils import hash_ip
from models.config import settings
from models.schemas import ConsentAction
from repositories.consent_log_repository import ConsentLogRepository


class ConsentService:
    """Service for recording and expiring cookie consent choices."""

    @staticmethod
    def record_choice(
        db: Session,
        client_ip: str,
        action: ConsentAction,
        now: Optional[datetime] = None,
    ) -> bool:
        """
        Store the visitor's consent choice, replacing any earlier one.

        Args:
            db: Database session
            client_ip: Client IP (hashed before storage)
            action: The banner choice
            now: Time of the choice (defaults to current UTC time)

        Returns:
            True if stored, False if storage failed (already logged)
        """
        now = now or datetime.now(timezone.utc)
        expires_at = now + timedelta(days=settings.CONSENT_LOG_TTL_DAYS)
        ip_hash = hash_ip(client_ip)

        repo = ConsentLogRepository(db)
        try:
            repo.upsert(
                ip_hash=ip_hash,
                action=action.value,
                policy_version=settings.CONSENT_POLICY_VERSION,
                created_at=now,
                expires_at=expires_at,
            )
        except SQLAlchemyError as e:
            repo.rollback()
            logger.error(f"Consent log storage failed for {ip_hash}: {e}")
            return False

        logger.debug(f"Consent '{action.value}' recorded for {ip_hash}")
        return True

    @staticmethod
    def purge_expired(db: Session, now: Optional[datetime] = None) -> int:
        """
        Delete consent records past their retention period.

        Returns:
            Number of deleted records
        """
        now = now or datetime.now(timezone.utc)
        deleted = ConsentLogRepository(db).delete_expired(now)
        if deleted:
            logger.info(f"Purged {deleted} expired consent log records")
        return deleted
