"""
Consent Log Repository for GDPR accountability.

Stores the latest cookie-banner choice per hashed visitor IP.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

import repositories.db_models as db_models

from .base import BaseRepository


class ConsentLogRepository(BaseRepository[db_models.ConsentLog]):
    """Repository for consent log operations."""

    def __init__(self, db: Session):
        """
        Initialize consent log repository.

        Args:
            db: Database session
        """
        super().__init__(db_models.ConsentLog, db)

    def get_by_ip_hash(self, ip_hash: str) -> Optional[db_models.ConsentLog]:
        """
        Get the consent record for a hashed IP.

        Args:
            ip_hash: Truncated SHA-256 of the client IP

        Returns:
            ConsentLog if one exists, None otherwise
        """
        return (
            self.db.query(db_models.ConsentLog)
            .filter(db_models.ConsentLog.ip_hash == ip_hash)
            .first()
        )

    def upsert(
        self,
        ip_hash: str,
        action: str,
        policy_version: str,
        created_at: datetime,
        expires_at: datetime,
    ) -> db_models.ConsentLog:
        """
        Create or replace the consent record for a hashed IP.

        Args:
            ip_hash: Truncated SHA-256 of the client IP
            action: 'accepted' or 'declined'
            policy_version: Cookie policy version shown to the visitor
            created_at: When the choice was made
            expires_at: When the record may be purged

        Returns:
            The stored ConsentLog
        """
        log = self.get_by_ip_hash(ip_hash)
        if log is None:
            return self.save(
                db_models.ConsentLog(
                    ip_hash=ip_hash,
                    action=action,
                    policy_version=policy_version,
                    created_at=created_at,
                    expires_at=expires_at,
                )
            )

        log.action = action
        log.policy_version = policy_version
        log.created_at = created_at
        log.expires_at = expires_at
        return self.save(log)

    def delete_expired(self, now: datetime) -> int:
        """
        Delete consent records whose retention period has ended.

        Args:
            now: Reference time (records with expires_at <= now are removed)

        Returns:
            Number of deleted records
        """
        deleted_count = (
            self.db.query(db_models.ConsentLog)
            .filter(db_models.ConsentLog.expires_at <= now)
            .delete(synchronize_session=False)
        )
        self.db.commit()
        return deleted_count
