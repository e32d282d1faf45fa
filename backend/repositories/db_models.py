"""
Database models using SQLAlchemy 2.0 style with Mapped type hints.
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from repositories.database import Base


def _utc_now() -> datetime:
    """Return current UTC datetime (timezone-aware)."""
    return datetime.now(timezone.utc)


class ConsentLog(Base):
    """
    Latest cookie-consent choice per visitor.

    GDPR accountability record. Visitors are keyed by a truncated SHA-256
    of their IP, never the raw address; a visitor's newer choice replaces
    the older one. Rows past ``expires_at`` are purged by a scheduled job.
    """

    __tablename__ = "consent_logs"
    __table_args__ = (Index("ix_consent_logs_expires_at", "expires_at"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    ip_hash: Mapped[str] = mapped_column(
        String(16), unique=True, nullable=False, comment="sha256(ip)[:16]"
    )
    action: Mapped[str] = mapped_column(
        String(20), nullable=False, comment="Action: 'accepted', 'declined'"
    )
    policy_version: Mapped[str] = mapped_column(
        String(20), nullable=False, comment="Version of policy at time of action"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now, nullable=False
    )
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
