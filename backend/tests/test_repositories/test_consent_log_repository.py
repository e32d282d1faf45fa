"""Tests for ConsentLogRepository."""

from datetime import datetime, timedelta, timezone

from repositories.consent_log_repository import ConsentLogRepository

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def naive(value: datetime) -> datetime:
    """SQLite returns naive datetimes; compare in UTC without tzinfo."""
    return value.replace(tzinfo=None)


class TestConsentLogRepository:
    """Test cases for ConsentLogRepository."""

    def test_upsert_creates_record(self, db_session):
        """First choice for a visitor creates a record."""
        repo = ConsentLogRepository(db_session)
        log = repo.upsert(
            ip_hash="a1b2c3d4e5f60718",
            action="accepted",
            policy_version="2026-02-11",
            created_at=NOW,
            expires_at=NOW + timedelta(days=390),
        )

        assert log.id is not None
        assert repo.get_by_ip_hash("a1b2c3d4e5f60718").action == "accepted"

    def test_upsert_replaces_existing(self, db_session):
        """A later choice overwrites the earlier one in place."""
        repo = ConsentLogRepository(db_session)
        first = repo.upsert("a1b2c3d4e5f60718", "accepted", "v1", NOW, NOW + timedelta(days=1))
        later = NOW + timedelta(hours=2)
        second = repo.upsert("a1b2c3d4e5f60718", "declined", "v2", later, later + timedelta(days=1))

        assert second.id == first.id
        assert repo.count() == 1
        log = repo.get_by_ip_hash("a1b2c3d4e5f60718")
        assert log.action == "declined"
        assert log.policy_version == "v2"
        assert naive(log.created_at) == naive(later)

    def test_get_by_ip_hash_missing(self, db_session):
        """Unknown hashes return None."""
        assert ConsentLogRepository(db_session).get_by_ip_hash("0000000000000000") is None

    def test_delete_expired(self, db_session):
        """Only records at or past expiry are deleted."""
        repo = ConsentLogRepository(db_session)
        repo.upsert("expired000000000", "accepted", "v1", NOW, NOW - timedelta(days=1))
        repo.upsert("boundary00000000", "accepted", "v1", NOW, NOW)
        repo.upsert("live000000000000", "declined", "v1", NOW, NOW + timedelta(days=1))

        assert repo.delete_expired(NOW) == 2
        assert repo.count() == 1
        assert repo.get_by_ip_hash("live000000000000") is not None
