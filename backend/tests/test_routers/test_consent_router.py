"""Tests for the cookie consent log endpoint."""

from unittest.mock import patch

from sqlalchemy.exc import OperationalError

from helpers.ip_utils import hash_ip
from models.config import settings
from repositories.consent_log_repository import ConsentLogRepository

CLIENT_HEADERS = {"X-Forwarded-For": "203.0.113.10"}


class TestConsentLog:
    """Tests for POST /api/consent-log."""

    def test_records_choice(self, client, db_session) -> None:
        """A valid choice is stored under the hashed IP."""
        response = client.post(
            "/api/consent-log", json={"action": "accepted"}, headers=CLIENT_HEADERS
        )

        assert response.status_code == 200
        assert response.json() == {"ok": True}
        log = ConsentLogRepository(db_session).get_by_ip_hash(hash_ip("203.0.113.10"))
        assert log is not None
        assert log.action == "accepted"
        assert log.policy_version == settings.CONSENT_POLICY_VERSION

    def test_newer_choice_replaces_older(self, client, db_session) -> None:
        """One record per visitor, holding the latest choice."""
        client.post("/api/consent-log", json={"action": "accepted"}, headers=CLIENT_HEADERS)
        client.post("/api/consent-log", json={"action": "declined"}, headers=CLIENT_HEADERS)

        repo = ConsentLogRepository(db_session)
        assert repo.count() == 1
        assert repo.get_by_ip_hash(hash_ip("203.0.113.10")).action == "declined"

    def test_raw_ip_not_stored(self, client, db_session) -> None:
        """Only the hash is persisted."""
        client.post("/api/consent-log", json={"action": "accepted"}, headers=CLIENT_HEADERS)
        log = ConsentLogRepository(db_session).get_by_ip_hash(hash_ip("203.0.113.10"))
        assert "203.0.113.10" not in log.ip_hash

    def test_invalid_json(self, client) -> None:
        """Malformed bodies are rejected."""
        response = client.post(
            "/api/consent-log",
            content=b"nope",
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid JSON"}

    def test_invalid_action(self, client, db_session) -> None:
        """Unknown actions are rejected and nothing is stored."""
        for body in ({"action": "maybe"}, {}, ["accepted"]):
            response = client.post("/api/consent-log", json=body)
            assert response.status_code == 400
            assert response.json() == {"error": "Invalid action"}
        assert ConsentLogRepository(db_session).count() == 0

    def test_disabled_accepts_anything(self, client, db_session) -> None:
        """When disabled, the body is not read and nothing is stored."""
        with patch.object(settings, "CONSENT_LOG_ENABLED", False):
            response = client.post(
                "/api/consent-log",
                content=b"nope",
                headers={"Content-Type": "application/json"},
            )
        assert response.status_code == 200
        assert response.json() == {"ok": True}
        assert ConsentLogRepository(db_session).count() == 0

    def test_storage_failure_still_ok(self, client) -> None:
        """Storage is best-effort."""
        with patch.object(
            ConsentLogRepository,
            "upsert",
            side_effect=OperationalError("INSERT", {}, Exception("disk full")),
        ):
            response = client.post(
                "/api/consent-log", json={"action": "declined"}, headers=CLIENT_HEADERS
            )
        assert response.status_code == 200
        assert response.json() == {"ok": True}
