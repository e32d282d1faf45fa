"""
Pytest configuration and fixtures for backend tests.
"""

import json
import os
import sys
from datetime import datetime, timezone
from pathlib import Path

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Add backend directory to path for imports
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

# Set test environment variables before importing config
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["CORS_ORIGINS"] = "http://localhost:3000"
os.environ["CONTACT_EMAIL"] = "owner@test.com"
os.environ["EMAIL_PROVIDER"] = "resend"
os.environ["RESEND_API_KEY"] = "re_test_key"  # pragma: allowlist secret
os.environ.pop("SENTRY_DSN", None)

from helpers.language import Locale  # noqa: E402
from models.exceptions import EmailProviderError  # noqa: E402
from models.schemas import ValidatedSubmission  # noqa: E402
from repositories.database import Base, get_db  # noqa: E402
from services.chat_service import OpenAIChatClient, get_chat_client  # noqa: E402
from services.email_service import (  # noqa: E402
    EmailDispatcher,
    EmailProvider,
    get_email_dispatcher,
)
import repositories.db_models as db_models  # noqa: E402,F401

OWNER_EMAIL = "owner@test.com"

# Test database engine (in-memory SQLite)
TEST_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class RecordingProvider(EmailProvider):
    """Email provider that records every send and fails for chosen recipients."""

    name = "recording"

    def __init__(self) -> None:
        self.sent = []
        self.attempts = []
        self.fail_for: set[str] = set()

    async def send(self, email) -> None:
        self.attempts.append(email)
        if email.to in self.fail_for:
            raise EmailProviderError(f"rejected recipient {email.to}")
        self.sent.append(email)


class FakeChatAPI:
    """Stands in for the chat completions endpoint and records each request."""

    def __init__(self) -> None:
        self.requests: list[dict] = []
        self.status_code = 200
        self.content = "Posso aiutarti a integrare l'AI nei processi della tua azienda."

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(json.loads(request.content))
        if self.status_code != 200:
            return httpx.Response(
                self.status_code, json={"error": {"type": "server_error"}}
            )
        return httpx.Response(
            200,
            json={
                "choices": [{"message": {"role": "assistant", "content": self.content}}],
                "usage": {"total_tokens": 42},
            },
        )


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh in-memory database session for each test."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db(db_session):
    """Alias for db_session."""
    return db_session


@pytest.fixture
def email_provider() -> RecordingProvider:
    """Recording provider that accepts every email by default."""
    return RecordingProvider()


@pytest.fixture
def dispatcher(email_provider) -> EmailDispatcher:
    """Dispatcher bound to the recording provider."""
    return EmailDispatcher(email_provider)


@pytest.fixture
def chat_api() -> FakeChatAPI:
    """Fake completions API that answers every request by default."""
    return FakeChatAPI()


@pytest.fixture
def chat_client(chat_api) -> OpenAIChatClient:
    """Chat client routed to the fake completions API."""
    return OpenAIChatClient(
        api_key="sk-test",  # pragma: allowlist secret
        transport=httpx.MockTransport(chat_api.handler),
    )


@pytest.fixture(autouse=True)
def reset_rate_limiters():
    """Start every test with empty rate-limit state."""
    from helpers.rate_limiter import limiter
    from services.rate_limit_service import chat_rate_limiter, contact_rate_limiter

    limiter.reset()
    contact_rate_limiter.reset()
    chat_rate_limiter.reset()
    yield
    contact_rate_limiter.reset()
    chat_rate_limiter.reset()


@pytest.fixture(scope="function")
def client(db_session, dispatcher, chat_client):
    """Create a test client with database, email and chat dependencies overridden."""
    from main import app

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_email_dispatcher] = lambda: dispatcher
    app.dependency_overrides[get_chat_client] = lambda: chat_client
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def valid_payload() -> dict:
    """A contact form body that passes validation."""
    return {
        "name": "Mario Rossi",
        "email": "mario@example.com",
        "company": "Rossi Srl",
        "message": "Vorrei informazioni sui vostri servizi di consulenza.",
        "privacy": True,
        "locale": "it",
    }


@pytest.fixture
def submission() -> ValidatedSubmission:
    """A validated submission submitted at a fixed time."""
    return ValidatedSubmission(
        name="Mario Rossi",
        email="mario@example.com",
        company="Rossi & Figli",
        message="Vorrei informazioni <subito>.",
        consent=True,
        locale=Locale.IT,
        submitted_at=datetime(2026, 3, 14, 9, 5, tzinfo=timezone.utc),
    )
