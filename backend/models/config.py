import os
import sys
from typing import Annotated, List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def _should_load_env_file() -> str | None:
    """Determine if .env should be loaded.

    For local development, load `.env` automatically so the email provider
    credentials can be provided from `backend/.env` (convenience).

    Do NOT auto-load `.env` when running under pytest or in CI (so tests
    that validate missing configuration keep failing fast).
    """
    if any("pytest" in str(x) for x in sys.argv if x):
        return None
    if os.environ.get("CI") in ("1", "true", "True"):
        return None
    return ".env"


class Settings(BaseSettings):
    # Environment configuration
    ENVIRONMENT: str = Field(
        default="development",
        description="Environment: 'development', 'staging', 'production' or 'test'",
    )

    CORS_ORIGINS: Annotated[List[str], NoDecode] = Field(
        default=["http://localhost:3000"],
        description="Allowed CORS origins (comma-separated in env var)",
    )

    # Performance settings
    SLOW_REQUEST_THRESHOLD: float = Field(
        default=1.0,
        description="Log warning for requests slower than this (seconds)",
    )

    # Contact form delivery
    # Both values are optional at startup; the contact pipeline checks them
    # per request and answers 500 when either is missing.
    CONTACT_EMAIL: str | None = Field(
        default=None,
        description="Destination address for lead notifications",
    )
    EMAIL_PROVIDER: str = Field(
        default="resend",
        description="Email provider: 'resend' or 'console'",
    )
    RESEND_API_KEY: str | None = Field(
        default=None,
        description="Resend API key (required when EMAIL_PROVIDER is 'resend')",
    )
    RESEND_API_URL: str = Field(
        default="https://api.resend.com/emails",
        description="Resend send endpoint",
    )
    EMAIL_FROM_ADDRESS: str = Field(
        default="noreply@theaiandbeyond.com",
        description="From email address",
    )
    EMAIL_FROM_NAME: str = Field(
        default="The AI and Beyond",
        description="From display name",
    )
    EMAIL_TIMEOUT_SECONDS: float = Field(
        default=10.0,
        description="HTTP timeout for a single send call; a timeout counts as a failed send",
    )

    # Contact form rate limiting (fixed window, per client IP)
    CONTACT_RATE_LIMIT_MAX_REQUESTS: int = Field(
        default=3,
        description="Maximum admitted contact submissions per IP per window",
    )
    CONTACT_RATE_LIMIT_WINDOW_SECONDS: int = Field(
        default=15 * 60,
        description="Length of the contact rate-limit window in seconds",
    )
    RATE_LIMIT_SWEEP_INTERVAL_MINUTES: int = Field(
        default=5,
        description="How often expired rate-limit windows are swept from memory",
    )

    # AI chat assistant
    # A missing API key makes the chat answer 503; the rest of the API is unaffected.
    OPENAI_API_KEY: str | None = Field(
        default=None,
        description="OpenAI API key for the chat assistant",
    )
    OPENAI_API_URL: str = Field(
        default="https://api.openai.com/v1/chat/completions",
        description="Chat completions endpoint",
    )
    CHAT_MODEL: str = Field(default="gpt-4o-mini")
    CHAT_MAX_TOKENS: int = Field(default=150)
    CHAT_TEMPERATURE: float = Field(default=0.7)
    CHAT_TIMEOUT_SECONDS: float = Field(
        default=15.0,
        description="HTTP timeout for one completion call; a timeout answers 503",
    )
    CHAT_MAX_MESSAGES_PER_WINDOW: int = Field(
        default=10,
        description="Chat messages accepted per client IP per window",
    )
    CHAT_RATE_LIMIT_WINDOW_SECONDS: int = Field(
        default=60,
        description="Length of the per-IP chat window in seconds",
    )
    CHAT_MAX_MESSAGES_PER_SESSION: int = Field(
        default=50,
        description="Total messages per chat session before it is closed",
    )
    CHAT_SESSION_TIMEOUT_SECONDS: int = Field(
        default=30 * 60,
        description="Idle chat sessions are forgotten after this many seconds",
    )

    # Branding used by email templates
    SITE_NAME: str = Field(default="The AI and Beyond")
    SITE_URL: str = Field(default="https://theaiandbeyond.it")
    PUBLIC_CONTACT_EMAIL: str = Field(
        default="info@theaiandbeyond.it",
        description="Address shown to submitters in the thank-you email",
    )
    EMAIL_TIMEZONE: str = Field(
        default="Europe/Rome",
        description="Time zone used to render submission timestamps",
    )

    # Cookie consent logging (GDPR audit trail)
    DATABASE_URL: str = "sqlite:///./data/consent.db"
    DB_POOL_SIZE: int = Field(
        default=5,
        description="Number of persistent connections in pool",
    )
    DB_MAX_OVERFLOW: int = Field(
        default=10,
        description="Extra connections when pool exhausted",
    )
    DB_POOL_TIMEOUT: int = Field(
        default=30,
        description="Seconds to wait for connection from pool",
    )
    DB_POOL_RECYCLE: int = Field(
        default=1800,
        description="Recycle connections after N seconds (30 min default)",
    )
    CONSENT_LOG_ENABLED: bool = Field(
        default=True,
        description="When false, consent-log requests succeed without storing anything",
    )
    CONSENT_POLICY_VERSION: str = Field(
        default="2026-02-11",
        description="Version of the cookie policy recorded with each consent",
    )
    CONSENT_LOG_TTL_DAYS: int = Field(
        default=13 * 30,
        description="Consent records expire after 13 months (12 months validity + 1 month margin)",
    )
    CONSENT_LOG_RATE_LIMIT: str = Field(
        default="30/minute",
        description="slowapi limit string for the consent-log endpoint",
    )

    # security.txt (RFC 9116)
    SECURITY_CONTACT: str = Field(default="mailto:privacy@theaiandbeyond.it")
    SECURITY_TXT_EXPIRES: str = Field(default="2027-02-09T00:00:00.000Z")
    SECURITY_TXT_LANGUAGES: str = Field(default="it, en")

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: str | List[str]) -> List[str]:
        """Parse CORS origins from comma-separated string."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",")]
        return v

    model_config = SettingsConfigDict(
        env_file=_should_load_env_file(),
        env_file_encoding="utf-8",
        extra="ignore",  # Allow extra env vars (e.g., SENTRY_DSN) without validation errors
    )


settings = Settings()


def get_settings() -> Settings:
    """Get the settings instance (for dependency injection)."""
    return settings
