"""Email delivery for contact form submissions.

This module provides a unified interface for sending emails through various providers.
Supports:
- resend: Resend HTTP API (production)
- console: Logs emails to console (development)

Each send is a single attempt: no retry, no queue. Providers raise
``EmailProviderError`` on failure; ``EmailDispatcher`` turns every failure
into an ``EmailDispatchResult`` so callers branch on a typed outcome.
"""

import re
from abc import ABC, abstractmethod

import httpx
from loguru import logger

from models.config import settings
from models.email_types import (
    EmailDispatchResult,
    EmailKind,
    OutboundEmail,
    RenderedEmail,
)
from models.exceptions import EmailProviderError


class EmailProvider(ABC):
    """Abstract base class for email providers."""

    name: str = "abstract"

    def missing_settings(self) -> list[str]:
        """Names of required settings this provider is missing."""
        return []

    @abstractmethod
    async def send(self, email: OutboundEmail) -> None:
        """Send an email.

        Raises:
            EmailProviderError: If the provider did not accept the email.
        """
        pass


class ResendProvider(EmailProvider):
    """Resend transactional email API."""

    name = "resend"

    def __init__(
        self,
        api_key: str | None = None,
        api_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize Resend provider with settings.

        Args:
            api_key: API key (defaults to RESEND_API_KEY)
            api_url: Send endpoint (defaults to RESEND_API_URL)
            timeout: Request timeout in seconds (defaults to EMAIL_TIMEOUT_SECONDS)
            transport: Optional httpx transport, used by tests
        """
        self.api_key = api_key if api_key is not None else settings.RESEND_API_KEY
        self.api_url = api_url or settings.RESEND_API_URL
        self.timeout = timeout if timeout is not None else settings.EMAIL_TIMEOUT_SECONDS
        self._transport = transport

    def missing_settings(self) -> list[str]:
        return [] if self.api_key else ["RESEND_API_KEY"]

    def _build_payload(self, email: OutboundEmail) -> dict[str, object]:
        payload: dict[str, object] = {
            "from": email.from_address,
            "to": [email.to],
            "subject": email.subject,
            "html": email.html,
            "text": email.text,
        }
        if email.reply_to:
            payload["reply_to"] = email.reply_to
        return payload

    async def send(self, email: OutboundEmail) -> None:
        """Send email via the Resend API."""
        if not self.api_key:
            raise EmailProviderError("Resend API key not configured")

        headers = {"Authorization": f"Bearer {self.api_key}"}

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.post(
                    self.api_url,
                    headers=headers,
                    json=self._build_payload(email),
                )
                response.raise_for_status()
        except httpx.TimeoutException:
            raise EmailProviderError(f"Resend timeout after {self.timeout}s")
        except httpx.HTTPStatusError as e:
            raise EmailProviderError(
                f"Resend HTTP {e.response.status_code}: {e.response.text[:200]}"
            )
        except httpx.HTTPError as e:
            raise EmailProviderError(f"Resend transport error: {e}")

        logger.debug(f"Resend accepted email to {email.to}: {email.subject}")


class ConsoleProvider(EmailProvider):
    """Console email provider for development/testing."""

    name = "console"

    async def send(self, email: OutboundEmail) -> None:
        """Log email to console."""
        clean_html = re.sub(r"<[^>]+>", "", email.html)
        clean_html = re.sub(r"\s+", " ", clean_html).strip()[:500]
        logger.info(
            f"\n{'=' * 60}\n"
            f"EMAIL (Console Provider - Development Mode)\n"
            f"{'=' * 60}\n"
            f"From: {email.from_address}\n"
            f"To: {email.to}\n"
            f"Reply-To: {email.reply_to or '-'}\n"
            f"Subject: {email.subject}\n"
            f"{'-' * 60}\n"
            f"PLAIN TEXT:\n{email.text}\n"
            f"{'-' * 60}\n"
            f"HTML (preview):\n{clean_html}\n"
            f"{'=' * 60}\n"
        )


def get_email_provider() -> EmailProvider:
    """Get the configured email provider."""
    provider_name = settings.EMAIL_PROVIDER.lower()

    if provider_name == "resend":
        return ResendProvider()
    elif provider_name == "console":
        return ConsoleProvider()
    else:
        logger.warning(f"Unknown email provider '{provider_name}', using console")
        return ConsoleProvider()


class EmailDispatcher:
    """Sends the two contact emails and reports a typed outcome for each.

    Never raises: provider errors, timeouts and unexpected exceptions all
    become failed ``EmailDispatchResult`` values.
    """

    def __init__(self, provider: EmailProvider) -> None:
        self.provider = provider

    @property
    def from_address(self) -> str:
        return f"{settings.EMAIL_FROM_NAME} <{settings.EMAIL_FROM_ADDRESS}>"

    def missing_settings(self) -> list[str]:
        """Settings that must be present before any send is attempted."""
        missing = [] if settings.CONTACT_EMAIL else ["CONTACT_EMAIL"]
        return missing + self.provider.missing_settings()

    async def _dispatch(
        self, kind: EmailKind, email: OutboundEmail
    ) -> EmailDispatchResult:
        try:
            await self.provider.send(email)
        except EmailProviderError as e:
            return self._failed(kind, email, e.reason)
        except Exception as e:
            return self._failed(kind, email, f"{type(e).__name__}: {e}")

        logger.info(f"Email '{kind.label}' sent to {email.to}")
        return EmailDispatchResult.success(kind)

    def _failed(
        self, kind: EmailKind, email: OutboundEmail, reason: str
    ) -> EmailDispatchResult:
        log = logger.error if kind.critical else logger.warning
        log(
            f"Email '{kind.label}' to {email.to} failed "
            f"via {self.provider.name}: {reason}"
        )
        return EmailDispatchResult.failure(kind, reason)

    async def send_lead(
        self, to: str, rendered: RenderedEmail, reply_to: str
    ) -> EmailDispatchResult:
        """Send the lead notification to the owner.

        ``reply_to`` is the submitter's address so the owner can answer directly.
        """
        email = OutboundEmail(
            from_address=self.from_address,
            to=to,
            subject=rendered.subject,
            html=rendered.html,
            text=rendered.text,
            reply_to=reply_to,
        )
        return await self._dispatch(EmailKind.LEAD_NOTIFICATION, email)

    async def send_thank_you(
        self, to: str, rendered: RenderedEmail
    ) -> EmailDispatchResult:
        """Send the thank-you confirmation to the submitter."""
        email = OutboundEmail(
            from_address=self.from_address,
            to=to,
            subject=rendered.subject,
            html=rendered.html,
            text=rendered.text,
        )
        return await self._dispatch(EmailKind.THANK_YOU, email)


def get_email_dispatcher() -> EmailDispatcher:
    """Get a dispatcher bound to the configured provider (for dependency injection)."""
    return EmailDispatcher(get_email_provider())
