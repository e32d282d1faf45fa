"""Tests for ContactService sanitizing and submission."""

from unittest.mock import patch

import pytest

from helpers.language import Locale
from models.config import settings
from models.exceptions import ConfigurationException, EmailDeliveryException
from services.contact_service import ContactService
from services.email_service import EmailDispatcher, ResendProvider

OWNER_EMAIL = "owner@test.com"


class TestSanitize:
    """Tests for ContactService.sanitize."""

    def test_escapes_free_text_fields(self, submission) -> None:
        """Name, company and message are HTML-escaped."""
        data = ContactService.sanitize(submission)
        assert data.company == "Rossi &amp; Figli"
        assert data.message == "Vorrei informazioni &lt;subito&gt;."

    def test_email_left_raw(self, submission) -> None:
        """The email address is a delivery address and stays untouched."""
        data = ContactService.sanitize(submission.model_copy(update={"email": "o'neil@example.com"}))
        assert data.email == "o'neil@example.com"

    def test_keeps_metadata(self, submission) -> None:
        """Locale, consent and timestamp carry over."""
        data = ContactService.sanitize(submission)
        assert data.locale is submission.locale
        assert data.consent is True
        assert data.submitted_at == submission.submitted_at


class TestSubmit:
    """Tests for the delivery sequence."""

    @pytest.mark.asyncio
    async def test_sends_lead_then_thank_you(self, submission, dispatcher, email_provider) -> None:
        """Lead goes to the owner first, then the thank-you to the submitter."""
        lead, thank_you = await ContactService.submit(submission, dispatcher)

        assert lead.sent and thank_you.sent
        assert [e.to for e in email_provider.sent] == [OWNER_EMAIL, "mario@example.com"]
        assert email_provider.sent[0].subject == "Nuovo contatto dal sito - Mario Rossi"
        assert email_provider.sent[0].reply_to == "mario@example.com"

    @pytest.mark.asyncio
    async def test_lead_failure_aborts_before_thank_you(
        self, submission, dispatcher, email_provider
    ) -> None:
        """A failed lead raises and the thank-you is never attempted."""
        email_provider.fail_for.add(OWNER_EMAIL)

        with pytest.raises(EmailDeliveryException) as exc_info:
            await ContactService.submit(submission, dispatcher)

        assert exc_info.value.message == "Si è verificato un errore. Riprova più tardi."
        assert exc_info.value.reason == f"rejected recipient {OWNER_EMAIL}"
        assert [e.to for e in email_provider.attempts] == [OWNER_EMAIL]

    @pytest.mark.asyncio
    async def test_lead_failure_message_is_localized(
        self, submission, dispatcher, email_provider
    ) -> None:
        """English submitters get the English error."""
        email_provider.fail_for.add(OWNER_EMAIL)
        english = submission.model_copy(update={"locale": Locale.EN})

        with pytest.raises(EmailDeliveryException) as exc_info:
            await ContactService.submit(english, dispatcher)

        assert exc_info.value.message == "An error occurred. Please try again later."

    @pytest.mark.asyncio
    async def test_thank_you_failure_is_not_raised(
        self, submission, dispatcher, email_provider
    ) -> None:
        """A failed thank-you is reported but does not fail the submission."""
        email_provider.fail_for.add("mario@example.com")

        lead, thank_you = await ContactService.submit(submission, dispatcher)

        assert lead.sent
        assert not thank_you.sent
        assert len(email_provider.attempts) == 2

    @pytest.mark.asyncio
    async def test_missing_contact_email_sends_nothing(
        self, submission, dispatcher, email_provider
    ) -> None:
        """Without a destination nothing is sent."""
        with patch.object(settings, "CONTACT_EMAIL", None):
            with pytest.raises(ConfigurationException) as exc_info:
                await ContactService.submit(submission, dispatcher)

        assert exc_info.value.missing == ["CONTACT_EMAIL"]
        assert exc_info.value.message == "Si è verificato un errore. Riprova più tardi."
        assert email_provider.attempts == []

    @pytest.mark.asyncio
    async def test_missing_api_key(self, submission) -> None:
        """Without an API key the request fails before any network call."""
        dispatcher = EmailDispatcher(ResendProvider(api_key=""))

        with pytest.raises(ConfigurationException) as exc_info:
            await ContactService.submit(submission, dispatcher)

        assert exc_info.value.missing == ["RESEND_API_KEY"]
