"""Tests for contact email templates."""

from datetime import datetime, timezone

import pytest

from helpers.language import Locale
from models.config import settings
from services.contact_service import ContactService
from services.email_templates import (
    THANK_YOU_COPY,
    build_lead_notification,
    build_thank_you,
    format_timestamp,
)


@pytest.fixture
def sanitized(submission):
    return ContactService.sanitize(submission)


class TestFormatTimestamp:
    """Tests for the lead timestamp."""

    def test_converts_to_site_time_zone_winter(self) -> None:
        """UTC is shown as Rome local time (CET)."""
        assert (
            format_timestamp(datetime(2026, 3, 14, 9, 5, tzinfo=timezone.utc))
            == "14/03/2026 alle 10:05"
        )

    def test_converts_to_site_time_zone_summer(self) -> None:
        """Daylight saving time is applied (CEST)."""
        assert (
            format_timestamp(datetime(2026, 7, 1, 22, 30, tzinfo=timezone.utc))
            == "02/07/2026 alle 00:30"
        )


class TestLeadNotification:
    """Tests for the owner notification."""

    def test_subject_contains_name(self, sanitized) -> None:
        """Subject names the submitter."""
        email = build_lead_notification(sanitized)
        assert email.subject == "Nuovo contatto dal sito - Mario Rossi"

    def test_body_contains_fields(self, sanitized) -> None:
        """All submitted fields appear, escaped."""
        email = build_lead_notification(sanitized)
        assert "Mario Rossi" in email.html
        assert 'href="mailto:mario@example.com"' in email.html
        assert "Rossi &amp; Figli" in email.html
        assert "Vorrei informazioni &lt;subito&gt;." in email.html
        assert "<subito>" not in email.html

    def test_footer_has_timestamp_and_language(self, sanitized) -> None:
        """Footer shows local time and submission language."""
        email = build_lead_notification(sanitized)
        assert "Inviato il 14/03/2026 alle 10:05 &middot; Lingua: Italiano" in email.html
        assert "(lingua: Italiano)" in email.text

    def test_english_submission_still_italian_email(self, submission) -> None:
        """The owner email is Italian; only the language label changes."""
        data = ContactService.sanitize(submission.model_copy(update={"locale": Locale.EN}))
        email = build_lead_notification(data)
        assert email.subject.startswith("Nuovo contatto dal sito")
        assert "Lingua: English" in email.html

    def test_plain_text_alternative(self, sanitized) -> None:
        """Text body lists the same fields."""
        email = build_lead_notification(sanitized)
        assert "Nome: Mario Rossi" in email.text
        assert "Email: mario@example.com" in email.text
        assert "Azienda: Rossi & Figli" in email.text


class TestThankYou:
    """Tests for the submitter confirmation."""

    def test_every_locale_has_copy(self) -> None:
        """The thank-you table is exhaustive over Locale."""
        assert set(THANK_YOU_COPY) == set(Locale)

    def test_italian(self, sanitized) -> None:
        """Italian submitters get Italian copy."""
        email = build_thank_you(sanitized)
        assert email.subject == f"Abbiamo ricevuto il tuo messaggio - {settings.SITE_NAME}"
        assert "Ciao Mario Rossi," in email.html
        assert f"Il team di {settings.SITE_NAME}" in email.html
        assert '<html xmlns="http://www.w3.org/1999/xhtml" lang="it">' in email.html

    def test_english(self, submission) -> None:
        """English submitters get English copy."""
        data = ContactService.sanitize(submission.model_copy(update={"locale": Locale.EN}))
        email = build_thank_you(data)
        assert email.subject == f"We received your message - {settings.SITE_NAME}"
        assert "Hi Mario Rossi," in email.html
        assert "What happens next:" in email.text
        assert "1. We analyze your request in detail" in email.text

    def test_only_name_is_interpolated(self, sanitized) -> None:
        """The message and company are not echoed back to the submitter."""
        email = build_thank_you(sanitized)
        assert "subito" not in email.html
        assert "Figli" not in email.html

    def test_public_contact_address(self, sanitized) -> None:
        """The call to action points at the public contact address."""
        email = build_thank_you(sanitized)
        assert f"mailto:{settings.PUBLIC_CONTACT_EMAIL}" in email.html
        assert settings.PUBLIC_CONTACT_EMAIL in email.text
