"""Tests for contact form validation."""

from datetime import datetime, timezone

import pytest

from helpers.language import Locale
from models.exceptions import ValidationException
from models.schemas import (
    CONSENT_REQUIRED_MESSAGE,
    EMAIL_INVALID_MESSAGE,
    EMAIL_REQUIRED_MESSAGE,
    INVALID_PAYLOAD_MESSAGE,
    MESSAGE_TOO_LONG_MESSAGE,
    MESSAGE_TOO_SHORT_MESSAGE,
    NAME_REQUIRED_MESSAGE,
    NAME_TOO_LONG_MESSAGE,
    NAME_TOO_SHORT_MESSAGE,
)
from services.contact_service import ContactService


def minimal_payload(**overrides) -> dict:
    payload = {
        "name": "Al",
        "email": "a@b.com",
        "message": "1234567890",
        "privacy": True,
    }
    payload.update(overrides)
    return payload


def validation_error(payload) -> ValidationException:
    with pytest.raises(ValidationException) as exc_info:
        ContactService.validate(payload)
    return exc_info.value


class TestValidateAccepts:
    """Inputs that must pass."""

    def test_minimum_boundaries(self) -> None:
        """Two-character name and ten-character message are accepted."""
        submission = ContactService.validate(minimal_payload())
        assert submission.name == "Al"
        assert submission.message == "1234567890"
        assert submission.consent is True

    def test_maximum_boundaries(self) -> None:
        """100-character name and 1000-character message are accepted."""
        submission = ContactService.validate(
            minimal_payload(name="n" * 100, message="m" * 1000)
        )
        assert len(submission.name) == 100
        assert len(submission.message) == 1000

    def test_defaults_locale_and_company(self) -> None:
        """Missing locale is Italian and missing company gets its default."""
        submission = ContactService.validate(minimal_payload())
        assert submission.locale is Locale.IT
        assert submission.company == "Non specificata"

    def test_english_company_default(self) -> None:
        """The company default follows the locale."""
        submission = ContactService.validate(minimal_payload(locale="en", company=""))
        assert submission.locale is Locale.EN
        assert submission.company == "Not specified"

    def test_keeps_given_company(self) -> None:
        """A provided company is kept."""
        submission = ContactService.validate(minimal_payload(company="Acme"))
        assert submission.company == "Acme"

    def test_unknown_locale_falls_back(self) -> None:
        """Unsupported locales fall back to Italian."""
        assert ContactService.validate(minimal_payload(locale="fr")).locale is Locale.IT

    def test_extra_fields_ignored(self) -> None:
        """Unknown fields do not fail validation."""
        submission = ContactService.validate(minimal_payload(phone="123"))
        assert not hasattr(submission, "phone")

    def test_stamps_submission_time(self) -> None:
        """submitted_at is the current UTC time."""
        before = datetime.now(timezone.utc)
        submission = ContactService.validate(minimal_payload())
        assert before <= submission.submitted_at <= datetime.now(timezone.utc)


class TestValidateRejects:
    """Inputs that must fail with a fixed Italian message."""

    def test_message_too_short(self) -> None:
        """Nine-character message fails on length."""
        error = validation_error(minimal_payload(message="123456789"))
        assert error.message == MESSAGE_TOO_SHORT_MESSAGE

    def test_message_too_long(self) -> None:
        """1001-character message fails on length."""
        error = validation_error(minimal_payload(message="m" * 1001))
        assert error.message == MESSAGE_TOO_LONG_MESSAGE

    def test_name_too_short(self) -> None:
        """One-character name fails on length."""
        error = validation_error(minimal_payload(name="A"))
        assert error.message == NAME_TOO_SHORT_MESSAGE
        assert error.message == "Il nome deve avere almeno 2 caratteri"

    def test_name_too_long(self) -> None:
        """101-character name fails on length."""
        error = validation_error(minimal_payload(name="n" * 101))
        assert error.message == NAME_TOO_LONG_MESSAGE

    @pytest.mark.parametrize("email", ["not-an-email", "a@", "@b.com", "a b@c.com"])
    def test_invalid_email(self, email: str) -> None:
        """Malformed addresses are rejected."""
        error = validation_error(minimal_payload(email=email))
        assert error.message == EMAIL_INVALID_MESSAGE

    @pytest.mark.parametrize("privacy", [False, None, "true", 1])
    def test_consent_must_be_literal_true(self, privacy) -> None:
        """Only the boolean true counts as consent."""
        error = validation_error(minimal_payload(privacy=privacy))
        assert error.message == CONSENT_REQUIRED_MESSAGE

    def test_missing_consent_fails_even_when_rest_is_valid(self) -> None:
        """Omitting privacy fails with the consent message."""
        payload = minimal_payload()
        del payload["privacy"]
        error = validation_error(payload)
        assert error.message == CONSENT_REQUIRED_MESSAGE
        assert [e.field for e in error.errors] == ["privacy"]

    def test_missing_fields(self) -> None:
        """Missing text fields report required messages in field order."""
        error = validation_error({"privacy": True})
        assert [e.message for e in error.errors] == [
            NAME_REQUIRED_MESSAGE,
            EMAIL_REQUIRED_MESSAGE,
            "Il messaggio è obbligatorio",
        ]
        assert error.message == NAME_REQUIRED_MESSAGE

    def test_first_violation_wins(self) -> None:
        """With several violations the message is the first field's."""
        error = validation_error(
            minimal_payload(name="A", email="bad", privacy=False)
        )
        assert error.message == NAME_TOO_SHORT_MESSAGE
        assert [e.field for e in error.errors] == ["name", "email", "privacy"]

    def test_non_string_company(self) -> None:
        """A company that is not text is rejected."""
        error = validation_error(minimal_payload(company=42))
        assert error.message == "Il nome dell'azienda non è valido"

    @pytest.mark.parametrize("payload", [[], "text", 3, None])
    def test_non_object_body(self, payload) -> None:
        """A JSON body that is not an object is rejected."""
        error = validation_error(payload)
        assert error.message == INVALID_PAYLOAD_MESSAGE
