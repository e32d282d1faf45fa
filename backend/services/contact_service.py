"""Contact form service for handling site inquiries.

This module validates and sanitizes contact form submissions, then sends the
lead notification to the owner and a thank-you email to the submitter.
"""

from datetime import datetime, timezone
from typing import Any

from loguru import logger
from pydantic import ValidationError

from helpers.language import get_contact_copy
from helpers.sanitization import sanitize_for_html
from models.config import settings
from models.email_types import EmailDispatchResult
from models.exceptions import (
    ConfigurationException,
    EmailDeliveryException,
    FieldError,
    ValidationException,
)
from models.schemas import (
    INVALID_PAYLOAD_MESSAGE,
    ContactFormRequest,
    SanitizedSubmission,
    ValidatedSubmission,
)
from services.email_service import EmailDispatcher
from services.email_templates import build_lead_notification, build_thank_you


class ContactService:
    """Service for handling contact form submissions."""

    @classmethod
    def validate(cls, payload: Any) -> ValidatedSubmission:
        """Validate a decoded JSON body.

        Args:
            payload: The parsed request body (any JSON value)

        Returns:
            The validated submission, stamped with the current UTC time

        Raises:
            ValidationException: With every violated constraint in field
                order; the message is the first one's
        """
        if not isinstance(payload, dict):
            errors = [FieldError(field="body", message=INVALID_PAYLOAD_MESSAGE)]
            raise ValidationException(INVALID_PAYLOAD_MESSAGE, errors=errors)

        try:
            form = ContactFormRequest.model_validate(payload)
        except ValidationError as e:
            errors = [
                FieldError(
                    field=".".join(str(part) for part in err["loc"]) or "body",
                    message=err["msg"],
                )
                for err in e.errors()
            ]
            logger.info(
                f"Contact form rejected: field={errors[0].field}, "
                f"{len(errors)} error(s)"
            )
            raise ValidationException(errors[0].message, errors=errors)

        return ValidatedSubmission(
            name=form.name,
            email=form.email,
            company=form.company or get_contact_copy(form.locale).default_company,
            message=form.message,
            consent=form.privacy,
            locale=form.locale,
            submitted_at=datetime.now(timezone.utc),
        )

    @classmethod
    def sanitize(cls, submission: ValidatedSubmission) -> SanitizedSubmission:
        """HTML-escape the free-text fields of a validated submission.

        ``email`` is passed through untouched.
        """
        return SanitizedSubmission(
            name=sanitize_for_html(submission.name),
            email=submission.email,
            company=sanitize_for_html(submission.company),
            message=sanitize_for_html(submission.message),
            consent=submission.consent,
            locale=submission.locale,
            submitted_at=submission.submitted_at,
        )

    @classmethod
    def check_configuration(cls, dispatcher: EmailDispatcher, error_message: str) -> None:
        """Fail fast when the lead destination or provider credential is missing.

        Raises:
            ConfigurationException: Carrying the localized generic error;
                the missing setting names are for logs only
        """
        missing = dispatcher.missing_settings()
        if missing:
            logger.error(
                f"Contact form misconfigured, missing: {', '.join(missing)}"
            )
            raise ConfigurationException(error_message, missing=missing)

    @classmethod
    async def submit(
        cls,
        submission: ValidatedSubmission,
        dispatcher: EmailDispatcher,
    ) -> tuple[EmailDispatchResult, EmailDispatchResult]:
        """Sanitize, render and deliver a submission.

        The lead notification is sent first and must succeed. The thank-you
        email is only attempted afterwards and its failure is only logged.

        Returns:
            The lead and thank-you dispatch results

        Raises:
            ConfigurationException: Required settings are missing (nothing sent)
            EmailDeliveryException: The lead notification was not delivered
        """
        copy = get_contact_copy(submission.locale)

        data = cls.sanitize(submission)
        lead_email = build_lead_notification(data)
        thank_you_email = build_thank_you(data)

        cls.check_configuration(dispatcher, copy.error)

        lead = await dispatcher.send_lead(
            to=settings.CONTACT_EMAIL,
            rendered=lead_email,
            reply_to=data.email,
        )
        if not lead.sent:
            raise EmailDeliveryException(copy.error, reason=lead.reason)

        thank_you = await dispatcher.send_thank_you(
            to=data.email, rendered=thank_you_email
        )
        if not thank_you.sent:
            logger.warning(
                f"Thank-you email not delivered, lead kept: {thank_you.reason}"
            )

        logger.info(
            f"Contact form processed: locale={data.locale.value}, "
            f"thank_you={thank_you.outcome.value}"
        )
        return lead, thank_you
