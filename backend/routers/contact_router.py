"""Contact form router for site inquiries."""

from typing import Any

from fastapi import APIRouter, Depends, Request, Response
from loguru import logger

from helpers.ip_utils import anonymize_ip, is_valid_ip
from helpers.language import (
    MALFORMED_REQUEST_MESSAGE,
    RATE_LIMITED_MESSAGE,
    get_contact_copy,
)
from helpers.request_utils import get_client_ip
from models.exceptions import MalformedRequestException, RateLimitExceededException
from models.schemas import ContactFormResponse, ErrorResponse
from services.contact_service import ContactService
from services.email_service import EmailDispatcher, get_email_dispatcher
from services.rate_limit_service import (
    FixedWindowRateLimiter,
    get_contact_rate_limiter,
)

router = APIRouter(prefix="/contact", tags=["contact"])


async def _read_json(request: Request) -> Any:
    try:
        return await request.json()
    except ValueError:
        raise MalformedRequestException(MALFORMED_REQUEST_MESSAGE)


@router.post(
    "",
    response_model=ContactFormResponse,
    responses={
        400: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def submit_contact_form(
    request: Request,
    response: Response,
    rate_limiter: FixedWindowRateLimiter = Depends(get_contact_rate_limiter),
    dispatcher: EmailDispatcher = Depends(get_email_dispatcher),
) -> ContactFormResponse:
    """Submit a contact form.

    Sends a lead notification to the owner and a thank-you email to the
    submitter. No authentication required - public endpoint.
    Rate limited per client IP (3 submissions per 15 minutes by default);
    every attempt counts, valid or not.

    Args:
        request: FastAPI request object (body read as raw JSON)
        response: Used to set X-RateLimit-Remaining
        rate_limiter: Contact form fixed-window limiter
        dispatcher: Email dispatcher bound to the configured provider

    Returns:
        Success response with localized message

    Raises:
        RateLimitExceededException: 429 when the IP is over its limit
        MalformedRequestException: 400 when the body is not JSON
        ValidationException: 400 with the first violated field's message
        ConfigurationException: 500 when delivery settings are missing
        EmailDeliveryException: 500 when the lead notification fails
    """
    client_ip = get_client_ip(request)
    if not is_valid_ip(client_ip):
        logger.warning(
            f"Contact form request without a usable client IP ({client_ip!r}), "
            "using shared rate-limit bucket"
        )

    if not rate_limiter.admit(client_ip):
        logger.warning(f"Contact form rate limited: ip={anonymize_ip(client_ip)}")
        raise RateLimitExceededException(
            RATE_LIMITED_MESSAGE,
            retry_after=int(rate_limiter.window_seconds),
            remaining=0,
        )

    payload = await _read_json(request)
    submission = ContactService.validate(payload)

    await ContactService.submit(submission, dispatcher)

    response.headers["X-RateLimit-Remaining"] = str(rate_limiter.remaining(client_ip))
    return ContactFormResponse(
        success=True, message=get_contact_copy(submission.locale).success
    )
