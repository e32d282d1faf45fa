"""Cookie consent audit log endpoint."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from helpers.rate_limiter import limiter
from helpers.request_utils import get_client_ip
from models.config import settings
from models.exceptions import MalformedRequestException, ValidationException
from models.schemas import ConsentAction, ConsentLogResponse, ErrorResponse
from repositories.database import get_db
from services.consent_service import ConsentService

router = APIRouter(prefix="/consent-log", tags=["consent"])


@router.post(
    "",
    response_model=ConsentLogResponse,
    responses={400: {"model": ErrorResponse}, 429: {"model": ErrorResponse}},
)
@limiter.limit(settings.CONSENT_LOG_RATE_LIMIT)
async def log_consent(
    request: Request,
    db: Session = Depends(get_db),
) -> ConsentLogResponse:
    """
    Record the visitor's cookie banner choice.

    Body: ``{"action": "accepted" | "declined"}``. Storage is best-effort:
    once the body is accepted the response is always ``{"ok": true}``.
    When consent logging is disabled the body is not read at all.

    Raises:
        MalformedRequestException: 400 "Invalid JSON"
        ValidationException: 400 "Invalid action"
    """
    if not settings.CONSENT_LOG_ENABLED:
        return ConsentLogResponse()

    try:
        body = await request.json()
    except ValueError:
        raise MalformedRequestException("Invalid JSON")

    raw_action = body.get("action") if isinstance(body, dict) else None
    try:
        action = ConsentAction(raw_action)
    except ValueError:
        raise ValidationException("Invalid action")

    await run_in_threadpool(
        ConsentService.record_choice, db, get_client_ip(request), action
    )
    return ConsentLogResponse()
