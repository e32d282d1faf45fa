"""AI chat assistant router."""

from typing import Any

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from helpers.language import CHAT_MALFORMED_REQUEST_MESSAGE
from helpers.request_utils import get_client_ip
from models.exceptions import MalformedRequestException
from models.schemas import ChatErrorResponse, ChatResponse, ErrorResponse
from services.chat_service import ChatService, OpenAIChatClient, get_chat_client
from services.rate_limit_service import ChatRateLimiter, get_chat_rate_limiter

router = APIRouter(prefix="/chat", tags=["chat"])

METHOD_NOT_ALLOWED_MESSAGE = "Method not allowed"


async def _read_json(request: Request) -> Any:
    try:
        return await request.json()
    except ValueError:
        raise MalformedRequestException(CHAT_MALFORMED_REQUEST_MESSAGE)


@router.post(
    "",
    response_model=ChatResponse,
    responses={
        400: {"model": ChatErrorResponse},
        429: {"model": ChatErrorResponse},
        503: {"model": ErrorResponse},
    },
)
async def send_chat_message(
    request: Request,
    rate_limiter: ChatRateLimiter = Depends(get_chat_rate_limiter),
    client: OpenAIChatClient = Depends(get_chat_client),
) -> ChatResponse:
    """Send a visitor message to the AI assistant.

    Public endpoint. Limited per client IP (10 messages per minute by
    default) and per session (50 messages); only answered messages count.

    Raises:
        MalformedRequestException: 400 when the body is not JSON
        ValidationException: 400 with the first violated field's message
        ChatBlockedException: 400 or 429 with a localized message and ``code``
        ServiceUnavailableException: 503 when the model cannot answer
    """
    payload = await _read_json(request)
    chat_request = ChatService.validate(payload)
    return await ChatService.reply(
        chat_request, get_client_ip(request), rate_limiter, client
    )


@router.api_route("", methods=["GET", "PUT", "DELETE"], include_in_schema=False)
async def chat_method_not_allowed() -> JSONResponse:
    """The chat only accepts POST."""
    return JSONResponse(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        content={"error": METHOD_NOT_ALLOWED_MESSAGE},
    )
