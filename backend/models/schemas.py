import re
from datetime import datetime
from enum import Enum
from typing import Any, Literal, Optional

import email_validator
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_core import PydanticCustomError

from helpers.language import Locale, normalize_locale

# Contact form constraints
NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 100
MESSAGE_MIN_LENGTH = 10
MESSAGE_MAX_LENGTH = 1000

# Validation messages are fixed Italian regardless of the submission locale
NAME_REQUIRED_MESSAGE = "Il nome è obbligatorio"
NAME_TOO_SHORT_MESSAGE = f"Il nome deve avere almeno {NAME_MIN_LENGTH} caratteri"
NAME_TOO_LONG_MESSAGE = "Il nome è troppo lungo"
EMAIL_REQUIRED_MESSAGE = "L'email è obbligatoria"
EMAIL_INVALID_MESSAGE = "Inserisci un indirizzo email valido"
COMPANY_INVALID_MESSAGE = "Il nome dell'azienda non è valido"
MESSAGE_REQUIRED_MESSAGE = "Il messaggio è obbligatorio"
MESSAGE_TOO_SHORT_MESSAGE = (
    f"Il messaggio deve avere almeno {MESSAGE_MIN_LENGTH} caratteri"
)
MESSAGE_TOO_LONG_MESSAGE = "Il messaggio è troppo lungo"
CONSENT_REQUIRED_MESSAGE = "Devi accettare la privacy policy"
INVALID_PAYLOAD_MESSAGE = "Dati non validi"


def _require_text(value: Any, error_type: str, message: str) -> str:
    if not isinstance(value, str):
        raise PydanticCustomError(error_type, message)
    return value


def _check_length(
    value: str, min_length: int, max_length: int, too_short: str, too_long: str
) -> str:
    if len(value) < min_length:
        raise PydanticCustomError("too_short", too_short)
    if len(value) > max_length:
        raise PydanticCustomError("too_long", too_long)
    return value


# Contact Form Schemas
class ContactFormRequest(BaseModel):
    """Raw contact form body as sent by the site.

    Every field is validated by a before-validator so that missing and
    wrongly-typed values produce the same fixed messages as bad values.
    The consent checkbox travels as ``privacy`` and must be literally true.
    """

    model_config = ConfigDict(extra="ignore")

    name: str = Field(default=None, validate_default=True)
    email: str = Field(default=None, validate_default=True)
    company: Optional[str] = None
    message: str = Field(default=None, validate_default=True)
    privacy: bool = Field(default=None, validate_default=True)
    locale: Locale = Field(default=None, validate_default=True)

    @field_validator("name", mode="before")
    @classmethod
    def validate_name(cls, v: Any) -> str:
        """Name must be 2-100 characters."""
        name = _require_text(v, "name_required", NAME_REQUIRED_MESSAGE)
        return _check_length(
            name,
            NAME_MIN_LENGTH,
            NAME_MAX_LENGTH,
            NAME_TOO_SHORT_MESSAGE,
            NAME_TOO_LONG_MESSAGE,
        )

    @field_validator("email", mode="before")
    @classmethod
    def validate_email(cls, v: Any) -> str:
        """Email must be syntactically valid (no DNS lookup)."""
        email = _require_text(v, "email_required", EMAIL_REQUIRED_MESSAGE)
        try:
            email_validator.validate_email(email, check_deliverability=False)
        except email_validator.EmailNotValidError:
            raise PydanticCustomError("email_invalid", EMAIL_INVALID_MESSAGE)
        return email

    @field_validator("company", mode="before")
    @classmethod
    def validate_company(cls, v: Any) -> Optional[str]:
        """Company is optional; blank counts as absent."""
        if v is None:
            return None
        company = _require_text(v, "company_invalid", COMPANY_INVALID_MESSAGE)
        return company or None

    @field_validator("message", mode="before")
    @classmethod
    def validate_message(cls, v: Any) -> str:
        """Message must be 10-1000 characters."""
        message = _require_text(v, "message_required", MESSAGE_REQUIRED_MESSAGE)
        return _check_length(
            message,
            MESSAGE_MIN_LENGTH,
            MESSAGE_MAX_LENGTH,
            MESSAGE_TOO_SHORT_MESSAGE,
            MESSAGE_TOO_LONG_MESSAGE,
        )

    @field_validator("privacy", mode="before")
    @classmethod
    def validate_privacy(cls, v: Any) -> bool:
        """Consent is mandatory: only the JSON literal true is accepted."""
        if v is not True:
            raise PydanticCustomError("consent_required", CONSENT_REQUIRED_MESSAGE)
        return v

    @field_validator("locale", mode="before")
    @classmethod
    def validate_locale(cls, v: Any) -> Locale:
        """Unknown or missing locales fall back to Italian."""
        return normalize_locale(v)


class _SubmissionFields(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    email: str
    company: str
    message: str
    consent: Literal[True]
    locale: Locale
    submitted_at: datetime


class ValidatedSubmission(_SubmissionFields):
    """A contact submission that passed validation.

    ``company`` already holds the locale default when none was given.
    ``submitted_at`` is set (UTC) at validation time.
    """


class SanitizedSubmission(_SubmissionFields):
    """A validated submission with name, company and message HTML-escaped.

    ``email`` is left raw: it is used as a delivery address.
    """


class ContactFormResponse(BaseModel):
    """Successful contact form response."""

    success: bool
    message: str


class ErrorResponse(BaseModel):
    """Error body shared by the public endpoints."""

    error: str


# Consent Log Schemas
class ConsentAction(str, Enum):
    """Cookie banner choices."""

    ACCEPTED = "accepted"
    DECLINED = "declined"


class ConsentLogResponse(BaseModel):
    """Consent log acknowledgement (always ok once the body is accepted)."""

    ok: bool = True


# Chat Schemas
CHAT_MESSAGE_MAX_LENGTH = 500
CHAT_HISTORY_MAX_LENGTH = 20

# Chat messages are English, matching the widget
CHAT_MESSAGE_REQUIRED_MESSAGE = "Message is required"
CHAT_MESSAGE_TOO_LONG_MESSAGE = "Message is too long"
CHAT_SESSION_INVALID_MESSAGE = "Invalid session ID"
CHAT_HISTORY_INVALID_MESSAGE = "Invalid conversation history"
CHAT_HISTORY_TOO_LONG_MESSAGE = "Conversation history too long"
CHAT_INVALID_PAYLOAD_MESSAGE = "Invalid input"

SESSION_ID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


class ChatRole(str, Enum):
    """Speakers a visitor may replay in the conversation history."""

    USER = "user"
    ASSISTANT = "assistant"


class ChatHistoryMessage(BaseModel):
    """One earlier turn of the conversation, replayed to the model."""

    model_config = ConfigDict(frozen=True)

    role: ChatRole
    content: str = Field(max_length=CHAT_MESSAGE_MAX_LENGTH)


class ChatRequest(BaseModel):
    """Chat widget body.

    ``sessionId`` must be a UUIDv4 generated by the widget. The history is
    optional and capped at 20 turns.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    message: str = Field(default=None, validate_default=True)
    session_id: str = Field(
        default=None, validate_default=True, alias="sessionId"
    )
    conversation_history: list[ChatHistoryMessage] = Field(
        default_factory=list, alias="conversationHistory"
    )
    locale: Locale = Field(default=None, validate_default=True)

    @field_validator("message", mode="before")
    @classmethod
    def validate_message(cls, v: Any) -> str:
        """Message must be 1-500 characters."""
        message = _require_text(
            v, "chat_message_required", CHAT_MESSAGE_REQUIRED_MESSAGE
        )
        return _check_length(
            message,
            1,
            CHAT_MESSAGE_MAX_LENGTH,
            CHAT_MESSAGE_REQUIRED_MESSAGE,
            CHAT_MESSAGE_TOO_LONG_MESSAGE,
        )

    @field_validator("session_id", mode="before")
    @classmethod
    def validate_session_id(cls, v: Any) -> str:
        if not isinstance(v, str) or not SESSION_ID_PATTERN.match(v):
            raise PydanticCustomError("session_invalid", CHAT_SESSION_INVALID_MESSAGE)
        return v

    @field_validator("conversation_history", mode="before")
    @classmethod
    def validate_history(cls, v: Any) -> list[Any]:
        """History must be a list of at most 20 ``{role, content}`` turns."""
        if v is None:
            return []
        if not isinstance(v, list):
            raise PydanticCustomError("history_invalid", CHAT_HISTORY_INVALID_MESSAGE)
        if len(v) > CHAT_HISTORY_MAX_LENGTH:
            raise PydanticCustomError("history_too_long", CHAT_HISTORY_TOO_LONG_MESSAGE)
        return v

    @field_validator("locale", mode="before")
    @classmethod
    def validate_locale(cls, v: Any) -> Locale:
        return normalize_locale(v)


class ChatResponse(BaseModel):
    """Assistant reply and the session's remaining allowance."""

    success: bool = True
    message: str
    remaining: int


class ChatErrorResponse(ErrorResponse):
    """Refused chat message; ``code`` tells the widget why."""

    code: str
