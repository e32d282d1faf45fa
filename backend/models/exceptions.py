"""
Custom domain exceptions for the application.

These exceptions are raised by the service layer and converted to HTTP responses
by centralized exception handlers in main.py, maintaining proper separation of concerns.

Client-facing messages are already localized when the exception is raised;
diagnostic details (missing settings, provider errors) travel on separate
attributes so the handlers can log them without ever returning them.

Enhanced with correlation IDs for Sentry integration and user error reporting.
"""

from dataclasses import dataclass

from core.correlation import generate_correlation_id, get_correlation_id


class DomainException(Exception):
    """
    Base class for all domain exceptions.

    Attributes:
        message: Human-readable error message.
        correlation_id: Unique ID for error tracking (auto-generated if not provided).
    """

    def __init__(self, message: str, correlation_id: str | None = None):
        self.message = message
        # Use request correlation ID if available, otherwise generate new one
        self.correlation_id = (
            correlation_id or get_correlation_id() or generate_correlation_id()
        )
        super().__init__(self.message)


@dataclass(frozen=True)
class FieldError:
    """A single violated constraint on a submitted field."""

    field: str
    message: str


class MalformedRequestException(DomainException):
    """Raised when the request body is not valid JSON."""

    pass


class ValidationException(DomainException):
    """Raised when input validation fails.

    Attributes:
        errors: Every violated constraint, in field order. ``message`` is the
            first one's message.
    """

    def __init__(
        self,
        message: str,
        errors: list[FieldError] | None = None,
        correlation_id: str | None = None,
    ):
        super().__init__(message, correlation_id)
        self.errors = errors or []


class RateLimitExceededException(DomainException):
    """Raised when rate limit is exceeded."""

    def __init__(
        self,
        message: str = "Rate limit exceeded. Please try again later.",
        retry_after: int | None = None,
        remaining: int = 0,
    ):
        super().__init__(message)
        self.retry_after = retry_after
        self.remaining = remaining


class ConfigurationException(DomainException):
    """Raised when required server configuration is missing.

    Attributes:
        missing: Names of the missing settings (logged, never returned).
    """

    def __init__(self, message: str, missing: list[str] | None = None):
        super().__init__(message)
        self.missing = missing or []


class EmailDeliveryException(DomainException):
    """Raised when a critical email fails to send."""

    def __init__(
        self,
        message: str = "Failed to send email. Please try again later.",
        reason: str | None = None,
    ):
        super().__init__(message)
        self.reason = reason


class EmailProviderError(Exception):
    """Raised by an email provider when a send call does not succeed.

    Internal to the delivery layer: the dispatcher turns it into a failed
    dispatch result instead of letting it reach the API.
    """

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class ChatBlockedException(DomainException):
    """Raised when a chat message is refused before reaching the model.

    Attributes:
        code: Machine-readable refusal reason returned alongside the message.
        status_code: 429 for rate and session limits, 400 otherwise.
    """

    def __init__(self, message: str, code: str, status_code: int = 400):
        super().__init__(message)
        self.code = code
        self.status_code = status_code


class ServiceUnavailableException(DomainException):
    """Raised when an upstream dependency (e.g. the chat model) cannot answer."""

    def __init__(self, message: str, reason: str | None = None):
        super().__init__(message)
        self.reason = reason


class ChatProviderError(Exception):
    """Raised by the chat client when a completion call does not succeed.

    Internal to the chat layer: the service maps it to a 503.
    """

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)
