# ruff: noqa: E402
# E402 disabled: load_dotenv() must run before other imports for Sentry DSN

import os
import time
from collections.abc import Awaitable, Callable
from contextlib import asynccontextmanager

from dotenv import load_dotenv

load_dotenv()

import sentry_sdk
from fastapi import FastAPI, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.middleware.base import BaseHTTPMiddleware

from core.correlation import (
    generate_correlation_id,
    get_correlation_id,
    resolve_correlation_id,
    set_correlation_id,
)
from core.logging_config import configure_logging
from core.scheduler import get_scheduler_status, setup_scheduler, shutdown_scheduler
from core.sentry_config import init_sentry
from helpers.ip_utils import anonymize_ip
from helpers.language import DEFAULT_LOCALE, get_contact_copy
from helpers.rate_limiter import limiter
from helpers.request_utils import get_client_ip
from helpers.security_headers import SecurityHeadersMiddleware
from models.config import settings
from models.exceptions import (
    ChatBlockedException,
    ConfigurationException,
    DomainException,
    EmailDeliveryException,
    MalformedRequestException,
    RateLimitExceededException,
    ServiceUnavailableException,
    ValidationException,
)
from repositories.database import Base, engine
from routers import chat_router, consent_router, contact_router, well_known_router

# Initialize Sentry BEFORE app creation
init_sentry()

# Configure logging with Loguru
configure_logging(os.getenv("ENVIRONMENT", "development"))


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler.

    - Create the consent log table if missing.
    - Start the maintenance scheduler (not in tests).
    """
    Base.metadata.create_all(bind=engine)

    if settings.ENVIRONMENT != "test":
        setup_scheduler()

    try:
        yield
    finally:
        if settings.ENVIRONMENT != "test":
            shutdown_scheduler()


app = FastAPI(title=f"{settings.SITE_NAME} API", lifespan=lifespan)

# Attach rate limiter to app
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)  # type: ignore[arg-type]


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Inject correlation ID into request context and Sentry."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        """Process request with correlation ID tracking."""
        correlation_id = resolve_correlation_id(request.headers.get("X-Correlation-ID"))
        set_correlation_id(correlation_id)

        sentry_sdk.set_tag("correlation_id", correlation_id)

        response = await call_next(request)

        response.headers["X-Correlation-ID"] = correlation_id

        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log all incoming requests with performance monitoring."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        """Process request and log timing information."""
        start_time = time.perf_counter()

        client_ip = anonymize_ip(get_client_ip(request))
        logger.info(f"Request: {request.method} {request.url.path} from {client_ip}")

        response = await call_next(request)

        duration = time.perf_counter() - start_time

        logger.info(
            f"Response: {request.method} {request.url.path} "
            f"status={response.status_code} duration={duration:.3f}s"
        )

        # Warn on slow requests (configurable threshold)
        if duration > settings.SLOW_REQUEST_THRESHOLD:
            logger.warning(
                f"Slow request: {request.method} {request.url.path} "
                f"took {duration:.2f}s (threshold: {settings.SLOW_REQUEST_THRESHOLD}s)"
            )

        response.headers["X-Response-Time"] = f"{duration:.3f}s"

        return response


# Middleware runs in reverse order - security headers wrap the route directly.
# The correlation ID is set outermost so request logs carry it.
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(CorrelationIdMiddleware)

# Configure CORS from environment settings
cors_origins = ["*"] if settings.ENVIRONMENT == "development" else settings.CORS_ORIGINS
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=False,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["X-RateLimit-Remaining", "Retry-After", "X-Correlation-ID"],
)


def _error_response(
    status_code: int, message: str, headers: dict[str, str] | None = None
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code, content={"error": message}, headers=headers
    )


# Global unhandled exception handler (returns generic 500 and logs details)
@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch all unhandled exceptions with full Sentry capture."""
    correlation_id = get_correlation_id() or generate_correlation_id()

    sentry_sdk.set_tag("correlation_id", correlation_id)
    sentry_sdk.capture_exception(exc)

    # Use repr() to escape curly braces in exception message
    # (loguru's .format() interprets them as placeholders otherwise)
    logger.exception(
        f"Unhandled exception: {exc!r}",
        correlation_id=correlation_id,
        path=str(request.url.path),
        method=request.method,
    )

    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR, get_contact_copy(DEFAULT_LOCALE).error
    )


# Centralized exception handlers
@app.exception_handler(RateLimitExceededException)
async def rate_limit_exception_handler(
    request: Request, exc: RateLimitExceededException
) -> JSONResponse:
    """Handle contact form rate limiting with retry hints."""
    headers = {"X-RateLimit-Remaining": str(exc.remaining)}
    if exc.retry_after is not None:
        headers["Retry-After"] = str(exc.retry_after)

    return _error_response(status.HTTP_429_TOO_MANY_REQUESTS, exc.message, headers)


@app.exception_handler(MalformedRequestException)
async def malformed_request_exception_handler(
    request: Request, exc: MalformedRequestException
) -> JSONResponse:
    """Handle request bodies that are not JSON."""
    logger.info(f"Malformed request body on {request.url.path}")
    return _error_response(status.HTTP_400_BAD_REQUEST, exc.message)


@app.exception_handler(ValidationException)
async def validation_exception_handler(
    request: Request, exc: ValidationException
) -> JSONResponse:
    """Handle validation exceptions (first violated field's message)."""
    logger.info(
        f"Validation error: {exc.message}",
        correlation_id=exc.correlation_id,
        path=str(request.url.path),
    )
    return _error_response(status.HTTP_400_BAD_REQUEST, exc.message)


@app.exception_handler(ConfigurationException)
async def configuration_exception_handler(
    request: Request, exc: ConfigurationException
) -> JSONResponse:
    """Handle missing server configuration. Details stay in the logs."""
    sentry_sdk.set_tag("correlation_id", exc.correlation_id)
    sentry_sdk.set_tag("exception_type", exc.__class__.__name__)
    sentry_sdk.capture_exception(exc)

    logger.error(
        f"Server misconfigured, missing: {', '.join(exc.missing)}",
        correlation_id=exc.correlation_id,
        path=str(request.url.path),
    )
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, exc.message)


@app.exception_handler(EmailDeliveryException)
async def email_delivery_exception_handler(
    request: Request, exc: EmailDeliveryException
) -> JSONResponse:
    """Handle a failed critical email. The provider reason stays in the logs."""
    sentry_sdk.set_tag("correlation_id", exc.correlation_id)
    sentry_sdk.set_tag("exception_type", exc.__class__.__name__)
    sentry_sdk.capture_exception(exc)

    logger.error(
        f"Email delivery failed: {exc.reason}",
        correlation_id=exc.correlation_id,
        path=str(request.url.path),
    )
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, exc.message)


@app.exception_handler(ChatBlockedException)
async def chat_blocked_exception_handler(
    request: Request, exc: ChatBlockedException
) -> JSONResponse:
    """Handle refused chat messages; ``code`` lets the widget react."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message, "code": exc.code},
    )


@app.exception_handler(ServiceUnavailableException)
async def service_unavailable_exception_handler(
    request: Request, exc: ServiceUnavailableException
) -> JSONResponse:
    """Handle an upstream that cannot answer. The reason stays in the logs."""
    sentry_sdk.set_tag("correlation_id", exc.correlation_id)
    sentry_sdk.set_tag("exception_type", exc.__class__.__name__)
    sentry_sdk.capture_exception(exc)

    logger.error(
        f"Upstream unavailable: {exc.reason}",
        correlation_id=exc.correlation_id,
        path=str(request.url.path),
    )
    return _error_response(status.HTTP_503_SERVICE_UNAVAILABLE, exc.message)


@app.exception_handler(DomainException)
async def domain_exception_handler(
    request: Request, exc: DomainException
) -> JSONResponse:
    """Handle generic domain exceptions with Sentry integration."""
    sentry_sdk.set_tag("correlation_id", exc.correlation_id)
    sentry_sdk.set_tag("exception_type", exc.__class__.__name__)
    sentry_sdk.capture_exception(exc)

    logger.warning(
        f"Domain exception: {exc.message}",
        correlation_id=exc.correlation_id,
        exception_type=exc.__class__.__name__,
        path=str(request.url.path),
    )
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR, get_contact_copy(DEFAULT_LOCALE).error
    )


app.include_router(contact_router.router, prefix="/api")
app.include_router(consent_router.router, prefix="/api")
app.include_router(chat_router.router, prefix="/api")
app.include_router(well_known_router.router)


@app.get("/api/health")
def health_check() -> dict:
    """Health check endpoint, with the maintenance scheduler's jobs."""
    return {"status": "healthy", "scheduler": get_scheduler_status()}
