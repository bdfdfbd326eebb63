"""FastAPI application entry point."""
import uuid
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app

from styloren import __version__
from styloren.api.v1 import credits, health, profile, scans, styling
from styloren.cache import cache
from styloren.config import settings
from styloren.database import engine
from styloren.exceptions import (
    AIGatewayError,
    AIPaymentRequiredError,
    AIRateLimitedError,
    InvalidInputError,
    NoCreditsError,
    PersistenceError,
    PlanNotFoundError,
    ScanNotFoundError,
    StorageError,
    StylorenError,
)
from styloren.middleware.logging import LoggingMiddleware, setup_logging
from styloren.middleware.metrics import MetricsMiddleware
from styloren.schemas.error import REMEDIATION_HINTS, ErrorCode, ErrorDetail, ErrorResponse

# Setup structured logging
setup_logging()
logger = structlog.get_logger(__name__)

# Most specific first; the first isinstance match wins.
ERROR_STATUS: list[tuple[type[StylorenError], int, str]] = [
    (NoCreditsError, status.HTTP_402_PAYMENT_REQUIRED, "NoCredits"),
    (AIRateLimitedError, status.HTTP_429_TOO_MANY_REQUESTS, "RateLimitExceeded"),
    (AIPaymentRequiredError, status.HTTP_503_SERVICE_UNAVAILABLE, "UpstreamPaymentRequired"),
    (AIGatewayError, status.HTTP_502_BAD_GATEWAY, "AIGatewayError"),
    (PersistenceError, status.HTTP_503_SERVICE_UNAVAILABLE, "ServiceUnavailable"),
    (StorageError, status.HTTP_502_BAD_GATEWAY, "StorageError"),
    (PlanNotFoundError, status.HTTP_404_NOT_FOUND, "NotFound"),
    (ScanNotFoundError, status.HTTP_404_NOT_FOUND, "NotFound"),
    (InvalidInputError, status.HTTP_400_BAD_REQUEST, "InvalidInput"),
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager for startup and shutdown events."""
    logger.info("application_starting", env=settings.app_env, cache_backend=settings.cache_backend)
    yield
    logger.info("application_shutting_down")
    await cache.close()
    await engine.dispose()


app = FastAPI(
    title="Styloren API",
    description="AI outfit analysis with prepaid, expiring credit batches",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(MetricsMiddleware)
app.add_middleware(LoggingMiddleware)

# Mount Prometheus metrics endpoint
app.mount("/metrics", make_asgi_app())


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or request.headers.get(
        "x-request-id", f"req_{uuid.uuid4().hex[:12]}"
    )


@app.exception_handler(StylorenError)
async def domain_exception_handler(request: Request, exc: StylorenError) -> JSONResponse:
    """
    Render domain errors as structured responses.

    ``NoCredits`` (402) is the paywall signal; gateway and storage failures are
    5xx so clients show a generic retry message.
    """
    status_code, error = status.HTTP_500_INTERNAL_SERVER_ERROR, "InternalServerError"
    for exc_type, mapped_status, mapped_error in ERROR_STATUS:
        if isinstance(exc, exc_type):
            status_code, error = mapped_status, mapped_error
            break

    request_id = _request_id(request)
    log = logger.warning if status_code < 500 else logger.error
    log(
        "domain_error",
        path=request.url.path,
        method=request.method,
        request_id=request_id,
        error=error,
        code=exc.code,
        error_message=exc.message,
    )

    # Storage failures may carry driver text; keep it out of production responses.
    message = exc.message
    if isinstance(exc, PersistenceError) and settings.app_env == "production":
        message = "Something went wrong. Please try again."

    body = ErrorResponse(
        error=error,
        message=message,
        code=exc.code,
        remediation=REMEDIATION_HINTS.get(exc.code),
        request_id=request_id,
    )
    headers = {"Retry-After": "30"} if status_code == status.HTTP_503_SERVICE_UNAVAILABLE else None
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"), headers=headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Handle Pydantic validation errors with structured response.

    Returns 422 with detailed field-level validation errors.
    """
    request_id = _request_id(request)

    code_mapping = {
        "uuid_parsing": ErrorCode.INVALID_UUID,
        "uuid_type": ErrorCode.INVALID_UUID,
        "missing": ErrorCode.MISSING_REQUIRED_FIELD,
    }
    details = [
        ErrorDetail(
            code=code_mapping.get(error["type"], ErrorCode.INVALID_INPUT),
            message=error["msg"],
            field=".".join(str(loc) for loc in error["loc"]),
        )
        for error in exc.errors()
    ]

    logger.warning(
        "validation_error",
        path=request.url.path,
        method=request.method,
        request_id=request_id,
        error_count=len(details),
    )

    body = ErrorResponse(
        error="ValidationError",
        message="Request validation failed",
        code=ErrorCode.INVALID_INPUT,
        details=details,
        remediation="Check the API documentation for correct request format at /docs",
        request_id=request_id,
    )
    return JSONResponse(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content=body.model_dump(mode="json"))


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle all other uncaught exceptions.

    Logs the full stack trace but returns a safe error message to the client.
    """
    request_id = _request_id(request)

    logger.exception(
        "unhandled_exception",
        path=request.url.path,
        method=request.method,
        request_id=request_id,
        exception_type=type(exc).__name__,
    )

    body = ErrorResponse(
        error="InternalServerError",
        message="An unexpected error occurred",
        code=ErrorCode.INTERNAL_ERROR,
        remediation="Please contact support with the request ID",
        request_id=request_id,
    )
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=body.model_dump(mode="json"))


@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """Root endpoint with API information."""
    return {
        "service": "Styloren API",
        "version": __version__,
        "status": "operational",
        "docs": "/docs",
    }


app.include_router(health.router, tags=["Health"])
app.include_router(credits.router, prefix="/v1", tags=["Credits"])
app.include_router(profile.router, prefix="/v1", tags=["Profile"])
app.include_router(styling.router, prefix="/v1", tags=["Styling"])
app.include_router(scans.router, prefix="/v1", tags=["Scans"])
