"""Structured error response schemas."""
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from styloren.utils.time import utcnow


class ErrorDetail(BaseModel):
    """Detailed error information."""

    code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    field: str | None = Field(default=None, description="Field that caused the error (for validation errors)")
    value: Any | None = Field(default=None, description="Invalid value (for validation errors)")


class ErrorResponse(BaseModel):
    """Standard error response structure.

    Clients pick their messaging from ``error``: ``NoCredits`` opens the
    paywall, ``RateLimitExceeded`` asks the user to slow down, everything else
    is a generic "something went wrong, try again".
    """

    error: str = Field(..., description="Error type (e.g., 'NoCredits', 'ValidationError', 'NotFound')")
    message: str = Field(..., description="Primary error message")
    code: str = Field(..., description="Machine-readable error code")
    details: list[ErrorDetail] | None = Field(
        default=None, description="Detailed error information (for validation errors)"
    )
    remediation: str | None = Field(default=None, description="Suggestion for fixing the error")
    request_id: str | None = Field(default=None, description="Request ID for tracing")
    timestamp: datetime = Field(default_factory=utcnow, description="Error timestamp")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "error": "NoCredits",
                "message": "No credits remaining",
                "code": "no_credits",
                "remediation": "Purchase a credit plan to continue.",
                "request_id": "req_1234567890",
                "timestamp": "2026-01-15T10:30:00Z",
            }
        }
    )


# Error codes enum for consistency
class ErrorCode:
    """Standard error codes used across the API."""

    # Validation errors (400/422)
    INVALID_INPUT = "invalid_input"
    INVALID_UUID = "invalid_uuid"
    MISSING_REQUIRED_FIELD = "missing_required_field"

    # Business logic errors (402)
    NO_CREDITS = "no_credits"

    # Not found errors (404)
    PLAN_NOT_FOUND = "plan_not_found"
    SCAN_NOT_FOUND = "scan_not_found"

    # Authentication errors (401)
    INVALID_TOKEN = "invalid_token"

    # Rate limiting (429)
    RATE_LIMIT_EXCEEDED = "rate_limit_exceeded"

    # External service errors (502, 503)
    DATABASE_ERROR = "database_error"
    CONCURRENT_UPDATE = "concurrent_update"
    EXTERNAL_SERVICE_ERROR = "external_service_error"
    UPSTREAM_PAYMENT_REQUIRED = "upstream_payment_required"
    STORAGE_ERROR = "storage_error"

    # Internal errors (500)
    INTERNAL_ERROR = "internal_error"


# Remediation hints for common errors
REMEDIATION_HINTS = {
    ErrorCode.NO_CREDITS: "Purchase a credit plan to continue.",
    ErrorCode.PLAN_NOT_FOUND: "Use one of the plan ids returned by /v1/credits/plans.",
    ErrorCode.RATE_LIMIT_EXCEEDED: "Too many requests. Please wait a moment and try again.",
    ErrorCode.DATABASE_ERROR: "Something went wrong. Please try again in a few moments.",
    ErrorCode.UPSTREAM_PAYMENT_REQUIRED: "The styling service is temporarily unavailable. Please try again later.",
    ErrorCode.EXTERNAL_SERVICE_ERROR: "The styling service failed to respond. Please try again.",
}
