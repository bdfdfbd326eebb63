"""Domain exceptions raised by services and integrations.

Each exception carries a machine-readable ``code`` from ``ErrorCode`` so the
API layer can render a structured error response without inspecting messages.
"""
from styloren.schemas.error import ErrorCode


class StylorenError(Exception):
    """Base class for all domain errors."""

    code = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class NoCreditsError(StylorenError):
    """The user has no usable credit; recoverable by purchasing a plan."""

    code = ErrorCode.NO_CREDITS

    def __init__(self, message: str = "No credits remaining"):
        super().__init__(message)


class PersistenceError(StylorenError):
    """Row storage was unavailable or rejected a write."""

    code = ErrorCode.DATABASE_ERROR


class ConcurrentUpdateConflict(StylorenError):
    """A conditional update matched no row because a concurrent write won."""

    code = ErrorCode.CONCURRENT_UPDATE


class PlanNotFoundError(StylorenError):
    code = ErrorCode.PLAN_NOT_FOUND


class ScanNotFoundError(StylorenError):
    code = ErrorCode.SCAN_NOT_FOUND


class InvalidInputError(StylorenError):
    """Request payload failed domain validation (image format, sizes, lengths)."""

    code = ErrorCode.INVALID_INPUT


class AIGatewayError(StylorenError):
    """The AI gateway failed or returned an unusable response."""

    code = ErrorCode.EXTERNAL_SERVICE_ERROR


class AIRateLimitedError(AIGatewayError):
    code = ErrorCode.RATE_LIMIT_EXCEEDED


class AIPaymentRequiredError(AIGatewayError):
    """The gateway's own upstream credits are exhausted (not the user's ledger)."""

    code = ErrorCode.UPSTREAM_PAYMENT_REQUIRED


class StorageError(StylorenError):
    """Object storage rejected an upload, signing or removal request."""

    code = ErrorCode.STORAGE_ERROR
