"""Pydantic schemas for API request/response validation."""

from styloren.schemas.credit import (
    BatchStatus,
    CreditBatch,
    CreditBatchCreate,
    CreditBatchResponse,
    CreditPlan,
    CreditPlanList,
    CreditStateResponse,
    UserCreditState,
)
from styloren.schemas.error import (
    ErrorCode,
    ErrorDetail,
    ErrorResponse,
)
from styloren.schemas.profile import (
    Profile,
    ProfileUpdate,
)
from styloren.schemas.scan import (
    ScanDeleteResult,
    ScanHistoryItem,
    ScanHistoryPage,
)
from styloren.schemas.styling import (
    AnalyzeRequest,
    AnalyzeResponse,
    ChatMessage,
    ChatRequest,
    ChatResponse,
    CompareRequest,
    CompareResponse,
)

__all__ = [
    # Credit schemas
    "BatchStatus",
    "CreditBatch",
    "CreditBatchCreate",
    "CreditBatchResponse",
    "CreditPlan",
    "CreditPlanList",
    "CreditStateResponse",
    "UserCreditState",
    # Error schemas
    "ErrorCode",
    "ErrorDetail",
    "ErrorResponse",
    # Profile schemas
    "Profile",
    "ProfileUpdate",
    # Scan schemas
    "ScanDeleteResult",
    "ScanHistoryItem",
    "ScanHistoryPage",
    # Styling schemas
    "AnalyzeRequest",
    "AnalyzeResponse",
    "ChatMessage",
    "ChatRequest",
    "ChatResponse",
    "CompareRequest",
    "CompareResponse",
]
