"""Credit-gated styling endpoints. Each successful call costs one credit."""
from uuid import UUID

from fastapi import APIRouter, Depends

from styloren.api.deps import get_current_user_id, get_styling
from styloren.schemas.styling import (
    AnalyzeRequest,
    AnalyzeResponse,
    ChatRequest,
    ChatResponse,
    CompareRequest,
    CompareResponse,
)
from styloren.services.styling_service import StylingService

router = APIRouter(prefix="/styling", tags=["styling"])


@router.post("/analyze", response_model=AnalyzeResponse)
async def analyze_outfit(
    request_data: AnalyzeRequest,
    user_id: UUID = Depends(get_current_user_id),
    styling: StylingService = Depends(get_styling),
) -> AnalyzeResponse:
    """
    Analyze one outfit photo.

    Returns 402 when the user has no credits. Gateway failures do not debit.
    """
    return await styling.analyze_outfit(user_id, request_data.image_base64)


@router.post("/chat", response_model=ChatResponse)
async def chat(
    request_data: ChatRequest,
    user_id: UUID = Depends(get_current_user_id),
    styling: StylingService = Depends(get_styling),
) -> ChatResponse:
    return await styling.chat(
        user_id,
        request_data.message,
        image_data_url=request_data.image_base64,
        history=request_data.conversation_history,
    )


@router.post("/compare", response_model=CompareResponse)
async def compare_outfits(
    request_data: CompareRequest,
    user_id: UUID = Depends(get_current_user_id),
    styling: StylingService = Depends(get_styling),
) -> CompareResponse:
    """Compare two to four outfits, optionally for an occasion."""
    return await styling.compare_outfits(user_id, request_data.images, occasion=request_data.occasion)
