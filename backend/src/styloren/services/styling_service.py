"""Credit-gated styling features: outfit analysis, stylist chat, outfit comparison.

Each feature checks the credit gate first, calls the AI gateway, and only
debits a credit after the gateway returned successfully. A failed or aborted
AI call never costs the user a credit.
"""
import re
from typing import Any, Sequence
from uuid import UUID

import structlog

from styloren.exceptions import (
    AIGatewayError,
    InvalidInputError,
    NoCreditsError,
    PersistenceError,
    StorageError,
)
from styloren.integrations.ai_gateway import (
    MAX_MESSAGE_LENGTH,
    MAX_OCCASION_LENGTH,
    AIGatewayClient,
    build_analysis_prompt,
    build_chat_system_prompt,
    build_comparison_prompt,
    image_part,
    sanitize_text,
)
from styloren.metrics import ai_gateway_requests_total
from styloren.schemas.credit import UserCreditState
from styloren.schemas.styling import AnalyzeResponse, ChatMessage, ChatResponse, CompareResponse
from styloren.services.credit_ledger import CreditLedgerService
from styloren.services.scan_history_service import ScanHistoryService

logger = structlog.get_logger(__name__)

MAX_IMAGE_SIZE = 10 * 1024 * 1024  # base64 characters
MAX_HISTORY_LENGTH = 50
MIN_COMPARE_IMAGES = 2
MAX_COMPARE_IMAGES = 4

_STYLE_SCORE = re.compile(r"Style Score[:\s]*(\d+)", re.IGNORECASE)
_OUTFIT_CATEGORY = re.compile(r"(?:Overall Style|Style Category|Look)[:\s]*([A-Za-z]+)", re.IGNORECASE)


def validate_image(image_data_url: str | None) -> None:
    """Reject missing, oversized or non-data-URL images."""
    if not image_data_url:
        raise InvalidInputError("No image provided")
    if len(image_data_url) > MAX_IMAGE_SIZE:
        raise InvalidInputError("Image too large. Maximum size is 10MB.")
    if not image_data_url.startswith("data:image/"):
        raise InvalidInputError("Invalid image format")


def parse_analysis_metadata(analysis: str) -> tuple[int | None, str | None]:
    """Pull the style score and outfit category out of an analysis, if present."""
    score_match = _STYLE_SCORE.search(analysis)
    category_match = _OUTFIT_CATEGORY.search(analysis)
    return (
        int(score_match.group(1)) if score_match else None,
        category_match.group(1) if category_match else None,
    )


class StylingService:
    """Billable AI features gated by the credit ledger."""

    def __init__(
        self,
        ledger: CreditLedgerService,
        gateway: AIGatewayClient,
        scan_history: ScanHistoryService,
    ):
        self.ledger = ledger
        self.gateway = gateway
        self.scan_history = scan_history

    async def analyze_outfit(self, user_id: UUID, image_data_url: str) -> AnalyzeResponse:
        """
        Analyze one outfit photo and, if the user opted in, save it to history.

        Raises:
            InvalidInputError: If the image is missing, too large or not a data URL
            NoCreditsError: If the user has no credits (no AI call is made)
            AIGatewayError: If the AI call failed (no credit is debited)
            PersistenceError: If the debit could not be stored
        """
        validate_image(image_data_url)
        state = await self._require_credit(user_id, "analyze")

        messages = [
            {"role": "system", "content": build_analysis_prompt(state.display_name)},
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": "Please analyze this outfit photo and provide your expert fashion advice."},
                    image_part(image_data_url),
                ],
            },
        ]
        analysis = await self._complete(messages, "analyze")
        await self.ledger.consume(user_id, state)

        saved = False
        if state.save_scan_history:
            style_score, outfit_category = parse_analysis_metadata(analysis)
            try:
                await self.scan_history.save_scan(
                    user_id,
                    image_data_url,
                    analysis,
                    style_score=style_score,
                    outfit_category=outfit_category,
                )
                saved = True
            except (StorageError, PersistenceError, InvalidInputError) as e:
                logger.error("scan_history_save_failed", user_id=str(user_id), error=str(e))

        return AnalyzeResponse(analysis=analysis, saved_to_history=saved)

    async def chat(
        self,
        user_id: UUID,
        message: str,
        image_data_url: str | None = None,
        history: Sequence[ChatMessage] = (),
    ) -> ChatResponse:
        """
        Answer one chat turn; each turn costs one credit.

        Raises:
            InvalidInputError: Empty message, oversized image or history too long
            NoCreditsError: If the user has no credits
            AIGatewayError: If the AI call failed (no credit is debited)
        """
        if not message or not isinstance(message, str):
            raise InvalidInputError("No message provided")

        safe_message = sanitize_text(message, MAX_MESSAGE_LENGTH)
        if not safe_message:
            raise InvalidInputError("Invalid message")
        if image_data_url and len(image_data_url) > MAX_IMAGE_SIZE:
            raise InvalidInputError("Image too large. Maximum size is 10MB.")
        if len(history) > MAX_HISTORY_LENGTH:
            raise InvalidInputError("Conversation history too long")

        state = await self._require_credit(user_id, "chat")

        messages: list[dict[str, Any]] = [
            {"role": "system", "content": build_chat_system_prompt(state.display_name)},
        ]
        messages.extend(
            {"role": turn.role, "content": turn.content}
            for turn in history
            if turn.role in ("user", "assistant") and turn.content
        )
        if image_data_url:
            messages.append(
                {
                    "role": "user",
                    "content": [{"type": "text", "text": safe_message}, image_part(image_data_url)],
                }
            )
        else:
            messages.append({"role": "user", "content": safe_message})

        response = await self._complete(messages, "chat")
        await self.ledger.consume(user_id, state)
        return ChatResponse(response=response)

    async def compare_outfits(
        self,
        user_id: UUID,
        images: Sequence[str],
        occasion: str | None = None,
    ) -> CompareResponse:
        """
        Compare two to four outfits, optionally for an occasion.

        Raises:
            InvalidInputError: Wrong image count or an oversized image
            NoCreditsError: If the user has no credits
            AIGatewayError: If the AI call failed (no credit is debited)
        """
        if not images or len(images) < MIN_COMPARE_IMAGES:
            raise InvalidInputError("At least 2 images are required")
        if len(images) > MAX_COMPARE_IMAGES:
            raise InvalidInputError("Maximum 4 images allowed")
        for position, image in enumerate(images, start=1):
            if not isinstance(image, str):
                raise InvalidInputError(f"Invalid image format at position {position}")
            if len(image) > MAX_IMAGE_SIZE:
                raise InvalidInputError(f"Image {position} is too large. Maximum size is 10MB.")

        state = await self._require_credit(user_id, "compare")

        prompt = build_comparison_prompt(occasion)
        safe_occasion = sanitize_text(occasion, MAX_OCCASION_LENGTH)
        text = f"{prompt}\n\nI have {len(images)} outfit photos to compare."
        if safe_occasion:
            text += f" I'm planning to wear one for: {safe_occasion}."
        text += " Please analyze each one and recommend the best outfit."

        image_parts = [
            image_part(image if image.startswith("data:") else f"data:image/jpeg;base64,{image}")
            for image in images
        ]
        messages = [{"role": "user", "content": [{"type": "text", "text": text}, *image_parts]}]

        comparison = await self._complete(messages, "compare")
        await self.ledger.consume(user_id, state)
        return CompareResponse(comparison=comparison)

    async def _require_credit(self, user_id: UUID, feature: str) -> UserCreditState:
        state = await self.ledger.get_state(user_id)
        if not self.ledger.can_consume(state):
            logger.info("feature_blocked_no_credits", user_id=str(user_id), feature=feature)
            raise NoCreditsError()
        return state

    async def _complete(self, messages: list[dict[str, Any]], feature: str) -> str:
        try:
            content = await self.gateway.complete(messages, feature=feature)
        except AIGatewayError as e:
            ai_gateway_requests_total.labels(feature=feature, outcome=e.code).inc()
            raise
        ai_gateway_requests_total.labels(feature=feature, outcome="success").inc()
        return content
