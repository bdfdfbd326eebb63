"""AI gateway integration.

Sends chat-completion requests (text, optional images, optional history) to
the hosted gateway and maps its failure statuses to typed errors.
"""
import re
from typing import Any, Sequence

import httpx
import structlog

from styloren.config import settings
from styloren.exceptions import AIGatewayError, AIPaymentRequiredError, AIRateLimitedError

logger = structlog.get_logger(__name__)

MAX_USERNAME_LENGTH = 100
MAX_MESSAGE_LENGTH = 2000
MAX_OCCASION_LENGTH = 200

_UNSAFE_CHARACTERS = re.compile(r"[<>\"'`${}\\]")


def sanitize_text(value: str | None, max_length: int) -> str:
    """Strip characters usable for prompt injection, trim and truncate."""
    if not value:
        return ""
    return _UNSAFE_CHARACTERS.sub("", value).strip()[:max_length]


def image_part(image_url: str) -> dict[str, Any]:
    return {"type": "image_url", "image_url": {"url": image_url}}


def build_analysis_prompt(user_name: str | None = None) -> str:
    """System prompt for a single-outfit analysis."""
    safe_name = sanitize_text(user_name, MAX_USERNAME_LENGTH)
    if safe_name:
        greeting = (
            f"You are an expert AI fashion stylist. The user's name is {safe_name}, "
            "so address them by name in a friendly way."
        )
    else:
        greeting = "You are an expert AI fashion stylist."

    return f"""{greeting}
Analyze the outfit in the uploaded photo. Provide:

**Overall Style Analysis** – fabric, colors, vibe (casual, formal, festive, etc.).

**Compatibility Check** – tell whether the selected accessories in the photo (bag, shoes, earrings, bangles, necklace, watch, belt etc.) match the outfit or not.

**Colour & Style Rules** – explain why they match or don't match based on colour palette, contrast, undertones, texture, patterns, metal type, and occasion.

**Accessory-by-Accessory Verdict** – for each accessory, give a clear verdict:
- "Perfect Match" ✓
- "Good but could be better" ~
- "Not a good match" ✗

**Best Accessory Recommendation** – suggest the most suitable accessories that would elevate the look (specific colours, materials, shapes).

**Optional Upgrades** – hairstyle, makeup tone, shoe swap, bag type.

**Final Verdict** – one sentence summarizing whether the overall combination works or needs change.

Use simple, friendly, fashion-expert language. Be specific and visually descriptive. Avoid generic advice."""


def build_chat_system_prompt(user_name: str | None = None) -> str:
    """System prompt for the stylist chat."""
    safe_name = sanitize_text(user_name, MAX_USERNAME_LENGTH)
    greeting = (
        f"The user's name is {safe_name} - address them by name occasionally to be personable."
        if safe_name
        else ""
    )

    return f"""You are Styloren, a friendly and expert AI fashion stylist.
You help users with outfit advice, styling tips, and fashion recommendations.
Keep your responses concise, helpful, and encouraging.
If an image is provided, reference specific details from the outfit.
Use emojis sparingly to add personality.
{greeting}"""


def build_comparison_prompt(occasion: str | None = None) -> str:
    """Instruction text for comparing several outfits, optionally for an occasion."""
    safe_occasion = sanitize_text(occasion, MAX_OCCASION_LENGTH)
    occasion_context = ""
    if safe_occasion:
        occasion_context = (
            f"\n\nIMPORTANT: The user is planning to wear one of these outfits for: **{safe_occasion}**. "
            "Please factor this occasion into your analysis, ratings (especially Occasion Appropriateness), "
            "and final verdict. Consider what would be most suitable for this specific event/place."
        )

    occasion_rating = f" (for {safe_occasion})" if safe_occasion else ""
    occasion_question = f"\n- Which is most appropriate for {safe_occasion}?" if safe_occasion else ""
    occasion_winner = f" Explain why it's the best choice for {safe_occasion}." if safe_occasion else ""

    return f"""You are a friendly, expert fashion stylist comparing multiple outfit photos. Analyze each outfit and recommend the best one.{occasion_context}

Please provide your comparison in this format:

**Overview**
Briefly describe each outfit (Outfit 1, Outfit 2, etc.) in 1-2 sentences each.

**Individual Ratings**
Rate each outfit on:
- Style & Aesthetics (1-10)
- Color Coordination (1-10)
- Fit & Silhouette (1-10)
- Occasion Appropriateness (1-10){occasion_rating}

**Comparison Analysis**
Compare the outfits considering:
- Which has better color harmony?
- Which is more flattering?
- Which is more versatile?
- Which makes a stronger style statement?{occasion_question}

**Winner: Outfit [X] 🏆**
Clearly state which outfit wins and why in 2-3 sentences.{occasion_winner}

**Quick Tips for Each Outfit**
Give one actionable improvement tip for each outfit.

Keep your tone friendly, encouraging, and specific. Be honest but constructive!"""


class AIGatewayClient:
    """Async client for the chat-completion gateway."""

    def __init__(
        self,
        url: str | None = None,
        api_key: str | None = None,
        model: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.url = url or settings.ai_gateway_url
        self.api_key = api_key if api_key is not None else settings.ai_gateway_api_key
        self.model = model or settings.ai_model
        self.timeout = timeout or settings.ai_request_timeout_seconds
        self._transport = transport

    async def complete(self, messages: Sequence[dict[str, Any]], feature: str = "chat") -> str:
        """
        Send a chat-completion request and return the first choice's text.

        Args:
            messages: OpenAI-style message list
            feature: Billable feature name, used for logging only

        Returns:
            Assistant message content

        Raises:
            AIRateLimitedError: Gateway answered 429
            AIPaymentRequiredError: Gateway answered 402 (its upstream credits are exhausted)
            AIGatewayError: Any other failure, including an empty completion
        """
        if not self.api_key:
            raise AIGatewayError("AI gateway API key is not configured")

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    self.url,
                    json={"model": self.model, "messages": list(messages)},
                    headers={
                        "Authorization": f"Bearer {self.api_key}",
                        "Content-Type": "application/json",
                    },
                )
        except httpx.TimeoutException as e:
            logger.warning("ai_gateway_timeout", feature=feature, timeout=self.timeout)
            raise AIGatewayError(f"AI gateway timed out after {self.timeout}s") from e
        except httpx.HTTPError as e:
            logger.error("ai_gateway_http_error", feature=feature, error=str(e))
            raise AIGatewayError(f"AI gateway request failed: {e}") from e

        if response.status_code == 429:
            logger.warning("ai_gateway_rate_limited", feature=feature)
            raise AIRateLimitedError("Rate limit exceeded. Please try again in a moment.")
        if response.status_code == 402:
            logger.error("ai_gateway_payment_required", feature=feature)
            raise AIPaymentRequiredError("AI credits depleted. Please try again later.")
        if response.status_code >= 400:
            logger.error(
                "ai_gateway_error",
                feature=feature,
                status_code=response.status_code,
                body=response.text[:200],
            )
            raise AIGatewayError(f"AI gateway error: {response.status_code}")

        try:
            content = response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise AIGatewayError("AI gateway returned an unexpected response") from e

        if not content:
            raise AIGatewayError("AI gateway returned an empty response")

        logger.info("ai_gateway_completed", feature=feature, length=len(content))
        return content
