"""Pydantic schemas for the credit-gated styling endpoints."""
from typing import Literal

from pydantic import BaseModel, Field


class ChatMessage(BaseModel):
    """One prior turn of a styling conversation."""

    role: Literal["user", "assistant", "system"]
    content: str | list = Field(..., description="Text or multimodal content parts")


class AnalyzeRequest(BaseModel):
    """Schema for analyzing a single outfit photo."""

    image_base64: str = Field(..., description="Image as a data:image/... URL")


class AnalyzeResponse(BaseModel):
    analysis: str
    saved_to_history: bool


class ChatRequest(BaseModel):
    """Schema for one chat turn with the stylist."""

    message: str = Field(..., description="User message")
    image_base64: str | None = Field(default=None, description="Optional outfit photo as a data URL")
    conversation_history: list[ChatMessage] = Field(default_factory=list)


class ChatResponse(BaseModel):
    response: str


class CompareRequest(BaseModel):
    """Schema for comparing two to four outfits."""

    images: list[str] = Field(..., description="Outfit photos as data URLs or bare base64")
    occasion: str | None = Field(default=None, description="Occasion the outfit is planned for")


class CompareResponse(BaseModel):
    comparison: str
