"""Pydantic schemas for scan history."""
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class ScanHistoryItem(BaseModel):
    """Schema for a saved scan with a time-limited image URL."""

    id: UUID
    user_id: UUID
    image_path: str
    thumbnail_path: str | None
    analysis_text: str
    style_score: int | None
    outfit_category: str | None
    created_at: datetime
    signed_image_url: str | None = None

    model_config = ConfigDict(from_attributes=True)


class ScanHistoryPage(BaseModel):
    """
    Schema for one page of history.

    Users without credits only see the first free scans; the rest are
    returned in ``locked`` so the client can render them blurred.
    """

    visible: list[ScanHistoryItem]
    locked: list[ScanHistoryItem]
    page: int
    has_more: bool


class ScanDeleteResult(BaseModel):
    deleted: int
