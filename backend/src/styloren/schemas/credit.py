"""Pydantic schemas for credit plans, batches and aggregated credit state."""
import enum
from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class BatchStatus(str, enum.Enum):
    """Consumption eligibility of a batch. Exhausted and expired are terminal."""

    ACTIVE = "active"
    EXHAUSTED = "exhausted"
    EXPIRED = "expired"


class CreditPlan(BaseModel):
    """Catalog entry describing what a purchase grants."""

    id: Literal["quick_try", "monthly_value", "quarterly_saver"]
    name: str
    credits: int = Field(..., ge=0)
    validity_days: int = Field(..., gt=0)
    validity_label: str
    price: str
    price_value: int
    description: str
    highlight: bool = False
    product_id: str

    model_config = ConfigDict(frozen=True)


class CreditBatch(BaseModel):
    """
    One purchased grant of credits, with fields derived against a point in time.

    ``credits_remaining`` and ``is_expired`` are only meaningful for the ``now``
    the batch was built with; rebuild the batch to re-evaluate expiry.
    """

    id: UUID
    credits_total: int
    credits_used: int
    credits_remaining: int
    purchased_at: datetime
    expires_at: datetime
    plan_name: str
    is_expired: bool

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_row(cls, row: Any, now: datetime) -> "CreditBatch":
        """Build a batch from a stored row (ORM object or cached dict)."""
        get = row.get if isinstance(row, dict) else lambda name: getattr(row, name)

        expires_at = _as_datetime(get("expires_at"))
        credits_total = int(get("credits_total"))
        credits_used = int(get("credits_used"))
        is_expired = now > expires_at
        remaining = 0 if is_expired else max(0, credits_total - credits_used)

        return cls(
            id=UUID(str(get("id"))),
            credits_total=credits_total,
            credits_used=credits_used,
            credits_remaining=remaining,
            purchased_at=_as_datetime(get("purchased_at")),
            expires_at=expires_at,
            plan_name=get("plan_name"),
            is_expired=is_expired,
        )

    @property
    def status(self) -> BatchStatus:
        if self.is_expired:
            return BatchStatus.EXPIRED
        if self.credits_remaining <= 0:
            return BatchStatus.EXHAUSTED
        return BatchStatus.ACTIVE

    @property
    def is_active(self) -> bool:
        return self.status is BatchStatus.ACTIVE


class UserCreditState(BaseModel):
    """Aggregated credit view for one user."""

    user_id: UUID
    batches: list[CreditBatch] = Field(default_factory=list)
    credits_total: int = 0
    credits_used: int = 0
    credits_remaining: int = 0
    is_expired: bool = False
    display_name: str | None = None
    save_scan_history: bool = True

    @classmethod
    def aggregate(
        cls,
        user_id: UUID,
        batches: list[CreditBatch],
        display_name: str | None = None,
        save_scan_history: bool = True,
    ) -> "UserCreditState":
        """
        Aggregate batches into account-level totals.

        An account with no batches at all is not expired; it is expired only
        when batches exist and none of them is active.
        """
        ordered = sorted(batches, key=lambda b: b.expires_at)
        has_active = any(b.is_active for b in ordered)

        return cls(
            user_id=user_id,
            batches=ordered,
            credits_total=sum(b.credits_total for b in ordered),
            credits_used=sum(b.credits_used for b in ordered),
            credits_remaining=sum(b.credits_remaining for b in ordered if not b.is_expired),
            is_expired=bool(ordered) and not has_active,
            display_name=display_name,
            save_scan_history=save_scan_history,
        )


class CreditBatchCreate(BaseModel):
    """Schema for granting a plan's credits after a completed purchase."""

    plan_id: str = Field(..., min_length=1, max_length=50, description="Catalog plan that was purchased")


class CreditBatchResponse(BaseModel):
    """Schema for returning a batch with its derived status."""

    id: UUID
    credits_total: int
    credits_used: int
    credits_remaining: int
    purchased_at: datetime
    expires_at: datetime
    plan_name: str
    is_expired: bool
    status: BatchStatus

    @classmethod
    def from_batch(cls, batch: CreditBatch) -> "CreditBatchResponse":
        return cls(**batch.model_dump(), status=batch.status)


class CreditStateResponse(BaseModel):
    """Schema for the credit overview shown to the user."""

    credits_total: int
    credits_used: int
    credits_remaining: int
    is_expired: bool
    can_consume: bool
    expiry_info: str | None
    display_name: str | None
    save_scan_history: bool
    batches: list[CreditBatchResponse]
    active_batches: list[CreditBatchResponse]


class CreditPlanList(BaseModel):
    """Schema for the plan catalog."""

    items: list[CreditPlan]


def _as_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)
