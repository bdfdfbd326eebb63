"""Credit purchase model: one stacked batch of prepaid credits."""
from sqlalchemy import CheckConstraint, Column, DateTime, Index, Integer, String, Uuid

from styloren.models.base import Base


class CreditPurchase(Base):
    """
    A purchased grant of credits with its own expiry.

    Only credits_used ever changes after insert; expiry is never stored as a
    flag and is always derived from expires_at at read time.
    """

    __tablename__ = "credit_purchases"
    __table_args__ = (
        CheckConstraint("credits_total >= 0", name="ck_credit_purchases_total_non_negative"),
        CheckConstraint(
            "credits_used >= 0 AND credits_used <= credits_total",
            name="ck_credit_purchases_used_within_total",
        ),
        Index("ix_credit_purchases_user_expires", "user_id", "expires_at"),
    )

    user_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    credits_total = Column(Integer, nullable=False)
    credits_used = Column(Integer, nullable=False, default=0)
    purchased_at = Column(DateTime, nullable=False)
    expires_at = Column(DateTime, nullable=False)
    plan_name = Column(String, nullable=False)

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<CreditPurchase(id={self.id}, user_id={self.user_id}, "
            f"used={self.credits_used}/{self.credits_total}, expires_at={self.expires_at})>"
        )
