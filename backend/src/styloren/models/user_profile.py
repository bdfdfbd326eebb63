"""User profile model holding display preferences."""
from sqlalchemy import Boolean, Column, DateTime, String, Uuid

from styloren.models.base import Base
from styloren.utils.time import utcnow


class UserProfile(Base):
    """Per-user display name and scan history preference."""

    __tablename__ = "user_profiles"

    user_id = Column(Uuid(as_uuid=True), nullable=False, unique=True, index=True)
    display_name = Column(String(100), nullable=True)
    save_scan_history = Column(Boolean, nullable=False, default=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    def __repr__(self) -> str:
        """String representation."""
        return f"<UserProfile(user_id={self.user_id}, save_scan_history={self.save_scan_history})>"
