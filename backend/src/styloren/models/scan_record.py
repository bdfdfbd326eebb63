"""Scan history model for saved outfit analyses."""
from sqlalchemy import Column, Integer, String, Text, Uuid

from styloren.models.base import Base


class ScanRecord(Base):
    """
    A saved outfit analysis.

    image_path is a path inside the private scan bucket, never a public URL;
    readers always go through signed URLs.
    """

    __tablename__ = "scan_history"

    user_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    image_path = Column(String, nullable=False)
    thumbnail_path = Column(String, nullable=True)
    analysis_text = Column(Text, nullable=False)
    style_score = Column(Integer, nullable=True)
    outfit_category = Column(String, nullable=True)

    def __repr__(self) -> str:
        """String representation."""
        return f"<ScanRecord(id={self.id}, user_id={self.user_id}, score={self.style_score})>"
