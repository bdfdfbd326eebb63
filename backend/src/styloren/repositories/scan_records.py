"""Row storage for saved scans."""
from uuid import UUID

import structlog
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from styloren.exceptions import PersistenceError
from styloren.models.scan_record import ScanRecord

logger = structlog.get_logger(__name__)


class ScanRecordRepository:
    """Data access for the ``scan_history`` table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def insert(
        self,
        user_id: UUID,
        image_path: str,
        analysis_text: str,
        style_score: int | None = None,
        outfit_category: str | None = None,
    ) -> ScanRecord:
        record = ScanRecord(
            user_id=user_id,
            image_path=image_path,
            thumbnail_path=image_path,
            analysis_text=analysis_text,
            style_score=style_score,
            outfit_category=outfit_category,
        )

        try:
            self.db.add(record)
            await self.db.flush()
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("scan_record_insert_failed", user_id=str(user_id), error=str(e))
            raise PersistenceError("Failed to save scan") from e

        return record

    async def list_page(self, user_id: UUID, offset: int, limit: int) -> list[ScanRecord]:
        """Newest scans first."""
        query = (
            select(ScanRecord)
            .where(ScanRecord.user_id == user_id)
            .order_by(ScanRecord.created_at.desc())
            .offset(offset)
            .limit(limit)
        )

        try:
            result = await self.db.execute(query)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("scan_record_select_failed", user_id=str(user_id), error=str(e))
            raise PersistenceError("Failed to load scan history") from e

        return list(result.scalars().all())

    async def get(self, user_id: UUID, scan_id: UUID) -> ScanRecord | None:
        query = select(ScanRecord).where(ScanRecord.id == scan_id, ScanRecord.user_id == user_id)

        try:
            result = await self.db.execute(query)
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise PersistenceError("Failed to load scan") from e

        return result.scalar_one_or_none()

    async def list_image_paths(self, user_id: UUID) -> list[str]:
        query = select(ScanRecord.image_path).where(ScanRecord.user_id == user_id)

        try:
            result = await self.db.execute(query)
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise PersistenceError("Failed to load scan history") from e

        return list(result.scalars().all())

    async def delete_matching(self, user_id: UUID, scan_id: UUID | None = None) -> int:
        """Delete one scan (when ``scan_id`` is given) or all scans of a user."""
        stmt = delete(ScanRecord).where(ScanRecord.user_id == user_id)
        if scan_id is not None:
            stmt = stmt.where(ScanRecord.id == scan_id)

        try:
            result = await self.db.execute(stmt.execution_options(synchronize_session=False))
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("scan_record_delete_failed", user_id=str(user_id), error=str(e))
            raise PersistenceError("Failed to delete scan history") from e

        return result.rowcount
