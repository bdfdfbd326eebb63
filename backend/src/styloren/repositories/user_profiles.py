"""Row storage for user profile preferences."""
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from styloren.exceptions import PersistenceError
from styloren.models.user_profile import UserProfile

logger = structlog.get_logger(__name__)


class UserProfileRepository:
    """Data access for the ``user_profiles`` table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, user_id: UUID) -> UserProfile | None:
        query = (
            select(UserProfile)
            .where(UserProfile.user_id == user_id)
            .execution_options(populate_existing=True)
        )

        try:
            result = await self.db.execute(query)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("user_profile_select_failed", user_id=str(user_id), error=str(e))
            raise PersistenceError("Failed to load profile") from e

        return result.scalar_one_or_none()

    async def upsert(self, user_id: UUID, **fields: Any) -> UserProfile:
        """Create the profile if missing, then apply ``fields`` and commit."""
        profile = await self.get(user_id)

        try:
            if profile is None:
                profile = UserProfile(user_id=user_id, save_scan_history=True)
                self.db.add(profile)
            for name, value in fields.items():
                setattr(profile, name, value)
            await self.db.flush()
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("user_profile_upsert_failed", user_id=str(user_id), error=str(e))
            raise PersistenceError("Failed to update profile") from e

        return profile
