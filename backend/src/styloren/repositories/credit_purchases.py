"""Row storage for credit batches.

Exposes the primitives the ledger relies on: insert-one, select-all for a
user ordered by expiry, conditional update by id, and delete-matching. Every
SQLAlchemy failure is rolled back and surfaced as ``PersistenceError``.
"""
from datetime import datetime
from typing import Iterable
from uuid import UUID

import structlog
from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from styloren.exceptions import PersistenceError
from styloren.models.credit_purchase import CreditPurchase

logger = structlog.get_logger(__name__)


class CreditPurchaseRepository:
    """Data access for the ``credit_purchases`` table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def insert(
        self,
        user_id: UUID,
        credits_total: int,
        purchased_at: datetime,
        expires_at: datetime,
        plan_name: str,
    ) -> CreditPurchase:
        """Insert and commit one batch; returns the row with its generated id."""
        purchase = CreditPurchase(
            user_id=user_id,
            credits_total=credits_total,
            credits_used=0,
            purchased_at=purchased_at,
            expires_at=expires_at,
            plan_name=plan_name,
        )

        try:
            self.db.add(purchase)
            await self.db.flush()
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("credit_purchase_insert_failed", user_id=str(user_id), error=str(e))
            raise PersistenceError("Failed to store credit batch") from e

        return purchase

    async def list_for_user(self, user_id: UUID) -> list[CreditPurchase]:
        """All batches of a user, soonest expiry first."""
        query = (
            select(CreditPurchase)
            .where(CreditPurchase.user_id == user_id)
            .order_by(CreditPurchase.expires_at.asc(), CreditPurchase.purchased_at.asc())
            .execution_options(populate_existing=True)
        )

        try:
            result = await self.db.execute(query)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("credit_purchase_select_failed", user_id=str(user_id), error=str(e))
            raise PersistenceError("Failed to load credit batches") from e

        return list(result.scalars().all())

    async def increment_used(
        self,
        batch_id: UUID,
        expected_used: int,
        now: datetime,
    ) -> bool:
        """
        Increment ``credits_used`` by one if the row still matches what we read.

        The update only applies when the stored count equals ``expected_used``,
        the batch is not exhausted and has not expired at ``now``.

        Returns:
            True if exactly one row was updated, False on a concurrent-update conflict
        """
        stmt = (
            update(CreditPurchase)
            .where(
                CreditPurchase.id == batch_id,
                CreditPurchase.credits_used == expected_used,
                CreditPurchase.credits_used < CreditPurchase.credits_total,
                CreditPurchase.expires_at >= now,
            )
            .values(credits_used=expected_used + 1)
            .execution_options(synchronize_session=False)
        )

        try:
            result = await self.db.execute(stmt)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("credit_purchase_update_failed", batch_id=str(batch_id), error=str(e))
            raise PersistenceError("Failed to record credit usage") from e

        return result.rowcount == 1

    async def delete_matching(self, user_id: UUID, batch_ids: Iterable[UUID] | None = None) -> int:
        """Delete a user's batches, optionally restricted to the given ids."""
        stmt = delete(CreditPurchase).where(CreditPurchase.user_id == user_id)
        if batch_ids is not None:
            stmt = stmt.where(CreditPurchase.id.in_(list(batch_ids)))

        try:
            result = await self.db.execute(stmt.execution_options(synchronize_session=False))
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("credit_purchase_delete_failed", user_id=str(user_id), error=str(e))
            raise PersistenceError("Failed to delete credit batches") from e

        return result.rowcount
