"""Credit ledger: stacked prepaid batches with FIFO-by-expiry consumption."""
import math
from datetime import datetime, timedelta
from typing import Any, Callable, Optional
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from styloren.cache import InMemoryCache, RedisCache, cache as default_cache, cache_key
from styloren.exceptions import ConcurrentUpdateConflict, NoCreditsError, PersistenceError
from styloren.metrics import (
    credit_batches_added_total,
    credit_consume_failures_total,
    credits_consumed_total,
)
from styloren.models.credit_purchase import CreditPurchase
from styloren.repositories.credit_purchases import CreditPurchaseRepository
from styloren.repositories.user_profiles import UserProfileRepository
from styloren.schemas.credit import CreditBatch, CreditPlan, UserCreditState
from styloren.utils.time import utcnow

logger = structlog.get_logger(__name__)

MAX_DISPLAY_NAME_LENGTH = 100


class CreditLedgerService:
    """
    Track, consume and replenish a user's prepaid credits.

    Credit state is cached per user as raw batch rows plus the two profile
    preferences. Derived fields (remaining, expired) are recomputed against the
    clock on every read, so a cached entry never hides an expiry. The cache is
    only written after a confirmed storage write.
    """

    def __init__(
        self,
        db: AsyncSession,
        cache: InMemoryCache | RedisCache | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        """Initialize ledger with database session, state cache and clock."""
        self.db = db
        self.cache = cache if cache is not None else default_cache
        self.clock = clock
        self.purchases = CreditPurchaseRepository(db)
        self.profiles = UserProfileRepository(db)

    async def get_state(self, user_id: UUID, refresh: bool = False) -> UserCreditState:
        """
        Get the aggregated credit state for a user.

        Args:
            user_id: User UUID
            refresh: Skip the cache and read from storage

        Returns:
            UserCreditState evaluated against the current time

        Raises:
            PersistenceError: If storage could not be read
        """
        key = cache_key("credits", str(user_id))
        snapshot = None if refresh else await self.cache.get(key)

        if snapshot is None:
            snapshot = await self._load_snapshot(user_id)
            await self.cache.set(key, snapshot)

        return self._build_state(user_id, snapshot)

    @staticmethod
    def can_consume(state: UserCreditState) -> bool:
        """Gate for every credit-consuming feature."""
        return state.credits_remaining > 0

    async def consume(self, user_id: UUID, state: Optional[UserCreditState] = None) -> bool:
        """
        Debit one credit from the soonest-expiring active batch.

        The write is conditional on the batch's last-known ``credits_used``. A
        concurrent debit makes it match nothing; the state is then re-read from
        storage and the debit retried once.

        Args:
            user_id: User UUID
            state: State the caller gated on; read from cache/storage if omitted

        Returns:
            True once the debit is stored

        Raises:
            NoCreditsError: If no batch is eligible (no mutation happened)
            PersistenceError: If storage failed or the retry also conflicted
        """
        if state is None:
            state = await self.get_state(user_id)

        try:
            await self._debit_with_retry(user_id, state)
        except PersistenceError:
            credit_consume_failures_total.labels(reason="persistence").inc()
            raise

        return True

    async def add_batch(self, user_id: UUID, plan: CreditPlan) -> CreditBatch:
        """
        Grant a plan's credits as a new, independently-expiring batch.

        Existing batches are never merged or replaced.

        Raises:
            PersistenceError: If the batch could not be stored (nothing is created)
        """
        now = self.clock()
        expires_at = now + timedelta(days=plan.validity_days)

        row = await self.purchases.insert(
            user_id=user_id,
            credits_total=plan.credits,
            purchased_at=now,
            expires_at=expires_at,
            plan_name=plan.name,
        )
        await self.invalidate(user_id)

        credit_batches_added_total.labels(plan=plan.id).inc()
        logger.info(
            "credit_batch_added",
            user_id=str(user_id),
            batch_id=str(row.id),
            plan=plan.id,
            credits=plan.credits,
            expires_at=expires_at.isoformat(),
        )

        return CreditBatch.from_row(row, now)

    async def set_save_history(self, user_id: UUID, enabled: bool) -> None:
        """Store the save-scan-history preference."""
        await self.profiles.upsert(user_id, save_scan_history=enabled)
        await self._update_cached_profile(user_id, save_scan_history=enabled)
        logger.info("save_history_updated", user_id=str(user_id), enabled=enabled)

    async def set_display_name(self, user_id: UUID, name: Optional[str]) -> Optional[str]:
        """Store the display name; blank names clear it. Returns the stored value."""
        cleaned = (name or "").strip()[:MAX_DISPLAY_NAME_LENGTH] or None
        await self.profiles.upsert(user_id, display_name=cleaned)
        await self._update_cached_profile(user_id, display_name=cleaned)
        logger.info("display_name_updated", user_id=str(user_id), cleared=cleaned is None)
        return cleaned

    async def invalidate(self, user_id: UUID) -> None:
        await self.cache.delete(cache_key("credits", str(user_id)))

    @staticmethod
    def get_active_batches(state: UserCreditState) -> list[CreditBatch]:
        """Unexpired batches with credits left, soonest expiry first."""
        return [b for b in state.batches if not b.is_expired and b.credits_remaining > 0]

    def get_expiry_info(self, state: UserCreditState, now: Optional[datetime] = None) -> Optional[str]:
        """Human-readable expiry of the soonest-expiring active batch."""
        active = self.get_active_batches(state)
        if not active:
            return None

        now = now or self.clock()
        earliest = active[0].expires_at
        days = math.ceil((earliest - now).total_seconds() / 86400)

        if days <= 0:
            return "Expires today"
        if days == 1:
            return "Expires tomorrow"
        if days <= 7:
            return f"Expires in {days} days"
        return f"Expires on {earliest:%b} {earliest.day}, {earliest.year}"

    async def _debit_with_retry(self, user_id: UUID, state: UserCreditState) -> None:
        try:
            await self._debit(user_id, state)
        except ConcurrentUpdateConflict as conflict:
            logger.warning("credit_consume_conflict", user_id=str(user_id), error=conflict.message)
            credit_consume_failures_total.labels(reason="conflict").inc()

            fresh_state = await self.get_state(user_id, refresh=True)
            try:
                await self._debit(user_id, fresh_state)
            except ConcurrentUpdateConflict as e:
                logger.error("credit_consume_conflict_retry_failed", user_id=str(user_id))
                raise PersistenceError("Credit usage could not be recorded, please try again") from e

    async def _debit(self, user_id: UUID, state: UserCreditState) -> None:
        if not self.can_consume(state):
            credit_consume_failures_total.labels(reason="no_credits").inc()
            raise NoCreditsError()

        # Batches are kept in expiry order, so the first active one expires soonest.
        batch = next(iter(self.get_active_batches(state)), None)
        if batch is None:
            credit_consume_failures_total.labels(reason="no_credits").inc()
            raise NoCreditsError()

        updated = await self.purchases.increment_used(batch.id, batch.credits_used, now=self.clock())
        if not updated:
            raise ConcurrentUpdateConflict(f"Batch {batch.id} changed since it was read")

        await self._update_cached_batch(user_id, batch.id, batch.credits_used + 1)

        credits_consumed_total.inc()
        logger.info(
            "credit_consumed",
            user_id=str(user_id),
            batch_id=str(batch.id),
            credits_used=batch.credits_used + 1,
            credits_remaining=state.credits_remaining - 1,
        )

    async def _load_snapshot(self, user_id: UUID) -> dict[str, Any]:
        profile = await self.profiles.get(user_id)
        rows = await self.purchases.list_for_user(user_id)

        return {
            "display_name": profile.display_name if profile else None,
            "save_scan_history": profile.save_scan_history if profile else True,
            "batches": [_serialize_row(row) for row in rows],
        }

    def _build_state(self, user_id: UUID, snapshot: dict[str, Any]) -> UserCreditState:
        now = self.clock()
        batches = [CreditBatch.from_row(row, now) for row in snapshot["batches"]]

        return UserCreditState.aggregate(
            user_id=user_id,
            batches=batches,
            display_name=snapshot["display_name"],
            save_scan_history=snapshot["save_scan_history"],
        )

    async def _update_cached_batch(self, user_id: UUID, batch_id: UUID, credits_used: int) -> None:
        key = cache_key("credits", str(user_id))
        snapshot = await self.cache.get(key)
        if snapshot is None:
            return

        # An overlapping debit may already have raised the cached count.
        batches = [
            {**row, "credits_used": max(row["credits_used"], credits_used)} if row["id"] == str(batch_id) else row
            for row in snapshot["batches"]
        ]
        await self.cache.set(key, {**snapshot, "batches": batches})

    async def _update_cached_profile(self, user_id: UUID, **fields: Any) -> None:
        key = cache_key("credits", str(user_id))
        snapshot = await self.cache.get(key)
        if snapshot is None:
            return
        await self.cache.set(key, {**snapshot, **fields})


def _serialize_row(row: CreditPurchase) -> dict[str, Any]:
    return {
        "id": str(row.id),
        "credits_total": row.credits_total,
        "credits_used": row.credits_used,
        "purchased_at": row.purchased_at.isoformat(),
        "expires_at": row.expires_at.isoformat(),
        "plan_name": row.plan_name,
    }
