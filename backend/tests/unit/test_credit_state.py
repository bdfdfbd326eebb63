"""Unit tests for batch derivations and account-level aggregation."""
from datetime import datetime, timedelta
from uuid import uuid4

from styloren.schemas.credit import BatchStatus, CreditBatch, CreditBatchResponse, UserCreditState
from utils.factories import make_batch

NOW = datetime(2026, 3, 1, 9, 30, 0)


def test_unexpired_batch_remaining_is_total_minus_used() -> None:
    batch = make_batch(NOW, credits_total=50, credits_used=12, expires_at=NOW + timedelta(days=3))

    assert batch.credits_remaining == 38
    assert batch.is_expired is False
    assert batch.status is BatchStatus.ACTIVE


def test_expired_batch_contributes_nothing_even_when_unused() -> None:
    batch = make_batch(NOW, credits_total=10, credits_used=0, expires_at=NOW - timedelta(seconds=1))

    assert batch.is_expired is True
    assert batch.credits_remaining == 0
    assert batch.status is BatchStatus.EXPIRED


def test_batch_expiring_exactly_now_is_still_active() -> None:
    batch = make_batch(NOW, credits_total=10, credits_used=4, expires_at=NOW)

    assert batch.is_expired is False
    assert batch.credits_remaining == 6


def test_exhausted_batch_status() -> None:
    batch = make_batch(NOW, credits_total=10, credits_used=10, expires_at=NOW + timedelta(days=5))

    assert batch.credits_remaining == 0
    assert batch.status is BatchStatus.EXHAUSTED
    assert batch.is_active is False


def test_expiry_takes_precedence_over_exhaustion() -> None:
    batch = make_batch(NOW, credits_total=10, credits_used=10, expires_at=NOW - timedelta(days=1))

    assert batch.status is BatchStatus.EXPIRED


def test_from_row_accepts_cached_iso_strings() -> None:
    batch_id = uuid4()
    row = {
        "id": str(batch_id),
        "credits_total": 100,
        "credits_used": 1,
        "purchased_at": (NOW - timedelta(days=1)).isoformat(),
        "expires_at": (NOW + timedelta(days=89)).isoformat(),
        "plan_name": "Quarterly Saver",
    }

    batch = CreditBatch.from_row(row, NOW)

    assert batch.id == batch_id
    assert batch.expires_at == NOW + timedelta(days=89)
    assert batch.credits_remaining == 99


def test_same_row_re_evaluated_later_becomes_expired() -> None:
    row = {
        "id": str(uuid4()),
        "credits_total": 10,
        "credits_used": 2,
        "purchased_at": NOW.isoformat(),
        "expires_at": (NOW + timedelta(days=15)).isoformat(),
        "plan_name": "Quick Try",
    }

    assert CreditBatch.from_row(row, NOW).credits_remaining == 8
    assert CreditBatch.from_row(row, NOW + timedelta(days=16)).credits_remaining == 0


def test_no_batches_is_not_expired() -> None:
    state = UserCreditState.aggregate(user_id=uuid4(), batches=[])

    assert state.credits_remaining == 0
    assert state.is_expired is False
    assert state.save_scan_history is True


def test_all_batches_dead_is_expired() -> None:
    batches = [
        make_batch(NOW, credits_total=10, credits_used=10, expires_at=NOW + timedelta(days=2)),
        make_batch(NOW, credits_total=50, credits_used=3, expires_at=NOW - timedelta(days=2)),
    ]

    state = UserCreditState.aggregate(user_id=uuid4(), batches=batches)

    assert state.credits_remaining == 0
    assert state.is_expired is True


def test_aggregate_sums_and_orders_by_expiry() -> None:
    later = make_batch(NOW, credits_total=50, credits_used=5, expires_at=NOW + timedelta(days=30))
    sooner = make_batch(NOW, credits_total=10, credits_used=7, expires_at=NOW + timedelta(days=2))
    expired = make_batch(NOW, credits_total=100, credits_used=0, expires_at=NOW - timedelta(days=1))

    state = UserCreditState.aggregate(user_id=uuid4(), batches=[later, expired, sooner])

    assert [b.id for b in state.batches] == [expired.id, sooner.id, later.id]
    assert state.credits_total == 160
    assert state.credits_used == 12
    assert state.credits_remaining == 3 + 45
    assert state.is_expired is False


def test_batch_response_carries_status() -> None:
    batch = make_batch(NOW, credits_total=10, credits_used=10, expires_at=NOW + timedelta(days=1))

    response = CreditBatchResponse.from_batch(batch)

    assert response.status is BatchStatus.EXHAUSTED
    assert response.credits_remaining == 0
