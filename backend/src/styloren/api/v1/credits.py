"""Credit ledger API endpoints."""
from uuid import UUID

from fastapi import APIRouter, Depends, status

from styloren.api.deps import get_current_user_id, get_ledger
from styloren.schemas.credit import (
    CreditBatchCreate,
    CreditBatchResponse,
    CreditPlanList,
    CreditStateResponse,
)
from styloren.services.credit_ledger import CreditLedgerService
from styloren.services.plan_catalog import get_plan, list_plans

router = APIRouter(prefix="/credits", tags=["credits"])


@router.get("", response_model=CreditStateResponse)
async def get_credits(
    user_id: UUID = Depends(get_current_user_id),
    ledger: CreditLedgerService = Depends(get_ledger),
) -> CreditStateResponse:
    """
    Get the caller's credit overview.

    Totals cover every batch; ``credits_remaining`` only counts unexpired
    batches. ``expiry_info`` describes the soonest-expiring active batch.
    """
    state = await ledger.get_state(user_id)

    return CreditStateResponse(
        credits_total=state.credits_total,
        credits_used=state.credits_used,
        credits_remaining=state.credits_remaining,
        is_expired=state.is_expired,
        can_consume=ledger.can_consume(state),
        expiry_info=ledger.get_expiry_info(state),
        display_name=state.display_name,
        save_scan_history=state.save_scan_history,
        batches=[CreditBatchResponse.from_batch(b) for b in state.batches],
        active_batches=[CreditBatchResponse.from_batch(b) for b in ledger.get_active_batches(state)],
    )


@router.get("/plans", response_model=CreditPlanList)
async def get_plans() -> CreditPlanList:
    """List purchasable credit plans."""
    return CreditPlanList(items=list_plans())


@router.post("/batches", response_model=CreditBatchResponse, status_code=status.HTTP_201_CREATED)
async def add_credit_batch(
    batch_data: CreditBatchCreate,
    user_id: UUID = Depends(get_current_user_id),
    ledger: CreditLedgerService = Depends(get_ledger),
) -> CreditBatchResponse:
    """
    Grant a purchased plan's credits as a new batch.

    Called once the store confirmed the purchase. The batch stacks with any
    existing ones and expires on its own schedule.
    """
    plan = get_plan(batch_data.plan_id)
    batch = await ledger.add_batch(user_id, plan)
    return CreditBatchResponse.from_batch(batch)
