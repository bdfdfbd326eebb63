"""Scan history endpoints."""
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from styloren.api.deps import get_current_user_id, get_ledger, get_scan_history
from styloren.schemas.scan import ScanDeleteResult, ScanHistoryPage
from styloren.services.credit_ledger import CreditLedgerService
from styloren.services.scan_history_service import ScanHistoryService

router = APIRouter(prefix="/scans", tags=["scans"])


@router.get("", response_model=ScanHistoryPage)
async def list_scans(
    page: int = Query(default=0, ge=0, description="Zero-based page number"),
    user_id: UUID = Depends(get_current_user_id),
    ledger: CreditLedgerService = Depends(get_ledger),
    scan_history: ScanHistoryService = Depends(get_scan_history),
) -> ScanHistoryPage:
    """
    List saved scans, newest first.

    Without credits only the first few scans are visible; the rest of the
    page comes back in ``locked``.
    """
    state = await ledger.get_state(user_id)
    return await scan_history.list_scans(user_id, page=page, has_credits=ledger.can_consume(state))


@router.delete("/{scan_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_scan(
    scan_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    ledger: CreditLedgerService = Depends(get_ledger),
    scan_history: ScanHistoryService = Depends(get_scan_history),
) -> None:
    state = await ledger.get_state(user_id)
    await scan_history.delete_scan(user_id, scan_id, has_credits=ledger.can_consume(state))


@router.delete("", response_model=ScanDeleteResult)
async def delete_all_scans(
    user_id: UUID = Depends(get_current_user_id),
    scan_history: ScanHistoryService = Depends(get_scan_history),
) -> ScanDeleteResult:
    """Clear the caller's whole history, images included."""
    deleted = await scan_history.delete_all_scans(user_id)
    return ScanDeleteResult(deleted=deleted)
