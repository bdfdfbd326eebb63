"""Profile preference endpoints."""
from uuid import UUID

from fastapi import APIRouter, Depends

from styloren.api.deps import get_current_user_id, get_ledger
from styloren.schemas.profile import Profile, ProfileUpdate
from styloren.services.credit_ledger import CreditLedgerService

router = APIRouter(prefix="/profile", tags=["profile"])


@router.get("", response_model=Profile)
async def get_profile(
    user_id: UUID = Depends(get_current_user_id),
    ledger: CreditLedgerService = Depends(get_ledger),
) -> Profile:
    state = await ledger.get_state(user_id)
    return Profile(display_name=state.display_name, save_scan_history=state.save_scan_history)


@router.put("", response_model=Profile)
async def update_profile(
    profile_data: ProfileUpdate,
    user_id: UUID = Depends(get_current_user_id),
    ledger: CreditLedgerService = Depends(get_ledger),
) -> Profile:
    """Update the display name and/or the save-scan-history preference."""
    if "display_name" in profile_data.model_fields_set:
        await ledger.set_display_name(user_id, profile_data.display_name)
    if profile_data.save_scan_history is not None:
        await ledger.set_save_history(user_id, profile_data.save_scan_history)

    state = await ledger.get_state(user_id)
    return Profile(display_name=state.display_name, save_scan_history=state.save_scan_history)
