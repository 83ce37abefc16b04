from fastapi import APIRouter, Depends

from verifund.deps import get_campaign_slot_service, get_current_user
from verifund.services.campaign_slots import CampaignSlotService
from verifund.storage.records import UserRow

router = APIRouter()


@router.get("/slots")
async def campaign_slots(
    user: UserRow = Depends(get_current_user),
    service: CampaignSlotService = Depends(get_campaign_slot_service),
):
    """Slot summary: allowance, remaining slots, reset countdown and paid slots."""
    info = await service.get_campaign_slot_info(user.id)
    return info.model_dump(by_alias=True, mode="json")


@router.get("/slots/eligibility")
async def campaign_slots_eligibility(
    user: UserRow = Depends(get_current_user),
    service: CampaignSlotService = Depends(get_campaign_slot_service),
):
    """Whether the user may create another campaign this month, with the reason if not."""
    result = await service.check_campaign_creation(user.id)
    return result.model_dump(by_alias=True, exclude_none=True)
