from datetime import datetime

from beanie import Document, PydanticObjectId
from pydantic import Field
from pymongo import ASCENDING, IndexModel


class MonthlyCampaignLimit(Document):
    """Per-user calendar-month slot snapshot. Paid-slot columns may be absent on legacy rows."""
    user_id: PydanticObjectId
    year: int
    month: int  # 1-12
    campaigns_created: int = 0
    max_allowed: int = 0
    credit_score_at_month: int = 0
    paid_slots_available: int = 0
    paid_slot_price: int = 0
    is_first_month: bool = False
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "monthly_campaign_limits"
        indexes = [
            IndexModel(
                [("user_id", ASCENDING), ("year", ASCENDING), ("month", ASCENDING)],
                name="unique_user_month",
                unique=True,
            ),
        ]
