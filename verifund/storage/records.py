"""Row shapes exchanged with a RecordStore, independent of the backend."""

from datetime import datetime
from decimal import Decimal
from typing import NamedTuple

from pydantic import BaseModel


class UserRow(BaseModel):
    id: str
    email: str
    name: str = ""
    role: str = "user"
    is_flagged: bool = False
    is_suspended: bool = False
    session_version: int = 0


class RateRow(BaseModel):
    id: str
    from_currency: str
    to_currency: str
    rate: Decimal
    source: str = "manual"
    is_active: bool = True
    created_at: datetime


class CampaignRow(BaseModel):
    id: str
    creator_id: str
    created_at: datetime
    current_amount: Decimal
    minimum_amount: Decimal

    @property
    def is_operational(self) -> bool:
        return self.current_amount >= self.minimum_amount


class CreditScoreTotals(NamedTuple):
    count: int
    total: int


class LegacyRecord(BaseModel):
    """Monthly limit columns present on every schema version."""
    user_id: str
    year: int
    month: int
    campaigns_created: int = 0
    max_allowed: int = 0
    credit_score_at_month: int = 0


class FullRecord(LegacyRecord):
    paid_slots_available: int = 0
    paid_slot_price: int = 0
    is_first_month: bool = False

    def to_legacy(self) -> LegacyRecord:
        return LegacyRecord(**self.model_dump(include=set(LegacyRecord.model_fields)))


class MonthlyLimitRecord(FullRecord):
    """Stored record as read back; missing legacy columns read as their defaults."""
    id: str
    created_at: datetime
    updated_at: datetime
