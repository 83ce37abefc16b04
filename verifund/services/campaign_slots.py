"""Campaign slot allocation from credit score and the first operational campaign."""

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable

from verifund.core.config import Settings, get_settings
from verifund.core.exceptions import NotFoundError, SchemaMismatchError, UserNotFoundError
from verifund.core.logging import get_logger
from verifund.core.schemas import CamelModel
from verifund.services.slot_tiers import (
    DISPLAY_FLOOR,
    DISPLAY_TIERS,
    MONTHLY_RECORD_FLOOR,
    MONTHLY_RECORD_TIERS,
    CalendarMonthKey,
    RollingCycle,
    SlotTier,
    next_tier_for,
    resolve_tier,
)
from verifund.storage.base import RecordStore
from verifund.storage.records import CampaignRow, FullRecord, MonthlyLimitRecord

log = get_logger(__name__)


class NextTierInfo(CamelModel):
    next_tier: str
    message: str
    required_score: int


class SlotInfo(CamelModel):
    user_id: str
    credit_score: int
    is_first_month: bool
    days_until_reset: int
    max_allowed: int
    campaigns_created: int
    total_campaigns_created: int
    slots_remaining: int
    paid_slots_available: int
    paid_slot_price: int
    next_tier_info: NextTierInfo | None = None
    first_campaign_date: datetime | None = None
    has_operational_campaign: bool


class CreationEligibility(CamelModel):
    can_create: bool
    reason: str | None = None


def _round_half_up(total: int, count: int) -> int:
    return int((Decimal(total) / Decimal(count)).quantize(Decimal(1), rounding=ROUND_HALF_UP))


class CampaignSlotService:
    """
    Phases are derived on every read from the clock:
    no operational campaign yet -> first month, no countdown;
    under 30 days since the first operational campaign -> first month;
    afterwards -> credit score tiers.
    """

    def __init__(
        self,
        store: RecordStore,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = datetime.utcnow,
    ) -> None:
        self.store = store
        self.settings = settings or get_settings()
        self.clock = clock

    async def get_user_first_campaign(self, user_id: str) -> CampaignRow | None:
        """Earliest campaign whose funding reached its minimum amount."""
        return await self.store.find_earliest_funded_campaign(user_id)

    async def get_user_average_credit_score(self, user_id: str) -> int:
        totals = await self.store.sum_credit_scores(user_id)
        if totals.count == 0:
            return 0
        return _round_half_up(totals.total, totals.count)

    async def get_monthly_limit_record(self, user_id: str) -> MonthlyLimitRecord:
        """
        Record for the current calendar month. Created on first read with the
        allowance of that moment and never recomputed afterwards.
        """
        now = self.clock()
        key = CalendarMonthKey.from_datetime(now)
        existing = await self.store.find_monthly_limit_record(user_id, key.year, key.month)
        if existing:
            return existing

        credit_score = await self.get_user_average_credit_score(user_id)
        first_campaign = await self.get_user_first_campaign(user_id)
        if first_campaign:
            is_first_month = RollingCycle.starting(first_campaign.created_at, now).is_first_month
        else:
            is_first_month = True

        if is_first_month:
            tier = SlotTier(min_score=0, max_allowed=self.settings.first_month_campaign_slots)
        else:
            tier = resolve_tier(credit_score, MONTHLY_RECORD_TIERS, MONTHLY_RECORD_FLOOR)

        fields = FullRecord(
            user_id=user_id,
            year=key.year,
            month=key.month,
            campaigns_created=0,
            max_allowed=tier.max_allowed,
            credit_score_at_month=credit_score,
            paid_slots_available=tier.paid_slots_available,
            paid_slot_price=tier.paid_slot_price,
            is_first_month=is_first_month,
        )
        try:
            record = await self.store.insert_monthly_limit_record(fields)
        except SchemaMismatchError:
            log.warning("monthly_limit_legacy_schema", user_id=user_id, year=key.year, month=key.month)
            record = await self.store.insert_monthly_limit_record(fields.to_legacy())
        log.info(
            "monthly_limit_record_created",
            user_id=user_id,
            year=key.year,
            month=key.month,
            max_allowed=record.max_allowed,
            credit_score=credit_score,
        )
        return record

    async def get_campaign_slot_info(self, user_id: str) -> SlotInfo:
        user = await self.store.get_user(user_id)
        if not user:
            raise UserNotFoundError(user_id)

        now = self.clock()
        credit_score = await self.get_user_average_credit_score(user_id)
        first_campaign = await self.get_user_first_campaign(user_id)
        total_campaigns = await self.store.count_campaigns_by_creator(user_id)

        if first_campaign:
            cycle = RollingCycle.starting(first_campaign.created_at, now)
            is_first_month = cycle.is_first_month
            days_until_reset = cycle.days_until_reset
        else:
            # Countdown starts with the first operational campaign
            is_first_month = True
            days_until_reset = 0

        monthly_record = await self.get_monthly_limit_record(user_id)

        if is_first_month:
            tier = SlotTier(min_score=0, max_allowed=self.settings.first_month_display_slots)
        else:
            tier = resolve_tier(credit_score, DISPLAY_TIERS, DISPLAY_FLOOR)

        next_tier = next_tier_for(credit_score)
        return SlotInfo(
            user_id=user_id,
            credit_score=credit_score,
            is_first_month=is_first_month,
            days_until_reset=days_until_reset,
            max_allowed=tier.max_allowed,
            campaigns_created=monthly_record.campaigns_created,
            total_campaigns_created=total_campaigns,
            slots_remaining=max(0, tier.max_allowed - monthly_record.campaigns_created),
            paid_slots_available=tier.paid_slots_available,
            paid_slot_price=tier.paid_slot_price,
            next_tier_info=NextTierInfo(**next_tier._asdict()) if next_tier else None,
            first_campaign_date=first_campaign.created_at if first_campaign else None,
            has_operational_campaign=first_campaign is not None,
        )

    async def record_campaign_created(self, user_id: str) -> MonthlyLimitRecord:
        """Count a successfully created campaign against this month's record."""
        record = await self.get_monthly_limit_record(user_id)
        updated = await self.store.increment_monthly_campaign_count(user_id, record.year, record.month)
        if updated is None:
            raise NotFoundError("Monthly limit record not found")
        log.info(
            "campaign_slot_consumed",
            user_id=user_id,
            campaigns_created=updated.campaigns_created,
            max_allowed=updated.max_allowed,
        )
        return updated

    async def check_campaign_creation(self, user_id: str) -> CreationEligibility:
        user = await self.store.get_user(user_id)
        if not user:
            return CreationEligibility(can_create=False, reason="User not found")
        if user.is_flagged or user.is_suspended:
            return CreationEligibility(
                can_create=False,
                reason="Account is flagged or suspended for fraudulent activity",
            )
        record = await self.get_monthly_limit_record(user_id)
        if record.campaigns_created >= record.max_allowed:
            credit_score = await self.get_user_average_credit_score(user_id)
            reason = (
                f"Monthly campaign limit reached ({record.campaigns_created}/{record.max_allowed}). "
                f"Credit score: {credit_score}%."
            )
            next_tier = next_tier_for(credit_score)
            if next_tier:
                reason = f"{reason} {next_tier.message}."
            return CreationEligibility(can_create=False, reason=reason)
        return CreationEligibility(can_create=True)
