"""Credit-score slot tiers and the two cycles slots are counted over.

The monthly record table is what gets persisted and enforced; the display
table is what the slot summary shows. They disagree on purpose.
"""

from datetime import datetime
from typing import NamedTuple, Sequence

CYCLE_DAYS = 30


class SlotTier(NamedTuple):
    min_score: int
    max_allowed: int
    paid_slots_available: int = 0
    paid_slot_price: int = 0


# Descending thresholds, first match wins.
MONTHLY_RECORD_TIERS: tuple[SlotTier, ...] = (
    SlotTier(81, 25),
    SlotTier(66, 20),
    SlotTier(51, 15),
    SlotTier(36, 10),
    SlotTier(21, 5),
    SlotTier(0, 3),
)
MONTHLY_RECORD_FLOOR = SlotTier(min_score=-1, max_allowed=0)  # negative scores

DISPLAY_TIERS: tuple[SlotTier, ...] = (
    SlotTier(80, 5),
    SlotTier(75, 3),
    SlotTier(65, 1),
    SlotTier(50, 0, paid_slots_available=3, paid_slot_price=9000),
    SlotTier(35, 0, paid_slots_available=2, paid_slot_price=6000),
    SlotTier(20, 0, paid_slots_available=1, paid_slot_price=3000),
)
DISPLAY_FLOOR = SlotTier(min_score=0, max_allowed=0)


def resolve_tier(score: int, tiers: Sequence[SlotTier], floor: SlotTier) -> SlotTier:
    for tier in tiers:
        if score >= tier.min_score:
            return tier
    return floor


class NextTier(NamedTuple):
    next_tier: str
    message: str
    required_score: int


NEXT_TIERS: tuple[NextTier, ...] = (
    NextTier("75%", "Reach 75% credit score for 3 free slots/month", 75),
    NextTier("80%", "Reach 80% credit score for 5 free slots/month", 80),
)


def next_tier_for(score: int) -> NextTier | None:
    for tier in NEXT_TIERS:
        if score < tier.required_score:
            return tier
    return None


class CalendarMonthKey(NamedTuple):
    """Wall-clock calendar month the persisted record is keyed by."""
    year: int
    month: int

    @classmethod
    def from_datetime(cls, now: datetime) -> "CalendarMonthKey":
        return cls(now.year, now.month)


class RollingCycle(NamedTuple):
    """30-day cycles anchored at the first operational campaign's creation."""
    anchor: datetime
    days_elapsed: int

    @classmethod
    def starting(cls, anchor: datetime, now: datetime) -> "RollingCycle":
        # timedelta.days floors, matching whole elapsed days
        return cls(anchor, (now - anchor).days)

    @property
    def is_first_month(self) -> bool:
        return self.days_elapsed < CYCLE_DAYS

    @property
    def days_until_reset(self) -> int:
        return CYCLE_DAYS - (self.days_elapsed % CYCLE_DAYS)
