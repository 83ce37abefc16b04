"""In-process record store for local development and tests."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any

from verifund.core.exceptions import SchemaMismatchError
from verifund.storage.base import RecordStore
from verifund.storage.records import (
    CampaignRow,
    CreditScoreTotals,
    FullRecord,
    LegacyRecord,
    MonthlyLimitRecord,
    RateRow,
    UserRow,
)


def _new_id() -> str:
    return uuid.uuid4().hex[:24]


class MemoryRecordStore(RecordStore):
    """
    Tables held in dicts/lists. Single event loop, no awaits between read and
    write, so each method is atomic with respect to other coroutines.

    legacy_schema=True rejects FullRecord inserts the way a store without the
    paid-slot columns would.
    """

    def __init__(self, legacy_schema: bool = False) -> None:
        self.legacy_schema = legacy_schema
        self.users: dict[str, UserRow] = {}
        self.rates: list[RateRow] = []
        self.campaigns: list[CampaignRow] = []
        self.credit_scores: list[tuple[str, int]] = []
        self.monthly_limits: dict[tuple[str, int, int], MonthlyLimitRecord] = {}
        self.audit_events: list[dict[str, Any]] = []

    # Seeding (the scoring process, auth and campaign CRUD live elsewhere)

    def add_user(self, email: str, **fields: Any) -> UserRow:
        user = UserRow(id=fields.pop("id", None) or _new_id(), email=email, **fields)
        self.users[user.id] = user
        return user

    def add_campaign(
        self,
        creator_id: str,
        created_at: datetime,
        current_amount: Decimal | int | str = 0,
        minimum_amount: Decimal | int | str = 0,
    ) -> CampaignRow:
        row = CampaignRow(
            id=_new_id(),
            creator_id=creator_id,
            created_at=created_at,
            current_amount=Decimal(str(current_amount)),
            minimum_amount=Decimal(str(minimum_amount)),
        )
        self.campaigns.append(row)
        return row

    def add_credit_score(self, user_id: str, score: int) -> None:
        self.credit_scores.append((user_id, score))

    # RecordStore

    async def get_user(self, user_id: str) -> UserRow | None:
        return self.users.get(user_id)

    async def find_active_rate(self, from_currency: str, to_currency: str) -> RateRow | None:
        active = [
            r for r in self._pair(from_currency, to_currency) if r.is_active
        ]
        if not active:
            return None
        return max(active, key=lambda r: r.created_at).model_copy()

    async def deactivate_rates(self, from_currency: str, to_currency: str) -> None:
        for r in self._pair(from_currency, to_currency):
            r.is_active = False

    async def insert_rate(self, from_currency: str, to_currency: str, rate: Decimal, source: str) -> RateRow:
        row = RateRow(
            id=_new_id(),
            from_currency=from_currency,
            to_currency=to_currency,
            rate=rate,
            source=source,
            is_active=True,
            created_at=datetime.utcnow(),
        )
        self.rates.append(row)
        return row.model_copy()

    async def list_rates(
        self, from_currency: str, to_currency: str, limit: int = 50, offset: int = 0
    ) -> list[RateRow]:
        # Insertion order breaks created_at ties
        rows = list(reversed(self._pair(from_currency, to_currency)))
        rows.sort(key=lambda r: r.created_at, reverse=True)
        return [r.model_copy() for r in rows[offset:offset + limit]]

    async def find_earliest_funded_campaign(self, creator_id: str) -> CampaignRow | None:
        funded = [c for c in self.campaigns if c.creator_id == creator_id and c.is_operational]
        if not funded:
            return None
        return min(funded, key=lambda c: c.created_at).model_copy()

    async def count_campaigns_by_creator(self, creator_id: str) -> int:
        return sum(1 for c in self.campaigns if c.creator_id == creator_id)

    async def sum_credit_scores(self, user_id: str) -> CreditScoreTotals:
        scores = [s for uid, s in self.credit_scores if uid == user_id]
        return CreditScoreTotals(count=len(scores), total=sum(scores))

    async def find_monthly_limit_record(self, user_id: str, year: int, month: int) -> MonthlyLimitRecord | None:
        record = self.monthly_limits.get((user_id, year, month))
        return record.model_copy() if record else None

    async def insert_monthly_limit_record(self, fields: LegacyRecord) -> MonthlyLimitRecord:
        if self.legacy_schema and isinstance(fields, FullRecord):
            raise SchemaMismatchError(
                "monthly_campaign_limits has no paid-slot columns",
                details={"columns": ["paid_slots_available", "paid_slot_price", "is_first_month"]},
            )
        key = (fields.user_id, fields.year, fields.month)
        existing = self.monthly_limits.get(key)
        if existing:
            return existing.model_copy()
        now = datetime.utcnow()
        record = MonthlyLimitRecord(id=_new_id(), created_at=now, updated_at=now, **fields.model_dump())
        self.monthly_limits[key] = record
        return record.model_copy()

    async def increment_monthly_campaign_count(
        self, user_id: str, year: int, month: int
    ) -> MonthlyLimitRecord | None:
        record = self.monthly_limits.get((user_id, year, month))
        if not record:
            return None
        record.campaigns_created += 1
        record.updated_at = datetime.utcnow()
        return record.model_copy()

    async def insert_audit_event(
        self,
        user_id: str | None,
        event_type: str,
        entity_type: str,
        entity_id: str | None,
        metadata: dict[str, Any],
    ) -> None:
        self.audit_events.append(
            {
                "user_id": user_id,
                "event_type": event_type,
                "entity_type": entity_type,
                "entity_id": entity_id,
                "metadata": metadata,
                "created_at": datetime.utcnow(),
            }
        )

    def _pair(self, from_currency: str, to_currency: str) -> list[RateRow]:
        return [r for r in self.rates if r.from_currency == from_currency and r.to_currency == to_currency]
