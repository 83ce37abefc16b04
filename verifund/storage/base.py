from abc import ABC, abstractmethod
from decimal import Decimal
from functools import lru_cache
from typing import Any

from verifund.core.config import get_settings
from verifund.storage.records import (
    CampaignRow,
    CreditScoreTotals,
    LegacyRecord,
    MonthlyLimitRecord,
    RateRow,
    UserRow,
)


class RecordStore(ABC):
    """Persisted tables consumed by the conversion and slot services.

    Implementations do no retrying; I/O errors propagate to the caller.
    """

    @abstractmethod
    async def get_user(self, user_id: str) -> UserRow | None:
        ...

    # Exchange rates

    @abstractmethod
    async def find_active_rate(self, from_currency: str, to_currency: str) -> RateRow | None:
        """Newest active row for the ordered pair."""
        ...

    @abstractmethod
    async def deactivate_rates(self, from_currency: str, to_currency: str) -> None:
        ...

    @abstractmethod
    async def insert_rate(self, from_currency: str, to_currency: str, rate: Decimal, source: str) -> RateRow:
        ...

    @abstractmethod
    async def list_rates(
        self, from_currency: str, to_currency: str, limit: int = 50, offset: int = 0
    ) -> list[RateRow]:
        """Rate history for the pair, newest first."""
        ...

    # Campaigns and credit scores

    @abstractmethod
    async def find_earliest_funded_campaign(self, creator_id: str) -> CampaignRow | None:
        """Earliest created campaign by creator with current_amount >= minimum_amount."""
        ...

    @abstractmethod
    async def count_campaigns_by_creator(self, creator_id: str) -> int:
        ...

    @abstractmethod
    async def sum_credit_scores(self, user_id: str) -> CreditScoreTotals:
        ...

    # Monthly campaign limits

    @abstractmethod
    async def find_monthly_limit_record(self, user_id: str, year: int, month: int) -> MonthlyLimitRecord | None:
        ...

    @abstractmethod
    async def insert_monthly_limit_record(self, fields: LegacyRecord) -> MonthlyLimitRecord:
        """
        Insert if absent, else return the existing record for (user_id, year, month).
        Raises SchemaMismatchError if the store cannot hold the given shape.
        """
        ...

    @abstractmethod
    async def increment_monthly_campaign_count(
        self, user_id: str, year: int, month: int
    ) -> MonthlyLimitRecord | None:
        """Atomically add one to campaigns_created; None if no record exists."""
        ...

    # Audit

    @abstractmethod
    async def insert_audit_event(
        self,
        user_id: str | None,
        event_type: str,
        entity_type: str,
        entity_id: str | None,
        metadata: dict[str, Any],
    ) -> None:
        ...


@lru_cache
def get_record_store() -> RecordStore:
    settings = get_settings()
    if settings.store_backend == "memory":
        from verifund.storage.memory import MemoryRecordStore
        return MemoryRecordStore()
    from verifund.storage.mongo import MongoRecordStore
    return MongoRecordStore()
