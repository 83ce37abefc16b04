"""MongoDB record store on Beanie documents (requires init_db())."""

from datetime import datetime
from decimal import Decimal
from typing import Any

from beanie import PydanticObjectId
from beanie.operators import Inc, Set
from bson import ObjectId
from pymongo.errors import DuplicateKeyError, WriteError

from verifund.core.exceptions import SchemaMismatchError
from verifund.core.logging import get_logger
from verifund.models.audit_log import AuditLog
from verifund.models.campaign import Campaign
from verifund.models.credit_score import CreditScoreEntry
from verifund.models.exchange_rate import ExchangeRate
from verifund.models.monthly_campaign_limit import MonthlyCampaignLimit
from verifund.models.user import User
from verifund.storage.base import RecordStore
from verifund.storage.records import (
    CampaignRow,
    CreditScoreTotals,
    LegacyRecord,
    MonthlyLimitRecord,
    RateRow,
    UserRow,
)

log = get_logger(__name__)

DOCUMENT_VALIDATION_FAILURE = 121  # collection $jsonSchema rejected the document


def _oid(value: str) -> PydanticObjectId | None:
    return PydanticObjectId(value) if ObjectId.is_valid(value) else None


def _rate_row(doc: ExchangeRate) -> RateRow:
    return RateRow(
        id=str(doc.id),
        from_currency=doc.from_currency,
        to_currency=doc.to_currency,
        rate=doc.rate,
        source=doc.source,
        is_active=doc.is_active,
        created_at=doc.created_at,
    )


def _limit_record(doc: MonthlyCampaignLimit) -> MonthlyLimitRecord:
    return MonthlyLimitRecord(
        id=str(doc.id),
        user_id=str(doc.user_id),
        **doc.model_dump(exclude={"id", "revision_id", "user_id"}),
    )


class MongoRecordStore(RecordStore):
    async def get_user(self, user_id: str) -> UserRow | None:
        oid = _oid(user_id)
        if not oid:
            return None
        user = await User.get(oid)
        if not user:
            return None
        return UserRow(
            id=str(user.id),
            email=user.email,
            name=user.name,
            role=user.role,
            is_flagged=user.is_flagged,
            is_suspended=user.is_suspended,
            session_version=user.session_version,
        )

    async def find_active_rate(self, from_currency: str, to_currency: str) -> RateRow | None:
        doc = (
            await ExchangeRate.find(
                ExchangeRate.from_currency == from_currency,
                ExchangeRate.to_currency == to_currency,
                ExchangeRate.is_active == True,  # noqa: E712
            )
            .sort(-ExchangeRate.created_at)
            .first_or_none()
        )
        return _rate_row(doc) if doc else None

    async def deactivate_rates(self, from_currency: str, to_currency: str) -> None:
        await ExchangeRate.find(
            ExchangeRate.from_currency == from_currency,
            ExchangeRate.to_currency == to_currency,
        ).update(Set({ExchangeRate.is_active: False}))

    async def insert_rate(self, from_currency: str, to_currency: str, rate: Decimal, source: str) -> RateRow:
        doc = ExchangeRate(
            from_currency=from_currency,
            to_currency=to_currency,
            rate=rate,
            source=source,
            is_active=True,
        )
        await doc.insert()
        return _rate_row(doc)

    async def list_rates(
        self, from_currency: str, to_currency: str, limit: int = 50, offset: int = 0
    ) -> list[RateRow]:
        docs = (
            await ExchangeRate.find(
                ExchangeRate.from_currency == from_currency,
                ExchangeRate.to_currency == to_currency,
            )
            .sort(-ExchangeRate.created_at)
            .skip(offset)
            .limit(limit)
            .to_list()
        )
        return [_rate_row(d) for d in docs]

    async def find_earliest_funded_campaign(self, creator_id: str) -> CampaignRow | None:
        oid = _oid(creator_id)
        if not oid:
            return None
        doc = (
            await Campaign.find(
                Campaign.creator.id == oid,
                {"$expr": {"$gte": ["$current_amount", "$minimum_amount"]}},
            )
            .sort(+Campaign.created_at)
            .first_or_none()
        )
        if not doc:
            return None
        return CampaignRow(
            id=str(doc.id),
            creator_id=str(doc.creator.ref.id),
            created_at=doc.created_at,
            current_amount=doc.current_amount,
            minimum_amount=doc.minimum_amount,
        )

    async def count_campaigns_by_creator(self, creator_id: str) -> int:
        oid = _oid(creator_id)
        if not oid:
            return 0
        return await Campaign.find(Campaign.creator.id == oid).count()

    async def sum_credit_scores(self, user_id: str) -> CreditScoreTotals:
        oid = _oid(user_id)
        if not oid:
            return CreditScoreTotals(count=0, total=0)
        rows = await CreditScoreEntry.find(CreditScoreEntry.user.id == oid).aggregate(
            [{"$group": {"_id": None, "count": {"$sum": 1}, "total": {"$sum": "$score"}}}]
        ).to_list()
        if not rows:
            return CreditScoreTotals(count=0, total=0)
        return CreditScoreTotals(count=rows[0]["count"], total=rows[0]["total"])

    async def find_monthly_limit_record(self, user_id: str, year: int, month: int) -> MonthlyLimitRecord | None:
        oid = _oid(user_id)
        if not oid:
            return None
        doc = await MonthlyCampaignLimit.find_one(
            MonthlyCampaignLimit.user_id == oid,
            MonthlyCampaignLimit.year == year,
            MonthlyCampaignLimit.month == month,
        )
        return _limit_record(doc) if doc else None

    async def insert_monthly_limit_record(self, fields: LegacyRecord) -> MonthlyLimitRecord:
        """
        Raw insert so a LegacyRecord writes only its own columns. The unique
        index makes this insert-if-absent: a concurrent writer's duplicate is
        answered with the stored record.
        """
        now = datetime.utcnow()
        raw = fields.model_dump()
        raw["user_id"] = PydanticObjectId(fields.user_id)
        raw["created_at"] = now
        raw["updated_at"] = now
        try:
            await MonthlyCampaignLimit.get_motor_collection().insert_one(raw)
        except DuplicateKeyError:
            log.info("monthly_limit_record_exists", user_id=fields.user_id, year=fields.year, month=fields.month)
        except WriteError as e:
            if e.code == DOCUMENT_VALIDATION_FAILURE:
                raise SchemaMismatchError(details={"collection": "monthly_campaign_limits"}) from e
            raise
        record = await self.find_monthly_limit_record(fields.user_id, fields.year, fields.month)
        if record is None:
            raise RuntimeError("monthly limit record missing after insert")
        return record

    async def increment_monthly_campaign_count(
        self, user_id: str, year: int, month: int
    ) -> MonthlyLimitRecord | None:
        oid = _oid(user_id)
        if not oid:
            return None
        query = MonthlyCampaignLimit.find_one(
            MonthlyCampaignLimit.user_id == oid,
            MonthlyCampaignLimit.year == year,
            MonthlyCampaignLimit.month == month,
        )
        await query.update(
            Inc({MonthlyCampaignLimit.campaigns_created: 1}),
            Set({MonthlyCampaignLimit.updated_at: datetime.utcnow()}),
        )
        return await self.find_monthly_limit_record(user_id, year, month)

    async def insert_audit_event(
        self,
        user_id: str | None,
        event_type: str,
        entity_type: str,
        entity_id: str | None,
        metadata: dict[str, Any],
    ) -> None:
        await AuditLog(
            user_id=user_id,
            event_type=event_type,
            entity_type=entity_type,
            entity_id=entity_id,
            metadata=metadata,
        ).insert()
