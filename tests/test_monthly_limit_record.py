"""Calendar-month limit record: lazy creation, freezing, legacy schema, eligibility."""

import asyncio
from datetime import datetime

import pytest

from conftest import NOW, days_ago
from verifund.services.campaign_slots import CampaignSlotService
from verifund.storage.memory import MemoryRecordStore
from verifund.storage.records import FullRecord

pytestmark = pytest.mark.asyncio


async def test_first_month_record(slot_service, store, user):
    record = await slot_service.get_monthly_limit_record(user.id)
    assert (record.year, record.month) == (NOW.year, NOW.month)
    assert record.user_id == user.id
    assert record.is_first_month is True
    assert record.max_allowed == 10
    assert record.campaigns_created == 0
    assert record.paid_slots_available == 0
    assert record.credit_score_at_month == 0


async def test_grace_record_ignores_score(slot_service, store, user):
    store.add_campaign(user.id, days_ago(29), current_amount=100, minimum_amount=100)
    store.add_credit_score(user.id, 95)
    record = await slot_service.get_monthly_limit_record(user.id)
    assert record.is_first_month is True
    assert record.max_allowed == 10
    assert record.credit_score_at_month == 95


@pytest.mark.parametrize("score,max_allowed", [(90, 25), (70, 20), (60, 15), (40, 10), (30, 5), (10, 3)])
async def test_steady_state_record(slot_service, store, user, score, max_allowed):
    store.add_campaign(user.id, days_ago(30), current_amount=100, minimum_amount=100)
    store.add_credit_score(user.id, score)
    record = await slot_service.get_monthly_limit_record(user.id)
    assert record.is_first_month is False
    assert record.max_allowed == max_allowed
    assert record.credit_score_at_month == score


async def test_record_frozen_for_the_month(slot_service, store, user):
    store.add_campaign(user.id, days_ago(60), current_amount=100, minimum_amount=100)
    store.add_credit_score(user.id, 90)
    first = await slot_service.get_monthly_limit_record(user.id)

    store.add_credit_score(user.id, 10)
    store.add_credit_score(user.id, 10)
    second = await slot_service.get_monthly_limit_record(user.id)

    assert second.id == first.id
    assert second.max_allowed == first.max_allowed == 25
    assert second.credit_score_at_month == first.credit_score_at_month == 90


async def test_new_calendar_month_gets_new_record(store, user):
    now = {"value": datetime(2026, 1, 31, 23, 0)}
    service = CampaignSlotService(store, clock=lambda: now["value"])
    january = await service.get_monthly_limit_record(user.id)
    now["value"] = datetime(2026, 2, 1, 0, 30)
    february = await service.get_monthly_limit_record(user.id)
    assert (january.year, january.month) == (2026, 1)
    assert (february.year, february.month) == (2026, 2)
    assert january.id != february.id
    assert len(store.monthly_limits) == 2


async def test_concurrent_first_reads_share_one_record(slot_service, store, user):
    records = await asyncio.gather(*[slot_service.get_monthly_limit_record(user.id) for _ in range(5)])
    assert len({r.id for r in records}) == 1
    assert len(store.monthly_limits) == 1


async def test_insert_if_absent_returns_existing(store, user):
    fields = FullRecord(user_id=user.id, year=2026, month=3, max_allowed=10)
    created = await store.insert_monthly_limit_record(fields)
    again = await store.insert_monthly_limit_record(fields.model_copy(update={"max_allowed": 99}))
    assert again.id == created.id
    assert again.max_allowed == 10


async def test_legacy_schema_fallback(user):
    store = MemoryRecordStore(legacy_schema=True)
    store.users[user.id] = user
    store.add_campaign(user.id, days_ago(60), current_amount=100, minimum_amount=100)
    store.add_credit_score(user.id, 70)
    service = CampaignSlotService(store, clock=lambda: NOW)

    record = await service.get_monthly_limit_record(user.id)
    assert record.max_allowed == 20
    assert record.credit_score_at_month == 70
    # columns the legacy schema lacks read back as defaults
    assert record.is_first_month is False
    assert record.paid_slots_available == 0

    info = await service.get_campaign_slot_info(user.id)
    assert info.campaigns_created == 0
    assert info.max_allowed == 1


async def test_record_campaign_created_increments(slot_service, store, user):
    first = await slot_service.record_campaign_created(user.id)
    second = await slot_service.record_campaign_created(user.id)
    assert first.campaigns_created == 1
    assert second.campaigns_created == 2
    stored = await store.find_monthly_limit_record(user.id, NOW.year, NOW.month)
    assert stored.campaigns_created == 2


async def test_can_create_within_limit(slot_service, user):
    result = await slot_service.check_campaign_creation(user.id)
    assert result.can_create is True
    assert result.reason is None


async def test_cannot_create_when_limit_reached(slot_service, store, user):
    store.add_campaign(user.id, days_ago(45), current_amount=100, minimum_amount=100)
    store.add_credit_score(user.id, 10)  # monthly allowance 3
    for _ in range(3):
        await slot_service.record_campaign_created(user.id)
    result = await slot_service.check_campaign_creation(user.id)
    assert result.can_create is False
    assert "(3/3)" in result.reason
    assert "Credit score: 10%." in result.reason
    assert "Reach 75% credit score" in result.reason


async def test_flagged_user_cannot_create(slot_service, store):
    flagged = store.add_user("flagged@example.com", is_flagged=True)
    result = await slot_service.check_campaign_creation(flagged.id)
    assert result.can_create is False
    assert "flagged or suspended" in result.reason


async def test_unknown_user_cannot_create(slot_service):
    result = await slot_service.check_campaign_creation("nobody")
    assert result.can_create is False
    assert result.reason == "User not found"
