"""Campaign slot summary and first operational campaign lookup."""

import pytest

from conftest import NOW, days_ago
from verifund.core.exceptions import UserNotFoundError

pytestmark = pytest.mark.asyncio


def _steady_state(store, user, score):
    """Funded campaign 40 days ago and a single credit score entry."""
    store.add_campaign(user.id, days_ago(40), current_amount=5000, minimum_amount=5000)
    store.add_credit_score(user.id, score)


async def test_average_credit_score(slot_service, store, user):
    assert await slot_service.get_user_average_credit_score(user.id) == 0
    store.add_credit_score(user.id, 80)
    store.add_credit_score(user.id, 81)
    assert await slot_service.get_user_average_credit_score(user.id) == 81  # 80.5 rounds up
    store.add_credit_score(user.id, 60)
    assert await slot_service.get_user_average_credit_score(user.id) == 74  # 73.67


async def test_average_ignores_other_users(slot_service, store, user):
    other = store.add_user("other@example.com")
    store.add_credit_score(other.id, 10)
    store.add_credit_score(user.id, 90)
    assert await slot_service.get_user_average_credit_score(user.id) == 90


async def test_first_campaign_is_earliest_funded(slot_service, store, user):
    store.add_campaign(user.id, days_ago(60), current_amount=100, minimum_amount=5000)  # never funded
    later = store.add_campaign(user.id, days_ago(10), current_amount=6000, minimum_amount=5000)
    earlier = store.add_campaign(user.id, days_ago(20), current_amount=5000, minimum_amount=5000)
    other = store.add_user("other@example.com")
    store.add_campaign(other.id, days_ago(90), current_amount=9000, minimum_amount=1)

    first = await slot_service.get_user_first_campaign(user.id)
    assert first.id == earlier.id
    assert first.id != later.id


async def test_first_campaign_none_without_funded(slot_service, store, user):
    store.add_campaign(user.id, days_ago(5), current_amount=0, minimum_amount=1000)
    assert await slot_service.get_user_first_campaign(user.id) is None


async def test_no_operational_campaign_is_first_month(slot_service, user):
    info = await slot_service.get_campaign_slot_info(user.id)
    assert info.is_first_month is True
    assert info.days_until_reset == 0
    assert info.has_operational_campaign is False
    assert info.first_campaign_date is None
    assert info.max_allowed == 3
    assert info.slots_remaining == 3
    assert info.paid_slots_available == 0
    assert info.campaigns_created == 0


async def test_unfunded_campaigns_do_not_start_countdown(slot_service, store, user):
    store.add_campaign(user.id, days_ago(45), current_amount=10, minimum_amount=1000)
    info = await slot_service.get_campaign_slot_info(user.id)
    assert info.is_first_month is True
    assert info.days_until_reset == 0
    assert info.total_campaigns_created == 1


async def test_first_month_grace_ignores_score(slot_service, store, user):
    funded = store.add_campaign(user.id, days_ago(10), current_amount=5000, minimum_amount=5000)
    store.add_credit_score(user.id, 5)
    info = await slot_service.get_campaign_slot_info(user.id)
    assert info.is_first_month is True
    assert info.days_until_reset == 20
    assert info.max_allowed == 3
    assert info.paid_slots_available == 0
    assert info.has_operational_campaign is True
    assert info.first_campaign_date == funded.created_at


@pytest.mark.parametrize(
    "score,max_allowed,paid_slots,price",
    [
        (80, 5, 0, 0),
        (79, 3, 0, 0),
        (65, 1, 0, 0),
        (64, 0, 3, 9000),
        (49, 0, 2, 6000),
        (19, 0, 0, 0),
    ],
)
async def test_steady_state_tiers(slot_service, store, user, score, max_allowed, paid_slots, price):
    _steady_state(store, user, score)
    info = await slot_service.get_campaign_slot_info(user.id)
    assert info.is_first_month is False
    assert info.days_until_reset == 20  # 40 days in: 10 into the second cycle
    assert info.credit_score == score
    assert info.max_allowed == max_allowed
    assert info.paid_slots_available == paid_slots
    assert info.paid_slot_price == price


async def test_next_tier_info(slot_service, store, user):
    _steady_state(store, user, 70)
    info = await slot_service.get_campaign_slot_info(user.id)
    assert info.next_tier_info.next_tier == "75%"
    assert info.next_tier_info.required_score == 75


async def test_no_next_tier_at_top(slot_service, store, user):
    _steady_state(store, user, 92)
    info = await slot_service.get_campaign_slot_info(user.id)
    assert info.next_tier_info is None


async def test_slots_remaining_counts_monthly_record(slot_service, store, user):
    _steady_state(store, user, 85)
    await slot_service.record_campaign_created(user.id)
    await slot_service.record_campaign_created(user.id)
    info = await slot_service.get_campaign_slot_info(user.id)
    assert info.campaigns_created == 2
    assert info.max_allowed == 5
    assert info.slots_remaining == 3


async def test_slots_remaining_never_negative(slot_service, store, user):
    _steady_state(store, user, 66)  # display allows 1
    for _ in range(3):
        await slot_service.record_campaign_created(user.id)
    info = await slot_service.get_campaign_slot_info(user.id)
    assert info.slots_remaining == 0


async def test_slot_info_creates_monthly_record(slot_service, store, user):
    await slot_service.get_campaign_slot_info(user.id)
    assert (user.id, NOW.year, NOW.month) in store.monthly_limits


async def test_unknown_user(slot_service):
    with pytest.raises(UserNotFoundError) as exc_info:
        await slot_service.get_campaign_slot_info("missing-user")
    assert exc_info.value.code == "USER_NOT_FOUND"


async def test_slot_info_json_uses_camel_case(slot_service, user):
    info = await slot_service.get_campaign_slot_info(user.id)
    data = info.model_dump(by_alias=True, mode="json")
    assert data["isFirstMonth"] is True
    assert data["hasOperationalCampaign"] is False
    assert data["firstCampaignDate"] is None
    assert data["userId"] == user.id


async def test_first_campaign_is_a_copy(slot_service, store, user):
    store.add_campaign(user.id, days_ago(10), current_amount=5000, minimum_amount=5000)
    first = await slot_service.get_user_first_campaign(user.id)
    first.current_amount = 0
    again = await slot_service.get_user_first_campaign(user.id)
    assert again is not None
    assert again.current_amount == 5000
