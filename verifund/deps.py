"""Shared FastAPI dependencies."""

from fastapi import Depends, Request

from verifund.core.exceptions import ForbiddenError, UnauthorizedError
from verifund.core.security import load_session_cookie
from verifund.services.campaign_slots import CampaignSlotService
from verifund.services.conversion import ConversionService, FeePolicy, get_fee_policy
from verifund.storage.base import RecordStore, get_record_store
from verifund.storage.records import UserRow

SESSION_COOKIE_NAME = "verifund_session"


def get_store() -> RecordStore:
    return get_record_store()


def get_fees() -> FeePolicy:
    return get_fee_policy()


def get_conversion_service(
    store: RecordStore = Depends(get_store),
    policy: FeePolicy = Depends(get_fees),
) -> ConversionService:
    return ConversionService(store, policy=policy)


def get_campaign_slot_service(store: RecordStore = Depends(get_store)) -> CampaignSlotService:
    return CampaignSlotService(store)


async def get_current_user(request: Request, store: RecordStore = Depends(get_store)) -> UserRow:
    """Dependency: load session from cookie and return the user."""
    cookie = request.cookies.get(SESSION_COOKIE_NAME)
    if not cookie:
        raise UnauthorizedError("Not authenticated")
    payload = load_session_cookie(cookie)
    if not payload:
        raise UnauthorizedError("Invalid or expired session")
    user_id = payload.get("user_id")
    if not user_id:
        raise UnauthorizedError("Invalid session")
    user = await store.get_user(user_id)
    if not user:
        raise UnauthorizedError("User not found")
    if payload.get("session_version") != user.session_version:
        raise UnauthorizedError("Session invalidated")
    return user


async def require_admin(user: UserRow = Depends(get_current_user)) -> UserRow:
    """Dependency: require current user to have role admin."""
    if user.role != "admin":
        raise ForbiddenError("Admin only")
    return user
