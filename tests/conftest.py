import os
from datetime import datetime, timedelta
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# In-process store; no MongoDB needed
os.environ.setdefault("STORE_BACKEND", "memory")
os.environ.setdefault("SECRET_KEY", "test-secret-key-min-32-characters-long")

NOW = datetime(2026, 3, 15, 12, 0, 0)


def days_ago(days: float) -> datetime:
    return NOW - timedelta(days=days)


@pytest.fixture
def store():
    from verifund.storage.memory import MemoryRecordStore
    return MemoryRecordStore()


@pytest.fixture
def user(store):
    return store.add_user("creator@example.com", name="Creator")


@pytest.fixture
def conversion_service(store):
    from verifund.services.conversion import ConversionService
    return ConversionService(store)


@pytest.fixture
def slot_service(store):
    from verifund.services.campaign_slots import CampaignSlotService
    return CampaignSlotService(store, clock=lambda: NOW)


def session_headers(user) -> dict[str, str]:
    from verifund.core.security import create_session_cookie
    from verifund.deps import SESSION_COOKIE_NAME
    cookie = create_session_cookie({"user_id": user.id, "session_version": user.session_version})
    return {"Cookie": f"{SESSION_COOKIE_NAME}={cookie}"}


@pytest_asyncio.fixture
async def client(store) -> AsyncGenerator[AsyncClient, None]:
    from verifund.core.config import get_settings
    from verifund.deps import get_fees, get_store
    from verifund.main import app
    from verifund.services.conversion import ConversionFees, FeePolicy
    policy = FeePolicy(ConversionFees.from_settings(get_settings()))
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_fees] = lambda: policy
    try:
        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
        ) as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()
