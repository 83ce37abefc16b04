import certifi
from beanie import init_beanie
from motor.motor_asyncio import AsyncIOMotorClient

from verifund.core.config import get_settings
from verifund.models.audit_log import AuditLog
from verifund.models.campaign import Campaign
from verifund.models.credit_score import CreditScoreEntry
from verifund.models.exchange_rate import ExchangeRate
from verifund.models.monthly_campaign_limit import MonthlyCampaignLimit
from verifund.models.user import User

DOCUMENT_MODELS = [
    User,
    Campaign,
    CreditScoreEntry,
    ExchangeRate,
    MonthlyCampaignLimit,
    AuditLog,
]


def _use_tls(uri: str) -> bool:
    """True if URI uses TLS (Atlas or explicit tls=true). Avoids TLS for plain mongodb:// in CI."""
    return "mongodb+srv://" in uri or "tls=true" in uri.lower()


async def init_db() -> None:
    settings = get_settings()
    kwargs = {}
    if _use_tls(settings.mongodb_uri):
        kwargs["tlsCAFile"] = certifi.where()
        kwargs["tlsDisableOCSPEndpointCheck"] = True
    client = AsyncIOMotorClient(settings.mongodb_uri, **kwargs)
    database = client[settings.mongodb_db_name]
    await init_beanie(database=database, document_models=DOCUMENT_MODELS)
