from verifund.models.user import User
from verifund.models.campaign import Campaign
from verifund.models.credit_score import CreditScoreEntry
from verifund.models.exchange_rate import ExchangeRate
from verifund.models.monthly_campaign_limit import MonthlyCampaignLimit
from verifund.models.audit_log import AuditLog

__all__ = [
    "User",
    "Campaign",
    "CreditScoreEntry",
    "ExchangeRate",
    "MonthlyCampaignLimit",
    "AuditLog",
]
