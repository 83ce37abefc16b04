from datetime import datetime

from beanie import DecimalAnnotation, Document
from pydantic import Field


class ExchangeRate(Document):
    """Append-only rate history; at most one active row per (from, to)."""
    from_currency: str
    to_currency: str
    rate: DecimalAnnotation  # to = from * rate
    source: str = "manual"  # manual, system, api
    is_active: bool = True
    created_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "exchange_rates"
        indexes = [
            [("from_currency", 1), ("to_currency", 1), ("is_active", 1), ("created_at", -1)],
        ]
