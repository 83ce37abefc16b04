from decimal import Decimal
from functools import lru_cache
from typing import Any, List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_DEFAULT_CORS = ["http://localhost:3000", "http://localhost:5173"]
_DEFAULT_CURRENCIES = ["PHP"]


def _parse_list(v: Any, default: List[str]) -> List[str]:
    try:
        if v is None or v == "":
            return default.copy()
        if isinstance(v, list):
            return [x for x in v if isinstance(x, str) and x.strip()]
        s = str(v).strip()
        if not s:
            return default.copy()
        if s.startswith("["):
            import json
            out = json.loads(s)
            return [x for x in out if isinstance(x, str) and x.strip()] or default.copy()
        return [x.strip() for x in s.split(",") if x.strip()] or default.copy()
    except Exception:
        return default.copy()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # App
    env: str = Field(default="development", description="ENV")
    debug: bool = Field(default=False, description="DEBUG")
    secret_key: str = Field(default="change-me-in-production-min-32-chars")

    # Record store: "mongo" or "memory"
    store_backend: str = Field(default="mongo", alias="STORE_BACKEND")

    # MongoDB
    mongodb_uri: str = Field(default="mongodb://localhost:27017", alias="MONGODB_URI")
    mongodb_db_name: str = Field(default="verifund", alias="MONGODB_DB_NAME")

    # Sentry
    sentry_dsn: str | None = Field(default=None, alias="SENTRY_DSN")

    # CORS: env as string, exposed as list
    cors_origins_raw: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        alias="CORS_ORIGINS",
        description="Comma-separated or JSON list",
    )

    @property
    def cors_origins(self) -> List[str]:
        return _parse_list(getattr(self, "cors_origins_raw", None), _DEFAULT_CORS)

    # Conversion fees (PHP)
    conversion_fee_percent: Decimal = Field(default=Decimal("0.01"), alias="CONVERSION_FEE_PERCENT")
    minimum_fee: Decimal = Field(default=Decimal("1"), alias="MINIMUM_FEE")
    processing_fee: Decimal = Field(default=Decimal("0"), alias="PROCESSING_FEE")
    transfer_fee: Decimal = Field(default=Decimal("10"), alias="TRANSFER_FEE")  # InstaPay/PESONet per payout

    # Conversion limits
    min_conversion_amount: int = Field(default=1, alias="MIN_CONVERSION_AMOUNT")
    max_conversion_amount: int = Field(default=1_000_000, alias="MAX_CONVERSION_AMOUNT")
    supported_currencies_raw: str = Field(
        default="PHP",
        alias="SUPPORTED_CURRENCIES",
        description="Comma-separated or JSON list",
    )

    @property
    def supported_currencies(self) -> List[str]:
        return _parse_list(getattr(self, "supported_currencies_raw", None), _DEFAULT_CURRENCIES)

    # Campaign slots
    first_month_campaign_slots: int = Field(default=10, alias="FIRST_MONTH_CAMPAIGN_SLOTS")
    first_month_display_slots: int = Field(default=3, alias="FIRST_MONTH_DISPLAY_SLOTS")


@lru_cache
def get_settings() -> Settings:
    return Settings()
