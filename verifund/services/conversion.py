"""Exchange rates, fee policy and conversion quotes (PHP payouts)."""

from decimal import ROUND_HALF_UP, Decimal
from functools import lru_cache
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from verifund.core.config import Settings, get_settings
from verifund.core.exceptions import RateNotFoundError
from verifund.core.logging import get_logger
from verifund.core.schemas import CamelModel, Money
from verifund.storage.base import RecordStore
from verifund.storage.records import RateRow

log = get_logger(__name__)

# Single-currency mode: PHP -> PHP converts 1:1 even without a stored rate
IDENTITY_CURRENCY = "PHP"
DEFAULT_RATE_PAIRS = ((IDENTITY_CURRENCY, IDENTITY_CURRENCY),)


def _to_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


class ConversionFees(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    conversion_fee_percent: Money  # 0.01 = 1%
    minimum_fee: Money
    processing_fee: Money
    transfer_fee: Money

    @classmethod
    def from_settings(cls, settings: Settings) -> "ConversionFees":
        return cls(
            conversion_fee_percent=settings.conversion_fee_percent,
            minimum_fee=settings.minimum_fee,
            processing_fee=settings.processing_fee,
            transfer_fee=settings.transfer_fee,
        )


class PaymentMethodFees(BaseModel):
    processing: Decimal
    transfer: Decimal


class FeeBreakdown(CamelModel):
    platform_fee: Money
    transfer_fee: Money


class ConversionQuote(CamelModel):
    from_amount: Money
    from_currency: str
    to_amount: Money
    to_currency: str
    exchange_rate: Money
    fee: Money
    total_cost: Money
    fee_breakdown: FeeBreakdown | None = None


class ValidationResult(CamelModel):
    valid: bool
    error: str | None = None


class FeePolicy:
    """Mutable holder for the fee policy; services sharing one see each other's updates."""

    def __init__(self, fees: ConversionFees) -> None:
        self.fees = fees

    def update(self, **changes: Any) -> ConversionFees:
        self.fees = ConversionFees(**{**self.fees.model_dump(), **changes})
        return self.fees.model_copy()


@lru_cache
def get_fee_policy() -> FeePolicy:
    """Process-wide fee policy, seeded from settings."""
    return FeePolicy(ConversionFees.from_settings(get_settings()))


class ConversionService:
    def __init__(
        self,
        store: RecordStore,
        fees: ConversionFees | None = None,
        settings: Settings | None = None,
        policy: FeePolicy | None = None,
    ) -> None:
        self.store = store
        self.settings = settings or get_settings()
        self.policy = policy or FeePolicy(fees or ConversionFees.from_settings(self.settings))

    @property
    def fees(self) -> ConversionFees:
        return self.policy.fees

    # Rates

    async def get_exchange_rate(self, from_currency: str, to_currency: str) -> Decimal:
        row = await self.store.find_active_rate(from_currency, to_currency)
        if row:
            return row.rate
        if from_currency == IDENTITY_CURRENCY and to_currency == IDENTITY_CURRENCY:
            return Decimal("1.0")
        log.warning("exchange_rate_not_found", from_currency=from_currency, to_currency=to_currency)
        raise RateNotFoundError(from_currency, to_currency)

    async def set_exchange_rate(
        self,
        from_currency: str,
        to_currency: str,
        rate: Decimal | float | int | str,
        source: str = "manual",
    ) -> RateRow:
        """Deactivate every row for the pair, then insert the new active one (two writes, not atomic)."""
        rate = _to_decimal(rate)
        await self.store.deactivate_rates(from_currency, to_currency)
        row = await self.store.insert_rate(from_currency, to_currency, rate, source)
        log.info(
            "exchange_rate_set",
            from_currency=from_currency,
            to_currency=to_currency,
            rate=str(rate),
            source=source,
        )
        return row

    async def list_exchange_rates(
        self, from_currency: str, to_currency: str, limit: int = 50, offset: int = 0
    ) -> list[RateRow]:
        return await self.store.list_rates(from_currency, to_currency, limit=limit, offset=offset)

    async def initialize_default_rates(self) -> list[RateRow]:
        """Seed the 1:1 PHP rate for pairs that have no active row yet."""
        seeded = []
        for from_currency, to_currency in DEFAULT_RATE_PAIRS:
            if await self.store.find_active_rate(from_currency, to_currency):
                continue
            seeded.append(await self.set_exchange_rate(from_currency, to_currency, Decimal("1.0"), source="system"))
        if seeded:
            log.info("default_exchange_rates_initialized", count=len(seeded))
        return seeded

    # Fees

    def get_payment_method_fees(self, payment_method: str | None = None) -> PaymentMethodFees:
        # bank_transfer, bank and everything else settle as a bank payout
        # (InstaPay/PESONet); direct GCash payouts are not supported.
        return PaymentMethodFees(processing=self.fees.processing_fee, transfer=self.fees.transfer_fee)

    def get_conversion_fees(self) -> ConversionFees:
        return self.fees.model_copy()

    def update_conversion_fees(self, **changes: Any) -> ConversionFees:
        """Partial update of the fee policy; every service sharing the policy quotes with it."""
        fees = self.policy.update(**changes)
        log.info("conversion_fees_updated", **{k: str(v) for k, v in changes.items()})
        return fees

    # Quotes

    def convert_amount(self, amount: Decimal | float | int, exchange_rate: Decimal | float | int) -> Decimal:
        return _to_decimal(amount) * _to_decimal(exchange_rate)

    async def get_conversion_quote(
        self,
        from_amount: Decimal | float | int,
        from_currency: str,
        to_currency: str,
        payment_method: str | None = None,
    ) -> ConversionQuote:
        """
        Quote a conversion with fees. Inputs are not validated here so callers can
        preview out-of-range amounts; run validate_conversion_params before
        showing a quote as payable.
        """
        amount = _to_decimal(from_amount)
        exchange_rate = await self.get_exchange_rate(from_currency, to_currency)
        base_to_amount = amount * exchange_rate
        # 1% of the source amount, never below the minimum fee
        platform_fee = max(amount * self.fees.conversion_fee_percent, self.fees.minimum_fee)
        payment_fees = self.get_payment_method_fees(payment_method)
        total_fee = platform_fee + payment_fees.processing + payment_fees.transfer

        if from_currency == IDENTITY_CURRENCY and to_currency == IDENTITY_CURRENCY:
            # Withdrawal: fee comes out of what the user receives; balance is debited the requested amount
            to_amount = base_to_amount - total_fee
            total_cost = amount
        else:
            # Cross-currency: fee is charged on top of the requested amount
            to_amount = base_to_amount - total_fee
            total_cost = amount + total_fee

        return ConversionQuote(
            from_amount=amount,
            from_currency=from_currency,
            to_amount=to_amount,
            to_currency=to_currency,
            exchange_rate=exchange_rate,
            fee=total_fee,
            total_cost=total_cost,
            fee_breakdown=FeeBreakdown(platform_fee=platform_fee, transfer_fee=payment_fees.transfer)
            if payment_method
            else None,
        )

    def validate_conversion_params(
        self,
        amount: Decimal | float | int,
        from_currency: str,
        to_currency: str,
    ) -> ValidationResult:
        amount = _to_decimal(amount)
        minimum = self.settings.min_conversion_amount
        maximum = self.settings.max_conversion_amount
        if amount <= 0:
            return ValidationResult(valid=False, error="Amount must be greater than 0")
        if amount < minimum:
            return ValidationResult(valid=False, error=f"Minimum conversion amount is ₱{minimum:,}")
        if amount > maximum:
            return ValidationResult(valid=False, error=f"Maximum conversion amount is ₱{maximum:,}")
        supported = self.settings.supported_currencies
        if from_currency not in supported or to_currency not in supported:
            return ValidationResult(valid=False, error="Unsupported currency")
        # Same-currency pairs are allowed (PHP fee calculations)
        return ValidationResult(valid=True)

    def format_currency(self, amount: Decimal | float | int, currency: str) -> str:
        return format_currency(amount, currency)


def format_currency(amount: Decimal | float | int, currency: str) -> str:
    if currency == IDENTITY_CURRENCY:
        value = _to_decimal(amount).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
        return f"₱{value:,.2f}"
    return f"{amount} {currency}"
