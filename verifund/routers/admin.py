from decimal import Decimal

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from verifund.core.audit import log_event
from verifund.core.exceptions import BadRequestError
from verifund.deps import get_conversion_service, get_store, require_admin
from verifund.services.conversion import ConversionService
from verifund.storage.base import RecordStore
from verifund.storage.records import RateRow, UserRow

router = APIRouter()


class SetRateRequest(BaseModel):
    from_currency: str = Field(min_length=3, max_length=3)
    to_currency: str = Field(min_length=3, max_length=3)
    rate: Decimal = Field(gt=0)
    source: str = "manual"


def _rate_out(row: RateRow) -> dict:
    return {
        "id": row.id,
        "fromCurrency": row.from_currency,
        "toCurrency": row.to_currency,
        "rate": float(row.rate),
        "source": row.source,
        "isActive": row.is_active,
        "createdAt": row.created_at.isoformat(),
    }


@router.post("/exchange-rates")
async def admin_set_exchange_rate(
    body: SetRateRequest,
    user: UserRow = Depends(require_admin),
    service: ConversionService = Depends(get_conversion_service),
    store: RecordStore = Depends(get_store),
):
    """Admin: replace the active rate for a currency pair (history is kept)."""
    row = await service.set_exchange_rate(
        body.from_currency.upper(),
        body.to_currency.upper(),
        body.rate,
        source=body.source,
    )
    await log_event(
        store,
        user.id,
        "exchange_rate_set",
        "exchange_rate",
        row.id,
        {"pair": f"{row.from_currency}/{row.to_currency}", "rate": str(row.rate), "source": row.source},
    )
    return _rate_out(row)


@router.get("/exchange-rates/{from_currency}/{to_currency}")
async def admin_exchange_rate_history(
    from_currency: str,
    to_currency: str,
    user: UserRow = Depends(require_admin),
    service: ConversionService = Depends(get_conversion_service),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
):
    """Admin: rate history for a pair (newest first)."""
    rows = await service.list_exchange_rates(from_currency.upper(), to_currency.upper(), limit=limit, offset=offset)
    return {"rates": [_rate_out(r) for r in rows], "limit": limit, "offset": offset}


class UpdateFeesRequest(BaseModel):
    conversion_fee_percent: Decimal | None = Field(None, ge=0, lt=1)
    minimum_fee: Decimal | None = Field(None, ge=0)
    processing_fee: Decimal | None = Field(None, ge=0)
    transfer_fee: Decimal | None = Field(None, ge=0)


@router.patch("/conversion-fees")
async def admin_update_conversion_fees(
    body: UpdateFeesRequest,
    user: UserRow = Depends(require_admin),
    service: ConversionService = Depends(get_conversion_service),
    store: RecordStore = Depends(get_store),
):
    """Admin: partial fee policy update; later quotes in this process use it."""
    changes = body.model_dump(exclude_none=True)
    if not changes:
        raise BadRequestError("No fee changes supplied")
    fees = service.update_conversion_fees(**changes)
    await log_event(
        store,
        user.id,
        "conversion_fees_updated",
        "conversion_fees",
        None,
        {k: str(v) for k, v in changes.items()},
    )
    return fees.model_dump(by_alias=True, mode="json")
