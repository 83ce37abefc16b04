from decimal import Decimal

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from verifund.core.exceptions import BadRequestError
from verifund.deps import get_conversion_service, get_current_user
from verifund.services.conversion import ConversionService
from verifund.storage.records import UserRow

router = APIRouter()


class ValidateRequest(BaseModel):
    amount: Decimal
    from_currency: str = "PHP"
    to_currency: str = "PHP"


@router.get("/quote")
async def conversion_quote(
    amount: Decimal = Query(...),
    from_currency: str = Query("PHP"),
    to_currency: str = Query("PHP"),
    payment_method: str | None = Query(None),
    preview: bool = Query(False),
    user: UserRow = Depends(get_current_user),
    service: ConversionService = Depends(get_conversion_service),
):
    """Quote with fees. preview=true skips the amount/currency policy check (UI previews)."""
    from_currency, to_currency = from_currency.upper(), to_currency.upper()
    if not preview:
        check = service.validate_conversion_params(amount, from_currency, to_currency)
        if not check.valid:
            raise BadRequestError(check.error, details={"amount": str(amount)})
    quote = await service.get_conversion_quote(amount, from_currency, to_currency, payment_method)
    out = quote.model_dump(by_alias=True, mode="json")
    out["display"] = {
        "toAmount": service.format_currency(quote.to_amount, to_currency),
        "fee": service.format_currency(quote.fee, from_currency),
        "totalCost": service.format_currency(quote.total_cost, from_currency),
    }
    return out


@router.post("/validate")
async def conversion_validate(
    body: ValidateRequest,
    user: UserRow = Depends(get_current_user),
    service: ConversionService = Depends(get_conversion_service),
):
    """Check amount and currencies against conversion policy; messages are user-facing."""
    result = service.validate_conversion_params(body.amount, body.from_currency.upper(), body.to_currency.upper())
    return result.model_dump(by_alias=True, exclude_none=True)


@router.get("/rates/{from_currency}/{to_currency}")
async def conversion_rate(
    from_currency: str,
    to_currency: str,
    user: UserRow = Depends(get_current_user),
    service: ConversionService = Depends(get_conversion_service),
):
    rate = await service.get_exchange_rate(from_currency.upper(), to_currency.upper())
    return {"fromCurrency": from_currency.upper(), "toCurrency": to_currency.upper(), "rate": float(rate)}


@router.get("/fees")
async def conversion_fees(
    user: UserRow = Depends(get_current_user),
    service: ConversionService = Depends(get_conversion_service),
):
    """Current fee policy."""
    return service.get_conversion_fees().model_dump(by_alias=True, mode="json")
