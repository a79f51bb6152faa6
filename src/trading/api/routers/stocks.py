"""Stock listing, lookup and purchase endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from trading.api.deps import get_price_cache, get_purchase_service, get_user_id
from trading.api.schemas.stock import BuyRequest, BuyResponse, StockListResponse, StockResponse
from trading.core.exceptions import StockNotFoundError
from trading.domain.models import RejectionReason
from trading.domain.views import PurchaseResult
from trading.services import PriceCache, PurchaseService

router = APIRouter(prefix="/stocks", tags=["stocks"])

_REJECTION_STATUS = {
    RejectionReason.PRICE_TOLERANCE: 400,
    RejectionReason.VENDOR_REJECTED: 422,
    RejectionReason.VENDOR_BAD_RESPONSE: 502,
    RejectionReason.VENDOR_UNAVAILABLE: 503,
    RejectionReason.IN_PROGRESS: 409,
}


def _buy_response(result: PurchaseResult) -> BuyResponse:
    return BuyResponse(
        success=result.success,
        message=result.message,
        transaction_id=result.transaction_id,
        status=result.status,
        reason=result.reason,
    )


@router.get("", response_model=StockListResponse)
def list_stocks(
    next_token: Optional[str] = Query(None, alias="nextToken"),
    price_cache: PriceCache = Depends(get_price_cache),
):
    """List one page of vendor stocks (also refreshes those cache rows)."""
    page = price_cache.list_stocks(next_token)
    return StockListResponse(
        items=[StockResponse(symbol=s.symbol, name=s.name, price=float(s.price)) for s in page.items],
        next_token=page.next_token,
    )


@router.get("/{symbol}", response_model=StockResponse)
def get_stock(symbol: str, price_cache: PriceCache = Depends(get_price_cache)):
    """Get a stock's current price from the cache."""
    stock = price_cache.get_stock(symbol)
    if stock is None:
        raise StockNotFoundError(symbol.strip().upper())
    return StockResponse(
        symbol=stock.symbol,
        name=stock.name,
        price=float(stock.price),
        last_updated=stock.last_updated,
    )


@router.post("/{symbol}/buy", response_model=BuyResponse, status_code=201)
def buy_stock(
    symbol: str,
    data: BuyRequest,
    user_id: str = Depends(get_user_id),
    purchase_service: PurchaseService = Depends(get_purchase_service),
):
    """
    Buy shares at a client-quoted price.

    201 when the vendor filled the order. Rejections keep the response
    body (with the transaction id when one was opened) and map the reason
    to a status code.
    """
    result = purchase_service.buy(
        symbol=symbol,
        requested_price=data.price,
        quantity=data.quantity,
        user_id=user_id,
        idempotency_key=data.idempotency_key,
    )
    response = _buy_response(result)
    if result.success:
        return response

    status_code = _REJECTION_STATUS.get(result.reason, 422)
    return JSONResponse(status_code=status_code, content=response.model_dump(mode="json"))
