"""Pydantic schemas for stock endpoints."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from trading.domain.models import PRICE_DECIMAL_PLACES, RejectionReason, TransactionStatus


class StockResponse(BaseModel):
    """A cached stock price."""

    symbol: str
    name: str
    price: float
    last_updated: Optional[datetime] = None


class StockListResponse(BaseModel):
    """One page of the vendor listing."""

    items: list[StockResponse]
    next_token: Optional[str] = Field(default=None, serialization_alias="nextToken")


class BuyRequest(BaseModel):
    """Request schema for buying a stock."""

    price: Decimal = Field(
        ...,
        gt=0,
        decimal_places=PRICE_DECIMAL_PLACES,
        description="Price per share the client expects to pay",
    )
    quantity: int = Field(..., gt=0, description="Number of shares")
    idempotency_key: Optional[str] = Field(default=None, min_length=1, max_length=255)


class BuyResponse(BaseModel):
    """Outcome of a buy request."""

    success: bool
    message: Optional[str] = None
    transaction_id: Optional[str] = None
    status: Optional[TransactionStatus] = None
    reason: Optional[RejectionReason] = None
