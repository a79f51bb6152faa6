"""Pydantic schemas for transaction endpoints."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from trading.domain.models import TransactionStatus, TransactionType


class TransactionResponse(BaseModel):
    """Response schema for a single ledger entry."""

    id: str
    user_id: str
    stock_id: str
    symbol: Optional[str] = None
    portfolio_id: Optional[str] = None
    type: TransactionType
    quantity: int
    price: float
    total_amount: float
    status: TransactionStatus
    error_message: Optional[str] = None
    created_at: Optional[datetime] = None
    processed_at: Optional[datetime] = None


class TransactionListResponse(BaseModel):
    """Response schema for listing transactions."""

    transactions: list[TransactionResponse]
    count: int
