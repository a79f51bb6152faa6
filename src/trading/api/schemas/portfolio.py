"""Pydantic schemas for portfolio endpoints."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class PortfolioCreate(BaseModel):
    """Request schema for creating a portfolio."""

    name: str = Field(..., min_length=1, max_length=255, description="Portfolio name, unique per user")


class PositionResponse(BaseModel):
    """A position; valuation fields are null when no current price is available."""

    stock_id: str
    symbol: str
    name: str
    quantity: int
    average_price: float
    current_price: Optional[float] = None
    total_value: Optional[float] = None
    gain: Optional[float] = None
    gain_percentage: Optional[float] = None


class PortfolioResponse(BaseModel):
    """Portfolio with valued positions."""

    id: str
    name: str
    positions: list[PositionResponse]
    total_value: float
    total_cost: float
    total_gain: float
    total_gain_percentage: float
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PortfolioSummaryResponse(BaseModel):
    """Totals across all of the user's portfolios."""

    total_portfolios: int
    total_value: float
    total_gain: float
    total_gain_percentage: float
    total_stocks: int
