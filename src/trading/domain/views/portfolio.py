"""View models for portfolio valuation outputs."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional


@dataclass
class PositionView:
    """A position valued at the current cached price."""

    stock_id: str
    symbol: str
    name: str
    quantity: int
    average_price: Decimal
    current_price: Optional[Decimal] = None
    total_value: Optional[Decimal] = None
    gain: Optional[Decimal] = None
    gain_percentage: Optional[Decimal] = None


@dataclass
class PortfolioView:
    """Portfolio with valued positions and totals."""

    portfolio_id: str
    user_id: str
    name: str
    positions: list[PositionView] = field(default_factory=list)
    total_value: Decimal = field(default_factory=lambda: Decimal("0"))
    total_cost: Decimal = field(default_factory=lambda: Decimal("0"))
    total_gain: Decimal = field(default_factory=lambda: Decimal("0"))
    total_gain_percentage: Decimal = field(default_factory=lambda: Decimal("0"))
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class PortfolioSummary:
    """Aggregate over all of a user's portfolios."""

    total_portfolios: int = 0
    total_value: Decimal = field(default_factory=lambda: Decimal("0"))
    total_gain: Decimal = field(default_factory=lambda: Decimal("0"))
    total_gain_percentage: Decimal = field(default_factory=lambda: Decimal("0"))
    total_stocks: int = 0
