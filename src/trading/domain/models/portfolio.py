"""Portfolio and position domain models."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional

DEFAULT_PORTFOLIO_NAME = "Default Portfolio"


@dataclass
class Portfolio:
    """A named container of positions owned by one user."""

    portfolio_id: str
    user_id: str
    name: str = DEFAULT_PORTFOLIO_NAME
    created_at: Optional[datetime] = field(default=None)
    updated_at: Optional[datetime] = field(default=None)


@dataclass
class PortfolioPosition:
    """
    Holding of one stock inside a portfolio.

    average_price is the quantity-weighted mean of every BUY fill.
    """

    position_id: str
    portfolio_id: str
    stock_id: str
    quantity: int
    average_price: Decimal
    symbol: Optional[str] = None
    name: Optional[str] = None

    @property
    def cost_basis(self) -> Decimal:
        return self.average_price * self.quantity
