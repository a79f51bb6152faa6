"""Stock domain model (cached vendor price)."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


@dataclass
class Stock:
    """
    Last known vendor price for a symbol.

    Symbol is stored upper-case; price is always positive.
    """

    stock_id: str
    symbol: str
    name: str
    price: Decimal
    last_updated: datetime

    def __post_init__(self) -> None:
        self.symbol = self.symbol.upper()
