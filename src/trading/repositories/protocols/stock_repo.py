"""Stock (price cache) repository protocol."""

from datetime import datetime
from typing import Protocol, Optional

from trading.domain.models import Stock
from trading.domain.views import VendorStock


class StockRepository(Protocol):
    """Interface for cached stock price storage."""

    def get_by_symbol(self, symbol: str) -> Optional[Stock]:
        """Retrieve a stock by (case-insensitive) symbol."""
        ...

    def list_all(self) -> list[Stock]:
        """List all cached stocks."""
        ...

    def upsert_many(self, items: list[VendorStock], refreshed_at: datetime) -> int:
        """Insert or update rows keyed by symbol; returns the number written."""
        ...
