"""Portfolio repository protocol."""

from datetime import datetime
from decimal import Decimal
from typing import Protocol, Optional

from trading.domain.models import Portfolio, PortfolioPosition


class PortfolioRepository(Protocol):
    """Interface for portfolio and position data access."""

    def create(self, portfolio: Portfolio) -> Portfolio:
        """Persist a new portfolio."""
        ...

    def get_by_id(self, portfolio_id: str) -> Optional[Portfolio]:
        """Retrieve portfolio by ID."""
        ...

    def list_by_user(self, user_id: str) -> list[Portfolio]:
        """List a user's portfolios, oldest first."""
        ...

    def get_positions(self, portfolio_id: str) -> list[PortfolioPosition]:
        """List positions in a portfolio."""
        ...

    def get_position(self, portfolio_id: str, stock_id: str) -> Optional[PortfolioPosition]:
        """Get a single position."""
        ...

    def apply_fill(
        self,
        portfolio_id: str,
        stock_id: str,
        quantity: int,
        fill_price: Decimal,
        applied_at: datetime,
    ) -> PortfolioPosition:
        """Atomically merge a fill into a position (weighted average)."""
        ...
