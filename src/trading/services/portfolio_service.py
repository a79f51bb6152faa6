"""Portfolio service: default portfolios, fills and valuation."""

import logging
import uuid
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, Optional

from sqlalchemy.exc import IntegrityError

from trading.core.exceptions import (
    NotFoundError,
    StorageError,
    ValidationError,
    VendorUnavailableError,
)
from trading.core.timezone import utc_now
from trading.domain.models import DEFAULT_PORTFOLIO_NAME, Portfolio, PortfolioPosition
from trading.domain.views import PortfolioSummary, PortfolioView, PositionView
from trading.repositories.protocols import PortfolioRepository
from trading.services.price_cache import PriceCache

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")
ZERO = Decimal("0")


def _money(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def _gain_percentage(gain: Decimal, cost: Decimal) -> Decimal:
    if cost == 0:
        return ZERO
    return _money(gain / cost * 100)


class PortfolioService:
    """
    Service for user portfolios and their positions.

    Positions change only through apply_fill, after the vendor confirmed a
    buy. Valuation reads current prices through the price cache.
    """

    def __init__(
        self,
        portfolio_repo: PortfolioRepository,
        price_cache: PriceCache,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._portfolio_repo = portfolio_repo
        self._price_cache = price_cache
        self._clock = clock

    def get_or_create_default(self, user_id: str) -> Portfolio:
        """
        Return the user's oldest portfolio, creating "Default Portfolio" if none.

        Portfolio names are unique per user, so a concurrent creation loses
        the insert and picks up the winner's row.
        """
        portfolios = self._portfolio_repo.list_by_user(user_id)
        if portfolios:
            return portfolios[0]

        now = self._clock()
        portfolio = Portfolio(
            portfolio_id=str(uuid.uuid4()),
            user_id=user_id,
            name=DEFAULT_PORTFOLIO_NAME,
            created_at=now,
            updated_at=now,
        )
        try:
            created = self._portfolio_repo.create(portfolio)
        except StorageError as exc:
            if not isinstance(exc.__cause__, IntegrityError):
                raise
            portfolios = self._portfolio_repo.list_by_user(user_id)
            if not portfolios:
                raise
            return portfolios[0]

        logger.info("Created default portfolio %s for user %s", created.portfolio_id, user_id)
        return created

    def create_portfolio(self, user_id: str, name: str) -> Portfolio:
        """Create a named portfolio; names are unique per user."""
        name = (name or "").strip()
        if not name:
            raise ValidationError("Portfolio name is required")
        if any(p.name == name for p in self._portfolio_repo.list_by_user(user_id)):
            raise ValidationError(f"Portfolio with name '{name}' already exists")

        now = self._clock()
        portfolio = Portfolio(
            portfolio_id=str(uuid.uuid4()),
            user_id=user_id,
            name=name,
            created_at=now,
            updated_at=now,
        )
        try:
            return self._portfolio_repo.create(portfolio)
        except StorageError as exc:
            if isinstance(exc.__cause__, IntegrityError):
                raise ValidationError(f"Portfolio with name '{name}' already exists") from exc
            raise

    def apply_fill(
        self,
        portfolio_id: str,
        stock_id: str,
        quantity: int,
        fill_price: Decimal,
    ) -> PortfolioPosition:
        """
        Merge a confirmed fill into the position for stock_id.

        New positions take the fill price; existing ones get the
        quantity-weighted average of old and new.
        """
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise ValidationError("quantity must be a positive integer")
        if fill_price is None or fill_price <= 0:
            raise ValidationError("fill price must be positive")

        return self._portfolio_repo.apply_fill(
            portfolio_id, stock_id, quantity, fill_price, self._clock()
        )

    def get_portfolio(self, portfolio_id: str, user_id: str) -> PortfolioView:
        """Get one of the user's portfolios with valued positions."""
        portfolio = self._portfolio_repo.get_by_id(portfolio_id)
        if not portfolio or portfolio.user_id != user_id:
            raise NotFoundError("Portfolio", portfolio_id)
        return self._value([portfolio])[0]

    def list_by_user(self, user_id: str) -> list[PortfolioView]:
        """List the user's portfolios, oldest first, valued at current prices."""
        return self._value(self._portfolio_repo.list_by_user(user_id))

    def summary(self, user_id: str) -> PortfolioSummary:
        """Aggregate value and gain over every portfolio of the user."""
        views = self.list_by_user(user_id)
        total_value = sum((v.total_value for v in views), ZERO)
        total_cost = sum((v.total_cost for v in views), ZERO)
        total_gain = sum((v.total_gain for v in views), ZERO)

        return PortfolioSummary(
            total_portfolios=len(views),
            total_value=_money(total_value),
            total_gain=_money(total_gain),
            total_gain_percentage=_gain_percentage(total_gain, total_cost),
            total_stocks=sum(len(v.positions) for v in views),
        )

    def _value(self, portfolios: list[Portfolio]) -> list[PortfolioView]:
        prices: dict[str, Optional[Decimal]] = {}
        pricing_available = True

        def price_for(symbol: Optional[str]) -> Optional[Decimal]:
            nonlocal pricing_available
            if not symbol or not pricing_available:
                return None
            if symbol not in prices:
                try:
                    stock = self._price_cache.get_stock(symbol)
                except VendorUnavailableError as exc:
                    # One failed refresh is enough for this call
                    logger.warning("Valuing portfolios without prices: %s", exc.message)
                    pricing_available = False
                    return None
                prices[symbol] = stock.price if stock else None
            return prices[symbol]

        views = []
        for portfolio in portfolios:
            view = PortfolioView(
                portfolio_id=portfolio.portfolio_id,
                user_id=portfolio.user_id,
                name=portfolio.name,
                created_at=portfolio.created_at,
                updated_at=portfolio.updated_at,
            )
            total_value = total_cost = ZERO

            for position in self._portfolio_repo.get_positions(portfolio.portfolio_id):
                position_view = PositionView(
                    stock_id=position.stock_id,
                    symbol=position.symbol or "",
                    name=position.name or "",
                    quantity=position.quantity,
                    average_price=position.average_price,
                )
                current_price = price_for(position.symbol)
                if current_price is not None:
                    value = current_price * position.quantity
                    cost = position.cost_basis
                    position_view.current_price = current_price
                    position_view.total_value = _money(value)
                    position_view.gain = _money(value - cost)
                    position_view.gain_percentage = _gain_percentage(value - cost, cost)
                    total_value += value
                    total_cost += cost
                view.positions.append(position_view)

            view.total_value = _money(total_value)
            view.total_cost = _money(total_cost)
            view.total_gain = _money(total_value - total_cost)
            view.total_gain_percentage = _gain_percentage(total_value - total_cost, total_cost)
            views.append(view)

        return views
