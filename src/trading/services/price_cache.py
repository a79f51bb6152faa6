"""Price cache over the stocks table, refreshed from the vendor listing."""

import logging
import threading
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Callable, Optional

from trading.core.exceptions import StockNotFoundError, VendorUnavailableError
from trading.core.timezone import utc_now
from trading.domain.models import Stock
from trading.domain.views import ListingPage, VendorFailure, VendorStock
from trading.providers.vendor_client import VendorClient
from trading.repositories.protocols import StockRepository

logger = logging.getLogger(__name__)


class RefreshCoordinator:
    """
    Coalesces concurrent full refreshes within one process.

    Shared by every PriceCache instance (one per request/session). The
    generation counter only moves when a refresh succeeds, so a caller that
    queued behind a successful refresh can skip its own.
    """

    def __init__(self):
        self.lock = threading.Lock()
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    def completed(self) -> None:
        """Record a successful refresh (call with the lock held)."""
        self._generation += 1


def is_stale(last_updated: datetime, now: datetime, freshness_seconds: int) -> bool:
    """A price is stale once it is older than the freshness window."""
    return now - last_updated > timedelta(seconds=freshness_seconds)


class PriceCache:
    """
    Last known vendor price per symbol, with freshness management.

    Lookups serve the stored row while it is fresh. A missing or stale row
    triggers a refresh of the whole vendor listing (never a single symbol),
    after which the row is read again.
    """

    def __init__(
        self,
        stock_repo: StockRepository,
        vendor: VendorClient,
        freshness_seconds: int = 300,
        clock: Callable[[], datetime] = utc_now,
        coordinator: Optional[RefreshCoordinator] = None,
        serve_stale_on_failure: bool = False,
        max_pages: int = 100,
    ):
        self._stock_repo = stock_repo
        self._vendor = vendor
        self._freshness_seconds = freshness_seconds
        self._clock = clock
        self._coordinator = coordinator or RefreshCoordinator()
        self._serve_stale = serve_stale_on_failure
        self._max_pages = max_pages

    def is_stale(self, last_updated: datetime, now: Optional[datetime] = None) -> bool:
        """Check a timestamp against the freshness window."""
        return is_stale(last_updated, now or self._clock(), self._freshness_seconds)

    def get_stock(self, symbol: str) -> Optional[Stock]:
        """
        Return the cached stock for symbol, refreshing when missing or stale.

        Returns None when the vendor listing does not contain the symbol.
        Raises VendorUnavailableError when a needed refresh fails (a stale
        row is served instead only when serve_stale_on_failure is set).
        """
        symbol = symbol.strip().upper()
        if not symbol:
            return None

        observed = self._coordinator.generation
        stock = self._stock_repo.get_by_symbol(symbol)
        if stock is not None and not self.is_stale(stock.last_updated):
            return stock

        try:
            self._refresh_coalesced(observed)
        except VendorUnavailableError as exc:
            if stock is not None and self._serve_stale:
                logger.warning(
                    "Serving stale price for %s (last updated %s): %s",
                    symbol, stock.last_updated.isoformat(), exc.message,
                )
                return stock
            raise

        return self._stock_repo.get_by_symbol(symbol)

    def get_price(self, symbol: str) -> Decimal:
        """Return the current price for symbol or raise StockNotFoundError."""
        stock = self.get_stock(symbol)
        if stock is None:
            raise StockNotFoundError(symbol.strip().upper())
        return stock.price

    def refresh(self) -> int:
        """Refresh every symbol now; returns the number of rows written."""
        with self._coordinator.lock:
            written = self._refresh_all()
            self._coordinator.completed()
        return written

    def list_stocks(self, next_token: Optional[str] = None) -> ListingPage:
        """Fetch one vendor listing page and write it through to the cache."""
        result = self._vendor.fetch_listing(next_token)
        if isinstance(result, VendorFailure):
            raise VendorUnavailableError(result.message, kind=result.kind.value)

        items = self._usable(result.items)
        if items:
            self._stock_repo.upsert_many(items, self._clock())
        return ListingPage(items=items, next_token=result.next_token)

    def _refresh_coalesced(self, observed: int) -> None:
        with self._coordinator.lock:
            if self._coordinator.generation != observed:
                logger.debug("Price refresh completed by another caller; re-reading")
                return
            self._refresh_all()
            self._coordinator.completed()

    def _refresh_all(self) -> int:
        """Walk every listing page, then upsert all items in one pass."""
        collected: dict[str, VendorStock] = {}
        next_token: Optional[str] = None
        seen_tokens: set[str] = set()

        for _ in range(self._max_pages):
            result = self._vendor.fetch_listing(next_token)
            if isinstance(result, VendorFailure):
                logger.error("Price refresh failed: %s (%s)", result.message, result.kind.value)
                raise VendorUnavailableError(result.message, kind=result.kind.value)

            for item in self._usable(result.items):
                collected[item.symbol] = item

            next_token = result.next_token
            if not next_token or next_token in seen_tokens:
                break
            seen_tokens.add(next_token)
        else:
            logger.warning(
                "Vendor listing still paginating after %d pages; refreshing the symbols collected so far",
                self._max_pages,
            )

        written = self._stock_repo.upsert_many(list(collected.values()), self._clock())
        logger.info("Refreshed %d stock prices", written)
        return written

    @staticmethod
    def _usable(items: list[VendorStock]) -> list[VendorStock]:
        usable = []
        for item in items:
            symbol = (item.symbol or "").strip().upper()
            if not symbol or item.price is None or item.price <= 0:
                logger.warning("Skipping vendor listing item %r: invalid symbol or price", item)
                continue
            usable.append(VendorStock(symbol=symbol, name=item.name or symbol, price=item.price))
        return usable
