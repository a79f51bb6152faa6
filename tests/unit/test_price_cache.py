"""
Unit tests for PriceCache.

Tests cover:
- Staleness window boundaries
- Refresh on missing / stale rows, no refresh while fresh
- Full-listing pagination and invalid items
- Failure policy (fail hard, optional stale serving)
- Refresh coalescing across threads
"""

import threading
from datetime import timedelta
from decimal import Decimal

import pytest

from trading.core.exceptions import StockNotFoundError, VendorUnavailableError
from trading.domain.views import VendorFailureKind, VendorStock, ListingPage
from trading.services import PriceCache, RefreshCoordinator, is_stale
from tests.conftest import FakeVendor, vendor_failure


# =============================================================================
# STALENESS
# =============================================================================


class TestStaleness:
    """Tests for the pure staleness predicate."""

    def test_fresh_within_window(self, fixed_now):
        assert not is_stale(fixed_now - timedelta(seconds=299), fixed_now, 300)

    def test_exactly_at_window_is_fresh(self, fixed_now):
        assert not is_stale(fixed_now - timedelta(seconds=300), fixed_now, 300)

    def test_stale_past_window(self, fixed_now):
        """
        GIVEN a price updated 301 s ago
        WHEN staleness is checked against a 300 s window
        THEN it is stale
        """
        assert is_stale(fixed_now - timedelta(seconds=301), fixed_now, 300)


# =============================================================================
# LOOKUPS
# =============================================================================


class TestGetStock:
    """Tests for cache lookups and refresh triggering."""

    def test_missing_row_triggers_full_refresh(self, price_cache, fake_vendor, stock_repo):
        """
        GIVEN an empty cache
        WHEN AAPL is looked up
        THEN the whole listing is stored and AAPL is returned
        """
        stock = price_cache.get_stock("AAPL")

        assert stock is not None
        assert stock.price == Decimal("175.50")
        assert len(fake_vendor.listing_calls) == 1
        assert len(stock_repo.list_all()) == len(fake_vendor.prices)

    def test_lookup_is_case_insensitive(self, price_cache):
        stock = price_cache.get_stock("  aapl ")

        assert stock.symbol == "AAPL"

    def test_fresh_row_does_not_call_vendor(self, price_cache, fake_vendor, clock):
        """
        GIVEN a price refreshed 299 s ago
        WHEN it is looked up again
        THEN the vendor is not called
        """
        price_cache.get_stock("AAPL")
        clock.advance(299)

        price_cache.get_stock("AAPL")

        assert len(fake_vendor.listing_calls) == 1

    def test_stale_row_is_refreshed(self, price_cache, fake_vendor, clock):
        """
        GIVEN a price refreshed 301 s ago and a new vendor price
        WHEN it is looked up
        THEN the cache refreshes and returns the new price
        """
        price_cache.get_stock("AAPL")
        fake_vendor.prices["AAPL"] = Decimal("180.00")
        clock.advance(301)

        stock = price_cache.get_stock("AAPL")

        assert stock.price == Decimal("180.00")
        assert stock.last_updated == clock.now
        assert len(fake_vendor.listing_calls) == 2

    def test_unknown_symbol_returns_none(self, price_cache):
        assert price_cache.get_stock("NOPE") is None

    def test_get_price_unknown_symbol_raises(self, price_cache):
        with pytest.raises(StockNotFoundError) as exc_info:
            price_cache.get_price("nope")

        assert exc_info.value.symbol == "NOPE"

    def test_get_price(self, price_cache):
        assert price_cache.get_price("MSFT") == Decimal("378.85")


# =============================================================================
# REFRESH
# =============================================================================


class TestRefresh:
    """Tests for full refreshes."""

    def test_refresh_follows_every_page(self, stock_repo, clock):
        """
        GIVEN a vendor serving 4 symbols in pages of 1
        WHEN the cache refreshes
        THEN all pages are fetched and all symbols stored
        """
        vendor = FakeVendor(page_size=1)
        cache = PriceCache(stock_repo, vendor, clock=clock)

        written = cache.refresh()

        assert written == 4
        assert vendor.listing_calls == [None, "1", "2", "3"]
        assert {s.symbol for s in stock_repo.list_all()} == {"AAPL", "ACME", "MSFT", "TSLA"}

    def test_refresh_stops_at_max_pages(self, stock_repo, clock):
        vendor = FakeVendor(page_size=1)
        cache = PriceCache(stock_repo, vendor, clock=clock, max_pages=2)

        written = cache.refresh()

        assert written == 2
        assert len(vendor.listing_calls) == 2

    def test_refresh_updates_existing_rows_in_place(self, price_cache, fake_vendor, stock_repo, clock):
        first = price_cache.get_stock("TSLA")
        fake_vendor.prices["TSLA"] = Decimal("171.00")
        clock.advance(10)

        price_cache.refresh()
        second = stock_repo.get_by_symbol("TSLA")

        assert second.stock_id == first.stock_id
        assert second.price == Decimal("171.00")
        assert second.last_updated == clock.now

    def test_invalid_items_are_skipped(self, stock_repo, clock):
        """
        GIVEN a listing containing a zero price and an empty symbol
        WHEN the cache refreshes
        THEN only valid items are stored
        """
        vendor = FakeVendor(prices={"GOOD": Decimal("10.00"), "FREE": Decimal("0")})
        cache = PriceCache(stock_repo, vendor, clock=clock)

        assert cache.refresh() == 1
        assert stock_repo.get_by_symbol("FREE") is None

    def test_list_stocks_writes_page_through(self, price_cache, stock_repo):
        page = price_cache.list_stocks()

        assert isinstance(page, ListingPage)
        assert len(page.items) == 4
        assert stock_repo.get_by_symbol("ACME").price == Decimal("100.00")

    def test_list_stocks_failure_raises(self, price_cache, fake_vendor):
        fake_vendor.listing_failure = vendor_failure(VendorFailureKind.BAD_RESPONSE)

        with pytest.raises(VendorUnavailableError) as exc_info:
            price_cache.list_stocks()

        assert exc_info.value.code == "VENDOR_BAD_RESPONSE"


# =============================================================================
# FAILURE POLICY
# =============================================================================


class TestFailurePolicy:
    """Tests for refresh failures."""

    def test_failure_with_empty_cache_raises(self, price_cache, fake_vendor):
        fake_vendor.listing_failure = vendor_failure(VendorFailureKind.UNAVAILABLE, "down")

        with pytest.raises(VendorUnavailableError) as exc_info:
            price_cache.get_stock("AAPL")

        assert exc_info.value.code == "VENDOR_UNAVAILABLE"

    def test_failure_with_stale_row_raises_by_default(self, price_cache, fake_vendor, clock):
        """
        GIVEN a stale cached price and a failing vendor
        WHEN the price is looked up with the default policy
        THEN the stale price is not trusted
        """
        price_cache.get_stock("AAPL")
        clock.advance(301)
        fake_vendor.listing_failure = vendor_failure(VendorFailureKind.UNAVAILABLE, "down")

        with pytest.raises(VendorUnavailableError):
            price_cache.get_stock("AAPL")

    def test_stale_row_served_when_enabled(self, stock_repo, fake_vendor, clock):
        cache = PriceCache(stock_repo, fake_vendor, clock=clock, serve_stale_on_failure=True)
        cache.get_stock("AAPL")
        clock.advance(301)
        fake_vendor.listing_failure = vendor_failure(VendorFailureKind.UNAVAILABLE, "down")

        stock = cache.get_stock("AAPL")

        assert stock.price == Decimal("175.50")

    def test_failed_refresh_writes_nothing(self, stock_repo, clock):
        """
        GIVEN page 1 succeeds but page 2 fails
        WHEN the cache refreshes
        THEN no rows are written
        """

        class SecondPageFails(FakeVendor):
            def fetch_listing(self, next_token=None):
                if next_token:
                    return vendor_failure(VendorFailureKind.UNAVAILABLE, "down")
                return super().fetch_listing(next_token)

        cache = PriceCache(stock_repo, SecondPageFails(page_size=2), clock=clock)

        with pytest.raises(VendorUnavailableError):
            cache.refresh()

        assert stock_repo.list_all() == []


# =============================================================================
# COALESCING
# =============================================================================


class SlowVendor(FakeVendor):
    """Vendor whose listing blocks until released."""

    def __init__(self):
        super().__init__()
        self.entered = threading.Event()
        self.release = threading.Event()

    def fetch_listing(self, next_token=None):
        self.entered.set()
        self.release.wait(timeout=5)
        return super().fetch_listing(next_token)


class RecordingRepo:
    """In-memory StockRepository stand-in shared by both threads."""

    def __init__(self):
        self.rows = {}
        self.lock = threading.Lock()

    def get_by_symbol(self, symbol):
        with self.lock:
            return self.rows.get(symbol.upper())

    def upsert_many(self, items: list[VendorStock], refreshed_at):
        from trading.domain.models import Stock

        with self.lock:
            for item in items:
                self.rows[item.symbol] = Stock(
                    stock_id=item.symbol, symbol=item.symbol, name=item.name,
                    price=item.price, last_updated=refreshed_at,
                )
        return len(items)


class TestCoalescing:
    """Concurrent stale lookups refresh once."""

    def test_waiter_rereads_instead_of_refreshing(self, clock):
        """
        GIVEN two caches sharing a coordinator and an empty store
        WHEN both look up AAPL while the first refresh is in flight
        THEN the vendor listing is fetched once and both see the price
        """
        vendor = SlowVendor()
        repo = RecordingRepo()
        coordinator = RefreshCoordinator()
        results = {}

        def lookup(name):
            cache = PriceCache(repo, vendor, clock=clock, coordinator=coordinator)
            results[name] = cache.get_stock("AAPL")

        first = threading.Thread(target=lookup, args=("first",))
        first.start()
        assert vendor.entered.wait(timeout=5)

        second = threading.Thread(target=lookup, args=("second",))
        second.start()
        vendor.release.set()
        first.join(timeout=5)
        second.join(timeout=5)

        assert len(vendor.listing_calls) == 1
        assert results["first"].price == Decimal("175.50")
        assert results["second"].price == Decimal("175.50")
