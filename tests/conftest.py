"""
Pytest configuration and fixtures for trading backend tests.

This module provides:
- In-memory SQLite database fixtures
- A controllable fake vendor and a fixed clock
- Repository and service fixtures
- API test client with overridden dependencies
"""

import logging
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional

import pytest
from sqlalchemy import create_engine, StaticPool
from sqlalchemy.orm import sessionmaker, Session
from fastapi.testclient import TestClient

from trading.main import app
from trading.api import deps
from trading.config.settings import Settings, set_settings, reset_settings
from trading.repositories.sqlalchemy.database import Base, atomic, get_db, reset_database
# Import ORM models to register them with Base before creating tables
from trading.repositories.sqlalchemy import orm_models  # noqa: F401
from trading.repositories.sqlalchemy import (
    SqlAlchemyStockRepository,
    SqlAlchemyPortfolioRepository,
    SqlAlchemyTransactionRepository,
)
from trading.domain.views import (
    ListingPage,
    VendorConfirmation,
    VendorFailure,
    VendorFailureKind,
    VendorStock,
)
from trading.services import (
    PriceCache,
    RefreshCoordinator,
    LedgerService,
    PortfolioService,
    PurchaseService,
    ReportingService,
)


# =============================================================================
# GLOBAL STATE ISOLATION
# =============================================================================


@pytest.fixture(autouse=True)
def _isolate_root_logger():
    """Restore root logger handlers/level so app startup in one test doesn't leak."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers = handlers
    root.setLevel(level)


# =============================================================================
# CLOCK
# =============================================================================


class FixedClock:
    """Injectable clock returning naive UTC; advance() moves time forward."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


@pytest.fixture
def fixed_now() -> datetime:
    """Fixed 'now' (2024-06-15 14:30 US/Eastern) as naive UTC."""
    return datetime(2024, 6, 15, 18, 30, 0)


@pytest.fixture
def clock(fixed_now) -> FixedClock:
    return FixedClock(fixed_now)


# =============================================================================
# VENDOR FAKES
# =============================================================================


DEFAULT_PRICES = {
    "AAPL": Decimal("175.50"),
    "ACME": Decimal("100.00"),
    "MSFT": Decimal("378.85"),
    "TSLA": Decimal("170.00"),
}


class FakeVendor:
    """
    Deterministic in-memory vendor.

    Prices can be changed between calls; listing and buy failures can be
    injected; every call is recorded.
    """

    def __init__(self, prices: Optional[dict] = None, page_size: Optional[int] = None):
        self.prices = dict(DEFAULT_PRICES if prices is None else prices)
        self.page_size = page_size
        self.listing_calls: list[Optional[str]] = []
        self.buy_calls: list[tuple[str, Decimal, int]] = []
        self.listing_failure: Optional[VendorFailure] = None
        self.buy_failure: Optional[VendorFailure] = None

    def fetch_listing(self, next_token: Optional[str] = None):
        self.listing_calls.append(next_token)
        if self.listing_failure is not None:
            return self.listing_failure

        items = [
            VendorStock(symbol=symbol, name=f"{symbol} Inc.", price=price)
            for symbol, price in sorted(self.prices.items())
        ]
        if not self.page_size:
            return ListingPage(items=items)

        start = int(next_token or 0)
        end = start + self.page_size
        return ListingPage(
            items=items[start:end],
            next_token=str(end) if end < len(items) else None,
        )

    def submit_buy(self, symbol: str, price: Decimal, quantity: int):
        self.buy_calls.append((symbol, price, quantity))
        if self.buy_failure is not None:
            return self.buy_failure
        return VendorConfirmation(symbol=symbol, price=price, quantity=quantity, message="Order filled")


def vendor_failure(kind: VendorFailureKind, message: str = "vendor error") -> VendorFailure:
    """Helper to build a VendorFailure."""
    return VendorFailure(kind=kind, message=message)


@pytest.fixture
def fake_vendor() -> FakeVendor:
    return FakeVendor()


# =============================================================================
# DATABASE FIXTURES
# =============================================================================


@pytest.fixture(scope="function")
def test_engine():
    """Create test database engine with shared in-memory SQLite."""
    # Reset settings for clean state
    reset_settings()

    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def test_session(test_engine) -> Session:
    """Create test database session."""
    TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()


# =============================================================================
# REPOSITORY FIXTURES
# =============================================================================


@pytest.fixture
def stock_repo(test_session) -> SqlAlchemyStockRepository:
    """Provide test StockRepository."""
    return SqlAlchemyStockRepository(test_session)


@pytest.fixture
def portfolio_repo(test_session) -> SqlAlchemyPortfolioRepository:
    """Provide test PortfolioRepository."""
    return SqlAlchemyPortfolioRepository(test_session)


@pytest.fixture
def transaction_repo(test_session) -> SqlAlchemyTransactionRepository:
    """Provide test TransactionRepository."""
    return SqlAlchemyTransactionRepository(test_session)


# =============================================================================
# SERVICE FIXTURES
# =============================================================================


@pytest.fixture
def price_cache(stock_repo, fake_vendor, clock) -> PriceCache:
    """Provide test PriceCache with a 300 s freshness window."""
    return PriceCache(
        stock_repo=stock_repo,
        vendor=fake_vendor,
        freshness_seconds=300,
        clock=clock,
        coordinator=RefreshCoordinator(),
    )


@pytest.fixture
def ledger_service(transaction_repo, clock) -> LedgerService:
    """Provide test LedgerService."""
    return LedgerService(transaction_repo=transaction_repo, clock=clock)


@pytest.fixture
def portfolio_service(portfolio_repo, price_cache, clock) -> PortfolioService:
    """Provide test PortfolioService."""
    return PortfolioService(portfolio_repo=portfolio_repo, price_cache=price_cache, clock=clock)


@pytest.fixture
def purchase_service(
    test_session,
    price_cache,
    ledger_service,
    fake_vendor,
    portfolio_service,
) -> PurchaseService:
    """Provide test PurchaseService with a 2% tolerance."""
    return PurchaseService(
        price_cache=price_cache,
        ledger=ledger_service,
        vendor=fake_vendor,
        portfolio_service=portfolio_service,
        unit_of_work=lambda: atomic(test_session),
        price_tolerance=Decimal("0.02"),
    )


@pytest.fixture
def reporting_service(ledger_service) -> ReportingService:
    """Provide test ReportingService (US/Eastern report days)."""
    return ReportingService(ledger=ledger_service, report_timezone="US/Eastern")


# =============================================================================
# API TEST CLIENT FIXTURE
# =============================================================================


@pytest.fixture
def client(test_engine, fake_vendor) -> TestClient:
    """Provide FastAPI test client with test database and fake vendor."""
    # Keep the app's own engine (used by startup) off the filesystem
    set_settings(Settings(database_url="sqlite:///:memory:"))
    reset_database()

    TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

    def override_get_db():
        session = TestSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[deps.get_vendor_client] = lambda: fake_vendor
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
    reset_database()
    reset_settings()


USER_HEADERS = {"X-User-Id": "user-1"}


# =============================================================================
# HELPER FUNCTIONS (exported for use in tests)
# =============================================================================


def assert_decimal_equal(
    actual: Decimal,
    expected: Decimal,
    tolerance: Decimal = Decimal("0.01"),
) -> None:
    """Assert two Decimals are equal within tolerance."""
    diff = abs(actual - expected)
    assert diff <= tolerance, f"Expected {expected}, got {actual} (diff={diff})"
