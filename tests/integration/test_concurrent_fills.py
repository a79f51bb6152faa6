"""
Integration tests for concurrent purchases on a file-backed SQLite database.

Each worker thread uses its own session, as request handlers do.
"""

import threading
from decimal import Decimal

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from trading.repositories.sqlalchemy.database import Base, atomic
from trading.repositories.sqlalchemy.orm_models import UserORM
from trading.repositories.sqlalchemy import (
    SqlAlchemyStockRepository,
    SqlAlchemyPortfolioRepository,
    SqlAlchemyTransactionRepository,
)
from trading.domain.models import TransactionStatus
from trading.services import (
    PriceCache,
    RefreshCoordinator,
    LedgerService,
    PortfolioService,
    PurchaseService,
)
from trading.services.purchase_service import PORTFOLIO_PENDING_MESSAGE
from tests.conftest import FakeVendor, assert_decimal_equal


@pytest.fixture
def file_engine(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'trading.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    # Writers queue on the busy timeout instead of failing with SQLITE_BUSY
    @event.listens_for(engine, "connect")
    def _autocommit_driver(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


def _purchase_service(session, vendor, coordinator):
    cache = PriceCache(SqlAlchemyStockRepository(session), vendor, coordinator=coordinator)
    ledger = LedgerService(SqlAlchemyTransactionRepository(session))
    portfolios = PortfolioService(SqlAlchemyPortfolioRepository(session), cache)
    return PurchaseService(
        price_cache=cache,
        ledger=ledger,
        vendor=vendor,
        portfolio_service=portfolios,
        unit_of_work=lambda: atomic(session),
    )


class TestConcurrentFills:
    """Concurrent buys must not lose position updates."""

    def test_concurrent_buys_same_position(self, file_engine):
        """
        GIVEN 8 threads each buying 5 ACME for the same user
        WHEN they run concurrently
        THEN every transaction succeeds and the position holds 40 shares
        """
        vendor = FakeVendor(prices={"ACME": Decimal("100.00")})
        coordinator = RefreshCoordinator()
        SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=file_engine)
        prices = [Decimal("99.00"), Decimal("101.00")]
        results = []
        errors = []
        results_lock = threading.Lock()
        start = threading.Barrier(8)

        def worker(i):
            session = SessionLocal()
            try:
                service = _purchase_service(session, vendor, coordinator)
                start.wait(timeout=10)
                result = service.buy("ACME", prices[i % 2], 5, "user-1")
                with results_lock:
                    results.append(result)
            except Exception as exc:  # surfaced by the assertions below
                with results_lock:
                    errors.append(exc)
            finally:
                session.close()

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=60)

        assert errors == []
        assert len(results) == 8
        assert all(r.success for r in results)
        assert [r for r in results if r.message == PORTFOLIO_PENDING_MESSAGE] == []

        session = SessionLocal()
        try:
            ledger = LedgerService(SqlAlchemyTransactionRepository(session))
            assert len(ledger.list_by_status(TransactionStatus.SUCCESS)) == 8
            assert ledger.list_unapplied_fills() == []
            # Every fill reached the portfolio on the live path
            assert _purchase_service(session, vendor, coordinator).reconcile_pending_fills() == 0
            assert [u.id for u in session.query(UserORM).all()] == ["user-1"]

            portfolio_repo = SqlAlchemyPortfolioRepository(session)
            portfolios = portfolio_repo.list_by_user("user-1")
            assert len(portfolios) == 1
            positions = portfolio_repo.get_positions(portfolios[0].portfolio_id)
            assert len(positions) == 1
            assert positions[0].quantity == 40
            assert_decimal_equal(positions[0].average_price, Decimal("100.00"), Decimal("0.0001"))
        finally:
            session.close()
        assert len(vendor.listing_calls) == 1
