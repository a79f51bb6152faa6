"""Application context for in-process service management.

Provides the services without HTTP. Used by the external report scheduler
and by operational jobs such as fill reconciliation.
"""

from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from trading.config.logging_config import setup_logging
from trading.config.settings import Settings, set_settings, get_settings
from trading.core.timezone import utc_now
from trading.domain.views import DailyReport
from trading.providers import HttpVendorClient, StubVendorClient, VendorClient
from trading.repositories.sqlalchemy.database import atomic, get_session, init_db, reset_database
from trading.repositories.sqlalchemy import (
    SqlAlchemyStockRepository,
    SqlAlchemyPortfolioRepository,
    SqlAlchemyTransactionRepository,
)
from trading.services import (
    PriceCache,
    RefreshCoordinator,
    LedgerService,
    PortfolioService,
    PurchaseService,
    ReportingService,
)


class TradingContext:
    """
    In-process access to all services, bound to one database session.

    Services are created lazily and share the session, so they see each
    other's writes.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        vendor: Optional[VendorClient] = None,
        session: Optional[Session] = None,
    ):
        if settings is not None:
            set_settings(settings)
            reset_database()
        self._vendor = vendor
        self._session = session
        self._coordinator = RefreshCoordinator()

        self._price_cache: Optional[PriceCache] = None
        self._ledger: Optional[LedgerService] = None
        self._portfolio: Optional[PortfolioService] = None
        self._purchase: Optional[PurchaseService] = None
        self._reporting: Optional[ReportingService] = None

    def initialize(self, log_level: Optional[str] = None) -> None:
        """Configure logging for the job and create missing tables."""
        setup_logging(log_level)
        init_db()

    def _get_session(self) -> Session:
        if self._session is None:
            self._session = get_session()
        return self._session

    @property
    def vendor(self) -> VendorClient:
        """Configured vendor client (offline stub without a base URL)."""
        if self._vendor is None:
            settings = get_settings()
            if settings.vendor_api_base_url:
                self._vendor = HttpVendorClient(
                    base_url=settings.vendor_api_base_url,
                    api_key=settings.vendor_api_key,
                    retry_attempts=settings.api_retry_attempts,
                    retry_delay_seconds=settings.api_retry_delay_seconds,
                    timeout_seconds=settings.vendor_timeout_seconds,
                )
            else:
                self._vendor = StubVendorClient()
        return self._vendor

    @property
    def price_cache(self) -> PriceCache:
        if self._price_cache is None:
            settings = get_settings()
            self._price_cache = PriceCache(
                stock_repo=SqlAlchemyStockRepository(self._get_session()),
                vendor=self.vendor,
                freshness_seconds=settings.price_freshness_seconds,
                clock=utc_now,
                coordinator=self._coordinator,
                serve_stale_on_failure=settings.serve_stale_prices_on_refresh_failure,
                max_pages=settings.listing_max_pages,
            )
        return self._price_cache

    @property
    def ledger(self) -> LedgerService:
        if self._ledger is None:
            self._ledger = LedgerService(SqlAlchemyTransactionRepository(self._get_session()))
        return self._ledger

    @property
    def portfolio(self) -> PortfolioService:
        if self._portfolio is None:
            self._portfolio = PortfolioService(
                SqlAlchemyPortfolioRepository(self._get_session()),
                self.price_cache,
            )
        return self._portfolio

    @property
    def purchase(self) -> PurchaseService:
        if self._purchase is None:
            self._purchase = PurchaseService(
                price_cache=self.price_cache,
                ledger=self.ledger,
                vendor=self.vendor,
                portfolio_service=self.portfolio,
                unit_of_work=lambda: atomic(self._get_session()),
                price_tolerance=get_settings().price_tolerance,
            )
        return self._purchase

    @property
    def reporting(self) -> ReportingService:
        if self._reporting is None:
            self._reporting = ReportingService(self.ledger, get_settings().report_timezone)
        return self._reporting

    def daily_report(self, day: date) -> DailyReport:
        """Report generation hook for the scheduler."""
        return self.reporting.generate_daily_report(day)

    def reconcile_pending_fills(self) -> int:
        return self.purchase.reconcile_pending_fills()

    def close(self) -> None:
        """Clean up resources."""
        if self._session:
            self._session.close()
            self._session = None
