"""Dependency injection for FastAPI."""

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from trading.config.settings import get_settings
from trading.core.exceptions import ValidationError
from trading.providers import HttpVendorClient, StubVendorClient, VendorClient
from trading.repositories.sqlalchemy.database import atomic, get_db
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

# Shared by every request so concurrent stale lookups refresh once
refresh_coordinator = RefreshCoordinator()

_stub_vendor = StubVendorClient()


def get_user_id(x_user_id: str = Header(..., alias="X-User-Id")) -> str:
    """Caller identity, already authenticated upstream."""
    user_id = x_user_id.strip()
    if not user_id:
        raise ValidationError("X-User-Id header must not be empty")
    return user_id


def get_stock_repo(db: Session = Depends(get_db)) -> SqlAlchemyStockRepository:
    """Provide StockRepository instance."""
    return SqlAlchemyStockRepository(db)


def get_portfolio_repo(db: Session = Depends(get_db)) -> SqlAlchemyPortfolioRepository:
    """Provide PortfolioRepository instance."""
    return SqlAlchemyPortfolioRepository(db)


def get_transaction_repo(db: Session = Depends(get_db)) -> SqlAlchemyTransactionRepository:
    """Provide TransactionRepository instance."""
    return SqlAlchemyTransactionRepository(db)


def get_vendor_client() -> VendorClient:
    """Provide the HTTP vendor client, or the offline stub when no URL is configured."""
    settings = get_settings()
    if not settings.vendor_api_base_url:
        return _stub_vendor
    return HttpVendorClient(
        base_url=settings.vendor_api_base_url,
        api_key=settings.vendor_api_key,
        retry_attempts=settings.api_retry_attempts,
        retry_delay_seconds=settings.api_retry_delay_seconds,
        timeout_seconds=settings.vendor_timeout_seconds,
    )


def get_price_cache(
    stock_repo: SqlAlchemyStockRepository = Depends(get_stock_repo),
    vendor: VendorClient = Depends(get_vendor_client),
) -> PriceCache:
    """Provide PriceCache instance."""
    settings = get_settings()
    return PriceCache(
        stock_repo=stock_repo,
        vendor=vendor,
        freshness_seconds=settings.price_freshness_seconds,
        coordinator=refresh_coordinator,
        serve_stale_on_failure=settings.serve_stale_prices_on_refresh_failure,
        max_pages=settings.listing_max_pages,
    )


def get_ledger_service(
    transaction_repo: SqlAlchemyTransactionRepository = Depends(get_transaction_repo),
) -> LedgerService:
    """Provide LedgerService instance."""
    return LedgerService(transaction_repo=transaction_repo)


def get_portfolio_service(
    portfolio_repo: SqlAlchemyPortfolioRepository = Depends(get_portfolio_repo),
    price_cache: PriceCache = Depends(get_price_cache),
) -> PortfolioService:
    """Provide PortfolioService instance."""
    return PortfolioService(portfolio_repo=portfolio_repo, price_cache=price_cache)


def get_purchase_service(
    db: Session = Depends(get_db),
    price_cache: PriceCache = Depends(get_price_cache),
    ledger: LedgerService = Depends(get_ledger_service),
    vendor: VendorClient = Depends(get_vendor_client),
    portfolio_service: PortfolioService = Depends(get_portfolio_service),
) -> PurchaseService:
    """Provide PurchaseService instance."""
    return PurchaseService(
        price_cache=price_cache,
        ledger=ledger,
        vendor=vendor,
        portfolio_service=portfolio_service,
        unit_of_work=lambda: atomic(db),
        price_tolerance=get_settings().price_tolerance,
    )


def get_reporting_service(
    ledger: LedgerService = Depends(get_ledger_service),
) -> ReportingService:
    """Provide ReportingService instance."""
    return ReportingService(ledger=ledger, report_timezone=get_settings().report_timezone)
