"""Service layer - business logic orchestration."""

from trading.services.price_cache import PriceCache, RefreshCoordinator, is_stale
from trading.services.ledger_service import LedgerService, TransactionDraft
from trading.services.portfolio_service import PortfolioService
from trading.services.purchase_service import PurchaseService
from trading.services.reporting_service import ReportingService

__all__ = [
    "PriceCache",
    "RefreshCoordinator",
    "is_stale",
    "LedgerService",
    "TransactionDraft",
    "PortfolioService",
    "PurchaseService",
    "ReportingService",
]
