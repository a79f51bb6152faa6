"""View models for service outputs."""

from trading.domain.views.vendor import (
    VendorFailureKind,
    VendorStock,
    ListingPage,
    VendorConfirmation,
    VendorFailure,
)
from trading.domain.views.portfolio import PositionView, PortfolioView, PortfolioSummary
from trading.domain.views.purchase import PurchaseResult
from trading.domain.views.reports import DateRangeTransactions, DailyStats, DailyReport

__all__ = [
    "VendorFailureKind",
    "VendorStock",
    "ListingPage",
    "VendorConfirmation",
    "VendorFailure",
    "PositionView",
    "PortfolioView",
    "PortfolioSummary",
    "PurchaseResult",
    "DateRangeTransactions",
    "DailyStats",
    "DailyReport",
]
