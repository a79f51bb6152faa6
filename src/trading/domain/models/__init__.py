"""Domain models package."""

from trading.domain.models.enums import TransactionType, TransactionStatus, RejectionReason
from trading.domain.models.stock import Stock
from trading.domain.models.portfolio import Portfolio, PortfolioPosition, DEFAULT_PORTFOLIO_NAME
from trading.domain.models.transaction import PRICE_DECIMAL_PLACES, Transaction, decimal_places

__all__ = [
    "TransactionType",
    "TransactionStatus",
    "RejectionReason",
    "Stock",
    "Portfolio",
    "PortfolioPosition",
    "DEFAULT_PORTFOLIO_NAME",
    "Transaction",
    "PRICE_DECIMAL_PLACES",
    "decimal_places",
]
