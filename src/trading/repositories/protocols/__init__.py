"""Repository protocol definitions (interfaces)."""

from trading.repositories.protocols.stock_repo import StockRepository
from trading.repositories.protocols.portfolio_repo import PortfolioRepository
from trading.repositories.protocols.transaction_repo import TransactionRepository

__all__ = [
    "StockRepository",
    "PortfolioRepository",
    "TransactionRepository",
]
