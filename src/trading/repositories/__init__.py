"""Repository layer - data access abstractions and implementations."""

from trading.repositories.protocols import (
    StockRepository,
    PortfolioRepository,
    TransactionRepository,
)

__all__ = [
    "StockRepository",
    "PortfolioRepository",
    "TransactionRepository",
]
