"""Domain layer - pure business models with no external dependencies."""

from trading.domain.models import (
    Stock,
    Portfolio,
    PortfolioPosition,
    Transaction,
    TransactionType,
    TransactionStatus,
    RejectionReason,
)

__all__ = [
    "Stock",
    "Portfolio",
    "PortfolioPosition",
    "Transaction",
    "TransactionType",
    "TransactionStatus",
    "RejectionReason",
]
