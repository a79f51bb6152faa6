"""Transaction domain model."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional

from trading.domain.models.enums import TransactionType, TransactionStatus

# Decimal places stored for prices and amounts; total_amount = price * quantity stays exact
PRICE_DECIMAL_PLACES = 4


def decimal_places(value: Decimal) -> int:
    """Significant decimal places of a finite Decimal (trailing zeros ignored)."""
    return max(0, -value.normalize().as_tuple().exponent)


@dataclass
class Transaction:
    """
    Ledger entry for one trade attempt (source of truth).

    Created PENDING before the vendor is called and moved exactly once to
    SUCCESS or FAILED. Terminal states never change.
    portfolio_applied_at is set once a SUCCESS BUY has been folded into
    the user's portfolio.
    """

    txn_id: str
    user_id: str
    stock_id: str
    txn_type: TransactionType
    quantity: int
    price: Decimal
    total_amount: Decimal
    status: TransactionStatus = TransactionStatus.PENDING
    symbol: Optional[str] = None
    portfolio_id: Optional[str] = None
    error_message: Optional[str] = None
    idempotency_key: Optional[str] = None
    created_at: Optional[datetime] = field(default=None)
    processed_at: Optional[datetime] = field(default=None)
    portfolio_applied_at: Optional[datetime] = field(default=None)

    def __post_init__(self) -> None:
        if isinstance(self.txn_type, str):
            self.txn_type = TransactionType(self.txn_type)
        if isinstance(self.status, str):
            self.status = TransactionStatus(self.status)

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def needs_portfolio_update(self) -> bool:
        """True for a confirmed BUY that has not reached the portfolio yet."""
        return (
            self.txn_type == TransactionType.BUY
            and self.status == TransactionStatus.SUCCESS
            and self.portfolio_applied_at is None
        )
