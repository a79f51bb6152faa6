"""Transaction repository protocol."""

from datetime import datetime
from typing import Protocol, Optional

from trading.domain.models import Transaction, TransactionStatus


class TransactionRepository(Protocol):
    """Interface for transaction (ledger) data access."""

    def create(self, transaction: Transaction) -> Transaction:
        """Persist a new transaction."""
        ...

    def get_by_id(self, txn_id: str) -> Optional[Transaction]:
        """Retrieve transaction by ID."""
        ...

    def get_by_idempotency_key(self, user_id: str, key: str) -> Optional[Transaction]:
        """Retrieve a user's transaction by idempotency key."""
        ...

    def transition(
        self,
        txn_id: str,
        status: TransactionStatus,
        error_message: Optional[str],
        processed_at: datetime,
    ) -> bool:
        """Compare-and-set PENDING -> status; False if nothing changed."""
        ...

    def mark_applied(self, txn_id: str, portfolio_id: str, applied_at: datetime) -> bool:
        """Record the portfolio update of a SUCCESS BUY; False if already recorded."""
        ...

    def list_by_user(self, user_id: str, limit: int = 50, offset: int = 0) -> list[Transaction]:
        """List a user's transactions, newest first."""
        ...

    def list_by_status(
        self,
        status: TransactionStatus,
        user_id: Optional[str] = None,
    ) -> list[Transaction]:
        """List transactions in a status, newest first; only user_id's when given."""
        ...

    def list_by_date_range(self, start: datetime, end: datetime) -> list[Transaction]:
        """List transactions created within [start, end]."""
        ...

    def list_unapplied_fills(self) -> list[Transaction]:
        """List SUCCESS BUYs not yet applied to a portfolio."""
        ...
