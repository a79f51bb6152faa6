"""Ledger service for the transaction lifecycle."""

import uuid
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional

from sqlalchemy.exc import IntegrityError

from trading.core.exceptions import (
    InvalidTransitionError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from trading.core.timezone import utc_now
from trading.domain.models import (
    PRICE_DECIMAL_PLACES,
    Transaction,
    TransactionStatus,
    TransactionType,
    decimal_places,
)
from trading.domain.views import DateRangeTransactions
from trading.repositories.protocols import TransactionRepository


@dataclass
class TransactionDraft:
    """Input data for opening a ledger entry."""

    user_id: str
    stock_id: str
    quantity: int
    price: Decimal
    txn_type: TransactionType = TransactionType.BUY
    idempotency_key: Optional[str] = None


class LedgerService:
    """
    Service for the transaction ledger.

    The ledger is the source of truth for every trade attempt. Entries are
    opened PENDING and move exactly once to SUCCESS or FAILED; terminal
    entries never change again.
    """

    def __init__(
        self,
        transaction_repo: TransactionRepository,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._transaction_repo = transaction_repo
        self._clock = clock

    def create(self, draft: TransactionDraft) -> Transaction:
        """
        Open a PENDING transaction.

        total_amount is price * quantity. Raises ValidationError for a
        non-positive quantity or price.
        """
        self._validate_draft(draft)

        transaction = Transaction(
            txn_id=str(uuid.uuid4()),
            user_id=draft.user_id,
            stock_id=draft.stock_id,
            txn_type=draft.txn_type,
            quantity=draft.quantity,
            price=draft.price,
            total_amount=draft.price * draft.quantity,
            status=TransactionStatus.PENDING,
            idempotency_key=draft.idempotency_key,
            created_at=self._clock(),
        )
        return self._transaction_repo.create(transaction)

    def create_or_get(self, draft: TransactionDraft) -> tuple[Transaction, bool]:
        """
        Open a transaction unless the draft's idempotency key was already used.

        Returns (transaction, created). Two requests racing on the same key
        end up with the same transaction.
        """
        if draft.idempotency_key:
            existing = self.get_by_idempotency_key(draft.user_id, draft.idempotency_key)
            if existing:
                return existing, False

        try:
            return self.create(draft), True
        except StorageError as exc:
            if not (draft.idempotency_key and isinstance(exc.__cause__, IntegrityError)):
                raise
            existing = self.get_by_idempotency_key(draft.user_id, draft.idempotency_key)
            if existing is None:
                raise
            return existing, False

    def transition(
        self,
        txn_id: str,
        status: TransactionStatus,
        error_message: Optional[str] = None,
    ) -> Transaction:
        """
        Move a PENDING transaction to SUCCESS or FAILED.

        Raises NotFoundError for an unknown ID and InvalidTransitionError
        when the transaction is already terminal or the target is PENDING.
        """
        if not status.is_terminal:
            current = self.get_by_id(txn_id)
            raise InvalidTransitionError(txn_id, current.status.value, status.value)

        changed = self._transaction_repo.transition(txn_id, status, error_message, self._clock())
        if not changed:
            current = self.get_by_id(txn_id)
            raise InvalidTransitionError(txn_id, current.status.value, status.value)

        return self.get_by_id(txn_id)

    def mark_applied(self, txn_id: str, portfolio_id: str) -> bool:
        """Record that a SUCCESS BUY was applied to a portfolio."""
        return self._transaction_repo.mark_applied(txn_id, portfolio_id, self._clock())

    def get_by_id(self, txn_id: str) -> Transaction:
        """Get transaction by ID."""
        transaction = self._transaction_repo.get_by_id(txn_id)
        if not transaction:
            raise NotFoundError("Transaction", txn_id)
        return transaction

    def get_by_idempotency_key(self, user_id: str, key: str) -> Optional[Transaction]:
        return self._transaction_repo.get_by_idempotency_key(user_id, key)

    def list_by_user(self, user_id: str, limit: int = 50, offset: int = 0) -> list[Transaction]:
        """List a user's transactions, newest first."""
        if limit <= 0 or offset < 0:
            raise ValidationError("limit must be positive and offset non-negative")
        return self._transaction_repo.list_by_user(user_id, limit=limit, offset=offset)

    def list_by_status(
        self,
        status: TransactionStatus,
        user_id: Optional[str] = None,
    ) -> list[Transaction]:
        """Transactions in one status, newest first; scoped to user_id when given."""
        return self._transaction_repo.list_by_status(status, user_id=user_id)

    def list_by_date_range(self, start: datetime, end: datetime) -> DateRangeTransactions:
        """Group the transactions created within [start, end] by status."""
        if start > end:
            raise ValidationError("start must not be after end")

        grouped = DateRangeTransactions()
        for txn in self._transaction_repo.list_by_date_range(start, end):
            if txn.status == TransactionStatus.SUCCESS:
                grouped.successful.append(txn)
            elif txn.status == TransactionStatus.FAILED:
                grouped.failed.append(txn)
            else:
                grouped.pending.append(txn)
        return grouped

    def list_unapplied_fills(self) -> list[Transaction]:
        """SUCCESS BUYs that have not reached a portfolio yet, oldest first."""
        return self._transaction_repo.list_unapplied_fills()

    def _validate_draft(self, draft: TransactionDraft) -> None:
        if not draft.user_id:
            raise ValidationError("user_id is required")
        if not draft.stock_id:
            raise ValidationError("stock_id is required")
        if isinstance(draft.quantity, bool) or not isinstance(draft.quantity, int) or draft.quantity <= 0:
            raise ValidationError("quantity must be a positive integer")
        if draft.price is None or draft.price <= 0:
            raise ValidationError("price must be positive")
        if decimal_places(draft.price) > PRICE_DECIMAL_PLACES:
            raise ValidationError(f"price supports at most {PRICE_DECIMAL_PLACES} decimal places")
