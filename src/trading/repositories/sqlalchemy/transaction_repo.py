"""SQLAlchemy implementation of TransactionRepository."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from trading.core.timezone import utc_now
from trading.domain.models import Transaction, TransactionStatus, TransactionType
from trading.repositories.sqlalchemy.database import commit
from trading.repositories.sqlalchemy.orm_models import TransactionORM
from trading.repositories.sqlalchemy.user_repo import SqlAlchemyUserRepository


class SqlAlchemyTransactionRepository:
    """SQLAlchemy-backed transaction ledger."""

    def __init__(self, db: Session):
        self._db = db
        self._users = SqlAlchemyUserRepository(db)

    def create(self, transaction: Transaction) -> Transaction:
        """Persist a new transaction."""
        self._users.ensure(transaction.user_id, transaction.created_at or utc_now())
        orm_txn = self._to_orm(transaction)
        self._db.add(orm_txn)
        commit(self._db)
        return self.get_by_id(transaction.txn_id)

    def get_by_id(self, txn_id: str) -> Optional[Transaction]:
        """Retrieve transaction by ID."""
        orm_txn = (
            self._query()
            .populate_existing()
            .filter(TransactionORM.id == txn_id)
            .first()
        )
        return self._to_domain(orm_txn) if orm_txn else None

    def get_by_idempotency_key(self, user_id: str, key: str) -> Optional[Transaction]:
        """Retrieve the transaction a user opened with a given idempotency key."""
        orm_txn = (
            self._query()
            .populate_existing()
            .filter(
                TransactionORM.user_id == user_id,
                TransactionORM.idempotency_key == key,
            )
            .first()
        )
        return self._to_domain(orm_txn) if orm_txn else None

    def transition(
        self,
        txn_id: str,
        status: TransactionStatus,
        error_message: Optional[str],
        processed_at: datetime,
    ) -> bool:
        """
        Move a PENDING transaction to a terminal status.

        Compare-and-set on the current status: returns False (and changes
        nothing) when the row is missing or already terminal.
        """
        updated = (
            self._db.query(TransactionORM)
            .filter(
                TransactionORM.id == txn_id,
                TransactionORM.status == TransactionStatus.PENDING,
            )
            .update(
                {
                    TransactionORM.status: status,
                    TransactionORM.error_message: error_message,
                    TransactionORM.processed_at: processed_at,
                },
                synchronize_session=False,
            )
        )
        commit(self._db)
        return updated == 1

    def mark_applied(self, txn_id: str, portfolio_id: str, applied_at: datetime) -> bool:
        """Record that a SUCCESS BUY reached the portfolio (at most once)."""
        updated = (
            self._db.query(TransactionORM)
            .filter(
                TransactionORM.id == txn_id,
                TransactionORM.status == TransactionStatus.SUCCESS,
                TransactionORM.portfolio_applied_at.is_(None),
            )
            .update(
                {
                    TransactionORM.portfolio_id: portfolio_id,
                    TransactionORM.portfolio_applied_at: applied_at,
                },
                synchronize_session=False,
            )
        )
        commit(self._db)
        return updated == 1

    def list_by_user(self, user_id: str, limit: int = 50, offset: int = 0) -> list[Transaction]:
        """List a user's transactions, newest first."""
        query = (
            self._query()
            .filter(TransactionORM.user_id == user_id)
            .order_by(TransactionORM.created_at.desc(), TransactionORM.id)
            .limit(limit)
            .offset(offset)
        )
        return [self._to_domain(t) for t in query.all()]

    def list_by_status(
        self,
        status: TransactionStatus,
        user_id: Optional[str] = None,
    ) -> list[Transaction]:
        """List transactions in a status, newest first, optionally for one user."""
        query = self._query().filter(TransactionORM.status == status)
        if user_id is not None:
            query = query.filter(TransactionORM.user_id == user_id)
        query = query.order_by(TransactionORM.created_at.desc(), TransactionORM.id)
        return [self._to_domain(t) for t in query.all()]

    def list_by_date_range(self, start: datetime, end: datetime) -> list[Transaction]:
        """List transactions created within [start, end], newest first."""
        query = (
            self._query()
            .filter(
                TransactionORM.created_at >= start,
                TransactionORM.created_at <= end,
            )
            .order_by(TransactionORM.created_at.desc(), TransactionORM.id)
        )
        return [self._to_domain(t) for t in query.all()]

    def list_unapplied_fills(self) -> list[Transaction]:
        """List SUCCESS BUYs whose portfolio update was never recorded, oldest first."""
        query = (
            self._query()
            .populate_existing()
            .filter(
                TransactionORM.type == TransactionType.BUY,
                TransactionORM.status == TransactionStatus.SUCCESS,
                TransactionORM.portfolio_applied_at.is_(None),
            )
            .order_by(TransactionORM.created_at, TransactionORM.id)
        )
        return [self._to_domain(t) for t in query.all()]

    def _query(self):
        return self._db.query(TransactionORM).options(joinedload(TransactionORM.stock))

    @staticmethod
    def _to_orm(txn: Transaction) -> TransactionORM:
        """Convert domain model to ORM model."""
        return TransactionORM(
            id=txn.txn_id,
            user_id=txn.user_id,
            stock_id=txn.stock_id,
            portfolio_id=txn.portfolio_id,
            type=txn.txn_type,
            quantity=txn.quantity,
            price=txn.price,
            total_amount=txn.total_amount,
            status=txn.status,
            error_message=txn.error_message,
            idempotency_key=txn.idempotency_key,
            created_at=txn.created_at,
            processed_at=txn.processed_at,
            portfolio_applied_at=txn.portfolio_applied_at,
        )

    @staticmethod
    def _to_domain(orm: TransactionORM) -> Transaction:
        """Convert ORM model to domain model."""
        return Transaction(
            txn_id=orm.id,
            user_id=orm.user_id,
            stock_id=orm.stock_id,
            txn_type=orm.type,
            quantity=int(orm.quantity),
            price=Decimal(str(orm.price)),
            total_amount=Decimal(str(orm.total_amount)),
            status=orm.status,
            symbol=orm.stock.symbol if orm.stock else None,
            portfolio_id=orm.portfolio_id,
            error_message=orm.error_message,
            idempotency_key=orm.idempotency_key,
            created_at=orm.created_at,
            processed_at=orm.processed_at,
            portfolio_applied_at=orm.portfolio_applied_at,
        )
