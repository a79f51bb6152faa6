"""SQLAlchemy implementation of StockRepository."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from trading.domain.models import Stock
from trading.domain.views import VendorStock
from trading.repositories.sqlalchemy.database import commit, dialect_insert
from trading.repositories.sqlalchemy.orm_models import StockORM

# Keeps multi-row INSERTs well under SQLite's bound-parameter limit
_UPSERT_CHUNK = 500


class SqlAlchemyStockRepository:
    """SQLAlchemy-backed price cache storage."""

    def __init__(self, db: Session):
        self._db = db

    def get_by_symbol(self, symbol: str) -> Optional[Stock]:
        """Retrieve a cached stock; symbol lookup is case-insensitive."""
        orm_stock = (
            self._db.query(StockORM)
            .populate_existing()
            .filter(StockORM.symbol == symbol.upper())
            .first()
        )
        return self._to_domain(orm_stock) if orm_stock else None

    def list_all(self) -> list[Stock]:
        """List all cached stocks ordered by symbol."""
        orm_stocks = self._db.query(StockORM).order_by(StockORM.symbol).all()
        return [self._to_domain(s) for s in orm_stocks]

    def upsert_many(self, items: list[VendorStock], refreshed_at: datetime) -> int:
        """
        Insert or update cache rows keyed by symbol.

        Existing rows keep their ID; name, price and last_updated are
        replaced. Safe to run concurrently for the same symbols.
        """
        rows = [
            {
                "id": str(uuid.uuid4()),
                "symbol": item.symbol.upper(),
                "name": item.name,
                "price": item.price,
                "last_updated": refreshed_at,
            }
            for item in items
        ]
        for start in range(0, len(rows), _UPSERT_CHUNK):
            stmt = dialect_insert(self._db, StockORM).values(rows[start:start + _UPSERT_CHUNK])
            stmt = stmt.on_conflict_do_update(
                index_elements=[StockORM.symbol],
                set_={
                    "name": stmt.excluded.name,
                    "price": stmt.excluded.price,
                    "last_updated": stmt.excluded.last_updated,
                },
            )
            self._db.execute(stmt)
        commit(self._db)
        return len(rows)

    @staticmethod
    def _to_domain(orm: StockORM) -> Stock:
        """Convert ORM model to domain model."""
        return Stock(
            stock_id=orm.id,
            symbol=orm.symbol,
            name=orm.name,
            price=Decimal(str(orm.price)),
            last_updated=orm.last_updated,
        )
