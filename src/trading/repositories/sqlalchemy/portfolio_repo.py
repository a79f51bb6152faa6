"""SQLAlchemy implementation of PortfolioRepository."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from trading.core.timezone import utc_now
from trading.domain.models import Portfolio, PortfolioPosition
from trading.repositories.sqlalchemy.database import commit, dialect_insert
from trading.repositories.sqlalchemy.orm_models import PortfolioORM, PortfolioStockORM
from trading.repositories.sqlalchemy.user_repo import SqlAlchemyUserRepository


class SqlAlchemyPortfolioRepository:
    """SQLAlchemy-backed portfolio and position repository."""

    def __init__(self, db: Session):
        self._db = db
        self._users = SqlAlchemyUserRepository(db)

    def create(self, portfolio: Portfolio) -> Portfolio:
        """Persist a new portfolio."""
        self._users.ensure(portfolio.user_id, portfolio.created_at or utc_now())
        orm_portfolio = PortfolioORM(
            id=portfolio.portfolio_id,
            user_id=portfolio.user_id,
            name=portfolio.name,
            created_at=portfolio.created_at,
            updated_at=portfolio.updated_at or portfolio.created_at,
        )
        self._db.add(orm_portfolio)
        commit(self._db)
        return self._to_domain(orm_portfolio)

    def get_by_id(self, portfolio_id: str) -> Optional[Portfolio]:
        """Retrieve portfolio by ID."""
        orm_portfolio = self._db.query(PortfolioORM).filter(
            PortfolioORM.id == portfolio_id
        ).first()
        return self._to_domain(orm_portfolio) if orm_portfolio else None

    def list_by_user(self, user_id: str) -> list[Portfolio]:
        """List a user's portfolios, oldest first."""
        orm_portfolios = (
            self._db.query(PortfolioORM)
            .filter(PortfolioORM.user_id == user_id)
            .order_by(PortfolioORM.created_at, PortfolioORM.name)
            .all()
        )
        return [self._to_domain(p) for p in orm_portfolios]

    def get_positions(self, portfolio_id: str) -> list[PortfolioPosition]:
        """List positions in a portfolio with their stock symbol and name."""
        orm_positions = (
            self._db.query(PortfolioStockORM)
            .populate_existing()
            .options(joinedload(PortfolioStockORM.stock))
            .filter(PortfolioStockORM.portfolio_id == portfolio_id)
            .all()
        )
        positions = [self._position_to_domain(p) for p in orm_positions]
        return sorted(positions, key=lambda p: p.symbol or "")

    def get_position(self, portfolio_id: str, stock_id: str) -> Optional[PortfolioPosition]:
        """Get the position for one stock in a portfolio."""
        orm_position = (
            self._db.query(PortfolioStockORM)
            .populate_existing()
            .options(joinedload(PortfolioStockORM.stock))
            .filter(
                PortfolioStockORM.portfolio_id == portfolio_id,
                PortfolioStockORM.stock_id == stock_id,
            )
            .first()
        )
        return self._position_to_domain(orm_position) if orm_position else None

    def apply_fill(
        self,
        portfolio_id: str,
        stock_id: str,
        quantity: int,
        fill_price: Decimal,
        applied_at: datetime,
    ) -> PortfolioPosition:
        """
        Merge a fill into a position with a single INSERT ... ON CONFLICT.

        The weighted average is computed by the database from the row's
        current values, so concurrent fills cannot lose an update.
        """
        table = PortfolioStockORM.__table__
        stmt = dialect_insert(self._db, PortfolioStockORM).values(
            id=str(uuid.uuid4()),
            portfolio_id=portfolio_id,
            stock_id=stock_id,
            quantity=quantity,
            average_price=fill_price,
            created_at=applied_at,
            updated_at=applied_at,
        )
        new_quantity = table.c.quantity + stmt.excluded.quantity
        # * 1.0 keeps SQLite from integer-dividing whole-number prices
        total_cost = (
            table.c.quantity * table.c.average_price
            + stmt.excluded.quantity * stmt.excluded.average_price
        ) * 1.0
        stmt = stmt.on_conflict_do_update(
            index_elements=[table.c.portfolio_id, table.c.stock_id],
            set_={
                "quantity": new_quantity,
                "average_price": total_cost / new_quantity,
                "updated_at": stmt.excluded.updated_at,
            },
        )
        self._db.execute(stmt)
        self._db.query(PortfolioORM).filter(PortfolioORM.id == portfolio_id).update(
            {PortfolioORM.updated_at: applied_at},
            synchronize_session=False,
        )
        commit(self._db)

        position = self.get_position(portfolio_id, stock_id)
        if position is None:
            raise ValueError(f"Position missing after fill: {portfolio_id}/{stock_id}")
        return position

    @staticmethod
    def _to_domain(orm: PortfolioORM) -> Portfolio:
        """Convert ORM model to domain model."""
        return Portfolio(
            portfolio_id=orm.id,
            user_id=orm.user_id,
            name=orm.name,
            created_at=orm.created_at,
            updated_at=orm.updated_at,
        )

    @staticmethod
    def _position_to_domain(orm: PortfolioStockORM) -> PortfolioPosition:
        """Convert ORM position to domain model."""
        return PortfolioPosition(
            position_id=orm.id,
            portfolio_id=orm.portfolio_id,
            stock_id=orm.stock_id,
            quantity=int(orm.quantity),
            average_price=Decimal(str(orm.average_price)),
            symbol=orm.stock.symbol if orm.stock else None,
            name=orm.stock.name if orm.stock else None,
        )
