"""SQLAlchemy repository implementations."""

from trading.repositories.sqlalchemy.database import (
    get_engine,
    get_session_factory,
    get_db,
    get_session,
    init_db,
    reset_database,
    atomic,
    Base,
)
from trading.repositories.sqlalchemy.stock_repo import SqlAlchemyStockRepository
from trading.repositories.sqlalchemy.portfolio_repo import SqlAlchemyPortfolioRepository
from trading.repositories.sqlalchemy.transaction_repo import SqlAlchemyTransactionRepository
from trading.repositories.sqlalchemy.user_repo import SqlAlchemyUserRepository

__all__ = [
    "get_engine",
    "get_session_factory",
    "get_db",
    "get_session",
    "init_db",
    "reset_database",
    "atomic",
    "Base",
    "SqlAlchemyStockRepository",
    "SqlAlchemyPortfolioRepository",
    "SqlAlchemyTransactionRepository",
    "SqlAlchemyUserRepository",
]
