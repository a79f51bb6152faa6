"""SQLAlchemy ORM model definitions."""

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Enum as SqlEnum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from trading.core.timezone import utc_now
from trading.repositories.sqlalchemy.database import Base
from trading.domain.models.enums import TransactionType, TransactionStatus
from trading.domain.models.transaction import PRICE_DECIMAL_PLACES


class UserORM(Base):
    """SQLAlchemy model for a known user id (identity is managed upstream)."""

    __tablename__ = "users"

    id = Column(String(64), primary_key=True)
    created_at = Column(DateTime, nullable=False, default=utc_now)


class StockORM(Base):
    """SQLAlchemy model for Stock (price cache row)."""

    __tablename__ = "stocks"
    __table_args__ = (CheckConstraint("price > 0", name="ck_stocks_price_positive"),)

    id = Column(String(36), primary_key=True)
    symbol = Column(String(20), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    price = Column(Numeric(precision=18, scale=PRICE_DECIMAL_PLACES), nullable=False)
    last_updated = Column(DateTime, nullable=False)


class PortfolioORM(Base):
    """SQLAlchemy model for Portfolio."""

    __tablename__ = "portfolios"
    __table_args__ = (UniqueConstraint("user_id", "name", name="uq_portfolios_user_name"),)

    id = Column(String(36), primary_key=True)
    user_id = Column(String(64), ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    created_at = Column(DateTime, nullable=False, default=utc_now)
    updated_at = Column(DateTime, nullable=False, default=utc_now, onupdate=utc_now)

    positions = relationship("PortfolioStockORM", back_populates="portfolio")


class PortfolioStockORM(Base):
    """SQLAlchemy model for PortfolioPosition."""

    __tablename__ = "portfolio_stocks"
    __table_args__ = (
        UniqueConstraint("portfolio_id", "stock_id", name="uq_portfolio_stocks_position"),
        CheckConstraint("quantity > 0", name="ck_portfolio_stocks_quantity_positive"),
    )

    id = Column(String(36), primary_key=True)
    portfolio_id = Column(String(36), ForeignKey("portfolios.id"), nullable=False)
    stock_id = Column(String(36), ForeignKey("stocks.id"), nullable=False)
    quantity = Column(Integer, nullable=False)
    average_price = Column(Numeric(precision=18, scale=PRICE_DECIMAL_PLACES), nullable=False)
    created_at = Column(DateTime, nullable=False, default=utc_now)
    updated_at = Column(DateTime, nullable=False, default=utc_now)

    portfolio = relationship("PortfolioORM", back_populates="positions")
    stock = relationship("StockORM")


class TransactionORM(Base):
    """SQLAlchemy model for Transaction (ledger entry)."""

    __tablename__ = "transactions"
    __table_args__ = (
        UniqueConstraint("user_id", "idempotency_key", name="uq_transactions_idempotency"),
    )

    id = Column(String(36), primary_key=True)
    user_id = Column(String(64), ForeignKey("users.id"), nullable=False, index=True)
    stock_id = Column(String(36), ForeignKey("stocks.id"), nullable=False)
    portfolio_id = Column(String(36), ForeignKey("portfolios.id"), nullable=True)
    type = Column(SqlEnum(TransactionType), nullable=False)
    quantity = Column(Integer, nullable=False)
    price = Column(Numeric(precision=18, scale=PRICE_DECIMAL_PLACES), nullable=False)
    total_amount = Column(Numeric(precision=18, scale=PRICE_DECIMAL_PLACES), nullable=False)
    status = Column(
        SqlEnum(TransactionStatus),
        nullable=False,
        default=TransactionStatus.PENDING,
        index=True,
    )
    error_message = Column(Text, nullable=True)
    idempotency_key = Column(String(128), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utc_now, index=True)
    processed_at = Column(DateTime, nullable=True)
    portfolio_applied_at = Column(DateTime, nullable=True)

    stock = relationship("StockORM")
