"""Database connection, session management and unit-of-work helpers."""

from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine, Engine
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, Session, declarative_base

from trading.config.settings import get_settings
from trading.core.exceptions import StorageError

Base = declarative_base()

# Module-level database state (can be reconfigured at runtime)
_engine: Optional[Engine] = None
_SessionLocal: Optional[sessionmaker] = None

_ATOMIC_KEY = "trading.atomic"


def _connect_args(database_url: str) -> dict:
    if database_url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


def get_engine() -> Engine:
    """Get or create the database engine."""
    global _engine
    if _engine is None:
        database_url = get_settings().database_url
        _engine = create_engine(
            database_url,
            connect_args=_connect_args(database_url),
            pool_pre_ping=True,
            echo=False,
        )
    return _engine


def get_session_factory() -> sessionmaker:
    """Get or create the session factory."""
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            bind=get_engine(),
        )
    return _SessionLocal


def get_db() -> Generator[Session, None, None]:
    """Dependency that provides a database session."""
    SessionLocal = get_session_factory()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_session() -> Session:
    """Get a new database session (for non-generator use)."""
    SessionLocal = get_session_factory()
    return SessionLocal()


def init_db() -> None:
    """Initialize database tables."""
    from trading.repositories.sqlalchemy import orm_models  # noqa: F401

    Base.metadata.create_all(bind=get_engine())


def reset_database() -> None:
    """Reset database state (for reconfiguration)."""
    global _engine, _SessionLocal

    if _engine is not None:
        _engine.dispose()

    _engine = None
    _SessionLocal = None


def dialect_insert(db: Session, model):
    """
    Return an INSERT construct supporting ON CONFLICT for the session's backend.

    Atomic upserts rely on it, so only SQLite and PostgreSQL are supported.
    """
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert(model)
    if dialect == "sqlite":
        return sqlite.insert(model)
    raise StorageError(f"Atomic upsert is not supported on {dialect}")


def in_atomic(db: Session) -> bool:
    """True while an atomic() block owns the session's transaction."""
    return bool(db.info.get(_ATOMIC_KEY))


def commit(db: Session) -> None:
    """
    Commit the session, or only flush when inside atomic().

    Write failures are rolled back and surfaced as StorageError.
    """
    try:
        if in_atomic(db):
            db.flush()
        else:
            db.commit()
    except SQLAlchemyError as exc:
        if not in_atomic(db):
            db.rollback()
        raise StorageError(f"Database write failed: {exc}") from exc


@contextmanager
def atomic(db: Session) -> Generator[Session, None, None]:
    """
    Run several repository writes as one database transaction.

    Repository commits inside the block become flushes; the block commits
    once on exit and rolls everything back on any error. Nested blocks join
    the outer one.
    """
    if in_atomic(db):
        yield db
        return

    db.info[_ATOMIC_KEY] = True
    try:
        yield db
        db.info.pop(_ATOMIC_KEY, None)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise StorageError(f"Database transaction failed: {exc}") from exc
    except Exception:
        db.rollback()
        raise
    finally:
        db.info.pop(_ATOMIC_KEY, None)
