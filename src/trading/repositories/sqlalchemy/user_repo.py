"""SQLAlchemy access to the users table."""

from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from trading.core.exceptions import StorageError
from trading.repositories.sqlalchemy.database import dialect_insert, in_atomic
from trading.repositories.sqlalchemy.orm_models import UserORM


class SqlAlchemyUserRepository:
    """Registers user ids the first time they own a row."""

    def __init__(self, db: Session):
        self._db = db

    def ensure(self, user_id: str, seen_at: datetime) -> None:
        """
        Insert the users row for user_id unless it already exists.

        Does not commit: the insert joins the caller's write, so it is
        rolled back together with it.
        """
        stmt = dialect_insert(self._db, UserORM).values(id=user_id, created_at=seen_at)
        try:
            self._db.execute(stmt.on_conflict_do_nothing(index_elements=[UserORM.id]))
        except SQLAlchemyError as exc:
            if not in_atomic(self._db):
                self._db.rollback()
            raise StorageError(f"Could not register user {user_id}: {exc}") from exc
