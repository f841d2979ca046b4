"""AdPulse — Record Store.

Document-style access to the SQLModel tables: records keyed by id, compound
equality/range queries, and write batches that commit atomically. Each
batch commit runs in its own transaction, so a failed batch never affects
batches committed before it.
"""

import uuid
from contextlib import contextmanager
from typing import Any, Iterator, List, Optional, Type, TypeVar

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import SQLModel, Session, select

from app.core.logging import get_logger

logger = get_logger("store")

T = TypeVar("T", bound=SQLModel)


class StoreError(Exception):
    """Raised when the underlying database rejects a read or write."""


class WriteBatch:
    """Queued set/delete operations committed together."""

    def __init__(self, store: "RecordStore"):
        self._store = store
        self._ops: List[tuple] = []

    def __len__(self) -> int:
        return len(self._ops)

    def set(self, record: SQLModel) -> None:
        """Insert or overwrite a record by primary key."""
        self._ops.append(("set", record))

    def delete(self, model: Type[SQLModel], record_id: str) -> None:
        self._ops.append(("delete", model, record_id))

    def commit(self) -> None:
        """Apply every queued operation in one transaction.

        The queue is kept, so a failed commit can be retried as-is.
        """
        try:
            with self._store.session() as session:
                for op in self._ops:
                    if op[0] == "set":
                        session.merge(op[1])
                    else:
                        existing = session.get(op[1], op[2])
                        if existing is not None:
                            session.delete(existing)
                session.commit()
        except (SQLAlchemyError, ArithmeticError, ValueError, TypeError) as e:
            # DBAPI drivers raise some rejections (e.g. sqlite3 OverflowError) unwrapped
            raise StoreError(f"Batch of {len(self._ops)} operations failed: {e}") from e


class RecordStore:
    """Thin document-store facade over a SQLAlchemy engine."""

    def __init__(self, engine: Engine):
        self.engine = engine

    @contextmanager
    def session(self) -> Iterator[Session]:
        with Session(self.engine, expire_on_commit=False) as session:
            yield session

    @staticmethod
    def new_id() -> str:
        return uuid.uuid4().hex

    def batch(self) -> WriteBatch:
        return WriteBatch(self)

    def put(self, record: T) -> T:
        """Write a single record immediately."""
        batch = self.batch()
        batch.set(record)
        batch.commit()
        return record

    def get(self, model: Type[T], record_id: str) -> Optional[T]:
        try:
            with self.session() as session:
                return session.get(model, record_id)
        except SQLAlchemyError as e:
            raise StoreError(f"Read of {model.__name__} {record_id} failed: {e}") from e

    def query(
        self,
        model: Type[T],
        *conditions: Any,
        order_by: Any = None,
        limit: Optional[int] = None,
    ) -> List[T]:
        """Select records matching all conditions, e.g. ``AdRecord.date >= "2023-01-01"``."""
        statement = select(model)
        if conditions:
            statement = statement.where(*conditions)
        if order_by is not None:
            statement = statement.order_by(order_by)
        if limit is not None:
            statement = statement.limit(limit)
        try:
            with self.session() as session:
                return list(session.exec(statement).all())
        except SQLAlchemyError as e:
            raise StoreError(f"Query on {model.__name__} failed: {e}") from e
