import logging
import threading
from contextlib import contextmanager
from typing import Any, Iterator, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.errors import NotFound, StoreFailure
from app.models import Record

logger = logging.getLogger(__name__)

ORDERS = "orders"
REVIEWS = "reviews"
FOODS = "foods"

_locks: dict[str, threading.RLock] = {}
_locks_guard = threading.Lock()


def _lock_for(collection: str) -> threading.RLock:
    with _locks_guard:
        lock = _locks.get(collection)
        if lock is None:
            lock = _locks[collection] = threading.RLock()
        return lock


@contextmanager
def collection_lock(collection: str) -> Iterator[None]:
    """Exclusive writer for one collection; re-entrant within a thread."""
    lock = _lock_for(collection)
    with lock:
        yield


class RecordStore:
    """Collections of JSON records keyed by an opaque id.

    Every mutating call is its own commit. Writers to the same collection are
    serialized with ``collection_lock``; callers that need a read-compute-write
    sequence to be atomic hold the lock themselves around it.
    """

    def __init__(self, db: Session):
        self.db = db

    def load_all(self, collection: str) -> List[dict]:
        try:
            rows = self.db.execute(
                select(Record).where(Record.collection == collection).order_by(Record.seq),
                execution_options={"populate_existing": True},
            ).scalars().all()
        except SQLAlchemyError as e:
            raise self._failure("load", collection) from e
        return [row.as_dict() for row in rows]

    def find_by_id(self, collection: str, record_id: str) -> Optional[dict]:
        try:
            row = self._row(collection, record_id)
        except SQLAlchemyError as e:
            raise self._failure("find", collection) from e
        return row.as_dict() if row is not None else None

    def append(self, collection: str, record: dict[str, Any]) -> dict:
        data = dict(record)
        record_id = str(data.pop("id", None) or Record.new_id())
        with collection_lock(collection):
            try:
                row = Record(collection=collection, record_id=record_id, data=data)
                self.db.add(row)
                self.db.commit()
            except SQLAlchemyError as e:
                raise self._failure("append", collection) from e
        return row.as_dict()

    def replace(self, collection: str, record_id: str, patch: dict[str, Any]) -> dict:
        changes = {k: v for k, v in patch.items() if k != "id"}
        with collection_lock(collection):
            try:
                row = self._row(collection, record_id)
                if row is None:
                    raise NotFound(f"{collection} record {record_id} not found")
                # JSON columns only notice reassignment
                row.data = {**row.data, **changes}
                self.db.commit()
            except SQLAlchemyError as e:
                raise self._failure("replace", collection) from e
        return row.as_dict()

    def remove_by_id(self, collection: str, record_id: str) -> None:
        with collection_lock(collection):
            try:
                row = self._row(collection, record_id)
                if row is None:
                    raise NotFound(f"{collection} record {record_id} not found")
                self.db.delete(row)
                self.db.commit()
            except SQLAlchemyError as e:
                raise self._failure("remove", collection) from e

    def ping(self) -> None:
        try:
            self.db.execute(select(1))
        except SQLAlchemyError as e:
            raise self._failure("ping", "-") from e

    def _row(self, collection: str, record_id: str) -> Optional[Record]:
        return self.db.execute(
            select(Record).where(Record.collection == collection, Record.record_id == record_id),
            execution_options={"populate_existing": True},
        ).scalar_one_or_none()

    def _failure(self, op: str, collection: str) -> StoreFailure:
        self.db.rollback()
        logger.exception("record store %s failed on %s", op, collection)
        return StoreFailure()
