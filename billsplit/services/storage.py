"""Calculation record stores.

Two interchangeable backends implement :class:`CalculationStore`:

* :class:`MemoryCalculationStore` keeps records in a dict for the lifetime of
  the process. It is the default.
* :class:`SqlCalculationStore` persists records through SQLAlchemy.

Records are immutable once saved; the only mutation is deletion.
"""

import itertools
import logging
import threading
from datetime import UTC, datetime
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from billsplit.core.config import Settings
from billsplit.core.database import Base, SessionLocal, engine
from billsplit.models.calculation import Calculation
from billsplit.schemas.calculation import CalculationRecord, CalculationResult

logger = logging.getLogger(__name__)


class CalculationStore(Protocol):
    """Interface shared by all record stores."""

    def save(self, result: CalculationResult) -> CalculationRecord: ...

    def list(self) -> list[CalculationRecord]: ...

    def get_by_id(self, calculation_id: int) -> CalculationRecord | None: ...

    def delete_by_id(self, calculation_id: int) -> bool: ...


class MemoryCalculationStore:
    """In-process record store.

    Sync FastAPI endpoints run in a thread pool, so every access to the map
    goes through a lock.
    """

    def __init__(self) -> None:
        self._records: dict[int, CalculationRecord] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def save(self, result: CalculationResult) -> CalculationRecord:
        """Assign an id and creation time and store the record."""
        with self._lock:
            record = CalculationRecord(
                **result.model_dump(),
                id=next(self._ids),
                created_at=datetime.now(UTC),
            )
            self._records[record.id] = record
        logger.info("Saved calculation %s", record.id)
        return record

    def list(self) -> list[CalculationRecord]:
        """Return all records, newest first."""
        with self._lock:
            records = list(self._records.values())
        return sorted(records, key=lambda r: (r.created_at, r.id), reverse=True)

    def get_by_id(self, calculation_id: int) -> CalculationRecord | None:
        with self._lock:
            return self._records.get(calculation_id)

    def delete_by_id(self, calculation_id: int) -> bool:
        """Delete a record. Returns False if it did not exist."""
        with self._lock:
            deleted = self._records.pop(calculation_id, None) is not None
        if deleted:
            logger.info("Deleted calculation %s", calculation_id)
        return deleted


class SqlCalculationStore:
    """Record store backed by the ``calculations`` table."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def save(self, result: CalculationResult) -> CalculationRecord:
        """Insert the result as a new row."""
        with self._session_factory() as db:
            row = Calculation()
            row.set_result(result)
            db.add(row)
            db.commit()
            db.refresh(row)
            record = row.to_record()
        logger.info("Saved calculation %s", record.id)
        return record

    def list(self) -> list[CalculationRecord]:
        """Return all records, newest first."""
        with self._session_factory() as db:
            rows = db.scalars(
                select(Calculation).order_by(Calculation.created_at.desc(), Calculation.id.desc())
            ).all()
            return [row.to_record() for row in rows]

    def get_by_id(self, calculation_id: int) -> CalculationRecord | None:
        with self._session_factory() as db:
            row = db.get(Calculation, calculation_id)
            return row.to_record() if row else None

    def delete_by_id(self, calculation_id: int) -> bool:
        """Delete a row. Returns False if it did not exist."""
        with self._session_factory() as db:
            row = db.get(Calculation, calculation_id)
            if not row:
                return False
            db.delete(row)
            db.commit()
        logger.info("Deleted calculation %s", calculation_id)
        return True


def build_store(config: Settings) -> CalculationStore:
    """Create the record store selected by ``STORAGE_BACKEND``."""
    if config.STORAGE_BACKEND == "sql":
        Base.metadata.create_all(bind=engine)
        logger.info("Using SQL calculation store")
        return SqlCalculationStore(SessionLocal)
    logger.info("Using in-memory calculation store")
    return MemoryCalculationStore()
