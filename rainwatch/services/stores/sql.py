"""
SQLAlchemy stores. Every call opens its own session from the factory, so backfill workers
and the check thread never share one. Upserts use INSERT .. ON CONFLICT DO UPDATE
(PostgreSQL in production, SQLite in tests), so a backfill racing the primary store for
the same slice just means last write wins.
"""
import json
import logging
from typing import Callable

from sqlalchemy import func
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from rainwatch.core.constants import ALERT_STATE_KEY
from rainwatch.core.errors import StoreError
from rainwatch.models.coverage_state import CoverageState
from rainwatch.models.weather_slice import WeatherSlice
from rainwatch.services.alerts import AlertState
from rainwatch.services.rainarea.types import CoverageReading

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], Session]


def _insert_for(db: Session):
    return sqlite_insert if db.get_bind().dialect.name == "sqlite" else pg_insert


class SqlIngestionStore:
    def __init__(self, session_factory: SessionFactory) -> None:
        self._session_factory = session_factory

    def upsert(self, reading: CoverageReading) -> None:
        db = self._session_factory()
        try:
            insert = _insert_for(db)
            stmt = insert(WeatherSlice).values(
                id=reading.id,
                all_coverage=reading.all_coverage,
                sg_coverage=reading.sg_coverage,
                payload_json=json.dumps(reading.raw),
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=["id"],
                set_={
                    "all_coverage": stmt.excluded.all_coverage,
                    "sg_coverage": stmt.excluded.sg_coverage,
                    "payload_json": stmt.excluded.payload_json,
                    "updated_at": func.now(),
                },
            )
            db.execute(stmt)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise StoreError(f"Upsert of slice {reading.id} failed: {e}") from e
        finally:
            db.close()

    def most_recent(self) -> int | None:
        db = self._session_factory()
        try:
            latest = db.query(func.max(WeatherSlice.id)).scalar()
            return int(latest) if latest is not None else None
        except SQLAlchemyError as e:
            raise StoreError(f"Most recent slice query failed: {e}") from e
        finally:
            db.close()

    def delete_older_than(self, cutoff: int) -> int:
        db = self._session_factory()
        try:
            n = db.query(WeatherSlice).filter(WeatherSlice.id < cutoff).delete(synchronize_session=False)
            db.commit()
            return n
        except SQLAlchemyError as e:
            db.rollback()
            raise StoreError(f"Delete of slices older than {cutoff} failed: {e}") from e
        finally:
            db.close()

    def get(self, slot: int) -> CoverageReading | None:
        """Stored reading for `slot` (used by status/scripts and tests)."""
        db = self._session_factory()
        try:
            row = db.get(WeatherSlice, slot)
            if row is None:
                return None
            return CoverageReading(
                id=int(row.id),
                all_coverage=row.all_coverage,
                sg_coverage=row.sg_coverage,
                raw=json.loads(row.payload_json),
            )
        except SQLAlchemyError as e:
            raise StoreError(f"Read of slice {slot} failed: {e}") from e
        finally:
            db.close()

    def count(self) -> int:
        db = self._session_factory()
        try:
            return db.query(func.count(WeatherSlice.id)).scalar() or 0
        except SQLAlchemyError as e:
            raise StoreError(f"Slice count failed: {e}") from e
        finally:
            db.close()


class SqlAlertStateStore:
    def __init__(self, session_factory: SessionFactory, key: str = ALERT_STATE_KEY) -> None:
        self._session_factory = session_factory
        self._key = key

    def read_alert_state(self) -> AlertState | None:
        db = self._session_factory()
        try:
            row = db.get(CoverageState, self._key)
            if row is None:
                return None
            return AlertState(
                last_notified_coverage=float(row.value or 0),
                last_notified_at_ms=int(row.timestamp or 0),
            )
        except SQLAlchemyError as e:
            raise StoreError(f"Read of state {self._key!r} failed: {e}") from e
        finally:
            db.close()

    def write_alert_state(self, state: AlertState) -> None:
        db = self._session_factory()
        try:
            row = db.get(CoverageState, self._key)
            if row:
                row.value = state.last_notified_coverage
                row.timestamp = state.last_notified_at_ms
            else:
                db.add(
                    CoverageState(
                        key=self._key,
                        value=state.last_notified_coverage,
                        timestamp=state.last_notified_at_ms,
                    )
                )
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise StoreError(f"Write of state {self._key!r} failed: {e}") from e
        finally:
            db.close()
        logger.debug("Alert state %r written: %s", self._key, state)
