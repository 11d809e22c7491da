"""Protocols for the slice store and the alert state store. SQL implementations live in sql.py; tests use in-memory fakes."""
from typing import Protocol

from rainwatch.services.alerts import AlertState
from rainwatch.services.rainarea.types import CoverageReading


class IngestionStore(Protocol):
    """Time-keyed slice storage. All methods raise StoreError on persistence failure."""

    def upsert(self, reading: CoverageReading) -> None:
        """Insert or overwrite the row for reading.id (idempotent, last write wins)."""
        ...

    def most_recent(self) -> int | None:
        """Highest stored slice id, or None when empty."""
        ...

    def delete_older_than(self, cutoff: int) -> int:
        """Delete every slice with id < cutoff in one batch. Returns the number deleted."""
        ...


class AlertStateStore(Protocol):
    """The single alert state record."""

    def read_alert_state(self) -> AlertState | None:
        """Persisted state, or None if it was never written."""
        ...

    def write_alert_state(self, state: AlertState) -> None:
        ...
