"""Hourly retention sweep."""
from datetime import datetime, timezone

import pytest

from rainwatch.core.errors import StoreError
from rainwatch.services.rainarea.types import CoverageReading
from rainwatch.services.retention import retention_cutoff, sweep_old_slices
from tests.fakes import InMemoryIngestionStore

# 14:02 in Singapore
NOW = datetime(2026, 10, 19, 6, 2, tzinfo=timezone.utc)


def _store(*slots: int) -> InMemoryIngestionStore:
    return InMemoryIngestionStore([CoverageReading(id=s, all_coverage=0, sg_coverage=0) for s in slots])


def test_cutoff_is_twelve_hours_back():
    assert retention_cutoff(NOW) == 202610190200
    assert retention_cutoff(NOW, retention_minutes=60) == 202610191300


def test_sweep_on_the_hour_keeps_last_twelve_hours():
    store = _store(
        202610191300,  # 1h
        202610190800,  # 6h
        202610190300,  # 11h
        202610190200,  # exactly 12h
        202610190100,  # 13h
    )
    assert sweep_old_slices(store, 202610191400, NOW) == 1
    assert sorted(store.rows) == [202610190200, 202610190300, 202610190800, 202610191300]


def test_sweep_on_the_hour_with_nothing_old():
    store = _store(202610191300)
    assert sweep_old_slices(store, 202610191400, NOW) == 0


def test_no_sweep_off_the_hour():
    store = _store(202610180000)
    assert sweep_old_slices(store, 202610191405, NOW) is None
    assert list(store.rows) == [202610180000]


def test_store_errors_propagate():
    class BrokenStore(InMemoryIngestionStore):
        def delete_older_than(self, cutoff):
            raise StoreError("locked")

    with pytest.raises(StoreError):
        sweep_old_slices(BrokenStore(), 202610191400, NOW)
