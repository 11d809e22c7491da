"""Hourly retention: on the :00 slot, delete slices older than the retention window (12h by default)."""
import logging
from datetime import datetime

from rainwatch.services.slot_clock import current_slot, is_top_of_hour
from rainwatch.services.stores.base import IngestionStore

logger = logging.getLogger(__name__)


def retention_cutoff(now: datetime, retention_minutes: int = 720, utc_offset_hours: int = 8) -> int:
    return current_slot(-retention_minutes, now=now, utc_offset_hours=utc_offset_hours)


def sweep_old_slices(
    store: IngestionStore,
    target: int,
    now: datetime,
    *,
    retention_minutes: int = 720,
    utc_offset_hours: int = 8,
) -> int | None:
    """
    Delete slices with id < cutoff when `target` is on the hour. Returns the deleted count,
    or None when target is not a :00 slot. Raises StoreError from the store.
    """
    if not is_top_of_hour(target):
        return None
    cutoff = retention_cutoff(now, retention_minutes, utc_offset_hours)
    n = store.delete_older_than(cutoff)
    if n:
        logger.info("Delete count %s (slices < %s)", n, cutoff)
    else:
        logger.debug("Retention: nothing older than %s", cutoff)
    return n
