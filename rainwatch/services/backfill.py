"""
Backfill: the radar API sometimes jumps 10+ minutes ahead between ticks. Before the primary fetch
we walk back from the target slot and fetch each missing slice once (no retry), storing the ones
that come back clean. Runs on the background task group; never blocks or fails the check.

The gap uses minutes_between (HHmm only), so right after midnight the gap is negative and
nothing is backfilled.
"""
from __future__ import annotations

import logging

from rainwatch.core.errors import DomainError, StoreError, TransportError
from rainwatch.services.rainarea.client import RainAreaClient
from rainwatch.services.rainarea.fetch import fetch_once
from rainwatch.services.slot_clock import SLOT_MINUTES, minutes_between, shift_slot
from rainwatch.services.stores.base import IngestionStore
from rainwatch.services.tasks import BackgroundTasks

logger = logging.getLogger(__name__)


def plan_backfill(target: int, last_id: int | None, fill_back_limit: int = 5) -> list[int]:
    """
    Slots strictly between last_id and target, newest first, at most fill_back_limit of them.
    Empty when nothing is stored yet or the gap is one slot or less.
    """
    if last_id is None:
        return []
    if minutes_between(target, last_id) <= SLOT_MINUTES:
        return []
    missing: list[int] = []
    for step in range(1, fill_back_limit + 1):
        candidate = shift_slot(target, -SLOT_MINUTES * step)
        if candidate <= last_id:
            break
        missing.append(candidate)
    return missing


def backfill_one(client: RainAreaClient, store: IngestionStore, slot: int) -> bool:
    """Fetch once and upsert. Returns True if stored; failures are logged, not raised."""
    logger.info("Backfill fetch %s", slot)
    try:
        reading = fetch_once(client, slot)
    except (TransportError, DomainError) as e:
        logger.info("Backfill %s skipped: %s", slot, e)
        return False
    try:
        store.upsert(reading)
    except StoreError as e:
        logger.warning("Backfill %s store failed: %s", reading.id, e)
        return False
    logger.info("Backfill stored %s", reading.id)
    return True


def run_backfill(
    target: int,
    last_id: int | None,
    *,
    client: RainAreaClient,
    store: IngestionStore,
    tasks: BackgroundTasks,
    fill_back_limit: int = 5,
) -> list[int]:
    """Plan and submit backfill jobs. Returns the planned slots (jobs may still be running)."""
    missing = plan_backfill(target, last_id, fill_back_limit)
    if missing:
        logger.info(
            "Gap of %s min between %s and %s; backfilling %s",
            minutes_between(target, last_id),
            last_id,
            target,
            missing,
        )
    for slot in missing:
        tasks.submit(f"backfill:{slot}", backfill_one, client, store, slot)
    return missing
