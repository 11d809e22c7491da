"""
One check tick: pick the current slot, skip if already done, backfill gaps, fetch with retry,
store, decide on an alert, prune on the hour.

State that used to live in module globals (last processed slot, alert state mirror) is a
TickState passed in by the caller. The persisted alert state is authoritative; load_tick_state()
reads it at process start. If that read fails we start from {0, 0} and may send one early alert
after a restart.

Aborts (fetch exhausted, primary store failure) leave TickState untouched so the next tick
retries from a clean slate. Backfill, deliveries and retention failures are logged only.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

from rainwatch.core.check_config import CheckConfig
from rainwatch.core.constants import PUSH_COLLAPSE_KEY, PUSH_TTL_SECONDS
from rainwatch.core.errors import FetchError, StoreError
from rainwatch.services.alerts import AlertAction, AlertMessage, AlertState, AlertThresholds, evaluate
from rainwatch.services.backfill import run_backfill
from rainwatch.services.push import Notifier
from rainwatch.services.rainarea.client import RainAreaClient
from rainwatch.services.rainarea.fetch import RetryPolicy, fetch_slice
from rainwatch.services.rainarea.types import CoverageReading
from rainwatch.services.retention import sweep_old_slices
from rainwatch.services.slot_clock import Clock, current_slot, utc_now
from rainwatch.services.stores.base import AlertStateStore, IngestionStore
from rainwatch.services.tasks import BackgroundTasks
from rainwatch.services.webhook import WebhookSink

logger = logging.getLogger(__name__)


class CheckOutcome(str, Enum):
    ALREADY_PROCESSED = "already_processed"  # same slot as the last tick in this process
    ALREADY_STORED = "already_stored"  # most recent stored slice is the target
    FETCH_FAILED = "fetch_failed"
    STORE_FAILED = "store_failed"
    PROCESSED = "processed"


@dataclass
class TickState:
    processed_slot: int | None = None
    alert_state: AlertState = field(default_factory=AlertState)


@dataclass
class CheckResult:
    outcome: CheckOutcome
    slot: int
    reading_id: int | None = None
    backfill_slots: list[int] = field(default_factory=list)
    alert_action: AlertAction | None = None
    deleted_count: int | None = None
    error: str | None = None


@dataclass
class CheckContext:
    """Collaborators and knobs for run_check. Built once per process by the check job (or by tests)."""
    client: RainAreaClient
    ingestion_store: IngestionStore
    state_store: AlertStateStore
    notifier: Notifier
    webhook: WebhookSink
    tasks: BackgroundTasks
    radar_image_url: str
    topic: str = "all"
    config: CheckConfig = field(default_factory=CheckConfig)
    clock: Clock = utc_now
    sleep: Callable[[float], None] = time.sleep


def load_tick_state(state_store: AlertStateStore) -> TickState:
    """Fresh TickState with the persisted alert state; {0, 0} if absent or unreadable."""
    try:
        persisted = state_store.read_alert_state()
    except StoreError as e:
        logger.warning("Could not read alert state; assuming {0, 0}: %s", e)
        persisted = None
    state = TickState(alert_state=persisted or AlertState())
    logger.info(
        "Alert state loaded: last_notified_coverage=%s last_notified_at_ms=%s",
        state.alert_state.last_notified_coverage,
        state.alert_state.last_notified_at_ms,
    )
    return state


def image_url_for(radar_image_url: str, slot: int) -> str:
    return f"{radar_image_url}?dt={slot}"


def deliver_alert(reading: CoverageReading, message: AlertMessage, ctx: CheckContext) -> None:
    """Submit push and webhook independently; neither waits on or affects the other."""
    image_url = image_url_for(ctx.radar_image_url, reading.id)
    ctx.tasks.submit(
        f"push:{reading.id}",
        ctx.notifier.send,
        message.title,
        message.body,
        image_url,
        ctx.topic,
        {"ttl_seconds": PUSH_TTL_SECONDS, "collapse_key": PUSH_COLLAPSE_KEY},
    )
    payload: dict[str, Any] = {
        "title": message.title,
        "body": message.body,
        "id": str(reading.id),
        "imageURL": image_url,
    }
    ctx.tasks.submit(f"webhook:{reading.id}", ctx.webhook.post, payload)


def _apply_alert(reading: CoverageReading, state: TickState, ctx: CheckContext) -> AlertAction:
    now_ms = int(ctx.clock().timestamp() * 1000)
    previous = state.alert_state
    decision = evaluate(reading, previous, now_ms, AlertThresholds.from_config(ctx.config))
    if decision.action is AlertAction.NOOP:
        return decision.action
    if decision.action is AlertAction.NOTIFY:
        logger.info(
            "SEND NOTIFICATION %s all=%s sg=%s (prev sg=%s at %s)",
            reading.id,
            reading.all_coverage,
            reading.sg_coverage,
            previous.last_notified_coverage,
            previous.last_notified_at_ms,
        )
        deliver_alert(reading, decision.message, ctx)
    else:
        logger.info(
            "Alert reset at %s: sg=%s (prev sg=%s at %s)",
            reading.id,
            reading.sg_coverage,
            previous.last_notified_coverage,
            previous.last_notified_at_ms,
        )
    # In-memory copy follows the decision even if the write fails, so a delivered alert is not repeated
    state.alert_state = decision.state
    try:
        ctx.state_store.write_alert_state(decision.state)
    except StoreError as e:
        logger.warning("Alert state write failed (in-memory state kept): %s", e)
    return decision.action


def run_check(state: TickState, ctx: CheckContext) -> CheckResult:
    cfg = ctx.config
    dt = current_slot(now=ctx.clock(), utc_offset_hours=cfg.utc_offset_hours)
    logger.info("Check slot %s", dt)
    if state.processed_slot == dt:
        return CheckResult(outcome=CheckOutcome.ALREADY_PROCESSED, slot=dt)

    try:
        last_id = ctx.ingestion_store.most_recent()
    except StoreError as e:
        logger.warning("Most recent slice lookup failed; aborting check for %s: %s", dt, e)
        return CheckResult(outcome=CheckOutcome.STORE_FAILED, slot=dt, error=str(e))
    if last_id == dt:
        return CheckResult(outcome=CheckOutcome.ALREADY_STORED, slot=dt)

    backfill_slots = run_backfill(
        dt,
        last_id,
        client=ctx.client,
        store=ctx.ingestion_store,
        tasks=ctx.tasks,
        fill_back_limit=cfg.fill_back_limit,
    )

    try:
        reading = fetch_slice(ctx.client, dt, RetryPolicy.from_config(cfg), sleep=ctx.sleep)
    except FetchError as e:
        logger.warning("Fetch of %s failed after %s attempts: %s", dt, e.attempts_used, e.cause)
        return CheckResult(
            outcome=CheckOutcome.FETCH_FAILED,
            slot=dt,
            backfill_slots=backfill_slots,
            error=str(e),
        )
    logger.info("Fetched %s", reading.id)

    if reading.id != last_id:
        try:
            ctx.ingestion_store.upsert(reading)
        except StoreError as e:
            logger.warning("Store of %s failed; aborting check: %s", reading.id, e)
            return CheckResult(
                outcome=CheckOutcome.STORE_FAILED,
                slot=dt,
                reading_id=reading.id,
                backfill_slots=backfill_slots,
                error=str(e),
            )
        logger.info("Stored %s", reading.id)
    state.processed_slot = reading.id

    action = _apply_alert(reading, state, ctx)

    deleted = None
    try:
        deleted = sweep_old_slices(
            ctx.ingestion_store,
            dt,
            ctx.clock(),
            retention_minutes=cfg.retention_minutes,
            utc_offset_hours=cfg.utc_offset_hours,
        )
    except StoreError as e:
        logger.warning("Retention sweep failed: %s", e)

    return CheckResult(
        outcome=CheckOutcome.PROCESSED,
        slot=dt,
        reading_id=reading.id,
        backfill_slots=backfill_slots,
        alert_action=action,
        deleted_count=deleted,
    )
