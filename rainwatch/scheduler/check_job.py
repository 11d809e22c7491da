"""
Runs every 5 minutes (cron :01, :06, ...) and on GET/POST /check: one check tick.

One tick at a time per process: APScheduler runs the job with max_instances=1, and a
trigger that arrives while a tick is running (e.g. /check during a scheduled run) is skipped.
The process-wide TickState is created by init_check_job() at startup, after the alert
state has been read from the DB.
"""
import logging
import threading
from datetime import datetime, timezone

from rainwatch.config import settings
from rainwatch.core.check_config import get_check_config
from rainwatch.db.session import SessionLocal
from rainwatch.services.check import CheckContext, CheckResult, TickState, load_tick_state, run_check
from rainwatch.services.heartbeat import set_check_job_heartbeat
from rainwatch.services.push import FcmNotifier
from rainwatch.services.rainarea.client import RainAreaClient
from rainwatch.services.stores.sql import SqlAlertStateStore, SqlIngestionStore
from rainwatch.services.tasks import BackgroundTasks
from rainwatch.services.webhook import WebhookSink

logger = logging.getLogger(__name__)

_run_lock = threading.Lock()
_context: CheckContext | None = None
_state: TickState | None = None


def build_check_context() -> CheckContext:
    return CheckContext(
        client=RainAreaClient(),
        ingestion_store=SqlIngestionStore(SessionLocal),
        state_store=SqlAlertStateStore(SessionLocal),
        notifier=FcmNotifier(),
        webhook=WebhookSink(),
        tasks=BackgroundTasks(),
        radar_image_url=settings.radar_image_url,
        topic=settings.fcm_topic or "all",
        config=get_check_config(),
    )


def init_check_job(context: CheckContext | None = None) -> TickState:
    """Build collaborators and load the alert state. Call once at startup (tests pass their own context)."""
    global _context, _state
    _context = context or build_check_context()
    _state = load_tick_state(_context.state_store)
    return _state


def get_check_job_state() -> tuple[CheckContext | None, TickState | None]:
    return _context, _state


def run_check_job() -> CheckResult | None:
    if not _run_lock.acquire(blocking=False):
        logger.info("Check already running; skipping this trigger")
        set_check_job_heartbeat(skipped=True)
        return None
    try:
        if _context is None or _state is None:
            init_check_job()
        started = datetime.now(timezone.utc)
        set_check_job_heartbeat(started=started, running=True)
        try:
            result = run_check(_state, _context)
        except Exception as e:
            logger.exception("Check job failed: %s", e)
            set_check_job_heartbeat(
                finished=datetime.now(timezone.utc),
                outcome="error",
                error=str(e),
                running=False,
            )
            return None
        set_check_job_heartbeat(
            finished=datetime.now(timezone.utc),
            outcome=result.outcome.value,
            slot=result.slot,
            error=result.error,
            running=False,
        )
        logger.info("Check %s: %s", result.slot, result.outcome.value)
        return result
    finally:
        _run_lock.release()


def shutdown_check_job() -> None:
    global _context, _state
    if _context is not None:
        _context.tasks.shutdown(wait=False)
        _context.client.close()
    _context = None
    _state = None
