"""
Check trigger and status.

GET/POST /check queues one tick (same logic as the scheduled job) and answers DONE immediately.
GET /status reports the in-memory heartbeat, processed slot and cached alert state.
"""
import logging
from typing import Any

from fastapi import APIRouter, BackgroundTasks
from fastapi.responses import PlainTextResponse

from rainwatch.core.constants import CHECK_ACK
from rainwatch.scheduler.check_job import get_check_job_state, run_check_job
from rainwatch.services.heartbeat import get_check_job_heartbeat

router = APIRouter()
logger = logging.getLogger(__name__)


@router.api_route("/check", methods=["GET", "POST"], response_class=PlainTextResponse)
def trigger_check(background_tasks: BackgroundTasks) -> str:
    """Run a check now. Always acknowledges; the outcome shows up in GET /status."""
    background_tasks.add_task(run_check_job)
    return CHECK_ACK


@router.get("/status")
def check_status() -> dict[str, Any]:
    context, state = get_check_job_state()
    out: dict[str, Any] = {"job_heartbeat": get_check_job_heartbeat()}
    if state is not None:
        out["processed_slot"] = state.processed_slot
        out["alert_state"] = {
            "last_notified_coverage": state.alert_state.last_notified_coverage,
            "last_notified_at_ms": state.alert_state.last_notified_at_ms,
        }
    if context is not None:
        out["check_config"] = context.config.as_dict()
        out["background"] = {
            "pending": context.tasks.pending_count,
            "completed": context.tasks.completed,
            "recent_failures": [
                {"name": f.name, "error": str(f.error), "failed_at": f.failed_at.isoformat()}
                for f in context.tasks.failures[-10:]
            ],
        }
    return out
