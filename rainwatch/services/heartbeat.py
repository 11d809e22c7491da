"""
Check job heartbeat. In-memory only; set by the check job, read by GET /status.
Lost on restart like the processed-slot marker.
"""
from __future__ import annotations

import threading
from datetime import datetime, timezone

_lock = threading.Lock()
_job_last_started_at: datetime | None = None
_job_last_finished_at: datetime | None = None
_job_last_outcome: str | None = None
_job_last_slot: int | None = None
_job_last_error: str | None = None
_job_running: bool = False
_job_skipped_count: int = 0


def set_check_job_heartbeat(
    started: datetime | None = None,
    finished: datetime | None = None,
    outcome: str | None = None,
    slot: int | None = None,
    error: str | None = None,
    running: bool | None = None,
    skipped: bool = False,
) -> None:
    global _job_last_started_at, _job_last_finished_at, _job_last_outcome, _job_last_slot, _job_last_error, _job_running, _job_skipped_count
    with _lock:
        if started is not None:
            _job_last_started_at = started
            _job_last_error = None
        if finished is not None:
            _job_last_finished_at = finished
        if outcome is not None:
            _job_last_outcome = outcome
        if slot is not None:
            _job_last_slot = slot
        if error is not None:
            _job_last_error = error
        if running is not None:
            _job_running = running
        if skipped:
            _job_skipped_count += 1


def get_check_job_heartbeat() -> dict:
    """Return last run times, outcome, slot, error (if any), is_job_running, skipped_count."""
    with _lock:
        started_at = _job_last_started_at
        finished_at = _job_last_finished_at
        out = {
            "last_job_started_at": started_at.isoformat() if started_at is not None else None,
            "last_job_finished_at": finished_at.isoformat() if finished_at is not None else None,
            "last_job_outcome": _job_last_outcome,
            "last_job_slot": _job_last_slot,
            "last_job_error": _job_last_error,
            "is_job_running": _job_running,
            "skipped_count": _job_skipped_count,
        }
    if _job_running and started_at is not None:
        out["current_run_elapsed_seconds"] = max(0, (datetime.now(timezone.utc) - started_at).total_seconds())
    elif started_at is not None and finished_at is not None:
        out["last_run_duration_seconds"] = max(0, (finished_at - started_at).total_seconds())
    return out


def reset_check_job_heartbeat() -> None:
    """Clear everything (tests)."""
    global _job_last_started_at, _job_last_finished_at, _job_last_outcome, _job_last_slot, _job_last_error, _job_running, _job_skipped_count
    with _lock:
        _job_last_started_at = None
        _job_last_finished_at = None
        _job_last_outcome = None
        _job_last_slot = None
        _job_last_error = None
        _job_running = False
        _job_skipped_count = 0
