#!/usr/bin/env python3
"""
Run one check tick now (same logic as the scheduled job), wait for backfill and deliveries, print the result.
Run: python scripts/run_check.py
"""
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from rainwatch.scheduler.check_job import get_check_job_state, init_check_job, run_check_job, shutdown_check_job


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    init_check_job()
    try:
        result = run_check_job()
        context, state = get_check_job_state()
        if context is not None:
            context.tasks.wait(timeout=60)
        if result is None:
            print("Check failed or already running; see log above.")
            sys.exit(1)
        print(
            f"slot={result.slot} outcome={result.outcome.value} reading={result.reading_id} "
            f"backfill={result.backfill_slots} alert={result.alert_action.value if result.alert_action else None} "
            f"deleted={result.deleted_count}"
        )
        if context is not None and context.tasks.failures:
            print(f"background failures: {[f.name for f in context.tasks.failures]}")
        if state is not None:
            print(f"alert state: {state.alert_state}")
    finally:
        shutdown_check_job()


if __name__ == "__main__":
    main()
