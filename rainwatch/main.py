"""
FastAPI app entrypoint.

Scheduled check every 5 minutes (Asia/Singapore, :01/:06/...) plus GET/POST /check to trigger one now.
"""
import logging
from contextlib import asynccontextmanager
from pathlib import Path

from apscheduler.schedulers.background import BackgroundScheduler
from dotenv import load_dotenv
from fastapi import FastAPI

# Load .env from the project root before any rainwatch code
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

from rainwatch.api.routes import check
from rainwatch.config import settings
from rainwatch.core.constants import (
    CHECK_CRON_MINUTES,
    CHECK_JOB_ID,
    CHECK_MISFIRE_GRACE_SECONDS,
    CHECK_TIMEZONE,
)
from rainwatch.scheduler.check_job import init_check_job, run_check_job, shutdown_check_job

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

_scheduler = BackgroundScheduler(timezone=CHECK_TIMEZONE)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Alert state must be loaded before the first tick can decide on a notification
    init_check_job()
    _scheduler.add_job(
        run_check_job,
        "cron",
        minute=CHECK_CRON_MINUTES,
        id=CHECK_JOB_ID,
        max_instances=1,
        coalesce=True,
        misfire_grace_time=CHECK_MISFIRE_GRACE_SECONDS,
        replace_existing=True,
    )
    _scheduler.start()
    app.state.scheduler = _scheduler
    logger.info("Start instance! Check scheduled at minutes %s (%s)", CHECK_CRON_MINUTES, CHECK_TIMEZONE)
    yield
    _scheduler.shutdown(wait=False)
    shutdown_check_job()


app = FastAPI(title="Rainwatch", version="0.1.0", lifespan=lifespan)

app.include_router(check.router, tags=["check"])


@app.get("/", include_in_schema=False)
def root():
    """Root: point to API docs and health."""
    return {"message": "Rainwatch API", "docs": "/docs", "health": "/health"}


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
