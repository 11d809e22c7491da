"""
Shared fixtures for the check pipeline.

The SQL engine in rainwatch.db.session is created at import time; point it at SQLite
before anything from rainwatch is imported so tests never need Postgres.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

import rainwatch.models  # noqa: F401  (registers tables on Base.metadata)
from rainwatch.core.check_config import CheckConfig
from rainwatch.db.base import Base
from rainwatch.services.check import CheckContext
from rainwatch.services.tasks import BackgroundTasks
from tests.fakes import (
    BASE_NOW,
    FakeRainAreaClient,
    InMemoryAlertStateStore,
    InMemoryIngestionStore,
    MutableClock,
    RecordingNotifier,
    RecordingWebhook,
)


@pytest.fixture
def clock() -> MutableClock:
    return MutableClock(BASE_NOW)


@pytest.fixture
def tasks():
    group = BackgroundTasks(max_workers=4)
    yield group
    group.shutdown(wait=True)


@pytest.fixture
def make_context(clock, tasks):
    def _make(
        client=None,
        store=None,
        state_store=None,
        notifier=None,
        webhook=None,
        config: CheckConfig | None = None,
    ) -> CheckContext:
        return CheckContext(
            client=client if client is not None else FakeRainAreaClient(),
            ingestion_store=store if store is not None else InMemoryIngestionStore(),
            state_store=state_store if state_store is not None else InMemoryAlertStateStore(),
            notifier=notifier if notifier is not None else RecordingNotifier(),
            webhook=webhook if webhook is not None else RecordingWebhook(),
            tasks=tasks,
            radar_image_url="https://rainshot.example/",
            topic="all",
            config=config or CheckConfig(),
            clock=clock,
            sleep=lambda _seconds: None,
        )

    return _make


@pytest.fixture
def session_factory(tmp_path):
    """File-backed SQLite so background threads get their own connections."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'rainwatch.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()
