"""
Database session and engine.
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from rainwatch.config import settings


def _engine_kwargs(url: str) -> dict:
    if url.startswith("sqlite"):
        # Backfill stores run on worker threads
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_size": 4,
        "max_overflow": 4,
        "pool_pre_ping": True,
        "pool_recycle": 300,
        "pool_timeout": 30,
    }


engine = create_engine(settings.database_url, **_engine_kwargs(settings.database_url))
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)