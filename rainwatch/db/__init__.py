from rainwatch.db.base import Base
from rainwatch.db.session import engine, SessionLocal
from rainwatch.db.tables import ALL_TABLE_NAMES

__all__ = ["engine", "SessionLocal", "Base", "ALL_TABLE_NAMES"]
