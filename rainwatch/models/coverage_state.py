"""Named state documents. The alert state lives under key 'sg-coverage': value = last notified sg coverage, timestamp = epoch ms (0 = reset)."""
from sqlalchemy import BigInteger, Column, DateTime, Float, String
from sqlalchemy.sql import func

from rainwatch.db.base import Base


class CoverageState(Base):
    __tablename__ = "state"

    key = Column(String(64), primary_key=True)
    value = Column(Float, nullable=False, server_default="0")
    timestamp = Column(BigInteger, nullable=False, server_default="0")
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
