"""One row per 5-minute radar slice. Primary key is the slice id (YYYYMMDDHHmm, UTC+8); upserts overwrite."""
from sqlalchemy import BigInteger, Column, DateTime, Float, Text
from sqlalchemy.sql import func

from rainwatch.db.base import Base


class WeatherSlice(Base):
    __tablename__ = "weather"

    id = Column(BigInteger, primary_key=True, autoincrement=False)
    all_coverage = Column(Float, nullable=False)  # coverage_percentage.all
    sg_coverage = Column(Float, nullable=False)  # coverage_percentage.sg
    payload_json = Column(Text, nullable=False)  # full rain area body as fetched
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
