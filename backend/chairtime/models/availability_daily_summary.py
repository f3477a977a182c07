"""Per (user, source, day) non-overlapping opportunity count and revenue. Derived from availability_slots."""
from sqlalchemy import Column, DateTime, Float, Integer, String
from sqlalchemy.sql import func

from chairtime.db.base import Base


class AvailabilityDailySummary(Base):
    __tablename__ = "availability_daily_summary"

    user_id = Column(String(64), primary_key=True)
    source = Column(String(32), primary_key=True)
    slot_date = Column(String(10), primary_key=True)
    slot_count = Column(Integer, nullable=False, default=0)
    slot_units = Column(Integer, nullable=False, default=0)
    estimated_revenue = Column(Float, nullable=False, default=0)
    timezone = Column(String(64), nullable=True)
    fetched_at = Column(DateTime(timezone=True), nullable=False, index=True)  # cache gateway reads the max of this
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
