"""Business profile: which calendar to read and the stored canonical slot length."""
from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.sql import func

from chairtime.db.base import Base


class Profile(Base):
    __tablename__ = "profiles"

    user_id = Column(String(64), primary_key=True)
    full_name = Column(String(256), nullable=True)
    calendar = Column(String(256), nullable=True)  # Acuity calendar name or Square location ids ("all" = every location)
    slot_length_minutes = Column(Integer, nullable=True)  # null until set or derived from a catalog
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
