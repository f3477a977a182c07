"""Raw open slots from one provider pull. PK is the dedup identity key; rows are replaced wholesale per pull."""
from sqlalchemy import Column, DateTime, Float, Index, Integer, String
from sqlalchemy.sql import func

from chairtime.db.base import Base


class AvailabilitySlot(Base):
    __tablename__ = "availability_slots"

    user_id = Column(String(64), primary_key=True)
    source = Column(String(32), primary_key=True)  # acuity | square
    appointment_type_id = Column(String(128), primary_key=True)
    calendar_id = Column(String(128), primary_key=True)  # calendar / staff member offering the slot
    slot_date = Column(String(10), primary_key=True)  # YYYY-MM-DD
    start_time = Column(String(5), primary_key=True)  # HH:MM
    appointment_type_name = Column(String(256), nullable=True)
    start_at = Column(String(40), nullable=True)
    duration_minutes = Column(Integer, nullable=True)
    price = Column(Float, nullable=True)
    timezone = Column(String(64), nullable=True)
    fetched_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_availability_slots_user_source_date", "user_id", "source", "slot_date"),
        Index("ix_availability_slots_fetched_at", "fetched_at"),
    )
