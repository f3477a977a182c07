"""OAuth connection to a scheduling provider. A provider is enabled for a user when access_token is set."""
from sqlalchemy import Column, DateTime, String, Text
from sqlalchemy.sql import func

from chairtime.db.base import Base


class BookingConnection(Base):
    __tablename__ = "booking_connections"

    user_id = Column(String(64), primary_key=True)
    provider = Column(String(32), primary_key=True)  # acuity | square
    access_token = Column(Text, nullable=True)
    refresh_token = Column(Text, nullable=True)
    expires_at = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
