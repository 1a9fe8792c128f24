"""Street parking space whose occupancy is reported by an external sensor. No bookings."""
from sqlalchemy import Boolean, Column, DateTime, Integer, String
from sqlalchemy.sql import expression, func

from parking.db.base import Base


class StreetSlot(Base):
    __tablename__ = "street_slots"

    id = Column(Integer, primary_key=True, autoincrement=True)
    slot_number = Column(String(10), nullable=False, unique=True)  # e.g. A1
    status = Column(String(16), nullable=False, default="available", server_default="available")  # available | occupied
    occupied = Column(Boolean, nullable=False, default=False, server_default=expression.false())
    last_updated = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
