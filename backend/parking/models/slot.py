"""Building parking slot. Static layout (number, floor) plus current status: available | booked | occupied."""
from sqlalchemy import Column, DateTime, Index, Integer, String
from sqlalchemy.sql import func

from parking.db.base import Base


class Slot(Base):
    __tablename__ = "slots"

    id = Column(Integer, primary_key=True, autoincrement=True)
    slot_number = Column(String(10), nullable=False, unique=True)  # e.g. 101, 217
    floor_number = Column(Integer, nullable=False, index=True)
    status = Column(String(16), nullable=False, default="available", server_default="available", index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (Index("ix_slots_floor_status", "floor_number", "status"),)
