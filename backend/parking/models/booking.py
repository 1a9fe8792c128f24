"""One reservation/occupancy episode for a slot. Append-only: rows are transitioned, never deleted."""
from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, Numeric, String, text
from sqlalchemy.sql import func

from parking.db.base import Base

# At most one non-terminal booking per slot (partial unique index; PostgreSQL and SQLite)
_OPEN_BOOKING_WHERE = text("payment_status IN ('pending', 'active')")


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    slot_id = Column(Integer, ForeignKey("slots.id", ondelete="RESTRICT"), nullable=False, index=True)
    customer_name = Column(String(100), nullable=False)
    vehicle_number = Column(String(20), nullable=False)
    phone_number = Column(String(15), nullable=False)
    booking_type = Column(String(16), nullable=False, default="scheduled")  # scheduled | walkin
    booking_time = Column(DateTime(timezone=True), nullable=False)
    arrival_time = Column(DateTime(timezone=True), nullable=False)  # expected (scheduled) or actual
    departure_time = Column(DateTime(timezone=True), nullable=True)  # set once, at completion/cancel
    payment_status = Column(String(16), nullable=False, default="pending")  # pending | active | completed | cancelled
    amount = Column(Numeric(10, 2), nullable=True)  # set once, at completion
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_bookings_payment_status", "payment_status"),
        Index(
            "uq_bookings_open_slot",
            "slot_id",
            unique=True,
            postgresql_where=_OPEN_BOOKING_WHERE,
            sqlite_where=_OPEN_BOOKING_WHERE,
        ),
    )
