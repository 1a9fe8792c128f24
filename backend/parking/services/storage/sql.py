"""
SQL store (SQLAlchemy). Durable backend; one session per unit of work.

Exclusivity of a slot is enforced by the conditional UPDATE in mark_reserved (row lock + status
check at write time) and by the uq_bookings_open_slot partial unique index, not by the read in
find_eligible_slot.
"""
import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from decimal import Decimal
from typing import Iterator

from sqlalchemy import func, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from parking.core.constants import (
    SLOT_AVAILABLE,
    SLOT_BOOKED,
    SLOT_OCCUPIED,
    SLOT_RESERVED_STATUSES,
)
from parking.core.errors import ConflictError, NotFoundError
from parking.db.base import Base
from parking.db.session import make_session_factory
from parking.models.booking import Booking
from parking.models.rate import Rate
from parking.models.slot import Slot
from parking.models.street_slot import StreetSlot
from parking.services.storage.types import BookingRecord, RateRecord, SlotRecord, StreetSlotRecord, as_utc

logger = logging.getLogger(__name__)


def _slot_record(row: Slot) -> SlotRecord:
    return SlotRecord(id=row.id, slot_number=row.slot_number, floor_number=row.floor_number, status=row.status)


def _booking_record(row: Booking, slot: Slot | None = None) -> BookingRecord:
    return BookingRecord(
        id=row.id,
        slot_id=row.slot_id,
        customer_name=row.customer_name,
        vehicle_number=row.vehicle_number,
        phone_number=row.phone_number,
        booking_type=row.booking_type,
        booking_time=as_utc(row.booking_time),
        arrival_time=as_utc(row.arrival_time),
        departure_time=as_utc(row.departure_time),
        payment_status=row.payment_status,
        amount=Decimal(row.amount) if row.amount is not None else None,
        created_at=as_utc(row.created_at),
        updated_at=as_utc(row.updated_at),
        slot_number=slot.slot_number if slot else None,
        floor_number=slot.floor_number if slot else None,
    )


def _street_record(row: StreetSlot) -> StreetSlotRecord:
    return StreetSlotRecord(
        id=row.id,
        slot_number=row.slot_number,
        status=row.status,
        occupied=bool(row.occupied),
        last_updated=as_utc(row.last_updated),
    )


def _rate_record(row: Rate) -> RateRecord:
    return RateRecord(
        id=row.id,
        rate_per_hour=Decimal(row.rate_per_hour),
        is_active=bool(row.is_active),
        effective_from=as_utc(row.effective_from),
    )


class SqlUnitOfWork:
    def __init__(self, session: Session):
        self.session = session

    def find_eligible_slot(self) -> SlotRecord | None:
        # SKIP LOCKED lets concurrent transactions on PostgreSQL pick different candidates; ignored on SQLite
        row = (
            self.session.query(Slot)
            .filter(Slot.status == SLOT_AVAILABLE)
            .order_by(Slot.floor_number.asc(), Slot.slot_number.asc())
            .with_for_update(skip_locked=True)
            .first()
        )
        return _slot_record(row) if row else None

    def get_slot(self, slot_id: int) -> SlotRecord | None:
        row = self.session.get(Slot, slot_id)
        return _slot_record(row) if row else None

    def _conditional_status_update(self, slot_id: int, expected: str, new_status: str) -> SlotRecord:
        updated = (
            self.session.query(Slot)
            .filter(Slot.id == slot_id, Slot.status == expected)
            .update({Slot.status: new_status}, synchronize_session=False)
        )
        row = self.session.get(Slot, slot_id, populate_existing=True)
        if row is None:
            raise NotFoundError(f"Slot {slot_id} not found")
        if updated == 0:
            raise ConflictError(f"Slot {row.slot_number} is {row.status}, expected {expected}")
        return _slot_record(row)

    def mark_reserved(self, slot_id: int, new_status: str) -> SlotRecord:
        if new_status not in SLOT_RESERVED_STATUSES:
            raise ValueError(f"Cannot reserve a slot as {new_status!r}")
        return self._conditional_status_update(slot_id, SLOT_AVAILABLE, new_status)

    def mark_occupied(self, slot_id: int) -> SlotRecord:
        return self._conditional_status_update(slot_id, SLOT_BOOKED, SLOT_OCCUPIED)

    def mark_available(self, slot_id: int) -> SlotRecord:
        self.session.query(Slot).filter(Slot.id == slot_id).update(
            {Slot.status: SLOT_AVAILABLE}, synchronize_session=False
        )
        row = self.session.get(Slot, slot_id, populate_existing=True)
        if row is None:
            raise NotFoundError(f"Slot {slot_id} not found")
        return _slot_record(row)

    def insert_booking(self, **fields) -> BookingRecord:
        row = Booking(**fields)
        self.session.add(row)
        try:
            self.session.flush()
        except IntegrityError as e:
            # uq_bookings_open_slot: another open booking already holds this slot
            logger.warning("insert_booking: open booking already exists for slot_id=%s", fields.get("slot_id"))
            raise ConflictError(f"Slot {fields.get('slot_id')} already has an open booking") from e
        self.session.refresh(row)
        return _booking_record(row, self.session.get(Slot, row.slot_id))

    def get_booking(self, booking_id: int) -> BookingRecord | None:
        row = self.session.query(Booking).filter(Booking.id == booking_id).with_for_update().first()
        if row is None:
            return None
        return _booking_record(row, self.session.get(Slot, row.slot_id))

    def update_booking(self, booking_id: int, **fields) -> BookingRecord:
        row = self.session.get(Booking, booking_id)
        if row is None:
            raise NotFoundError(f"Booking {booking_id} not found")
        for key, value in fields.items():
            setattr(row, key, value)
        row.updated_at = datetime.now(timezone.utc)
        self.session.flush()
        return _booking_record(row, self.session.get(Slot, row.slot_id))

    def get_rate(self) -> RateRecord | None:
        row = (
            self.session.query(Rate)
            .filter(Rate.is_active.is_(True))
            .order_by(Rate.id.asc())
            .with_for_update(read=True)
            .first()
        )
        return _rate_record(row) if row else None


class SqlStore:
    """Durable store over any SQLAlchemy-supported database (PostgreSQL in production, SQLite in tests)."""

    name = "database"

    def __init__(self, engine: Engine, session_factory: sessionmaker | None = None):
        self.engine = engine
        self.session_factory = session_factory or make_session_factory(engine)

    def create_schema(self) -> None:
        """Create missing tables (tests and local SQLite; production uses alembic upgrade head)."""
        Base.metadata.create_all(self.engine)

    def ping(self) -> None:
        """Raise if the database is unreachable."""
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))

    @contextmanager
    def unit_of_work(self) -> Iterator[SqlUnitOfWork]:
        db = self.session_factory()
        try:
            yield SqlUnitOfWork(db)
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    @contextmanager
    def _read(self) -> Iterator[Session]:
        db = self.session_factory()
        try:
            yield db
        finally:
            db.close()

    def aggregate_counts(self) -> dict[str, int]:
        with self._read() as db:
            rows = db.query(Slot.status, func.count(Slot.id)).group_by(Slot.status).all()
        by_status = {status: count for status, count in rows}
        return {
            "total": sum(by_status.values()),
            "available": by_status.get(SLOT_AVAILABLE, 0),
            "booked": by_status.get(SLOT_BOOKED, 0),
            "occupied": by_status.get(SLOT_OCCUPIED, 0),
        }

    def get_booking(self, booking_id: int) -> BookingRecord | None:
        with self._read() as db:
            result = (
                db.query(Booking, Slot)
                .join(Slot, Booking.slot_id == Slot.id)
                .filter(Booking.id == booking_id)
                .first()
            )
            return _booking_record(*result) if result else None

    def list_bookings(self) -> list[BookingRecord]:
        with self._read() as db:
            rows = (
                db.query(Booking, Slot)
                .join(Slot, Booking.slot_id == Slot.id)
                .order_by(Booking.booking_time.desc(), Booking.id.desc())
                .all()
            )
            return [_booking_record(b, s) for b, s in rows]

    def list_street_slots(self) -> list[StreetSlotRecord]:
        with self._read() as db:
            return [_street_record(r) for r in db.query(StreetSlot).order_by(StreetSlot.slot_number.asc()).all()]

    def get_rate(self) -> RateRecord | None:
        with self._read() as db:
            row = db.query(Rate).filter(Rate.is_active.is_(True)).order_by(Rate.id.asc()).first()
            return _rate_record(row) if row else None

    def save_rate(self, rate_per_hour: Decimal) -> RateRecord:
        with self.unit_of_work() as uow:
            db = uow.session
            row = db.query(Rate).filter(Rate.is_active.is_(True)).order_by(Rate.id.asc()).with_for_update().first()
            now = datetime.now(timezone.utc)
            if row:
                row.rate_per_hour = rate_per_hour
                row.effective_from = now
                row.updated_at = now
            else:
                row = Rate(rate_per_hour=rate_per_hour, is_active=True, effective_from=now)
                db.add(row)
            db.flush()
            return _rate_record(row)

    def set_street_slot(self, slot_number: str, status: str, occupied: bool, now: datetime) -> StreetSlotRecord:
        with self.unit_of_work() as uow:
            db = uow.session
            row = db.query(StreetSlot).filter(StreetSlot.slot_number == slot_number).with_for_update().first()
            if row is None:
                raise NotFoundError(f"Street parking slot {slot_number} not found")
            row.status = status
            row.occupied = occupied
            row.last_updated = now
            db.flush()
            return _street_record(row)
