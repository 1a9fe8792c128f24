"""
In-memory store. Used when the database is unreachable (storage_backend=auto) or explicitly
configured (storage_backend=memory). State is lost on restart.

A re-entrant lock held for each unit of work gives the same all-or-nothing behavior as a database
transaction: records are immutable and every write replaces a dict entry, so a shallow copy of the
tables taken at the start is enough to restore on error.
"""
import logging
import threading
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime, timezone
from decimal import Decimal
from typing import Iterable, Iterator

from parking.core.constants import (
    OPEN_PAYMENT_STATUSES,
    SLOT_AVAILABLE,
    SLOT_BOOKED,
    SLOT_OCCUPIED,
    SLOT_RESERVED_STATUSES,
    STREET_AVAILABLE,
    slot_number_for,
)
from parking.core.errors import ConflictError, NotFoundError
from parking.services.storage.types import BookingRecord, RateRecord, SlotRecord, StreetSlotRecord

logger = logging.getLogger(__name__)


class MemoryUnitOfWork:
    def __init__(self, store: "MemoryStore"):
        self.store = store

    def _slot(self, slot_id: int) -> SlotRecord:
        slot = self.store._slots.get(slot_id)
        if slot is None:
            raise NotFoundError(f"Slot {slot_id} not found")
        return slot

    def find_eligible_slot(self) -> SlotRecord | None:
        candidates = [s for s in self.store._slots.values() if s.status == SLOT_AVAILABLE]
        if not candidates:
            return None
        return min(candidates, key=lambda s: (s.floor_number, s.slot_number))

    def get_slot(self, slot_id: int) -> SlotRecord | None:
        return self.store._slots.get(slot_id)

    def _conditional_status_update(self, slot_id: int, expected: str, new_status: str) -> SlotRecord:
        slot = self._slot(slot_id)
        if slot.status != expected:
            raise ConflictError(f"Slot {slot.slot_number} is {slot.status}, expected {expected}")
        slot = replace(slot, status=new_status)
        self.store._slots[slot_id] = slot
        return slot

    def mark_reserved(self, slot_id: int, new_status: str) -> SlotRecord:
        if new_status not in SLOT_RESERVED_STATUSES:
            raise ValueError(f"Cannot reserve a slot as {new_status!r}")
        return self._conditional_status_update(slot_id, SLOT_AVAILABLE, new_status)

    def mark_occupied(self, slot_id: int) -> SlotRecord:
        return self._conditional_status_update(slot_id, SLOT_BOOKED, SLOT_OCCUPIED)

    def mark_available(self, slot_id: int) -> SlotRecord:
        slot = self._slot(slot_id)
        if slot.status != SLOT_AVAILABLE:
            slot = replace(slot, status=SLOT_AVAILABLE)
            self.store._slots[slot_id] = slot
        return slot

    def insert_booking(self, **fields) -> BookingRecord:
        slot = self._slot(fields["slot_id"])
        for b in self.store._bookings.values():
            if b.slot_id == slot.id and b.payment_status in OPEN_PAYMENT_STATUSES:
                logger.warning("insert_booking: open booking already exists for slot_id=%s", slot.id)
                raise ConflictError(f"Slot {slot.id} already has an open booking")
        now = datetime.now(timezone.utc)
        self.store._next_booking_id += 1
        booking = BookingRecord(
            id=self.store._next_booking_id,
            created_at=now,
            updated_at=now,
            slot_number=slot.slot_number,
            floor_number=slot.floor_number,
            **fields,
        )
        self.store._bookings[booking.id] = booking
        return booking

    def get_booking(self, booking_id: int) -> BookingRecord | None:
        return self.store._bookings.get(booking_id)

    def update_booking(self, booking_id: int, **fields) -> BookingRecord:
        booking = self.store._bookings.get(booking_id)
        if booking is None:
            raise NotFoundError(f"Booking {booking_id} not found")
        booking = replace(booking, updated_at=datetime.now(timezone.utc), **fields)
        self.store._bookings[booking_id] = booking
        return booking

    def get_rate(self) -> RateRecord | None:
        return self.store._rate


class MemoryStore:
    """Process-local store with the same contract as SqlStore."""

    name = "memory"

    def __init__(self):
        self._lock = threading.RLock()
        self._slots: dict[int, SlotRecord] = {}
        self._bookings: dict[int, BookingRecord] = {}
        self._street: dict[str, StreetSlotRecord] = {}
        self._rate: RateRecord | None = None
        self._next_booking_id = 0

    @classmethod
    def with_layout(
        cls,
        floors: Iterable[int],
        slots_per_floor: int,
        street_slot_numbers: Iterable[str] = (),
        rate_per_hour: Decimal | None = None,
    ) -> "MemoryStore":
        """Store pre-populated with a facility layout: slots numbered per floor (101..117, 201..)."""
        store = cls()
        slot_id = 0
        for floor in floors:
            for i in range(1, slots_per_floor + 1):
                slot_id += 1
                store._slots[slot_id] = SlotRecord(
                    id=slot_id, slot_number=slot_number_for(floor, i), floor_number=floor, status=SLOT_AVAILABLE
                )
        now = datetime.now(timezone.utc)
        for i, number in enumerate(street_slot_numbers, start=1):
            store._street[number] = StreetSlotRecord(
                id=i, slot_number=number, status=STREET_AVAILABLE, occupied=False, last_updated=now
            )
        if rate_per_hour is not None:
            store._rate = RateRecord(id=1, rate_per_hour=Decimal(rate_per_hour), is_active=True, effective_from=now)
        return store

    @contextmanager
    def unit_of_work(self) -> Iterator[MemoryUnitOfWork]:
        with self._lock:
            saved = (dict(self._slots), dict(self._bookings), self._next_booking_id)
            try:
                yield MemoryUnitOfWork(self)
            except Exception:
                self._slots, self._bookings, self._next_booking_id = saved
                raise

    def aggregate_counts(self) -> dict[str, int]:
        with self._lock:
            statuses = [s.status for s in self._slots.values()]
        return {
            "total": len(statuses),
            "available": statuses.count(SLOT_AVAILABLE),
            "booked": statuses.count(SLOT_BOOKED),
            "occupied": statuses.count(SLOT_OCCUPIED),
        }

    def get_booking(self, booking_id: int) -> BookingRecord | None:
        with self._lock:
            return self._bookings.get(booking_id)

    def list_bookings(self) -> list[BookingRecord]:
        with self._lock:
            bookings = list(self._bookings.values())
        return sorted(bookings, key=lambda b: (b.booking_time, b.id), reverse=True)

    def list_street_slots(self) -> list[StreetSlotRecord]:
        with self._lock:
            return sorted(self._street.values(), key=lambda s: s.slot_number)

    def get_rate(self) -> RateRecord | None:
        with self._lock:
            return self._rate

    def save_rate(self, rate_per_hour: Decimal) -> RateRecord:
        now = datetime.now(timezone.utc)
        with self._lock:
            if self._rate is None:
                self._rate = RateRecord(id=1, rate_per_hour=rate_per_hour, is_active=True, effective_from=now)
            else:
                self._rate = replace(self._rate, rate_per_hour=rate_per_hour, effective_from=now)
            return self._rate

    def set_street_slot(self, slot_number: str, status: str, occupied: bool, now: datetime) -> StreetSlotRecord:
        with self._lock:
            slot = self._street.get(slot_number)
            if slot is None:
                raise NotFoundError(f"Street parking slot {slot_number} not found")
            slot = replace(slot, status=status, occupied=occupied, last_updated=now)
            self._street[slot_number] = slot
            return slot
