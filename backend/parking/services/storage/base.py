"""Protocols for storage backends. SQL and in-memory stores implement the same contract."""
from contextlib import AbstractContextManager
from datetime import datetime
from decimal import Decimal
from typing import Protocol

from parking.services.storage.types import BookingRecord, RateRecord, SlotRecord, StreetSlotRecord


class UnitOfWork(Protocol):
    """
    One atomic unit: everything done through it commits together on clean exit of
    ParkingStore.unit_of_work() and rolls back together on any exception.
    """

    # Slot registry

    def find_eligible_slot(self) -> SlotRecord | None:
        """An available slot, lowest floor then lowest slot number first. None if the facility is full."""
        ...

    def get_slot(self, slot_id: int) -> SlotRecord | None:
        ...

    def mark_reserved(self, slot_id: int, new_status: str) -> SlotRecord:
        """
        available -> new_status (booked | occupied), checked at write time.
        Raises NotFoundError if the slot is gone, ConflictError if it is no longer available.
        """
        ...

    def mark_occupied(self, slot_id: int) -> SlotRecord:
        """booked -> occupied (arrival of a scheduled booking). Raises NotFoundError / ConflictError."""
        ...

    def mark_available(self, slot_id: int) -> SlotRecord:
        """Release a slot. Idempotent; raises NotFoundError only if the slot does not exist."""
        ...

    # Booking ledger

    def insert_booking(
        self,
        *,
        slot_id: int,
        customer_name: str,
        vehicle_number: str,
        phone_number: str,
        booking_type: str,
        booking_time: datetime,
        arrival_time: datetime,
        payment_status: str,
    ) -> BookingRecord:
        """Raises ConflictError if the slot already has a non-terminal booking."""
        ...

    def get_booking(self, booking_id: int) -> BookingRecord | None:
        """Load a booking for update (row-locked where the store supports it)."""
        ...

    def update_booking(self, booking_id: int, **fields) -> BookingRecord:
        ...

    # Rate

    def get_rate(self) -> RateRecord | None:
        """Canonical rate as seen by this unit of work (share-locked where the store supports it)."""
        ...


class ParkingStore(Protocol):
    """Storage backend selected at startup (see factory.build_store)."""

    @property
    def name(self) -> str:
        """'database' or 'memory'; reported by /health."""
        ...

    def unit_of_work(self) -> AbstractContextManager[UnitOfWork]:
        ...

    # Read-only, non-transactional: may observe slightly stale state.

    def aggregate_counts(self) -> dict[str, int]:
        """{total, available, booked, occupied} across all slots."""
        ...

    def get_booking(self, booking_id: int) -> BookingRecord | None:
        ...

    def list_bookings(self) -> list[BookingRecord]:
        """All bookings joined with slot number/floor, newest first."""
        ...

    def list_street_slots(self) -> list[StreetSlotRecord]:
        ...

    def get_rate(self) -> RateRecord | None:
        """Canonical (lowest-id active) rate row, or None if none exists."""
        ...

    # Small single-statement writes (own transaction)

    def save_rate(self, rate_per_hour: Decimal) -> RateRecord:
        """Update the canonical rate row in place, creating it if missing."""
        ...

    def set_street_slot(self, slot_number: str, status: str, occupied: bool, now: datetime) -> StreetSlotRecord:
        """Raises NotFoundError for an unknown slot number."""
        ...
