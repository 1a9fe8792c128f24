"""Store-agnostic records. Same shape regardless of SQL or in-memory backend."""
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any


def as_utc(value: datetime | None) -> datetime | None:
    """Naive datetimes (SQLite drops the offset) are UTC; aware ones are converted to UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _money(value: Decimal | None) -> float | None:
    return float(value) if value is not None else None


@dataclass(frozen=True)
class SlotRecord:
    id: int
    slot_number: str
    floor_number: int
    status: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "slot_number": self.slot_number,
            "floor_number": self.floor_number,
            "status": self.status,
        }


@dataclass(frozen=True)
class BookingRecord:
    id: int
    slot_id: int
    customer_name: str
    vehicle_number: str
    phone_number: str
    booking_type: str
    booking_time: datetime
    arrival_time: datetime
    payment_status: str
    departure_time: datetime | None = None
    amount: Decimal | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    # Joined from slots for listings
    slot_number: str | None = None
    floor_number: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "slot_id": self.slot_id,
            "slot_number": self.slot_number,
            "floor_number": self.floor_number,
            "customer_name": self.customer_name,
            "vehicle_number": self.vehicle_number,
            "phone_number": self.phone_number,
            "booking_type": self.booking_type,
            "booking_time": _iso(self.booking_time),
            "arrival_time": _iso(self.arrival_time),
            "departure_time": _iso(self.departure_time),
            "payment_status": self.payment_status,
            "amount": _money(self.amount),
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


@dataclass(frozen=True)
class StreetSlotRecord:
    id: int
    slot_number: str
    status: str
    occupied: bool
    last_updated: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "slot_number": self.slot_number,
            "status": self.status,
            "occupied": self.occupied,
            "last_updated": _iso(self.last_updated),
        }


@dataclass(frozen=True)
class RateRecord:
    id: int | None  # None when no rate row exists and the configured default applies
    rate_per_hour: Decimal
    is_active: bool = True
    effective_from: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "rate_per_hour": _money(self.rate_per_hour),
            "is_active": self.is_active,
            "effective_from": _iso(self.effective_from),
        }
