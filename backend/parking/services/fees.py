"""
Parking fees: elapsed time rounded up to whole hours, minimum one billed hour.
"""
import math
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal

from parking.core.constants import PAYMENT_CANCELLED, PAYMENT_COMPLETED
from parking.core.errors import InvalidStateError, NotFoundError, ValidationError
from parking.services.rates import get_current_rate
from parking.services.storage.base import ParkingStore
from parking.services.storage.types import as_utc

_CENTS = Decimal("0.01")
_SECONDS_PER_HOUR = 3600


def billed_hours(arrival_time: datetime, as_of: datetime) -> int:
    """Whole hours billed for a stay: ceil(elapsed), at least 1. as_of before arrival counts as zero elapsed."""
    elapsed = (as_utc(as_of) - as_utc(arrival_time)).total_seconds()
    return max(1, math.ceil(max(0.0, elapsed) / _SECONDS_PER_HOUR))


def compute_fee(arrival_time: datetime, as_of: datetime, rate_per_hour: Decimal | int | float) -> Decimal:
    """
    Fee for a stay from arrival_time to as_of at rate_per_hour.
    e.g. 50/hour: 10:00 -> 10:45 = 50 (minimum), 10:00 -> 12:15 = 150.
    """
    rate = Decimal(str(rate_per_hour))
    if rate < 0:
        raise ValidationError("Rate per hour cannot be negative")
    return (rate * billed_hours(arrival_time, as_of)).quantize(_CENTS, rounding=ROUND_HALF_UP)


def quote_fee(store: ParkingStore, booking_id: int, as_of: datetime | None = None) -> dict:
    """
    Fee a booking would be charged if checked out at as_of (default now) at the current rate.
    A completed booking returns its recorded charge; a cancelled one has nothing to quote.
    """
    booking = store.get_booking(booking_id)
    if booking is None:
        raise NotFoundError(f"Booking {booking_id} not found")
    if booking.payment_status == PAYMENT_CANCELLED:
        raise InvalidStateError(f"Booking {booking_id} is cancelled; no fee applies")
    if booking.payment_status == PAYMENT_COMPLETED:
        return {
            "booking_id": booking.id,
            "arrival_time": booking.arrival_time.isoformat(),
            "as_of": booking.departure_time.isoformat() if booking.departure_time else None,
            "hours": billed_hours(booking.arrival_time, booking.departure_time or booking.arrival_time),
            "rate_per_hour": None,
            "amount": float(booking.amount) if booking.amount is not None else None,
            "settled": True,
        }
    as_of = as_of or datetime.now(timezone.utc)
    rate = get_current_rate(store)
    return {
        "booking_id": booking.id,
        "arrival_time": booking.arrival_time.isoformat(),
        "as_of": as_of.isoformat(),
        "hours": billed_hours(booking.arrival_time, as_of),
        "rate_per_hour": float(rate.rate_per_hour),
        "amount": float(compute_fee(booking.arrival_time, as_of, rate.rate_per_hour)),
        "settled": False,
    }
