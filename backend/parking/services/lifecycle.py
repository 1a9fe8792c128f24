"""
Booking lifecycle after allocation. Each transition updates the booking and its slot in one unit of work.

  pending -> active      check_in   (slot booked -> occupied)
  pending -> completed   complete   (slot -> available)
  active  -> completed   complete   (slot -> available)
  pending/active -> cancelled  cancel  (slot -> available, no amount)

completed and cancelled are terminal (BOOKING_TRANSITIONS).
"""
import logging
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation

from parking.core.constants import (
    BOOKING_TRANSITIONS,
    PAYMENT_ACTIVE,
    PAYMENT_CANCELLED,
    PAYMENT_COMPLETED,
)
from parking.core.errors import InvalidStateError, NotFoundError, ValidationError
from parking.services.fees import compute_fee
from parking.services.rates import rate_or_default
from parking.services.storage.base import ParkingStore, UnitOfWork
from parking.services.storage.types import BookingRecord, as_utc

logger = logging.getLogger(__name__)


def _load_for_transition(uow: UnitOfWork, booking_id: int, target: str) -> BookingRecord:
    booking = uow.get_booking(booking_id)
    if booking is None:
        raise NotFoundError(f"Booking {booking_id} not found")
    if target not in BOOKING_TRANSITIONS[booking.payment_status]:
        raise InvalidStateError(f"Booking {booking_id} is {booking.payment_status}; cannot move to {target}")
    return booking


def _to_amount(amount) -> Decimal:
    try:
        value = Decimal(str(amount)).quantize(Decimal("0.01"))
    except InvalidOperation as e:
        raise ValidationError(f"Invalid amount: {amount!r}") from e
    if not value.is_finite() or value < 0:
        raise ValidationError("Amount must be a non-negative number")
    return value


def complete(
    store: ParkingStore,
    booking_id: int,
    amount: Decimal | int | float | None = None,
    now: datetime | None = None,
) -> BookingRecord:
    """
    Check out: departure = now, status completed, amount recorded, slot released.
    amount is caller supplied; when None it is computed from the arrival time at the current rate.
    A supplied amount below one billed hour at the current rate is rejected. The rate is read in the
    same unit of work as the transition, so a concurrent rate update is either fully before or after.
    """
    now = as_utc(now) if now else datetime.now(timezone.utc)
    with store.unit_of_work() as uow:
        booking = _load_for_transition(uow, booking_id, PAYMENT_COMPLETED)
        rate = rate_or_default(uow.get_rate()).rate_per_hour
        if amount is None:
            value = compute_fee(booking.arrival_time, now, rate)
        else:
            value = _to_amount(amount)
            if value < rate:
                raise ValidationError(f"Amount must be at least one hour at the current rate ({rate})")
        updated = uow.update_booking(
            booking_id,
            departure_time=now,
            payment_status=PAYMENT_COMPLETED,
            amount=value,
        )
        uow.mark_available(booking.slot_id)
    logger.info("complete: booking #%s amount=%s slot_id=%s released", booking_id, value, booking.slot_id)
    return updated


def cancel(store: ParkingStore, booking_id: int, now: datetime | None = None) -> BookingRecord:
    """Cancel an open booking: terminal cancelled, no amount, slot released."""
    now = as_utc(now) if now else datetime.now(timezone.utc)
    with store.unit_of_work() as uow:
        booking = _load_for_transition(uow, booking_id, PAYMENT_CANCELLED)
        updated = uow.update_booking(booking_id, departure_time=now, payment_status=PAYMENT_CANCELLED)
        uow.mark_available(booking.slot_id)
    logger.info("cancel: booking #%s cancelled, slot_id=%s released", booking_id, booking.slot_id)
    return updated


def check_in(store: ParkingStore, booking_id: int, now: datetime | None = None) -> BookingRecord:
    """Record arrival of a scheduled booking: pending -> active, actual arrival time, slot occupied."""
    now = as_utc(now) if now else datetime.now(timezone.utc)
    with store.unit_of_work() as uow:
        booking = _load_for_transition(uow, booking_id, PAYMENT_ACTIVE)
        uow.mark_occupied(booking.slot_id)
        updated = uow.update_booking(booking_id, arrival_time=now, payment_status=PAYMENT_ACTIVE)
    logger.info("check_in: booking #%s active, slot_id=%s occupied", booking_id, booking.slot_id)
    return updated
