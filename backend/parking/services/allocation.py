"""
Allocation: find an available slot, reserve it and create the paired booking as one unit of work.

Kind drives the transition (BOOKING_KIND_TRANSITIONS):
  scheduled -> slot booked,   booking pending
  walkin    -> slot occupied, booking active

A lost race (ConflictError from the reserve step) rolls back and retries against a freshly read
slot; after `retries` extra attempts the caller gets NoAvailabilityError.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from parking.config import settings
from parking.core.constants import (
    BOOKING_KIND_TRANSITIONS,
    BOOKING_SCHEDULED,
    BOOKING_WALKIN,
    CUSTOMER_NAME_MAX,
    PHONE_NUMBER_MAX,
    VEHICLE_NUMBER_MAX,
)
from parking.core.errors import ConflictError, NoAvailabilityError, ValidationError
from parking.services.storage.base import ParkingStore
from parking.services.storage.types import BookingRecord, SlotRecord, as_utc

logger = logging.getLogger(__name__)

MSG_NO_AVAILABILITY = "No parking slots available"


@dataclass(frozen=True)
class AllocationRequest:
    customer_name: str
    vehicle_number: str
    phone_number: str
    booking_type: str = BOOKING_SCHEDULED
    arrival_time: datetime | None = None  # required for scheduled; ignored for walk-in


@dataclass(frozen=True)
class Allocation:
    slot: SlotRecord
    booking: BookingRecord

    def to_dict(self) -> dict:
        return {
            "booking_id": self.booking.id,
            "slot_number": self.slot.slot_number,
            "floor_number": self.slot.floor_number,
            "booking": self.booking.to_dict(),
        }


def _required(value: str, field: str, max_len: int) -> str:
    value = (value or "").strip()
    if not value:
        raise ValidationError(f"{field} is required")
    if len(value) > max_len:
        raise ValidationError(f"{field} must be at most {max_len} characters")
    return value


def validate_request(request: AllocationRequest, now: datetime) -> AllocationRequest:
    """
    Normalize and check a request. Scheduled arrival must be within
    [now - arrival_grace_seconds, now + scheduled_lead_minutes]; walk-ins arrive now.
    """
    if request.booking_type not in BOOKING_KIND_TRANSITIONS:
        raise ValidationError(
            f"booking_type must be one of: {', '.join(BOOKING_KIND_TRANSITIONS)}"
        )
    customer_name = _required(request.customer_name, "customer_name", CUSTOMER_NAME_MAX)
    vehicle_number = _required(request.vehicle_number, "vehicle_number", VEHICLE_NUMBER_MAX).upper()
    phone_number = _required(request.phone_number, "phone_number", PHONE_NUMBER_MAX)

    if request.booking_type == BOOKING_WALKIN:
        arrival_time = now
    else:
        if request.arrival_time is None:
            raise ValidationError("arrival_time is required for scheduled bookings")
        arrival_time = as_utc(request.arrival_time)
        earliest = now - timedelta(seconds=settings.arrival_grace_seconds)
        latest = now + timedelta(minutes=settings.scheduled_lead_minutes)
        if arrival_time < earliest:
            raise ValidationError("Arrival time cannot be in the past")
        if arrival_time > latest:
            raise ValidationError(
                f"Arrival time must be within {settings.scheduled_lead_minutes} minutes from now"
            )
    return AllocationRequest(
        customer_name=customer_name,
        vehicle_number=vehicle_number,
        phone_number=phone_number,
        booking_type=request.booking_type,
        arrival_time=arrival_time,
    )


def _allocate_once(store: ParkingStore, request: AllocationRequest, now: datetime) -> Allocation:
    slot_status, payment_status = BOOKING_KIND_TRANSITIONS[request.booking_type]
    with store.unit_of_work() as uow:
        candidate = uow.find_eligible_slot()
        if candidate is None:
            raise NoAvailabilityError(MSG_NO_AVAILABILITY)
        slot = uow.mark_reserved(candidate.id, slot_status)
        booking = uow.insert_booking(
            slot_id=slot.id,
            customer_name=request.customer_name,
            vehicle_number=request.vehicle_number,
            phone_number=request.phone_number,
            booking_type=request.booking_type,
            booking_time=now,
            arrival_time=request.arrival_time,
            payment_status=payment_status,
        )
    return Allocation(slot=slot, booking=booking)


def allocate(
    store: ParkingStore,
    request: AllocationRequest,
    now: datetime | None = None,
    retries: int | None = None,
) -> Allocation:
    """
    Reserve a slot and create its booking atomically.
    Raises ValidationError for bad input and NoAvailabilityError when no slot can be claimed.
    """
    now = as_utc(now) if now else datetime.now(timezone.utc)
    retries = settings.allocation_retries if retries is None else retries
    request = validate_request(request, now)
    for attempt in range(retries + 1):
        try:
            allocation = _allocate_once(store, request, now)
        except ConflictError as e:
            logger.warning("allocate: lost race (attempt %s/%s): %s", attempt + 1, retries + 1, e)
            continue
        logger.info(
            "allocate: %s booking #%s -> slot %s (floor %s)",
            request.booking_type, allocation.booking.id, allocation.slot.slot_number, allocation.slot.floor_number,
        )
        return allocation
    raise NoAvailabilityError(MSG_NO_AVAILABILITY)
