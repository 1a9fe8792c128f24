"""
Building parking API: availability, scheduled and walk-in bookings, admin checkout/cancel.

Every mutating route publishes a fresh snapshot to live observers after the response (BackgroundTasks),
so the caller never waits on delivery.
"""
import logging
from datetime import datetime
from typing import Any, NoReturn

from fastapi import APIRouter, BackgroundTasks, Depends
from pydantic import BaseModel, Field

from parking.api.deps import get_notifier, get_store
from parking.core.constants import (
    BOOKING_SCHEDULED,
    BOOKING_WALKIN,
    CUSTOMER_NAME_MAX,
    PHONE_NUMBER_MAX,
    VEHICLE_NUMBER_MAX,
)
from parking.core.errors import NotFoundError, is_user_error, parking_error_to_http
from parking.services.allocation import AllocationRequest, allocate
from parking.services.fees import quote_fee
from parking.services.lifecycle import cancel, check_in, complete
from parking.services.notifier import ChangeNotifier
from parking.services.storage.base import ParkingStore

router = APIRouter()
logger = logging.getLogger(__name__)


class WalkInBody(BaseModel):
    user_name: str = Field(..., min_length=1, max_length=CUSTOMER_NAME_MAX)
    vehicle_number: str = Field(..., min_length=1, max_length=VEHICLE_NUMBER_MAX)
    phone_number: str = Field(..., min_length=1, max_length=PHONE_NUMBER_MAX)


class BookParkingBody(WalkInBody):
    arrival_time: datetime = Field(..., description="Expected arrival, now to now + 30 minutes (ISO 8601)")


class CompleteBody(BaseModel):
    amount: float | None = Field(default=None, ge=0, description="Amount collected; omit to compute at the current rate")


def _handle_error(exc: Exception, log_message: str) -> NoReturn:
    if is_user_error(exc):
        logger.info("%s: %s", log_message, exc)
    else:
        logger.exception(log_message)
    raise parking_error_to_http(exc) from exc


@router.get("/availability")
def get_availability(store: ParkingStore = Depends(get_store)) -> dict[str, int]:
    """Slot counts: total, available, booked, occupied."""
    return store.aggregate_counts()


@router.post("/book-parking", status_code=201)
def book_parking(
    body: BookParkingBody,
    background_tasks: BackgroundTasks,
    store: ParkingStore = Depends(get_store),
    notifier: ChangeNotifier = Depends(get_notifier),
) -> dict[str, Any]:
    """Scheduled booking: slot becomes booked, booking pending until checkout."""
    request = AllocationRequest(
        customer_name=body.user_name,
        vehicle_number=body.vehicle_number,
        phone_number=body.phone_number,
        booking_type=BOOKING_SCHEDULED,
        arrival_time=body.arrival_time,
    )
    try:
        allocation = allocate(store, request)
    except Exception as e:
        _handle_error(e, "Scheduled booking failed")
    background_tasks.add_task(notifier.publish)
    return {**allocation.to_dict(), "message": "Parking slot booked successfully!"}


@router.post("/walkin-booking", status_code=201)
def walkin_booking(
    body: WalkInBody,
    background_tasks: BackgroundTasks,
    store: ParkingStore = Depends(get_store),
    notifier: ChangeNotifier = Depends(get_notifier),
) -> dict[str, Any]:
    """Walk-in booking: customer is present, slot occupied and booking active immediately."""
    request = AllocationRequest(
        customer_name=body.user_name,
        vehicle_number=body.vehicle_number,
        phone_number=body.phone_number,
        booking_type=BOOKING_WALKIN,
    )
    try:
        allocation = allocate(store, request)
    except Exception as e:
        _handle_error(e, "Walk-in booking failed")
    background_tasks.add_task(notifier.publish)
    return {**allocation.to_dict(), "message": "Walk-in booking successful! Customer is now parked."}


@router.get("/bookings")
def list_bookings(store: ParkingStore = Depends(get_store)) -> list[dict[str, Any]]:
    """All bookings (admin), newest first, with slot number and floor."""
    return [b.to_dict() for b in store.list_bookings()]


@router.get("/bookings/{booking_id}")
def get_booking(booking_id: int, store: ParkingStore = Depends(get_store)) -> dict[str, Any]:
    booking = store.get_booking(booking_id)
    if booking is None:
        _handle_error(NotFoundError(f"Booking {booking_id} not found"), "Get booking failed")
    return booking.to_dict()


@router.get("/bookings/{booking_id}/fee")
def get_booking_fee(booking_id: int, store: ParkingStore = Depends(get_store)) -> dict[str, Any]:
    """Fee if the booking were checked out now at the current rate (checkout pre-fill)."""
    try:
        return quote_fee(store, booking_id)
    except Exception as e:
        _handle_error(e, "Fee quote failed")


@router.put("/bookings/{booking_id}/check-in")
def check_in_booking(
    booking_id: int,
    background_tasks: BackgroundTasks,
    store: ParkingStore = Depends(get_store),
    notifier: ChangeNotifier = Depends(get_notifier),
) -> dict[str, Any]:
    """Record arrival of a scheduled booking (pending -> active, slot occupied)."""
    try:
        booking = check_in(store, booking_id)
    except Exception as e:
        _handle_error(e, "Check-in failed")
    background_tasks.add_task(notifier.publish)
    return {"booking": booking.to_dict(), "message": "Arrival recorded"}


@router.put("/bookings/{booking_id}/complete")
def complete_booking(
    booking_id: int,
    background_tasks: BackgroundTasks,
    body: CompleteBody | None = None,
    store: ParkingStore = Depends(get_store),
    notifier: ChangeNotifier = Depends(get_notifier),
) -> dict[str, Any]:
    """Checkout: record amount and departure, release the slot."""
    amount = body.amount if body else None
    try:
        booking = complete(store, booking_id, amount=amount)
    except Exception as e:
        _handle_error(e, "Completing booking failed")
    background_tasks.add_task(notifier.publish)
    return {"booking": booking.to_dict(), "message": "Booking completed successfully"}


@router.delete("/bookings/{booking_id}")
def cancel_booking(
    booking_id: int,
    background_tasks: BackgroundTasks,
    store: ParkingStore = Depends(get_store),
    notifier: ChangeNotifier = Depends(get_notifier),
) -> dict[str, Any]:
    """Cancel an open booking and release its slot. The booking row is kept."""
    try:
        booking = cancel(store, booking_id)
    except Exception as e:
        _handle_error(e, "Cancelling booking failed")
    background_tasks.add_task(notifier.publish)
    return {"booking": booking.to_dict(), "message": "Booking cancelled successfully"}
