"""
Street parking: occupancy reported by an external sensor per slot number. No bookings.
"""
import logging
from datetime import datetime, timezone

from parking.core.constants import STREET_OCCUPIED, STREET_STATUSES
from parking.core.errors import ValidationError
from parking.services.storage.base import ParkingStore
from parking.services.storage.types import StreetSlotRecord

logger = logging.getLogger(__name__)


def list_street_slots(store: ParkingStore) -> list[StreetSlotRecord]:
    return store.list_street_slots()


def set_street_occupancy(
    store: ParkingStore,
    slot_number: str,
    status: str,
    now: datetime | None = None,
) -> StreetSlotRecord:
    """Set a street slot to available | occupied. Raises ValidationError / NotFoundError."""
    if status not in STREET_STATUSES:
        raise ValidationError(f"Status must be one of: {', '.join(STREET_STATUSES)} (received {status!r})")
    slot_number = (slot_number or "").strip().upper()
    now = now or datetime.now(timezone.utc)
    slot = store.set_street_slot(slot_number, status, status == STREET_OCCUPIED, now)
    logger.info("Street slot %s -> %s", slot_number, status)
    return slot
