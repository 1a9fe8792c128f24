"""
Facility provisioning: slots (3 floors x 17), the single hourly rate row and the street slots.
Idempotent: only inserts what is missing, never touches bookings or slot status.
"""
import logging
from decimal import Decimal
from typing import Iterable

from parking.core.constants import FACILITY_FLOORS, SLOTS_PER_FLOOR, STREET_SLOT_NUMBERS, slot_number_for
from parking.models.rate import Rate
from parking.models.slot import Slot
from parking.models.street_slot import StreetSlot
from parking.services.storage.sql import SqlStore

logger = logging.getLogger(__name__)


def provision_database(
    store: SqlStore,
    floors: Iterable[int] = FACILITY_FLOORS,
    slots_per_floor: int = SLOTS_PER_FLOOR,
    street_slot_numbers: Iterable[str] = STREET_SLOT_NUMBERS,
    default_rate_per_hour: Decimal = Decimal("50.00"),
) -> dict[str, int]:
    """Create missing slots, rate and street slots. Returns dict of table -> inserted count."""
    inserted = {"slots": 0, "rates": 0, "street_slots": 0}
    with store.unit_of_work() as uow:
        db = uow.session
        existing = {n for (n,) in db.query(Slot.slot_number).all()}
        for floor in floors:
            for i in range(1, slots_per_floor + 1):
                number = slot_number_for(floor, i)
                if number not in existing:
                    db.add(Slot(slot_number=number, floor_number=floor))
                    inserted["slots"] += 1
        if db.query(Rate).count() == 0:
            db.add(Rate(rate_per_hour=default_rate_per_hour, is_active=True))
            inserted["rates"] = 1
        existing_street = {n for (n,) in db.query(StreetSlot.slot_number).all()}
        for number in street_slot_numbers:
            if number not in existing_street:
                db.add(StreetSlot(slot_number=number))
                inserted["street_slots"] += 1
    if any(inserted.values()):
        logger.info(
            "provision_database: inserted slots=%s rates=%s street_slots=%s",
            inserted["slots"], inserted["rates"], inserted["street_slots"],
        )
    return inserted
