"""
Street parking: slot listing and occupancy reports from the external sensor (PUT /slots/{slot_number}).
"""
import logging
from typing import Any

from fastapi import APIRouter, BackgroundTasks, Depends
from pydantic import BaseModel

from parking.api.deps import get_notifier, get_store
from parking.core.errors import parking_error_to_http
from parking.services.notifier import ChangeNotifier
from parking.services.storage.base import ParkingStore
from parking.services.street import list_street_slots, set_street_occupancy

router = APIRouter()
logger = logging.getLogger(__name__)


class OccupancyBody(BaseModel):
    status: str  # available | occupied; checked in set_street_occupancy


@router.get("/slots")
def get_street_slots(store: ParkingStore = Depends(get_store)) -> list[dict[str, Any]]:
    return [s.to_dict() for s in list_street_slots(store)]


@router.put("/slots/{slot_number}")
def report_occupancy(
    slot_number: str,
    body: OccupancyBody,
    background_tasks: BackgroundTasks,
    store: ParkingStore = Depends(get_store),
    notifier: ChangeNotifier = Depends(get_notifier),
) -> dict[str, Any]:
    """Sensor report: set a street slot available or occupied, then notify live observers."""
    try:
        slot = set_street_occupancy(store, slot_number, body.status)
    except Exception as e:
        logger.info("Street slot %s update rejected: %s", slot_number, e)
        raise parking_error_to_http(e) from e
    background_tasks.add_task(notifier.publish)
    return {
        "success": True,
        "message": f"Slot {slot.slot_number} status updated to {slot.status}",
        "slot": slot.to_dict(),
        "clients_notified": notifier.observer_count,
    }
