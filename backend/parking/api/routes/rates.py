"""Parking rate: one hourly rate for all vehicles (admin)."""
import logging
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from parking.api.deps import get_store
from parking.core.errors import parking_error_to_http
from parking.services.rates import get_current_rate, update_rate
from parking.services.storage.base import ParkingStore

router = APIRouter()
logger = logging.getLogger(__name__)


class RateBody(BaseModel):
    rate_per_hour: float = Field(..., gt=0)


@router.get("/rate")
def get_rate(store: ParkingStore = Depends(get_store)) -> dict[str, Any]:
    return get_current_rate(store).to_dict()


@router.put("/rate")
def put_rate(body: RateBody, store: ParkingStore = Depends(get_store)) -> dict[str, Any]:
    """Update the hourly rate in place. Applies to checkouts from now on."""
    try:
        rate = update_rate(store, body.rate_per_hour)
    except Exception as e:
        logger.info("Rate update failed: %s", e)
        raise parking_error_to_http(e) from e
    return {**rate.to_dict(), "message": "Rate updated successfully"}
