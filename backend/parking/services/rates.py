"""
Hourly rate: one global rate for all vehicles. Canonical row is the lowest-id active row;
updates are in place (no history).
"""
import logging
from decimal import Decimal, InvalidOperation

from parking.config import settings
from parking.core.errors import ValidationError
from parking.services.storage.base import ParkingStore
from parking.services.storage.types import RateRecord

logger = logging.getLogger(__name__)


def rate_or_default(rate: RateRecord | None) -> RateRecord:
    """The stored rate, or the configured default when no rate row exists."""
    if rate is None:
        return RateRecord(id=None, rate_per_hour=Decimal(str(settings.default_rate_per_hour)))
    return rate


def get_current_rate(store: ParkingStore) -> RateRecord:
    return rate_or_default(store.get_rate())


def update_rate(store: ParkingStore, rate_per_hour: Decimal | int | float) -> RateRecord:
    try:
        value = Decimal(str(rate_per_hour)).quantize(Decimal("0.01"))
    except InvalidOperation as e:
        raise ValidationError(f"Invalid rate: {rate_per_hour!r}") from e
    if not value.is_finite() or value <= 0:
        raise ValidationError("Rate per hour must be greater than 0")
    rate = store.save_rate(value)
    logger.info("Rate updated to %s/hour", rate.rate_per_hour)
    return rate
