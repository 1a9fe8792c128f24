from parking.models.booking import Booking
from parking.models.rate import Rate
from parking.models.slot import Slot
from parking.models.street_slot import StreetSlot

__all__ = [
    "Booking",
    "Rate",
    "Slot",
    "StreetSlot",
]
