"""
Storage backends for slots, bookings, rates and street slots.
SqlStore (durable) and MemoryStore (fallback) implement the same ParkingStore contract,
so the booking engine never checks which one is active.
"""
from parking.services.storage.base import ParkingStore, UnitOfWork
from parking.services.storage.factory import build_store
from parking.services.storage.memory import MemoryStore
from parking.services.storage.sql import SqlStore
from parking.services.storage.types import BookingRecord, RateRecord, SlotRecord, StreetSlotRecord

__all__ = [
    "BookingRecord",
    "MemoryStore",
    "ParkingStore",
    "RateRecord",
    "SlotRecord",
    "SqlStore",
    "StreetSlotRecord",
    "UnitOfWork",
    "build_store",
]
