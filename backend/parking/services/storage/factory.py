"""Select the storage backend at startup: database, memory, or auto (database if reachable)."""
import logging
from decimal import Decimal

from parking.config import Settings
from parking.core.constants import FACILITY_FLOORS, SLOTS_PER_FLOOR, STREET_SLOT_NUMBERS
from parking.db.session import make_engine
from parking.services.storage.base import ParkingStore
from parking.services.storage.memory import MemoryStore
from parking.services.storage.sql import SqlStore

logger = logging.getLogger(__name__)


def memory_store_from_settings(settings: Settings) -> MemoryStore:
    return MemoryStore.with_layout(
        FACILITY_FLOORS,
        SLOTS_PER_FLOOR,
        STREET_SLOT_NUMBERS,
        rate_per_hour=Decimal(str(settings.default_rate_per_hour)),
    )


def build_store(settings: Settings) -> ParkingStore:
    """
    Build the store named by settings.storage_backend.
    'database' raises if the database is unreachable; 'auto' logs a warning and falls back to memory.
    """
    if settings.storage_backend == "memory":
        logger.info("Storage: in-memory (configured)")
        return memory_store_from_settings(settings)
    try:
        store = SqlStore(make_engine(settings.database_url))
        store.ping()
    except Exception as e:
        if settings.storage_backend == "database":
            raise
        logger.warning("Database unavailable (%s); using in-memory storage", e)
        return memory_store_from_settings(settings)
    if settings.seed_on_startup:
        from parking.services.provisioning import provision_database

        provision_database(store, default_rate_per_hour=Decimal(str(settings.default_rate_per_hour)))
    logger.info("Storage: database")
    return store
