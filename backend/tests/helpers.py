"""Shared fixtures: small facilities on both store backends."""
import os
import tempfile
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from parking.core.constants import BOOKING_SCHEDULED, BOOKING_WALKIN
from parking.db.session import make_engine
from parking.services.allocation import AllocationRequest
from parking.services.provisioning import provision_database
from parking.services.storage.memory import MemoryStore
from parking.services.storage.sql import SqlStore

T0 = datetime(2026, 3, 2, 10, 0, tzinfo=timezone.utc)
RATE = Decimal("50.00")


def memory_store(floors=(1, 2), slots_per_floor=2, street=("A1", "A2", "B1")) -> MemoryStore:
    return MemoryStore.with_layout(floors, slots_per_floor, street, rate_per_hour=RATE)


def sqlite_store(directory: str, floors=(1, 2), slots_per_floor=2, street=("A1", "A2", "B1")) -> SqlStore:
    store = SqlStore(make_engine(f"sqlite:///{os.path.join(directory, 'parking.db')}"))
    store.create_schema()
    provision_database(store, floors, slots_per_floor, street, default_rate_per_hour=RATE)
    return store


def walkin(name: str = "Jane Smith", vehicle: str = "MH02CD5678") -> AllocationRequest:
    return AllocationRequest(
        customer_name=name,
        vehicle_number=vehicle,
        phone_number="9876543211",
        booking_type=BOOKING_WALKIN,
    )


def scheduled(arrival: datetime, name: str = "John Doe", vehicle: str = "MH01AB1234") -> AllocationRequest:
    return AllocationRequest(
        customer_name=name,
        vehicle_number=vehicle,
        phone_number="9876543210",
        booking_type=BOOKING_SCHEDULED,
        arrival_time=arrival,
    )


def in_minutes(minutes: int, base: datetime = T0) -> datetime:
    return base + timedelta(minutes=minutes)


class MemoryStoreMixin:
    """Provides self.store backed by MemoryStore."""

    def make_store(self, **layout):
        return memory_store(**layout)

    def setUp(self):
        super().setUp()
        self.store = self.make_store()


class SqliteStoreMixin:
    """Provides self.store backed by a SQLite file in a temporary directory."""

    def make_store(self, **layout):
        store = sqlite_store(self._tmp.name, **layout)
        self._engines.append(store.engine)
        return store

    def setUp(self):
        super().setUp()
        self._tmp = tempfile.TemporaryDirectory()
        self._engines = []
        self.store = self.make_store()

    def tearDown(self):
        for engine in self._engines:
            engine.dispose()
        self._tmp.cleanup()
        super().tearDown()
