"""
Live updates: every connected observer (WebSocket client) gets full snapshots, never deltas.

On connect an observer receives the current snapshot; after every committed mutation the API
schedules publish(), which sends three messages to all observers:
  availabilityUpdated  {total, available, booked, occupied}
  bookingsUpdated      [booking, ...] newest first, with slot number/floor
  slotsUpdated         [street slot, ...]
Delivery is best effort: an observer whose send fails is dropped and must reconnect.

Snapshots are built and sent under one asyncio lock, so observers receive them in the order they
were read. A publish that waited on the lock is skipped when a snapshot read after it was requested
has already gone out.
"""
import asyncio
import logging
from typing import Any, Protocol

from starlette.concurrency import run_in_threadpool

from parking.core.constants import EVENT_AVAILABILITY, EVENT_BOOKINGS, EVENT_STREET_SLOTS
from parking.services.storage.base import ParkingStore

logger = logging.getLogger(__name__)


class Observer(Protocol):
    """Anything that can receive JSON messages (starlette WebSocket in production)."""

    async def accept(self) -> None:
        ...

    async def send_json(self, data: Any) -> None:
        ...


class ChangeNotifier:
    def __init__(self, store: ParkingStore):
        self.store = store
        self._observers: set[Observer] = set()
        self._lock = asyncio.Lock()
        # publish() calls requested so far, and the request count covered by the last delivered snapshot
        self._requested = 0
        self._delivered = 0

    @property
    def observer_count(self) -> int:
        return len(self._observers)

    def build_snapshot(self) -> list[dict[str, Any]]:
        """Availability, bookings and street slots read back to back (blocking; run off the event loop)."""
        availability = self.store.aggregate_counts()
        bookings = [b.to_dict() for b in self.store.list_bookings()]
        street_slots = [s.to_dict() for s in self.store.list_street_slots()]
        return [
            {"event": EVENT_AVAILABILITY, "data": availability},
            {"event": EVENT_BOOKINGS, "data": bookings},
            {"event": EVENT_STREET_SLOTS, "data": street_slots},
        ]

    async def connect(self, observer: Observer) -> None:
        """Register an observer and send it the current snapshot."""
        await observer.accept()
        async with self._lock:
            self._observers.add(observer)
            logger.info("Observer connected (total: %s)", self.observer_count)
            try:
                messages = await run_in_threadpool(self.build_snapshot)
            except Exception as e:
                logger.warning("Initial snapshot failed: %s", e, exc_info=True)
                return
            await self._deliver([observer], messages)

    def disconnect(self, observer: Observer) -> None:
        if observer in self._observers:
            self._observers.discard(observer)
            logger.info("Observer disconnected (total: %s)", self.observer_count)

    async def publish(self) -> int:
        """
        Send a fresh snapshot to every observer. Returns the number of observers reached.
        When a newer snapshot already covered this call while it waited, nothing is sent again
        and the current observer count is returned.
        """
        if not self._observers:
            return 0
        self._requested += 1
        ticket = self._requested
        async with self._lock:
            if self._delivered >= ticket:
                logger.debug("publish: request %s already covered by snapshot %s", ticket, self._delivered)
                return self.observer_count
            covers = self._requested
            try:
                messages = await run_in_threadpool(self.build_snapshot)
            except Exception as e:
                logger.warning("publish: snapshot failed, nothing sent: %s", e, exc_info=True)
                return 0
            reached = await self._deliver(list(self._observers), messages)
            self._delivered = covers
            return reached

    async def _deliver(self, observers: list[Observer], messages: list[dict[str, Any]]) -> int:
        reached = 0
        for observer in observers:
            try:
                for message in messages:
                    await observer.send_json(message)
                reached += 1
            except Exception as e:
                logger.warning("Dropping observer after failed send: %s", e)
                self.disconnect(observer)
        logger.debug("Snapshot delivered to %s/%s observers", reached, len(observers))
        return reached
