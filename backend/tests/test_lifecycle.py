"""Booking lifecycle: check-in, checkout, cancel."""
import unittest
from datetime import timedelta
from decimal import Decimal
from unittest.mock import patch

from parking.core.constants import (
    PAYMENT_ACTIVE,
    PAYMENT_CANCELLED,
    PAYMENT_COMPLETED,
    PAYMENT_PENDING,
    SLOT_AVAILABLE,
    SLOT_OCCUPIED,
)
from parking.core.errors import InvalidStateError, NotFoundError, ValidationError
from parking.services.allocation import allocate
from parking.services.lifecycle import cancel, check_in, complete
from parking.services.rates import update_rate
from parking.services.storage.types import RateRecord
from tests.helpers import T0, MemoryStoreMixin, SqliteStoreMixin, in_minutes, scheduled, walkin


class LifecycleTestsMixin:
    def slot_status(self, slot_id):
        with self.store.unit_of_work() as uow:
            return uow.get_slot(slot_id).status

    def test_complete_active_booking_with_amount(self):
        allocation = allocate(self.store, walkin(), now=T0)
        booking = complete(self.store, allocation.booking.id, amount=75, now=in_minutes(90))

        self.assertEqual(booking.payment_status, PAYMENT_COMPLETED)
        self.assertEqual(booking.amount, Decimal("75.00"))
        self.assertEqual(booking.departure_time, in_minutes(90))
        self.assertEqual(self.slot_status(allocation.slot.id), SLOT_AVAILABLE)
        self.assertEqual(self.store.get_booking(allocation.booking.id).payment_status, PAYMENT_COMPLETED)

    def test_complete_computes_amount_when_omitted(self):
        allocation = allocate(self.store, walkin(), now=T0)
        booking = complete(self.store, allocation.booking.id, now=T0 + timedelta(hours=2, minutes=15))
        self.assertEqual(booking.amount, Decimal("150.00"))

    def test_complete_pending_booking_allowed(self):
        allocation = allocate(self.store, scheduled(in_minutes(10)), now=T0)
        booking = complete(self.store, allocation.booking.id, now=in_minutes(40))

        self.assertEqual(booking.payment_status, PAYMENT_COMPLETED)
        self.assertEqual(booking.amount, Decimal("50.00"))
        self.assertEqual(self.store.aggregate_counts()["booked"], 0)

    def test_complete_twice_is_rejected_and_state_unchanged(self):
        allocation = allocate(self.store, walkin(), now=T0)
        first = complete(self.store, allocation.booking.id, amount=50, now=in_minutes(30))

        with self.assertRaises(InvalidStateError):
            complete(self.store, allocation.booking.id, amount=500, now=in_minutes(300))

        stored = self.store.get_booking(allocation.booking.id)
        self.assertEqual(stored.amount, first.amount)
        self.assertEqual(stored.departure_time, first.departure_time)

    def test_amount_below_one_hour_rejected(self):
        allocation = allocate(self.store, walkin(), now=T0)
        with self.assertRaises(ValidationError):
            complete(self.store, allocation.booking.id, amount=10, now=in_minutes(30))
        with self.assertRaises(ValidationError):
            complete(self.store, allocation.booking.id, amount="lots", now=in_minutes(30))

        stored = self.store.get_booking(allocation.booking.id)
        self.assertEqual(stored.payment_status, PAYMENT_ACTIVE)
        self.assertEqual(self.slot_status(allocation.slot.id), SLOT_OCCUPIED)

    def test_checkout_uses_rate_read_with_the_transition(self):
        allocation = allocate(self.store, walkin(), now=T0)
        outdated = RateRecord(id=1, rate_per_hour=Decimal("10.00"))

        with patch.object(self.store, "get_rate", return_value=outdated):
            with self.assertRaises(ValidationError):
                complete(self.store, allocation.booking.id, amount=20, now=in_minutes(30))
            booking = complete(self.store, allocation.booking.id, now=in_minutes(30))

        self.assertEqual(booking.amount, Decimal("50.00"))

    def test_checkout_minimum_follows_rate_update(self):
        allocation = allocate(self.store, walkin(), now=T0)
        update_rate(self.store, 80)
        with self.assertRaises(ValidationError):
            complete(self.store, allocation.booking.id, amount=60, now=in_minutes(30))
        booking = complete(self.store, allocation.booking.id, amount=80, now=in_minutes(30))
        self.assertEqual(booking.amount, Decimal("80.00"))

    def test_complete_unknown_booking(self):
        with self.assertRaises(NotFoundError):
            complete(self.store, 999, amount=50, now=T0)

    def test_cancel_pending_booking_releases_slot(self):
        allocation = allocate(self.store, scheduled(in_minutes(10)), now=T0)
        booking = cancel(self.store, allocation.booking.id, now=in_minutes(5))

        self.assertEqual(booking.payment_status, PAYMENT_CANCELLED)
        self.assertIsNone(booking.amount)
        self.assertEqual(booking.departure_time, in_minutes(5))
        self.assertEqual(self.slot_status(allocation.slot.id), SLOT_AVAILABLE)
        self.assertEqual(len(self.store.list_bookings()), 1)

    def test_cancel_terminal_booking_rejected(self):
        allocation = allocate(self.store, walkin(), now=T0)
        complete(self.store, allocation.booking.id, amount=50, now=in_minutes(30))
        with self.assertRaises(InvalidStateError):
            cancel(self.store, allocation.booking.id, now=in_minutes(31))

        cancelled = allocate(self.store, walkin(), now=T0)
        cancel(self.store, cancelled.booking.id, now=in_minutes(1))
        with self.assertRaises(InvalidStateError):
            complete(self.store, cancelled.booking.id, amount=50, now=in_minutes(2))

    def test_released_slot_is_allocated_again(self):
        first = allocate(self.store, walkin(), now=T0)
        complete(self.store, first.booking.id, amount=50, now=in_minutes(30))
        again = allocate(self.store, walkin(name="Next Driver"), now=in_minutes(31))
        self.assertEqual(again.slot.slot_number, first.slot.slot_number)

    def test_check_in_activates_pending_booking(self):
        allocation = allocate(self.store, scheduled(in_minutes(20)), now=T0)
        booking = check_in(self.store, allocation.booking.id, now=in_minutes(15))

        self.assertEqual(booking.payment_status, PAYMENT_ACTIVE)
        self.assertEqual(booking.arrival_time, in_minutes(15))
        self.assertEqual(self.slot_status(allocation.slot.id), SLOT_OCCUPIED)

    def test_check_in_active_booking_rejected(self):
        allocation = allocate(self.store, walkin(), now=T0)
        with self.assertRaises(InvalidStateError):
            check_in(self.store, allocation.booking.id, now=in_minutes(1))

    def test_bookings_listed_newest_first(self):
        older = allocate(self.store, walkin(name="First"), now=T0)
        newer = allocate(self.store, scheduled(in_minutes(20), name="Second"), now=in_minutes(5))
        ids = [b.id for b in self.store.list_bookings()]
        self.assertEqual(ids, [newer.booking.id, older.booking.id])
        self.assertEqual(self.store.list_bookings()[0].payment_status, PAYMENT_PENDING)


class MemoryLifecycleTests(MemoryStoreMixin, LifecycleTestsMixin, unittest.TestCase):
    pass


class SqliteLifecycleTests(SqliteStoreMixin, LifecycleTestsMixin, unittest.TestCase):
    pass
