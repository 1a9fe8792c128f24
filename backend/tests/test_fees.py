"""Fee rule: elapsed time rounded up to whole hours, minimum one hour."""
import unittest
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from parking.core.errors import InvalidStateError, NotFoundError, ValidationError
from parking.services.allocation import allocate
from parking.services.fees import billed_hours, compute_fee, quote_fee
from parking.services.lifecycle import cancel, complete
from tests.helpers import T0, memory_store, walkin


class ComputeFeeTests(unittest.TestCase):
    def test_short_stay_bills_minimum_hour(self):
        self.assertEqual(compute_fee(T0, T0 + timedelta(minutes=45), 50), Decimal("50.00"))

    def test_partial_hours_round_up(self):
        self.assertEqual(compute_fee(T0, T0 + timedelta(hours=2, minutes=15), 50), Decimal("150.00"))

    def test_exact_hours_not_rounded_further(self):
        self.assertEqual(billed_hours(T0, T0 + timedelta(hours=2)), 2)
        self.assertEqual(billed_hours(T0, T0 + timedelta(hours=2, seconds=1)), 3)

    def test_as_of_before_arrival_bills_one_hour(self):
        self.assertEqual(compute_fee(T0, T0 - timedelta(minutes=10), 50), Decimal("50.00"))

    def test_zero_elapsed_bills_one_hour(self):
        self.assertEqual(billed_hours(T0, T0), 1)

    def test_naive_datetimes_treated_as_utc(self):
        naive = datetime(2026, 3, 2, 10, 0)
        self.assertEqual(billed_hours(naive, T0 + timedelta(minutes=90)), 2)

    def test_fractional_rate_quantized_to_cents(self):
        self.assertEqual(compute_fee(T0, T0 + timedelta(minutes=30), Decimal("12.345")), Decimal("12.35"))

    def test_negative_rate_rejected(self):
        with self.assertRaises(ValidationError):
            compute_fee(T0, T0 + timedelta(hours=1), -1)


class QuoteFeeTests(unittest.TestCase):
    def setUp(self):
        self.store = memory_store()

    def test_quote_for_open_booking(self):
        allocation = allocate(self.store, walkin(), now=T0)
        quote = quote_fee(self.store, allocation.booking.id, as_of=T0 + timedelta(hours=1, minutes=5))
        self.assertEqual(quote["hours"], 2)
        self.assertEqual(quote["rate_per_hour"], 50.0)
        self.assertEqual(quote["amount"], 100.0)

    def test_quote_unknown_booking(self):
        with self.assertRaises(NotFoundError):
            quote_fee(self.store, 999, as_of=datetime.now(timezone.utc))

    def test_completed_booking_quotes_recorded_charge(self):
        allocation = allocate(self.store, walkin(), now=T0)
        complete(self.store, allocation.booking.id, amount=75, now=T0 + timedelta(minutes=30))

        quote = quote_fee(self.store, allocation.booking.id, as_of=T0 + timedelta(hours=5))

        self.assertTrue(quote["settled"])
        self.assertEqual(quote["amount"], 75.0)
        self.assertEqual(quote["hours"], 1)
        self.assertEqual(quote["as_of"], (T0 + timedelta(minutes=30)).isoformat())

    def test_cancelled_booking_has_no_fee(self):
        allocation = allocate(self.store, walkin(), now=T0)
        cancel(self.store, allocation.booking.id, now=T0 + timedelta(minutes=5))
        with self.assertRaises(InvalidStateError):
            quote_fee(self.store, allocation.booking.id)

    def test_open_booking_quote_is_not_settled(self):
        allocation = allocate(self.store, walkin(), now=T0)
        self.assertFalse(quote_fee(self.store, allocation.booking.id, as_of=T0)["settled"])
