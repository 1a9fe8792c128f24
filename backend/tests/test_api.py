"""HTTP and WebSocket surface against an in-memory facility."""
import unittest
from datetime import datetime, timedelta, timezone

from fastapi.testclient import TestClient

from parking.main import create_app
from tests.helpers import memory_store

BOOKER = {"user_name": "John Doe", "vehicle_number": "mh01ab1234", "phone_number": "9876543210"}


def arrival_in(minutes: int) -> str:
    return (datetime.now(timezone.utc) + timedelta(minutes=minutes)).isoformat()


class ApiTestCase(unittest.TestCase):
    def setUp(self):
        self.store = memory_store(floors=(1,), slots_per_floor=2, street=("A1", "A2"))
        self.client = TestClient(create_app(store=self.store))
        self.client.__enter__()
        self.addCleanup(self.client.__exit__, None, None, None)

    def walk_in(self, **overrides):
        return self.client.post("/api/walkin-booking", json={**BOOKER, **overrides})


class HealthTests(ApiTestCase):
    def test_health_reports_storage_mode(self):
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["status"], "ok")
        self.assertEqual(body["storage_mode"], "memory")
        self.assertEqual(body["connected_clients"], 0)


class BookingApiTests(ApiTestCase):
    def test_availability(self):
        response = self.client.get("/api/availability")
        self.assertEqual(response.json(), {"total": 2, "available": 2, "booked": 0, "occupied": 0})

    def test_scheduled_booking(self):
        response = self.client.post("/api/book-parking", json={**BOOKER, "arrival_time": arrival_in(10)})

        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertEqual(body["slot_number"], "101")
        self.assertEqual(body["floor_number"], 1)
        self.assertEqual(body["booking"]["payment_status"], "pending")
        self.assertEqual(body["booking"]["vehicle_number"], "MH01AB1234")
        self.assertEqual(self.client.get("/api/availability").json()["booked"], 1)

    def test_scheduled_booking_outside_window(self):
        response = self.client.post("/api/book-parking", json={**BOOKER, "arrival_time": arrival_in(120)})
        self.assertEqual(response.status_code, 400)
        self.assertIn("30 minutes", response.json()["detail"])

        response = self.client.post("/api/book-parking", json={**BOOKER, "arrival_time": arrival_in(-10)})
        self.assertEqual(response.status_code, 400)

    def test_missing_fields_rejected(self):
        self.assertEqual(self.client.post("/api/book-parking", json=BOOKER).status_code, 422)
        self.assertEqual(self.client.post("/api/walkin-booking", json={"user_name": "X"}).status_code, 422)

    def test_walkin_until_full(self):
        self.assertEqual(self.walk_in().status_code, 201)
        self.assertEqual(self.walk_in().status_code, 201)

        response = self.walk_in()
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()["detail"], "No parking slots available")
        self.assertEqual(self.client.get("/api/availability").json()["occupied"], 2)

    def test_list_and_get_bookings(self):
        booking_id = self.walk_in().json()["booking_id"]

        listed = self.client.get("/api/bookings").json()
        self.assertEqual([b["id"] for b in listed], [booking_id])
        self.assertEqual(listed[0]["slot_number"], "101")

        self.assertEqual(self.client.get(f"/api/bookings/{booking_id}").json()["payment_status"], "active")
        self.assertEqual(self.client.get("/api/bookings/999").status_code, 404)

    def test_fee_quote(self):
        booking_id = self.walk_in().json()["booking_id"]
        body = self.client.get(f"/api/bookings/{booking_id}/fee").json()
        self.assertEqual(body["hours"], 1)
        self.assertEqual(body["amount"], 50.0)

    def test_fee_quote_for_cancelled_booking(self):
        booking_id = self.walk_in().json()["booking_id"]
        self.client.delete(f"/api/bookings/{booking_id}")
        self.assertEqual(self.client.get(f"/api/bookings/{booking_id}/fee").status_code, 409)

    def test_complete_with_amount(self):
        booking_id = self.walk_in().json()["booking_id"]

        response = self.client.put(f"/api/bookings/{booking_id}/complete", json={"amount": 50})
        self.assertEqual(response.status_code, 200)
        booking = response.json()["booking"]
        self.assertEqual(booking["payment_status"], "completed")
        self.assertEqual(booking["amount"], 50.0)
        self.assertIsNotNone(booking["departure_time"])
        self.assertEqual(self.client.get("/api/availability").json()["available"], 2)

        again = self.client.put(f"/api/bookings/{booking_id}/complete", json={"amount": 50})
        self.assertEqual(again.status_code, 409)

    def test_complete_without_body_computes_amount(self):
        booking_id = self.walk_in().json()["booking_id"]
        response = self.client.put(f"/api/bookings/{booking_id}/complete")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["booking"]["amount"], 50.0)

    def test_complete_amount_below_rate(self):
        booking_id = self.walk_in().json()["booking_id"]
        response = self.client.put(f"/api/bookings/{booking_id}/complete", json={"amount": 10})
        self.assertEqual(response.status_code, 400)

    def test_complete_unknown_booking(self):
        self.assertEqual(self.client.put("/api/bookings/999/complete", json={"amount": 50}).status_code, 404)

    def test_check_in_and_cancel(self):
        scheduled_id = self.client.post(
            "/api/book-parking", json={**BOOKER, "arrival_time": arrival_in(5)}
        ).json()["booking_id"]

        response = self.client.put(f"/api/bookings/{scheduled_id}/check-in")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["booking"]["payment_status"], "active")
        self.assertEqual(self.client.put(f"/api/bookings/{scheduled_id}/check-in").status_code, 409)

        response = self.client.delete(f"/api/bookings/{scheduled_id}")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["booking"]["payment_status"], "cancelled")
        self.assertIsNone(response.json()["booking"]["amount"])
        self.assertEqual(self.client.delete(f"/api/bookings/{scheduled_id}").status_code, 409)


class RateApiTests(ApiTestCase):
    def test_get_and_update_rate(self):
        self.assertEqual(self.client.get("/api/rate").json()["rate_per_hour"], 50.0)

        response = self.client.put("/api/rate", json={"rate_per_hour": 80})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["rate_per_hour"], 80.0)
        self.assertEqual(self.client.get("/api/rate").json()["rate_per_hour"], 80.0)

    def test_non_positive_rate_rejected(self):
        self.assertEqual(self.client.put("/api/rate", json={"rate_per_hour": 0}).status_code, 422)


class StreetApiTests(ApiTestCase):
    def test_list_street_slots(self):
        slots = self.client.get("/slots").json()
        self.assertEqual([s["slot_number"] for s in slots], ["A1", "A2"])

    def test_report_occupancy(self):
        response = self.client.put("/slots/A1", json={"status": "occupied"})

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertTrue(body["success"])
        self.assertTrue(body["slot"]["occupied"])
        self.assertEqual(body["clients_notified"], 0)

    def test_invalid_report(self):
        self.assertEqual(self.client.put("/slots/A1", json={"status": "reserved"}).status_code, 400)
        self.assertEqual(self.client.put("/slots/Z9", json={"status": "occupied"}).status_code, 404)


class LiveChannelTests(ApiTestCase):
    def receive_snapshot(self, websocket):
        return {m["event"]: m["data"] for m in (websocket.receive_json() for _ in range(3))}

    def test_snapshot_on_connect_and_after_change(self):
        with self.client.websocket_connect("/ws") as websocket:
            snapshot = self.receive_snapshot(websocket)
            self.assertEqual(snapshot["availabilityUpdated"]["available"], 2)
            self.assertEqual(snapshot["bookingsUpdated"], [])
            self.assertEqual(len(snapshot["slotsUpdated"]), 2)

            self.assertEqual(self.walk_in().status_code, 201)
            snapshot = self.receive_snapshot(websocket)
            self.assertEqual(snapshot["availabilityUpdated"]["occupied"], 1)
            self.assertEqual(len(snapshot["bookingsUpdated"]), 1)

            self.client.put("/slots/A2", json={"status": "occupied"})
            snapshot = self.receive_snapshot(websocket)
            street = {s["slot_number"]: s for s in snapshot["slotsUpdated"]}
            self.assertTrue(street["A2"]["occupied"])

    def test_binary_frames_are_ignored(self):
        with self.client.websocket_connect("/ws") as websocket:
            self.receive_snapshot(websocket)
            websocket.send_bytes(b"\x00\x01")
            websocket.send_text("ping")

            self.assertEqual(self.walk_in().status_code, 201)
            snapshot = self.receive_snapshot(websocket)
            self.assertEqual(snapshot["availabilityUpdated"]["occupied"], 1)
