from datetime import time

from django.core.cache import cache
from django.test import TestCase
from rest_framework.test import APIClient

from reservations.models import CustomUser, Reservation, ScheduleConfig
from reservations.throttling import BookingRateThrottle

from .factories import (
    SYNC_NOTIFICATIONS,
    future_date,
    make_reservation,
    make_restaurant,
    make_table,
    make_user,
)


class APITestBase(TestCase):
    def setUp(self):
        cache.clear()
        self.client = APIClient()
        self.day = future_date()
        self.restaurant = make_restaurant(start=time(10, 0), end=time(14, 0))
        self.small = make_table(self.restaurant, "A1", 2, zone="Window", translations={"fr": {"zone": "Fenêtre"}})
        self.large = make_table(self.restaurant, "B1", 4)

    def availability_url(self, restaurant=None):
        return f"/api/v1/restaurants/{(restaurant or self.restaurant).pk}/availability/"

    def booking_payload(self, **overrides):
        payload = {
            "restaurantId": self.restaurant.pk,
            "date": self.day.isoformat(),
            "startTime": "11:30",
            "partySize": 2,
            "guestName": "Grace Hopper",
            "guestEmail": "grace@guest.test",
            "guestPhone": "+15551234567",
            "language": "fr",
        }
        payload.update(overrides)
        return payload


class AvailabilityAPITests(APITestBase):
    def test_time_slots(self):
        response = self.client.get(self.availability_url(), {"date": self.day.isoformat(), "guests": 2})
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["slotDuration"], 90)
        self.assertEqual(body["guests"], 2)
        self.assertEqual(
            body["timeSlots"],
            [
                {"time": "10:00", "available": True, "availableTables": 2},
                {"time": "11:30", "available": True, "availableTables": 2},
            ],
        )

    def test_guests_defaults_to_two(self):
        response = self.client.get(self.availability_url(), {"date": self.day.isoformat()})
        self.assertEqual(response.json()["guests"], 2)

    def test_party_too_large_returns_empty_list_with_message(self):
        response = self.client.get(self.availability_url(), {"date": self.day.isoformat(), "guests": 9})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["timeSlots"], [])
        self.assertIn("message", response.json())

    def test_tables_for_time(self):
        make_reservation(self.small, self.day, time(10, 0))
        response = self.client.get(
            self.availability_url(),
            {"date": self.day.isoformat(), "time": "10:00", "guests": 2, "lang": "fr"},
        )
        self.assertEqual(response.status_code, 200)
        tables = response.json()["tables"]
        self.assertEqual([(t["number"], t["available"]) for t in tables], [("A1", False), ("B1", True)])
        self.assertEqual(tables[0]["zone"], "Fenêtre")
        self.assertIsNone(tables[1]["zone"])

    def test_missing_date(self):
        response = self.client.get(self.availability_url(), {"guests": 2})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["code"], "invalid_input")

    def test_disabled_restaurant(self):
        ScheduleConfig.objects.filter(restaurant=self.restaurant).update(reservations_enabled=False)
        response = self.client.get(self.availability_url(), {"date": self.day.isoformat()})
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()["code"], "reservations_disabled")

    def test_unknown_restaurant(self):
        response = self.client.get("/api/v1/restaurants/999999/availability/", {"date": self.day.isoformat()})
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["code"], "not_found")


@SYNC_NOTIFICATIONS
class BookingAPITests(APITestBase):
    def post(self, **overrides):
        return self.client.post("/api/v1/bookings/", self.booking_payload(**overrides), format="json")

    def test_create(self):
        response = self.post()
        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertEqual(body["status"], "confirmed")
        self.assertEqual(body["tableNumber"], "A1")
        self.assertEqual(body["startTime"], "11:30")
        self.assertEqual(body["duration"], 90)
        self.assertEqual(body["partySize"], 2)
        self.assertEqual(body["language"], "fr")
        self.assertTrue(Reservation.objects.filter(pk=body["id"]).exists())

    def test_slot_taken(self):
        self.assertEqual(self.post(tableId=self.small.pk).status_code, 201)
        response = self.post(tableId=self.small.pk)
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()["code"], "no_availability")

    def test_table_too_small(self):
        response = self.post(tableId=self.small.pk, partySize=3)
        self.assertEqual(response.status_code, 422)
        self.assertEqual(response.json()["code"], "table_unsuitable")

    def test_disabled(self):
        ScheduleConfig.objects.filter(restaurant=self.restaurant).update(reservations_enabled=False)
        response = self.post()
        self.assertEqual(response.status_code, 403)

    def test_unknown_restaurant(self):
        response = self.post(restaurantId=999999)
        self.assertEqual(response.status_code, 404)

    def test_invalid_fields(self):
        response = self.post(guestEmail="not-an-email", partySize=2)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["code"], "invalid_input")
        self.assertIn("guestEmail", response.json()["detail"])

    def test_non_string_guest_name(self):
        response = self.post(guestName={"first": "Grace"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["code"], "invalid_input")
        self.assertIn("guestName", response.json()["detail"])
        self.assertFalse(Reservation.objects.exists())

    def test_numeric_guest_email(self):
        response = self.post(guestEmail=12345)
        self.assertEqual(response.status_code, 400)
        self.assertIn("guestEmail", response.json()["detail"])

    def test_malformed_party_size_and_start(self):
        response = self.post(partySize=[2], startTime="half past seven")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(set(response.json()["detail"]), {"partySize", "startTime"})

    def test_disabled_restaurant_is_reported_before_bad_body(self):
        ScheduleConfig.objects.filter(restaurant=self.restaurant).update(reservations_enabled=False)
        response = self.post(guestName={"first": "Grace"})
        self.assertEqual(response.status_code, 403)

    def test_missing_restaurant(self):
        payload = self.booking_payload()
        del payload["restaurantId"]
        response = self.client.post("/api/v1/bookings/", payload, format="json")
        self.assertEqual(response.status_code, 400)

    def test_outside_hours(self):
        response = self.post(startTime="13:00")
        self.assertEqual(response.status_code, 400)

    def test_rate_limited(self):
        for _ in range(5):
            self.assertNotEqual(self.post(guestEmail="bad").status_code, 429)
        response = self.post()
        self.assertEqual(response.status_code, 429)
        self.assertEqual(response.json()["code"], "throttled")
        self.assertFalse(Reservation.objects.exists())


@SYNC_NOTIFICATIONS
class StaffAPITests(APITestBase):
    def setUp(self):
        super().setUp()
        self.host = make_user(self.restaurant, role=CustomUser.Roles.HOST)
        self.pending = make_reservation(self.small, self.day, time(10, 0), status=Reservation.Status.PENDING)

    def status_url(self, reservation=None):
        return f"/api/v1/reservations/{(reservation or self.pending).pk}/status/"

    def test_host_approves(self):
        self.client.force_authenticate(self.host)
        response = self.client.patch(self.status_url(), {"status": "confirmed"}, format="json")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "confirmed")

    def test_status_change_with_notes(self):
        self.client.force_authenticate(self.host)
        response = self.client.patch(
            self.status_url(), {"status": "confirmed", "notes": "Seat by the window"}, format="json"
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["notes"], "Seat by the window")
        self.pending.refresh_from_db()
        self.assertEqual(self.pending.notes, "Seat by the window")

    def test_forbidden_transition(self):
        self.client.force_authenticate(self.host)
        self.client.patch(self.status_url(), {"status": "cancelled"}, format="json")
        response = self.client.patch(self.status_url(), {"status": "confirmed"}, format="json")
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()["code"], "invalid_transition")

    def test_unknown_status_value(self):
        self.client.force_authenticate(self.host)
        response = self.client.patch(self.status_url(), {"status": "seated"}, format="json")
        self.assertEqual(response.status_code, 400)

    def test_anonymous_and_plain_staff_are_refused(self):
        response = self.client.patch(self.status_url(), {"status": "confirmed"}, format="json")
        self.assertIn(response.status_code, (401, 403))
        self.client.force_authenticate(make_user(self.restaurant, role=CustomUser.Roles.STAFF))
        response = self.client.patch(self.status_url(), {"status": "confirmed"}, format="json")
        self.assertEqual(response.status_code, 403)

    def test_other_restaurant_cannot_touch_reservation(self):
        outsider = make_user(make_restaurant(), role=CustomUser.Roles.OWNER)
        self.client.force_authenticate(outsider)
        response = self.client.patch(self.status_url(), {"status": "confirmed"}, format="json")
        self.assertEqual(response.status_code, 404)
        self.pending.refresh_from_db()
        self.assertEqual(self.pending.status, Reservation.Status.PENDING)

    def test_list_is_scoped_to_restaurant(self):
        other = make_restaurant()
        make_reservation(make_table(other, "Z1", 2), self.day, time(10, 0))
        self.client.force_authenticate(self.host)
        response = self.client.get("/api/v1/reservations/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual([r["id"] for r in response.json()], [str(self.pending.pk)])

    def test_list_filters(self):
        make_reservation(self.large, self.day, time(11, 30))
        self.client.force_authenticate(self.host)
        response = self.client.get("/api/v1/reservations/", {"status": "pending"})
        self.assertEqual(len(response.json()), 1)
        response = self.client.get("/api/v1/reservations/", {"date": self.day.isoformat()})
        self.assertEqual(len(response.json()), 2)


class BookingRateThrottleTests(TestCase):
    def setUp(self):
        cache.clear()

    def test_allow_counts_per_key(self):
        throttle = BookingRateThrottle()
        self.assertEqual([throttle.allow("10.0.0.1") for _ in range(6)], [True] * 5 + [False])
        self.assertTrue(BookingRateThrottle().allow("10.0.0.2"))
