# providers/tests/test_api.py

from decimal import Decimal

from django.contrib.auth.models import User
from django.test import TestCase
from rest_framework.test import APIClient

from booking.models import Booking
from providers.models import Artist, Rating, Studio
from providers.services.availability_template import AvailabilityTemplate

MONDAY = "2030-01-07"


class ProviderApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()

        self.admin_user = User.objects.create_user(username="admin", password="pass123", is_staff=True)
        self.owner = User.objects.create_user(username="sarah", password="pass123")
        self.fan = User.objects.create_user(username="john", password="pass123")
        self.other_fan = User.objects.create_user(username="jane", password="pass123")

        self.artist = Artist.objects.create(
            user=self.owner, name="Sarah Wilson", hourly_rate=Decimal("2500.00"), genres="Rock, Pop"
        )
        AvailabilityTemplate(self.artist).set_day("Monday", [
            {"start_time": "09:00", "end_time": "12:00"},
            {"start_time": "14:00", "end_time": "18:00"},
        ])

        studio_owner = User.objects.create_user(username="studio1", password="pass123")
        self.studio = Studio.objects.create(
            user=studio_owner, name="Studio One Recording", hourly_rate=Decimal("5000.00"), city="Colombo"
        )

    def as_user(self, user):
        self.client.force_authenticate(user=user)
        return self.client

    def test_list_and_detail(self):
        api = self.as_user(self.fan)
        resp = api.get("/api/artists/")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual([a["name"] for a in resp.data], ["Sarah Wilson"])

        resp = api.get(f"/api/studios/{self.studio.id}/")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["city"], "Colombo")
        self.assertEqual(resp.data["average_rating"], "0.0")

    def test_listing_is_read_only(self):
        resp = self.as_user(self.admin_user).post("/api/artists/", {"name": "X", "hourly_rate": "1"}, format="json")
        self.assertEqual(resp.status_code, 405)

    def test_slots_for_monday(self):
        resp = self.as_user(self.fan).get(f"/api/artists/{self.artist.id}/slots/", {"date": MONDAY})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["day"], "Monday")
        self.assertEqual(
            resp.data["slots"],
            ["09:00", "10:00", "11:00", "14:00", "15:00", "16:00", "17:00"],
        )

    def test_slots_custom_duration_and_hide_booked(self):
        Booking.objects.create(
            client=self.fan,
            artist=self.artist,
            date=MONDAY,
            start_time="09:00",
            end_time="10:00",
            duration_hours=Decimal("1.00"),
            hourly_rate=Decimal("2500.00"),
            service_fee_percent=Decimal("5"),
            base_cost=Decimal("2500.00"),
            service_fee=Decimal("125.00"),
            total_cost=Decimal("2625.00"),
        )
        url = f"/api/artists/{self.artist.id}/slots/"
        resp = self.as_user(self.fan).get(url, {"date": MONDAY, "duration": 90})
        self.assertEqual(resp.data["slots"], ["09:00", "10:30", "14:00", "15:30"])

        resp = self.as_user(self.fan).get(url, {"date": MONDAY, "duration": 90, "hide_booked": "1"})
        self.assertEqual(resp.data["slots"], ["10:30", "14:00", "15:30"])

    def test_slots_bad_input(self):
        url = f"/api/artists/{self.artist.id}/slots/"
        api = self.as_user(self.fan)
        self.assertEqual(api.get(url).status_code, 400)
        self.assertEqual(api.get(url, {"date": "07-01-2030"}).data["code"], "malformed_time")
        self.assertEqual(api.get(url, {"date": MONDAY, "duration": "0"}).data["code"], "invalid_slot_duration")
        self.assertEqual(api.get(url, {"date": MONDAY, "duration": "abc"}).status_code, 400)
        self.assertEqual(api.get("/api/artists/9999/slots/", {"date": MONDAY}).status_code, 404)

    def test_closed_day_has_no_slots(self):
        resp = self.as_user(self.fan).get(f"/api/studios/{self.studio.id}/slots/", {"date": MONDAY})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["slots"], [])

    def test_get_availability(self):
        resp = self.as_user(self.fan).get(f"/api/artists/{self.artist.id}/availability/")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["availability"][0]["day"], "Monday")
        self.assertEqual(len(resp.data["availability"][0]["slots"]), 2)

    def test_owner_replaces_availability(self):
        url = f"/api/artists/{self.artist.id}/availability/"
        payload = {"availability": [
            {"day": "wednesday", "slots": [{"start_time": "10:00", "end_time": "14:00"}]},
        ]}
        resp = self.as_user(self.owner).put(url, payload, format="json")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(
            resp.data["availability"],
            [{"day": "Wednesday", "slots": [{"start_time": "10:00", "end_time": "14:00", "is_available": True}]}],
        )

    def test_owner_sets_single_day(self):
        url = f"/api/artists/{self.artist.id}/availability/"
        resp = self.as_user(self.owner).put(
            url, {"day": "Friday", "slots": [{"start_time": "18:00", "end_time": "22:00"}]}, format="json"
        )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual([d["day"] for d in resp.data["availability"]], ["Monday", "Friday"])

    def test_availability_write_permissions_and_validation(self):
        url = f"/api/artists/{self.artist.id}/availability/"
        payload = {"day": "Friday", "slots": [{"start_time": "18:00", "end_time": "22:00"}]}
        self.assertEqual(self.as_user(self.fan).put(url, payload, format="json").status_code, 403)
        self.assertEqual(self.as_user(self.admin_user).put(url, payload, format="json").status_code, 200)

        bad = {"day": "Friday", "slots": [{"start_time": "22:00", "end_time": "18:00"}]}
        resp = self.as_user(self.owner).put(url, bad, format="json")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.data["code"], "invalid_interval")

        dup = {"availability": [{"day": "Monday", "slots": []}, {"day": "Monday", "slots": []}]}
        resp = self.as_user(self.owner).put(url, dup, format="json")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.data["code"], "duplicate_day")

    def test_rate_provider(self):
        url = f"/api/artists/{self.artist.id}/ratings/"
        resp = self.as_user(self.fan).post(url, {"rating": 5, "review": "Amazing"}, format="json")
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.data["average_rating"], "5.0")
        self.assertEqual(resp.data["review_count"], 1)

        resp = self.as_user(self.other_fan).post(url, {"rating": 4}, format="json")
        self.assertEqual(resp.data["average_rating"], "4.5")

        resp = self.as_user(self.fan).post(url, {"rating": 1}, format="json")
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.data["code"], "duplicate_rating")

        resp = self.as_user(self.fan).get(url)
        self.assertEqual(len(resp.data), 2)

    def test_remove_rating_permissions(self):
        self.as_user(self.fan).post(f"/api/artists/{self.artist.id}/ratings/", {"rating": 2}, format="json")
        rating = Rating.objects.get(user=self.fan)
        url = f"/api/artists/{self.artist.id}/ratings/{rating.id}/"

        self.assertEqual(self.as_user(self.other_fan).delete(url).status_code, 403)
        self.assertEqual(self.as_user(self.fan).delete(url).status_code, 204)
        self.assertEqual(self.as_user(self.fan).delete(url).status_code, 404)

        self.artist.refresh_from_db()
        self.assertEqual(self.artist.review_count, 0)
        self.assertEqual(self.artist.average_rating, Decimal("0.0"))
