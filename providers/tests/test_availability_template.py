# providers/tests/test_availability_template.py

from decimal import Decimal

from django.contrib.auth.models import User
from django.test import TestCase

from booking.exceptions import DuplicateDay, InvalidDay, InvalidInterval, MalformedTime
from providers.models import Artist, AvailabilityDay, Studio
from providers.services.availability_template import (
    AvailabilityTemplate,
    WindowSpec,
    normalize_day,
    validate_window,
)


class WindowValidationTests(TestCase):
    def test_accepts_snake_and_camel_case(self):
        self.assertEqual(
            validate_window({"start_time": "09:00", "end_time": "12:00"}),
            WindowSpec("09:00", "12:00", True),
        )
        self.assertEqual(
            validate_window({"startTime": "14:00", "endTime": "18:00", "isAvailable": False}),
            WindowSpec("14:00", "18:00", False),
        )

    def test_rejects_malformed_times(self):
        for bad in ("9:00", "24:00", "12:60", "noon", "", None, 900):
            with self.assertRaises(MalformedTime):
                validate_window({"start_time": bad, "end_time": "23:00"})

    def test_rejects_empty_or_reversed_interval(self):
        with self.assertRaises(InvalidInterval):
            validate_window({"start_time": "12:00", "end_time": "12:00"})
        with self.assertRaises(InvalidInterval):
            validate_window({"start_time": "18:00", "end_time": "09:00"})

    def test_normalize_day(self):
        self.assertEqual(normalize_day("monday"), "Monday")
        self.assertEqual(normalize_day(" SUNDAY "), "Sunday")
        for bad in ("Funday", "", None, 1):
            with self.assertRaises(InvalidDay):
                normalize_day(bad)


class AvailabilityTemplateTests(TestCase):
    def setUp(self):
        owner = User.objects.create_user(username="sarah", password="pass123")
        self.artist = Artist.objects.create(user=owner, name="Sarah Wilson", hourly_rate=Decimal("2500.00"))
        self.template = AvailabilityTemplate(self.artist)

    def test_set_and_get_day_keep_order(self):
        self.template.set_day("monday", [
            {"start_time": "14:00", "end_time": "18:00"},
            {"start_time": "09:00", "end_time": "12:00"},
        ])
        self.assertEqual(
            self.template.get_day("Monday"),
            [WindowSpec("14:00", "18:00", True), WindowSpec("09:00", "12:00", True)],
        )

    def test_unset_day_is_empty(self):
        self.assertEqual(self.template.get_day("Friday"), [])

    def test_set_day_replaces_previous_windows(self):
        self.template.set_day("Monday", [{"start_time": "09:00", "end_time": "12:00"}])
        self.template.set_day("Monday", [{"start_time": "13:00", "end_time": "15:00"}])
        self.assertEqual(self.template.get_day("Monday"), [WindowSpec("13:00", "15:00", True)])

    def test_empty_list_clears_day(self):
        self.template.set_day("Monday", [{"start_time": "09:00", "end_time": "12:00"}])
        self.template.set_day("Monday", [])
        self.assertEqual(self.template.get_day("Monday"), [])
        self.assertFalse(AvailabilityDay.objects.filter(artist=self.artist).exists())

    def test_bad_window_writes_nothing(self):
        self.template.set_day("Monday", [{"start_time": "09:00", "end_time": "12:00"}])
        with self.assertRaises(InvalidInterval):
            self.template.set_day("Monday", [
                {"start_time": "13:00", "end_time": "15:00"},
                {"start_time": "17:00", "end_time": "16:00"},
            ])
        self.assertEqual(self.template.get_day("Monday"), [WindowSpec("09:00", "12:00", True)])

    def test_overlapping_windows_are_accepted(self):
        self.template.set_day("Monday", [
            {"start_time": "09:00", "end_time": "11:00"},
            {"start_time": "10:00", "end_time": "12:00"},
        ])
        self.assertEqual(len(self.template.get_day("Monday")), 2)

    def test_replace_all_clears_unlisted_days(self):
        self.template.set_day("Friday", [{"start_time": "09:00", "end_time": "12:00"}])
        result = self.template.replace_all([
            {"day": "Tuesday", "slots": [{"start_time": "10:00", "end_time": "11:00"}]},
            {"day": "Monday", "slots": [{"start_time": "09:00", "end_time": "12:00"}]},
        ])
        self.assertEqual([entry["day"] for entry in result], ["Monday", "Tuesday"])
        self.assertEqual(self.template.get_day("Friday"), [])

    def test_replace_all_rejects_duplicate_day(self):
        self.template.set_day("Friday", [{"start_time": "09:00", "end_time": "12:00"}])
        with self.assertRaises(DuplicateDay):
            self.template.replace_all([
                {"day": "Monday", "slots": []},
                {"day": "monday", "slots": []},
            ])
        self.assertEqual(len(self.template.get_day("Friday")), 1)

    def test_templates_are_per_provider(self):
        studio_owner = User.objects.create_user(username="studio1", password="pass123")
        studio = Studio.objects.create(user=studio_owner, name="Studio One", hourly_rate=Decimal("5000.00"))
        AvailabilityTemplate(studio).set_day("Monday", [{"start_time": "09:00", "end_time": "18:00"}])
        self.template.set_day("Monday", [{"start_time": "09:00", "end_time": "12:00"}])

        self.assertEqual(AvailabilityTemplate(studio).get_day("Monday"), [WindowSpec("09:00", "18:00", True)])
        self.assertEqual(self.template.get_day("Monday"), [WindowSpec("09:00", "12:00", True)])
