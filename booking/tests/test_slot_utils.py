# booking/tests/test_slot_utils.py

from datetime import date
from decimal import Decimal

from django.test import SimpleTestCase, TestCase, override_settings

from booking.exceptions import InvalidSlotDuration, MalformedTime
from booking.services.slot_utils import (
    date_to_weekday,
    generate_slots_for_date,
    get_service_fee_percent,
    get_slot_duration_minutes,
    iter_window_slots,
    parse_date,
    window_covers,
)
from configmgr.models import SystemSetting
from providers.services.availability_template import WindowSpec, to_minutes

MONDAY = date(2030, 1, 7)
TUESDAY = date(2030, 1, 8)


class FakeTemplate:
    """In-memory stand-in exposing get_day() like AvailabilityTemplate."""

    def __init__(self, days):
        self.days = days

    def get_day(self, day):
        return self.days.get(day, [])


class SlotGenerationTests(SimpleTestCase):
    def test_monday_morning_window_gives_three_hourly_slots(self):
        template = FakeTemplate({"Monday": [WindowSpec("09:00", "12:00", True)]})
        self.assertEqual(generate_slots_for_date(MONDAY, template, 60), ["09:00", "10:00", "11:00"])

    def test_day_without_windows_gives_no_slots(self):
        template = FakeTemplate({"Monday": [WindowSpec("09:00", "12:00", True)]})
        self.assertEqual(generate_slots_for_date(TUESDAY, template, 60), [])

    def test_blocked_windows_are_skipped(self):
        template = FakeTemplate({
            "Monday": [
                WindowSpec("09:00", "11:00", False),
                WindowSpec("14:00", "16:00", True),
            ]
        })
        self.assertEqual(generate_slots_for_date(MONDAY, template, 60), ["14:00", "15:00"])

    def test_every_slot_fits_inside_its_window(self):
        windows = [WindowSpec("08:15", "11:50", True), WindowSpec("13:00", "17:30", True)]
        template = FakeTemplate({"Monday": windows})
        for duration in (15, 30, 45, 60, 90, 120):
            for slot in generate_slots_for_date(MONDAY, template, duration):
                start = to_minutes(slot)
                self.assertTrue(
                    any(
                        to_minutes(w.start_time) <= start
                        and start + duration <= to_minutes(w.end_time)
                        for w in windows
                    ),
                    f"{slot} (+{duration}m) escapes every window",
                )

    def test_partial_tail_is_not_emitted(self):
        self.assertEqual(list(iter_window_slots("09:00", "11:30", 60)), ["09:00", "10:00"])

    def test_slots_never_wrap_past_midnight(self):
        self.assertEqual(list(iter_window_slots("23:00", "23:59", 60)), [])
        self.assertEqual(list(iter_window_slots("22:30", "23:59", 30)), ["22:30", "23:00"])

    def test_overlapping_windows_can_repeat_start_times(self):
        template = FakeTemplate({
            "Monday": [WindowSpec("09:00", "11:00", True), WindowSpec("10:00", "12:00", True)]
        })
        self.assertEqual(
            generate_slots_for_date(MONDAY, template, 60),
            ["09:00", "10:00", "10:00", "11:00"],
        )

    def test_rejects_non_positive_duration(self):
        template = FakeTemplate({})
        for bad in (0, -30, 1.5, "60", True):
            with self.assertRaises(InvalidSlotDuration):
                generate_slots_for_date(MONDAY, template, bad)


class DateHelpersTests(SimpleTestCase):
    def test_parse_date_trims_time_part(self):
        self.assertEqual(parse_date("2030-01-07"), MONDAY)
        self.assertEqual(parse_date("2030-01-07T10:00:00Z"), MONDAY)
        self.assertEqual(parse_date("2030-01-07 10:00"), MONDAY)
        self.assertEqual(parse_date(MONDAY), MONDAY)

    def test_parse_date_rejects_garbage(self):
        for bad in ("", "07/01/2030", "2030-13-01", None):
            with self.assertRaises(MalformedTime):
                parse_date(bad)

    def test_date_to_weekday(self):
        self.assertEqual(date_to_weekday(MONDAY), "Monday")
        self.assertEqual(date_to_weekday(TUESDAY), "Tuesday")

    def test_window_covers_needs_a_single_window(self):
        windows = [WindowSpec("09:00", "12:00", True), WindowSpec("12:00", "14:00", True)]
        self.assertTrue(window_covers(windows, "09:00", "12:00"))
        self.assertTrue(window_covers(windows, "12:30", "13:30"))
        self.assertFalse(window_covers(windows, "11:00", "13:00"))
        self.assertFalse(window_covers([WindowSpec("09:00", "12:00", False)], "09:00", "10:00"))


class RuntimeSettingsTests(TestCase):
    @override_settings(TUNELINK_SLOT_DURATION_MINUTES=45, TUNELINK_SERVICE_FEE_PERCENT="7.5")
    def test_defaults_come_from_settings(self):
        self.assertEqual(get_slot_duration_minutes(), 45)
        self.assertEqual(get_service_fee_percent(), Decimal("7.5"))

    def test_system_setting_overrides_defaults(self):
        SystemSetting.objects.create(key="SLOT_DURATION_MINUTES", value="30")
        SystemSetting.objects.create(key="SERVICE_FEE_PERCENT", value="10")
        self.assertEqual(get_slot_duration_minutes(), 30)
        self.assertEqual(get_service_fee_percent(), Decimal("10"))

    @override_settings(TUNELINK_SLOT_DURATION_MINUTES=60, TUNELINK_SERVICE_FEE_PERCENT="5")
    def test_invalid_system_setting_falls_back(self):
        SystemSetting.objects.create(key="SLOT_DURATION_MINUTES", value="soon")
        SystemSetting.objects.create(key="SERVICE_FEE_PERCENT", value="-3")
        with self.assertLogs("booking.services.slot_utils", level="WARNING"):
            self.assertEqual(get_slot_duration_minutes(), 60)
        with self.assertLogs("booking.services.slot_utils", level="WARNING"):
            self.assertEqual(get_service_fee_percent(), Decimal("5"))
