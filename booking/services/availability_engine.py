"""
availability_engine.py
----------------------
Answers "can this provider be booked at this date/time?" by checking:
1) the provider's weekly availability template (the range must sit inside one
   available window), and
2) existing bookings (double-booking prevention).

Overlap test is symmetric:
    existing_start < new_end AND existing_end > new_start
Cancelled bookings never block a slot.
"""

from providers.services.availability_template import AvailabilityTemplate, to_minutes
from ..models import Booking, BookingStatus
from .slot_utils import date_to_weekday, generate_slots_for_date, get_slot_duration_minutes, parse_date, window_covers


class AvailabilityEngine:
    def active_bookings(self, provider, day_date):
        """Non-cancelled bookings of `provider` on `day_date`."""
        return (
            Booking.objects
            .filter(date=day_date, **provider.provider_filter())
            .exclude(status=BookingStatus.CANCELLED)
        )

    def overlapping_bookings(self, provider, day_date, start_time, end_time):
        """
        Active bookings that overlap [start_time, end_time).
        "HH:MM" strings compare correctly as text.
        """
        return self.active_bookings(provider, day_date).filter(start_time__lt=end_time, end_time__gt=start_time)

    def fits_availability(self, provider, day_date, start_time, end_time) -> bool:
        """
        True if the range lies inside one available window of the provider's
        template for that weekday.
        """
        windows = AvailabilityTemplate(provider).get_day(date_to_weekday(day_date))
        return window_covers(windows, start_time, end_time)

    def find_available_slots(self, provider, day_date, slot_duration_minutes=None, hide_booked=False):
        """
        Start times for `provider` on `day_date`.

        Args:
            slot_duration_minutes: slot width; defaults to the configured value
            hide_booked: drop slots that overlap an existing booking

        Returns:
            dict: {"date": "YYYY-MM-DD", "day": "Monday", "slots": ["09:00", ...]}
        """
        day_date = parse_date(day_date)
        if slot_duration_minutes is None:
            slot_duration_minutes = get_slot_duration_minutes()

        slots = generate_slots_for_date(day_date, AvailabilityTemplate(provider), slot_duration_minutes)

        if hide_booked and slots:
            taken = [
                (to_minutes(start), to_minutes(end))
                for start, end in self.active_bookings(provider, day_date).values_list("start_time", "end_time")
            ]
            slots = [s for s in slots if not self._overlaps_any(s, slot_duration_minutes, taken)]

        return {
            "date": day_date.isoformat(),
            "day": date_to_weekday(day_date),
            "slots": slots,
        }

    @staticmethod
    def _overlaps_any(slot_start, slot_duration_minutes: int, taken) -> bool:
        start = to_minutes(slot_start)
        end = start + slot_duration_minutes
        return any(existing_start < end and existing_end > start for existing_start, existing_end in taken)
