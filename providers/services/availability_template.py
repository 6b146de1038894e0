"""
availability_template.py
------------------------
A provider's recurring weekly schedule: for each weekday, an ordered list of
open windows {start_time, end_time, is_available}.

Rules:
- Times are 24-hour "HH:MM" strings, and start_time < end_time.
- Bad data is rejected on write (MalformedTime / InvalidInterval / InvalidDay),
  never silently corrected.
- Overlapping windows are accepted; callers wanting stricter rules can layer
  their own validator on top.
"""

import logging
import re
from collections import namedtuple

from django.db import transaction

from booking.exceptions import DuplicateDay, InvalidDay, InvalidInterval, MalformedTime
from ..models import AvailabilityDay, AvailabilityWindow, WEEKDAY_ORDER

logger = logging.getLogger(__name__)

HHMM_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")

WindowSpec = namedtuple("WindowSpec", ["start_time", "end_time", "is_available"])


def parse_hhmm(value):
    """
    Parse "HH:MM" into (hour, minute). Raises MalformedTime.
    """
    if not isinstance(value, str):
        raise MalformedTime(f"Time must be an 'HH:MM' string. Received: {value!r}", value=value)
    match = HHMM_RE.match(value.strip())
    if not match:
        raise MalformedTime(f"Time must be a valid 24-hour 'HH:MM'. Received: {value!r}", value=value)
    return int(match.group(1)), int(match.group(2))


def to_minutes(value: str) -> int:
    """Minutes since midnight for an "HH:MM" string."""
    hour, minute = parse_hhmm(value)
    return hour * 60 + minute


def format_minutes(total: int) -> str:
    """Inverse of to_minutes for 0 <= total < 24h."""
    return f"{total // 60:02d}:{total % 60:02d}"


def normalize_day(day):
    """
    Accept "monday", "Monday " etc. and return the canonical day name.
    """
    name = (day or "").strip().capitalize() if isinstance(day, str) else ""
    if name not in WEEKDAY_ORDER:
        raise InvalidDay(f"Unknown weekday: {day!r}. Use one of {', '.join(WEEKDAY_ORDER)}.", day=day)
    return name


def validate_window(raw):
    """
    Validate one window (dict or WindowSpec) and return a normalized WindowSpec.
    """
    if isinstance(raw, WindowSpec):
        start, end, available = raw
    elif isinstance(raw, dict):
        start = raw.get("start_time", raw.get("startTime"))
        end = raw.get("end_time", raw.get("endTime"))
        available = raw.get("is_available", raw.get("isAvailable", True))
    else:
        raise MalformedTime(f"Availability slot must be an object. Received: {raw!r}")

    start_minutes = to_minutes(start)
    end_minutes = to_minutes(end)
    if start_minutes >= end_minutes:
        raise InvalidInterval(
            f"start_time must be before end_time. Received: {start}-{end}",
            start_time=start,
            end_time=end,
        )
    return WindowSpec(format_minutes(start_minutes), format_minutes(end_minutes), bool(available))


class AvailabilityTemplate:
    """
    Read/write access to one provider's weekly template.

    Usage:
        template = AvailabilityTemplate(artist)
        template.set_day("Monday", [{"start_time": "09:00", "end_time": "12:00"}])
        template.get_day("Monday")  # [WindowSpec("09:00", "12:00", True)]
    """

    def __init__(self, provider):
        self.provider = provider

    def _days(self):
        return AvailabilityDay.objects.filter(**self.provider.provider_filter())

    def get_day(self, day):
        """
        Windows for `day` in stored order; [] if the day is unset.
        """
        day = normalize_day(day)
        windows = AvailabilityWindow.objects.filter(
            day__in=self._days().filter(day=day)
        ).order_by("position", "id")
        return [WindowSpec(w.start_time, w.end_time, w.is_available) for w in windows]

    def set_day(self, day, slots):
        """
        Replace the window list for `day`. An empty list clears the day.
        Everything is validated before anything is written.
        """
        day = normalize_day(day)
        specs = [validate_window(raw) for raw in (slots or [])]
        with transaction.atomic():
            self._write_day(day, specs)
        logger.info(
            "Availability for %s %s set to %d window(s)",
            self.provider, day, len(specs),
        )
        return specs

    def replace_all(self, entries):
        """
        Replace the whole template from [{"day": ..., "slots": [...]}, ...].
        Days not listed are cleared. A day may appear at most once.
        """
        parsed = {}
        for entry in entries or []:
            if not isinstance(entry, dict):
                raise InvalidDay(f"Availability entry must be an object. Received: {entry!r}")
            day = normalize_day(entry.get("day"))
            if day in parsed:
                raise DuplicateDay(f"Day listed more than once: {day}.", day=day)
            parsed[day] = [validate_window(raw) for raw in (entry.get("slots") or [])]

        with transaction.atomic():
            for day in WEEKDAY_ORDER:
                self._write_day(day, parsed.get(day, []))
        logger.info("Availability template replaced for %s (%d day(s))", self.provider, len(parsed))
        return self.as_list()

    def _write_day(self, day, specs):
        self._days().filter(day=day).delete()
        if not specs:
            return
        row = AvailabilityDay.objects.create(day=day, **self.provider.provider_filter())
        AvailabilityWindow.objects.bulk_create([
            AvailabilityWindow(
                day=row,
                position=index,
                start_time=spec.start_time,
                end_time=spec.end_time,
                is_available=spec.is_available,
            )
            for index, spec in enumerate(specs)
        ])

    def as_list(self):
        """
        Serializable template in Monday..Sunday order, skipping unset days.
        """
        rows = self._days().prefetch_related("windows")
        by_day = {row.day: row for row in rows}
        result = []
        for day in WEEKDAY_ORDER:
            row = by_day.get(day)
            if row is None:
                continue
            result.append({
                "day": day,
                "slots": [
                    {
                        "start_time": w.start_time,
                        "end_time": w.end_time,
                        "is_available": w.is_available,
                    }
                    for w in row.windows.all()
                ],
            })
        return result

