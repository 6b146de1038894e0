"""
slot_utils.py
-------------
Turns a provider's weekly availability template into concrete bookable start
times for one calendar date, and resolves the engine settings (slot width,
service fee) that can be overridden at runtime through configmgr.

Slot rules:
- Only windows with is_available=True produce slots.
- From each window's start, step by the slot duration; a step is emitted while
  step + duration <= window end.
- A step whose end would pass midnight is never emitted (no wrap into the
  next day).
- Windows are processed in stored order and results concatenated as-is;
  overlapping windows can therefore yield duplicate start times.
"""

import logging
from datetime import date as date_cls, datetime
from decimal import Decimal, InvalidOperation

from django.conf import settings

from providers.models import WEEKDAY_ORDER
from providers.services.availability_template import format_minutes, to_minutes
from ..exceptions import InvalidSlotDuration, MalformedTime

logger = logging.getLogger(__name__)

DEFAULT_SLOT_DURATION_MINUTES = 60
DEFAULT_SERVICE_FEE_PERCENT = Decimal("5")


def _setting_value(key):
    from configmgr.models import SystemSetting

    row = SystemSetting.objects.filter(key=key).first()
    return row.value if row else None


def get_slot_duration_minutes() -> int:
    """
    Slot width in minutes: SystemSetting SLOT_DURATION_MINUTES, else
    settings.TUNELINK_SLOT_DURATION_MINUTES, else 60.
    """
    fallback = getattr(settings, "TUNELINK_SLOT_DURATION_MINUTES", DEFAULT_SLOT_DURATION_MINUTES)
    raw = _setting_value("SLOT_DURATION_MINUTES")
    if raw is None:
        return int(fallback)
    try:
        minutes = int(raw)
    except (TypeError, ValueError):
        logger.warning("Ignoring SLOT_DURATION_MINUTES=%r (not an integer)", raw)
        return int(fallback)
    if minutes <= 0:
        logger.warning("Ignoring SLOT_DURATION_MINUTES=%r (must be > 0)", raw)
        return int(fallback)
    return minutes


def get_service_fee_percent():
    """
    Service fee percentage: SystemSetting SERVICE_FEE_PERCENT, else
    settings.TUNELINK_SERVICE_FEE_PERCENT, else 5.
    """
    fallback = Decimal(str(getattr(settings, "TUNELINK_SERVICE_FEE_PERCENT", DEFAULT_SERVICE_FEE_PERCENT)))
    raw = _setting_value("SERVICE_FEE_PERCENT")
    if raw is None:
        return fallback
    try:
        percent = Decimal(str(raw).strip())
    except (InvalidOperation, ValueError):
        logger.warning("Ignoring SERVICE_FEE_PERCENT=%r (not a number)", raw)
        return fallback
    if not percent.is_finite() or percent < 0:
        logger.warning("Ignoring SERVICE_FEE_PERCENT=%r (must be >= 0)", raw)
        return fallback
    return percent


def parse_date(value):
    """
    Accept a date, a datetime, or 'YYYY-MM-DD' (anything after a 'T' or space
    is trimmed). Raises MalformedTime.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date_cls):
        return value
    raw = (value or "").strip() if isinstance(value, str) else ""
    for sep in ("T", " "):
        if sep in raw:
            raw = raw.split(sep, 1)[0].strip()
    try:
        return date_cls.fromisoformat(raw)
    except ValueError:
        raise MalformedTime(f"Invalid date format. Use YYYY-MM-DD. Received: {value!r}") from None


def date_to_weekday(day_date) -> str:
    """date -> "Monday".."Sunday"."""
    return WEEKDAY_ORDER[day_date.weekday()]


def _check_duration(slot_duration_minutes):
    if isinstance(slot_duration_minutes, bool) or not isinstance(slot_duration_minutes, int):
        raise InvalidSlotDuration(
            f"Slot duration must be a whole number of minutes. Received: {slot_duration_minutes!r}"
        )
    if slot_duration_minutes <= 0:
        raise InvalidSlotDuration(
            f"Slot duration must be greater than zero. Received: {slot_duration_minutes}"
        )


def iter_window_slots(start_time: str, end_time: str, slot_duration_minutes: int):
    """
    Yield "HH:MM" start times inside one window [start_time, end_time].
    """
    _check_duration(slot_duration_minutes)
    start = to_minutes(start_time)
    end = to_minutes(end_time)
    current = start
    while current + slot_duration_minutes <= end:
        yield format_minutes(current)
        current += slot_duration_minutes


def generate_slots_for_date(day_date, template, slot_duration_minutes=DEFAULT_SLOT_DURATION_MINUTES):
    """
    Bookable start times for `day_date` from `template` (anything with
    get_day(day_name) returning windows with start_time/end_time/is_available).

    Returns:
        list[str]: e.g. ["09:00", "10:00", "11:00"]; [] for a closed day.
    """
    _check_duration(slot_duration_minutes)
    day_date = parse_date(day_date)
    windows = template.get_day(date_to_weekday(day_date))

    slots = []
    for window in windows:
        if not window.is_available:
            continue
        slots.extend(iter_window_slots(window.start_time, window.end_time, slot_duration_minutes))
    return slots


def window_covers(windows, start_time: str, end_time: str) -> bool:
    """
    True if [start_time, end_time) sits entirely inside one available window.
    """
    start = to_minutes(start_time)
    end = to_minutes(end_time)
    for window in windows:
        if not window.is_available:
            continue
        if to_minutes(window.start_time) <= start and end <= to_minutes(window.end_time):
            return True
    return False
