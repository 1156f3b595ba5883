"""
Time and schedule helpers.

Times are fixed-width 24-hour ``HH:mm`` strings and dates are ``date``
objects; minute-of-day arithmetic never rolls over into the next date.
"""

import math
from datetime import date, datetime, time
from typing import Iterable, Optional

MINUTES_PER_DAY = 24 * 60

DAYS_OF_WEEK = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)


def time_to_minutes(value: str) -> int:
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def minutes_to_time(total_minutes: int) -> str:
    total_minutes %= MINUTES_PER_DAY
    return f"{total_minutes // 60:02d}:{total_minutes % 60:02d}"


def calculate_end_time(start_time: str, duration_minutes: int) -> str:
    """
    Return ``start_time + duration_minutes`` as HH:mm.

    Wraps modulo 24 hours: calculate_end_time("23:45", 30) == "00:15".
    Callers must reject a result that is not after the start time, since
    overnight bookings are not supported.
    """
    return minutes_to_time(time_to_minutes(start_time) + duration_minutes)


def minutes_between(start_time: str, end_time: str) -> int:
    return time_to_minutes(end_time) - time_to_minutes(start_time)


def format_time_until(minutes: int) -> str:
    """Human readable countdown shown on the dashboard"""
    if minutes <= 0:
        return "Ahora"
    if minutes < 60:
        return f"En {minutes} min"
    hours, mins = divmod(minutes, 60)
    if mins == 0:
        return f"En {hours}h"
    return f"En {hours}h {mins}min"


def combine(day: date, hhmm: str) -> datetime:
    """Naive local datetime for a date and an HH:mm time"""
    hours, minutes = hhmm.split(":")
    return datetime.combine(day, time(int(hours), int(minutes)))


def day_of_week(day: date) -> str:
    return DAYS_OF_WEEK[day.weekday()]


def find_day_schedule(entries: Iterable, day_name: str) -> Optional[object]:
    """
    First enabled schedule entry for ``day_name``.

    Entries are any objects with ``day_of_week`` and ``enabled`` attributes
    (operating hours or professional schedules).
    """
    for entry in entries:
        if entry.day_of_week == day_name and entry.enabled:
            return entry
    return None


def is_within_hours(moment: datetime, open_time: str, close_time: str) -> bool:
    """Open time inclusive, close time exclusive, minute resolution"""
    current = moment.hour * 60 + moment.minute
    return time_to_minutes(open_time) <= current < time_to_minutes(close_time)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))
