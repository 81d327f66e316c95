# src/weekplan/core/dates.py

from __future__ import annotations

"""
Date helpers shared by stats, schedules and the service.

Every "same day" comparison in the project goes through format_date():
two dates are the same day iff their YYYY-MM-DD keys are equal.
"""

import re
from datetime import date, datetime, timedelta
from enum import StrEnum

_HHMM_RE = re.compile(r"^(\d{1,2}):(\d{2})$")

_MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)


class DayOfWeek(StrEnum):
    SUNDAY = "sunday"
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"

    @classmethod
    def parse(cls, raw: str) -> DayOfWeek:
        """Accept full names and 3-letter prefixes ("mon", "Tuesday")."""
        value = (raw or "").strip().lower()
        for day in cls:
            if value == day.value or (len(value) >= 3 and day.value.startswith(value)):
                return day
        raise ValueError(f"Unknown day of week: {raw!r}")


# Underlying index representation: sunday=0 .. saturday=6.
DAY_INDEX: dict[DayOfWeek, int] = {
    DayOfWeek.SUNDAY: 0,
    DayOfWeek.MONDAY: 1,
    DayOfWeek.TUESDAY: 2,
    DayOfWeek.WEDNESDAY: 3,
    DayOfWeek.THURSDAY: 4,
    DayOfWeek.FRIDAY: 5,
    DayOfWeek.SATURDAY: 6,
}
_BY_INDEX = {v: k for k, v in DAY_INDEX.items()}

# Planner order (weeks start on Monday).
WEEK_ORDER: tuple[DayOfWeek, ...] = (
    DayOfWeek.MONDAY,
    DayOfWeek.TUESDAY,
    DayOfWeek.WEDNESDAY,
    DayOfWeek.THURSDAY,
    DayOfWeek.FRIDAY,
    DayOfWeek.SATURDAY,
    DayOfWeek.SUNDAY,
)


def _as_date(d: date | datetime) -> date:
    # datetime is a subclass of date, check it first.
    if isinstance(d, datetime):
        return d.date()
    return d


def day_index(d: date | datetime) -> int:
    """Sunday-based weekday index (0=sunday .. 6=saturday)."""
    return (_as_date(d).weekday() + 1) % 7


def day_of_week(d: date | datetime) -> DayOfWeek:
    return _BY_INDEX[day_index(d)]


def week_start(d: date | datetime) -> date:
    """
    Monday of the week containing d.

    Sunday belongs to the week that started six days earlier.
    Returns a new date; the argument is left untouched.
    """
    idx = day_index(d)
    offset = 6 if idx == 0 else idx - 1
    return _as_date(d) - timedelta(days=offset)


def week_dates(start: date | datetime) -> list[date]:
    first = _as_date(start)
    return [first + timedelta(days=i) for i in range(7)]


def format_date(d: date | datetime) -> str:
    return _as_date(d).isoformat()


def parse_date(raw: str) -> date:
    value = (raw or "").strip()
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        raise ValueError(f"Invalid date (expected YYYY-MM-DD): {raw!r}") from None


def parse_hhmm(raw: str) -> tuple[int, int]:
    m = _HHMM_RE.match((raw or "").strip())
    if not m:
        raise ValueError(f"Invalid time (expected HH:mm): {raw!r}")
    hour, minute = int(m.group(1)), int(m.group(2))
    if hour > 23 or minute > 59:
        raise ValueError(f"Invalid time (expected HH:mm): {raw!r}")
    return hour, minute


def month_label(d: date | datetime) -> str:
    """English "Month Year" label, independent of the process locale."""
    dd = _as_date(d)
    return f"{_MONTH_NAMES[dd.month - 1]} {dd.year}"
