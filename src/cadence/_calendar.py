from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta

from dateutil.relativedelta import relativedelta

from ._units import Frequency

# =============================================================================
# Calendar Arithmetic
# =============================================================================
# All stepping goes through relativedelta. Adding months or years to a day
# that does not exist in the target month clamps to the last valid day
# (Jan 31 + 1 month = Feb 28/29, Feb 29 + 1 year = Feb 28). Callers that step
# repeatedly count from a fixed anchor so a clamp never accumulates.
#
# Weekday numbers use Sunday=0 ... Saturday=6 throughout.
# =============================================================================


def normalize_time(t: datetime) -> datetime:
    return t.replace(microsecond=0)


def advance(t: datetime, unit: Frequency, n: int) -> datetime:
    match unit:
        case Frequency.MINUTE:
            return t + relativedelta(minutes=n)
        case Frequency.HOUR:
            return t + relativedelta(hours=n)
        case Frequency.DAY:
            return t + relativedelta(days=n)
        case Frequency.WEEK:
            return t + relativedelta(weeks=n)
        case Frequency.MONTH:
            return t + relativedelta(months=n)
        case Frequency.YEAR:
            return t + relativedelta(years=n)


def wday(d: date) -> int:
    return (d.weekday() + 1) % 7


def days_in_month(year: int, month: int) -> int:
    _, last = calendar.monthrange(year, month)
    return last


def days_in_year(year: int) -> int:
    return 366 if calendar.isleap(year) else 365


def day_of_year(d: date) -> int:
    return d.timetuple().tm_yday


def week_of_year(d: date) -> int:
    """ISO 8601 week number (weeks start Monday, week 1 holds the first Thursday)."""
    return d.isocalendar()[1]


def weeks_in_year(d: date) -> int:
    """Number of ISO weeks in the ISO year that `d` belongs to."""
    iso_year = d.isocalendar()[0]
    return date(iso_year, 12, 28).isocalendar()[1]


def beginning_of_week(d: date, week_start: int) -> date:
    return d - timedelta(days=(wday(d) - week_start) % 7)


def days_between(a: date, b: date) -> int:
    return (b - a).days


def weeks_between(a: date, b: date, week_start: int) -> int:
    start = beginning_of_week(a, week_start)
    return round(days_between(start, beginning_of_week(b, week_start)) / 7)


def months_between(a: date, b: date) -> int:
    return (b.month - a.month) + (b.year - a.year) * 12


def years_between(a: date, b: date) -> int:
    return b.year - a.year
