from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime, time

from ._calendar import (
    day_of_year,
    days_in_month,
    days_in_year,
    wday,
    week_of_year,
    weeks_in_year,
)
from ._frequency import (
    Daily,
    FrequencyMatcher,
    Hourly,
    Minutely,
    Monthly,
    Weekly,
    Yearly,
    frequency_matches,
)
from ._units import TimeOfDay

# =============================================================================
# Rule Catalog
# =============================================================================
# Every rule answers three questions about a candidate time:
#
#   includes     does the candidate satisfy the rule?
#   commit       record an accepted candidate (only Total keeps state)
#   is_terminal  given a failure, can any later candidate still pass?
#
# The clock only moves forward, so bounds (After, Until, Covering) and Total
# fail terminally; calendar filters just skip the candidate.
# =============================================================================


@dataclass(frozen=True, slots=True)
class After:
    start: datetime


@dataclass(frozen=True, slots=True)
class Until:
    end: datetime
    exclusive: bool = False


@dataclass(slots=True)
class Total:
    max: int
    count: int = 0


@dataclass(frozen=True, slots=True)
class Covering:
    first: datetime | date
    last: datetime | date


@dataclass(frozen=True, slots=True)
class Except:
    dates: frozenset[date]


@dataclass(frozen=True, slots=True)
class AtTime:
    times: frozenset[TimeOfDay]


@dataclass(frozen=True, slots=True)
class During:
    windows: tuple[tuple[time, time], ...]


@dataclass(frozen=True, slots=True)
class HourOfDay:
    hours: frozenset[int]


@dataclass(frozen=True, slots=True)
class MinuteOfHour:
    minutes: frozenset[int]


@dataclass(frozen=True, slots=True)
class DayOfWeek:
    days: frozenset[int]


@dataclass(frozen=True, slots=True)
class DayOfMonth:
    days: frozenset[int]


@dataclass(frozen=True, slots=True)
class DayOfYear:
    days: frozenset[int]


@dataclass(frozen=True, slots=True)
class WeekOfYear:
    weeks: frozenset[int]


@dataclass(frozen=True, slots=True)
class MonthOfYear:
    months: frozenset[int]


@dataclass(frozen=True, slots=True)
class NthDayOfMonth:
    days: dict[int, tuple[int, ...]]


@dataclass(frozen=True, slots=True)
class NthDayOfYear:
    days: dict[int, tuple[int, ...]]


Rule = (
    FrequencyMatcher
    | After
    | Until
    | Total
    | Covering
    | Except
    | AtTime
    | During
    | HourOfDay
    | MinuteOfHour
    | DayOfWeek
    | DayOfMonth
    | DayOfYear
    | WeekOfYear
    | MonthOfYear
    | NthDayOfMonth
    | NthDayOfYear
)


def includes(rule: Rule, t: datetime) -> bool:
    match rule:
        case Minutely() | Hourly() | Daily() | Weekly() | Monthly() | Yearly():
            return frequency_matches(rule, t)
        case After(start=start):
            return t >= start
        case Until(end=end, exclusive=exclusive):
            return t < end if exclusive else t <= end
        case Total(max=max_count, count=count):
            return count < max_count
        case Covering(first=first, last=last):
            if _is_plain_date(first):
                return first <= t.date() <= last
            return first <= t <= last  # type: ignore[operator]
        case Except(dates=dates):
            return t.date() not in dates
        case AtTime(times=times):
            return t.second == 0 and TimeOfDay(t.hour, t.minute) in times
        case During(windows=windows):
            clock = t.time().replace(microsecond=0)
            return any(start <= clock <= end for start, end in windows)
        case HourOfDay(hours=hours):
            return t.hour in hours
        case MinuteOfHour(minutes=minutes):
            return t.minute in minutes
        case DayOfWeek(days=days):
            return wday(t) in days
        case DayOfMonth(days=days):
            return _signed_member(t.day, days, days_in_month(t.year, t.month))
        case DayOfYear(days=days):
            return _signed_member(day_of_year(t), days, days_in_year(t.year))
        case WeekOfYear(weeks=weeks):
            return _signed_member(week_of_year(t), weeks, weeks_in_year(t))
        case MonthOfYear(months=months):
            return t.month in months
        case NthDayOfMonth(days=days):
            first_wday = wday(t.replace(day=1))
            period = days_in_month(t.year, t.month)
            return _nth_day_matches(days, wday(t), t.day, first_wday, period)
        case NthDayOfYear(days=days):
            first_wday = wday(t.replace(month=1, day=1))
            period = days_in_year(t.year)
            return _nth_day_matches(days, wday(t), day_of_year(t), first_wday, period)


def commit(rule: Rule, t: datetime) -> None:
    match rule:
        case Total():
            rule.count += 1
        case _:
            pass


def is_terminal(rule: Rule, t: datetime) -> bool:
    """Whether a failure of `rule` at `t` rules out every later candidate too."""
    match rule:
        case After() | Until() | Total():
            return True
        case Covering(last=last):
            if _is_plain_date(last):
                return t.date() > last
            return t > last  # type: ignore[operator]
        case _:
            return False


def is_stateful(rule: Rule) -> bool:
    return isinstance(rule, Total)


# --- Helpers ---


def _is_plain_date(value: date) -> bool:
    return not isinstance(value, datetime)


def _signed_member(value: int, members: frozenset[int], period: int) -> bool:
    """Membership where a negative n counts from the end: n -> period + n + 1."""
    return value in members or any(n < 0 and period + n + 1 == value for n in members)


def _nth_day_matches(
    days: dict[int, tuple[int, ...]],
    target_wday: int,
    day_of_period: int,
    first_wday: int,
    period_length: int,
) -> bool:
    if target_wday not in days:
        return False
    ordinals = days[target_wday]
    if not ordinals:
        return True

    # 1-based day of the period holding the first occurrence of target_wday
    first = ((7 - first_wday) + target_wday) % 7 + 1
    current = (day_of_period - first) // 7 + 1
    total = math.ceil((period_length - first + 1) / 7)
    return any(n == current or (n < 0 and total + n + 1 == current) for n in ordinals)
