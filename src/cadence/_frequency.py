from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from ._calendar import days_between, months_between, weeks_between, years_between
from ._options import RecurrenceSpec
from ._units import Frequency

# =============================================================================
# Frequency Matchers
# =============================================================================
# The coarse admissibility gate: a candidate passes when the number of whole
# frequency units between the anchor and the candidate is a multiple of the
# interval.
#
#   minute/hour: elapsed wall-clock time, floored to whole units
#   day:         calendar dates only, time of day ignored
#   week:        both sides aligned to the configured week start first
#   month:       (month delta) + 12 * (year delta)
#   year:        year delta
# =============================================================================


@dataclass(frozen=True, slots=True)
class Minutely:
    starts: datetime
    interval: int


@dataclass(frozen=True, slots=True)
class Hourly:
    starts: datetime
    interval: int


@dataclass(frozen=True, slots=True)
class Daily:
    starts: datetime
    interval: int


@dataclass(frozen=True, slots=True)
class Weekly:
    starts: datetime
    interval: int
    week_start: int


@dataclass(frozen=True, slots=True)
class Monthly:
    starts: datetime
    interval: int


@dataclass(frozen=True, slots=True)
class Yearly:
    starts: datetime
    interval: int


FrequencyMatcher = Minutely | Hourly | Daily | Weekly | Monthly | Yearly


def frequency_matcher(spec: RecurrenceSpec) -> FrequencyMatcher:
    starts = spec.start_time
    interval = spec.interval
    match spec.frequency:
        case Frequency.MINUTE:
            return Minutely(starts, interval)
        case Frequency.HOUR:
            return Hourly(starts, interval)
        case Frequency.DAY:
            return Daily(starts, interval)
        case Frequency.WEEK:
            return Weekly(starts, interval, spec.week_start)
        case Frequency.MONTH:
            return Monthly(starts, interval)
        case Frequency.YEAR:
            return Yearly(starts, interval)


def frequency_matches(matcher: FrequencyMatcher, t: datetime) -> bool:
    match matcher:
        case Minutely(starts=starts, interval=interval):
            units = int((t - starts).total_seconds() // 60)
        case Hourly(starts=starts, interval=interval):
            units = int((t - starts).total_seconds() // 3600)
        case Daily(starts=starts, interval=interval):
            units = days_between(starts.date(), t.date())
        case Weekly(starts=starts, interval=interval, week_start=week_start):
            units = weeks_between(starts.date(), t.date(), week_start)
        case Monthly(starts=starts, interval=interval):
            units = months_between(starts, t)
        case Yearly(starts=starts, interval=interval):
            units = years_between(starts, t)
    return units % interval == 0
