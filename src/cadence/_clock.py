from __future__ import annotations

import logging
from datetime import datetime

from ._calendar import (
    advance,
    days_between,
    months_between,
    years_between,
)
from ._error import CadenceError
from ._options import RecurrenceSpec
from ._units import Frequency, TimeOfDay

logger = logging.getLogger(__name__)

# Finest unit first; the first unit with explicit options decides the step.
_STEP_UNITS: tuple[tuple[Frequency, tuple[str, ...]], ...] = (
    (Frequency.MINUTE, ("minute",)),
    (Frequency.HOUR, ("hour",)),
    (Frequency.DAY, ("day", "mday", "yday")),
    (Frequency.WEEK, ("week",)),
    (Frequency.MONTH, ("month",)),
    (Frequency.YEAR, ()),
)

_SUB_DAY_UNITS = (Frequency.MINUTE, Frequency.HOUR)


def clock_step(spec: RecurrenceSpec) -> tuple[Frequency, int]:
    """Pick the coarsest step that still visits every candidate a rule could accept.

    A unit that is the spec's frequency steps by the interval; a finer unit
    named by a constraint steps by one, so e.g. `every: hour, minute: 20`
    inspects every minute. `at` with an hourly frequency steps by the minute,
    since the hourly grid from `starts` need not land on any `at` minute.
    """
    if spec.at and spec.frequency == Frequency.HOUR:
        return Frequency.MINUTE, 1
    for unit, options in _STEP_UNITS:
        if unit == spec.frequency:
            return unit, spec.interval
        if any(spec.has(option) for option in options):
            return unit, 1
    raise CadenceError.invariant(f"No step for {spec!r}")


class Clock:
    """Proposes candidate times, one step at a time, from the spec's start time.

    Candidates are `start_time + k * step`, counted from the anchor so that
    month-end clamping never drifts. With `at` times and a daily-or-coarser
    step, each stepped day is visited once per `at` time.
    """

    def __init__(self, spec: RecurrenceSpec) -> None:
        self._unit, self._amount = clock_step(spec)
        self._start = spec.start_time
        self._at: tuple[TimeOfDay, ...] = ()
        if spec.at and self._unit not in _SUB_DAY_UNITS:
            self._at = spec.at
        self._steps = 0
        self._at_index = self._start_at_index()
        self._time: datetime | None = None
        logger.debug("clock step %s x%d from %s", self._unit.value, self._amount, self._start)

    @property
    def step(self) -> tuple[Frequency, int]:
        return self._unit, self._amount

    def peek(self) -> datetime:
        return self._next()[0]

    def tick(self) -> datetime:
        self._time, self._steps, self._at_index = self._next()
        return self._time

    def reaches(self, t: datetime) -> bool:
        """Whether `t` is one of the candidates this clock would ever propose."""
        if t < self._start:
            return False
        if self._at:
            if t.date() == self._start.date():
                return t == self._start or (t.second == 0 and _time_of(t) in self._at)
            return t.second == 0 and _time_of(t) in self._at and self._on_grid(t, dates=True)
        return self._on_grid(t, dates=False)

    def _next(self) -> tuple[datetime, int, int | None]:
        if self._time is None:
            return self._start, self._steps, self._at_index
        if not self._at:
            steps = self._steps + 1
            return self._base(steps), steps, None
        if self._at_index is not None and self._at_index + 1 < len(self._at):
            index = self._at_index + 1
            return self._on_day(self._base(self._steps), index), self._steps, index
        steps = self._steps + 1
        return self._on_day(self._base(steps), 0), steps, 0

    def _base(self, steps: int) -> datetime:
        return advance(self._start, self._unit, steps * self._amount)

    def _on_day(self, t: datetime, index: int) -> datetime:
        tod = self._at[index]
        return t.replace(hour=tod.hour, minute=tod.minute, second=0)

    def _start_at_index(self) -> int | None:
        if not self._at or self._start.second != 0:
            return None
        tod = _time_of(self._start)
        return self._at.index(tod) if tod in self._at else None

    def _on_grid(self, t: datetime, dates: bool) -> bool:
        units = self._units_to(t)
        if units is None or units < 0 or units % self._amount != 0:
            return False
        candidate = advance(self._start, self._unit, units)
        if dates:
            return candidate.date() == t.date()
        return candidate == t

    def _units_to(self, t: datetime) -> int | None:
        start = self._start
        match self._unit:
            case Frequency.MINUTE:
                seconds = (t - start).total_seconds()
                return int(seconds // 60) if seconds % 60 == 0 else None
            case Frequency.HOUR:
                seconds = (t - start).total_seconds()
                return int(seconds // 3600) if seconds % 3600 == 0 else None
            case Frequency.DAY:
                return days_between(start.date(), t.date())
            case Frequency.WEEK:
                days = days_between(start.date(), t.date())
                return days // 7 if days % 7 == 0 else None
            case Frequency.MONTH:
                return months_between(start, t)
            case Frequency.YEAR:
                return years_between(start, t)


def _time_of(t: datetime) -> TimeOfDay:
    return TimeOfDay(t.hour, t.minute)
