from __future__ import annotations

import logging
from datetime import datetime
from enum import Enum

from ._frequency import frequency_matcher
from ._options import RecurrenceSpec
from ._rules import (
    After,
    AtTime,
    Covering,
    DayOfMonth,
    DayOfWeek,
    DayOfYear,
    During,
    Except,
    HourOfDay,
    MinuteOfHour,
    MonthOfYear,
    NthDayOfMonth,
    NthDayOfYear,
    Rule,
    Total,
    Until,
    WeekOfYear,
    commit,
    includes,
    is_stateful,
    is_terminal,
)
from ._units import Frequency

logger = logging.getLogger(__name__)


class Verdict(Enum):
    ACCEPT = "accept"
    SKIP = "skip"
    STOP = "stop"


def build_rules(spec: RecurrenceSpec) -> list[Rule]:
    """Rules that apply to `spec`, frequency matcher first."""
    rules: list[Rule] = [frequency_matcher(spec), After(spec.start_time)]

    if spec.until is not None:
        rules.append(Until(spec.until, spec.exclude_end))
    if spec.covering is not None:
        rules.append(Covering(*spec.covering))
    if spec.except_:
        rules.append(Except(frozenset(spec.except_)))
    if spec.total is not None:
        rules.append(Total(spec.total))
    if spec.at:
        rules.append(AtTime(frozenset(spec.at)))
    if spec.during:
        rules.append(During(spec.during))
    if spec.hour:
        rules.append(HourOfDay(frozenset(spec.hour)))
    if spec.minute:
        rules.append(MinuteOfHour(frozenset(spec.minute)))

    if isinstance(spec.day, dict):
        if spec.frequency == Frequency.MONTH or spec.month:
            rules.append(NthDayOfMonth(dict(spec.day)))
        elif spec.frequency == Frequency.YEAR:
            rules.append(NthDayOfYear(dict(spec.day)))
        rules.append(DayOfWeek(frozenset(spec.day)))
    elif spec.day:
        rules.append(DayOfWeek(frozenset(spec.day)))

    if spec.mday:
        rules.append(DayOfMonth(frozenset(spec.mday)))
    if spec.yday:
        rules.append(DayOfYear(frozenset(spec.yday)))
    if spec.week:
        rules.append(WeekOfYear(frozenset(spec.week)))
    if spec.month:
        rules.append(MonthOfYear(frozenset(spec.month)))
    return rules


class RuleStack:
    """Evaluates candidates against every applicable rule as one transaction.

    State (the Total counter) only changes when a candidate passes every
    rule; a candidate that fails anything leaves the stack untouched.
    """

    def __init__(self, rules: list[Rule]) -> None:
        self._rules = rules

    @classmethod
    def build(cls, spec: RecurrenceSpec) -> RuleStack:
        return cls(build_rules(spec))

    @property
    def rules(self) -> tuple[Rule, ...]:
        return tuple(self._rules)

    def advance(self, t: datetime) -> Verdict:
        failed = [rule for rule in self._rules if not includes(rule, t)]
        if not failed:
            for rule in self._rules:
                if is_stateful(rule):
                    commit(rule, t)
            logger.debug("accepted %s", t)
            return Verdict.ACCEPT
        if any(is_terminal(rule, t) for rule in failed):
            return Verdict.STOP
        return Verdict.SKIP

    def admits(self, t: datetime) -> bool:
        """Check `t` against the stateless rules only, without committing."""
        return all(includes(rule, t) for rule in self._rules if not is_stateful(rule))
