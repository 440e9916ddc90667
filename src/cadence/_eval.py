from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from datetime import datetime
from typing import Any

from ._clock import Clock
from ._options import RecurrenceSpec
from ._stack import RuleStack, Verdict

logger = logging.getLogger(__name__)

# =============================================================================
# Occurrence Generation
# =============================================================================
# Each call builds a fresh Clock and RuleStack, so a spec can drive any number
# of independent generations. The loop is pull-driven:
#
#   clock.tick() -> candidate -> stack.advance(candidate)
#       ACCEPT  yield the candidate
#       SKIP    tick again
#       STOP    end the sequence
#
# Configuration problems surface when the generator is created, before the
# first element is requested.
# =============================================================================


def occurrences(
    spec: RecurrenceSpec, overrides: Mapping[str, Any] | None = None
) -> Iterator[datetime]:
    """Returns a lazy iterator of every occurrence of `spec`.

    The iterator is unbounded unless the spec has an `until`, `total` or
    `covering` bound.
    """
    if overrides:
        spec = spec.merge(overrides)
    clock = Clock(spec)
    stack = RuleStack.build(spec)
    return _generate(clock, stack)


def _generate(clock: Clock, stack: RuleStack) -> Iterator[datetime]:
    while True:
        candidate = clock.tick()
        match stack.advance(candidate):
            case Verdict.ACCEPT:
                yield candidate
            case Verdict.STOP:
                logger.debug("stopped at %s", candidate)
                return
            case Verdict.SKIP:
                continue


def next_n(spec: RecurrenceSpec, n: int) -> list[datetime]:
    results: list[datetime] = []
    if n <= 0:
        return results
    for occurrence in occurrences(spec):
        results.append(occurrence)
        if len(results) >= n:
            break
    return results


def between(spec: RecurrenceSpec, from_: datetime, to: datetime) -> Iterator[datetime]:
    """Returns a bounded iterator of occurrences where `from_ <= occurrence <= to`."""
    for occurrence in occurrences(spec):
        if occurrence > to:
            return
        if occurrence >= from_:
            yield occurrence


def matches(spec: RecurrenceSpec, t: datetime) -> bool:
    """Whether `t` is an occurrence of `spec`, without enumerating unbounded sequences."""
    if t < spec.start_time:
        return False
    if spec.until is not None and (t >= spec.until if spec.exclude_end else t > spec.until):
        return False

    clock = Clock(spec)
    if spec.total is None:
        return clock.reaches(t) and RuleStack.build(spec).admits(t)

    # Count-bounded: replay the candidates up to t so the counter is exact.
    stack = RuleStack.build(spec)
    while (candidate := clock.tick()) <= t:
        match stack.advance(candidate):
            case Verdict.ACCEPT if candidate == t:
                return True
            case Verdict.STOP:
                return False
    return False
