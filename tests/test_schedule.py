from __future__ import annotations

from datetime import datetime, timedelta, timezone
from itertools import pairwise

import pytest

from cadence import Recurrence, Schedule, SerializationError, merge

from .conftest import STARTS, take


def noon(*ymd: int) -> datetime:
    return datetime(*ymd, 12, 0)


# =============================================================================
# merge()
# =============================================================================


class TestMerge:
    def test_interleaves_sources(self) -> None:
        a = Recurrence(every="day", interval=2, starts=noon(2015, 9, 1))
        b = Recurrence(every="day", interval=2, starts=noon(2015, 9, 2))

        assert take(merge(a, b), 4) == [
            noon(2015, 9, 1),
            noon(2015, 9, 2),
            noon(2015, 9, 3),
            noon(2015, 9, 4),
        ]

    def test_infinite_sources_stay_lazy(self) -> None:
        a = Recurrence(every="minute", starts=STARTS)
        b = Recurrence(every="hour", starts=STARTS)

        events = take(merge(a.events(), b.events()), 100)

        assert len(events) == 100
        assert all(x <= y for x, y in pairwise(events))

    def test_ties_emitted_once_per_source_in_order(self) -> None:
        # same instant, different wall clocks, so the source is visible
        utc = datetime(2015, 9, 1, 12, tzinfo=timezone.utc)
        plus_two = datetime(2015, 9, 1, 14, tzinfo=timezone(timedelta(hours=2)))

        merged = list(merge([plus_two], [utc]))

        assert merged == [utc, utc]
        assert [t.hour for t in merged] == [14, 12]

    def test_exhausted_sources_drop_out(self) -> None:
        short = [noon(2015, 9, 2)]
        longer = [noon(2015, 9, 1), noon(2015, 9, 3), noon(2015, 9, 4)]

        assert list(merge(short, longer)) == [
            noon(2015, 9, 1),
            noon(2015, 9, 2),
            noon(2015, 9, 3),
            noon(2015, 9, 4),
        ]

    def test_no_sources(self) -> None:
        assert list(merge()) == []
        assert list(merge([], [])) == []


# =============================================================================
# Schedule
# =============================================================================


class TestSchedule:
    def test_add_chains(self) -> None:
        schedule = Schedule().add(every="day", starts=STARTS).add({"every": "week", "starts": STARTS})

        assert len(schedule) == 2
        assert isinstance(schedule.rules[0], Recurrence)

    def test_lshift(self) -> None:
        schedule = Schedule()
        schedule << Recurrence(every="day", starts=STARTS) << {"every": "hour", "starts": STARTS}

        assert len(schedule) == 2

    def test_events_in_order(self) -> None:
        schedule = Schedule(
            [
                {"every": "day", "at": "9:00", "starts": STARTS},
                {"every": "day", "at": "18:00", "starts": STARTS},
            ]
        )

        assert take(schedule, 3) == [
            datetime(2015, 9, 1, 18, 0),
            datetime(2015, 9, 2, 9, 0),
            datetime(2015, 9, 2, 18, 0),
        ]

    def test_duplicate_rules_emit_twice(self) -> None:
        rule = Recurrence(every="day", starts=STARTS)
        schedule = Schedule([rule, rule])

        assert take(schedule, 4) == [
            noon(2015, 9, 1),
            noon(2015, 9, 1),
            noon(2015, 9, 2),
            noon(2015, 9, 2),
        ]

    def test_events_with_overrides(self) -> None:
        schedule = Schedule([{"every": "day", "starts": STARTS}, {"every": "week", "starts": STARTS}])

        assert list(schedule.events(total=1)) == [noon(2015, 9, 1), noon(2015, 9, 1)]

    def test_include(self) -> None:
        schedule = Schedule(
            [
                {"every": "month", "day": {"friday": [1]}, "starts": STARTS},
                {"every": "month", "mday": 15, "starts": STARTS},
            ]
        )

        assert noon(2015, 10, 2) in schedule
        assert noon(2015, 10, 15) in schedule
        assert noon(2015, 10, 16) not in schedule

    def test_empty(self) -> None:
        assert list(Schedule()) == []
        assert not Schedule().include(STARTS)

    def test_to_list(self) -> None:
        schedule = Schedule([{"every": "day", "starts": STARTS, "total": 2}])

        assert schedule.to_list() == [Recurrence(every="day", starts=STARTS, total=2).to_dict()]


# =============================================================================
# Dump / Load
# =============================================================================


class TestDumpLoad:
    def test_round_trip(self) -> None:
        schedule = Schedule(
            [
                {"every": "month", "day": {"friday": [1]}, "starts": STARTS},
                {"every": "day", "at": ["7:00", "15:30"], "except": "2015-09-02", "starts": STARTS},
            ]
        )

        loaded = Schedule.load(schedule.dump())

        assert loaded.rules == schedule.rules
        assert take(loaded, 6) == take(schedule, 6)

    def test_malformed(self) -> None:
        with pytest.raises(SerializationError):
            Schedule.load("[{")

    @pytest.mark.parametrize("payload", ['{"every": "day"}', "[1, 2]"])
    def test_wrong_shape(self, payload: str) -> None:
        with pytest.raises(SerializationError):
            Schedule.load(payload)
