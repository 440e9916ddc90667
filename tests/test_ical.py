"""RFC 5545 import/export, using the RFC's own examples where they fit."""

from __future__ import annotations

import logging
from datetime import date, datetime
from zoneinfo import ZoneInfo

import pytest

from cadence import ConfigurationError, Frequency, Recurrence, from_ical

from .conftest import STARTS

NEW_YORK = ZoneInfo("America/New_York")


def ny(*args: int) -> datetime:
    return datetime(*args, tzinfo=NEW_YORK)


# =============================================================================
# from_ical
# =============================================================================


class TestFromIcal:
    def test_daily_count(self) -> None:
        ical = "DTSTART;TZID=America/New_York:19970902T090000\nRRULE:FREQ=DAILY;COUNT=10"

        events = list(Recurrence.from_ical(ical))

        assert events == [ny(1997, 9, day, 9, 0) for day in range(2, 12)]
        assert all(t.tzinfo.key == "America/New_York" for t in events)  # type: ignore[union-attr]

    def test_options_mapping(self) -> None:
        options = from_ical(
            "DTSTART:19970902T090000\n"
            "EXDATE:19970903T090000,19970905T090000\n"
            "RRULE:FREQ=WEEKLY;INTERVAL=2;UNTIL=19971224T000000;BYDAY=MO,WE,FR;WKST=SU"
        )

        assert options == {
            "starts": datetime(1997, 9, 2, 9, 0),
            "except": [date(1997, 9, 3), date(1997, 9, 5)],
            "every": Frequency.WEEK,
            "interval": 2,
            "until": datetime(1997, 12, 24),
            "day": "MO,WE,FR",
            "week_start": "SU",
        }

    def test_first_friday_monthly(self) -> None:
        ical = "DTSTART;TZID=America/New_York:19970905T090000\nRRULE:FREQ=MONTHLY;COUNT=10;BYDAY=1FR"

        assert [t.date() for t in Recurrence.from_ical(ical)] == [
            date(1997, 9, 5),
            date(1997, 10, 3),
            date(1997, 11, 7),
            date(1997, 12, 5),
            date(1998, 1, 2),
            date(1998, 2, 6),
            date(1998, 3, 6),
            date(1998, 4, 3),
            date(1998, 5, 1),
            date(1998, 6, 5),
        ]

    @pytest.mark.parametrize(
        "wkst,expected_days",
        [("MO", [5, 10, 19, 24]), ("SU", [5, 17, 19, 31])],
    )
    def test_week_start_changes_results(self, wkst: str, expected_days: list[int]) -> None:
        ical = (
            "DTSTART;TZID=America/New_York:19970805T090000\n"
            f"RRULE:FREQ=WEEKLY;INTERVAL=2;COUNT=4;BYDAY=TU,SU;WKST={wkst}"
        )

        assert [t.day for t in Recurrence.from_ical(ical)] == expected_days

    def test_week_number(self) -> None:
        ical = "DTSTART:19970512T090000\nRRULE:FREQ=YEARLY;BYWEEKNO=20;BYDAY=MO;COUNT=3"

        assert [t.date() for t in Recurrence.from_ical(ical)] == [
            date(1997, 5, 12),
            date(1998, 5, 11),
            date(1999, 5, 17),
        ]

    def test_by_hour_and_minute(self) -> None:
        ical = "DTSTART:19970902T090000\nRRULE:FREQ=DAILY;BYHOUR=9,10;BYMINUTE=0,30;COUNT=4"

        assert Recurrence.from_ical(ical).take(4) == [
            datetime(1997, 9, 2, 9, 0),
            datetime(1997, 9, 2, 9, 30),
            datetime(1997, 9, 2, 10, 0),
            datetime(1997, 9, 2, 10, 30),
        ]

    def test_utc_until_aligned_to_zone(self) -> None:
        options = from_ical(
            "DTSTART;TZID=America/New_York:19970902T090000\n"
            "RRULE:FREQ=DAILY;UNTIL=19970904T130000Z"
        )

        assert options["until"] == ny(1997, 9, 4, 9, 0)
        assert len(list(Recurrence(options))) == 3

    def test_folded_lines(self) -> None:
        options = from_ical("DTSTART:19970902T090000\nRRULE:FREQ=DAILY;\n COUNT=3")

        assert options["total"] == 3

    def test_unsupported_properties_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="cadence._ical"):
            options = from_ical(
                "DTSTART:19970902T090000\n"
                "DTEND:19970902T100000\n"
                "RRULE:FREQ=MONTHLY;BYDAY=MO,TU;BYSETPOS=-1"
            )

        assert "DTEND not currently supported" in caplog.text
        assert "BYSETPOS not currently supported" in caplog.text
        assert options["every"] == Frequency.MONTH

    @pytest.mark.parametrize(
        "ical",
        [
            "RRULE:FREQ=DAILY;BYEASTER=1",
            "RRULE:FREQ=SECONDLY",
            "RRULE:FREQ=DAILY;COUNT=ten",
            "DTSTART:notatime",
            "DTSTART;TZID=Nowhere/Special:19970902T090000",
            "SUMMARY:lunch",
        ],
    )
    def test_rejected(self, ical: str) -> None:
        with pytest.raises(ConfigurationError):
            from_ical(ical)


# =============================================================================
# to_ical
# =============================================================================


class TestToIcal:
    def test_daily_count(self) -> None:
        r = Recurrence(every="day", total=10, starts=ny(1997, 9, 2, 9, 0))

        assert r.to_ical() == (
            "DTSTART;TZID=America/New_York:19970902T090000\nRRULE:FREQ=DAILY;COUNT=10"
        )

    def test_all_terms(self) -> None:
        r = Recurrence(
            every="month",
            interval=2,
            starts=STARTS,
            until=datetime(2016, 9, 1),
            day={"friday": [1, -1]},
            month=[1, 6],
            except_=date(2015, 12, 25),
            week_start="sunday",
        )

        assert r.to_ical() == (
            "DTSTART:20150901T120000\n"
            "EXDATE;VALUE=DATE:20151225\n"
            "RRULE:FREQ=MONTHLY;INTERVAL=2;UNTIL=20160901T000000;BYMONTH=1,6;"
            "BYDAY=-1FR,1FR;WKST=SU"
        )

    def test_single_at_becomes_start_time(self) -> None:
        r = Recurrence(every="day", at="3:30pm", hour=15, starts=STARTS)

        assert r.to_ical() == "DTSTART:20150901T153000\nRRULE:FREQ=DAILY;BYHOUR=15"

    @pytest.mark.parametrize(
        "options",
        [
            {"at": ["7:00", "15:00"]},
            {"during": "9am-5pm"},
            {"covering": (date(2015, 9, 1), date(2015, 9, 30))},
        ],
    )
    def test_not_expressible(self, options: dict[str, object]) -> None:
        with pytest.raises(ConfigurationError, match="not expressible"):
            Recurrence(every="day", starts=STARTS, **options).to_ical()

    def test_round_trip(self) -> None:
        r = Recurrence(every="week", interval=2, day=["tuesday", "sunday"], total=4, starts=STARTS)

        assert Recurrence.from_ical(r.to_ical()) == r

    def test_exclusive_until_round_trip(self) -> None:
        r = Recurrence(
            every="day", starts=STARTS, until=datetime(2015, 9, 3, 12, 0), exclude_end=True
        )
        text = r.to_ical()

        assert text == "DTSTART:20150901T120000\nRRULE:FREQ=DAILY;UNTIL=20150903T115959"
        assert list(Recurrence.from_ical(text)) == list(r) == [
            datetime(2015, 9, 1, 12, 0),
            datetime(2015, 9, 2, 12, 0),
        ]

    def test_at_before_starts_round_trip(self) -> None:
        r = Recurrence(every="day", at="9:00", total=3, starts=datetime(2015, 9, 1, 15, 0))
        text = r.to_ical()

        assert text == "DTSTART:20150901T150000\nRRULE:FREQ=DAILY;COUNT=3;BYHOUR=9;BYMINUTE=0"
        assert list(Recurrence.from_ical(text)) == list(r) == [
            datetime(2015, 9, 2, 9, 0),
            datetime(2015, 9, 3, 9, 0),
            datetime(2015, 9, 4, 9, 0),
        ]

    def test_hourly_at_round_trip(self) -> None:
        r = Recurrence(every="hour", at="9:30", total=2, starts=datetime(2015, 9, 1, 8, 0))
        text = r.to_ical()

        assert text == "DTSTART:20150901T093000\nRRULE:FREQ=HOURLY;COUNT=2;BYHOUR=9;BYMINUTE=30"
        assert list(Recurrence.from_ical(text)) == list(r) == [
            datetime(2015, 9, 1, 9, 30),
            datetime(2015, 9, 2, 9, 30),
        ]

    def test_at_conflicting_with_minute(self) -> None:
        r = Recurrence(every="day", at="9:00", minute=0, starts=datetime(2015, 9, 1, 15, 0))

        with pytest.raises(ConfigurationError, match="not expressible"):
            r.to_ical()
