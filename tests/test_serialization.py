from __future__ import annotations

import json
from datetime import date, datetime

import pytest

from cadence import Recurrence, SerializationError

from .conftest import STARTS, take


class TestToJson:
    def test_canonical_payload(self) -> None:
        r = Recurrence(
            every="month",
            starts=STARTS,
            day={"friday": [1]},
            at="9:00",
            except_=date(2015, 12, 4),
            during="8am-6pm",
            exclude_end=True,
            until=datetime(2016, 9, 1),
        )

        assert json.loads(r.to_json()) == {
            "every": "month",
            "interval": 1,
            "starts": "2015-09-01T12:00:00",
            "until": "2016-09-01T00:00:00",
            "day": {"5": [1]},
            "at": ["09:00"],
            "except": ["2015-12-04"],
            "during": ["08:00:00-18:00:00"],
            "exclude_end": True,
        }

    @pytest.mark.parametrize(
        "options",
        [
            {"every": "day", "at": ["7:00am", "3:30pm"], "total": 5},
            {"every": "month", "day": {"monday": [1, -1], "friday": []}, "week_start": "sunday"},
            {"every": "hour", "during": ["10pm-2am", "9:00-9:30"], "minute": [0, 15]},
            {"every": "day", "covering": (date(2015, 9, 1), date(2015, 9, 30))},
            {"every": "hour", "covering": (datetime(2015, 9, 1, 9), datetime(2015, 9, 1, 17))},
            {"every": "year", "yday": [-1, 1], "week": [-1], "month": ["jan", "dec"]},
        ],
    )
    def test_round_trip(self, options: dict[str, object]) -> None:
        r = Recurrence(options, starts=STARTS)

        restored = Recurrence.from_json(r.to_json())

        assert restored == r
        assert take(restored, 10) == take(r, 10)


class TestFromJson:
    def test_malformed(self) -> None:
        with pytest.raises(SerializationError, match="Could not parse JSON"):
            Recurrence.from_json("{every: day")

    def test_not_an_object(self) -> None:
        with pytest.raises(SerializationError, match="JSON object"):
            Recurrence.from_json('["day"]')

    def test_error_kind(self) -> None:
        with pytest.raises(SerializationError) as excinfo:
            Recurrence.from_json("")
        assert excinfo.value.kind == "serialization"
        assert excinfo.value.display_rich().startswith("error[serialization]")
