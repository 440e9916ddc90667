from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Frequency(Enum):
    MINUTE = "minute"
    HOUR = "hour"
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"

    @property
    def ical(self) -> str:
        return _FREQUENCY_ICAL[self]

    @classmethod
    def try_parse(cls, s: str) -> Frequency | None:
        return _FREQUENCY_PARSE.get(s.strip().lower())

    def __str__(self) -> str:
        return self.value


_FREQUENCY_ICAL = {
    Frequency.MINUTE: "MINUTELY",
    Frequency.HOUR: "HOURLY",
    Frequency.DAY: "DAILY",
    Frequency.WEEK: "WEEKLY",
    Frequency.MONTH: "MONTHLY",
    Frequency.YEAR: "YEARLY",
}

_FREQUENCY_PARSE: dict[str, Frequency] = {
    "minute": Frequency.MINUTE,
    "minutes": Frequency.MINUTE,
    "minutely": Frequency.MINUTE,
    "hour": Frequency.HOUR,
    "hours": Frequency.HOUR,
    "hourly": Frequency.HOUR,
    "day": Frequency.DAY,
    "days": Frequency.DAY,
    "daily": Frequency.DAY,
    "week": Frequency.WEEK,
    "weeks": Frequency.WEEK,
    "weekly": Frequency.WEEK,
    "month": Frequency.MONTH,
    "months": Frequency.MONTH,
    "monthly": Frequency.MONTH,
    "year": Frequency.YEAR,
    "years": Frequency.YEAR,
    "yearly": Frequency.YEAR,
}


class Weekday(Enum):
    SUNDAY = "sunday"
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"

    @property
    def number(self) -> int:
        """Day number with Sunday=0, Monday=1, ..., Saturday=6."""
        return _WEEKDAY_NUMBERS[self]

    @property
    def ical(self) -> str:
        return _WEEKDAY_ICAL[self]

    @classmethod
    def from_number(cls, n: int) -> Weekday | None:
        return _NUMBER_TO_WEEKDAY.get(n)

    @classmethod
    def try_parse(cls, s: str) -> Weekday | None:
        return _WEEKDAY_PARSE.get(s.strip().lower())

    def __str__(self) -> str:
        return self.value


_WEEKDAY_NUMBERS = {
    Weekday.SUNDAY: 0,
    Weekday.MONDAY: 1,
    Weekday.TUESDAY: 2,
    Weekday.WEDNESDAY: 3,
    Weekday.THURSDAY: 4,
    Weekday.FRIDAY: 5,
    Weekday.SATURDAY: 6,
}

_WEEKDAY_ICAL = {
    Weekday.SUNDAY: "SU",
    Weekday.MONDAY: "MO",
    Weekday.TUESDAY: "TU",
    Weekday.WEDNESDAY: "WE",
    Weekday.THURSDAY: "TH",
    Weekday.FRIDAY: "FR",
    Weekday.SATURDAY: "SA",
}

_NUMBER_TO_WEEKDAY = {v: k for k, v in _WEEKDAY_NUMBERS.items()}

_WEEKDAY_PARSE: dict[str, Weekday] = {
    "sunday": Weekday.SUNDAY,
    "sun": Weekday.SUNDAY,
    "su": Weekday.SUNDAY,
    "monday": Weekday.MONDAY,
    "mon": Weekday.MONDAY,
    "mo": Weekday.MONDAY,
    "tuesday": Weekday.TUESDAY,
    "tue": Weekday.TUESDAY,
    "tu": Weekday.TUESDAY,
    "wednesday": Weekday.WEDNESDAY,
    "wed": Weekday.WEDNESDAY,
    "we": Weekday.WEDNESDAY,
    "thursday": Weekday.THURSDAY,
    "thu": Weekday.THURSDAY,
    "th": Weekday.THURSDAY,
    "friday": Weekday.FRIDAY,
    "fri": Weekday.FRIDAY,
    "fr": Weekday.FRIDAY,
    "saturday": Weekday.SATURDAY,
    "sat": Weekday.SATURDAY,
    "sa": Weekday.SATURDAY,
}


class Month(Enum):
    JAN = "january"
    FEB = "february"
    MAR = "march"
    APR = "april"
    MAY = "may"
    JUN = "june"
    JUL = "july"
    AUG = "august"
    SEP = "september"
    OCT = "october"
    NOV = "november"
    DEC = "december"

    @property
    def number(self) -> int:
        return _MONTH_NUMBERS[self]

    @classmethod
    def from_number(cls, n: int) -> Month | None:
        return _NUMBER_TO_MONTH.get(n)

    @classmethod
    def try_parse(cls, s: str) -> Month | None:
        return _MONTH_PARSE.get(s.strip().lower())

    def __str__(self) -> str:
        return self.value


_MONTH_NUMBERS = {
    Month.JAN: 1,
    Month.FEB: 2,
    Month.MAR: 3,
    Month.APR: 4,
    Month.MAY: 5,
    Month.JUN: 6,
    Month.JUL: 7,
    Month.AUG: 8,
    Month.SEP: 9,
    Month.OCT: 10,
    Month.NOV: 11,
    Month.DEC: 12,
}

_NUMBER_TO_MONTH = {v: k for k, v in _MONTH_NUMBERS.items()}

_MONTH_PARSE: dict[str, Month] = {
    "january": Month.JAN,
    "jan": Month.JAN,
    "february": Month.FEB,
    "feb": Month.FEB,
    "march": Month.MAR,
    "mar": Month.MAR,
    "april": Month.APR,
    "apr": Month.APR,
    "may": Month.MAY,
    "june": Month.JUN,
    "jun": Month.JUN,
    "july": Month.JUL,
    "jul": Month.JUL,
    "august": Month.AUG,
    "aug": Month.AUG,
    "september": Month.SEP,
    "sep": Month.SEP,
    "sept": Month.SEP,
    "october": Month.OCT,
    "oct": Month.OCT,
    "november": Month.NOV,
    "nov": Month.NOV,
    "december": Month.DEC,
    "dec": Month.DEC,
}


@dataclass(frozen=True, slots=True, order=True)
class TimeOfDay:
    hour: int
    minute: int

    def __str__(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"


# Domains for the per-unit constraint sets. Signed sets are validated by
# absolute value.
MAX_HOURS_IN_DAY = 23
MAX_MINUTES_IN_HOUR = 59
MAX_DAYS_IN_MONTH = 31
MAX_DAYS_IN_YEAR = 366
MAX_WEEKS_IN_YEAR = 53
