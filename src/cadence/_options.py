from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Any

from dateutil import parser as date_parser

from ._calendar import normalize_time
from ._error import CadenceError
from ._units import (
    MAX_DAYS_IN_MONTH,
    MAX_DAYS_IN_YEAR,
    MAX_HOURS_IN_DAY,
    MAX_MINUTES_IN_HOUR,
    MAX_WEEKS_IN_YEAR,
    Frequency,
    Month,
    TimeOfDay,
    Weekday,
)

Weekdays = tuple[int, ...]
NthWeekdays = dict[int, tuple[int, ...]]
TimeWindow = tuple[time, time]
DefaultProvider = datetime | date | str | Callable[[], Any] | None

# =============================================================================
# Option Keys
# =============================================================================
# Canonical option names, plus the aliases accepted on input. `on` and
# `between` are composite inputs: they are decomposed into canonical fields
# and never stored.
# =============================================================================

_OPTION_ALIASES: dict[str, str] = {
    "every": "every",
    "frequency": "every",
    "interval": "interval",
    "starts": "starts",
    "until": "until",
    "between": "between",
    "covering": "covering",
    "during": "during",
    "exclude_end": "exclude_end",
    "total": "total",
    "minute": "minute",
    "hour": "hour",
    "day": "day",
    "weekday": "day",
    "mday": "mday",
    "month_day": "mday",
    "yday": "yday",
    "year_day": "yday",
    "week": "week",
    "month": "month",
    "on": "on",
    "at": "at",
    "except": "except",
    "except_": "except",
    "week_start": "week_start",
}

_DEFAULT_WEEK_START = Weekday.MONDAY.number

_ORDINAL_DAY_RE = re.compile(r"^([+-]?\d+)\s*([A-Za-z]+)$")
_WINDOW_SPLIT_RE = re.compile(r"\s*[-–—]\s*")
_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


@dataclass(frozen=True, slots=True)
class RecurrenceSpec:
    """Validated, immutable description of a recurrence.

    Build one with `RecurrenceSpec.from_options`, which accepts the loose
    option shapes (names, strings, ranges, mappings) and resolves them to the
    canonical fields below. `day` is either a sorted tuple of weekday numbers
    (Sunday=0) or a mapping of weekday number to ordinals; an empty ordinal
    tuple in the mapping means "every occurrence".
    """

    frequency: Frequency
    starts: datetime
    interval: int = 1
    until: datetime | None = None
    exclude_end: bool = False
    total: int | None = None
    minute: tuple[int, ...] | None = None
    hour: tuple[int, ...] | None = None
    day: Weekdays | NthWeekdays | None = None
    mday: tuple[int, ...] | None = None
    yday: tuple[int, ...] | None = None
    week: tuple[int, ...] | None = None
    month: tuple[int, ...] | None = None
    at: tuple[TimeOfDay, ...] | None = None
    except_: tuple[date, ...] | None = None
    during: tuple[TimeWindow, ...] | None = None
    covering: tuple[datetime | date, datetime | date] | None = None
    week_start: int = _DEFAULT_WEEK_START

    @classmethod
    def from_options(
        cls,
        options: Mapping[str, Any] | None = None,
        *,
        default_starts: DefaultProvider = None,
        default_until: DefaultProvider = None,
        **kwargs: Any,
    ) -> RecurrenceSpec:
        opts = _canonical_keys({**(options or {}), **kwargs})

        frequency, every_interval = _parse_frequency(opts.get("every"))
        interval = opts.get("interval")
        interval = _positive_int(interval, "interval") if interval is not None else every_interval

        starts = opts.get("starts")
        until = opts.get("until")
        if opts.get("between") is not None:
            first, last = _as_pair(opts["between"], "between")
            starts = first if starts is None else starts
            until = last if until is None else until

        starts_at = _as_time(starts, "starts") or _resolve_default(default_starts, "starts")
        if starts_at is None:
            starts_at = normalize_time(datetime.now())
        until_at = _as_time(until, "until") or _resolve_default(default_until, "until")

        day = _normalize_days(opts.get("day"))
        month = _normalize_months(opts.get("month"))
        mday = _normalize_mdays(opts.get("mday"))
        if opts.get("on") is not None:
            on = _decompose_on(opts["on"])
            day = on.get("day", day)
            month = on.get("month", month)
            mday = on.get("mday", mday)

        total = opts.get("total")

        return cls(
            frequency=frequency,
            starts=starts_at,
            interval=interval or 1,
            until=until_at,
            exclude_end=bool(opts.get("exclude_end", False)),
            total=_positive_int(total, "total") if total is not None else None,
            minute=_map_ints(opts.get("minute"), "minute", 0, MAX_MINUTES_IN_HOUR),
            hour=_map_ints(opts.get("hour"), "hour", 0, MAX_HOURS_IN_DAY),
            day=day,
            mday=mday,
            yday=_map_ints(opts.get("yday"), "yday", 1, MAX_DAYS_IN_YEAR, signed=True),
            week=_map_ints(opts.get("week"), "week", 1, MAX_WEEKS_IN_YEAR, signed=True),
            month=month,
            at=_normalize_at(opts.get("at")),
            except_=_normalize_except(opts.get("except")),
            during=_normalize_during(opts.get("during")),
            covering=_normalize_covering(opts.get("covering")),
            week_start=(
                _day_number(opts["week_start"])
                if opts.get("week_start") is not None
                else _DEFAULT_WEEK_START
            ),
        )

    @property
    def start_time(self) -> datetime:
        """`starts` refined to the earliest `at` time on or after it that same day."""
        if not self.at:
            return self.starts
        candidates = [
            self.starts.replace(hour=tod.hour, minute=tod.minute, second=0) for tod in self.at
        ]
        later = [c for c in candidates if c >= self.starts]
        return min(later) if later else self.starts

    @property
    def has_nth_days(self) -> bool:
        return isinstance(self.day, dict)

    def has(self, option: str) -> bool:
        return getattr(self, _STORED_FIELDS.get(option, option)) is not None

    def to_dict(self) -> dict[str, Any]:
        """Canonical option mapping; absent options are omitted."""
        result: dict[str, Any] = {"every": self.frequency, "interval": self.interval}
        result["starts"] = self.starts
        for key, field in _STORED_FIELDS.items():
            value = getattr(self, field)
            if value is None:
                continue
            result[key] = dict(value) if isinstance(value, dict) else value
        if self.exclude_end:
            result["exclude_end"] = True
        if self.week_start != _DEFAULT_WEEK_START:
            result["week_start"] = self.week_start
        return result

    def merge(self, other: RecurrenceSpec | Mapping[str, Any]) -> RecurrenceSpec:
        """Return a new spec with `other`'s present options laid over this one's."""
        overrides = other.to_dict() if isinstance(other, RecurrenceSpec) else _expand(other)
        merged = self.to_dict()
        merged.update({k: v for k, v in overrides.items() if v is not None})
        return RecurrenceSpec.from_options(merged)


_STORED_FIELDS: dict[str, str] = {
    "until": "until",
    "total": "total",
    "minute": "minute",
    "hour": "hour",
    "day": "day",
    "mday": "mday",
    "yday": "yday",
    "week": "week",
    "month": "month",
    "at": "at",
    "except": "except_",
    "during": "during",
    "covering": "covering",
}


# --- Key handling ---


def _canonical_keys(options: Mapping[str, Any]) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for key, value in options.items():
        canonical = _OPTION_ALIASES.get(str(key))
        if canonical is None:
            raise CadenceError.config(f"Unknown option {key!r}")
        if value is not None:
            result[canonical] = value
    return result


def _expand(options: Mapping[str, Any]) -> dict[str, Any]:
    """Decompose composite inputs so they merge field by field."""
    opts = _canonical_keys(options)
    if "every" in opts:
        frequency, interval = _parse_frequency(opts["every"])
        opts["every"] = frequency
        if interval is not None and "interval" not in opts:
            opts["interval"] = interval
    if "between" in opts:
        first, last = _as_pair(opts.pop("between"), "between")
        opts.setdefault("starts", first)
        opts.setdefault("until", last)
    if "on" in opts:
        opts.update(_decompose_on(opts.pop("on")))
    return opts


# --- Scalars ---


def _parse_frequency(value: Any) -> tuple[Frequency, int | None]:
    match value:
        case None:
            raise CadenceError.config("Required option 'every' not provided")
        case Frequency():
            return value, None
        case str():
            frequency = Frequency.try_parse(value)
            if frequency is None:
                raise CadenceError.config(
                    f"Don't know how to enumerate every: {value!r}, "
                    f"must be one of {[f.value for f in Frequency]}"
                )
            return frequency, None
        case timedelta():
            return _timedelta_to_frequency(value)
        case (unit, interval):
            frequency, _ = _parse_frequency(unit)
            return frequency, _positive_int(interval, "interval")
    raise CadenceError.config(f"Don't know how to enumerate every: {value!r}")


def _timedelta_to_frequency(delta: timedelta) -> tuple[Frequency, int]:
    seconds = int(delta.total_seconds())
    if seconds <= 0 or seconds % 60 != 0 or delta.microseconds:
        raise CadenceError.config(f"every: {delta} is not a positive whole number of minutes")
    for frequency, unit_seconds in (
        (Frequency.WEEK, 7 * 86400),
        (Frequency.DAY, 86400),
        (Frequency.HOUR, 3600),
        (Frequency.MINUTE, 60),
    ):
        if seconds % unit_seconds == 0:
            return frequency, seconds // unit_seconds
    raise CadenceError.invariant(f"no frequency unit divides {delta}")  # pragma: no cover


def _as_int(value: Any, field: str) -> int:
    if isinstance(value, bool):
        raise CadenceError.config(f"{field}: expected an integer, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and re.fullmatch(r"\s*[+-]?\d+\s*", value):
        return int(value)
    raise CadenceError.config(f"{field}: expected an integer, got {value!r}")


def _positive_int(value: Any, field: str) -> int:
    n = _as_int(value, field)
    if n < 1:
        raise CadenceError.config(f"{field} must be a positive integer, got {n}")
    return n


def _assert_range(n: int, low: int, high: int, field: str, signed: bool = False) -> int:
    test = abs(n) if signed else n
    if not low <= test <= high:
        bounds = f"+/-{low}..{high}" if signed else f"{low}..{high}"
        raise CadenceError.config(f"Out of range: {field} must be in {bounds}, got {n}")
    return n


def _parse_datetime(value: str, field: str) -> datetime:
    try:
        return date_parser.parse(value)
    except (ValueError, OverflowError) as e:
        raise CadenceError.config(f"{field}: could not parse {value!r} as a time") from e


def _as_time(value: Any, field: str) -> datetime | None:
    match value:
        case None:
            return None
        case datetime():
            return normalize_time(value)
        case date():
            return datetime.combine(value, time())
        case str():
            return normalize_time(_parse_datetime(value, field))
    raise CadenceError.config(f"{field}: expected a datetime, date or string, got {value!r}")


def _as_date(value: Any, field: str) -> date:
    match value:
        case datetime():
            return value.date()
        case date():
            return value
        case str():
            return _parse_datetime(value, field).date()
    raise CadenceError.config(f"{field}: expected a date, got {value!r}")


def _resolve_default(provider: DefaultProvider, field: str) -> datetime | None:
    value = provider() if callable(provider) else provider
    return _as_time(value, field)


def _as_pair(value: Any, field: str) -> tuple[Any, Any]:
    if isinstance(value, (list, tuple)) and len(value) == 2:
        return value[0], value[1]
    raise CadenceError.config(f"{field}: expected a (first, last) pair, got {value!r}")


# --- Collections ---


def _flatten(value: Any) -> list[Any]:
    match value:
        case None:
            return []
        case str():
            return [part.strip() for part in value.split(",") if part.strip()]
        case range() | list() | tuple() | set() | frozenset():
            return list(value)
    return [value]


def _map_ints(
    value: Any, field: str, low: int, high: int, signed: bool = False
) -> tuple[int, ...] | None:
    if value is None:
        return None
    items = [_assert_range(_as_int(v, field), low, high, field, signed) for v in _flatten(value)]
    if not items:
        return None
    return tuple(sorted(set(items)))


def _normalize_mdays(value: Any) -> tuple[int, ...] | None:
    return _map_ints(value, "mday", 1, MAX_DAYS_IN_MONTH, signed=True)


def _month_number(value: Any) -> int:
    match value:
        case Month():
            return value.number
        case bool():
            pass
        case int() if 1 <= value <= 12:
            return value
        case str():
            month = Month.try_parse(value)
            if month is not None:
                return month.number
            if value.strip().isdigit() and 1 <= int(value) <= 12:
                return int(value)
    raise CadenceError.config(
        f"Did not recognize month {value!r}, must be one of "
        f"{[m.value for m in Month]} or 1..12"
    )


def _normalize_months(value: Any) -> tuple[int, ...] | None:
    items = [_month_number(v) for v in _flatten(value)]
    return tuple(sorted(set(items))) or None


def _day_number(value: Any) -> int:
    match value:
        case Weekday():
            return value.number
        case bool():
            pass
        case int() if 0 <= value <= 6:
            return value
        case str():
            weekday = Weekday.try_parse(value)
            if weekday is not None:
                return weekday.number
            if value.strip().isdigit() and 0 <= int(value) <= 6:
                return int(value)
    raise CadenceError.config(
        f"Did not recognize day {value!r}, must be one of "
        f"{[d.value for d in Weekday]} or 0..6"
    )


def _ordinal(value: Any) -> int:
    n = _as_int(value, "day ordinal")
    if n == 0:
        raise CadenceError.config("day ordinal must be non-zero")
    return _assert_range(n, 1, MAX_WEEKS_IN_YEAR, "day ordinal", signed=True)


def _split_day_token(token: Any) -> tuple[int, int | None]:
    if isinstance(token, str):
        m = _ORDINAL_DAY_RE.match(token.strip())
        if m:
            return _day_number(m.group(2)), _ordinal(m.group(1))
    return _day_number(token), None


def _normalize_days(value: Any) -> Weekdays | NthWeekdays | None:
    if value is None:
        return None
    if isinstance(value, Mapping):
        nth: NthWeekdays = {}
        for key, ordinals in value.items():
            nth[_day_number(key)] = tuple(sorted({_ordinal(o) for o in _flatten(ordinals)}))
        return nth or None

    tokens = [_split_day_token(t) for t in _flatten(value)]
    if not tokens:
        return None
    if all(ordinal is None for _, ordinal in tokens):
        return tuple(sorted({day for day, _ in tokens}))

    grouped: dict[int, set[int] | None] = {}
    for day, ordinal in tokens:
        if ordinal is None:
            grouped[day] = None
        elif day not in grouped:
            grouped[day] = {ordinal}
        elif grouped[day] is not None:
            grouped[day].add(ordinal)  # type: ignore[union-attr]
    return {day: tuple(sorted(ords)) if ords else () for day, ords in grouped.items()}


def _decompose_on(value: Any) -> dict[str, Any]:
    """Split `on` into day/month/mday, e.g. {"friday": 13} -> day=(5,), mday=(13,)."""
    if not isinstance(value, Mapping):
        weekdays = _normalize_days(value)
        return {} if weekdays is None else {"day": weekdays}

    days: set[int] = set()
    months: set[int] = set()
    mdays: set[int] = set()
    for key, mday in value.items():
        if _is_month_key(key):
            months.add(_month_number(key))
        elif _is_day_key(key):
            days.add(_day_number(key))
        else:
            raise CadenceError.config(f"Did not recognize {key!r} as a month or day")
        mdays.update(_normalize_mdays(mday) or ())

    result: dict[str, Any] = {}
    if days:
        result["day"] = tuple(sorted(days))
    if months:
        result["month"] = tuple(sorted(months))
    if mdays:
        result["mday"] = tuple(sorted(mdays))
    return result


def _is_month_key(key: Any) -> bool:
    return isinstance(key, Month) or (isinstance(key, str) and Month.try_parse(key) is not None)


def _is_day_key(key: Any) -> bool:
    return isinstance(key, Weekday) or (
        isinstance(key, str) and Weekday.try_parse(key) is not None
    )


# --- Time of day ---


def _as_clock_time(value: Any, field: str) -> time:
    match value:
        case time():
            return value.replace(microsecond=0, tzinfo=None)
        case TimeOfDay(hour=h, minute=m):
            return time(h, m)
        case datetime():
            return value.time().replace(microsecond=0)
        case (int() as h, int() as m):
            return _checked_time(h, m, 0, field)
        case (int() as h, int() as m, int() as s):
            return _checked_time(h, m, s, field)
        case str():
            return _parse_datetime(value, field).time().replace(microsecond=0)
    raise CadenceError.config(f"{field}: could not interpret {value!r} as a time of day")


def _checked_time(h: int, m: int, s: int, field: str) -> time:
    try:
        return time(h, m, s)
    except ValueError as e:
        raise CadenceError.config(f"{field}: invalid time of day {(h, m, s)!r}") from e


def _normalize_at(value: Any) -> tuple[TimeOfDay, ...] | None:
    if value is None:
        return None
    if isinstance(value, (TimeOfDay, time)) or _is_parts(value):
        value = [value]
    times = set()
    for item in _flatten(value):
        t = _as_clock_time(item, "at")
        times.add(TimeOfDay(t.hour, t.minute))
    return tuple(sorted(times)) or None


def _is_parts(value: Any) -> bool:
    return (
        isinstance(value, (tuple, list))
        and 2 <= len(value) <= 3
        and all(isinstance(v, int) and not isinstance(v, bool) for v in value)
    )


def _is_time_like(value: Any) -> bool:
    if isinstance(value, str):
        return _WINDOW_SPLIT_RE.search(value.strip()) is None
    return isinstance(value, (time, TimeOfDay)) or _is_parts(value)


def _window(value: Any) -> list[TimeWindow]:
    if isinstance(value, str):
        parts = _WINDOW_SPLIT_RE.split(value.strip())
        if len(parts) != 2:
            raise CadenceError.config(f"during: expected 'start-end', got {value!r}")
        first, last = parts
    else:
        first, last = _as_pair(value, "during")
    start = _as_clock_time(first, "during")
    end = _as_clock_time(last, "during")
    if end < start:
        return [(start, time(23, 59, 59)), (time(0, 0, 0), end)]
    return [(start, end)]


def _normalize_during(value: Any) -> tuple[TimeWindow, ...] | None:
    if value is None:
        return None
    if isinstance(value, str) or (
        isinstance(value, (tuple, list)) and len(value) == 2 and all(map(_is_time_like, value))
    ):
        windows = _window(value)
    else:
        windows = [w for item in _iter_items(value) for w in _window(item)]
    return tuple(windows) or None


def _iter_items(value: Any) -> Iterable[Any]:
    if isinstance(value, (list, tuple, set, frozenset)):
        return value
    return [value]


# --- Dates ---


def _normalize_except(value: Any) -> tuple[date, ...] | None:
    dates = {_as_date(d, "except") for d in _flatten(value)}
    return tuple(sorted(dates)) or None


def _normalize_covering(value: Any) -> tuple[datetime | date, datetime | date] | None:
    if value is None:
        return None
    first, last = (_as_calendar_date(v) for v in _as_pair(value, "covering"))
    bounds: tuple[datetime | date, datetime | date]
    if _is_plain_date(first) and _is_plain_date(last):
        bounds = (first, last)
    else:
        start = _as_time(first, "covering")
        end = _as_time(last, "covering")
        if start is None or end is None:
            raise CadenceError.config(f"covering: both ends are required, got {value!r}")
        bounds = (start, end)
    if bounds[1] < bounds[0]:  # type: ignore[operator]
        raise CadenceError.config(f"covering: range ends before it starts: {value!r}")
    return bounds


def _is_plain_date(value: Any) -> bool:
    return isinstance(value, date) and not isinstance(value, datetime)


def _as_calendar_date(value: Any) -> Any:
    """ISO date-only strings stand for whole days, like `date` objects."""
    if isinstance(value, str) and _ISO_DATE_RE.match(value.strip()):
        return date.fromisoformat(value.strip())
    return value
