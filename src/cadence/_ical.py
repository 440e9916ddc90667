from __future__ import annotations

import logging
import re
from datetime import date, datetime, timedelta, timezone
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dateutil.parser import isoparse

from ._error import CadenceError
from ._options import RecurrenceSpec
from ._units import Frequency, Weekday

logger = logging.getLogger(__name__)

_PROPERTY_RE = re.compile(r"^(DTSTART|DTEND|EXDATE|RDATE|RRULE)\b", re.IGNORECASE)

_ICAL_FREQUENCIES: dict[str, Frequency] = {f.ical: f for f in Frequency}

_LIST_TERMS: dict[str, str] = {
    "BYMINUTE": "minute",
    "BYHOUR": "hour",
    "BYMONTH": "month",
    "BYMONTHDAY": "mday",
    "BYYEARDAY": "yday",
    "BYWEEKNO": "week",
}


# ============================================================================
# from_ical: RFC 5545 DTSTART / EXDATE / RRULE subset -> option mapping
# ============================================================================


def from_ical(ical: str) -> dict[str, Any]:
    """Parse an iCalendar recurrence description into recurrence options.

    Only produces the option mapping; build a `Recurrence` from it to
    enumerate occurrences.
    """
    options: dict[str, Any] = {}
    for line in _property_lines(ical):
        name, sep, value = line.partition(":")
        if not sep:
            raise CadenceError.config(f"Malformed iCalendar line {line!r}")
        prop, *params = name.split(";")
        value = value.strip()

        match prop.upper():
            case "DTSTART":
                if value:
                    options["starts"] = _parse_ical_time(value, params)
            case "EXDATE":
                if value:
                    excepted = [_parse_ical_time(v, params).date() for v in value.split(",")]
                    options["except"] = [*options.get("except", []), *excepted]
            case "RRULE":
                options.update(_parse_rrule(value))
            case _:
                logger.warning("%s not currently supported, ignoring", prop.upper())

    return _align_until(options)


def _property_lines(ical: str) -> list[str]:
    lines: list[str] = []
    for raw in ical.splitlines():
        if not raw.strip():
            continue
        if _PROPERTY_RE.match(raw.strip()) and not raw[0].isspace():
            lines.append(raw.strip())
        elif lines:
            # continuation of the previous property
            lines[-1] += raw.strip()
        else:
            raise CadenceError.config(f"Unrecognized iCalendar line {raw.strip()!r}")
    return lines


def _tzid(params: list[str]) -> str | None:
    for param in params:
        key, _, value = param.partition("=")
        if key.upper() == "TZID" and value:
            return value
    return None


def _parse_ical_time(value: str, params: list[str]) -> datetime:
    try:
        parsed = isoparse(value.strip())
    except ValueError as e:
        raise CadenceError.config(f"Could not parse iCalendar time {value!r}") from e

    tz_name = _tzid(params)
    if tz_name is None or parsed.tzinfo is not None:
        return parsed
    try:
        return parsed.replace(tzinfo=ZoneInfo(tz_name))
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise CadenceError.config(f"Unknown time zone {tz_name!r}") from e


def _parse_rrule(rrule: str) -> dict[str, Any]:
    options: dict[str, Any] = {}
    for term in re.sub(r"\s+", "", rrule).split(";"):
        if not term:
            continue
        prop, _, value = term.partition("=")
        match prop.upper():
            case "FREQ":
                frequency = _ICAL_FREQUENCIES.get(value.upper())
                if frequency is None:
                    raise CadenceError.config(f"Unsupported FREQ {value!r}")
                options["every"] = frequency
            case "INTERVAL":
                options["interval"] = _ical_int(prop, value)
            case "COUNT":
                options["total"] = _ical_int(prop, value)
            case "UNTIL":
                options["until"] = _parse_ical_time(value, [])
            case "BYDAY":
                options["day"] = value
            case "WKST":
                options["week_start"] = value
            case "BYSETPOS":
                logger.warning("BYSETPOS not currently supported, ignoring")
            case key if key in _LIST_TERMS:
                options[_LIST_TERMS[key]] = [_ical_int(prop, v) for v in value.split(",")]
            case _:
                raise CadenceError.config(f"Unrecognized rrule {term!r}")
    return options


def _ical_int(prop: str, value: str) -> int:
    try:
        return int(value)
    except ValueError as e:
        raise CadenceError.config(f"{prop}: expected an integer, got {value!r}") from e


def _align_until(options: dict[str, Any]) -> dict[str, Any]:
    """Express UNTIL in the same kind of time as DTSTART (zoned or floating)."""
    starts = options.get("starts")
    until = options.get("until")
    if not isinstance(starts, datetime) or not isinstance(until, datetime):
        return options
    if starts.tzinfo is not None and until.tzinfo is not None:
        options["until"] = until.astimezone(starts.tzinfo)
    elif starts.tzinfo is None and until.tzinfo is not None:
        options["until"] = until.replace(tzinfo=None)
    elif starts.tzinfo is not None and until.tzinfo is None:
        options["until"] = until.replace(tzinfo=starts.tzinfo)
    return options


# ============================================================================
# to_ical: RecurrenceSpec -> DTSTART / EXDATE / RRULE text
# ============================================================================


def to_ical(spec: RecurrenceSpec) -> str:
    if spec.during:
        raise CadenceError.config("not expressible as RRULE (during windows not supported)")
    if spec.covering:
        raise CadenceError.config("not expressible as RRULE (covering ranges not supported)")
    if spec.at and len(spec.at) > 1:
        raise CadenceError.config("not expressible as RRULE (multiple at times not supported)")

    start = spec.start_time
    lines = [_format_property("DTSTART", start)]
    if spec.except_:
        lines.append("EXDATE;VALUE=DATE:" + ",".join(_format_date(d) for d in spec.except_))

    parts = [f"FREQ={spec.frequency.ical}"]
    if spec.interval != 1:
        parts.append(f"INTERVAL={spec.interval}")
    if spec.total is not None:
        parts.append(f"COUNT={spec.total}")
    if spec.until is not None:
        # UNTIL is inclusive
        until = spec.until - timedelta(seconds=1) if spec.exclude_end else spec.until
        parts.append(f"UNTIL={_format_until(until)}")
    for prop, values in (
        ("BYMONTH", spec.month),
        ("BYWEEKNO", spec.week),
        ("BYYEARDAY", spec.yday),
        ("BYMONTHDAY", spec.mday),
    ):
        if values:
            parts.append(f"{prop}={_join(values)}")
    if spec.day:
        parts.append(f"BYDAY={_format_days(spec.day)}")
    hour, minute = _time_terms(spec)
    if hour:
        parts.append(f"BYHOUR={_join(hour)}")
    if minute:
        parts.append(f"BYMINUTE={_join(minute)}")
    if spec.week_start != Weekday.MONDAY.number:
        parts.append(f"WKST={_weekday_code(spec.week_start)}")
    lines.append("RRULE:" + ";".join(parts))
    return "\n".join(lines)


def _time_terms(spec: RecurrenceSpec) -> tuple[tuple[int, ...] | None, tuple[int, ...] | None]:
    """BYHOUR/BYMINUTE values, carrying a single `at` time DTSTART alone cannot."""
    if not spec.at:
        return spec.hour, spec.minute
    tod = spec.at[0]
    start = spec.start_time
    on_start = start.second == 0 and (start.hour, start.minute) == (tod.hour, tod.minute)
    if on_start and spec.frequency not in (Frequency.MINUTE, Frequency.HOUR):
        return spec.hour, spec.minute
    if spec.hour or spec.minute:
        raise CadenceError.config("not expressible as RRULE (at combined with hour or minute)")
    return (tod.hour,), (tod.minute,)


def _join(values: tuple[int, ...]) -> str:
    return ",".join(str(v) for v in values)


def _weekday_code(n: int) -> str:
    weekday = Weekday.from_number(n)
    if weekday is None:
        raise CadenceError.invariant(f"weekday number out of range: {n}")  # pragma: no cover
    return weekday.ical


def _format_days(day: tuple[int, ...] | dict[int, tuple[int, ...]]) -> str:
    if not isinstance(day, dict):
        return ",".join(_weekday_code(d) for d in day)
    tokens: list[str] = []
    for d, ordinals in sorted(day.items()):
        code = _weekday_code(d)
        if ordinals:
            tokens.extend(f"{n}{code}" for n in ordinals)
        else:
            tokens.append(code)
    return ",".join(tokens)


def _format_date(d: date) -> str:
    return d.strftime("%Y%m%d")


def _format_property(prop: str, t: datetime) -> str:
    if t.tzinfo is None:
        return f"{prop}:{t.strftime('%Y%m%dT%H%M%S')}"
    key = getattr(t.tzinfo, "key", None)
    if key:
        return f"{prop};TZID={key}:{t.strftime('%Y%m%dT%H%M%S')}"
    return f"{prop}:{t.astimezone(timezone.utc).strftime('%Y%m%dT%H%M%SZ')}"


def _format_until(t: datetime) -> str:
    if t.tzinfo is None:
        return t.strftime("%Y%m%dT%H%M%S")
    return t.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
