from __future__ import annotations

import json
from collections.abc import Iterator, Mapping
from datetime import date, datetime, time
from enum import Enum
from typing import Any

from ._error import CadenceError
from ._eval import between as _between
from ._eval import matches as _matches
from ._eval import next_n as _next_n
from ._eval import occurrences as _occurrences
from ._ical import from_ical as _from_ical
from ._ical import to_ical as _to_ical
from ._options import DefaultProvider, RecurrenceSpec
from ._units import TimeOfDay


class Recurrence:
    """A repeating event: an immutable spec plus the ways to enumerate it.

    Every call to `events()` (or iteration) starts a fresh, independent
    generation, so one recurrence can be iterated any number of times.
    """

    _spec: RecurrenceSpec

    def __init__(
        self,
        options: Recurrence | RecurrenceSpec | Mapping[str, Any] | None = None,
        /,
        *,
        default_starts: DefaultProvider = None,
        default_until: DefaultProvider = None,
        **kwargs: Any,
    ) -> None:
        if isinstance(options, Recurrence):
            options = options.spec
        if isinstance(options, RecurrenceSpec):
            if default_starts is not None or default_until is not None:
                raise CadenceError.config(
                    "default_starts and default_until only apply when building from options"
                )
            self._spec = options.merge(kwargs) if kwargs else options
        else:
            self._spec = RecurrenceSpec.from_options(
                options,
                default_starts=default_starts,
                default_until=default_until,
                **kwargs,
            )

    @classmethod
    def from_ical(cls, ical: str, **kwargs: Any) -> Recurrence:
        return cls(_from_ical(ical), **kwargs)

    @classmethod
    def from_json(cls, payload: str) -> Recurrence:
        try:
            options = json.loads(payload)
        except json.JSONDecodeError as e:
            raise CadenceError.serialization(f"Could not parse JSON: {e}") from e
        if not isinstance(options, dict):
            raise CadenceError.serialization(
                f"Expected a JSON object for a recurrence, got {type(options).__name__}"
            )
        return cls(options)

    @property
    def spec(self) -> RecurrenceSpec:
        return self._spec

    @property
    def starts_at(self) -> datetime:
        return self._spec.start_time

    @property
    def ends_at(self) -> datetime | None:
        return self._spec.until

    @property
    def length(self) -> int | None:
        return self._spec.total

    def is_finite(self) -> bool:
        return self._spec.until is not None or self._spec.total is not None

    def events(self, overrides: Mapping[str, Any] | None = None, **kwargs: Any) -> Iterator[datetime]:
        """Returns a lazy iterator of occurrences, optionally with options laid on top."""
        return _occurrences(self._spec, {**(overrides or {}), **kwargs})

    def __iter__(self) -> Iterator[datetime]:
        return self.events()

    def take(self, n: int) -> list[datetime]:
        return _next_n(self._spec, n)

    next_n = take

    def between(self, from_: datetime, to: datetime) -> Iterator[datetime]:
        """Returns a bounded iterator of occurrences where `from_ <= occurrence <= to`."""
        return _between(self._spec, from_, to)

    def include(self, t: datetime) -> bool:
        return _matches(self._spec, t)

    def __contains__(self, t: object) -> bool:
        return isinstance(t, datetime) and self.include(t)

    def merge(self, other: Recurrence | RecurrenceSpec | Mapping[str, Any]) -> Recurrence:
        if isinstance(other, Recurrence):
            other = other.spec
        return Recurrence(self._spec.merge(other))

    def to_dict(self) -> dict[str, Any]:
        return self._spec.to_dict()

    def to_json(self) -> str:
        return json.dumps(jsonable(self.to_dict()))

    def to_ical(self) -> str:
        return _to_ical(self._spec)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Recurrence):
            return NotImplemented
        return self._spec == other._spec

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Recurrence({jsonable(self.to_dict())!r})"


def jsonable(value: Any) -> Any:
    """Convert canonical option values into JSON-compatible primitives."""
    match value:
        case Enum():
            return value.value
        case datetime() | date():
            return value.isoformat()
        case time():
            return value.isoformat()
        case TimeOfDay():
            return str(value)
        case dict():
            return {str(k): jsonable(v) for k, v in value.items()}
        case (time() as start, time() as end):
            return f"{start.isoformat()}-{end.isoformat()}"
        case list() | tuple():
            return [jsonable(v) for v in value]
    return value
