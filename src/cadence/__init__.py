from __future__ import annotations

from ._error import (
    CadenceError,
    CadenceErrorKind,
    ConfigurationError,
    InvariantError,
    SerializationError,
)
from ._ical import from_ical, to_ical
from ._options import DefaultProvider, RecurrenceSpec
from ._recurrence import Recurrence
from ._schedule import Schedule, merge
from ._units import Frequency, Month, TimeOfDay, Weekday

__all__ = [
    "Recurrence",
    "Schedule",
    "merge",
    "RecurrenceSpec",
    "DefaultProvider",
    "from_ical",
    "to_ical",
    "Frequency",
    "Weekday",
    "Month",
    "TimeOfDay",
    "CadenceError",
    "CadenceErrorKind",
    "ConfigurationError",
    "InvariantError",
    "SerializationError",
]
