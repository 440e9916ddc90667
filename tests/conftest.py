from __future__ import annotations

import re
from collections.abc import Iterable
from datetime import datetime
from itertools import islice
from zoneinfo import ZoneInfo

import pytest

from cadence import Recurrence

# Tuesday, September 1, 2015 at noon: the anchor most examples count from.
STARTS = datetime(2015, 9, 1, 12, 0)


def parse_zoned(s: str) -> datetime:
    """Parse '2026-02-06T12:00:00+00:00[UTC]' into a timezone-aware datetime."""
    m = re.match(r"^(.+)\[(.+)\]$", s)
    if not m:
        raise ValueError(f"expected format 'ISO[TZ]', got: {s}")
    iso_part, tz_name = m.group(1), m.group(2)
    return datetime.fromisoformat(iso_part).astimezone(ZoneInfo(tz_name))


def take(events: Iterable[datetime], n: int) -> list[datetime]:
    return list(islice(events, n))


@pytest.fixture
def starts() -> datetime:
    return STARTS


@pytest.fixture
def recurrence(starts: datetime):
    """Factory for recurrences anchored at `starts` unless told otherwise."""

    def build(**options: object) -> Recurrence:
        options.setdefault("starts", starts)
        return Recurrence(options)

    return build
