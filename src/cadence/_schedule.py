from __future__ import annotations

import heapq
import json
import logging
from collections.abc import Iterable, Iterator, Mapping
from datetime import datetime
from typing import Any

from ._error import CadenceError
from ._recurrence import Recurrence, jsonable

logger = logging.getLogger(__name__)


def merge(*sources: Iterable[datetime]) -> Iterator[datetime]:
    """Lazily interleave already-ordered sequences into one ascending sequence.

    Equal values from different sources are each emitted, in the order the
    sources were given. Exhausted sources simply drop out.
    """
    iterators = [iter(source) for source in sources]
    heap: list[tuple[datetime, int]] = []
    for index, it in enumerate(iterators):
        first = next(it, None)
        if first is not None:
            heap.append((first, index))
    heapq.heapify(heap)

    while heap:
        value, index = heap[0]
        yield value
        following = next(iterators[index], None)
        if following is None:
            heapq.heappop(heap)
        else:
            heapq.heapreplace(heap, (following, index))


class Schedule:
    """An ordered collection of recurrences, enumerated as one merged sequence."""

    def __init__(self, rules: Iterable[Recurrence | Mapping[str, Any]] = ()) -> None:
        self._rules: list[Recurrence] = []
        for rule in rules:
            self.add(rule)

    @property
    def rules(self) -> tuple[Recurrence, ...]:
        return tuple(self._rules)

    def add(self, rule: Recurrence | Mapping[str, Any] | None = None, /, **kwargs: Any) -> Schedule:
        """Register a recurrence (or the options for one). Returns `self` for chaining."""
        recurrence = Recurrence(rule, **kwargs)
        self._rules.append(recurrence)
        logger.debug("added %r", recurrence)
        return self

    def __lshift__(self, rule: Recurrence | Mapping[str, Any]) -> Schedule:
        return self.add(rule)

    def include(self, t: datetime) -> bool:
        return any(rule.include(t) for rule in self._rules)

    def __contains__(self, t: object) -> bool:
        return isinstance(t, datetime) and self.include(t)

    def events(self, overrides: Mapping[str, Any] | None = None, **kwargs: Any) -> Iterator[datetime]:
        """Returns the merged, lazy sequence of every recurrence's occurrences."""
        return merge(*(rule.events(overrides, **kwargs) for rule in self._rules))

    def __iter__(self) -> Iterator[datetime]:
        return self.events()

    def __len__(self) -> int:
        return len(self._rules)

    def to_list(self) -> list[dict[str, Any]]:
        return [rule.to_dict() for rule in self._rules]

    def dump(self) -> str:
        return json.dumps([jsonable(options) for options in self.to_list()])

    @classmethod
    def load(cls, payload: str) -> Schedule:
        try:
            items = json.loads(payload)
        except json.JSONDecodeError as e:
            raise CadenceError.serialization(f"Could not parse JSON: {e}") from e
        if not isinstance(items, list) or not all(isinstance(item, dict) for item in items):
            raise CadenceError.serialization("Expected a JSON array of recurrence objects")
        return cls(items)

    def __repr__(self) -> str:
        return f"Schedule({self._rules!r})"
