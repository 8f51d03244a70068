"""Overlap detection between events.

Timed events are compared only with events of the same instant kind: a UTC
meeting and a floating wall-clock meeting have no common clock. All-day events
are widened to ``[midnight, next midnight)`` and treated as neutral, so they are
checked against every timed event as well as against each other.
"""

from __future__ import annotations

import heapq
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta

from .models import Event
from .temporal import InstantKind

_ONE_DAY = timedelta(days=1)


@dataclass(frozen=True)
class _Span:
    start: datetime
    end: datetime
    kind: InstantKind
    index: int


def _span(event: Event, index: int) -> _Span:
    start = event.start.moment
    end = event.end.moment
    if event.start.is_date_only:
        end = max(end, start + _ONE_DAY)
        return _Span(start=start, end=end, kind="date_only", index=index)
    return _Span(start=start, end=end, kind=event.start.kind, index=index)


def _comparable(a: _Span, b: _Span) -> bool:
    return a.kind == b.kind or a.kind == "date_only" or b.kind == "date_only"


def _overlaps(a: _Span, b: _Span) -> bool:
    return a.start < b.end and b.start < a.end


def has_overlap(a: Event, b: Event) -> bool:
    """Pairwise overlap test; events sharing only a boundary instant do not overlap."""
    left, right = _span(a, 0), _span(b, 1)
    return _comparable(left, right) and _overlaps(left, right)


def find_conflicts(events: Sequence[Event]) -> list[tuple[Event, Event]]:
    """Return every pair of overlapping events.

    Sweep over events ordered by start (input position breaks ties) while a
    heap keyed on end time holds the intervals still open. Each pair is
    reported once, earlier-starting event first.
    """
    spans = sorted(
        (_span(event, index) for index, event in enumerate(events)),
        key=lambda span: (span.start, span.index),
    )
    active: list[tuple[datetime, int, _Span]] = []
    conflicts: list[tuple[Event, Event]] = []

    for current in spans:
        while active and active[0][0] <= current.start:
            heapq.heappop(active)
        for _, _, other in sorted(active, key=lambda item: (item[2].start, item[2].index)):
            if _comparable(other, current) and _overlaps(other, current):
                conflicts.append((events[other.index], events[current.index]))
        heapq.heappush(active, (current.end, current.index, current))

    return conflicts
