from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, replace

from .dedup import DedupPolicy, resolve
from .models import Calendar

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MergeResult:
    calendar: Calendar
    merged_events: int
    removed_duplicates: int


@dataclass(frozen=True)
class CleanResult:
    calendar: Calendar
    removed_count: int
    remaining_events: int


def merge(
    calendars: Sequence[Calendar], new_name: str, remove_duplicates: bool = False
) -> MergeResult:
    """Combine the events of ``calendars`` into a brand-new calendar.

    Sources are read in the order given, each keeping its own event order, so
    when duplicates are removed the copy from the earliest calendar survives.
    Source calendars are never modified. Callers enforce the two-calendar
    minimum; here 0 or 1 sources simply produce a copy.
    """
    combined = [event for calendar in calendars for event in calendar.events]
    result = resolve(combined, DedupPolicy(remove_duplicates=remove_duplicates))
    events = result.events
    removed = len(result.removed) if remove_duplicates else 0

    target = Calendar(name=new_name, events=events)
    logger.info(
        "merge summary sources=%s scanned=%s merged=%s removed_duplicates=%s target=%s",
        len(calendars),
        len(combined),
        len(events),
        removed,
        target.id,
    )
    return MergeResult(calendar=target, merged_events=len(events), removed_duplicates=removed)


def clean_duplicates(calendar: Calendar) -> CleanResult:
    """Drop repeated events from one calendar, keeping its identity and metadata."""
    result = resolve(calendar.events)
    cleaned = replace(calendar, events=result.kept)
    if result.removed:
        logger.info(
            "clean summary calendar=%s removed=%s remaining=%s",
            calendar.id,
            len(result.removed),
            len(result.kept),
        )
    return CleanResult(
        calendar=cleaned,
        removed_count=len(result.removed),
        remaining_events=len(result.kept),
    )
