from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Protocol

from .bundle import DEFAULT_PROD_ID, serialize_bundle
from .conflicts import find_conflicts
from .dedup import DedupResult, resolve
from .errors import PreconditionError
from .merge import CleanResult, MergeResult, clean_duplicates, merge
from .models import Calendar, Event

logger = logging.getLogger(__name__)

MIN_MERGE_CALENDARS = 2
MAX_BUNDLE_CALENDARS = 15


class CalendarProvider(Protocol):
    def get_calendar(self, calendar_id: str) -> Calendar:
        """Return the calendar with its events in stored order; raise LookupError if unknown."""
        ...


class CalendarSink(Protocol):
    def save_calendar(self, calendar: Calendar) -> str:
        """Persist ``calendar`` and return where it was stored."""
        ...


class CalendarService:
    """Request-level entry points: validate input, load calendars, run the core."""

    def __init__(
        self,
        provider: CalendarProvider,
        sink: CalendarSink | None = None,
        *,
        prod_id: str = DEFAULT_PROD_ID,
    ) -> None:
        self.provider = provider
        self.sink = sink
        self.prod_id = prod_id

    def merge(
        self, calendar_ids: Sequence[str], name: str, remove_duplicates: bool = False
    ) -> MergeResult:
        if len(calendar_ids) < MIN_MERGE_CALENDARS:
            raise PreconditionError(
                f"merge needs at least {MIN_MERGE_CALENDARS} calendars, got {len(calendar_ids)}"
            )
        if not name.strip():
            raise PreconditionError("merged calendar name must not be empty")
        if self.sink is None:
            raise PreconditionError("merge needs a calendar sink to store the result")

        calendars = self._load(calendar_ids)
        result = merge(calendars, name.strip(), remove_duplicates=remove_duplicates)
        location = self.sink.save_calendar(result.calendar)
        logger.info("merged calendar stored id=%s at=%s", result.calendar.id, location)
        return result

    def bundle(
        self,
        calendar_ids: Sequence[str],
        remove_duplicates: bool = False,
        name: str | None = None,
    ) -> str:
        if not calendar_ids:
            raise PreconditionError("bundle needs at least one calendar")
        if len(calendar_ids) > MAX_BUNDLE_CALENDARS:
            raise PreconditionError(
                f"bundle holds at most {MAX_BUNDLE_CALENDARS} calendars, got {len(calendar_ids)}"
            )
        calendars = self._load(calendar_ids)
        return serialize_bundle(
            calendars, remove_duplicates, name=name, prod_id=self.prod_id
        )

    def conflicts(self, calendar_ids: Sequence[str]) -> list[tuple[Event, Event]]:
        events = [event for calendar in self._load(calendar_ids) for event in calendar.events]
        return find_conflicts(events)

    def duplicates(self, calendar_ids: Sequence[str]) -> DedupResult:
        events = [event for calendar in self._load(calendar_ids) for event in calendar.events]
        return resolve(events)

    def clean(self, calendar_id: str) -> CleanResult:
        result = clean_duplicates(self.provider.get_calendar(calendar_id))
        if result.removed_count and self.sink is not None:
            self.sink.save_calendar(result.calendar)
        return result

    def _load(self, calendar_ids: Sequence[str]) -> list[Calendar]:
        if len(set(calendar_ids)) != len(calendar_ids):
            raise PreconditionError("calendar ids must be unique")
        return [self.provider.get_calendar(calendar_id) for calendar_id in calendar_ids]
