from __future__ import annotations

import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from typing import Literal

from .errors import ValidationError
from .temporal import Duration, Instant

RecurrenceTag = Literal["RDATE", "EXDATE"]

EVENT_STATUS_VALUES = ("CONFIRMED", "TENTATIVE", "CANCELLED")
EVENT_CLASS_VALUES = ("PUBLIC", "PRIVATE", "CONFIDENTIAL")
EVENT_TRANSP_VALUES = ("OPAQUE", "TRANSPARENT")
RECURRENCE_TAGS: tuple[RecurrenceTag, ...] = ("RDATE", "EXDATE")
MIN_PRIORITY = 0
MAX_PRIORITY = 9
UID_DOMAIN = "calmerge"


def new_uid() -> str:
    return f"{uuid.uuid4()}@{UID_DOMAIN}"


def new_calendar_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class RecurrenceDate:
    instant: Instant
    tag: RecurrenceTag = "RDATE"

    def __post_init__(self) -> None:
        if self.tag not in RECURRENCE_TAGS:
            raise ValidationError("recurrence_dates", f"unknown tag {self.tag!r}")


@dataclass(frozen=True)
class Organizer:
    email: str
    name: str | None = None


@dataclass(frozen=True)
class Attendee:
    email: str
    name: str | None = None
    role: str | None = None
    status: str | None = None
    rsvp: bool = False


@dataclass(frozen=True)
class Alarm:
    """A VALARM; ``trigger`` is relative to the start (Duration) or absolute (Instant)."""

    trigger: Duration | Instant
    action: str = "DISPLAY"
    summary: str | None = None
    description: str | None = None
    duration: Duration | None = None
    repeat: int | None = None


def unique_recurrence_dates(dates: Iterable[RecurrenceDate]) -> tuple[RecurrenceDate, ...]:
    """Collapse repeated (instant, tag) pairs, keeping first-seen order."""
    seen: set[RecurrenceDate] = set()
    ordered: list[RecurrenceDate] = []
    for item in dates:
        if item in seen:
            continue
        seen.add(item)
        ordered.append(item)
    return tuple(ordered)


@dataclass(frozen=True)
class Event:
    title: str
    start: Instant
    end: Instant

    description: str | None = None
    location: str | None = None
    status: str | None = None
    event_class: str | None = None
    transparency: str | None = None
    priority: int | None = None
    url: str | None = None
    color: str | None = None

    organizer: Organizer | None = None
    attendees: tuple[Attendee, ...] = ()
    alarms: tuple[Alarm, ...] = ()
    categories: tuple[str, ...] = ()
    resources: tuple[str, ...] = ()

    rrule: str | None = None
    recurrence_dates: tuple[RecurrenceDate, ...] = ()
    uid: str = field(default_factory=new_uid)
    recurrence_id: Instant | None = None
    sequence: int = 0

    def __post_init__(self) -> None:
        if not self.title or not self.title.strip():
            raise ValidationError("title", "must not be empty")
        if not self.start.comparable_with(self.end):
            raise ValidationError(
                "end", f"cannot mix {self.start.kind} start with {self.end.kind} end"
            )
        if self.end < self.start:
            raise ValidationError("end", "must not be before start")
        if self.status is not None and self.status not in EVENT_STATUS_VALUES:
            raise ValidationError("status", f"unsupported value {self.status!r}")
        if self.event_class is not None and self.event_class not in EVENT_CLASS_VALUES:
            raise ValidationError("event_class", f"unsupported value {self.event_class!r}")
        if self.transparency is not None and self.transparency not in EVENT_TRANSP_VALUES:
            raise ValidationError("transparency", f"unsupported value {self.transparency!r}")
        if self.priority is not None and not MIN_PRIORITY <= self.priority <= MAX_PRIORITY:
            raise ValidationError("priority", f"must be within {MIN_PRIORITY}-{MAX_PRIORITY}")
        if self.sequence < 0:
            raise ValidationError("sequence", "must not be negative")
        if not self.uid:
            raise ValidationError("uid", "must not be empty")

        # Collections are stored as tuples so events never alias a caller's list.
        for name in ("attendees", "alarms", "categories", "resources"):
            value = getattr(self, name)
            if not isinstance(value, tuple):
                object.__setattr__(self, name, tuple(value))
        object.__setattr__(self, "recurrence_dates", unique_recurrence_dates(self.recurrence_dates))

    @property
    def is_all_day(self) -> bool:
        return self.start.is_date_only

    @property
    def rdates(self) -> tuple[Instant, ...]:
        return tuple(d.instant for d in self.recurrence_dates if d.tag == "RDATE")

    @property
    def exdates(self) -> tuple[Instant, ...]:
        return tuple(d.instant for d in self.recurrence_dates if d.tag == "EXDATE")

    def edited(self, **changes: object) -> Event:
        """Apply a user edit; the owning system bumps SEQUENCE here and nowhere else."""
        if "uid" in changes or "sequence" in changes:
            raise ValidationError("uid", "uid and sequence are not editable")
        return replace(self, **changes, sequence=self.sequence + 1)  # type: ignore[arg-type]


@dataclass(frozen=True)
class Calendar:
    name: str
    events: tuple[Event, ...] = ()
    color: str | None = None
    source_url: str | None = None
    id: str = field(default_factory=new_calendar_id)

    def __post_init__(self) -> None:
        if not isinstance(self.events, tuple):
            object.__setattr__(self, "events", tuple(self.events))


@dataclass(frozen=True)
class EventFingerprint:
    title: str
    start: Instant
    end: Instant


def fingerprint(event: Event) -> EventFingerprint:
    """Identity used for duplicate detection: normalized title plus exact time span.

    Description, location and attendees are deliberately ignored.
    """
    return EventFingerprint(title=event.title.strip().lower(), start=event.start, end=event.end)
