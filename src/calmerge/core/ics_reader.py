"""Read VEVENTs out of ICS text.

One malformed third-party record must not block the rest of a file: bad
optional fields are dropped and bad events are skipped, each with a warning.
Documents are parsed with ``icalendar`` in its error-tolerant mode, so a value
that fails to parse reaches this module as ``vBroken`` raw text and is judged
by the temporal codec like any other.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from icalendar import Alarm as IcalAlarm
from icalendar import Calendar as IcalCalendar
from icalendar import Component, ComponentFactory, TypesFactory, vCategory, vUnknown
from icalendar.caselessdict import CaselessDict
from icalendar.parser import split_on_unescaped_comma, unescape_backslash

from .errors import ParseError, ValidationError
from .models import (
    EVENT_CLASS_VALUES,
    EVENT_STATUS_VALUES,
    EVENT_TRANSP_VALUES,
    MAX_PRIORITY,
    MIN_PRIORITY,
    Alarm,
    Attendee,
    Event,
    Organizer,
    RecurrenceDate,
)
from .temporal import Duration, Instant, add_duration, parse_duration, parse_instant

logger = logging.getLogger(__name__)

UNTITLED_EVENT = "Untitled Event"
_ONE_DAY = Duration(1, "days")


class _ReaderTypes(TypesFactory):
    # RRULE passes through as written; RESOURCES must be split before unescaping.
    types_map = CaselessDict(
        {**TypesFactory.types_map, "RRULE": "unknown", "RESOURCES": "unknown"}
    )


class _TolerantAlarm(IcalAlarm):
    ignore_exceptions = True


class _TolerantCalendar(IcalCalendar):
    ignore_exceptions = True
    types_factory = _ReaderTypes()

    @classmethod
    def _get_component_factory(cls) -> ComponentFactory:
        factory = ComponentFactory()
        factory.add_component_class(cls)
        factory.add_component_class(_TolerantAlarm)
        return factory


@dataclass(frozen=True)
class IcsReadResult:
    events: tuple[Event, ...]
    calendar_name: str | None = None
    warnings: tuple[str, ...] = ()
    skipped: int = 0


def read_ics(text: str) -> IcsReadResult:
    """Parse every VEVENT in ``text``.

    Raises ``ParseError`` only when ``text`` is not an iCalendar document at all,
    including one whose VCALENDAR is never closed.
    """
    try:
        components = _TolerantCalendar.from_ical(text.encode("utf-8"), multiple=True)
    except ValueError as exc:
        raise ParseError("document", text[:40], str(exc)) from None
    calendars = [component for component in components if component.name == "VCALENDAR"]
    if not calendars:
        raise ParseError("document", text[:40], "no complete VCALENDAR found")

    warnings: list[str] = []
    events: list[Event] = []
    skipped = 0
    calendar_name: str | None = None
    for calendar in calendars:
        for name, message in calendar.errors:
            warnings.append(f"Calendar {name or 'line'} ignored: {message}")
        name_prop = _first(calendar, "X-WR-CALNAME")
        if calendar_name is None and name_prop is not None:
            calendar_name = _text(name_prop)
        for component in calendar.walk("VEVENT"):
            try:
                events.append(_read_event(component, warnings))
            except (ParseError, ValidationError) as exc:
                skipped += 1
                warnings.append(f'Event "{_title(component)}" skipped: {exc}')

    if not events and not skipped:
        warnings.append("No events found in the ICS file.")
    if skipped:
        logger.warning("ics read skipped=%s events=%s", skipped, len(events))
    logger.debug("ics read events=%s warnings=%s", len(events), len(warnings))
    return IcsReadResult(
        events=tuple(events),
        calendar_name=calendar_name,
        warnings=tuple(warnings),
        skipped=skipped,
    )


def _all(component: Component, name: str) -> list[Any]:
    value = component.get(name)
    if value is None:
        return []
    return value if isinstance(value, list) else [value]


def _first(component: Component, name: str) -> Any:
    values = _all(component, name)
    return values[0] if values else None


def _text(prop: Any) -> str:
    # Unknown and X- properties keep their escapes; typed TEXT arrives unescaped.
    if isinstance(prop, vUnknown):
        return unescape_backslash(str(prop))
    return str(prop)


def _raw(prop: Any) -> str:
    """Wire form of a date, duration or list value, or the raw text of a broken one."""
    if isinstance(prop, str):
        return str(prop).strip()
    return prop.to_ical().decode("utf-8")


def _title(component: Component) -> str:
    summary = _first(component, "SUMMARY")
    title = _text(summary) if summary is not None else ""
    return title if title.strip() else UNTITLED_EVENT


def _read_event(component: Component, warnings: list[str]) -> Event:
    title = _title(component)
    for name, message in component.errors:
        if name is None:
            warnings.append(f'Event "{title}": unreadable line skipped, {message}')

    start_prop = _first(component, "DTSTART")
    if start_prop is None:
        raise ValidationError("DTSTART", "missing start date")
    start = parse_instant(_raw(start_prop), field="DTSTART")
    end = _read_end(component, start)

    fields: dict[str, Any] = {}
    for name, attr in (("DESCRIPTION", "description"), ("LOCATION", "location"), ("COLOR", "color")):
        prop = _first(component, name)
        if prop is not None:
            fields[attr] = _text(prop)
    for name, attr, allowed in (
        ("STATUS", "status", EVENT_STATUS_VALUES),
        ("CLASS", "event_class", EVENT_CLASS_VALUES),
        ("TRANSP", "transparency", EVENT_TRANSP_VALUES),
    ):
        prop = _first(component, name)
        if prop is None:
            continue
        value = str(prop).strip().upper()
        if value in allowed:
            fields[attr] = value
        else:
            warnings.append(f'Event "{title}": unsupported {name} {str(prop)!r} dropped')

    priority = _read_int(component, "PRIORITY", title, warnings, MIN_PRIORITY, MAX_PRIORITY)
    if priority is not None:
        fields["priority"] = priority
    sequence = _read_int(component, "SEQUENCE", title, warnings, 0, None)
    if sequence is not None:
        fields["sequence"] = sequence

    uid = _first(component, "UID")
    if uid is not None and str(uid).strip():
        fields["uid"] = _text(uid)
    url = _first(component, "URL")
    if url is not None:
        fields["url"] = str(url)
    rrule = _first(component, "RRULE")
    if rrule is not None and str(rrule).strip():
        fields["rrule"] = str(rrule)

    recurrence_id = _first(component, "RECURRENCE-ID")
    if recurrence_id is not None:
        try:
            fields["recurrence_id"] = parse_instant(_raw(recurrence_id), field="RECURRENCE-ID")
        except ParseError as exc:
            warnings.append(f'Event "{title}": {exc}')

    fields["categories"] = _read_categories(component)
    fields["resources"] = tuple(
        item.strip()
        for prop in _all(component, "RESOURCES")
        for item in split_on_unescaped_comma(str(prop))
        if item.strip()
    )
    fields["recurrence_dates"] = _read_recurrence_dates(component, title, warnings)
    fields["organizer"] = _read_organizer(component)
    fields["attendees"] = tuple(
        attendee
        for attendee in (_read_attendee(prop) for prop in _all(component, "ATTENDEE"))
        if attendee is not None
    )
    fields["alarms"] = tuple(
        alarm
        for alarm in (
            _read_alarm(child, title, warnings)
            for child in component.subcomponents
            if child.name == "VALARM"
        )
        if alarm is not None
    )

    return Event(title=title, start=start, end=end, **fields)


def _read_end(component: Component, start: Instant) -> Instant:
    end_prop = _first(component, "DTEND")
    if end_prop is not None:
        return parse_instant(_raw(end_prop), field="DTEND")

    duration_prop = _first(component, "DURATION")
    if duration_prop is not None:
        duration = parse_duration(_raw(duration_prop), field="DURATION")
        return add_duration(start, duration, field="DURATION")

    # RFC 5545 3.6.1: a DATE start lasts one day, a DATE-TIME start is instantaneous.
    if start.is_date_only:
        return add_duration(start, _ONE_DAY, field="DTEND")
    return start


def _read_int(
    component: Component,
    name: str,
    title: str,
    warnings: list[str],
    minimum: int,
    maximum: int | None,
) -> int | None:
    prop = _first(component, name)
    if prop is None:
        return None
    try:
        value = int(str(prop).strip())
    except ValueError:
        warnings.append(f'Event "{title}": invalid {name} {str(prop)!r} dropped')
        return None
    if value < minimum or (maximum is not None and value > maximum):
        warnings.append(f'Event "{title}": {name} {value} out of range dropped')
        return None
    return value


def _read_categories(component: Component) -> tuple[str, ...]:
    items: list[str] = []
    for prop in _all(component, "CATEGORIES"):
        values = prop.cats if isinstance(prop, vCategory) else split_on_unescaped_comma(str(prop))
        items.extend(str(value).strip() for value in values if str(value).strip())
    return tuple(items)


def _read_recurrence_dates(
    component: Component, title: str, warnings: list[str]
) -> tuple[RecurrenceDate, ...]:
    # Lines are grouped per property name, in the order each name first appears.
    dates: list[RecurrenceDate] = []
    for name in component:
        if name not in ("RDATE", "EXDATE"):
            continue
        for prop in _all(component, name):
            for raw in _raw(prop).split(","):
                if not raw.strip():
                    continue
                try:
                    instant = parse_instant(raw.strip(), field=name)
                except ParseError as exc:
                    warnings.append(f'Event "{title}": {exc}')
                    continue
                dates.append(RecurrenceDate(instant=instant, tag=name))  # type: ignore[arg-type]
    return tuple(dates)


def _strip_mailto(value: str) -> str:
    value = value.strip()
    if value.lower().startswith("mailto:"):
        return value[len("mailto:") :]
    return value


def _param(prop: Any, key: str) -> str | None:
    value = prop.params.get(key)
    if value is None:
        return None
    if isinstance(value, list):
        return ",".join(str(item) for item in value)
    return str(value)


def _read_organizer(component: Component) -> Organizer | None:
    prop = _first(component, "ORGANIZER")
    if prop is None:
        return None
    email = _strip_mailto(str(prop))
    if not email:
        return None
    return Organizer(email=email, name=_param(prop, "CN"))


def _read_attendee(prop: Any) -> Attendee | None:
    email = _strip_mailto(str(prop))
    if not email:
        return None
    rsvp = (_param(prop, "RSVP") or "").upper() == "TRUE"
    return Attendee(
        email=email,
        name=_param(prop, "CN"),
        role=_param(prop, "ROLE"),
        status=_param(prop, "PARTSTAT"),
        rsvp=rsvp,
    )


def _read_alarm(component: Component, title: str, warnings: list[str]) -> Alarm | None:
    trigger_prop = _first(component, "TRIGGER")
    action_prop = _first(component, "ACTION")
    if trigger_prop is None or action_prop is None or not str(action_prop).strip():
        warnings.append(f'Event "{title}": alarm without TRIGGER or ACTION dropped')
        return None

    try:
        trigger: Duration | Instant
        raw_trigger = _raw(trigger_prop)
        absolute = (_param(trigger_prop, "VALUE") or "").upper() == "DATE-TIME"
        if absolute or not raw_trigger.lstrip("+-").startswith("P"):
            trigger = parse_instant(raw_trigger, field="TRIGGER")
        else:
            trigger = parse_duration(raw_trigger, field="TRIGGER")
        duration_prop = _first(component, "DURATION")
        duration = (
            parse_duration(_raw(duration_prop), field="DURATION")
            if duration_prop is not None
            else None
        )
    except ParseError as exc:
        warnings.append(f'Event "{title}": alarm dropped, {exc}')
        return None

    summary = _first(component, "SUMMARY")
    description = _first(component, "DESCRIPTION")
    repeat_prop = _first(component, "REPEAT")
    repeat: int | None = None
    if repeat_prop is not None:
        try:
            repeat = int(str(repeat_prop).strip())
        except ValueError:
            warnings.append(f'Event "{title}": invalid alarm REPEAT {str(repeat_prop)!r} dropped')

    return Alarm(
        trigger=trigger,
        action=str(action_prop).strip(),
        summary=_text(summary) if summary is not None else None,
        description=_text(description) if description is not None else None,
        duration=duration,
        repeat=repeat,
    )
