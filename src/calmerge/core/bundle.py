from __future__ import annotations

import logging
from collections.abc import Sequence

from .contentlines import build_line, escape_text, render
from .dedup import DedupPolicy, resolve
from .models import Alarm, Calendar, Event
from .temporal import Duration, Instant, format_duration, format_instant

logger = logging.getLogger(__name__)

DEFAULT_PROD_ID = "-//CalMerge//CalMerge//EN"
DEFAULT_BUNDLE_NAME = "Shared calendars"


def serialize_bundle(
    calendars: Sequence[Calendar],
    remove_duplicates: bool = False,
    *,
    name: str | None = None,
    now: Instant | None = None,
    prod_id: str = DEFAULT_PROD_ID,
) -> str:
    """Render several calendars as one ICS document.

    Duplicates are resolved exactly like a merge: calendars are read in order
    and the first copy of an event wins.
    """
    combined = [event for calendar in calendars for event in calendar.events]
    result = resolve(combined, DedupPolicy(remove_duplicates=remove_duplicates))
    if name is None:
        name = calendars[0].name if len(calendars) == 1 else DEFAULT_BUNDLE_NAME
    logger.info(
        "bundle summary calendars=%s scanned=%s emitted=%s removed_duplicates=%s",
        len(calendars),
        len(combined),
        len(result.events),
        len(result.removed) if remove_duplicates else 0,
    )
    return _render_calendar(name, result.events, now=now or Instant.now(), prod_id=prod_id)


def export_calendar(
    calendar: Calendar, *, now: Instant | None = None, prod_id: str = DEFAULT_PROD_ID
) -> str:
    return _render_calendar(
        calendar.name, calendar.events, now=now or Instant.now(), prod_id=prod_id
    )


def _render_calendar(name: str, events: Sequence[Event], *, now: Instant, prod_id: str) -> str:
    if now.kind != "utc":
        raise ValueError("DTSTAMP must be a UTC instant")
    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        build_line("PRODID", escape_text(prod_id)),
        "CALSCALE:GREGORIAN",
        "METHOD:PUBLISH",
        build_line("X-WR-CALNAME", escape_text(name)),
    ]
    for event in events:
        lines.extend(_event_lines(event, now))
    lines.append("END:VCALENDAR")
    return render(lines)


def _instant_line(name: str, instant: Instant) -> str:
    params = {"VALUE": "DATE"} if instant.is_date_only else None
    return build_line(name, format_instant(instant), params)


def _event_lines(event: Event, dtstamp: Instant) -> list[str]:
    lines = [
        "BEGIN:VEVENT",
        build_line("UID", escape_text(event.uid)),
        build_line("DTSTAMP", format_instant(dtstamp)),
        _instant_line("DTSTART", event.start),
        _instant_line("DTEND", event.end),
        build_line("SUMMARY", escape_text(event.title)),
    ]
    if event.description is not None:
        lines.append(build_line("DESCRIPTION", escape_text(event.description)))
    if event.location is not None:
        lines.append(build_line("LOCATION", escape_text(event.location)))
    if event.status is not None:
        lines.append(build_line("STATUS", event.status))
    if event.priority is not None:
        lines.append(build_line("PRIORITY", str(event.priority)))
    if event.categories:
        lines.append(build_line("CATEGORIES", ",".join(escape_text(c) for c in event.categories)))
    if event.url is not None:
        lines.append(build_line("URL", event.url))
    if event.event_class is not None:
        lines.append(build_line("CLASS", event.event_class))
    if event.resources:
        lines.append(build_line("RESOURCES", ",".join(escape_text(r) for r in event.resources)))
    lines.append(build_line("SEQUENCE", str(event.sequence)))
    if event.transparency is not None:
        lines.append(build_line("TRANSP", event.transparency))
    if event.rrule is not None:
        lines.append(build_line("RRULE", event.rrule))
    # One line per date keeps the stored order stable across exports.
    for recurrence in event.recurrence_dates:
        lines.append(_instant_line(recurrence.tag, recurrence.instant))
    if event.recurrence_id is not None:
        lines.append(_instant_line("RECURRENCE-ID", event.recurrence_id))
    if event.color is not None:
        lines.append(build_line("COLOR", escape_text(event.color)))
    if event.organizer is not None:
        params = {"CN": event.organizer.name} if event.organizer.name else None
        lines.append(build_line("ORGANIZER", f"mailto:{event.organizer.email}", params))
    for attendee in event.attendees:
        attendee_params: dict[str, str] = {}
        if attendee.name:
            attendee_params["CN"] = attendee.name
        if attendee.role:
            attendee_params["ROLE"] = attendee.role
        if attendee.status:
            attendee_params["PARTSTAT"] = attendee.status
        if attendee.rsvp:
            attendee_params["RSVP"] = "TRUE"
        lines.append(build_line("ATTENDEE", f"mailto:{attendee.email}", attendee_params))
    for alarm in event.alarms:
        lines.extend(_alarm_lines(alarm))
    lines.append("END:VEVENT")
    return lines


def _alarm_lines(alarm: Alarm) -> list[str]:
    if isinstance(alarm.trigger, Duration):
        trigger = build_line("TRIGGER", format_duration(alarm.trigger))
    else:
        trigger = build_line(
            "TRIGGER", format_instant(alarm.trigger), {"VALUE": "DATE-TIME"}
        )
    lines = ["BEGIN:VALARM", trigger, build_line("ACTION", alarm.action)]
    if alarm.summary is not None:
        lines.append(build_line("SUMMARY", escape_text(alarm.summary)))
    if alarm.description is not None:
        lines.append(build_line("DESCRIPTION", escape_text(alarm.description)))
    if alarm.duration is not None:
        lines.append(build_line("DURATION", format_duration(alarm.duration)))
    if alarm.repeat is not None:
        lines.append(build_line("REPEAT", str(alarm.repeat)))
    lines.append("END:VALARM")
    return lines
