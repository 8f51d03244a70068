from __future__ import annotations

import pytest

from calmerge.core.errors import ParseError
from calmerge.core.ics_reader import UNTITLED_EVENT, read_ics
from calmerge.core.temporal import Duration, Instant


def _ics(*event_blocks: str, header: str = "") -> str:
    lines = ["BEGIN:VCALENDAR", "VERSION:2.0", "PRODID:-//Test//EN"]
    if header:
        lines.append(header)
    for block in event_blocks:
        lines.extend(["BEGIN:VEVENT", *block.strip().splitlines(), "END:VEVENT"])
    lines.append("END:VCALENDAR")
    return "\r\n".join(lines) + "\r\n"


def test_reads_basic_event_and_calendar_name() -> None:
    text = _ics(
        """
UID:abc@example.com
DTSTART:20240115T090000Z
DTEND:20240115T100000Z
SUMMARY:Planning\\, part 1
LOCATION:Room 1
""",
        header="X-WR-CALNAME:Work",
    )

    result = read_ics(text)

    assert result.calendar_name == "Work"
    assert result.warnings == ()
    (event,) = result.events
    assert event.uid == "abc@example.com"
    assert event.title == "Planning, part 1"
    assert event.start == Instant.utc(2024, 1, 15, 9)
    assert event.end == Instant.utc(2024, 1, 15, 10)
    assert event.location == "Room 1"


def test_folded_lines_are_unfolded() -> None:
    text = (
        "BEGIN:VCALENDAR\r\nBEGIN:VEVENT\r\nDTSTART:20240115T090000Z\r\n"
        "SUMMARY:A very long\r\n  title\r\nEND:VEVENT\r\nEND:VCALENDAR\r\n"
    )

    assert read_ics(text).events[0].title == "A very long title"


def test_lf_only_line_endings_are_accepted() -> None:
    text = _ics("DTSTART:20240115T090000Z\nDTEND:20240115T093000Z\nSUMMARY:Standup").replace(
        "\r\n", "\n"
    )

    assert read_ics(text).events[0].title == "Standup"


def test_duration_is_used_when_dtend_missing() -> None:
    result = read_ics(_ics("DTSTART:20240115T090000Z\nDURATION:PT90M\nSUMMARY:Workshop"))

    assert result.events[0].end == Instant.utc(2024, 1, 15, 10, 30)


def test_missing_end_defaults_per_value_type() -> None:
    result = read_ics(
        _ics(
            "DTSTART;VALUE=DATE:20240115\nSUMMARY:Holiday",
            "DTSTART:20240115T090000Z\nSUMMARY:Reminder",
        )
    )

    holiday, reminder = result.events
    assert holiday.is_all_day
    assert holiday.end == Instant.date_only(2024, 1, 16)
    assert reminder.end == reminder.start


def test_tzid_date_time_is_read_as_floating() -> None:
    result = read_ics(
        _ics(
            "DTSTART;TZID=Europe/Berlin:20240115T090000\n"
            "DTEND;TZID=Europe/Berlin:20240115T100000\nSUMMARY:Local"
        )
    )

    assert result.events[0].start == Instant.floating(2024, 1, 15, 9)


def test_missing_summary_becomes_untitled() -> None:
    result = read_ics(_ics("DTSTART:20240115T090000Z\nDTEND:20240115T100000Z"))

    assert result.events[0].title == UNTITLED_EVENT


def test_invalid_optional_fields_are_dropped_with_warnings() -> None:
    result = read_ics(
        _ics(
            "DTSTART:20240115T090000Z\n"
            "DTEND:20240115T100000Z\n"
            "SUMMARY:Review\n"
            "STATUS:maybe\n"
            "PRIORITY:12\n"
            "SEQUENCE:abc\n"
            "CLASS:private\n"
            "EXDATE:20240122T090000Z,notadate\n"
        )
    )

    (event,) = result.events
    assert event.status is None
    assert event.priority is None
    assert event.sequence == 0
    assert event.event_class == "PRIVATE"
    assert event.exdates == (Instant.utc(2024, 1, 22, 9),)
    assert len(result.warnings) == 4
    assert all('Event "Review"' in warning for warning in result.warnings)


def test_bad_events_are_skipped_without_blocking_the_rest() -> None:
    result = read_ics(
        _ics(
            "DTSTART:20240115T090000Z\nDTEND:20240115T100000Z\nSUMMARY:Good",
            "DTSTART:2024-01-15\nSUMMARY:Bad date",
            "SUMMARY:No start",
            "DTSTART:20240115T100000Z\nDTEND:20240115T090000Z\nSUMMARY:Backwards",
        )
    )

    assert [event.title for event in result.events] == ["Good"]
    assert result.skipped == 3
    assert result.warnings[0].startswith('Event "Bad date" skipped:')
    assert result.warnings[1].startswith('Event "No start" skipped:')


def test_calendar_without_events_warns() -> None:
    result = read_ics(_ics())

    assert result.events == ()
    assert result.warnings == ("No events found in the ICS file.",)


@pytest.mark.parametrize("text", ["", "hello world", "BEGIN:VEVENT\r\nEND:VEVENT\r\n"])
def test_non_calendar_text_is_rejected(text: str) -> None:
    with pytest.raises(ParseError):
        read_ics(text)


def test_attendees_organizer_and_alarms() -> None:
    text = (
        "BEGIN:VCALENDAR\r\n"
        "BEGIN:VEVENT\r\n"
        "DTSTART:20240115T090000Z\r\n"
        "DTEND:20240115T100000Z\r\n"
        "SUMMARY:Sync\r\n"
        "ORGANIZER;CN=Ana:MAILTO:ana@example.com\r\n"
        'ATTENDEE;CN="Ruiz, Bo";PARTSTAT=TENTATIVE;RSVP=TRUE:mailto:bo@example.com\r\n'
        "BEGIN:VALARM\r\n"
        "ACTION:DISPLAY\r\n"
        "TRIGGER:-PT10M\r\n"
        "END:VALARM\r\n"
        "BEGIN:VALARM\r\n"
        "TRIGGER:-PT5M\r\n"
        "END:VALARM\r\n"
        "END:VEVENT\r\n"
        "END:VCALENDAR\r\n"
    )

    result = read_ics(text)

    (event,) = result.events
    assert event.organizer is not None
    assert event.organizer.email == "ana@example.com"
    assert event.organizer.name == "Ana"
    (attendee,) = event.attendees
    assert attendee.name == "Ruiz, Bo"
    assert attendee.status == "TENTATIVE"
    assert attendee.rsvp is True
    (alarm,) = event.alarms
    assert alarm.trigger == Duration(10, "minutes", negative=True)
    assert result.warnings == ('Event "Sync": alarm without TRIGGER or ACTION dropped',)


def test_unterminated_calendar_is_rejected() -> None:
    text = "BEGIN:VCALENDAR\r\nBEGIN:VEVENT\r\nDTSTART:20240115\r\nSUMMARY:Open\r\n"

    with pytest.raises(ParseError):
        read_ics(text)


def test_end_without_begin_is_rejected() -> None:
    with pytest.raises(ParseError):
        read_ics("END:VEVENT\r\nBEGIN:VCALENDAR\r\nEND:VCALENDAR\r\n")


@pytest.mark.parametrize(
    "block",
    [
        "DTSTART;VALUE=DATE:99991231\nSUMMARY:Last day",
        "DTSTART:20240115T090000Z\nDURATION:PT99999999999999999999S\nSUMMARY:Forever",
        "DTSTART:99991231T230000Z\nDURATION:P2D\nSUMMARY:Past the end",
    ],
)
def test_end_beyond_year_9999_skips_only_that_event(block: str) -> None:
    result = read_ics(_ics("DTSTART:20240115T090000Z\nDTEND:20240115T100000Z\nSUMMARY:ok", block))

    assert [event.title for event in result.events] == ["ok"]
    assert result.skipped == 1
    assert "skipped" in result.warnings[0]


def test_escaped_text_values_are_unescaped() -> None:
    result = read_ics(
        _ics(
            "UID:id\\;with\\,chars\n"
            "DTSTART:20240115T090000Z\n"
            "SUMMARY:Plan\\; review\\, sign-off\n"
            "DESCRIPTION:first\\nsecond \\\\ back\n"
            "CATEGORIES:a\\,b,c\n"
            "RESOURCES:Room\\, east,projector\n"
            "COLOR:dark\\,blue",
            header="X-WR-CALNAME:Team\\, shared",
        )
    )

    (event,) = result.events
    assert result.calendar_name == "Team, shared"
    assert event.uid == "id;with,chars"
    assert event.title == "Plan; review, sign-off"
    assert event.description == "first\nsecond \\ back"
    assert event.categories == ("a,b", "c")
    assert event.resources == ("Room, east", "projector")
    assert event.color == "dark,blue"


def test_rrule_is_kept_as_written() -> None:
    result = read_ics(
        _ics("DTSTART:20240115T090000Z\nRRULE:FREQ=WEEKLY;BYDAY=MO,WE;COUNT=6\nSUMMARY:Gym")
    )

    assert result.events[0].rrule == "FREQ=WEEKLY;BYDAY=MO,WE;COUNT=6"


def test_interleaved_recurrence_dates_are_grouped_by_tag() -> None:
    result = read_ics(
        _ics(
            "DTSTART:20240115T090000Z\n"
            "SUMMARY:Series\n"
            "RDATE:20240120T090000Z\n"
            "EXDATE:20240122T090000Z\n"
            "RDATE:20240125T090000Z,20240126T090000Z"
        )
    )

    (event,) = result.events
    assert event.rdates == (
        Instant.utc(2024, 1, 20, 9),
        Instant.utc(2024, 1, 25, 9),
        Instant.utc(2024, 1, 26, 9),
    )
    assert event.exdates == (Instant.utc(2024, 1, 22, 9),)
    assert [d.tag for d in event.recurrence_dates] == ["RDATE", "RDATE", "RDATE", "EXDATE"]


def test_broken_alarm_trigger_drops_only_the_alarm() -> None:
    text = (
        "BEGIN:VCALENDAR\r\n"
        "BEGIN:VEVENT\r\n"
        "DTSTART:20240115T090000Z\r\n"
        "SUMMARY:Sync\r\n"
        "BEGIN:VALARM\r\n"
        "ACTION:DISPLAY\r\n"
        "TRIGGER:-PTsoonM\r\n"
        "END:VALARM\r\n"
        "END:VEVENT\r\n"
        "END:VCALENDAR\r\n"
    )

    result = read_ics(text)

    assert result.events[0].alarms == ()
    assert len(result.warnings) == 1
    assert result.warnings[0].startswith('Event "Sync": alarm dropped,')
