from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, replace
from datetime import date

from .dedup import find_duplicates_against_existing
from .errors import ParseError, PreconditionError
from .ics_reader import read_ics
from .models import Calendar, Event

logger = logging.getLogger(__name__)

MAX_IMPORT_BYTES = 5 * 1024 * 1024
MAX_REPORTED_WARNINGS = 10


@dataclass(frozen=True)
class ImportPreview:
    total: int
    new: int
    duplicates: int
    skipped: int
    warnings: tuple[str, ...] = ()


@dataclass(frozen=True)
class ImportResult:
    calendar: Calendar
    imported_events: int
    skipped_events: int
    duplicate_events: int
    warnings: tuple[str, ...] = ()


def check_size(text: str, max_bytes: int = MAX_IMPORT_BYTES) -> None:
    size = len(text.encode("utf-8"))
    if size > max_bytes:
        raise PreconditionError(
            f"File too large: {size / 1024 / 1024:.2f}MB, maximum is "
            f"{max_bytes / 1024 / 1024:.2f}MB"
        )


def preview_import(text: str, existing: Iterable[Event] = ()) -> ImportPreview:
    """Counts shown before the user confirms an import; nothing is created."""
    parsed = read_ics(text)
    split = find_duplicates_against_existing(parsed.events, existing)
    return ImportPreview(
        total=len(parsed.events) + parsed.skipped,
        new=len(split.kept),
        duplicates=len(split.removed),
        skipped=parsed.skipped,
        warnings=parsed.warnings,
    )


def import_calendar(
    text: str,
    name: str | None = None,
    *,
    existing: Calendar | None = None,
    skip_duplicates: bool = False,
    max_bytes: int = MAX_IMPORT_BYTES,
) -> ImportResult:
    """Parse ``text`` into a new calendar, or append it to a copy of ``existing``.

    Invalid events are skipped and counted. The import fails only when the file
    is too large or when it held events and none of them could be read.
    """
    check_size(text, max_bytes)
    parsed = read_ics(text)
    if parsed.skipped and not parsed.events:
        raise ParseError("document", f"{parsed.skipped} events", "; ".join(parsed.warnings[:3]))

    incoming = parsed.events
    duplicates = 0
    if skip_duplicates:
        split = find_duplicates_against_existing(
            incoming, existing.events if existing is not None else ()
        )
        incoming = split.kept
        duplicates = len(split.removed)

    if existing is not None:
        calendar = replace(existing, events=existing.events + incoming)
    else:
        calendar_name = (
            name or parsed.calendar_name or f"Imported Calendar - {date.today().isoformat()}"
        )
        calendar = Calendar(name=calendar_name, events=incoming)

    if parsed.warnings:
        logger.warning(
            "import warnings calendar=%s count=%s first=%s",
            calendar.id,
            len(parsed.warnings),
            list(parsed.warnings[:MAX_REPORTED_WARNINGS]),
        )
    logger.info(
        "import summary calendar=%s imported=%s skipped=%s duplicates=%s",
        calendar.id,
        len(incoming),
        parsed.skipped,
        duplicates,
    )
    return ImportResult(
        calendar=calendar,
        imported_events=len(incoming),
        skipped_events=parsed.skipped,
        duplicate_events=duplicates,
        warnings=parsed.warnings,
    )
