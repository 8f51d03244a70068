from __future__ import annotations

import logging
import re
from pathlib import Path

from .core.bundle import DEFAULT_PROD_ID, export_calendar
from .core.importer import MAX_IMPORT_BYTES, check_size
from .core.ics_reader import read_ics
from .core.models import Calendar

logger = logging.getLogger(__name__)

_SLUG_RE = re.compile(r"[^A-Za-z0-9._-]+")


class IcsFileProvider:
    """Calendar provider backed by ``.ics`` files; a calendar id is a file path."""

    def __init__(self, max_bytes: int = MAX_IMPORT_BYTES) -> None:
        self.max_bytes = max_bytes

    def get_calendar(self, calendar_id: str) -> Calendar:
        path = Path(calendar_id)
        if not path.is_file():
            raise LookupError(f"calendar file not found: {path}")

        text = path.read_text(encoding="utf-8-sig")
        check_size(text, self.max_bytes)
        parsed = read_ics(text)
        for warning in parsed.warnings:
            logger.warning("%s: %s", path.name, warning)
        return Calendar(
            name=parsed.calendar_name or path.stem,
            events=parsed.events,
            source_url=path.resolve().as_uri(),
        )


class IcsFileSink:
    """Writes calendars as ``<name>.ics`` into a directory."""

    def __init__(self, directory: Path, prod_id: str = DEFAULT_PROD_ID) -> None:
        self.directory = directory
        self.prod_id = prod_id

    def save_calendar(self, calendar: Calendar) -> str:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.directory / f"{slugify(calendar.name) or calendar.id}.ics"
        path.write_text(export_calendar(calendar, prod_id=self.prod_id), encoding="utf-8", newline="")
        logger.info("calendar written id=%s events=%s path=%s", calendar.id, len(calendar.events), path)
        return str(path)


def slugify(name: str) -> str:
    return _SLUG_RE.sub("-", name.strip()).strip("-.")
