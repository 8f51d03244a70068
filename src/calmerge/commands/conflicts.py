from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import typer

from ..core.models import Event
from ..core.service import CalendarService
from ..core.temporal import format_instant
from ..ics_files import IcsFileProvider
from .common import CONFIG_OPTION, DEBUG_OPTION, fail, prepare

logger = logging.getLogger(__name__)

FILES_ARGUMENT = typer.Argument(..., help="Calendars to check together.")
JSON_OPTION = typer.Option(False, "--json", help="Emit machine-readable JSON output.")


def conflicts(
    files: list[Path] = FILES_ARGUMENT,
    json_output: bool = JSON_OPTION,
    config: Path | None = CONFIG_OPTION,
    debug: bool = DEBUG_OPTION,
) -> None:
    """List every pair of overlapping events across the given .ics files."""
    cfg = prepare(config, debug)
    service = CalendarService(provider=IcsFileProvider(max_bytes=cfg.imports.max_file_bytes))
    try:
        pairs = service.conflicts([str(path) for path in files])
    except Exception as exc:
        raise fail(exc, "conflicts") from None

    if json_output:
        payload = {
            "conflicts": [
                {"first": _event_payload(first), "second": _event_payload(second)}
                for first, second in pairs
            ],
        }
        typer.echo(json.dumps(payload, ensure_ascii=False, separators=(",", ":")))
        raise typer.Exit(code=0)

    typer.echo(f"conflicts: count={len(pairs)}")
    for first, second in pairs:
        typer.echo(f"conflict: {_describe(first)} <> {_describe(second)}")
    raise typer.Exit(code=0)


def _event_payload(event: Event) -> dict[str, Any]:
    return {
        "uid": event.uid,
        "title": event.title,
        "start": format_instant(event.start),
        "end": format_instant(event.end),
        "all_day": event.is_all_day,
    }


def _describe(event: Event) -> str:
    title = json.dumps(event.title, ensure_ascii=False)
    return f"{title} {format_instant(event.start)}..{format_instant(event.end)}"
