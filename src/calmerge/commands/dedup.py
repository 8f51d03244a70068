from __future__ import annotations

import json
import logging
from pathlib import Path

import typer

from ..core.service import CalendarService
from ..core.temporal import format_instant
from ..ics_files import IcsFileProvider, IcsFileSink
from .common import CONFIG_OPTION, DEBUG_OPTION, fail, prepare

logger = logging.getLogger(__name__)

FILE_ARGUMENT = typer.Argument(..., help="Calendar to check for duplicate events.")
WRITE_OPTION = typer.Option(False, "--write", help="Write a cleaned copy instead of previewing.")
OUTPUT_DIR_OPTION = typer.Option(None, "--output-dir", help="Directory for the cleaned .ics file.")


def dedup(
    file: Path = FILE_ARGUMENT,
    write: bool = WRITE_OPTION,
    output_dir: Path | None = OUTPUT_DIR_OPTION,
    config: Path | None = CONFIG_OPTION,
    debug: bool = DEBUG_OPTION,
) -> None:
    """Preview or remove duplicate events inside one .ics file."""
    cfg = prepare(config, debug)
    sink = IcsFileSink(output_dir or Path.cwd(), prod_id=cfg.bundle.prod_id) if write else None
    service = CalendarService(
        provider=IcsFileProvider(max_bytes=cfg.imports.max_file_bytes),
        sink=sink,
    )
    try:
        if write:
            cleaned = service.clean(str(file))
            typer.echo(
                "dedup: "
                f"removed={cleaned.removed_count} "
                f"remaining={cleaned.remaining_events}"
            )
            raise typer.Exit(code=0)
        preview = service.duplicates([str(file)])
    except typer.Exit:
        raise
    except Exception as exc:
        raise fail(exc, "dedup") from None

    typer.echo(f"dedup: kept={len(preview.kept)} duplicates={len(preview.removed)}")
    for event in preview.removed:
        typer.echo(
            "duplicate: "
            f"title={json.dumps(event.title, ensure_ascii=False)} "
            f"start={format_instant(event.start)} "
            f"uid={event.uid}"
        )
    raise typer.Exit(code=0)
