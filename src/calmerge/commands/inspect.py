from __future__ import annotations

import json
import logging
from pathlib import Path

import typer

from ..core.importer import check_size, preview_import
from ..core.models import Event
from ..ics_files import IcsFileProvider
from .common import CONFIG_OPTION, DEBUG_OPTION, fail, prepare

logger = logging.getLogger(__name__)

FILE_ARGUMENT = typer.Argument(..., help="Calendar file to inspect.")
AGAINST_OPTION = typer.Option(
    None, "--against", help="Existing calendar to count duplicates against."
)
JSON_OPTION = typer.Option(False, "--json", help="Emit machine-readable JSON output.")


def inspect(
    file: Path = FILE_ARGUMENT,
    against: Path | None = AGAINST_OPTION,
    json_output: bool = JSON_OPTION,
    config: Path | None = CONFIG_OPTION,
    debug: bool = DEBUG_OPTION,
) -> None:
    """Show what importing an .ics file would do, without writing anything."""
    cfg = prepare(config, debug)
    try:
        text = file.read_text(encoding="utf-8-sig")
        check_size(text, cfg.imports.max_file_bytes)
        existing: tuple[Event, ...] = ()
        if against is not None:
            existing = IcsFileProvider(cfg.imports.max_file_bytes).get_calendar(str(against)).events
        preview = preview_import(text, existing)
    except Exception as exc:
        raise fail(exc, "inspect") from None

    if json_output:
        payload = {
            "total": preview.total,
            "new": preview.new,
            "duplicates": preview.duplicates,
            "skipped": preview.skipped,
            "warnings": list(preview.warnings),
        }
        typer.echo(json.dumps(payload, ensure_ascii=False, separators=(",", ":")))
        raise typer.Exit(code=0)

    typer.echo(
        "inspect: "
        f"total={preview.total} "
        f"new={preview.new} "
        f"duplicates={preview.duplicates} "
        f"skipped={preview.skipped}"
    )
    for warning in preview.warnings:
        typer.echo(f"[warn] {warning}", err=True)
    raise typer.Exit(code=0)
