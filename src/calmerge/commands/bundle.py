from __future__ import annotations

import logging
from pathlib import Path

import typer

from ..core.service import CalendarService
from ..ics_files import IcsFileProvider
from .common import CONFIG_OPTION, DEBUG_OPTION, fail, prepare

logger = logging.getLogger(__name__)

FILES_ARGUMENT = typer.Argument(..., help="Calendars to bundle, in priority order.")
DEDUP_OPTION = typer.Option(
    None,
    "--remove-duplicates/--keep-duplicates",
    help="Drop repeated events; the copy from the earliest file wins.",
)
NAME_OPTION = typer.Option(None, "--name", help="Calendar name written to X-WR-CALNAME.")
OUTPUT_OPTION = typer.Option(None, "--output", help="Write the bundle here instead of stdout.")


def bundle(
    files: list[Path] = FILES_ARGUMENT,
    remove_duplicates: bool | None = DEDUP_OPTION,
    name: str | None = NAME_OPTION,
    output: Path | None = OUTPUT_OPTION,
    config: Path | None = CONFIG_OPTION,
    debug: bool = DEBUG_OPTION,
) -> None:
    """Render several .ics files as one shareable ICS document."""
    cfg = prepare(config, debug)
    if remove_duplicates is None:
        remove_duplicates = cfg.bundle.remove_duplicates

    service = CalendarService(
        provider=IcsFileProvider(max_bytes=cfg.imports.max_file_bytes),
        prod_id=cfg.bundle.prod_id,
    )
    try:
        ics_text = service.bundle(
            [str(path) for path in files], remove_duplicates=remove_duplicates, name=name
        )
    except Exception as exc:
        raise fail(exc, "bundle") from None

    if output is None:
        typer.echo(ics_text, nl=False)
        raise typer.Exit(code=0)

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(ics_text, encoding="utf-8", newline="")
    typer.echo(f"bundle: path={output} bytes={len(ics_text.encode('utf-8'))}")
    raise typer.Exit(code=0)
