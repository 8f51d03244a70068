from __future__ import annotations

import logging
from pathlib import Path

import typer

from ..core.service import CalendarService
from ..ics_files import IcsFileProvider, IcsFileSink
from .common import CONFIG_OPTION, DEBUG_OPTION, fail, prepare

logger = logging.getLogger(__name__)

FILES_ARGUMENT = typer.Argument(..., help="Calendars to merge, in priority order.")
NAME_OPTION = typer.Option(..., "--name", help="Name of the merged calendar.")
DEDUP_OPTION = typer.Option(
    None,
    "--remove-duplicates/--keep-duplicates",
    help="Drop repeated events; the copy from the earliest file wins.",
)
OUTPUT_DIR_OPTION = typer.Option(None, "--output-dir", help="Directory for the merged .ics file.")


def merge(
    files: list[Path] = FILES_ARGUMENT,
    name: str = NAME_OPTION,
    remove_duplicates: bool | None = DEDUP_OPTION,
    output_dir: Path | None = OUTPUT_DIR_OPTION,
    config: Path | None = CONFIG_OPTION,
    debug: bool = DEBUG_OPTION,
) -> None:
    """Merge several .ics files into a new calendar."""
    cfg = prepare(config, debug)
    if remove_duplicates is None:
        remove_duplicates = cfg.merge.remove_duplicates

    service = CalendarService(
        provider=IcsFileProvider(max_bytes=cfg.imports.max_file_bytes),
        sink=IcsFileSink(output_dir or Path.cwd(), prod_id=cfg.bundle.prod_id),
        prod_id=cfg.bundle.prod_id,
    )
    try:
        result = service.merge(
            [str(path) for path in files], name, remove_duplicates=remove_duplicates
        )
    except Exception as exc:
        raise fail(exc, "merge") from None

    typer.echo(
        "merge: "
        f"calendar={result.calendar.name} "
        f"merged_events={result.merged_events} "
        f"removed_duplicates={result.removed_duplicates}"
    )
    raise typer.Exit(code=0)
