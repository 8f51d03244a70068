from __future__ import annotations

from pathlib import Path

import typer

app = typer.Typer(no_args_is_help=True, add_completion=False)

CONFIG_OPTION = typer.Option(None, "--config", help="Path to config.toml")
DEBUG_OPTION = typer.Option(False, "--debug", help="Enable debug logging.")
DEDUP_OPTION = typer.Option(
    None,
    "--remove-duplicates/--keep-duplicates",
    help="Drop repeated events; the copy from the earliest file wins.",
)
JSON_OPTION = typer.Option(False, "--json", help="Emit machine-readable JSON output.")


@app.command()
def merge(
    files: list[Path] = typer.Argument(..., help="Calendars to merge, in priority order."),
    name: str = typer.Option(..., "--name", help="Name of the merged calendar."),
    remove_duplicates: bool | None = DEDUP_OPTION,
    output_dir: Path | None = typer.Option(
        None, "--output-dir", help="Directory for the merged .ics file."
    ),
    config: Path | None = CONFIG_OPTION,
    debug: bool = DEBUG_OPTION,
) -> None:
    """Merge several .ics files into a new calendar."""
    from .commands.merge import merge as merge_command

    merge_command(
        files=files,
        name=name,
        remove_duplicates=remove_duplicates,
        output_dir=output_dir,
        config=config,
        debug=debug,
    )


@app.command()
def dedup(
    file: Path = typer.Argument(..., help="Calendar to check for duplicate events."),
    write: bool = typer.Option(False, "--write", help="Write a cleaned copy instead of previewing."),
    output_dir: Path | None = typer.Option(
        None, "--output-dir", help="Directory for the cleaned .ics file."
    ),
    config: Path | None = CONFIG_OPTION,
    debug: bool = DEBUG_OPTION,
) -> None:
    """Preview or remove duplicate events inside one .ics file."""
    from .commands.dedup import dedup as dedup_command

    dedup_command(file=file, write=write, output_dir=output_dir, config=config, debug=debug)


@app.command()
def conflicts(
    files: list[Path] = typer.Argument(..., help="Calendars to check together."),
    json_output: bool = JSON_OPTION,
    config: Path | None = CONFIG_OPTION,
    debug: bool = DEBUG_OPTION,
) -> None:
    """List every pair of overlapping events."""
    from .commands.conflicts import conflicts as conflicts_command

    conflicts_command(files=files, json_output=json_output, config=config, debug=debug)


@app.command()
def bundle(
    files: list[Path] = typer.Argument(..., help="Calendars to bundle, in priority order."),
    remove_duplicates: bool | None = DEDUP_OPTION,
    name: str | None = typer.Option(None, "--name", help="Calendar name for the bundle."),
    output: Path | None = typer.Option(None, "--output", help="Write here instead of stdout."),
    config: Path | None = CONFIG_OPTION,
    debug: bool = DEBUG_OPTION,
) -> None:
    """Render several .ics files as one shareable ICS document."""
    from .commands.bundle import bundle as bundle_command

    bundle_command(
        files=files,
        remove_duplicates=remove_duplicates,
        name=name,
        output=output,
        config=config,
        debug=debug,
    )


@app.command()
def inspect(
    file: Path = typer.Argument(..., help="Calendar file to inspect."),
    against: Path | None = typer.Option(
        None, "--against", help="Existing calendar to count duplicates against."
    ),
    json_output: bool = JSON_OPTION,
    config: Path | None = CONFIG_OPTION,
    debug: bool = DEBUG_OPTION,
) -> None:
    """Preview an import: event counts, duplicates and warnings."""
    from .commands.inspect import inspect as inspect_command

    inspect_command(
        file=file, against=against, json_output=json_output, config=config, debug=debug
    )
