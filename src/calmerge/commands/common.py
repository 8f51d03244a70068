from __future__ import annotations

import logging
from pathlib import Path

import typer

from ..config import AppConfig, load_config
from ..core.errors import ParseError, PreconditionError, ValidationError
from ..logging_config import LOG_FILE_NAME, configure_logging

logger = logging.getLogger(__name__)

CONFIG_OPTION = typer.Option(None, "--config", help="Path to config.toml")
DEBUG_OPTION = typer.Option(False, "--debug", help="Enable debug logging.")


def prepare(config: Path | None, debug: bool) -> AppConfig:
    cfg = load_config(config)
    cfg.data_dir.mkdir(parents=True, exist_ok=True)
    configure_logging(cfg.data_dir / LOG_FILE_NAME, level="DEBUG" if debug else cfg.logging.level)
    return cfg


def fail(exc: Exception, action: str) -> typer.Exit:
    """Report ``exc`` on stderr and return the matching exit for the caller to raise."""
    code = classify_failure(exc)
    if code == 4:
        logger.error("%s failed", action, exc_info=exc)
    typer.echo(f"[fail] {action}: {exc}", err=True)
    return typer.Exit(code=code)


def classify_failure(exc: Exception) -> int:
    if isinstance(exc, (PreconditionError, LookupError, ValidationError, FileNotFoundError)):
        return 2
    if isinstance(exc, ParseError):
        return 3
    return 4
