"""Where CalMerge keeps ``config.toml`` and its log file."""

from __future__ import annotations

import os
from pathlib import Path


def default_data_dir() -> Path:
    """Directory searched for ``config.toml`` when no ``--config`` is given.

    An ``APPDATA`` variable wins whenever it is set, so a Windows profile and a
    test that sets it both resolve under it; otherwise a dot-directory in home.
    """
    appdata = os.environ.get("APPDATA")
    if appdata:
        return Path(appdata) / "CalMerge"
    return Path.home() / ".calmerge"
