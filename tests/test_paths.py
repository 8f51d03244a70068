from __future__ import annotations

from pathlib import Path

import pytest

from calmerge.paths import default_data_dir


def test_appdata_wins_when_set(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("APPDATA", str(tmp_path))

    assert default_data_dir() == tmp_path / "CalMerge"


def test_home_dot_directory_without_appdata(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.delenv("APPDATA", raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))

    assert default_data_dir() == tmp_path / ".calmerge"
