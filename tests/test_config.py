from __future__ import annotations

from pathlib import Path

import pytest

from calmerge.config import load_config
from calmerge.core.bundle import DEFAULT_PROD_ID
from calmerge.core.importer import MAX_IMPORT_BYTES


def test_load_config_accepts_utf8_bom(tmp_path: Path) -> None:
    cfg_path = tmp_path / "config.toml"
    config_text = 'data_dir = "C:/CalMerge"\n\n[merge]\nremove_duplicates = true\n'
    cfg_path.write_bytes(b"\xef\xbb\xbf" + config_text.encode("utf-8"))

    config = load_config(cfg_path)

    assert config.data_dir == Path("C:/CalMerge")
    assert config.merge.remove_duplicates is True
    assert config.bundle.remove_duplicates is False
    assert config.bundle.prod_id == DEFAULT_PROD_ID
    assert config.imports.max_file_bytes == MAX_IMPORT_BYTES
    assert config.logging.level == "INFO"


def test_load_config_parses_all_sections(tmp_path: Path) -> None:
    cfg_path = tmp_path / "config.toml"
    config_text = (
        f'data_dir = "{tmp_path.as_posix()}"\n'
        "\n"
        "[merge]\n"
        'remove_duplicates = "yes"\n'
        "\n"
        "[bundle]\n"
        "remove_duplicates = true\n"
        'prod_id = "-//Example//Shared//EN"\n'
        "\n"
        "[import]\n"
        "max_file_bytes = 1024\n"
        "\n"
        "[logging]\n"
        'level = "debug"\n'
    )
    cfg_path.write_text(config_text, encoding="utf-8")

    config = load_config(cfg_path)

    assert config.data_dir == tmp_path
    assert config.merge.remove_duplicates is True
    assert config.bundle.remove_duplicates is True
    assert config.bundle.prod_id == "-//Example//Shared//EN"
    assert config.imports.max_file_bytes == 1024
    assert config.logging.level == "DEBUG"


def test_load_config_rejects_non_positive_size_limit(tmp_path: Path) -> None:
    cfg_path = tmp_path / "config.toml"
    cfg_path.write_text("[import]\nmax_file_bytes = 0\n", encoding="utf-8")

    with pytest.raises(ValueError):
        load_config(cfg_path)


def test_unrecognized_bool_falls_back_to_default(tmp_path: Path) -> None:
    cfg_path = tmp_path / "config.toml"
    cfg_path.write_text('[merge]\nremove_duplicates = "sometimes"\n', encoding="utf-8")

    assert load_config(cfg_path).merge.remove_duplicates is False


def test_missing_default_config_yields_defaults(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("APPDATA", str(tmp_path))

    config = load_config()

    assert config.data_dir == tmp_path / "CalMerge"
    assert config.merge.remove_duplicates is False


def test_explicit_config_path_must_exist(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.toml")
