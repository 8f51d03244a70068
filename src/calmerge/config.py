from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from .core.bundle import DEFAULT_PROD_ID
from .core.importer import MAX_IMPORT_BYTES
from .paths import default_data_dir


@dataclass(frozen=True)
class MergeConfig:
    remove_duplicates: bool = False


@dataclass(frozen=True)
class BundleConfig:
    remove_duplicates: bool = False
    prod_id: str = DEFAULT_PROD_ID


@dataclass(frozen=True)
class ImportConfig:
    max_file_bytes: int = MAX_IMPORT_BYTES


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"


@dataclass(frozen=True)
class AppConfig:
    data_dir: Path
    merge: MergeConfig = field(default_factory=MergeConfig)
    bundle: BundleConfig = field(default_factory=BundleConfig)
    imports: ImportConfig = field(default_factory=ImportConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(path: Path | None = None) -> AppConfig:
    """Load config.toml.

    If `path` is None, load from the default data dir. A missing default file
    yields the built-in defaults; an explicit `path` must exist.
    """
    data_dir = default_data_dir()
    cfg_path = path or (data_dir / "config.toml")
    if path is None and not cfg_path.exists():
        return AppConfig(data_dir=data_dir)
    raw = tomllib.loads(cfg_path.read_text(encoding="utf-8-sig"))

    data_dir = Path(raw.get("data_dir", str(data_dir)))

    merge_raw = raw.get("merge", {})
    merge = MergeConfig(
        remove_duplicates=_parse_bool(merge_raw.get("remove_duplicates"), default=False),
    )

    bundle_raw = raw.get("bundle", {})
    bundle = BundleConfig(
        remove_duplicates=_parse_bool(bundle_raw.get("remove_duplicates"), default=False),
        prod_id=str(bundle_raw.get("prod_id", DEFAULT_PROD_ID)),
    )

    import_raw = raw.get("import", {})
    max_file_bytes = int(import_raw.get("max_file_bytes", MAX_IMPORT_BYTES))
    if max_file_bytes <= 0:
        raise ValueError("import.max_file_bytes must be greater than 0")

    logging_raw = raw.get("logging", {})
    level = str(logging_raw.get("level", "INFO")).upper()

    return AppConfig(
        data_dir=data_dir,
        merge=merge,
        bundle=bundle,
        imports=ImportConfig(max_file_bytes=max_file_bytes),
        logging=LoggingConfig(level=level),
    )


def _parse_bool(value: object, *, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in {"1", "true", "yes", "on"}:
            return True
        if normalized in {"0", "false", "no", "off"}:
            return False
    return default
