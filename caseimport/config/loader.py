from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

"""Config loader.

Responsibilities:
- Load the YAML config (default: config/import.yml)
- Validate it against the bundled JSON schema
- Apply defaults for batch sizing, throttling and preview length
"""

SCHEMA_PATH = Path(__file__).parent / "import_schema.json"

DEFAULT_BATCH_SIZE = 10
DEFAULT_BATCH_DELAY_MS = 800
DEFAULT_LINK_DELAY_MS = 500
DEFAULT_PREVIEW_ROWS = 5
DEFAULT_ERROR_LOG_DIR = "./logs"


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class RecordStoreConfig:
    backend: str  # supabase | postgres | memory
    url: str | None = None
    key: str | None = None
    dsn: str | None = None


@dataclass(frozen=True)
class BatchConfig:
    size: int = DEFAULT_BATCH_SIZE
    delay_ms: int = DEFAULT_BATCH_DELAY_MS
    throttle: str = "fixed"  # fixed | token_bucket | none
    rate_per_sec: float | None = None  # token_bucket only
    concurrent: bool = False

    @property
    def delay_seconds(self) -> float:
        return self.delay_ms / 1000.0


@dataclass(frozen=True)
class ImportConfig:
    record_store: RecordStoreConfig
    batch: BatchConfig = field(default_factory=BatchConfig)
    link_batch: BatchConfig = field(
        default_factory=lambda: BatchConfig(delay_ms=DEFAULT_LINK_DELAY_MS, concurrent=True)
    )
    preview_rows: int = DEFAULT_PREVIEW_ROWS
    error_log_dir: str = DEFAULT_ERROR_LOG_DIR
    field_aliases: dict[str, list[str]] = field(default_factory=dict)


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the bundled JSON schema.

    Raises:
        ConfigError: if the schema file is missing or unreadable, or the
            config data violates it (missing keys, wrong types, unknown keys).
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def _batch_config(raw: dict[str, Any] | None, defaults: BatchConfig) -> BatchConfig:
    if not raw:
        return defaults
    throttle = raw.get("throttle", defaults.throttle)
    rate = raw.get("rate_per_sec", defaults.rate_per_sec)
    if throttle == "token_bucket" and rate is None:
        raise ConfigError("config validation failed: token_bucket throttle requires rate_per_sec")
    return BatchConfig(
        size=raw.get("size", defaults.size),
        delay_ms=raw.get("delay_ms", defaults.delay_ms),
        throttle=throttle,
        rate_per_sec=rate,
        concurrent=raw.get("concurrent", defaults.concurrent),
    )


def load_config(path: Path) -> ImportConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping, got {type(data).__name__}")

    _validate_config_schema(data)

    store_raw = data["record_store"]
    store = RecordStoreConfig(
        backend=store_raw["backend"],
        url=store_raw.get("url"),
        key=store_raw.get("key"),
        dsn=store_raw.get("dsn"),
    )
    defaults = ImportConfig(record_store=store)
    return ImportConfig(
        record_store=store,
        batch=_batch_config(data.get("batch"), defaults.batch),
        link_batch=_batch_config(data.get("link_batch"), defaults.link_batch),
        preview_rows=data.get("preview_rows", DEFAULT_PREVIEW_ROWS),
        error_log_dir=data.get("error_log_dir", DEFAULT_ERROR_LOG_DIR),
        field_aliases=dict(data.get("field_aliases") or {}),
    )
