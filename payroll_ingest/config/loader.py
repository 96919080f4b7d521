from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError as SchemaValidationError

from ..models.config_models import DEFAULT_ALLOWED_EXTENSIONS, DEFAULT_MAX_FILE_SIZE_BYTES, IngestConfig

"""Config loader.

Responsibilities:
- Load YAML config (config/ingest.yml by default)
- Validate against the bundled JSON schema
- Apply defaults for every missing key
"""

__all__ = [
    "ConfigError",
    "SCHEMA_PATH",
    "load_config",
]

SCHEMA_PATH = Path(__file__).with_name("config_schema.json")


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against JSON schema.

    Raises:
        ConfigError: schema file missing or broken, or the data violates it
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except SchemaValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def load_config(path: Path) -> IngestConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config validation failed: expected a mapping, got {type(data).__name__}")

    _validate_config_schema(data)

    extensions = data.get("allowed_extensions")
    size_mb = data.get("max_file_size_mb")
    return IngestConfig(
        allowed_extensions=(
            tuple(e.lower() for e in extensions) if extensions else DEFAULT_ALLOWED_EXTENSIONS
        ),
        max_file_size_bytes=(
            int(size_mb * 1024 * 1024) if size_mb is not None else DEFAULT_MAX_FILE_SIZE_BYTES
        ),
        all_sheets=bool(data.get("all_sheets", False)),
        preeti_fields=tuple(data.get("preeti_fields", ())),
        export_directory=data.get("export_directory"),
        error_log_directory=data.get("error_log_directory", "./logs"),
    )
