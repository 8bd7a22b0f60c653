from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.config_models import DatabaseConfig, ExtractionRules, IngestConfig

"""Config loader.

Responsibilities:
- Load YAML config (default config/ingest.yml)
- Validate against the bundled JSON schema (additional keys rejected)
- Apply defaults for the extraction rules and the error log directory
"""

__all__ = [
    "ConfigError",
    "DEFAULT_CONFIG_PATH",
    "SCHEMA_PATH",
    "load_config",
    "build_rules",
]

DEFAULT_CONFIG_PATH = Path("config/ingest.yml")
SCHEMA_PATH = Path(__file__).with_name("config_schema.json")


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against JSON schema.

    Raises:
        ConfigError: If the schema file is missing or not valid JSON, or the
            config data fails validation (missing keys, wrong types, extra keys).
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


def build_rules(raw: dict[str, Any] | None) -> ExtractionRules:
    """Overlay configured rule values on the defaults."""
    defaults = ExtractionRules()
    if not raw:
        return defaults
    failing = raw.get("failing_grades")
    return ExtractionRules(
        roll_marker=raw.get("roll_marker", defaults.roll_marker),
        subject_code_prefix=raw.get("subject_code_prefix", defaults.subject_code_prefix),
        header_markers=tuple(raw.get("header_markers", defaults.header_markers)),
        serial_exact=tuple(s.strip().lower() for s in raw.get("serial_exact", defaults.serial_exact)),
        serial_contains=tuple(s.strip().lower() for s in raw.get("serial_contains", defaults.serial_contains)),
        # 成績は大文字で比較
        failing_grades=(
            frozenset(g.strip().upper() for g in failing) if failing is not None else defaults.failing_grades
        ),
    )


def load_config(path: Path = DEFAULT_CONFIG_PATH) -> IngestConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping, got {type(data).__name__}")

    _validate_config_schema(data)

    db_raw = data.get("database") or {}
    db = DatabaseConfig(
        host=db_raw.get("host"),
        port=db_raw.get("port"),
        user=db_raw.get("user"),
        password=db_raw.get("password"),
        database=db_raw.get("database"),
        dsn=db_raw.get("dsn"),
    )
    semester = data.get("semester")
    return IngestConfig(
        source_directory=data["source_directory"],
        rules=build_rules(data.get("rules")),
        database=db,
        semester=semester.strip() if isinstance(semester, str) and semester.strip() else None,
        error_log_dir=data.get("error_log_dir", "./logs"),
    )
