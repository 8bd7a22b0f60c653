from __future__ import annotations

from pathlib import Path

import pytest

from result_ingest.config.loader import SCHEMA_PATH, ConfigError, build_rules, load_config


def test_load_config_ok(write_config: Path):
    cfg = load_config(write_config)
    assert cfg.source_directory == "./data"
    assert cfg.semester == "1-2"
    assert cfg.error_log_dir == "./logs"
    assert cfg.rules.roll_marker == "HN"
    assert cfg.rules.failing_grades == frozenset({"F", "ABSENT", "MP"})
    assert cfg.database.port == 5432
    assert cfg.database.database == "results"
    assert cfg.database.dsn is None


def test_minimal_config_uses_defaults(temp_workdir: Path):
    p = temp_workdir / "config" / "ingest.yml"
    p.write_text("source_directory: ./data\n", encoding="utf-8")
    cfg = load_config(p)
    assert cfg.semester is None
    assert cfg.error_log_dir == "./logs"
    assert cfg.rules.header_markers == ("htno", "subcode")
    assert cfg.database.host is None


def test_blank_semester_becomes_none(temp_workdir: Path):
    p = temp_workdir / "config" / "ingest.yml"
    p.write_text('source_directory: ./data\nsemester: "  "\n', encoding="utf-8")
    assert load_config(p).semester is None


def test_missing_file(temp_workdir: Path):
    with pytest.raises(ConfigError, match="config file not found"):
        load_config(temp_workdir / "config" / "missing.yml")


def test_invalid_yaml(temp_workdir: Path):
    p = temp_workdir / "config" / "ingest.yml"
    p.write_text("source_directory: [unclosed\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="invalid yaml"):
        load_config(p)


def test_root_must_be_mapping(temp_workdir: Path):
    p = temp_workdir / "config" / "ingest.yml"
    p.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="mapping"):
        load_config(p)


@pytest.mark.parametrize(
    "body",
    [
        "semester: '1-2'\n",  # source_directory 欠落
        "source_directory: ./data\nunknown_key: 1\n",
        "source_directory: ./data\nrules:\n  roll_marker: 5\n",
        "source_directory: ./data\nrules:\n  extra: x\n",
        "source_directory: ./data\ndatabase:\n  port: 'abc'\n",
    ],
)
def test_schema_violations(temp_workdir: Path, body: str):
    p = temp_workdir / "config" / "ingest.yml"
    p.write_text(body, encoding="utf-8")
    with pytest.raises(ConfigError, match="config validation failed"):
        load_config(p)


def test_schema_file_is_bundled():
    assert SCHEMA_PATH.exists()


def test_build_rules_normalizes_tokens():
    rules = build_rules(
        {
            "serial_exact": [" S.No ", "SNO"],
            "serial_contains": ["Serial"],
            "failing_grades": ["f", " ab "],
        }
    )
    assert rules.serial_exact == ("s.no", "sno")
    assert rules.serial_contains == ("serial",)
    assert rules.failing_grades == frozenset({"F", "AB"})
    assert rules.roll_marker == "HN"


def test_build_rules_defaults():
    assert build_rules(None) == build_rules({})
