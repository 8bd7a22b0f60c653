# Shared pytest fixtures
from __future__ import annotations

import tempfile
from pathlib import Path

import pytest

from result_ingest.logging.init import reset_logging


@pytest.fixture(autouse=True)
def _clean_logging():
    # handler は生成時の sys.stdout を掴むため毎テストで作り直す
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """source_directory: ./data
semester: "1-2"
error_log_dir: ./logs
rules:
  roll_marker: HN
  subject_code_prefix: R
  header_markers: [htno, subcode]
  failing_grades: [F, ABSENT, MP]
database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: results
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "ingest.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def offline_db(monkeypatch):
    monkeypatch.setenv("DISABLE_DB_CONNECT", "1")
    for var in ("DATABASE_URL", "PGDSN"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture()
def result_rows() -> list[list[object]]:
    """A small result sheet with title rows above an SNO-led header."""
    return [
        ["JAWAHARLAL TECHNOLOGICAL UNIVERSITY"],
        ["B.Tech I Year II Semester Regular Results"],
        ["SNO", "HTNO", "SUBCODE", "SUBNAME", "INT", "GRADE", "CR"],
        ["1", "21HN1A0501", "R201201", "Mathematics II", "22", "A", "3"],
        ["2", "21HN1A0501", "R201202", "Applied Physics", "18", "F", "0"],
        ["3", "21HN1A0502", "R201201", "Mathematics II", "25", "O", "3"],
        ["4", "21HN1A0502", "R201203", "Engineering Drawing", "AB", "ABSENT", "0"],
    ]


@pytest.fixture()
def make_csv():
    def _make(rows: list[list[object]]) -> bytes:
        lines = [",".join("" if c is None else str(c) for c in row) for row in rows]
        return ("\n".join(lines) + "\n").encode("utf-8")
    return _make


@pytest.fixture()
def csv_bytes(result_rows, make_csv) -> bytes:
    return make_csv(result_rows)
