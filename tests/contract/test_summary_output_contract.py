from __future__ import annotations

import re
from datetime import UTC, datetime
from pathlib import Path

from result_ingest.cli import main as cli_main
from result_ingest.models.batch_outcome import RunResult
from result_ingest.services.summary import render_summary_line

"""SUMMARY 行フォーマット契約テスト."""

SUMMARY_PATTERN = re.compile(
    r"^SUMMARY\s+documents=([0-9]+)/(\1)\s+success=([0-9]+)\s+partial=([0-9]+)\s+failed=([0-9]+)\s+"
    r"processed=([0-9]+)\s+skipped=([0-9]+)\s+saved=([0-9]+)\s+elapsed_sec=([0-9]+\.?[0-9]*)$"
)


def test_summary_pattern_example_line():
    line = "SUMMARY documents=2/2 success=1 partial=0 failed=1 processed=40 skipped=3 saved=12 elapsed_sec=0.84"
    m = SUMMARY_PATTERN.match(line)
    assert m, "SUMMARY line should match contract regex"
    assert m.group(3) == "1"


def test_rendered_line_matches_pattern():
    now = datetime.now(UTC)
    result = RunResult(1, 1, 1, 10, 2, 4, now, now, 0.000512)
    assert SUMMARY_PATTERN.match(render_summary_line(result))


def test_cli_prints_single_summary_line(temp_workdir: Path, write_config: Path, offline_db, csv_bytes, capsys):
    (temp_workdir / "data" / "r20.csv").write_bytes(csv_bytes)
    cli_main([])
    lines = [line for line in capsys.readouterr().out.splitlines() if line.startswith("SUMMARY")]
    assert len(lines) == 1
    assert SUMMARY_PATTERN.match(lines[0])


def test_cli_summary_with_no_documents(temp_workdir: Path, write_config: Path, offline_db, capsys):
    assert cli_main([]) == 0
    out = capsys.readouterr().out
    assert "SUMMARY documents=0/0 success=0 partial=0 failed=0 processed=0 skipped=0 saved=0 elapsed_sec=" in out
