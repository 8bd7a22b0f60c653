from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..document.reader import RawRow
from ..models.column_layout import ColumnLayout
from ..models.config_models import ExtractionRules
from ..models.error_record import MALFORMED_ROW, NOT_A_STUDENT_ROW
from ..models.subject_record import SubjectRecord, SubjectStatus
from .cells import cell_text, parse_float, parse_int
from .header import is_well_formed

"""Row classifier & field extractor.

Column order after the optional serial column:

    roll | subject code | subject name | internal | grade | credits

Any status column in the source is ignored; status is derived from the grade.
"""

__all__ = [
    "ExtractedRow",
    "RowDiscarded",
    "derive_status",
    "extract_row",
]


class RowDiscarded(Exception):
    """Row is not usable. A data-quality decision, not a fault."""

    def __init__(self, error_type: str, message: str, identifier: str | None = None) -> None:
        super().__init__(message)
        self.error_type = error_type
        self.identifier = identifier


@dataclass(frozen=True)
class ExtractedRow:
    identifier: str
    subject: SubjectRecord


def derive_status(grade: str, rules: ExtractionRules | None = None) -> SubjectStatus:
    """Fail iff the upper-cased grade is one of the failing tokens."""
    failing = (rules or ExtractionRules()).failing_grades
    return SubjectStatus.FAIL if grade.strip().upper() in failing else SubjectStatus.PASS


def _cell(row: RawRow, index: int) -> Any:
    # 末尾セル欠落は空扱い
    return row[index] if index < len(row) else None


def extract_row(row: Any, layout: ColumnLayout, rules: ExtractionRules | None = None) -> ExtractedRow:
    """Map one data row to (identifier, SubjectRecord).

    The record is not validated here; see extraction.validator.

    Raises:
        RowDiscarded: malformed row or identifier without the roll marker
    """
    rules = rules or ExtractionRules()
    if not is_well_formed(row):
        raise RowDiscarded(MALFORMED_ROW, f"row is not a sequence of cells: {type(row).__name__}")

    base = layout.offset
    identifier = cell_text(_cell(row, base))
    if rules.roll_marker not in identifier:
        raise RowDiscarded(
            NOT_A_STUDENT_ROW,
            f"identifier {identifier!r} lacks roll marker {rules.roll_marker!r}",
            identifier=identifier or None,
        )

    grade = cell_text(_cell(row, base + 4)).upper()
    subject = SubjectRecord(
        subject_code=cell_text(_cell(row, base + 1)),
        subject_name=cell_text(_cell(row, base + 2)),
        internal_marks=parse_int(_cell(row, base + 3)),
        grade=grade,
        credits=parse_float(_cell(row, base + 5)),
        status=derive_status(grade, rules),
    )
    return ExtractedRow(identifier=identifier, subject=subject)
