from __future__ import annotations

import math

from ..models.config_models import ExtractionRules
from ..models.subject_record import SubjectRecord, SubjectStatus

"""Structural checks on a SubjectRecord before it may be aggregated."""

__all__ = [
    "validate_subject",
    "is_valid_subject",
]


def validate_subject(record: SubjectRecord, rules: ExtractionRules | None = None) -> list[str]:
    """Return the list of violations; an empty list means the record is accepted."""
    rules = rules or ExtractionRules()
    problems: list[str] = []

    code = record.subject_code
    if not code:
        problems.append("subject_code is empty")
    elif not code.startswith(rules.subject_code_prefix):
        problems.append(f"subject_code {code!r} does not start with {rules.subject_code_prefix!r}")
    if not record.subject_name:
        problems.append("subject_name is empty")
    marks = record.internal_marks
    if isinstance(marks, bool) or not isinstance(marks, int):
        problems.append(f"internal_marks {marks!r} is not an integer")
    if not record.grade:
        problems.append("grade is empty")
    credits = record.credits
    if isinstance(credits, bool) or not isinstance(credits, (int, float)) or not math.isfinite(credits):
        problems.append(f"credits {credits!r} is not a finite number")
    if not isinstance(record.status, SubjectStatus):
        problems.append(f"status {record.status!r} is not Pass/Fail")
    return problems


def is_valid_subject(record: SubjectRecord, rules: ExtractionRules | None = None) -> bool:
    return not validate_subject(record, rules)
