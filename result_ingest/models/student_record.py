from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from .subject_record import SubjectRecord

"""StudentKey / StudentRecord models and the subject merge rule.

A StudentRecord is identified by (identifier, semester). Its subjects are kept
in insertion order and are unique by subject_code. Merging never replaces a
stored subject; it only appends codes that are not present yet, so merging the
same input twice is a no-op the second time.
"""

__all__ = [
    "StudentKey",
    "StudentRecord",
    "merge_subjects",
]


@dataclass(frozen=True)
class StudentKey:
    identifier: str
    semester: str


def merge_subjects(
    existing: Iterable[SubjectRecord], incoming: Iterable[SubjectRecord]
) -> tuple[list[SubjectRecord], list[SubjectRecord]]:
    """Union subjects on subject_code, existing entries first.

    Returns:
        tuple: (merged subjects, subjects that were actually appended)
    """
    merged = list(existing)
    seen = {s.subject_code for s in merged}
    added: list[SubjectRecord] = []
    for subject in incoming:
        if subject.subject_code in seen:
            continue
        seen.add(subject.subject_code)
        merged.append(subject)
        added.append(subject)
    return merged, added


@dataclass(frozen=True)
class StudentRecord:
    key: StudentKey
    subjects: tuple[SubjectRecord, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        codes = [s.subject_code for s in self.subjects]
        if len(codes) != len(set(codes)):
            raise ValueError(f"duplicate subject codes for {self.key.identifier}: {codes}")

    @property
    def subject_codes(self) -> list[str]:
        return [s.subject_code for s in self.subjects]

    def merged_with(self, incoming: Iterable[SubjectRecord]) -> tuple[StudentRecord, int]:
        """Return a new record extended with unseen subjects and the number appended."""
        merged, added = merge_subjects(self.subjects, incoming)
        return StudentRecord(key=self.key, subjects=tuple(merged)), len(added)

    def to_dict(self) -> dict[str, Any]:
        return {
            "roll": self.key.identifier,
            "semester": self.key.semester,
            "subjects": [s.to_dict() for s in self.subjects],
        }
