from __future__ import annotations

from collections.abc import Iterator

from ..models.student_record import StudentKey, StudentRecord
from ..models.subject_record import SubjectRecord

"""Per-batch aggregation of accepted subjects by student."""

__all__ = [
    "StudentAggregator",
]


class StudentAggregator:
    """Groups accepted subjects by StudentKey for one batch.

    First occurrence of a subject code per key wins; students and their
    subjects keep document order. Single writer: call add() from one thread.
    """

    def __init__(self) -> None:
        self._subjects: dict[StudentKey, dict[str, SubjectRecord]] = {}

    def add(self, key: StudentKey, subject: SubjectRecord) -> bool:
        """Record a subject; False when the code was already seen for this key."""
        bucket = self._subjects.setdefault(key, {})
        if subject.subject_code in bucket:
            return False
        bucket[subject.subject_code] = subject
        return True

    def records(self) -> Iterator[StudentRecord]:
        for key, bucket in self._subjects.items():
            yield StudentRecord(key=key, subjects=tuple(bucket.values()))

    @property
    def subject_count(self) -> int:
        return sum(len(b) for b in self._subjects.values())

    def __len__(self) -> int:
        return len(self._subjects)
