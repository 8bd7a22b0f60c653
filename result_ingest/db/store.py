from __future__ import annotations

import threading
from dataclasses import dataclass

from ..models.student_record import StudentKey, StudentRecord

"""Semester-scoped student store contract and the in-memory implementation.

One store holds every semester; the semester is part of the StudentKey. The
merge rule is set-union on subject_code: stored subjects are never replaced,
only extended, so repeating an upsert with the same record changes nothing.
"""

__all__ = [
    "StoreError",
    "MergeResult",
    "StudentStore",
    "InMemoryStudentStore",
]


class StoreError(Exception):
    """A single student's merge failed (store unavailable, constraint, ...)."""


@dataclass(frozen=True)
class MergeResult:
    key: StudentKey
    created: bool  # no prior record existed
    added_subjects: int  # subjects appended by this merge


class StudentStore:
    """Persistence capability the ingest core depends on."""

    def find_by_key(self, key: StudentKey) -> StudentRecord | None:
        raise NotImplementedError

    def upsert_merge(self, record: StudentRecord) -> MergeResult:
        """Create or extend the stored record for record.key atomically.

        Raises:
            StoreError: the merge did not happen; nothing was written for the key
        """
        raise NotImplementedError


class InMemoryStudentStore(StudentStore):
    """Dict-backed store. Used offline (no database) and in tests."""

    def __init__(self) -> None:
        self._records: dict[StudentKey, StudentRecord] = {}
        self._lock = threading.Lock()

    def find_by_key(self, key: StudentKey) -> StudentRecord | None:
        with self._lock:
            return self._records.get(key)

    def upsert_merge(self, record: StudentRecord) -> MergeResult:
        with self._lock:
            existing = self._records.get(record.key)
            if existing is None:
                fresh, added = StudentRecord(key=record.key).merged_with(record.subjects)
                self._records[record.key] = fresh
                return MergeResult(key=record.key, created=True, added_subjects=added)
            merged, added = existing.merged_with(record.subjects)
            self._records[record.key] = merged
            return MergeResult(key=record.key, created=False, added_subjects=added)

    def records(self, semester: str | None = None) -> list[StudentRecord]:
        with self._lock:
            return [r for k, r in self._records.items() if semester is None or k.semester == semester]

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
