from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any

"""SubjectRecord: one subject result line for one student."""

__all__ = [
    "SubjectStatus",
    "SubjectRecord",
]


class SubjectStatus(Enum):
    """Pass/fail state, always derived from the grade."""
    PASS = "Pass"
    FAIL = "Fail"


@dataclass(frozen=True)
class SubjectRecord:
    subject_code: str
    subject_name: str
    internal_marks: int
    grade: str
    credits: float
    status: SubjectStatus

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["status"] = self.status.value
        return data

    @staticmethod
    def from_dict(data: dict[str, Any]) -> SubjectRecord:
        return SubjectRecord(
            subject_code=data["subject_code"],
            subject_name=data["subject_name"],
            internal_marks=int(data["internal_marks"]),
            grade=data["grade"],
            credits=float(data["credits"]),
            status=SubjectStatus(data["status"]),
        )
