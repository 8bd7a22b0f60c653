from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for discard reasons and persistence failures.

One ErrorRecord is produced for every row or record the ingest drops and for
every student whose merge fails. The same records are returned to the caller
in BatchOutcome.errors and written by ErrorLogBuffer as JSON Lines.

row is the 1-based position of the row in the document. Use -1 for
student-level errors where no single row applies.
"""

__all__ = [
    "ErrorRecord",
    "MALFORMED_ROW",
    "NOT_A_STUDENT_ROW",
    "INVALID_SUBJECT",
    "DUPLICATE_SUBJECT",
    "PERSISTENCE_ERROR",
]

MALFORMED_ROW = "MALFORMED_ROW"
NOT_A_STUDENT_ROW = "NOT_A_STUDENT_ROW"
INVALID_SUBJECT = "INVALID_SUBJECT"
DUPLICATE_SUBJECT = "DUPLICATE_SUBJECT"
PERSISTENCE_ERROR = "PERSISTENCE_ERROR"


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        document: Source document name
        semester: Semester the batch was ingested for
        row: Row number (1-based). -1 for student-level errors
        identifier: Student roll when known
        error_type: Error classification in UPPER_SNAKE_CASE format
        message: Human readable reason
    """
    timestamp: str  # ISO8601 UTC
    document: str
    semester: str
    row: int
    identifier: str | None
    error_type: str  # UPPER_SNAKE
    message: str

    @staticmethod
    def create(
        document: str,
        semester: str,
        row: int,
        error_type: str,
        message: str,
        identifier: str | None = None,
    ) -> ErrorRecord:
        """Create a new ErrorRecord stamped with the current UTC time."""
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            document=document,
            semester=semester,
            row=row,
            identifier=identifier,
            error_type=error_type,
            message=message,
        )

    @property
    def is_persistence_failure(self) -> bool:
        return self.error_type == PERSISTENCE_ERROR

    def to_json_line(self) -> str:
        """Serialize to one JSON line with exactly the dataclass keys."""
        return json.dumps(asdict(self), ensure_ascii=False)
