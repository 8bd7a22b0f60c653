from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from .error_record import ErrorRecord

"""Outcome models for document ingest.

BatchOutcome is what extract() hands back for one document. RunResult and
DocumentStat aggregate several documents for the CLI SUMMARY line.
"""

__all__ = [
    "BatchOutcome",
    "DocumentStat",
    "RunResult",
]


@dataclass(frozen=True)
class BatchOutcome:
    """Counters and discard reasons for one document.

    processed_count: accepted SubjectRecords (after in-batch dedupe)
    skipped_count: discarded rows/records for any reason
    saved_count: StudentRecords merged into the store
    success: True iff at least one student was persisted
    """
    document: str
    semester: str
    processed_count: int
    skipped_count: int
    saved_count: int
    success: bool
    errors: tuple[ErrorRecord, ...] = ()
    start_time: datetime | None = None
    end_time: datetime | None = None

    @property
    def elapsed_seconds(self) -> float:
        if self.start_time is None or self.end_time is None:
            return 0.0
        return (self.end_time - self.start_time).total_seconds()

    @property
    def persistence_failures(self) -> list[ErrorRecord]:
        return [e for e in self.errors if e.is_persistence_failure]

    @property
    def is_partial(self) -> bool:
        """Some students failed to persist (success may still be True)."""
        return bool(self.persistence_failures)

    def to_dict(self) -> dict[str, object]:
        return {
            "document": self.document,
            "semester": self.semester,
            "processedCount": self.processed_count,
            "skippedCount": self.skipped_count,
            "savedCount": self.saved_count,
            "success": self.success,
            "errors": [
                {"row": e.row, "identifier": e.identifier, "type": e.error_type, "message": e.message}
                for e in self.errors
            ],
        }


@dataclass(frozen=True)
class DocumentStat:
    """Per-document statistics (internal helper for RunResult)."""
    document: str
    status: str  # success/partial/failed
    processed: int
    skipped: int
    saved: int
    elapsed_seconds: float
    error: str | None = None


@dataclass(frozen=True)
class RunResult:
    """Aggregated results over all documents of one CLI run."""
    success_documents: int
    partial_documents: int
    failed_documents: int
    total_processed: int
    total_skipped: int
    total_saved: int
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    document_stats: list[DocumentStat] = field(default_factory=list)

    @property
    def total_documents(self) -> int:
        return self.success_documents + self.partial_documents + self.failed_documents
