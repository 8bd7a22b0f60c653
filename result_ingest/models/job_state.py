from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import UTC, datetime
from enum import Enum

from .batch_outcome import BatchOutcome

"""JobPhase enum and JobState snapshot for background ingest jobs.

State transitions: pending -> reading -> extracting -> validating ->
persisting -> (done | failed)
"""

__all__ = [
    "JobPhase",
    "JobState",
]


class JobPhase(Enum):
    PENDING = "pending"
    READING = "reading"
    EXTRACTING = "extracting"
    VALIDATING = "validating"
    PERSISTING = "persisting"
    DONE = "done"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobPhase.DONE, JobPhase.FAILED)


@dataclass(frozen=True)
class JobState:
    job_id: str
    phase: JobPhase = JobPhase.PENDING
    outcome: BatchOutcome | None = None
    error: str | None = None
    updated_at: datetime | None = None

    @property
    def completed(self) -> bool:
        return self.phase.is_terminal

    def advance(self, phase: JobPhase, **changes: object) -> JobState:
        return replace(self, phase=phase, updated_at=datetime.now(UTC), **changes)  # type: ignore[arg-type]
