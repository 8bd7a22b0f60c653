"""Domain models for the result document ingest."""

from .batch_outcome import BatchOutcome, DocumentStat, RunResult
from .column_layout import ColumnLayout
from .config_models import DatabaseConfig, ExtractionRules, IngestConfig
from .error_record import ErrorRecord
from .job_state import JobPhase, JobState
from .student_record import StudentKey, StudentRecord, merge_subjects
from .subject_record import SubjectRecord, SubjectStatus

__all__ = [
    # Configuration models
    "DatabaseConfig",
    "ExtractionRules",
    "IngestConfig",
    # Extraction models
    "ColumnLayout",
    "SubjectRecord",
    "SubjectStatus",
    "StudentKey",
    "StudentRecord",
    "merge_subjects",
    # Outcome models
    "BatchOutcome",
    "DocumentStat",
    "ErrorRecord",
    "RunResult",
    "JobPhase",
    "JobState",
]
