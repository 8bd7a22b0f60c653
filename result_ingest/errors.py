from __future__ import annotations

"""Fatal error taxonomy for a single document ingest.

Every class here aborts the whole invocation for one document and is surfaced
to the caller as a single failure. Per-row and per-record problems are never
raised past the orchestrator; they end up as counters and error records.
"""

__all__ = [
    "ExtractionError",
    "DocumentUnreadable",
    "NoHeaderFound",
    "NoValidResults",
    "InvalidSemester",
]


class ExtractionError(Exception):
    """Base class for batch-fatal extraction failures."""

    error_type = "EXTRACTION_ERROR"


class DocumentUnreadable(ExtractionError):
    """Input bytes could not be parsed into rows of cells."""

    error_type = "DOCUMENT_UNREADABLE"


class NoHeaderFound(ExtractionError):
    """No row carries a roll or subject-code header marker."""

    error_type = "NO_HEADER_FOUND"


class NoValidResults(ExtractionError):
    """The document parsed but produced zero students."""

    error_type = "NO_VALID_RESULTS"


class InvalidSemester(ExtractionError):
    """Semester identifier is missing or blank."""

    error_type = "INVALID_SEMESTER"
