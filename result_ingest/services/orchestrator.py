from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from ..db.store import StoreError, StudentStore
from ..document.reader import RawRow, read_document_rows
from ..errors import ExtractionError, InvalidSemester, NoValidResults
from ..extraction.fields import ExtractedRow, RowDiscarded, extract_row
from ..extraction.header import locate_header
from ..extraction.validator import validate_subject
from ..logging.error_log import ErrorLogBuffer
from ..models.batch_outcome import BatchOutcome, DocumentStat, RunResult
from ..models.column_layout import ColumnLayout
from ..models.config_models import ExtractionRules, IngestConfig
from ..models.error_record import (
    DUPLICATE_SUBJECT,
    INVALID_SUBJECT,
    PERSISTENCE_ERROR,
    ErrorRecord,
)
from ..models.job_state import JobPhase
from ..models.student_record import StudentKey
from .aggregator import StudentAggregator
from .progress import ProgressSink, ProgressTracker, no_progress

"""Ingest orchestration.

extract() runs one document through the whole pipeline:

    bytes -> rows -> header/layout -> extracted rows -> validated subjects
          -> per-student aggregation -> per-student merge -> BatchOutcome

Rows are handled strictly in document order. Extraction and validation are
separate passes over the rows once the layout is fixed; aggregation and the
merges run on the calling thread.

process_all() is the batch driver used by the CLI: it ingests every document
of a directory (or an explicit list) and aggregates a RunResult.
"""

__all__ = [
    "DOCUMENT_SUFFIXES",
    "ProcessingError",
    "extract",
    "inspect_document",
    "process_all",
    "scan_documents",
]

logger = logging.getLogger(__name__)

DOCUMENT_SUFFIXES = (".pdf", ".xlsx", ".csv")


class ProcessingError(Exception):
    """Fatal problem with the run itself (not with a single document)."""
    pass


@dataclass(frozen=True)
class _Candidate:
    row_number: int
    extracted: ExtractedRow


def _check_semester(semester: Any) -> str:
    if not isinstance(semester, str) or not semester.strip():
        raise InvalidSemester(f"invalid semester: {semester!r}")
    return semester.strip()


def _extract_candidates(
    rows: list[RawRow],
    layout: ColumnLayout,
    rules: ExtractionRules,
    discard: Any,
) -> list[_Candidate]:
    candidates: list[_Candidate] = []
    for index in range(layout.first_data_row, len(rows)):
        row_number = index + 1
        try:
            extracted = extract_row(rows[index], layout, rules)
        except RowDiscarded as e:
            discard(row_number, e.error_type, str(e), e.identifier)
            continue
        candidates.append(_Candidate(row_number=row_number, extracted=extracted))
    return candidates


def extract(
    document_bytes: bytes,
    semester: str,
    store: StudentStore,
    *,
    rules: ExtractionRules | None = None,
    progress: ProgressSink | None = None,
    document_name: str = "<buffer>",
) -> BatchOutcome:
    """Ingest one result document for one semester.

    Args:
        document_bytes: raw PDF / xlsx / CSV content
        semester: semester identifier, e.g. "1-2"
        store: semester-scoped student store receiving the merges
        rules: institutional markers (defaults to ExtractionRules())
        progress: optional sink for coarse phase updates
        document_name: label used in error records and logs

    Returns:
        BatchOutcome; success is True iff at least one student was persisted

    Raises:
        InvalidSemester: semester missing or blank
        DocumentUnreadable: bytes cannot be parsed into rows
        NoHeaderFound: no header row, raised before any row is classified
        NoValidResults: no student survived extraction and validation
    """
    rules = rules or ExtractionRules()
    notify = progress or no_progress
    start_time = datetime.now(UTC)

    try:
        semester = _check_semester(semester)
        errors: list[ErrorRecord] = []
        skipped = 0

        def discard(row_number: int, error_type: str, message: str, identifier: str | None) -> None:
            nonlocal skipped
            skipped += 1
            errors.append(
                ErrorRecord.create(
                    document=document_name,
                    semester=semester,
                    row=row_number,
                    error_type=error_type,
                    message=message,
                    identifier=identifier,
                )
            )
            logger.debug("discard document=%s row=%d type=%s %s", document_name, row_number, error_type, message)

        notify(JobPhase.READING)
        rows = read_document_rows(document_bytes)
        logger.debug("document=%s rows=%d", document_name, len(rows))

        notify(JobPhase.EXTRACTING)
        layout = locate_header(rows, rules)
        candidates = _extract_candidates(rows, layout, rules, discard)

        notify(JobPhase.VALIDATING)
        aggregator = StudentAggregator()
        for candidate in candidates:
            identifier = candidate.extracted.identifier
            subject = candidate.extracted.subject
            problems = validate_subject(subject, rules)
            if problems:
                discard(candidate.row_number, INVALID_SUBJECT, "; ".join(problems), identifier)
                continue
            key = StudentKey(identifier=identifier, semester=semester)
            if not aggregator.add(key, subject):
                discard(
                    candidate.row_number,
                    DUPLICATE_SUBJECT,
                    f"subject {subject.subject_code} already recorded for {identifier}",
                    identifier,
                )

        if len(aggregator) == 0:
            raise NoValidResults(
                f"no valid student results in {document_name} ({len(rows)} rows, {skipped} skipped)"
            )

        notify(JobPhase.PERSISTING)
        saved = 0
        for record in aggregator.records():
            try:
                result = store.upsert_merge(record)
            except StoreError as e:
                logger.warning("persist failed roll=%s semester=%s: %s", record.key.identifier, semester, e)
                errors.append(
                    ErrorRecord.create(
                        document=document_name,
                        semester=semester,
                        row=-1,
                        error_type=PERSISTENCE_ERROR,
                        message=str(e),
                        identifier=record.key.identifier,
                    )
                )
                continue
            saved += 1
            logger.debug(
                "merged roll=%s semester=%s created=%s added=%d",
                record.key.identifier,
                semester,
                result.created,
                result.added_subjects,
            )
    except ExtractionError:
        notify(JobPhase.FAILED)
        raise

    notify(JobPhase.DONE)
    return BatchOutcome(
        document=document_name,
        semester=semester,
        processed_count=aggregator.subject_count,
        skipped_count=skipped,
        saved_count=saved,
        success=saved > 0,
        errors=tuple(errors),
        start_time=start_time,
        end_time=datetime.now(UTC),
    )


def inspect_document(
    document_bytes: bytes, rules: ExtractionRules | None = None, limit: int = 3
) -> tuple[ColumnLayout, list[RawRow]]:
    """Detected layout plus the first ``limit`` data rows, without persisting anything."""
    rows = read_document_rows(document_bytes)
    layout = locate_header(rows, rules)
    return layout, list(rows[layout.first_data_row : layout.first_data_row + limit])


def scan_documents(directory: Path) -> list[Path]:
    """Scan directory for result documents (non-recursive), sorted by name.

    Raises:
        ProcessingError: If directory doesn't exist or can't be read
    """
    if not directory.exists():
        raise ProcessingError(f"Directory not found: {directory}")

    if not directory.is_dir():
        raise ProcessingError(f"Path is not a directory: {directory}")

    try:
        return sorted(
            p for p in directory.iterdir() if p.is_file() and p.suffix.lower() in DOCUMENT_SUFFIXES
        )
    except OSError as e:
        raise ProcessingError(f"Error reading directory {directory}: {e}") from e


def process_all(
    config: IngestConfig,
    store: StudentStore,
    semester: str,
    paths: list[Path] | None = None,
) -> RunResult:
    """Ingest every document (explicit paths, else the configured directory).

    A document failing fatally is recorded and the run continues with the
    next one. Error records of all documents are flushed to the error log once.

    Raises:
        ProcessingError: the source directory cannot be scanned
    """
    start_time = datetime.now(UTC)
    error_log = ErrorLogBuffer(config.error_log_dir)

    file_paths = paths if paths is not None else scan_documents(Path(config.source_directory))

    stats: list[DocumentStat] = []
    success_count = 0
    partial_count = 0
    failed_count = 0
    total_processed = 0
    total_skipped = 0
    total_saved = 0

    with ProgressTracker(len(file_paths)) as progress:
        for file_path in file_paths:
            progress.start_document(file_path.name)
            doc_start = datetime.now(UTC)
            outcome: BatchOutcome | None = None
            error: str | None = None
            error_type = "PROCESSING_ERROR"
            try:
                data = file_path.read_bytes()
                outcome = extract(
                    data,
                    semester,
                    store,
                    rules=config.rules,
                    progress=progress.phase,
                    document_name=file_path.name,
                )
            except OSError as e:
                error = f"cannot read file: {e}"
                error_type = "FILE_READ_ERROR"
            except ExtractionError as e:
                error = str(e)
                error_type = e.error_type

            if outcome is None:
                failed_count += 1
                logger.error("document=%s failed: %s", file_path.name, error)
                error_log.append(
                    ErrorRecord.create(
                        document=file_path.name,
                        semester=semester,
                        row=-1,
                        error_type=error_type,
                        message=error or "",
                    )
                )
                status = "failed"
            else:
                error_log.extend(outcome.errors)
                total_processed += outcome.processed_count
                total_skipped += outcome.skipped_count
                total_saved += outcome.saved_count
                if not outcome.success:
                    failed_count += 1
                    status = "failed"
                    error = "no student could be persisted"
                elif outcome.is_partial:
                    partial_count += 1
                    status = "partial"
                else:
                    success_count += 1
                    status = "success"
                logger.info(
                    "document=%s status=%s processed=%d skipped=%d saved=%d",
                    file_path.name,
                    status,
                    outcome.processed_count,
                    outcome.skipped_count,
                    outcome.saved_count,
                )

            progress.set_postfix(ok=success_count, partial=partial_count, failed=failed_count)
            progress.finish_document()
            stats.append(
                DocumentStat(
                    document=file_path.name,
                    status=status,
                    processed=outcome.processed_count if outcome else 0,
                    skipped=outcome.skipped_count if outcome else 0,
                    saved=outcome.saved_count if outcome else 0,
                    elapsed_seconds=(datetime.now(UTC) - doc_start).total_seconds(),
                    error=error,
                )
            )

    try:
        log_path = error_log.flush()
    except OSError as e:
        # エラーログ書き込み失敗で全体を失敗させない
        logger.warning("failed to write error log: %s", e)
    else:
        if log_path is not None:
            logger.info("error log written: %s", log_path)

    end_time = datetime.now(UTC)
    return RunResult(
        success_documents=success_count,
        partial_documents=partial_count,
        failed_documents=failed_count,
        total_processed=total_processed,
        total_skipped=total_skipped,
        total_saved=total_saved,
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=(end_time - start_time).total_seconds(),
        document_stats=stats,
    )
