from __future__ import annotations

from ..models.batch_outcome import BatchOutcome, RunResult

"""SUMMARY / per-document line rendering."""

__all__ = [
    "format_seconds",
    "render_outcome_line",
    "render_summary_line",
]


def format_seconds(value: float) -> str:
    """Integers without a decimal point, tiny values without scientific notation."""
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return f"{value:.3f}".rstrip("0").rstrip(".")


def render_outcome_line(outcome: BatchOutcome) -> str:
    """One line per document, e.g.

    document=r20.pdf semester=1-2 processed=120 skipped=4 saved=30 failed_students=0 success=true
    """
    return (
        f"document={outcome.document} "
        f"semester={outcome.semester} "
        f"processed={outcome.processed_count} "
        f"skipped={outcome.skipped_count} "
        f"saved={outcome.saved_count} "
        f"failed_students={len(outcome.persistence_failures)} "
        f"success={'true' if outcome.success else 'false'}"
    )


def render_summary_line(result: RunResult) -> str:
    """Render the run SUMMARY line.

    Format:
    SUMMARY documents={total}/{total} success={s} partial={p} failed={f}
    processed={n} skipped={k} saved={v} elapsed_sec={e}

    Examples:
        >>> from datetime import datetime, timezone
        >>> start = datetime(2024, 1, 1, 10, 0, 0, tzinfo=timezone.utc)
        >>> end = datetime(2024, 1, 1, 10, 0, 2, tzinfo=timezone.utc)
        >>> result = RunResult(
        ...     success_documents=1, partial_documents=0, failed_documents=0,
        ...     total_processed=12, total_skipped=1, total_saved=3,
        ...     start_time=start, end_time=end, elapsed_seconds=2.0,
        ... )
        >>> render_summary_line(result)
        'SUMMARY documents=1/1 success=1 partial=0 failed=0 processed=12 skipped=1 saved=3 elapsed_sec=2'
    """
    total = result.total_documents
    return (
        f"SUMMARY documents={total}/{total} "
        f"success={result.success_documents} "
        f"partial={result.partial_documents} "
        f"failed={result.failed_documents} "
        f"processed={result.total_processed} "
        f"skipped={result.total_skipped} "
        f"saved={result.total_saved} "
        f"elapsed_sec={format_seconds(result.elapsed_seconds)}"
    )
