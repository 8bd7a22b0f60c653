from __future__ import annotations

import time
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import Any

from psycopg2.extras import execute_values

"""DB batch insert helper.

Batched INSERT via psycopg2.extras.execute_values with an optional
ON CONFLICT clause. With returning_columns set, RETURNING collects the rows
that were actually written, which for ``ON CONFLICT DO NOTHING`` is exactly
the set of rows that did not exist yet.
"""

__all__ = [
    "BatchInsertError",
    "BatchMetrics",
    "InsertResult",
    "batch_insert",
]


class BatchInsertError(Exception):
    pass


@dataclass(frozen=True)
class BatchMetrics:
    """Timing data for a single batch insert call."""
    batch_size: int  # Number of rows in this batch
    elapsed_seconds: float  # Time spent on execute_values call
    start_time: float  # Start timestamp (time.time())
    end_time: float  # End timestamp (time.time())


@dataclass(frozen=True)
class InsertResult:
    attempted_rows: int
    returned_values: list[tuple[Any, ...]] | None = None

    @property
    def written_rows(self) -> int:
        """Rows actually written (known only when RETURNING was requested)."""
        if self.returned_values is None:
            return self.attempted_rows
        return len(self.returned_values)


def batch_insert(
    cursor: Any,
    table: str,
    columns: Sequence[str],
    rows: Iterable[Sequence[Any]],
    on_conflict: str | None = None,
    returning_columns: Sequence[str] | None = None,
    page_size: int = 1000,
    metrics_callback: Callable[[BatchMetrics], None] | None = None,
) -> InsertResult:
    """Perform batched INSERT using psycopg2.extras.execute_values.

    Parameters
    ----------
    cursor: psycopg2 cursor
    table: target table (trusted identifier, never user input)
    columns: insert columns
    rows: row value sequences in column order
    on_conflict: clause appended after VALUES, e.g.
        ``ON CONFLICT (roll, semester, subject_code) DO NOTHING``
    returning_columns: when given, RETURNING these columns for written rows
    page_size: execute_values page size
    metrics_callback: receives BatchMetrics; not invoked for empty input
    """
    rows_list = [list(r) for r in rows]
    returning = bool(returning_columns)
    if not rows_list:
        return InsertResult(attempted_rows=0, returned_values=[] if returning else None)

    cols_sql = ",".join(f'"{c}"' for c in columns)
    sql = f"INSERT INTO {table} ({cols_sql}) VALUES %s"
    if on_conflict:
        sql += f" {on_conflict}"
    if returning:
        sql += " RETURNING " + ",".join(f'"{c}"' for c in returning_columns or ())

    start_time = time.time()
    try:
        returned = execute_values(cursor, sql, rows_list, page_size=page_size, fetch=returning)
    except Exception as e:
        raise BatchInsertError(str(e)) from e
    finally:
        end_time = time.time()
        if metrics_callback is not None:
            metrics_callback(
                BatchMetrics(
                    batch_size=len(rows_list),
                    elapsed_seconds=end_time - start_time,
                    start_time=start_time,
                    end_time=end_time,
                )
            )

    if returning:
        return InsertResult(attempted_rows=len(rows_list), returned_values=[tuple(r) for r in returned or []])
    return InsertResult(attempted_rows=len(rows_list))
