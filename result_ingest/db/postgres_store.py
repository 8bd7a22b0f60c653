from __future__ import annotations

import logging
import os
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any

import psycopg2

from ..models.config_models import DatabaseConfig
from ..models.student_record import StudentKey, StudentRecord
from ..models.subject_record import SubjectRecord, SubjectStatus
from .batch_insert import BatchInsertError, BatchMetrics, batch_insert
from .store import MergeResult, StoreError, StudentStore

"""PostgreSQL student store (psycopg2).

Layout: one ``students`` row per (roll, semester) and one
``student_subjects`` row per (roll, semester, subject_code). Both inserts use
``ON CONFLICT DO NOTHING`` so a retried upload never duplicates a student or
a subject, and each student is written in its own transaction.
"""

__all__ = [
    "SCHEMA_DDL",
    "SUBJECT_COLUMNS",
    "PostgresStudentStore",
    "resolve_dsn",
    "connect",
]

logger = logging.getLogger(__name__)

SCHEMA_DDL = """
CREATE TABLE IF NOT EXISTS students (
    roll       TEXT NOT NULL,
    semester   TEXT NOT NULL,
    created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
    PRIMARY KEY (roll, semester)
);
CREATE TABLE IF NOT EXISTS student_subjects (
    id             BIGSERIAL,
    roll           TEXT NOT NULL,
    semester       TEXT NOT NULL,
    subject_code   TEXT NOT NULL,
    subject_name   TEXT NOT NULL,
    internal_marks INTEGER NOT NULL,
    grade          TEXT NOT NULL,
    credits        DOUBLE PRECISION NOT NULL,
    status         TEXT NOT NULL CHECK (status IN ('Pass', 'Fail')),
    PRIMARY KEY (roll, semester, subject_code),
    FOREIGN KEY (roll, semester) REFERENCES students (roll, semester)
);
"""

SUBJECT_COLUMNS = (
    "roll",
    "semester",
    "subject_code",
    "subject_name",
    "internal_marks",
    "grade",
    "credits",
    "status",
)


class PostgresStudentStore(StudentStore):
    """Student store over a single psycopg2 connection.

    The connection is shared, so calls are serialized with a lock. Every
    driver error, including a closed or broken connection, surfaces as
    StoreError.
    """

    def __init__(
        self,
        conn: Any,
        page_size: int = 1000,
        metrics_callback: Callable[[BatchMetrics], None] | None = None,
    ) -> None:
        self._conn = conn
        self._page_size = page_size
        self._metrics_callback = metrics_callback
        self._lock = threading.Lock()

    def _cursor(self, action: str) -> Any:
        try:
            return self._conn.cursor()
        except psycopg2.Error as e:
            raise StoreError(f"{action}: connection unavailable: {e}") from e

    def _rollback(self, action: str) -> None:
        try:
            self._conn.rollback()
        except psycopg2.Error:
            logger.warning("rollback failed (%s)", action, exc_info=True)

    def _on_batch_metrics(self, metrics: BatchMetrics) -> None:
        logger.debug(
            "student_subjects batch size=%d elapsed=%.4fs", metrics.batch_size, metrics.elapsed_seconds
        )
        if self._metrics_callback is not None:
            self._metrics_callback(metrics)

    def ensure_schema(self) -> None:
        action = "schema setup failed"
        with self._lock:
            cur = self._cursor(action)
            try:
                cur.execute(SCHEMA_DDL)
                self._conn.commit()
            except psycopg2.Error as e:
                self._rollback(action)
                raise StoreError(f"{action}: {e}") from e
            finally:
                cur.close()

    def find_by_key(self, key: StudentKey) -> StudentRecord | None:
        action = f"lookup failed for {key.identifier}/{key.semester}"
        with self._lock:
            cur = self._cursor(action)
            try:
                cur.execute(
                    "SELECT 1 FROM students WHERE roll = %s AND semester = %s",
                    (key.identifier, key.semester),
                )
                if cur.fetchone() is None:
                    self._conn.rollback()
                    return None
                cur.execute(
                    "SELECT subject_code, subject_name, internal_marks, grade, credits, status "
                    "FROM student_subjects WHERE roll = %s AND semester = %s ORDER BY id",
                    (key.identifier, key.semester),
                )
                rows = cur.fetchall()
                self._conn.rollback()  # read-only; close the implicit transaction
            except psycopg2.Error as e:
                self._rollback(action)
                raise StoreError(f"{action}: {e}") from e
            finally:
                cur.close()
        subjects = tuple(
            SubjectRecord(
                subject_code=code,
                subject_name=name,
                internal_marks=int(marks),
                grade=grade,
                credits=float(credits),
                status=SubjectStatus(status),
            )
            for code, name, marks, grade, credits, status in rows
        )
        return StudentRecord(key=key, subjects=subjects)

    def upsert_merge(self, record: StudentRecord) -> MergeResult:
        key = record.key
        action = f"merge failed for {key.identifier}/{key.semester}"
        rows = [
            (
                key.identifier,
                key.semester,
                s.subject_code,
                s.subject_name,
                s.internal_marks,
                s.grade,
                s.credits,
                s.status.value,
            )
            for s in record.subjects
        ]
        with self._lock:
            cur = self._cursor(action)
            try:
                cur.execute(
                    "INSERT INTO students (roll, semester) VALUES (%s, %s) "
                    "ON CONFLICT (roll, semester) DO NOTHING RETURNING roll",
                    (key.identifier, key.semester),
                )
                created = cur.fetchone() is not None
                result = batch_insert(
                    cur,
                    "student_subjects",
                    SUBJECT_COLUMNS,
                    rows,
                    on_conflict="ON CONFLICT (roll, semester, subject_code) DO NOTHING",
                    returning_columns=("subject_code",),
                    page_size=self._page_size,
                    metrics_callback=self._on_batch_metrics,
                )
                self._conn.commit()
            except (psycopg2.Error, BatchInsertError) as e:
                self._rollback(action)
                raise StoreError(f"{action}: {e}") from e
            finally:
                cur.close()
        return MergeResult(key=key, created=created, added_subjects=result.written_rows)


def resolve_dsn(db_cfg: DatabaseConfig) -> str:
    """Resolve the connection string.

    Priority: DATABASE_URL / PGDSN, then PG* variables, then the YAML
    database section (missing pieces fall back to libpq defaults).
    """
    dsn_env = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or db_cfg.dsn
    if dsn_env:
        return dsn_env
    host = os.getenv("PGHOST", db_cfg.host or "localhost")
    port = os.getenv("PGPORT", str(db_cfg.port) if db_cfg.port else "5432")
    user = os.getenv("PGUSER", db_cfg.user or "postgres")
    password = os.getenv("PGPASSWORD", db_cfg.password or "")
    database = os.getenv("PGDATABASE", db_cfg.database or "postgres")
    dsn = f"host={host} port={port} user={user} dbname={database}"
    if password:
        dsn += f" password={password}"
    return dsn


@contextmanager
def connect(db_cfg: DatabaseConfig) -> Iterator[PostgresStudentStore]:
    """Open a connection, make sure the schema exists and yield a store."""
    conn = psycopg2.connect(resolve_dsn(db_cfg))
    conn.autocommit = False
    try:
        store = PostgresStudentStore(conn)
        store.ensure_schema()
        yield store
    finally:
        conn.close()
