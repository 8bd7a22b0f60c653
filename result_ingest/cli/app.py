from __future__ import annotations

import argparse
import json
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import psycopg2
from dotenv import load_dotenv

from ..config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config
from ..db.postgres_store import connect
from ..db.store import InMemoryStudentStore, StoreError, StudentStore
from ..errors import ExtractionError
from ..extraction.cells import cell_text
from ..logging.init import enable_debug, log_summary, setup_logging
from ..models.config_models import IngestConfig
from ..models.student_record import StudentKey
from ..services.orchestrator import ProcessingError, inspect_document, process_all, scan_documents
from ..services.summary import render_summary_line

"""CLI entrypoint.

Flow:
- Load .env (overrides existing variables) and the YAML config
- Open the student store (PostgreSQL, or in-memory with DISABLE_DB_CONNECT=1)
- Ingest the given documents, or every document in source_directory
- Print one SUMMARY line and exit with 0 / 2 / 1
"""

EXIT_SUCCESS_ALL = 0
EXIT_PARTIAL_FAILURE = 2
EXIT_FATAL = 1


@contextmanager
def _open_store(cfg: IngestConfig) -> Iterator[tuple[StudentStore, str]]:
    """Yield (store, mode). DISABLE_DB_CONNECT=1 selects the in-memory store."""
    if os.getenv("DISABLE_DB_CONNECT") == "1":
        yield InMemoryStudentStore(), "memory"
        return
    with connect(cfg.database) as store:
        yield store, "live"


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env so database settings in it win over the process environment."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="result-ingest", description="Result document -> semester student records importer"
    )
    p.add_argument("documents", nargs="*", type=Path, help="Documents to ingest (default: source_directory)")
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="YAML config path")
    p.add_argument("--semester", help="Semester identifier, e.g. 1-2 (default: config semester)")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--inspect-data", action="store_true", help="Print detected layout & first rows then exit")
    p.add_argument("--lookup", metavar="ROLL", help="Print the stored record for ROLL in --semester then exit")
    return p.parse_args(argv)


def _inspect_data(cfg: IngestConfig, documents: list[Path]) -> int:
    for f in documents:
        print(f"DOCUMENT: {f.name}")
        try:
            layout, sample = inspect_document(f.read_bytes(), cfg.rules)
        except (OSError, ExtractionError) as e:
            print(f"  error={e}")
            continue
        print(f"  header_row={layout.header_row_index} leading_serial={layout.has_leading_serial}")
        for row in sample:
            print("    row=", [cell_text(c) for c in row])
    return EXIT_SUCCESS_ALL


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # None のときのみシステム引数を読む (テストで [] を渡すため)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"), override=True)

    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if args.debug:
        enable_debug()
        logger.debug("debug mode enabled")

    documents: list[Path] = []
    if not args.lookup:
        try:
            documents = list(args.documents) or scan_documents(Path(cfg.source_directory))
        except ProcessingError as e:
            logger.error(str(e))
            return EXIT_FATAL

    if args.inspect_data:
        return _inspect_data(cfg, documents)

    semester = args.semester or cfg.semester
    if not semester:
        logger.error("semester is required (--semester or config 'semester')")
        return EXIT_FATAL

    try:
        with _open_store(cfg) as (store, mode):
            if args.lookup:
                record = store.find_by_key(StudentKey(identifier=args.lookup.strip(), semester=semester))
                if record is None:
                    logger.error(f"no result found for roll {args.lookup} in semester {semester}")
                    return EXIT_FATAL
                print(json.dumps(record.to_dict(), ensure_ascii=False, indent=2))
                return EXIT_SUCCESS_ALL

            logger.info(f"mode={mode} semester={semester} documents={len(documents)}")
            result = process_all(cfg, store, semester, paths=documents)
    except StoreError as e:
        logger.error(f"store: {e}")
        return EXIT_FATAL
    except psycopg2.Error as e:
        # 接続失敗など
        logger.error(f"database: {e}")
        return EXIT_FATAL

    # log_summary adds the "SUMMARY " prefix itself
    log_summary(render_summary_line(result)[len("SUMMARY "):])

    if result.failed_documents > 0 or result.partial_documents > 0:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL
