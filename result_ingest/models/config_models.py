from __future__ import annotations

from dataclasses import dataclass, field

"""Config dataclasses for the result document ingest.

These are the typed views the services consume. The YAML loader in
result_ingest/config/loader.py builds them after schema validation.
"""

__all__ = [
    "DatabaseConfig",
    "ExtractionRules",
    "IngestConfig",
]


@dataclass(frozen=True)
class DatabaseConfig:
    """Database connection configuration.

    Used as fallback when environment variables are not set.
    Environment variables take precedence over these values.
    """
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None


@dataclass(frozen=True)
class ExtractionRules:
    """Institutional markers that decide which cells belong to the result table.

    Defaults follow the university result sheets the ingest was built for:
    roll numbers carry an ``HN`` infix and subject codes start with ``R``.
    """
    roll_marker: str = "HN"
    subject_code_prefix: str = "R"
    # 小文字で比較する
    header_markers: tuple[str, ...] = ("htno", "subcode")
    serial_exact: tuple[str, ...] = ("sno",)
    serial_contains: tuple[str, ...] = ("serial",)
    failing_grades: frozenset[str] = field(default_factory=lambda: frozenset({"F", "ABSENT", "MP"}))

    @property
    def normalized_header_markers(self) -> tuple[str, ...]:
        return tuple(m.strip().lower() for m in self.header_markers if m.strip())


@dataclass(frozen=True)
class IngestConfig:
    """Root configuration object for an ingest run."""
    source_directory: str  # Directory scanned in batch mode
    rules: ExtractionRules
    database: DatabaseConfig
    semester: str | None = None  # Default semester when the CLI omits --semester
    error_log_dir: str = "./logs"
