"""Result document ingest: tabular result dumps -> semester-scoped student records."""

__version__ = "0.1.0"
