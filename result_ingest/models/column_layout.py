from __future__ import annotations

from dataclasses import dataclass

"""ColumnLayout: where the result table starts and how its columns are shifted."""

__all__ = [
    "ColumnLayout",
]


@dataclass(frozen=True)
class ColumnLayout:
    """Resolved header position and column-offset convention for one document.

    Produced once by the header locator and passed to every row extraction.
    """
    header_row_index: int
    has_leading_serial: bool

    def __post_init__(self) -> None:
        if self.header_row_index < 0:
            raise ValueError(f"header_row_index must be >= 0, got {self.header_row_index}")

    @property
    def offset(self) -> int:
        """Index of the identifier column (serial number column shifts it by one)."""
        return 1 if self.has_leading_serial else 0

    @property
    def first_data_row(self) -> int:
        return self.header_row_index + 1
