from __future__ import annotations

import logging
from collections.abc import Sequence

from ..document.reader import RawRow
from ..errors import NoHeaderFound
from ..models.column_layout import ColumnLayout
from ..models.config_models import ExtractionRules
from .cells import cell_text

"""Header locator.

Result dumps carry title blocks, college banners and page furniture above the
actual table, and some layouts put a serial-number column in front of the
roll number. The first row mentioning a roll/hall-ticket or subject-code
marker starts the table; its first cell decides the column offset.
"""

__all__ = [
    "is_well_formed",
    "has_leading_serial",
    "locate_header",
]

logger = logging.getLogger(__name__)


def is_well_formed(row: object) -> bool:
    """A row must be a list/tuple of cells (strings are not rows)."""
    return isinstance(row, (list, tuple))


def _is_header_row(cells: list[str], markers: Sequence[str]) -> bool:
    return any(marker in cell for cell in cells for marker in markers)


def has_leading_serial(first_cell: str, rules: ExtractionRules) -> bool:
    first = first_cell.strip().lower()
    if first in rules.serial_exact:
        return True
    return any(token in first for token in rules.serial_contains if token)


def locate_header(rows: Sequence[RawRow], rules: ExtractionRules | None = None) -> ColumnLayout:
    """Find the header row and derive the column layout.

    Raises:
        NoHeaderFound: no row carries a header marker
    """
    rules = rules or ExtractionRules()
    markers = rules.normalized_header_markers
    for index, row in enumerate(rows):
        if not is_well_formed(row):
            continue
        cells = [cell_text(c).lower() for c in row]
        if not _is_header_row(cells, markers):
            continue
        layout = ColumnLayout(
            header_row_index=index,
            has_leading_serial=bool(cells) and has_leading_serial(cells[0], rules),
        )
        logger.debug(
            "header found at row=%d has_leading_serial=%s", index, layout.has_leading_serial
        )
        return layout
    raise NoHeaderFound(
        f"no header row found in {len(rows)} rows (markers={list(markers)})"
    )
