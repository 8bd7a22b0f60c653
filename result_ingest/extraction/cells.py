from __future__ import annotations

import math
import re
from typing import Any

"""Lenient cell coercion helpers.

Cells arrive as None, numbers (spreadsheets) or text (PDF tables, CSV).
Numeric parsing reads the leading numeric prefix of the text and falls back
to 0 instead of raising, so a smudged marks column lowers data quality
without stopping the batch.
"""

__all__ = [
    "cell_text",
    "parse_int",
    "parse_float",
]

_INT_PREFIX = re.compile(r"^[+-]?\d+")
_FLOAT_PREFIX = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")


def cell_text(value: Any) -> str:
    """Render a cell as trimmed text with internal whitespace collapsed.

    >>> cell_text(None), cell_text(4.0), cell_text("  Engineering\\nMaths ")
    ('', '4', 'Engineering Maths')
    """
    if value is None:
        return ""
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if value.is_integer():
            return str(int(value))
    return " ".join(str(value).split())


def parse_int(value: Any) -> int:
    """Parse the leading integer of a cell; 0 when there is none.

    >>> parse_int("45"), parse_int(" 12abs"), parse_int(38.0), parse_int("AB")
    (45, 12, 38, 0)
    """
    if isinstance(value, bool) or value is None:
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else 0
    match = _INT_PREFIX.match(cell_text(value))
    return int(match.group(0)) if match else 0


def parse_float(value: Any) -> float:
    """Parse the leading number of a cell as float; 0.0 when there is none.

    >>> parse_float("1.5"), parse_float(3), parse_float("-"), parse_float(float("nan"))
    (1.5, 3.0, 0.0, 0.0)
    """
    if isinstance(value, bool) or value is None:
        return 0.0
    if isinstance(value, (int, float)):
        number = float(value)
        return number if math.isfinite(number) else 0.0
    match = _FLOAT_PREFIX.match(cell_text(value))
    if not match:
        return 0.0
    number = float(match.group(0))
    return number if math.isfinite(number) else 0.0
