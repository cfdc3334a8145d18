"""
Shared utilities for data ingestion: cell splitting, numeric coercion,
week-label ordering, header detection.
"""

import math
import re
from typing import Any, Iterable, Sequence

from ..config import HEADER_MARKERS, WEEK_MARKER

_DIGITS = re.compile(r"\d+")

# Stripped from both ends of a cell before numeric parsing
_CELL_WRAPPERS = "\"'$"


def split_line(line: str) -> list[str]:
    """Split one export line into trimmed cells.

    The export format has no quoting, so every comma is a delimiter.
    """
    return [cell.strip() for cell in line.rstrip("\r\n").split(",")]


def is_blank(cells: Sequence[str]) -> bool:
    return all(not cell for cell in cells)


def _coerce_float(val: Any) -> float | None:
    if val is None or isinstance(val, bool):
        return None
    if isinstance(val, str):
        val = val.strip().strip(_CELL_WRAPPERS).strip()
        # Skip formula strings and text labels
        if not val or val.startswith("="):
            return None
        val = val.replace(",", "")
        # Handle percentage strings like "78%"
        if val.endswith("%"):
            val = val[:-1].strip()
        try:
            return float(val)
        except ValueError:
            return None
    try:
        return float(val)
    except (ValueError, TypeError):
        return None


def safe_float(val: Any) -> float | None:
    """Coerce a cell to a finite float, returning None for anything else.

    NaN and infinities are rejected, including the strings "nan" and "inf"
    that float() would otherwise accept.
    """
    number = _coerce_float(val)
    if number is None or not math.isfinite(number):
        return None
    return number


def is_numeric_cell(val: Any) -> bool:
    """True if the cell reads as a number at all, finite or not."""
    return _coerce_float(val) is not None


def week_ordinal(label: str) -> int | None:
    """Return the first run of digits in a week label as an int.

    "Week 10" -> 10, "10" -> 10, "W03 / 2024" -> 3, "Total" -> None.
    Every place that orders weeks goes through this function.
    """
    match = _DIGITS.search(str(label))
    if match is None:
        return None
    return int(match.group())


def week_sort_key(label: str) -> tuple:
    """Sort key: numbered weeks by ordinal first, then the rest by text."""
    ordinal = week_ordinal(label)
    if ordinal is None:
        return (1, 0, str(label))
    return (0, ordinal, str(label))


def sort_weeks(labels: Iterable[str]) -> list[str]:
    """Return the distinct week labels in display order."""
    return sorted(set(labels), key=week_sort_key)


def is_header_line(cells: Sequence[str], markers: Sequence[str] = HEADER_MARKERS) -> bool:
    text = " ".join(cells).lower()
    return any(marker.lower() in text for marker in markers)


def is_week_label(cell: str) -> bool:
    cell = cell.strip()
    if not cell:
        return False
    return cell.isdigit() or WEEK_MARKER in cell.lower()


def find_week_columns(header: Sequence[str]) -> list[tuple[int, str]]:
    """Return (column index, verbatim label) for every week column.

    Column 0 holds the category label and is never a week column.
    """
    return [
        (idx, cell.strip())
        for idx, cell in enumerate(header)
        if idx > 0 and is_week_label(cell)
    ]
