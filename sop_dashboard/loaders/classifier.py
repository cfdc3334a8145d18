"""
Line classification for planning exports.

Every line is tagged with a LineKind before the parser acts on it, so the
parser's state machine only ever branches on the tag.
"""

from enum import Enum
from typing import Sequence

from ..config import ALERT_MARKER, ALERT_SEVERITY_MARKERS, HEADER_MARKERS
from ..models import AlertType
from .utils import is_blank, is_header_line, is_numeric_cell


class LineKind(Enum):
    HEADER = "header"
    CATEGORY_LABEL = "category_label"
    ALERT_CATEGORY_LABEL = "alert_category_label"
    DATA_ROW = "data_row"
    BLANK = "blank"


def classify_line(
    cells: Sequence[str],
    seeking_header: bool = False,
    markers: Sequence[str] = HEADER_MARKERS,
) -> LineKind:
    """Tag one split line.

    While `seeking_header` is set, a line carrying a header marker is
    HEADER. Once the body has started, header markers are ordinary text
    (a category such as "Capacity Requirements" is still a category).

    Body rules:
    - no non-empty cell -> BLANK
    - first cell non-empty and not numeric -> CATEGORY_LABEL, or
      ALERT_CATEGORY_LABEL when the label mentions "alert"
    - anything else -> DATA_ROW
    """
    if is_blank(cells):
        return LineKind.BLANK

    if seeking_header and is_header_line(cells, markers):
        return LineKind.HEADER

    first = cells[0].strip() if cells else ""
    if first and not is_numeric_cell(first):
        if is_alert_category(first):
            return LineKind.ALERT_CATEGORY_LABEL
        return LineKind.CATEGORY_LABEL

    return LineKind.DATA_ROW


def is_alert_category(label: str) -> bool:
    return ALERT_MARKER in label.lower()


def classify_alert_severity(label: str) -> AlertType:
    """Map an alert category label to its severity by substring."""
    lower = label.lower()
    for marker, severity in ALERT_SEVERITY_MARKERS:
        if marker in lower:
            return AlertType(severity)
    return AlertType.GENERAL
