"""
Loader for scenario planning exports (Demand Supply Time Series).

Layout
------
    <preamble lines>
    Requirements at Plant P103,Week / Week Ending,1,2,3,...   <- header
    Total Demand,,120,135,128,...                             <- category + data
    ,,4,6,2,...                                               <- more data
    Critical Alerts,5                                         <- alert count
    ...

The text format is plain comma-separated lines with no quoting. The same
row interpreter also reads .xlsx exports via openpyxl.
"""

import logging
import zipfile
from pathlib import Path
from typing import IO, Sequence

import openpyxl
from openpyxl.utils.exceptions import InvalidFileException

from ..config import HEADER_MARKERS, HEADER_SEARCH_WINDOW
from ..models import AlertRecord, Observation, ParseResult
from .classifier import LineKind, classify_alert_severity, classify_line
from .utils import find_week_columns, safe_float, split_line

logger = logging.getLogger(__name__)


class PlanningExportError(ValueError):
    """Raised when an export has no structure to extract from."""

    def __init__(self, scenario: str, message: str):
        self.scenario = scenario
        super().__init__(f"{scenario}: {message}")


class HeaderNotFoundError(PlanningExportError):
    """No line in the search window carries a header marker."""


class NoWeekColumnsError(PlanningExportError):
    """The header was found but none of its cells is a week column."""


class UnreadableWorkbookError(PlanningExportError):
    """The upload is not a readable .xlsx workbook."""


def parse_planning_export(text: str, scenario: str) -> ParseResult:
    """Parse the text of one scenario export.

    Raises HeaderNotFoundError or NoWeekColumnsError when the file has no
    usable structure. Malformed cells are skipped. A result with
    `is_empty` set means the structure was found but nothing was extracted.
    """
    rows = [split_line(line) for line in text.splitlines()]
    return parse_rows(rows, scenario)


def parse_rows(
    rows: Sequence[Sequence[str]],
    scenario: str,
    markers: Sequence[str] = HEADER_MARKERS,
    max_header_rows: int = HEADER_SEARCH_WINDOW,
) -> ParseResult:
    """Run the header search and body state machine over split rows."""
    header_idx = None
    for row_idx, cells in enumerate(rows[:max_header_rows]):
        if classify_line(cells, seeking_header=True, markers=markers) is LineKind.HEADER:
            header_idx = row_idx
            break

    if header_idx is None:
        logger.error(
            "No header row in first %d lines for %s", max_header_rows, scenario
        )
        raise HeaderNotFoundError(
            scenario,
            f"no header row (markers {', '.join(markers)}) in the first "
            f"{max_header_rows} lines",
        )

    header = rows[header_idx]
    week_columns = find_week_columns(header)
    if not week_columns:
        logger.error("Header row %d has no week columns for %s", header_idx + 1, scenario)
        raise NoWeekColumnsError(scenario, f"header row {header_idx + 1} has no week columns")

    logger.debug(
        "Header at line %d for %s with %d week columns",
        header_idx + 1, scenario, len(week_columns),
    )

    observations: list[Observation] = []
    alerts: list[AlertRecord] = []
    current_category = ""
    in_alert_category = False

    for cells in rows[header_idx + 1:]:
        kind = classify_line(cells)

        if kind is LineKind.BLANK:
            continue

        if kind is LineKind.ALERT_CATEGORY_LABEL:
            current_category = cells[0].strip()
            in_alert_category = True
            alerts.append(AlertRecord(
                type=classify_alert_severity(current_category),
                count=_alert_count(cells[1:]),
                scenario=scenario,
            ))
            continue

        if kind is LineKind.CATEGORY_LABEL:
            current_category = cells[0].strip()
            in_alert_category = False

        # Data rows (and the category label row itself) carry week values
        if not current_category or in_alert_category:
            continue

        for col_idx, week in week_columns:
            if col_idx >= len(cells):
                continue
            value = safe_float(cells[col_idx])
            if value is None:
                continue
            observations.append(Observation(
                category=current_category,
                week=week,
                value=value,
                scenario=scenario,
            ))

    result = ParseResult(
        scenario=scenario,
        observations=tuple(observations),
        alerts=tuple(alerts),
    )

    if result.is_empty:
        logger.warning(
            "No observations or alerts extracted for %s. Check the file format.",
            scenario,
        )
    else:
        logger.info(
            "Parsed %d observations and %d alerts for %s",
            len(result.observations), len(result.alerts), scenario,
        )
    return result


def _alert_count(cells: Sequence[str]) -> int:
    """First finite number after the label, as a non-negative int."""
    for cell in cells:
        value = safe_float(cell)
        if value is not None:
            return max(int(round(value)), 0)
    return 0


def load_planning_export(path: str | Path, scenario: str, encoding: str = "utf-8-sig") -> ParseResult:
    """Read and parse one exported CSV file."""
    try:
        text = Path(path).read_text(encoding=encoding)
    except OSError:
        logger.exception("Failed to open planning export: %s", path)
        raise

    logger.info("Loaded %d characters from %s [%s]", len(text), path, scenario)
    return parse_planning_export(text, scenario)


def load_planning_workbook(
    path: str | Path | IO[bytes],
    scenario: str,
    sheet_name: str | None = None,
) -> ParseResult:
    """Parse a scenario export saved as .xlsx.

    Assumptions
    -----------
    - The export is on `sheet_name`, or the first sheet when not given.
    - Cell values are read with data_only=True (cached formula results).
    - Each worksheet row is interpreted exactly like one text line.

    A file that is not a workbook raises UnreadableWorkbookError. A missing
    path raises OSError as with the text loader.
    """
    try:
        wb = openpyxl.load_workbook(path, data_only=True, read_only=True)
    except OSError:
        logger.exception("Failed to open planning workbook: %s", path)
        raise
    except (zipfile.BadZipFile, InvalidFileException, KeyError) as e:
        logger.exception("Planning workbook is not a valid .xlsx: %s", path)
        raise UnreadableWorkbookError(scenario, f"not a readable .xlsx workbook ({e})") from e

    if sheet_name is None or sheet_name not in wb.sheetnames:
        if sheet_name is not None:
            logger.warning("Sheet '%s' not found, using '%s'", sheet_name, wb.sheetnames[0])
        sheet_name = wb.sheetnames[0]

    ws = wb[sheet_name]
    rows = [
        [_cell_text(value) for value in row]
        for row in ws.iter_rows(values_only=True)
    ]
    wb.close()

    logger.info("Loaded %d rows from %s [%s]", len(rows), path, sheet_name)
    return parse_rows(rows, scenario)


def _cell_text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()
