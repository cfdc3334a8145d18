"""Data ingestion loaders for scenario planning exports."""

from .classifier import LineKind, classify_line, classify_alert_severity
from .planning_export import parse_planning_export, parse_rows
from .planning_export import load_planning_export, load_planning_workbook
from .planning_export import PlanningExportError, HeaderNotFoundError, NoWeekColumnsError, UnreadableWorkbookError
from .utils import safe_float, week_ordinal, sort_weeks

__all__ = [
    "LineKind",
    "classify_line",
    "classify_alert_severity",
    "parse_planning_export",
    "parse_rows",
    "load_planning_export",
    "load_planning_workbook",
    "PlanningExportError",
    "HeaderNotFoundError",
    "NoWeekColumnsError",
    "UnreadableWorkbookError",
    "safe_float",
    "week_ordinal",
    "sort_weeks",
]
