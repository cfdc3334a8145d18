"""
Data transforms: fact tables, chart series, pivots and slicing over
parsed observations.
"""

import logging
from typing import Iterable, Mapping, Sequence

import pandas as pd

from .config import (
    CATEGORY_GROUPS,
    PIVOT_AGGREGATIONS,
    PIVOT_DIMENSIONS,
    SCENARIO_REGISTRY,
)
from .loaders.utils import sort_weeks, week_ordinal
from .models import AlertRecord, Observation, Scenario

logger = logging.getLogger(__name__)

OBSERVATION_COLUMNS = ["category", "week", "value", "scenario"]
ALERT_COLUMNS = ["type", "count", "scenario"]
EXPORT_COLUMNS = ["category", "scenario", "week", "value"]

# Pivot aggregation name -> pandas aggregation
_PIVOT_AGGFUNC = {
    "average": "mean",
    "sum": "sum",
    "count": "count",
    "min": "min",
    "max": "max",
}


def build_fact_observations(observations: Iterable[Observation]) -> pd.DataFrame:
    """Long fact table of observations in input order.

    Returns
    -------
    DataFrame with columns:
        category, week, value, scenario, week_ordinal
    week_ordinal is the number embedded in the week label (NaN if none).
    """
    df = pd.DataFrame(
        [obs.to_dict() for obs in observations],
        columns=OBSERVATION_COLUMNS,
    )
    df["value"] = pd.to_numeric(df["value"], errors="coerce").astype("float64")
    df["week_ordinal"] = pd.to_numeric(
        df["week"].map(week_ordinal), errors="coerce"
    ).astype("float64")
    return df


def build_fact_alerts(alerts: Iterable[AlertRecord]) -> pd.DataFrame:
    """Long fact table of alert counts: type, count, scenario."""
    df = pd.DataFrame([alert.to_dict() for alert in alerts], columns=ALERT_COLUMNS)
    df["count"] = df["count"].astype("int64")
    return df


def transform_for_chart(observations: Iterable[Observation], category: str) -> list[dict]:
    """Per-week series for one category, one row per week.

    Each row is {"week": label, <scenario>: value, ...}. Scenarios with no
    value for a week are left out of that row. Rows are ordered by the
    week's embedded number, falling back to text order.
    """
    by_week: dict[str, dict[str, float]] = {}
    for obs in observations:
        if obs.category != category:
            continue
        by_week.setdefault(obs.week, {})[obs.scenario] = obs.value

    return [{"week": week, **by_week[week]} for week in sort_weeks(by_week)]


def transform_alerts_for_chart(
    alerts: Iterable[AlertRecord],
    scenarios: Mapping[str, Scenario] = SCENARIO_REGISTRY,
) -> list[dict]:
    """One row per alert type with a total count per registered scenario.

    Scenarios without alerts of that type show 0.
    """
    totals: dict[str, dict[str, int]] = {}
    for alert in alerts:
        row = totals.setdefault(alert.type.value, {})
        row[alert.scenario] = row.get(alert.scenario, 0) + alert.count

    return [
        {"name": alert_type, **{name: counts.get(name, 0) for name in scenarios}}
        for alert_type, counts in totals.items()
    ]


def pivot_table(
    observations: Iterable[Observation],
    row_dim: str,
    col_dim: str,
    value_field: str = "value",
    aggregation: str = "average",
) -> pd.DataFrame:
    """Two-dimensional aggregation over observation fields.

    Parameters
    ----------
    row_dim, col_dim : one of "category", "scenario", "week".
    value_field : field to aggregate (only "value" is numeric).
    aggregation : "average", "sum", "count", "min" or "max".

    Returns
    -------
    DataFrame indexed by row_dim values with one column per col_dim value,
    both in first-appearance order. Combinations with no observations are 0.
    "count" tables hold int64 counts.
    """
    if row_dim not in PIVOT_DIMENSIONS or col_dim not in PIVOT_DIMENSIONS:
        raise ValueError(
            f"Pivot dimensions must be in {PIVOT_DIMENSIONS}, got {row_dim!r}, {col_dim!r}"
        )
    if aggregation not in PIVOT_AGGREGATIONS:
        raise ValueError(f"Unknown pivot aggregation {aggregation!r}")
    if value_field != "value":
        raise ValueError(f"Unknown pivot value field {value_field!r}")

    df = build_fact_observations(observations)
    if df.empty:
        return pd.DataFrame()

    row_values = list(dict.fromkeys(df[row_dim]))
    col_values = list(dict.fromkeys(df[col_dim]))

    if row_dim == col_dim:
        grouped = df.groupby(row_dim, sort=False)[value_field].agg(_PIVOT_AGGFUNC[aggregation])
        table = pd.DataFrame(0.0, index=row_values, columns=col_values)
        for key, value in grouped.items():
            table.loc[key, key] = value
    else:
        table = df.groupby([row_dim, col_dim], sort=False)[value_field].agg(
            _PIVOT_AGGFUNC[aggregation]
        ).unstack(col_dim)
        table = table.reindex(index=row_values, columns=col_values).fillna(0)

    if aggregation == "count":
        table = table.astype("int64")

    table.index.name = row_dim
    table.columns.name = col_dim
    logger.debug("Built %s pivot %d x %d", aggregation, len(table.index), len(table.columns))
    return table


def filter_observations(
    observations: Iterable[Observation],
    categories: Sequence[str] | None = None,
    scenarios: Sequence[str] | None = None,
    weeks: Sequence[str] | None = None,
    value_min: float | None = None,
    value_max: float | None = None,
    search: str | None = None,
) -> list[Observation]:
    """Slice observations; empty or None filters are ignored.

    `search` matches case-insensitively against category, scenario and week.
    """
    term = search.strip().lower() if search else ""
    result = []
    for obs in observations:
        if categories and obs.category not in categories:
            continue
        if scenarios and obs.scenario not in scenarios:
            continue
        if weeks and obs.week not in weeks:
            continue
        if value_min is not None and obs.value < value_min:
            continue
        if value_max is not None and obs.value > value_max:
            continue
        if term and not (
            term in obs.category.lower()
            or term in obs.scenario.lower()
            or term in obs.week.lower()
        ):
            continue
        result.append(obs)
    return result


def apply_saved_view(observations: Iterable[Observation], view: Mapping) -> list[Observation]:
    """Apply a saved slicer view (see config.SAVED_VIEWS)."""
    return filter_observations(
        observations,
        categories=view.get("categories"),
        scenarios=view.get("scenarios"),
        weeks=view.get("weeks"),
        value_min=view.get("value_min"),
        value_max=view.get("value_max"),
        search=view.get("search"),
    )


def export_observations_csv(observations: Iterable[Observation]) -> str:
    """CSV text with columns category, scenario, week, value."""
    df = build_fact_observations(observations)
    return df[EXPORT_COLUMNS].to_csv(index=False, lineterminator="\n")


def group_categories(
    categories: Iterable[str],
    groups: Mapping[str, Sequence[str]] = CATEGORY_GROUPS,
) -> dict[str, list[str]]:
    """Bucket categories into the configured groups; the rest go to "Other"."""
    available = list(dict.fromkeys(categories))
    result: dict[str, list[str]] = {}
    grouped = set()
    for group_name, members in groups.items():
        present = [c for c in members if c in available]
        if present:
            result[group_name] = present
            grouped.update(present)

    others = [c for c in available if c not in grouped]
    if others:
        result["Other"] = others
    return result
