"""
KPI computation functions — pure functions with no side effects.

Provides per-scenario KPI aggregation, derived ratio KPIs, percent change,
change classification by sign convention, and value formatting.
"""

import logging
import math
import numbers
from typing import Iterable, Sequence

import pandas as pd

from .config import BALANCED_CHANGE_BAND, KPI_DEFINITIONS, RATIO_KPI_DEFINITIONS
from .models import KPIDefinition, Observation, RatioKPIDefinition
from .transforms import build_fact_observations

logger = logging.getLogger(__name__)

KPI_AGGREGATIONS = ("average", "sum", "last", "min", "max")

KPIResults = dict[str, dict[str, float]]


def aggregate_values(group: pd.DataFrame, aggregation: str) -> float:
    """Apply one KPI aggregation to a (category, scenario) group.

    `group` must carry `value` and `week_ordinal` columns in input order.
    For "last", rows are stable-sorted by week ordinal (weeks without a
    number sort first) and the final value is taken, so ties keep input
    order.
    """
    values = group["value"]
    if aggregation == "average":
        return float(values.sum() / len(values))
    if aggregation == "sum":
        return float(values.sum())
    if aggregation == "min":
        return float(values.min())
    if aggregation == "max":
        return float(values.max())
    if aggregation == "last":
        ordered = group.sort_values("week_ordinal", kind="stable", na_position="first")
        return float(ordered["value"].iloc[-1])
    raise ValueError(f"Unknown KPI aggregation {aggregation!r}")


def calculate_kpis(
    observations: Iterable[Observation],
    kpi_definitions: Sequence[KPIDefinition] = KPI_DEFINITIONS,
    ratio_definitions: Sequence[RatioKPIDefinition] = RATIO_KPI_DEFINITIONS,
) -> KPIResults:
    """Summarise observations into {kpi_name: {scenario: value}}.

    Every defined KPI appears as a key. A scenario is present under a KPI
    only when it has matching observations; a missing entry means "no
    data", never zero.
    """
    for definition in kpi_definitions:
        if definition.aggregation not in KPI_AGGREGATIONS:
            raise ValueError(
                f"KPI {definition.name!r} has unknown aggregation {definition.aggregation!r}"
            )

    kpis: KPIResults = {d.name: {} for d in kpi_definitions}
    kpis.update({d.name: {} for d in ratio_definitions})

    df = build_fact_observations(observations)
    if df.empty:
        logger.warning("No observations, returning empty KPI map")
        return kpis

    groups = {
        key: group
        for key, group in df.groupby(["category", "scenario"], sort=False)
    }

    for definition in kpi_definitions:
        for (category, scenario), group in groups.items():
            if category != definition.source_category or group.empty:
                continue
            kpis[definition.name][scenario] = aggregate_values(group, definition.aggregation)

    for definition in ratio_definitions:
        kpis[definition.name] = calculate_ratio(groups, definition)

    logger.info(
        "Calculated %d KPIs across %d scenarios",
        len(kpis), df["scenario"].nunique(),
    )
    return kpis


def calculate_ratio(
    groups: dict[tuple[str, str], pd.DataFrame],
    definition: RatioKPIDefinition,
) -> dict[str, float]:
    """mean(numerator) / mean(denominator) per scenario.

    A scenario gets an entry only when both categories have data and the
    denominator mean is non-zero.
    """
    numerators = {
        scenario: group["value"]
        for (category, scenario), group in groups.items()
        if category == definition.numerator_category
    }
    denominators = {
        scenario: group["value"]
        for (category, scenario), group in groups.items()
        if category == definition.denominator_category
    }

    result = {}
    for scenario in dict.fromkeys([*numerators, *denominators]):
        num = numerators.get(scenario)
        den = denominators.get(scenario)
        if num is None or den is None or num.empty or den.empty:
            continue
        den_mean = den.sum() / len(den)
        if den_mean == 0:
            logger.debug("Skipping %s for %s: zero denominator", definition.name, scenario)
            continue
        result[scenario] = float((num.sum() / len(num)) / den_mean)
    return result


def percent_change(base: float, new: float) -> float:
    """Return (new - base) / |base| * 100, or 0.0 when base == 0."""
    if base == 0:
        return 0.0
    return (new - base) / abs(base) * 100


def classify_change(
    change_pct: float | None,
    sign_convention: str,
    balanced_band_pct: float = BALANCED_CHANGE_BAND,
) -> str:
    """Return 'green', 'red', or 'grey' for a percent change.

    Logic
    -----
    - sign_convention='up':       green if change > 0
    - sign_convention='down':     green if change < 0
    - sign_convention='balanced': green if |change| < balanced_band_pct
    Otherwise red. Missing changes are grey.
    """
    if change_pct is None or not math.isfinite(change_pct):
        return "grey"

    if sign_convention == "up":
        favourable = change_pct > 0
    elif sign_convention == "down":
        favourable = change_pct < 0
    else:  # balanced
        favourable = abs(change_pct) < balanced_band_pct
    return "green" if favourable else "red"


def format_kpi_value(definition: KPIDefinition | RatioKPIDefinition, value: float | None) -> str:
    if value is None:
        return "N/A"
    return definition.format.format(value)


def format_value(value: float | None, format_type: str = "decimal") -> str:
    """Format a number for tables and tooltips.

    "percent" treats value as a fraction (0.953 -> "95.3%"). "decimal"
    picks a precision from the magnitude.
    """
    if value is None or not isinstance(value, numbers.Real) or isinstance(value, bool):
        return "N/A"

    if format_type == "percent":
        return f"{value * 100:.1f}%"

    magnitude = abs(value)
    if magnitude == 0:
        return "0"
    if magnitude < 0.01:
        return f"{value:.2e}"
    if magnitude < 1:
        return f"{value:.2f}"
    if magnitude < 10:
        return f"{value:.1f}"
    if magnitude < 1000:
        return f"{value:.0f}"
    return f"{value:,.3f}".rstrip("0").rstrip(".")


def summarise_by_scenario(observations: Iterable[Observation]) -> pd.DataFrame:
    """Per (category, scenario) statistics for overview tables.

    Returns
    -------
    DataFrame with columns:
        category, scenario, weeks, mean, total, min, max
    """
    df = build_fact_observations(observations)
    if df.empty:
        logger.warning("Empty observation table, returning empty summary")
        return pd.DataFrame(columns=["category", "scenario", "weeks", "mean", "total", "min", "max"])

    result = df.groupby(["category", "scenario"], sort=False).agg(
        weeks=("value", "count"),
        mean=("value", "mean"),
        total=("value", "sum"),
        min=("value", "min"),
        max=("value", "max"),
    ).reset_index()

    logger.info("Summarised observations to %d category/scenario rows", len(result))
    return result
