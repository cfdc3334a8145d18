"""
Dashboard-ready output functions.

These are the primary entry points for the Streamlit front end.
Each function returns plain dicts or lists suitable for rendering
cards, charts, and insight panels.
"""

import io
import logging
from typing import Iterable, Mapping, Sequence

from .config import (
    BASE_SCENARIO,
    COMPARISON_SCENARIO,
    DEFAULT_SCENARIO_COLOR,
    KPI_DEFINITIONS,
    RATIO_KPI_DEFINITIONS,
    SCENARIO_REGISTRY,
)
from .kpis import KPIResults, classify_change, format_kpi_value, percent_change
from .loaders import PlanningExportError, load_planning_workbook, parse_planning_export
from .models import KPIDefinition, Observation, RatioKPIDefinition, Scenario
from .session import ScenarioStore

logger = logging.getLogger(__name__)


def scenario_color(
    name: str,
    scenarios: Mapping[str, Scenario] = SCENARIO_REGISTRY,
) -> str:
    scenario = scenarios.get(name)
    return scenario.color if scenario else DEFAULT_SCENARIO_COLOR


def get_kpi_cards(
    kpis: KPIResults,
    selected_scenarios: Sequence[str],
    definitions: Sequence[KPIDefinition | RatioKPIDefinition] = KPI_DEFINITIONS + RATIO_KPI_DEFINITIONS,
    scenarios: Mapping[str, Scenario] = SCENARIO_REGISTRY,
    base: str = BASE_SCENARIO,
    compare: str = COMPARISON_SCENARIO,
) -> list[dict]:
    """One card per KPI that has data for at least one selected scenario.

    Returns
    -------
    List of dicts:
    {
        "name": "Fill Rate",
        "description": "...",
        "values": [{"scenario": "BASE", "value": 91.2, "display": "91.2%", "color": "#8884d8"}, ...],
        "change_pct": 3.1 or None,
        "rag": "green" | "red" | "grey",
    }
    The BASE -> S4 change is only filled in when both scenarios are
    selected and both have a value.
    """
    show_comparison = base in selected_scenarios and compare in selected_scenarios
    cards = []

    for definition in definitions:
        per_scenario = kpis.get(definition.name, {})
        values = [
            {
                "scenario": name,
                "value": per_scenario[name],
                "display": format_kpi_value(definition, per_scenario[name]),
                "color": scenario_color(name, scenarios),
            }
            for name in selected_scenarios
            if name in per_scenario
        ]
        if not values:
            continue

        change_pct = None
        if show_comparison and base in per_scenario and compare in per_scenario:
            change_pct = percent_change(per_scenario[base], per_scenario[compare])

        cards.append({
            "name": definition.name,
            "description": definition.description,
            "values": values,
            "change_pct": change_pct,
            "rag": classify_change(change_pct, definition.sign_convention),
        })

    return cards


def get_scenario_comparison(
    kpis: KPIResults,
    selected_scenarios: Sequence[str],
    selected_metrics: Sequence[str],
) -> list[dict]:
    """Bar-chart rows: {"name": metric, <scenario>: value, ...}; missing values show 0."""
    if not kpis:
        return []
    return [
        {
            "name": metric,
            **{name: kpis.get(metric, {}).get(name, 0) for name in selected_scenarios},
        }
        for metric in selected_metrics
    ]


def _comparable(kpis: KPIResults, name: str, base: str, compare: str) -> tuple[float, float] | None:
    values = kpis.get(name, {})
    base_value = values.get(base)
    compare_value = values.get(compare)
    # Zero or missing values give no meaningful relative change
    if not base_value or not compare_value:
        return None
    return base_value, compare_value


def generate_insights(
    observations: Sequence[Observation],
    kpis: KPIResults,
    base: str = BASE_SCENARIO,
    compare: str = COMPARISON_SCENARIO,
) -> list[dict]:
    """Rule-based insight messages comparing two scenarios.

    Each insight is {"type", "title", "description", "metric", "scenarios"}
    with type one of "positive", "negative", "warning", "info".
    """
    if not observations or not kpis:
        return []

    insights = []

    pair = _comparable(kpis, "Fill Rate", base, compare)
    if pair:
        change = percent_change(*pair)
        if change > 5:
            insights.append({
                "type": "positive",
                "title": "Fill Rate Improvement",
                "description": f"{compare} shows a {change:.1f}% improvement in fill rate "
                               f"compared to the {base} scenario.",
                "metric": "Fill Rate",
                "scenarios": [base, compare],
            })
        elif change < -5:
            insights.append({
                "type": "negative",
                "title": "Fill Rate Decline",
                "description": f"{compare} shows a {abs(change):.1f}% decrease in fill rate "
                               f"compared to the {base} scenario.",
                "metric": "Fill Rate",
                "scenarios": [base, compare],
            })

    pair = _comparable(kpis, "Inventory Level", base, compare)
    if pair:
        change = percent_change(*pair)
        if change < -10:
            insights.append({
                "type": "positive",
                "title": "Inventory Optimization",
                "description": f"{compare} reduces average inventory by {abs(change):.1f}% "
                               f"while maintaining service levels.",
                "metric": "Inventory Level",
                "scenarios": [base, compare],
            })
        elif change > 20:
            insights.append({
                "type": "warning",
                "title": "Increased Inventory",
                "description": f"{compare} increases average inventory by {change:.1f}%. "
                               f"Verify if this is necessary for improved service.",
                "metric": "Inventory Level",
                "scenarios": [base, compare],
            })

    pair = _comparable(kpis, "Production Orders", base, compare)
    if pair:
        change = percent_change(*pair)
        if abs(change) > 10:
            insights.append({
                "type": "info" if change > 0 else "warning",
                "title": "Production Volume Change",
                "description": f"{compare} {'increases' if change > 0 else 'decreases'} "
                               f"production volume by {abs(change):.1f}% compared to {base}.",
                "metric": "Production Orders",
                "scenarios": [base, compare],
            })

    pair = _comparable(kpis, "Capacity Utilization", base, compare)
    if pair:
        change = percent_change(*pair)
        compare_value = pair[1]
        if change > 10:
            insights.append({
                "type": "positive",
                "title": "Improved Capacity Utilization",
                "description": f"{compare} improves capacity utilization by {change:.1f}%, "
                               f"indicating better resource efficiency.",
                "metric": "Capacity Utilization",
                "scenarios": [base, compare],
            })
        elif compare_value > 90:
            insights.append({
                "type": "warning",
                "title": "High Capacity Utilization",
                "description": f"{compare} has a capacity utilization of {compare_value:.1f}%, "
                               f"which may indicate potential bottlenecks.",
                "metric": "Capacity Utilization",
                "scenarios": [compare],
            })

    n_scenarios = len({obs.scenario for obs in observations})
    n_categories = len({obs.category for obs in observations})
    insights.append({
        "type": "info",
        "title": "Data Overview",
        "description": f"Analysis includes {len(observations)} data points across "
                       f"{n_scenarios} scenarios and {n_categories} metrics.",
        "metric": "General",
        "scenarios": [],
    })

    logger.info("Generated %d insights", len(insights))
    return insights


def load_upload(store: ScenarioStore, scenario: str, filename: str, data: bytes) -> str | None:
    """Parse an uploaded export and replace the scenario's batch.

    .xlsx files go through openpyxl, anything else is read as text.
    Returns an error message for the upload panel, or None on success.
    """
    try:
        if filename.lower().endswith(".xlsx"):
            result = load_planning_workbook(io.BytesIO(data), scenario)
        else:
            result = parse_planning_export(data.decode("utf-8-sig", errors="replace"), scenario)
    except PlanningExportError as e:
        logger.warning("Rejected upload %s for %s: %s", filename, scenario, e)
        return f"Failed to parse file: {e}"

    if result.is_empty:
        return "No data points were extracted from the file. Please check the format."

    store.load(result)
    return None


def get_data_summary(store: ScenarioStore) -> dict:
    """Counts for the data-summary panel."""
    return {
        "loaded_scenarios": store.scenario_names,
        "observation_count": len(store.observations),
        "alert_count": len(store.alerts),
        "categories": store.categories,
        "weeks": store.weeks,
    }


def get_available_scenarios(
    store: ScenarioStore,
    scenarios: Mapping[str, Scenario] = SCENARIO_REGISTRY,
) -> list[str]:
    """Loaded scenario names, registry order first, then any others."""
    loaded = store.scenario_names
    ordered = [name for name in scenarios if name in loaded]
    return ordered + [name for name in loaded if name not in scenarios]


def total_alerts(alerts: Iterable) -> dict[str, int]:
    """Total alert count per scenario."""
    totals: dict[str, int] = {}
    for alert in alerts:
        totals[alert.scenario] = totals.get(alert.scenario, 0) + alert.count
    return totals
