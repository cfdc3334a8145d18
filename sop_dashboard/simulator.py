"""
Simulated planning-export generator for the S&OP dashboard.

Produces export text in the same loose CSV layout the planning system
writes, one file per scenario. All values are synthetic.
"""

import numpy as np

from .config import PLANT_NAME, SCENARIO_REGISTRY

# ---------------------------------------------------------------------------
# Typical weekly parameters (realistic ranges)
# ---------------------------------------------------------------------------
_WEEKLY_PARAMS = {
    "Total Demand": {"level": 1_200, "std": 90},
    "Firm Demand": {"level": 800, "std": 60},
    "Forecasted Demand": {"level": 400, "std": 50},
    "Available Supply": {"level": 1_150, "std": 80},
    "Planned FG Production Orders": {"level": 950, "std": 70},
    "Planned Purchases": {"level": 300, "std": 40},
    "Planned FG Inventory": {"level": 2_400, "std": 150},
    "Total Capacity": {"level": 1_100, "std": 0},
    "Allocated Capacity": {"level": 900, "std": 60},
}

# Per-scenario multipliers on supply-side and inventory categories
_SCENARIO_LEVERS = {
    "BASE": {"supply": 1.00, "capacity": 1.00, "inventory": 1.00, "alerts": 1.0},
    "S1": {"supply": 1.04, "capacity": 1.00, "inventory": 0.97, "alerts": 0.8},
    "S2": {"supply": 1.06, "capacity": 1.15, "inventory": 1.02, "alerts": 0.7},
    "S3": {"supply": 1.08, "capacity": 1.00, "inventory": 1.12, "alerts": 0.6},
    "S4": {"supply": 1.10, "capacity": 1.10, "inventory": 0.88, "alerts": 0.4},
}

_SUPPLY_CATEGORIES = {"Available Supply", "Planned FG Production Orders", "Planned Purchases"}
_CAPACITY_CATEGORIES = {"Total Capacity"}
_INVENTORY_CATEGORIES = {"Planned FG Inventory"}

_ALERTS = [
    ("Critical Alerts", 6),
    ("Capacity Alerts", 9),
    ("Supporting Alerts", 14),
]


def _lever(scenario: str, category: str) -> float:
    levers = _SCENARIO_LEVERS.get(scenario, _SCENARIO_LEVERS["BASE"])
    if category in _SUPPLY_CATEGORIES:
        return levers["supply"]
    if category in _CAPACITY_CATEGORIES:
        return levers["capacity"]
    if category in _INVENTORY_CATEGORIES:
        return levers["inventory"]
    return 1.0


def generate_weekly_series(
    scenario: str,
    n_weeks: int = 12,
    seed: int = 42,
) -> dict[str, list[float]]:
    """Generate simulated weekly values per category for one scenario.

    Demand is shared across scenarios (same seed); supply, capacity and
    inventory move with the scenario levers. Derived rows (Available
    Capacity, Capacity Utilization, Fill Rate) are computed from the rest.
    """
    rng = np.random.default_rng(seed)
    series: dict[str, list[float]] = {}

    for category, params in _WEEKLY_PARAMS.items():
        noise = rng.normal(0, params["std"], n_weeks) if params["std"] else np.zeros(n_weeks)
        values = (params["level"] + noise) * _lever(scenario, category)
        series[category] = [round(float(v), 0) for v in np.clip(values, 0, None)]

    total = np.array(series["Total Capacity"])
    allocated = np.minimum(np.array(series["Allocated Capacity"]), total)
    series["Allocated Capacity"] = [float(v) for v in allocated]
    series["Available Capacity"] = [float(v) for v in total - allocated]
    series["Capacity Utilization"] = [
        round(float(v), 1) for v in np.where(total > 0, allocated / np.where(total > 0, total, 1) * 100, 0)
    ]

    demand = np.array(series["Total Demand"])
    supply = np.array(series["Available Supply"])
    fill = np.where(demand > 0, np.minimum(supply / np.where(demand > 0, demand, 1), 1.0) * 100, 100)
    series["Fill Rate"] = [round(float(v), 1) for v in fill]

    return series


def generate_planning_export(
    scenario: str,
    n_weeks: int = 12,
    seed: int = 42,
) -> str:
    """Render a simulated scenario export as text.

    Layout: two preamble lines, a header with numeric week columns, one
    line per category, then the alert count lines.
    """
    series = generate_weekly_series(scenario, n_weeks=n_weeks, seed=seed)
    description = SCENARIO_REGISTRY[scenario].description if scenario in SCENARIO_REGISTRY else scenario

    lines = [
        f"{PLANT_NAME} - Demand Supply Time Series",
        f"Scenario: {description}",
        "",
        ",".join(["Requirements at Plant P103"] + [str(week) for week in range(1, n_weeks + 1)]),
    ]

    for category, values in series.items():
        cells = [f"{v:g}" for v in values]
        lines.append(",".join([category] + cells))

    alert_factor = _SCENARIO_LEVERS.get(scenario, _SCENARIO_LEVERS["BASE"])["alerts"]
    for label, base_count in _ALERTS:
        lines.append(f"{label},{int(round(base_count * alert_factor))}")

    return "\n".join(lines) + "\n"
