"""
Configuration: scenario registry, KPI definitions, parser markers, constants.

SCENARIO_REGISTRY is read-only reference data. Pass it (or a replacement
mapping) into the functions that need scenario metadata rather than
mutating it.
"""

from pathlib import Path
from types import MappingProxyType

from .models import KPIDefinition, RatioKPIDefinition, Scenario

# ---------------------------------------------------------------------------
# File paths
# ---------------------------------------------------------------------------
DATA_DIR = Path(__file__).resolve().parent.parent / "data"

SCENARIO_FILES: dict[str, Path] = {
    "BASE": DATA_DIR / "BASE - Demand Supply Time Series - 105.csv",
    "S1": DATA_DIR / "S1 - Demand Supply Time Series - 105.csv",
    "S2": DATA_DIR / "S2 - Demand Supply Time Series - 105.csv",
    "S3": DATA_DIR / "S3 - Demand Supply Time Series - 105.csv",
    "S4": DATA_DIR / "S4 - Demand Supply Time Series - 105.csv",
}

# ---------------------------------------------------------------------------
# Plant identity
# ---------------------------------------------------------------------------
PLANT_NAME = "Detroit Cathode Manufacturing"

# ---------------------------------------------------------------------------
# Scenario registry
# ---------------------------------------------------------------------------
SCENARIOS: tuple[Scenario, ...] = (
    Scenario("BASE", "Base Plan", "#8884d8"),
    Scenario("S1", "S1 - Expedite POs & Move Sales Orders", "#82ca9d"),
    Scenario("S2", "S2 - Increase Capacities", "#ffc658"),
    Scenario("S3", "S3 - Increase Material Purchases", "#ff8042"),
    Scenario("S4", "S4 - Fine-tuned Solution", "#0088fe"),
)

SCENARIO_REGISTRY = MappingProxyType({s.name: s for s in SCENARIOS})

DEFAULT_SCENARIO_COLOR = "#cccccc"

# KPI cards compare these two scenarios when both are selected
BASE_SCENARIO = "BASE"
COMPARISON_SCENARIO = "S4"

# ---------------------------------------------------------------------------
# Parser markers
# ---------------------------------------------------------------------------
# A header line contains at least one of these (case-insensitive)
HEADER_MARKERS = ("Week", "Requirements", "Category")

# Only the first N lines are searched for the header
HEADER_SEARCH_WINDOW = 20

# Header cells containing this (case-insensitive) are week columns,
# as are cells made of digits only
WEEK_MARKER = "week"

ALERT_MARKER = "alert"

# First matching substring wins; anything else is General
ALERT_SEVERITY_MARKERS: tuple[tuple[str, str], ...] = (
    ("critical", "Critical"),
    ("capacity", "Capacity"),
    ("supporting", "Supporting"),
)

# ---------------------------------------------------------------------------
# KPI definitions
# ---------------------------------------------------------------------------
KPI_DEFINITIONS: tuple[KPIDefinition, ...] = (
    KPIDefinition(
        name="Fill Rate",
        source_category="Fill Rate",
        aggregation="average",
        format="{:.1f}%",
        sign_convention="up",
        description="Average fill rate across time periods",
    ),
    KPIDefinition(
        name="Inventory Level",
        source_category="Planned FG Inventory",
        aggregation="average",
        format="{:,.0f}",
        sign_convention="balanced",
        description="Average planned inventory across time periods",
    ),
    KPIDefinition(
        name="Ending Inventory",
        source_category="Planned FG Inventory",
        aggregation="last",
        format="{:,.0f}",
        sign_convention="down",
        description="Planned inventory in the final week",
    ),
    KPIDefinition(
        name="Production Orders",
        source_category="Planned FG Production Orders",
        aggregation="sum",
        format="{:,.0f}",
        sign_convention="balanced",
        description="Total production orders across time periods",
    ),
    KPIDefinition(
        name="Peak Demand",
        source_category="Total Demand",
        aggregation="max",
        format="{:,.0f}",
        sign_convention="balanced",
        description="Highest weekly demand",
    ),
    KPIDefinition(
        name="Minimum Available Capacity",
        source_category="Available Capacity",
        aggregation="min",
        format="{:,.0f}",
        sign_convention="up",
        description="Tightest week of available capacity",
    ),
    KPIDefinition(
        name="Capacity Utilization",
        source_category="Capacity Utilization",
        aggregation="average",
        format="{:.1f}%",
        sign_convention="balanced",
        description="Percentage of capacity utilized",
    ),
)

RATIO_KPI_DEFINITIONS: tuple[RatioKPIDefinition, ...] = (
    RatioKPIDefinition(
        name="Supply vs Demand",
        numerator_category="Available Supply",
        denominator_category="Total Demand",
        format="{:.2f}",
        sign_convention="up",
        description="Ratio of supply to demand",
    ),
)

# |change| below this many percent counts as favourable for "balanced" KPIs
BALANCED_CHANGE_BAND = 10.0

# ---------------------------------------------------------------------------
# Category groups (slicer and filter UIs)
# ---------------------------------------------------------------------------
CATEGORY_GROUPS: dict[str, list[str]] = {
    "Demand": ["Total Demand", "Firm Demand", "Forecasted Demand"],
    "Supply": ["Available Supply", "Planned FG Production Orders", "Planned Purchases"],
    "Inventory": ["Planned FG Inventory", "WIP Inventory", "Raw Materials"],
    "Performance": ["Fill Rate", "On-Time Delivery", "Perfect Order Rate"],
    "Capacity": ["Total Capacity", "Allocated Capacity", "Available Capacity"],
}

# Preset slicer views
SAVED_VIEWS: dict[str, dict] = {
    "High Fill Rate": {"categories": ["Fill Rate"], "value_min": 90, "value_max": 100},
    "Low Inventory": {"categories": ["Planned FG Inventory"], "value_max": 1000},
    "Production Capacity": {"categories": ["Total Capacity", "Allocated Capacity"]},
}

# ---------------------------------------------------------------------------
# Pivot options
# ---------------------------------------------------------------------------
PIVOT_DIMENSIONS = ("category", "scenario", "week")
PIVOT_AGGREGATIONS = ("average", "sum", "count", "min", "max")
