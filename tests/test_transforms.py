import math

import pytest

from sop_dashboard.config import SAVED_VIEWS
from sop_dashboard.models import AlertRecord, AlertType
from sop_dashboard.transforms import (
    apply_saved_view,
    build_fact_alerts,
    build_fact_observations,
    export_observations_csv,
    filter_observations,
    group_categories,
    pivot_table,
    transform_alerts_for_chart,
    transform_for_chart,
)

from conftest import make_observations


def test_fact_observations_has_week_ordinal():
    df = build_fact_observations(make_observations([("X", "Week 3", 1), ("X", "Total", 2)]))

    assert list(df.columns) == ["category", "week", "value", "scenario", "week_ordinal"]
    assert df["week_ordinal"].iloc[0] == 3.0
    assert math.isnan(df["week_ordinal"].iloc[1])


def test_fact_alerts():
    df = build_fact_alerts([AlertRecord(AlertType.CRITICAL, 5, "BASE")])
    assert df.to_dict("records") == [{"type": "Critical", "count": 5, "scenario": "BASE"}]


# ---------------------------------------------------------------------------
# Chart series
# ---------------------------------------------------------------------------

def test_series_sorted_by_week_number():
    obs = make_observations([("X", "Week 10", 1), ("X", "Week 2", 2), ("X", "Total", 4), ("X", "Week 1", 3)])
    series = transform_for_chart(obs, "X")
    assert [row["week"] for row in series] == ["Week 1", "Week 2", "Week 10", "Total"]


def test_series_omits_missing_scenarios(two_scenario_observations):
    series = transform_for_chart(two_scenario_observations, "Fill Rate")
    assert series == [
        {"week": "1", "BASE": 80.0, "S1": 70.0},
        {"week": "2", "BASE": 90.0},
    ]


def test_series_for_unknown_category_is_empty(two_scenario_observations):
    assert transform_for_chart(two_scenario_observations, "Nope") == []


def test_alerts_chart_sums_and_zero_fills():
    alerts = [
        AlertRecord(AlertType.CRITICAL, 5, "BASE"),
        AlertRecord(AlertType.CRITICAL, 2, "BASE"),
        AlertRecord(AlertType.CAPACITY, 3, "S1"),
    ]
    rows = transform_alerts_for_chart(alerts)
    assert rows == [
        {"name": "Critical", "BASE": 7, "S1": 0, "S2": 0, "S3": 0, "S4": 0},
        {"name": "Capacity", "BASE": 0, "S1": 3, "S2": 0, "S3": 0, "S4": 0},
    ]


# ---------------------------------------------------------------------------
# Pivot
# ---------------------------------------------------------------------------

def test_pivot_average_zero_fills_missing_cells(two_scenario_observations):
    table = pivot_table(two_scenario_observations, "category", "scenario")

    assert list(table.index) == ["Fill Rate", "Total Demand"]
    assert list(table.columns) == ["BASE", "S1"]
    assert table.loc["Fill Rate", "BASE"] == 85.0
    assert table.loc["Fill Rate", "S1"] == 70.0
    assert table.loc["Total Demand", "S1"] == 0


def test_pivot_count(two_scenario_observations):
    table = pivot_table(two_scenario_observations, "category", "scenario", aggregation="count")
    assert table.loc["Fill Rate", "BASE"] == 2
    assert table.loc["Total Demand", "BASE"] == 1
    assert table.loc["Total Demand", "S1"] == 0


@pytest.mark.parametrize("aggregation, expected", [("sum", 180.0), ("min", 80.0), ("max", 100.0)])
def test_pivot_week_by_scenario(two_scenario_observations, aggregation, expected):
    table = pivot_table(two_scenario_observations, "week", "scenario", aggregation=aggregation)
    assert table.loc["1", "BASE"] == expected
    assert table.loc["2", "S1"] == 0


def test_pivot_same_dimension_fills_diagonal(two_scenario_observations):
    table = pivot_table(two_scenario_observations, "scenario", "scenario", aggregation="count")
    assert table.loc["BASE", "BASE"] == 3
    assert table.loc["S1", "S1"] == 1
    assert table.loc["BASE", "S1"] == 0


@pytest.mark.parametrize("kwargs", [
    {"row_dim": "plant", "col_dim": "scenario"},
    {"row_dim": "category", "col_dim": "value"},
    {"row_dim": "category", "col_dim": "scenario", "aggregation": "median"},
    {"row_dim": "category", "col_dim": "scenario", "value_field": "week"},
])
def test_pivot_rejects_unknown_options(two_scenario_observations, kwargs):
    with pytest.raises(ValueError):
        pivot_table(two_scenario_observations, **kwargs)


def test_pivot_of_nothing_is_empty():
    assert pivot_table([], "category", "scenario").empty


# ---------------------------------------------------------------------------
# Slicing and export
# ---------------------------------------------------------------------------

def test_filter_by_each_field(two_scenario_observations):
    obs = two_scenario_observations

    assert len(filter_observations(obs)) == 4
    assert {o.category for o in filter_observations(obs, categories=["Fill Rate"])} == {"Fill Rate"}
    assert [o.value for o in filter_observations(obs, scenarios=["S1"])] == [70.0]
    assert [o.value for o in filter_observations(obs, weeks=["2"])] == [90.0]
    assert [o.value for o in filter_observations(obs, value_min=75, value_max=95)] == [80.0, 90.0]
    assert [o.category for o in filter_observations(obs, search="DEMAND")] == ["Total Demand"]


def test_saved_view(two_scenario_observations):
    result = apply_saved_view(two_scenario_observations, SAVED_VIEWS["High Fill Rate"])
    assert [(o.scenario, o.week, o.value) for o in result] == [("BASE", "2", 90.0)]


def test_export_csv(two_scenario_observations):
    lines = export_observations_csv(two_scenario_observations).splitlines()
    assert lines[0] == "category,scenario,week,value"
    assert lines[1] == "Fill Rate,BASE,1,80.0"
    assert len(lines) == 5


def test_group_categories():
    groups = group_categories(["Fill Rate", "Total Demand", "Mystery", "Fill Rate"])
    assert groups == {
        "Demand": ["Total Demand"],
        "Performance": ["Fill Rate"],
        "Other": ["Mystery"],
    }


def test_pivot_counts_are_integers(two_scenario_observations):
    table = pivot_table(two_scenario_observations, "category", "scenario", aggregation="count")
    assert all(dtype == "int64" for dtype in table.dtypes)
    assert table.loc["Total Demand", "S1"] == 0

    diagonal = pivot_table(two_scenario_observations, "week", "week", aggregation="count")
    assert all(dtype == "int64" for dtype in diagonal.dtypes)
    assert diagonal.loc["1", "1"] == 3
