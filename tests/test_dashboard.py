import io

import openpyxl
import pytest

from sop_dashboard.config import DEFAULT_SCENARIO_COLOR
from sop_dashboard.dashboard import (
    generate_insights,
    get_available_scenarios,
    get_data_summary,
    get_kpi_cards,
    get_scenario_comparison,
    load_upload,
    scenario_color,
    total_alerts,
)
from sop_dashboard.models import AlertRecord, AlertType, ParseResult
from sop_dashboard.session import ScenarioStore

from conftest import make_observations


@pytest.fixture
def kpis():
    return {
        "Fill Rate": {"BASE": 80.0, "S1": 85.0, "S4": 90.0},
        "Inventory Level": {"BASE": 1000.0, "S4": 1300.0},
        "Ending Inventory": {"BASE": 100.0},
        "Production Orders": {"BASE": 100.0, "S4": 95.0},
        "Capacity Utilization": {"BASE": 80.0, "S4": 92.0},
        "Peak Demand": {},
    }


def _card(cards, name):
    return next(card for card in cards if card["name"] == name)


def test_scenario_color():
    assert scenario_color("BASE") == "#8884d8"
    assert scenario_color("S9") == DEFAULT_SCENARIO_COLOR


def test_kpi_cards_with_comparison(kpis):
    cards = get_kpi_cards(kpis, ["BASE", "S4"])

    fill = _card(cards, "Fill Rate")
    assert fill["change_pct"] == pytest.approx(12.5)
    assert fill["rag"] == "green"
    assert [v["display"] for v in fill["values"]] == ["80.0%", "90.0%"]
    assert [v["scenario"] for v in fill["values"]] == ["BASE", "S4"]

    assert _card(cards, "Inventory Level")["rag"] == "red"

    ending = _card(cards, "Ending Inventory")
    assert ending["change_pct"] is None
    assert ending["rag"] == "grey"


def test_kpi_cards_skip_kpis_without_selected_data(kpis):
    names = [card["name"] for card in get_kpi_cards(kpis, ["BASE", "S4"])]
    assert "Peak Demand" not in names
    assert "Supply vs Demand" not in names
    assert names[0] == "Fill Rate"


def test_kpi_cards_without_comparison_scenario(kpis):
    cards = get_kpi_cards(kpis, ["BASE", "S1"])
    assert all(card["change_pct"] is None for card in cards)
    assert all(card["rag"] == "grey" for card in cards)


def test_scenario_comparison_zero_fills(kpis):
    rows = get_scenario_comparison(kpis, ["BASE", "S2"], ["Fill Rate"])
    assert rows == [{"name": "Fill Rate", "BASE": 80.0, "S2": 0}]
    assert get_scenario_comparison({}, ["BASE"], ["Fill Rate"]) == []


def test_insights(kpis):
    obs = make_observations([("Fill Rate", 1, 80)]) + make_observations([("Fill Rate", 1, 90)], "S4")
    insights = generate_insights(obs, kpis)

    titles = [i["title"] for i in insights]
    assert titles == [
        "Fill Rate Improvement",
        "Increased Inventory",
        "Improved Capacity Utilization",
        "Data Overview",
    ]
    assert insights[0]["type"] == "positive"
    assert insights[1]["type"] == "warning"
    assert "2 data points across 2 scenarios and 1 metrics" in insights[-1]["description"]


def test_high_capacity_utilization_warning():
    obs = make_observations([("Capacity Utilization", 1, 95)])
    kpis = {"Capacity Utilization": {"BASE": 95.0, "S4": 96.0}}

    insights = generate_insights(obs, kpis)
    assert insights[0]["title"] == "High Capacity Utilization"
    assert insights[0]["scenarios"] == ["S4"]


def test_insights_need_data(kpis):
    assert generate_insights([], kpis) == []
    assert generate_insights(make_observations([("X", 1, 1)]), {}) == []


def test_store_summaries():
    store = ScenarioStore()
    store.load(ParseResult("S4", tuple(make_observations([("X", 1, 1)], "S4")),
                           (AlertRecord(AlertType.CRITICAL, 2, "S4"),)))
    store.load(ParseResult("X9", tuple(make_observations([("Y", 2, 1)], "X9"))))
    store.load(ParseResult("BASE", (), (AlertRecord(AlertType.CAPACITY, 3, "BASE"),
                                        AlertRecord(AlertType.CRITICAL, 1, "BASE"))))

    assert get_available_scenarios(store) == ["BASE", "S4", "X9"]
    assert total_alerts(store.alerts) == {"S4": 2, "BASE": 4}

    summary = get_data_summary(store)
    assert summary["loaded_scenarios"] == ["S4", "X9", "BASE"]
    assert summary["observation_count"] == 2
    assert summary["alert_count"] == 3
    assert summary["categories"] == ["X", "Y"]
    assert summary["weeks"] == ["1", "2"]


# ---------------------------------------------------------------------------
# Uploads
# ---------------------------------------------------------------------------

def test_load_upload_text(sample_export):
    store = ScenarioStore()
    error = load_upload(store, "S1", "S1.csv", sample_export.encode("utf-8-sig"))

    assert error is None
    assert store.scenario_names == ["S1"]
    assert len(store.get("S1").alerts) == 3


def test_load_upload_workbook():
    wb = openpyxl.Workbook()
    wb.active.append(["Week", 1, 2])
    wb.active.append(["Total Demand", 10, 20])
    buffer = io.BytesIO()
    wb.save(buffer)

    store = ScenarioStore()
    assert load_upload(store, "S2", "export.XLSX", buffer.getvalue()) is None
    assert [o.value for o in store.observations] == [10.0, 20.0]


def test_corrupt_workbook_upload_reports_error_and_keeps_data():
    store = ScenarioStore([ParseResult("BASE", tuple(make_observations([("X", 1, 1)])))])

    error = load_upload(store, "BASE", "BASE.xlsx", b"not a zip")

    assert error.startswith("Failed to parse file:")
    assert [o.value for o in store.observations] == [1.0]


@pytest.mark.parametrize("data, message", [
    (b"foo,bar\n", "Failed to parse file:"),
    (b"Week,1,2\n\n", "No data points were extracted"),
])
def test_unusable_text_upload(data, message):
    store = ScenarioStore()
    assert load_upload(store, "S3", "S3.csv", data).startswith(message)
    assert len(store) == 0
