"""
S&OP Scenario Dashboard — Interactive Dashboard

Run with:  streamlit run app.py
"""

import sys
from pathlib import Path

import streamlit as st
import plotly.graph_objects as go
import pandas as pd

sys.path.insert(0, str(Path(__file__).resolve().parent))

from sop_dashboard.config import (
    BASE_SCENARIO,
    COMPARISON_SCENARIO,
    KPI_DEFINITIONS,
    PIVOT_AGGREGATIONS,
    PIVOT_DIMENSIONS,
    PLANT_NAME,
    RATIO_KPI_DEFINITIONS,
    SAVED_VIEWS,
    SCENARIOS,
)
from sop_dashboard.loaders import parse_planning_export, safe_float
from sop_dashboard.session import ScenarioStore
from sop_dashboard.simulator import generate_planning_export
from sop_dashboard.kpis import calculate_kpis, format_value
from sop_dashboard.transforms import (
    apply_saved_view,
    build_fact_observations,
    export_observations_csv,
    filter_observations,
    group_categories,
    pivot_table,
    transform_alerts_for_chart,
    transform_for_chart,
)
from sop_dashboard.dashboard import (
    generate_insights,
    get_available_scenarios,
    get_data_summary,
    get_kpi_cards,
    get_scenario_comparison,
    load_upload,
    scenario_color,
)

# ---------------------------------------------------------------------------
# Page config
# ---------------------------------------------------------------------------
st.set_page_config(
    page_title="S&OP Planning Dashboard",
    page_icon="📈",
    layout="wide",
    initial_sidebar_state="expanded",
)

RAG_COLORS = {
    "green": "#2ecc71",
    "red": "#e74c3c",
    "grey": "#95a5a6",
}

INSIGHT_STYLES = {
    "positive": st.success,
    "negative": st.error,
    "warning": st.warning,
    "info": st.info,
}


# ---------------------------------------------------------------------------
# Session state
# ---------------------------------------------------------------------------
if "store" not in st.session_state:
    st.session_state["store"] = ScenarioStore()
if "upload_errors" not in st.session_state:
    st.session_state["upload_errors"] = {}

store: ScenarioStore = st.session_state["store"]


def handle_upload(scenario_name: str, uploaded) -> None:
    """Load an uploaded export once; the uploader returns it on every rerun."""
    if not store.claim_upload(scenario_name, uploaded.file_id):
        return

    errors = st.session_state["upload_errors"]
    error = load_upload(store, scenario_name, uploaded.name, uploaded.getvalue())
    if error:
        errors[scenario_name] = error
        return

    errors.pop(scenario_name, None)
    # Sidebar scenarios and KPIs were computed before this load
    st.rerun()


# ---------------------------------------------------------------------------
# Sidebar
# ---------------------------------------------------------------------------
st.sidebar.title(PLANT_NAME)
st.sidebar.markdown("S&OP Planning Dashboard")
st.sidebar.divider()

page = st.sidebar.radio(
    "Navigate",
    ["Data Upload", "KPI Dashboard", "Time Series", "Scenario Comparison", "Pivot Table", "Data Slicer"],
)

available = get_available_scenarios(store)
selected_scenarios = st.sidebar.multiselect("Scenarios", available, default=available)

st.sidebar.divider()
if st.sidebar.button("Load simulated data"):
    for scenario in SCENARIOS:
        store.load(parse_planning_export(generate_planning_export(scenario.name), scenario.name))
    st.rerun()

st.sidebar.caption("Scenarios: BASE plan and alternatives S1-S4")

observations = [obs for obs in store.observations if obs.scenario in selected_scenarios]
kpis = calculate_kpis(observations)


# ---------------------------------------------------------------------------
# Helper: KPI card
# ---------------------------------------------------------------------------
def kpi_card(card: dict, show_comparison: bool):
    color = RAG_COLORS.get(card["rag"], RAG_COLORS["grey"])
    rows = "".join(
        f"<div style='display:flex; justify-content:space-between; font-size:14px;'>"
        f"<span><span style='display:inline-block; width:10px; height:10px; border-radius:50%; "
        f"background:{v['color']}; margin-right:6px;'></span>{v['scenario']}</span>"
        f"<b>{v['display']}</b></div>"
        for v in card["values"]
    )
    change = ""
    if show_comparison and card["change_pct"] is not None:
        change = (
            f"<div style='font-size:12px; margin-top:6px; border-top:1px solid #eee; padding-top:4px;'>"
            f"Change ({BASE_SCENARIO} → {COMPARISON_SCENARIO}): "
            f"<span style='color:{color}; font-weight:600;'>{card['change_pct']:+.1f}%</span></div>"
        )

    st.markdown(
        f"""
        <div style="border-left: 4px solid {color}; border-radius: 8px;
                    padding: 12px; margin-bottom: 8px; background: {color}11;">
            <div style="font-size: 13px; color: #888; font-weight: 600; text-transform: uppercase;">{card['name']}</div>
            <div style="font-size: 11px; color: #aaa; margin-bottom: 6px;">{card['description']}</div>
            {rows}
            {change}
        </div>
        """,
        unsafe_allow_html=True,
    )


def line_chart(series: list[dict], scenario_names: list[str], title: str):
    fig = go.Figure()
    for name in scenario_names:
        fig.add_trace(go.Scatter(
            x=[row["week"] for row in series],
            y=[row.get(name) for row in series],
            name=name,
            mode="lines+markers",
            line=dict(color=scenario_color(name), width=2),
            marker=dict(size=6),
        ))
    fig.update_layout(
        title=title,
        xaxis_title="Week",
        height=420,
        plot_bgcolor="rgba(0,0,0,0)",
    )
    st.plotly_chart(fig, use_container_width=True)


def grouped_bar_chart(rows: list[dict], scenario_names: list[str], title: str = ""):
    fig = go.Figure()
    for name in scenario_names:
        fig.add_trace(go.Bar(
            x=[row["name"] for row in rows],
            y=[row.get(name, 0) for row in rows],
            name=name,
            marker_color=scenario_color(name),
        ))
    fig.update_layout(
        title=title,
        barmode="group",
        height=350,
        plot_bgcolor="rgba(0,0,0,0)",
    )
    st.plotly_chart(fig, use_container_width=True)


# ===========================================================================
# PAGE: Data Upload
# ===========================================================================
if page == "Data Upload":
    st.title("Data Upload")
    st.caption("Upload one planning export per scenario. Re-uploading a scenario replaces its data.")

    cols = st.columns(len(SCENARIOS))
    for i, scenario in enumerate(SCENARIOS):
        with cols[i]:
            st.markdown(f"**{scenario.name}**")
            st.caption(scenario.description)
            uploaded = st.file_uploader(
                "Export file",
                type=["csv", "txt", "xlsx"],
                key=f"upload-{scenario.name}",
            )
            if uploaded is not None:
                handle_upload(scenario.name, uploaded)
            if scenario.name in st.session_state["upload_errors"]:
                st.error(st.session_state["upload_errors"][scenario.name])
            elif scenario.name in store:
                st.success("Loaded")

    summary = get_data_summary(store)
    if summary["observation_count"]:
        st.divider()
        st.subheader("Data Summary")
        col1, col2, col3 = st.columns(3)
        with col1:
            st.metric("Loaded Scenarios", len(summary["loaded_scenarios"]))
        with col2:
            st.metric("Time Series Data", f"{summary['observation_count']:,} points")
        with col3:
            st.metric("Alerts", summary["alert_count"])

        st.markdown("**Categories**")
        for group, members in group_categories(summary["categories"]).items():
            st.markdown(f"- *{group}*: {', '.join(members)}")


# ===========================================================================
# PAGE: KPI Dashboard
# ===========================================================================
elif page == "KPI Dashboard":
    st.title("Key Performance Indicators")

    if not observations or not selected_scenarios:
        st.info(
            "No KPI data available. Please upload data files."
            if not observations else
            "No scenarios selected. Please select at least one scenario."
        )
    else:
        show_comparison = BASE_SCENARIO in selected_scenarios and COMPARISON_SCENARIO in selected_scenarios
        cards = get_kpi_cards(kpis, selected_scenarios)
        if not cards:
            st.info("No KPI data available for the selected scenarios.")

        cols = st.columns(4)
        for i, card in enumerate(cards):
            with cols[i % 4]:
                kpi_card(card, show_comparison)

        st.divider()
        st.subheader("Alerts by Type")
        alerts = [a for a in store.alerts if a.scenario in selected_scenarios]
        alert_rows = transform_alerts_for_chart(alerts)
        if alert_rows:
            grouped_bar_chart(alert_rows, selected_scenarios)
        else:
            st.info("No alert rows found in the loaded exports.")

        st.divider()
        st.subheader("Data Insights")
        for insight in generate_insights(observations, kpis):
            INSIGHT_STYLES.get(insight["type"], st.info)(
                f"**{insight['title']}** — {insight['description']}"
            )


# ===========================================================================
# PAGE: Time Series
# ===========================================================================
elif page == "Time Series":
    st.title("Weekly Time Series")

    categories = list(dict.fromkeys(obs.category for obs in observations))
    if not categories:
        st.warning("No data available for the selected category and scenarios.")
    else:
        selected_category = st.selectbox("Category", categories)
        series = transform_for_chart(observations, selected_category)
        line_chart(series, selected_scenarios, selected_category)

        st.dataframe(pd.DataFrame(series), use_container_width=True, hide_index=True)


# ===========================================================================
# PAGE: Scenario Comparison
# ===========================================================================
elif page == "Scenario Comparison":
    st.title("Scenario Comparison")

    metric_names = [d.name for d in KPI_DEFINITIONS + RATIO_KPI_DEFINITIONS if kpis.get(d.name)]
    if not metric_names:
        st.info("No data available.")
    else:
        selected_metrics = st.multiselect("Metrics", metric_names, default=metric_names[:3])
        rows = get_scenario_comparison(kpis, selected_scenarios, selected_metrics)
        grouped_bar_chart(rows, selected_scenarios, "KPI values by scenario")

        table = pd.DataFrame(kpis).T.reindex(columns=selected_scenarios)
        st.dataframe(table, use_container_width=True)


# ===========================================================================
# PAGE: Pivot Table
# ===========================================================================
elif page == "Pivot Table":
    st.title("Pivot Table Analysis")

    if not observations:
        st.info("No data available for analysis.")
    else:
        col1, col2, col3 = st.columns(3)
        with col1:
            row_dim = st.selectbox("Row Dimension", PIVOT_DIMENSIONS, index=0)
        with col2:
            col_dim = st.selectbox("Column Dimension", PIVOT_DIMENSIONS, index=1)
        with col3:
            aggregation = st.selectbox("Aggregation", PIVOT_AGGREGATIONS, index=0)

        table = pivot_table(observations, row_dim, col_dim, "value", aggregation)
        st.dataframe(table.map(format_value), use_container_width=True)


# ===========================================================================
# PAGE: Data Slicer
# ===========================================================================
elif page == "Data Slicer":
    st.title("Data Slicer")

    if not observations:
        st.info("No data available.")
    else:
        view_name = st.selectbox("Saved view", ["(none)"] + list(SAVED_VIEWS))
        if view_name != "(none)":
            sliced = apply_saved_view(observations, SAVED_VIEWS[view_name])
        else:
            col1, col2 = st.columns(2)
            with col1:
                categories = st.multiselect("Categories", store.categories)
                weeks = st.multiselect("Weeks", store.weeks)
                search = st.text_input("Search")
            with col2:
                value_min = st.text_input("Minimum value")
                value_max = st.text_input("Maximum value")

            sliced = filter_observations(
                observations,
                categories=categories,
                weeks=weeks,
                value_min=safe_float(value_min),
                value_max=safe_float(value_max),
                search=search,
            )

        st.caption(f"{len(sliced):,} of {len(observations):,} data points")
        st.dataframe(
            build_fact_observations(sliced).drop(columns=["week_ordinal"]),
            use_container_width=True,
            hide_index=True,
        )
        st.download_button(
            "Download CSV",
            export_observations_csv(sliced),
            file_name="filtered_data.csv",
            mime="text/csv",
        )
