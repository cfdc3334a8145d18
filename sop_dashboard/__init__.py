"""
Detroit Cathode Manufacturing — S&OP Scenario Dashboard

Analytics backend for turning spreadsheet-exported planning tables (one
per planning scenario) into normalized weekly observations, KPIs and
pivot tables for side-by-side scenario comparison.

To load a scenario:
    loaders.parse_planning_export(text, "S1") returns a ParseResult; add it
    to a session.ScenarioStore. Loading the same scenario again replaces it.

To connect to Streamlit:
    Call kpis.calculate_kpis(store.observations) and pass the result to
    dashboard.get_kpi_cards() for cards, transforms.transform_for_chart()
    for line charts and transforms.pivot_table() for the pivot view.

To add new KPIs:
    Add a KPIDefinition to config.KPI_DEFINITIONS naming the source
    category, aggregation, display format and sign convention.
"""
