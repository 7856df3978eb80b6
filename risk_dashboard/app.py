"""
Financial Risk Dashboard - Main Page
====================================

The single page of the dashboard.  Layout (top to bottom):

    1. **Sankey** (full width) - Education Level -> Employment Status ->
       Loan Purpose -> Payment History -> Risk Rating, with node highlight
       toggles underneath.
    2. **Two-column body**:
       - *Left*  : Parallel-coordinates plot with the clickable Risk Rating
                   legend.  Clicking a legend entry toggles that rating in the
                   shared selection.
       - *Right* : Sunburst (rating -> marital status -> gender), dimmed
                   outside the shared selection.

Shared state
------------
``selected_risk_ratings`` is owned by this page (via
``risk_dashboard.utils.selection``) and passed *down* to the parallel
coordinates and sunburst renderers.  Only the legend callback writes it.

Data loading
------------
Each panel loads the CSV on its own through the cached ``load_risk_data``.
If the load fails, that panel logs the error and shows a placeholder while
the other panels still render.

Usage:
    streamlit run dashboard.py           # source checkout
    streamlit run risk_dashboard/app.py  # same page, used by an installed run.py
"""

import logging

import streamlit as st

from risk_dashboard.core.transforms import (
    build_sankey_graph, build_numeric_records, build_risk_hierarchy,
)
from risk_dashboard.utils.data_loader import (
    load_risk_data, get_default_file_path, DataLoadError,
)
from risk_dashboard.utils.charts import (
    chart_sankey, chart_parallel_coordinates, chart_sunburst,
)
from risk_dashboard.utils.selection import (
    init_session_state, get_selected_ratings, get_sankey_highlights,
    sync_data_source,
    render_risk_legend, render_sankey_controls,
)
from risk_dashboard.utils.styles import inject_css, PLOTLY_CONFIG

logger = logging.getLogger(__name__)

# Each chart gets half the viewport height on a typical laptop screen.
CHART_HEIGHT = 450


def _load_for_chart(chart_name: str, source):
    """Load the CSV for one chart; on failure log and return None."""
    try:
        return load_risk_data(source)
    except DataLoadError as e:
        logger.error(f"[{chart_name}] Error loading CSV: {e}", exc_info=True)
        return None


def _empty_panel(chart_name: str):
    st.info(f"{chart_name}: no data available.")


def _resolve_source():
    """Uploaded file bytes if the user supplied one, else the default path."""
    with st.sidebar:
        st.markdown("### Financial Risk Dashboard")
        uploaded = st.file_uploader("Risk dataset (CSV)", type=['csv'])
    if uploaded is not None:
        return uploaded.getvalue()

    default_path = get_default_file_path()
    return str(default_path) if default_path else None


def render_sankey_panel(source):
    df = _load_for_chart('Sankey', source)
    if df is None:
        _empty_panel('Sankey')
        return

    graph = build_sankey_graph(df)
    if graph.is_empty():
        _empty_panel('Sankey')
        return

    highlights = get_sankey_highlights()
    st.plotly_chart(chart_sankey(graph, highlights, height=CHART_HEIGHT),
                    use_container_width=True, config=PLOTLY_CONFIG, key='sankey_chart')
    render_sankey_controls(graph, highlights)


def render_parallel_panel(source, selected):
    df = _load_for_chart('Parallel Coordinates', source)
    if df is None:
        _empty_panel('Parallel Coordinates')
        return

    records = build_numeric_records(df)
    if records.empty:
        _empty_panel('Parallel Coordinates')
        return

    st.plotly_chart(chart_parallel_coordinates(records, selected, height=CHART_HEIGHT),
                    use_container_width=True, config=PLOTLY_CONFIG, key='parallel_chart')
    render_risk_legend(selected)


def render_sunburst_panel(source, selected):
    df = _load_for_chart('Sunburst', source)
    if df is None:
        _empty_panel('Sunburst')
        return

    tree = build_risk_hierarchy(df)
    if not tree.children:
        _empty_panel('Sunburst')
        return

    st.plotly_chart(chart_sunburst(tree, selected, height=CHART_HEIGHT),
                    use_container_width=True, config=PLOTLY_CONFIG, key='sunburst_chart')


def main():
    """Render the whole page.  Streamlit calls this on every rerun."""
    st.set_page_config(
        page_title="Financial Risk Assessment",
        page_icon="📊",
        layout="wide",
    )
    inject_css()
    init_session_state()

    source = _resolve_source()
    if source is None:
        st.error("financial_risk.csv not found. Upload a CSV in the sidebar or set RISK_DATA_FILE.")
        st.stop()
    sync_data_source(source)

    render_sankey_panel(source)

    # Read once per rerun so both lower panels see the same selection.
    selected = get_selected_ratings()
    left, right = st.columns(2)
    with left:
        render_parallel_panel(source, selected)
    with right:
        render_sunburst_panel(source, selected)


if __name__ == "__main__":
    main()
