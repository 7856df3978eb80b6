"""
Financial Risk Dashboard - Shared Selection State
=================================================

This module owns the two pieces of interactive state on the page and the
widgets that change them.

Architecture
------------
Rather than letting each chart keep its own copy of what is selected, the
state lives in ``st.session_state`` under one key per concern and is only
ever replaced through the ``on_click`` callbacks defined here.  Charts
receive the current value as a plain argument and never write it back.

    selected_risk_ratings   list[str]
        Ratings picked in the parallel-coordinates legend, in click order.
        Empty means "no filter": every chart shows everything.
        Read by the parallel-coordinates plot (line filter) and the
        sunburst (segment dimming).

    sankey_highlights       dict[stage, dict[node_id, color]]
        Sankey nodes highlighted by the user, per stage, with the color each
        one was given.  Read only by the Sankey.

    data_source             str
        Identity of the CSV the highlights were made on; a new upload or
        path clears the highlights (see ``sync_data_source``).

The pure functions (``toggle_risk_rating``, ``toggle_sankey_node`` and
friends) hold the actual rules and are what the tests exercise; the
``render_*`` functions are thin Streamlit wrappers around them.
"""

import hashlib
import logging
from typing import Dict, List

import pandas as pd
import streamlit as st

from risk_dashboard.core.config import SANKEY_STAGES, RISK_LEVELS, RATING_FIELD
from risk_dashboard.models.data_models import SankeyGraph, SankeyNode
from risk_dashboard.utils.styles import (
    HIGHLIGHT_COLOR_POOL, DEFAULT_LINK_COLOR, legend_swatch_html,
)

logger = logging.getLogger(__name__)

RISK_SELECTION_KEY = 'selected_risk_ratings'
SANKEY_SELECTION_KEY = 'sankey_highlights'
DATA_SOURCE_KEY = 'data_source'

Highlights = Dict[str, Dict[int, str]]


# ============================================================================
# RISK RATING FILTER (pure)
# ============================================================================

def toggle_risk_rating(selected: List[str], rating: str) -> List[str]:
    """Return a new selection with ``rating`` removed if present, else appended."""
    if rating in selected:
        return [r for r in selected if r != rating]
    return [*selected, rating]


def filter_records_by_risk(records: pd.DataFrame, selected: List[str]) -> pd.DataFrame:
    """Records whose rating is selected, or all records when nothing is."""
    if not selected:
        return records
    return records[records[RATING_FIELD].isin(selected)]


def rating_is_active(rating: str, selected: List[str]) -> bool:
    """True when ``rating`` should be drawn at full strength."""
    return not selected or rating in selected


# ============================================================================
# SANKEY HIGHLIGHTS (pure)
# ============================================================================

def empty_highlights() -> Highlights:
    return {stage: {} for stage in SANKEY_STAGES}


def toggle_sankey_node(highlights: Highlights, node: SankeyNode) -> Highlights:
    """Return new highlights with ``node`` toggled within its own stage.

    Deselecting frees the node's color.  Selecting takes the first pool
    color not already used in that stage; once all four are taken the node
    gets the default link color.  Nodes from an unknown stage are ignored.
    """
    if node.category not in highlights:
        return highlights

    updated = {stage: dict(colors) for stage, colors in highlights.items()}
    stage_colors = updated[node.category]

    if node.id in stage_colors:
        del stage_colors[node.id]
    else:
        used = set(stage_colors.values())
        available = [c for c in HIGHLIGHT_COLOR_POOL if c not in used]
        stage_colors[node.id] = available[0] if available else DEFAULT_LINK_COLOR
    return updated


def any_highlighted(highlights: Highlights) -> bool:
    return any(colors for colors in highlights.values())


def highlight_color(highlights: Highlights, node: SankeyNode) -> str | None:
    """Color assigned to ``node``, or None when it is not highlighted."""
    return highlights.get(node.category, {}).get(node.id)


# ============================================================================
# SESSION STATE
# ============================================================================

def init_session_state():
    """Create the selection keys on first run; later reruns keep user choices."""
    defaults = {
        RISK_SELECTION_KEY: [],
        SANKEY_SELECTION_KEY: empty_highlights(),
    }
    for key, default in defaults.items():
        if key not in st.session_state:
            st.session_state[key] = default


def get_selected_ratings() -> List[str]:
    return list(st.session_state.get(RISK_SELECTION_KEY, []))


def get_sankey_highlights() -> Highlights:
    return st.session_state.get(SANKEY_SELECTION_KEY) or empty_highlights()


def set_selected_ratings(ratings: List[str]):
    """The single write path for the shared risk-rating filter."""
    logger.debug(f"Risk rating selection -> {ratings}")
    st.session_state[RISK_SELECTION_KEY] = list(ratings)


def _on_rating_click(rating: str):
    set_selected_ratings(toggle_risk_rating(get_selected_ratings(), rating))


def _on_node_click(node: SankeyNode):
    st.session_state[SANKEY_SELECTION_KEY] = toggle_sankey_node(get_sankey_highlights(), node)


def _on_clear_highlights():
    st.session_state[SANKEY_SELECTION_KEY] = empty_highlights()


def source_token(source) -> str:
    """Short identity for a data source: the path, or a digest of uploaded bytes."""
    if isinstance(source, bytes):
        return 'upload:' + hashlib.sha1(source).hexdigest()
    return f'path:{source}'


def sync_data_source(source, state=None) -> bool:
    """Record the current source; clear Sankey highlights when it changed.

    Highlights are keyed by node id, and ids are only meaningful for the
    file they were built from.  Returns True when highlights were reset.
    """
    state = st.session_state if state is None else state
    token = source_token(source)
    previous = state.get(DATA_SOURCE_KEY)
    state[DATA_SOURCE_KEY] = token
    if previous is None or previous == token:
        return False
    logger.info("Data source changed; clearing Sankey highlights")
    state[SANKEY_SELECTION_KEY] = empty_highlights()
    return True


# ============================================================================
# WIDGETS
# ============================================================================

def render_risk_legend(selected: List[str]):
    """Draw the clickable "Risk Rating" legend under the parallel-coordinates plot.

    Each entry is a color swatch plus a button; clicking the button toggles
    that rating in the shared selection.  Selected entries use the primary
    button style and a solid swatch, the rest are dimmed.
    """
    st.markdown('<span class="legend-title">Risk Rating</span>', unsafe_allow_html=True)
    cols = st.columns(len(RISK_LEVELS))
    for col, rating in zip(cols, RISK_LEVELS):
        is_selected = rating in selected
        with col:
            st.markdown(legend_swatch_html(rating, is_selected), unsafe_allow_html=True)
            st.button(
                rating,
                key=f'legend_{rating}',
                type='primary' if is_selected else 'secondary',
                on_click=_on_rating_click,
                args=(rating,),
                use_container_width=True,
            )


def render_sankey_controls(graph: SankeyGraph, highlights: Highlights):
    """One column of node toggles per Sankey stage, plus a reset button."""
    with st.expander("Highlight Sankey nodes", expanded=False):
        cols = st.columns(len(SANKEY_STAGES))
        for col, stage in zip(cols, SANKEY_STAGES):
            with col:
                st.caption(stage)
                for node in graph.nodes_in(stage):
                    color = highlight_color(highlights, node)
                    st.button(
                        f"● {node.name}" if color else node.name,
                        key=f'sankey_node_{node.id}',
                        type='primary' if color else 'secondary',
                        on_click=_on_node_click,
                        args=(node,),
                        use_container_width=True,
                    )
        st.button("Clear highlights", key='sankey_clear', on_click=_on_clear_highlights)
