"""
Financial Risk Dashboard - Styles & Theme Configuration
=======================================================

This module is the SINGLE SOURCE OF TRUTH for every color and layout
constant used by the dashboard's charts.  Nothing in the chart builders
hard-codes a color; it all comes from here.

Risk Rating Palette
-------------------
    Rating   Color    Where it appears
    -------  -------  ------------------------------------------------
    Low      green    parallel-coordinates lines, legend, sunburst ring
    Medium   blue     parallel-coordinates lines, legend, sunburst ring
    High     red      parallel-coordinates lines, legend, sunburst ring

Any rating outside these three (dirty data) falls back to ``FALLBACK_COLOR``.

Sankey Highlighting
-------------------
Each Sankey stage may highlight up to four nodes at once.  The colors are
handed out from ``HIGHLIGHT_COLOR_POOL`` in order; once the pool is used up
in a stage, further selections in that stage get ``DEFAULT_LINK_COLOR``.

Module Contents at a Glance
----------------------------
- ``RISK_COLORS`` / ``risk_color()`` -- rating -> hex color
- ``HIGHLIGHT_COLOR_POOL`` / node and link defaults -- Sankey palette
- ``to_rgba()`` -- hex color + alpha -> Plotly ``rgba(...)`` string
- ``get_plotly_theme()`` -- Plotly layout defaults (white background)
- ``inject_css()`` -- page-level CSS for the legend toggles
"""

import streamlit as st
from plotly.colors import hex_to_rgb

# ============================================================================
# RISK RATING COLORS
# ============================================================================

# Hex equivalents of the CSS named colors green / blue / red, so they can be
# combined with an alpha channel in to_rgba().
RISK_COLORS = {
    'Low':    '#008000',   # green
    'Medium': '#0000ff',   # blue
    'High':   '#ff0000',   # red
}

# Unknown ratings (typos, new categories) still get drawn, just in grey.
FALLBACK_COLOR = '#d3d3d3'   # lightgrey

# Center of the sunburst.
ROOT_COLOR = '#ffffff'


def risk_color(rating: str) -> str:
    """Return the hex color for a risk rating, or the grey fallback."""
    return RISK_COLORS.get(rating, FALLBACK_COLOR)


# ============================================================================
# SANKEY PALETTE
# ============================================================================

# Four distinct highlight colors, handed out per stage in this order.
HIGHLIGHT_COLOR_POOL = ['#FF5733', '#33FF57', '#A020F0', '#FFD700']

DEFAULT_NODE_COLOR = '#4682b4'   # steelblue
DEFAULT_LINK_COLOR = '#cccccc'
NODE_BORDER_COLOR = '#000000'

# Link opacity levels:
#   nothing highlighted anywhere -> LINK_OPACITY_IDLE
#   target node highlighted      -> LINK_OPACITY_ACTIVE
#   target node not highlighted  -> LINK_OPACITY_MUTED
LINK_OPACITY_IDLE = 0.8
LINK_OPACITY_ACTIVE = 0.6
LINK_OPACITY_MUTED = 0.3

# ============================================================================
# SUNBURST / PARALLEL COORDINATES OPACITY
# ============================================================================

SUNBURST_FILL_OPACITY = 0.6     # base fill for every segment
SUNBURST_DIM_OPACITY = 0.3      # segments outside the selected ratings
SUNBURST_LABEL_DIM_OPACITY = 0.01
LEGEND_DIM_OPACITY = 0.4        # unselected legend swatches
PARALLEL_LINE_OPACITY = 0.8


def to_rgba(color: str, alpha: float) -> str:
    """Convert a ``#rrggbb`` color into a Plotly ``rgba(r,g,b,a)`` string.

    Plotly traces such as Sankey links and Sunburst segments have no
    per-element opacity property, so opacity is baked into the color.
    """
    r, g, b = hex_to_rgb(color)
    return f'rgba({r},{g},{b},{round(alpha, 3)})'


# ============================================================================
# PLOTLY THEME
# ============================================================================

def get_plotly_theme() -> dict:
    """Return the base Plotly layout shared by all three charts.

    White paper, black sans-serif text, and ``autosize`` so the figure
    follows the width of its Streamlit container.

    Returns
    -------
    dict
        Plotly layout keyword arguments for ``fig.update_layout(**...)``.
    """
    return dict(
        paper_bgcolor='#ffffff',
        plot_bgcolor='#ffffff',
        font=dict(family='sans-serif', color='#000000', size=10),
        autosize=True,
    )


# Per-chart margins (px).
SANKEY_MARGIN = dict(t=40, r=80, b=40, l=60)
PARALLEL_MARGIN = dict(t=30, r=20, b=40, l=60)
SUNBURST_MARGIN = dict(t=0, r=0, b=30, l=0)

# Streamlit re-renders a figure whenever its container changes size; the
# Plotly config below lets the browser side do the same between reruns.
PLOTLY_CONFIG = {'responsive': True, 'displaylogo': False}


# ============================================================================
# CSS INJECTION
# ============================================================================

def inject_css():
    """Inject the dashboard stylesheet into the Streamlit page.

    Only the page padding and the legend toggles need custom styling; the
    charts themselves are styled through the Plotly layout.
    """
    st.markdown("""
<style>
    /* Tighter page padding so the Sankey can use the full width */
    .block-container { padding: 1rem 1rem 1rem 1rem; max-width: 100%; }

    /* Legend swatch rendered next to each risk-rating toggle */
    .legend-swatch {
        display: inline-block;
        width: 15px;
        height: 15px;
        margin-right: 6px;
        vertical-align: middle;
    }
    .legend-title { font-size: 1rem; font-weight: 700; }
</style>
""", unsafe_allow_html=True)


def legend_swatch_html(rating: str, selected: bool) -> str:
    """HTML swatch for one legend entry; dimmed when the rating is not selected."""
    opacity = 1 if selected else LEGEND_DIM_OPACITY
    return (
        f'<span class="legend-swatch" '
        f'style="background:{risk_color(rating)}; opacity:{opacity};"></span>'
    )
