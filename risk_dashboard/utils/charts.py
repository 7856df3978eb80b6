"""
Financial Risk Dashboard - Chart Library
========================================

This module is the sole charting back-end for the dashboard.  Every public
``chart_*`` function takes an already-reshaped dataset (see
``risk_dashboard.core.transforms``) plus the current selection state and
returns a ``plotly.graph_objects.Figure`` that the page renders with
``st.plotly_chart()``.  Nothing here reads session state or the CSV.

Charts
------
* ``chart_sankey``               -- five-stage flow, node highlighting
* ``chart_parallel_coordinates`` -- four numeric axes, lines colored by rating
* ``chart_sunburst``             -- rating -> marital status -> gender

Layout is delegated to Plotly: the Sankey trace computes node positions,
the Sunburst trace computes the partition, and Parcoords builds the axis
scales from the ``range`` we hand it.

Color mapping conventions
-------------------------
All colors come from ``risk_dashboard.utils.styles``.  Because Sankey links
and Sunburst segments have no per-element opacity, opacity is folded into
``rgba(...)`` colors via ``to_rgba()``.
"""

import logging
from typing import List, Optional

import pandas as pd
import plotly.graph_objects as go

from risk_dashboard.core.config import (
    SANKEY_STAGES, NUMERIC_FIELDS, RATING_FIELD, RISK_LEVELS,
    SANKEY_NODE_WIDTH, SANKEY_NODE_PADDING,
    SANKEY_TITLE, PARALLEL_TITLE, SUNBURST_TITLE,
)
from risk_dashboard.models.data_models import SankeyGraph, HierarchyNode
from risk_dashboard.utils.selection import (
    Highlights, empty_highlights, any_highlighted, highlight_color,
    filter_records_by_risk, rating_is_active,
)
from risk_dashboard.utils.styles import (
    get_plotly_theme, to_rgba, risk_color,
    DEFAULT_NODE_COLOR, DEFAULT_LINK_COLOR, NODE_BORDER_COLOR, ROOT_COLOR,
    LINK_OPACITY_IDLE, LINK_OPACITY_ACTIVE, LINK_OPACITY_MUTED,
    SUNBURST_FILL_OPACITY, SUNBURST_DIM_OPACITY, SUNBURST_LABEL_DIM_OPACITY,
    PARALLEL_LINE_OPACITY, SANKEY_MARGIN, PARALLEL_MARGIN, SUNBURST_MARGIN,
)

logger = logging.getLogger(__name__)


# ============================================================================
# SANKEY
# ============================================================================

def sankey_link_style(graph: SankeyGraph, highlights: Highlights):
    """Per-link ``(color, opacity)`` pairs for the current highlights.

    A link takes the color of its *target* node when that node is
    highlighted.  Opacity is uniform while nothing is highlighted; once
    anything is, links into highlighted nodes stand out and the rest fade.
    """
    nodes = {n.id: n for n in graph.nodes}
    active = any_highlighted(highlights)
    styles = []
    for link in graph.links:
        color = highlight_color(highlights, nodes[link.target])
        if not active:
            opacity = LINK_OPACITY_IDLE
        elif color:
            opacity = LINK_OPACITY_ACTIVE
        else:
            opacity = LINK_OPACITY_MUTED
        styles.append((color or DEFAULT_LINK_COLOR, opacity))
    return styles


def chart_sankey(graph: SankeyGraph, highlights: Optional[Highlights] = None,
                 height: int = 450) -> go.Figure:
    """Sankey diagram: Education -> Employment -> Loan Purpose -> Payment History -> Risk.

    Parameters
    ----------
    graph : SankeyGraph
        Output of ``build_sankey_graph``.
    highlights : dict, optional
        Stage -> {node_id: color}; see ``selection.toggle_sankey_node``.
    height : int
        Figure height in px; width follows the container.

    Returns
    -------
    go.Figure
    """
    highlights = highlights or empty_highlights()

    node_colors = [highlight_color(highlights, n) or DEFAULT_NODE_COLOR for n in graph.nodes]
    link_styles = sankey_link_style(graph, highlights)

    fig = go.Figure(go.Sankey(
        arrangement='snap',
        node=dict(
            pad=SANKEY_NODE_PADDING,
            thickness=SANKEY_NODE_WIDTH,
            label=[n.name for n in graph.nodes],
            color=node_colors,
            customdata=[n.category for n in graph.nodes],
            line=dict(color=NODE_BORDER_COLOR, width=1),
            hovertemplate='%{label}<br>%{value}<extra></extra>',
        ),
        link=dict(
            source=[l.source for l in graph.links],
            target=[l.target for l in graph.links],
            value=[l.value for l in graph.links],
            color=[to_rgba(c, a) for c, a in link_styles],
            hovertemplate='%{source.label} → %{target.label}<br>%{value}<extra></extra>',
        ),
        textfont=dict(color='#000000', size=10),
    ))

    # Stage names under each column, evenly spaced like the node columns.
    last = len(SANKEY_STAGES) - 1
    annotations = [
        dict(
            x=i / last, y=0, xref='paper', yref='paper',
            xanchor='center', yanchor='top', yshift=-8,
            text=f'<b>{stage}</b>', showarrow=False, font=dict(size=12),
        )
        for i, stage in enumerate(SANKEY_STAGES)
    ]

    fig.update_layout(**get_plotly_theme())
    fig.update_layout(
        title=dict(text=f'<b>{SANKEY_TITLE}</b>', x=0.5, xanchor='center', font=dict(size=16)),
        annotations=annotations,
        margin=SANKEY_MARGIN,
        height=height,
    )
    return fig


# ============================================================================
# PARALLEL COORDINATES
# ============================================================================

def _rating_order(ratings) -> List[str]:
    """Known ratings in legend order, then any others in first-seen order."""
    seen = list(dict.fromkeys(ratings))
    return [r for r in RISK_LEVELS if r in seen] + [r for r in seen if r not in RISK_LEVELS]


def _stepped_colorscale(colors: List[str]) -> list:
    """Plotly colorscale with one flat band per category.

    Category ``i`` of ``n`` is encoded as the integer ``i`` and the trace
    uses ``cmin=-0.5`` / ``cmax=n-0.5``, so every code lands in the middle
    of its own band.
    """
    n = len(colors)
    scale = []
    for i, color in enumerate(colors):
        scale.append([i / n, color])
        scale.append([(i + 1) / n, color])
    return scale


def chart_parallel_coordinates(records: pd.DataFrame, selected: Optional[List[str]] = None,
                               height: int = 450) -> go.Figure:
    """Parallel-coordinates plot of Income, CreditScore, LoanAmount, AssetsValue.

    Only records whose ``RiskRating`` is in ``selected`` are drawn (all of
    them when ``selected`` is empty), but every axis range is computed from
    the full ``records`` so axes do not jump when the filter changes.

    Parameters
    ----------
    records : pd.DataFrame
        Output of ``build_numeric_records``.
    selected : list of str, optional
        Active risk-rating filter.

    Returns
    -------
    go.Figure
    """
    selected = selected or []
    dims = list(NUMERIC_FIELDS.values())
    shown = filter_records_by_risk(records, selected)

    dimensions = []
    for dim in dims:
        axis = dict(label=dim, values=shown[dim].tolist())
        if not records.empty:
            axis['range'] = [float(records[dim].min()), float(records[dim].max())]
        dimensions.append(axis)

    order = _rating_order(records[RATING_FIELD]) if not records.empty else []
    codes = {rating: i for i, rating in enumerate(order)}
    colors = [to_rgba(risk_color(r), PARALLEL_LINE_OPACITY) for r in order] or [to_rgba(DEFAULT_NODE_COLOR, 1)]

    fig = go.Figure(go.Parcoords(
        dimensions=dimensions,
        line=dict(
            color=[codes[r] for r in shown[RATING_FIELD]],
            colorscale=_stepped_colorscale(colors),
            cmin=-0.5,
            cmax=max(len(order), 1) - 0.5,
            showscale=False,
        ),
        labelfont=dict(size=12),
    ))
    fig.update_layout(**get_plotly_theme())
    fig.update_layout(
        title=dict(text=f'<b>{PARALLEL_TITLE}</b>', x=0.5, xanchor='center',
                   y=0.02, yanchor='bottom', font=dict(size=13)),
        margin=PARALLEL_MARGIN,
        height=height,
    )
    return fig


# ============================================================================
# SUNBURST
# ============================================================================

def flatten_hierarchy(root: HierarchyNode) -> dict:
    """Flatten the tree into the parallel arrays ``go.Sunburst`` expects.

    Ids are assigned in walk order (``n0`` is the root) and parents are
    looked up by the full path tuple, so category values containing ``/``
    can never make two segments share an id.  ``paths`` holds the
    slash-joined display path used in tooltips.  ``ratings`` holds each
    node's top-level ancestor (its risk rating), or None for the root.
    """
    flat = {'ids': [], 'labels': [], 'parents': [], 'values': [], 'ratings': [], 'paths': []}
    id_by_path = {}
    for i, (path, node) in enumerate(root.walk()):
        node_id = f'n{i}'
        id_by_path[path] = node_id
        flat['ids'].append(node_id)
        flat['labels'].append(node.name)
        flat['parents'].append(id_by_path.get(path[:-1], ''))
        flat['values'].append(node.total())
        flat['ratings'].append(path[1] if len(path) > 1 else None)
        flat['paths'].append('/'.join(path))
    return flat


def chart_sunburst(root: HierarchyNode, selected: Optional[List[str]] = None,
                   height: int = 450) -> go.Figure:
    """Sunburst of valid rows: risk rating -> marital status -> gender.

    Every segment takes the color of its risk rating.  With a non-empty
    ``selected`` list, segments under other ratings are dimmed and their
    labels all but hidden; an empty list shows everything at full strength.

    Parameters
    ----------
    root : HierarchyNode
        Output of ``build_risk_hierarchy``.
    selected : list of str, optional
        Active risk-rating filter.

    Returns
    -------
    go.Figure
    """
    selected = selected or []
    flat = flatten_hierarchy(root)

    colors, text_colors, texts, hover = [], [], [], []
    for rating, label, path, value in zip(flat['ratings'], flat['labels'], flat['paths'], flat['values']):
        hover.append(f'{path}<br>{value:,d}')
        if rating is None:
            colors.append(to_rgba(ROOT_COLOR, 1))
            text_colors.append('rgba(0,0,0,0)')
            texts.append('')
            continue
        active = rating_is_active(rating, selected)
        colors.append(to_rgba(risk_color(rating), SUNBURST_FILL_OPACITY * (1 if active else SUNBURST_DIM_OPACITY)))
        text_colors.append(to_rgba('#000000', 1 if active else SUNBURST_LABEL_DIM_OPACITY))
        texts.append(label)

    fig = go.Figure(go.Sunburst(
        ids=flat['ids'],
        labels=flat['labels'],
        parents=flat['parents'],
        values=flat['values'],
        branchvalues='total',
        sort=True,
        text=texts,
        texttemplate='%{text}',
        insidetextorientation='radial',
        insidetextfont=dict(color=text_colors, size=9, family='sans-serif'),
        hovertext=hover,
        hoverinfo='text',
        marker=dict(colors=colors, line=dict(color='#ffffff', width=1)),
    ))
    fig.update_layout(**get_plotly_theme())
    fig.update_layout(
        title=dict(text=f'<b>{SUNBURST_TITLE}</b>', x=0.5, xanchor='center',
                   y=0.02, yanchor='bottom', font=dict(size=13)),
        margin=SUNBURST_MARGIN,
        height=height,
    )
    return fig
