"""
Financial Risk Dashboard - linked Sankey, parallel-coordinates and sunburst
views of a financial-risk CSV dataset.

This package provides:
- CSV loading with per-chart row validation
- Reshaping into Sankey graphs, numeric records and rating hierarchies
- Plotly figure builders sharing a risk-rating cross-filter
- A Streamlit page wiring the three charts together
"""

__version__ = "1.0.0"
__author__ = "Financial Risk Dashboard Team"

from .core.config import *
from .core.transforms import (
    select_valid_rows,
    build_sankey_graph,
    build_numeric_records,
    build_risk_hierarchy,
)
from .models import SankeyGraph, SankeyNode, SankeyLink, HierarchyNode
from .utils.data_loader import read_risk_csv, load_risk_data, DataLoadError
from .utils.charts import chart_sankey, chart_parallel_coordinates, chart_sunburst
