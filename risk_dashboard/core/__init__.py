"""
Core module for the Financial Risk Dashboard.

Contains configuration, validation helpers, and the CSV-to-chart transforms.
"""

from risk_dashboard.core.config import *
from risk_dashboard.core.utils import validate_columns, present_mask
from risk_dashboard.core.transforms import (
    select_valid_rows,
    build_sankey_graph,
    build_numeric_records,
    build_risk_hierarchy,
)

__all__ = [
    # Utils
    'validate_columns',
    'present_mask',
    # Transforms
    'select_valid_rows',
    'build_sankey_graph',
    'build_numeric_records',
    'build_risk_hierarchy',
]
