"""
Models module for the Financial Risk Dashboard.

Contains the chart-ready data shapes.
"""

from .data_models import (
    SankeyNode,
    SankeyLink,
    SankeyGraph,
    HierarchyNode,
)

__all__ = [
    'SankeyNode',
    'SankeyLink',
    'SankeyGraph',
    'HierarchyNode',
]
