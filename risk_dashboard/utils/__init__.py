"""
Dashboard utilities: data loading, styles, shared selection state and charts.
"""
