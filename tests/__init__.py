"""
Financial Risk Dashboard Test Suite

This package contains unit tests and fixtures for the dashboard.

Run tests with:
    pytest tests/
    pytest tests/test_transforms.py -v
    pytest tests/test_transforms.py::TestSankeyGraph -v
"""

__version__ = "1.0.0"
