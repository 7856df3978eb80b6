"""
Dashboard Launcher

Serves the Financial Risk Dashboard as a single-page Streamlit app.

Usage:
    streamlit run dashboard.py --server.port 8501
    python run.py                                  # same, via the CLI launcher
"""

import logging
import sys
from pathlib import Path

# Ensure the risk_dashboard package is importable when launched from elsewhere
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from risk_dashboard.app import main

# Streamlit starts this script in its own process, so run.py's handlers are
# not inherited; route package loggers to stderr here.
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s | %(name)s | %(levelname)s | %(message)s',
    datefmt='%H:%M:%S',
)

main()
