"""
Central Configuration Module for the Financial Risk Dashboard.

=== PURPOSE ===
This module is the single source of truth for every column name, stage
ordering, row limit and layout constant used across the dashboard.  Every
other module imports from here rather than defining its own magic strings,
so a schema change in the input CSV only needs updating in one place.

=== DATA FLOW ===
  1. COL_* constants name the raw CSV headers exactly as they appear in
     ``financial_risk.csv``.
  2. SANKEY_STAGES, NUMERIC_FIELDS and HIERARCHY_LEVELS define which of those
     columns each chart consumes, and in what order.
  3. DEFAULT_DATA_FILE / DASHBOARD_PORT can be overridden through environment
     variables for containerised deployments.

Colors and Plotly layout settings live in ``risk_dashboard.utils.styles``.
"""

import os
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

# ==========================================
# FILE LOCATIONS
# ==========================================
# Project root = two levels up from this file:
#   risk_dashboard/core/config.py -> risk_dashboard/ -> project root
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent

# The dataset ships next to the code under data/.  RISK_DATA_FILE lets an
# operator point the dashboard at a different export without editing code.
DEFAULT_DATA_FILE = Path(
    os.environ.get("RISK_DATA_FILE", str(PROJECT_ROOT / "data" / "financial_risk.csv"))
)

# Streamlit port used by run.py when --port is not given.
DASHBOARD_PORT = int(os.environ.get("DASHBOARD_PORT", "8501"))

# ==========================================
# CSV COLUMN MAPPINGS
# ==========================================
# Raw header names in the source file.  Only these eleven columns are read;
# any other columns in the CSV are ignored.
COL_EDUCATION = 'Education Level'
COL_EMPLOYMENT = 'Employment Status'
COL_LOAN_PURPOSE = 'Loan Purpose'
COL_PAYMENT_HISTORY = 'Payment History'
COL_RISK_RATING = 'Risk Rating'
COL_INCOME = 'Income'
COL_CREDIT_SCORE = 'Credit Score'
COL_LOAN_AMOUNT = 'Loan Amount'
COL_ASSETS_VALUE = 'Assets Value'
COL_MARITAL_STATUS = 'Marital Status'
COL_GENDER = 'Gender'

ALL_COLUMNS = [
    COL_EDUCATION, COL_EMPLOYMENT, COL_LOAN_PURPOSE, COL_PAYMENT_HISTORY,
    COL_RISK_RATING, COL_INCOME, COL_CREDIT_SCORE, COL_LOAN_AMOUNT,
    COL_ASSETS_VALUE, COL_MARITAL_STATUS, COL_GENDER,
]

# ==========================================
# SANKEY
# ==========================================
# Left-to-right column order.  Risk Rating is always the final sink.
SANKEY_STAGES = [
    COL_EDUCATION,
    COL_EMPLOYMENT,
    COL_LOAN_PURPOSE,
    COL_PAYMENT_HISTORY,
    COL_RISK_RATING,
]

SANKEY_NODE_WIDTH = 25
SANKEY_NODE_PADDING = 25

# ==========================================
# PARALLEL COORDINATES
# ==========================================
# Source column -> record key.  The record keys double as axis labels.
NUMERIC_FIELDS = {
    COL_INCOME: 'Income',
    COL_CREDIT_SCORE: 'CreditScore',
    COL_LOAN_AMOUNT: 'LoanAmount',
    COL_ASSETS_VALUE: 'AssetsValue',
}
RATING_FIELD = 'RiskRating'

# Only the first N valid rows are drawn; more lines than this turn the plot
# into an unreadable block of color.
PARALLEL_ROW_LIMIT = 150

# ==========================================
# SUNBURST
# ==========================================
HIERARCHY_ROOT = 'Risk Categories'
HIERARCHY_LEVELS = [COL_RISK_RATING, COL_MARITAL_STATUS, COL_GENDER]

# ==========================================
# RISK RATINGS
# ==========================================
# Legend order for the shared cross-filter.
RISK_LEVELS = ['Low', 'Medium', 'High']

# ==========================================
# CHART TITLES
# ==========================================
SANKEY_TITLE = 'Financial Risk Assessment Overview'
PARALLEL_TITLE = 'Financial Risk Assessment - Parallel Coordinates Plot'
SUNBURST_TITLE = 'Further Information for Risk Levels in Financial Risk Assessment'
