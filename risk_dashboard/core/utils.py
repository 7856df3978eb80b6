"""
Utility functions for column validation and blank-value detection.
"""

import logging
import pandas as pd

logger = logging.getLogger(__name__)


def validate_columns(df, required_cols):
    """Validate that required columns exist in dataframe"""
    missing = [c for c in required_cols if c not in df.columns]
    if missing:
        logger.warning(f"Missing columns: {missing}. Affected charts will be empty.")
        return False
    return True


def present_mask(df: pd.DataFrame, columns) -> pd.Series:
    """Boolean mask of rows where every column in ``columns`` is non-empty.

    Values are read as raw strings, so only the empty string (or a NaN
    handed in by a caller that parsed the file differently) counts as
    missing; whitespace and literal text such as ``"NA"`` are kept.
    """
    if df.empty:
        return pd.Series(False, index=df.index)
    cells = df[list(columns)]
    return (cells.notna() & (cells.astype(str) != '')).all(axis=1)
