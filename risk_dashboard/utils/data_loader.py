"""
Financial Risk Dashboard - Data Loading
=======================================

This module is the single entry point for all data ingestion.  It reads the
``financial_risk.csv`` export (either uploaded by the user through Streamlit's
file_uploader widget or loaded from the default location on disk) and hands
back the rows exactly as written in the file.

Data Flow
---------
1. CSV file  -->  pd.read_csv with every cell kept as a string
2. Header names stripped of stray whitespace
3. Returned untouched otherwise; each chart applies its own row filter
   (see ``risk_dashboard.core.transforms``)

Why strings
-----------
Each chart decides for itself what a valid row is.  Reading everything as
``str`` with ``keep_default_na=False`` means an empty cell is ``''`` and a
literal ``"NA"`` stays ``"NA"``, so the per-chart filters see the same
values a browser-side CSV parser would.

Caching
-------
``load_risk_data`` goes through an ``@st.cache_data`` function so the CSV is
parsed once per unique source (and file version) instead of on every
Streamlit rerun.  All three charts call it independently; the cache makes
that cheap.

Failures
--------
Any problem opening or parsing the file raises ``DataLoadError``.  The page
catches it per chart, logs it, and leaves that chart empty.
"""

import io
import logging
from pathlib import Path

import pandas as pd
import streamlit as st

from risk_dashboard.core.config import DEFAULT_DATA_FILE

logger = logging.getLogger(__name__)


class DataLoadError(ValueError):
    """The data file could not be opened or parsed."""


def get_default_file_path() -> Path | None:
    """Return the configured CSV path if it exists, else None.

    The location is ``data/financial_risk.csv`` under the project root
    unless the ``RISK_DATA_FILE`` environment variable overrides it.
    """
    candidate = Path(DEFAULT_DATA_FILE)
    return candidate if candidate.exists() else None


def _describe(source) -> str:
    if isinstance(source, (str, Path)):
        return str(source)
    return getattr(source, 'name', 'uploaded file')


def read_risk_csv(source) -> pd.DataFrame:
    """Read the financial-risk CSV into a DataFrame of raw strings.

    Args:
        source: A path (str or Path), the raw bytes of an uploaded file,
                or a file-like object.

    Returns:
        DataFrame with one column per CSV header and every value as ``str``.
        Empty cells are ``''``.

    Raises:
        DataLoadError: If the file is missing, unreadable, or not valid CSV.
    """
    if isinstance(source, bytes):
        source = io.BytesIO(source)
    try:
        df = pd.read_csv(source, dtype=str, keep_default_na=False, skipinitialspace=False)
    except (OSError, UnicodeDecodeError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise DataLoadError(f"Cannot load {_describe(source)}: {e}") from e

    df.columns = [str(c).strip() for c in df.columns]
    logger.info(f"Loaded {len(df)} rows x {len(df.columns)} columns from {_describe(source)}")
    return df


def source_mtime(source):
    """Modification time of a path source, or None for uploads and missing files."""
    if isinstance(source, (str, Path)):
        try:
            return Path(source).stat().st_mtime
        except OSError:
            return None
    return None


@st.cache_data
def _load_cached(source, mtime) -> pd.DataFrame:
    # ``mtime`` is only part of the cache key.
    return read_risk_csv(source)


def load_risk_data(source) -> pd.DataFrame:
    """Cached wrapper around ``read_risk_csv``.

    The cache key is the source itself (path string or uploaded file bytes)
    plus, for paths, the file's modification time, so uploading a different
    file, pointing at another path or editing the file on disk re-parses.
    ``DataLoadError`` is not cached; a fixed file is picked up on the next
    rerun.
    """
    return _load_cached(source, source_mtime(source))
