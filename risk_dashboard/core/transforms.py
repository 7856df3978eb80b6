"""
Reshaping of raw CSV rows into the three chart-ready shapes.

Every function here takes the raw string DataFrame returned by
``risk_dashboard.utils.data_loader.read_risk_csv`` and applies its own
row filter first, so a row missing a gender is still counted by the Sankey
and a row missing an income is still counted by the sunburst.

    build_sankey_graph     -> SankeyGraph      (five-stage flow)
    build_numeric_records  -> pd.DataFrame     (parallel coordinates)
    build_risk_hierarchy   -> HierarchyNode    (sunburst)
"""

import logging

import pandas as pd

from risk_dashboard.core.config import (
    SANKEY_STAGES, NUMERIC_FIELDS, RATING_FIELD, COL_RISK_RATING,
    PARALLEL_ROW_LIMIT, HIERARCHY_ROOT, HIERARCHY_LEVELS,
)
from risk_dashboard.core.utils import validate_columns, present_mask
from risk_dashboard.models.data_models import SankeyGraph, HierarchyNode

logger = logging.getLogger(__name__)


def select_valid_rows(df: pd.DataFrame, columns) -> pd.DataFrame:
    """Return only the rows of ``df`` where all ``columns`` are non-empty.

    A column absent from the file makes every row invalid for that chart.
    File order is preserved.
    """
    columns = list(columns)
    if df is None or not validate_columns(df, columns):
        return pd.DataFrame(columns=columns)

    valid = df.loc[present_mask(df, columns), columns]
    dropped = len(df) - len(valid)
    if dropped:
        logger.info(f"Dropped {dropped} of {len(df)} rows with blank values in {columns}")
    return valid


def build_sankey_graph(df: pd.DataFrame) -> SankeyGraph:
    """Build deduplicated nodes and counted links across ``SANKEY_STAGES``.

    Rows are scanned in file order.  For each row the five stage nodes are
    registered first (so ids follow first appearance, stage by stage) and
    then one unit of flow is added to each of the four consecutive
    stage-to-stage links.
    """
    graph = SankeyGraph()
    rows = select_valid_rows(df, SANKEY_STAGES)

    for values in rows.itertuples(index=False, name=None):
        path = [graph.add_node(name, stage) for stage, name in zip(SANKEY_STAGES, values)]
        for source, target in zip(path, path[1:]):
            graph.add_link(source, target)

    logger.debug(f"Sankey: {len(graph.nodes)} nodes, {len(graph.links)} links from {len(rows)} rows")
    return graph


def build_numeric_records(df: pd.DataFrame, limit: int = PARALLEL_ROW_LIMIT) -> pd.DataFrame:
    """Return up to ``limit`` numeric records for the parallel-coordinates plot.

    Output columns are ``Income``, ``CreditScore``, ``LoanAmount``,
    ``AssetsValue`` (floats) and ``RiskRating`` (str).  A row qualifies only
    if all five source fields are non-empty and the four numeric fields
    parse as numbers; the first ``limit`` qualifying rows in file order
    are kept.

    A row with a non-numeric cell (e.g. ``"abc"`` as a credit score) is
    dropped, not drawn as a gap, and so does not use up one of the
    ``limit`` slots; the next parseable row takes its place.
    """
    source_cols = list(NUMERIC_FIELDS) + [COL_RISK_RATING]
    record_cols = list(NUMERIC_FIELDS.values()) + [RATING_FIELD]

    rows = select_valid_rows(df, source_cols)
    records = rows.rename(columns={**NUMERIC_FIELDS, COL_RISK_RATING: RATING_FIELD})
    records = records[record_cols].copy()

    numeric_cols = list(NUMERIC_FIELDS.values())
    for col in numeric_cols:
        records[col] = pd.to_numeric(records[col], errors='coerce')

    parsed = records.dropna(subset=numeric_cols)
    if len(parsed) < len(records):
        logger.info(f"Dropped {len(records) - len(parsed)} rows with non-numeric values")

    return parsed.head(limit).reset_index(drop=True)


def build_risk_hierarchy(df: pd.DataFrame) -> HierarchyNode:
    """Group valid rows into root -> risk rating -> marital status -> gender.

    Each leaf's ``value`` is the number of rows with that exact combination.
    Children keep the order in which their values first appear in the file.
    """
    root = HierarchyNode(name=HIERARCHY_ROOT)
    rows = select_valid_rows(df, HIERARCHY_LEVELS)
    if rows.empty:
        return root

    counts = rows.groupby(HIERARCHY_LEVELS, sort=False).size()
    for (rating, marital, gender), count in counts.items():
        leaf = root.child(rating).child(marital).child(gender)
        leaf.value = int(count)

    return root
