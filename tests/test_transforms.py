"""
Unit tests for risk_dashboard.core.transforms

Tests the reshaping of raw CSV rows into chart-ready shapes:
- Per-chart row validation
- Sankey node deduplication and link counting
- Numeric record filtering and truncation
- Risk hierarchy grouping and leaf counts
"""

import unittest

import pandas as pd

from risk_dashboard.core.config import SANKEY_STAGES, PARALLEL_ROW_LIMIT, HIERARCHY_ROOT
from risk_dashboard.core.transforms import (
    select_valid_rows,
    build_sankey_graph,
    build_numeric_records,
    build_risk_hierarchy,
)
from tests.fixtures.sample_data import (
    create_three_row_data,
    create_sample_risk_data,
    create_large_risk_data,
)


class TestSelectValidRows(unittest.TestCase):
    """Test suite for per-chart row filtering."""

    def test_drops_rows_with_blank_values(self):
        """Rows with an empty string in any requested column are dropped."""
        df = create_sample_risk_data()
        valid = select_valid_rows(df, ['Education Level', 'Income'])
        self.assertEqual(len(valid), 5)
        self.assertNotIn('', valid['Education Level'].tolist())

    def test_keeps_only_requested_columns_in_file_order(self):
        df = create_sample_risk_data()
        valid = select_valid_rows(df, ['Risk Rating', 'Gender'])
        self.assertEqual(list(valid.columns), ['Risk Rating', 'Gender'])
        self.assertEqual(valid['Risk Rating'].tolist(), ['Low', 'High', 'Low', 'Medium', 'High'])

    def test_missing_column_drops_every_row(self):
        """A column absent from the file makes the chart's dataset empty."""
        df = create_sample_risk_data().drop(columns=['Gender'])
        valid = select_valid_rows(df, ['Risk Rating', 'Gender'])
        self.assertTrue(valid.empty)
        self.assertEqual(list(valid.columns), ['Risk Rating', 'Gender'])

    def test_literal_na_text_is_kept(self):
        """Only empty cells count as missing; the text 'NA' is a value."""
        df = create_three_row_data()
        df.loc[0, 'Gender'] = 'NA'
        valid = select_valid_rows(df, ['Gender'])
        self.assertEqual(len(valid), 3)

    def test_nan_counts_as_missing(self):
        df = create_three_row_data()
        df.loc[1, 'Gender'] = float('nan')
        valid = select_valid_rows(df, ['Gender'])
        self.assertEqual(len(valid), 2)

    def test_empty_frame(self):
        valid = select_valid_rows(pd.DataFrame(columns=SANKEY_STAGES), SANKEY_STAGES)
        self.assertTrue(valid.empty)


class TestSankeyGraph(unittest.TestCase):
    """Test suite for Sankey node/link construction."""

    def setUp(self):
        self.graph = build_sankey_graph(create_three_row_data())

    def test_node_count_equals_distinct_values_per_stage(self):
        df = create_three_row_data()
        expected = sum(df[stage].nunique() for stage in SANKEY_STAGES)
        self.assertEqual(len(self.graph.nodes), expected)
        self.assertEqual(len(self.graph.nodes), 9)

    def test_node_ids_dense_in_first_appearance_order(self):
        names = [(n.id, n.category, n.name) for n in self.graph.nodes]
        self.assertEqual(names, [
            (0, 'Education Level', "Bachelor's"),
            (1, 'Employment Status', 'Employed'),
            (2, 'Loan Purpose', 'Business'),
            (3, 'Payment History', 'Good'),
            (4, 'Risk Rating', 'Low'),
            (5, 'Education Level', "Master's"),
            (6, 'Loan Purpose', 'Auto'),
            (7, 'Payment History', 'Poor'),
            (8, 'Risk Rating', 'High'),
        ])

    def test_link_counts_equal_rows_sharing_transition(self):
        links = [(l.source, l.target, l.value) for l in self.graph.links]
        self.assertEqual(links, [
            (0, 1, 2), (1, 2, 2), (2, 3, 2), (3, 4, 2),
            (5, 1, 1), (1, 6, 1), (6, 7, 1), (7, 8, 1),
        ])

    def test_link_endpoints_reference_existing_nodes(self):
        graph = build_sankey_graph(create_sample_risk_data())
        ids = {n.id for n in graph.nodes}
        for link in graph.links:
            self.assertIn(link.source, ids)
            self.assertIn(link.target, ids)

    def test_links_only_join_consecutive_stages(self):
        graph = build_sankey_graph(create_sample_risk_data())
        stage_of = {n.id: SANKEY_STAGES.index(n.category) for n in graph.nodes}
        for link in graph.links:
            self.assertEqual(stage_of[link.target], stage_of[link.source] + 1)

    def test_each_stage_carries_every_valid_row(self):
        """Flow out of each stage sums to the number of valid rows."""
        graph = build_sankey_graph(create_sample_risk_data())
        stage_of = {n.id: n.category for n in graph.nodes}
        for stage in SANKEY_STAGES[:-1]:
            outflow = sum(l.value for l in graph.links if stage_of[l.source] == stage)
            self.assertEqual(outflow, 5)

    def test_blank_row_excluded(self):
        graph = build_sankey_graph(create_sample_risk_data())
        self.assertNotIn('Unemployed', [n.name for n in graph.nodes])
        self.assertIn('PhD', [n.name for n in graph.nodes])

    def test_same_name_in_different_stages_gets_two_nodes(self):
        df = create_three_row_data()
        df['Payment History'] = 'Low'
        graph = build_sankey_graph(df)
        lows = [n for n in graph.nodes if n.name == 'Low']
        self.assertEqual({n.category for n in lows}, {'Payment History', 'Risk Rating'})

    def test_node_value_is_flow_through_node(self):
        self.assertEqual(self.graph.node_value(1), 3)   # Employed
        self.assertEqual(self.graph.node_value(4), 2)   # Low (sink)

    def test_missing_stage_column_gives_empty_graph(self):
        df = create_three_row_data().drop(columns=['Loan Purpose'])
        self.assertTrue(build_sankey_graph(df).is_empty())


class TestNumericRecords(unittest.TestCase):
    """Test suite for parallel-coordinates records."""

    def test_columns_and_types(self):
        records = build_numeric_records(create_three_row_data())
        self.assertEqual(list(records.columns),
                         ['Income', 'CreditScore', 'LoanAmount', 'AssetsValue', 'RiskRating'])
        self.assertEqual(records.loc[0, 'Income'], 72799.0)
        self.assertEqual(records.loc[0, 'RiskRating'], 'Low')

    def test_excludes_blank_and_non_numeric_rows(self):
        records = build_numeric_records(create_sample_risk_data())
        self.assertEqual(len(records), 4)
        self.assertEqual(records['Income'].tolist(), [72799.0, 40000.0, 55000.0, 30000.0])
        self.assertFalse(records.isna().any().any())

    def test_truncates_to_row_limit(self):
        records = build_numeric_records(create_large_risk_data(200))
        self.assertEqual(len(records), PARALLEL_ROW_LIMIT)
        # First rows of the file are the ones kept
        self.assertEqual(records['Income'].iloc[0], 30000.0)
        self.assertEqual(records['Income'].iloc[-1], 30000.0 + (PARALLEL_ROW_LIMIT - 1) * 100)

    def test_limit_counts_valid_rows_only(self):
        df = create_large_risk_data(200)
        df.loc[0:9, 'Income'] = ''
        records = build_numeric_records(df)
        self.assertEqual(len(records), PARALLEL_ROW_LIMIT)
        self.assertEqual(records['Income'].iloc[0], 31000.0)

    def test_custom_limit(self):
        records = build_numeric_records(create_large_risk_data(20), limit=5)
        self.assertEqual(len(records), 5)

    def test_blank_rating_excluded(self):
        df = create_three_row_data()
        df.loc[2, 'Risk Rating'] = ''
        self.assertEqual(len(build_numeric_records(df)), 2)


class TestRiskHierarchy(unittest.TestCase):
    """Test suite for the sunburst hierarchy."""

    def test_structure_for_three_rows(self):
        tree = build_risk_hierarchy(create_three_row_data())
        self.assertEqual(tree.to_dict(), {
            'name': HIERARCHY_ROOT,
            'children': [
                {'name': 'Low', 'children': [
                    {'name': 'Divorced', 'children': [
                        {'name': 'Male', 'value': 1},
                        {'name': 'Female', 'value': 1},
                    ]},
                ]},
                {'name': 'High', 'children': [
                    {'name': 'Married', 'children': [
                        {'name': 'Female', 'value': 1},
                    ]},
                ]},
            ],
        })

    def test_leaf_sum_equals_valid_row_count(self):
        df = create_sample_risk_data()
        tree = build_risk_hierarchy(df)
        valid = select_valid_rows(df, ['Risk Rating', 'Marital Status', 'Gender'])
        self.assertEqual(sum(leaf.value for leaf in tree.leaves()), len(valid))
        self.assertEqual(tree.total(), 5)

    def test_children_in_first_appearance_order(self):
        tree = build_risk_hierarchy(create_sample_risk_data())
        self.assertEqual([c.name for c in tree.children], ['Low', 'High', 'Medium'])
        high = tree.child('High')
        self.assertEqual(high.child('Married').child('Female').value, 2)

    def test_every_leaf_at_depth_three(self):
        tree = build_risk_hierarchy(create_large_risk_data(30))
        depths = {len(path) for path, node in tree.walk() if node.is_leaf}
        self.assertEqual(depths, {4})

    def test_empty_input_gives_bare_root(self):
        tree = build_risk_hierarchy(create_three_row_data().iloc[0:0])
        self.assertEqual(tree.children, [])
        self.assertEqual(tree.total(), 0)


if __name__ == '__main__':
    unittest.main()
