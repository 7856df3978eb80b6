"""
Unit tests for run.py

Tests all major functions in the run.py entry point script including:
- Path validation and security
- Health checks
- Static HTML export
- Argument parsing and mode dispatch
- Logging setup
"""

import unittest
from unittest.mock import patch
from pathlib import Path
import logging
import sys
import tempfile
import shutil

# Add parent directory to path to import run module
sys.path.insert(0, str(Path(__file__).parent.parent))

import run
from tests.fixtures.sample_data import create_sample_csv_file, create_three_row_data

# validate_file_path only accepts paths under the project root or home
PROJECT_DIR = Path(run.__file__).parent.resolve()


class TestPathValidation(unittest.TestCase):
    """Test suite for path validation and security functions."""

    def setUp(self):
        """Set up test fixtures."""
        self.test_dir = Path(tempfile.mkdtemp(dir=PROJECT_DIR))
        self.test_file = self.test_dir / "financial_risk.csv"
        self.test_file.write_text("Risk Rating\nLow\n")

    def tearDown(self):
        """Clean up test fixtures."""
        if self.test_dir.exists():
            shutil.rmtree(self.test_dir)

    def test_validate_existing_file(self):
        """Test validation of existing file."""
        result = run.validate_file_path(str(self.test_file), must_exist=True)
        self.assertIsInstance(result, Path)
        self.assertTrue(result.exists())

    def test_validate_nonexistent_file_without_requirement(self):
        """Test validation of non-existent file when existence not required."""
        nonexistent = self.test_dir / "out"
        result = run.validate_file_path(str(nonexistent), must_exist=False)
        self.assertEqual(result, nonexistent.resolve())

    def test_validate_nonexistent_file_with_requirement(self):
        """Test validation fails for non-existent file when existence required."""
        nonexistent = self.test_dir / "missing.csv"
        with self.assertRaises(ValueError) as context:
            run.validate_file_path(str(nonexistent), must_exist=True)
        self.assertIn("File not found", str(context.exception))

    def test_prevent_path_traversal(self):
        """Test prevention of path traversal attacks."""
        with self.assertRaises(ValueError) as context:
            run.validate_file_path('/etc/passwd', must_exist=False)
        self.assertIn("outside allowed directories", str(context.exception))

    def test_sanitize_filename_removes_dangerous_chars(self):
        """Test filename sanitization removes dangerous characters."""
        sanitized = run.sanitize_filename("../../bad;file|name*.html")
        for ch in ('/', '..', ';', '|', '*'):
            self.assertNotIn(ch, sanitized)

    def test_sanitize_filename_keeps_valid_chars(self):
        valid = "parallel_coordinates-2024.html"
        self.assertEqual(run.sanitize_filename(valid), valid)

    def test_sanitize_filename_removes_path(self):
        self.assertEqual(run.sanitize_filename("/path/to/sankey.html"), "sankey.html")

    def test_sanitize_filename_limits_length(self):
        """Test filename sanitization limits length to 255 chars."""
        sanitized = run.sanitize_filename("a" * 300 + ".html")
        self.assertLessEqual(len(sanitized), 255)


class TestHealthCheck(unittest.TestCase):
    """Test suite for health check functionality."""

    def setUp(self):
        self.csv_path = create_sample_csv_file()

    def tearDown(self):
        self.csv_path.unlink(missing_ok=True)

    def test_check_data_file_ok(self):
        ok, detail = run.check_data_file(self.csv_path)
        self.assertTrue(ok)
        self.assertEqual(detail, "6 rows")

    def test_check_data_file_missing(self):
        ok, detail = run.check_data_file(self.csv_path.with_name("nope_risk.csv"))
        self.assertFalse(ok)
        self.assertIn("Not found", detail)

    def test_check_data_file_missing_columns(self):
        self.csv_path.write_text("Risk Rating,Gender\nLow,Male\n")
        ok, detail = run.check_data_file(self.csv_path)
        self.assertFalse(ok)
        self.assertIn("Education Level", detail)

    def test_check_data_file_unparseable(self):
        self.csv_path.write_text("")
        ok, _ = run.check_data_file(self.csv_path)
        self.assertFalse(ok)

    @patch('run.check_required_packages')
    def test_health_check_all_pass(self, mock_packages):
        mock_packages.return_value = (True, [])
        self.assertTrue(run.health_check(self.csv_path))

    @patch('run.check_data_file')
    @patch('run.check_required_packages')
    def test_health_check_missing_packages(self, mock_packages, mock_data):
        """Missing packages fail the check and skip the data file probe."""
        mock_packages.return_value = (False, ['streamlit'])

        self.assertFalse(run.health_check(self.csv_path))
        mock_data.assert_not_called()

    @patch('run.check_required_packages')
    def test_health_check_missing_data_file(self, mock_packages):
        mock_packages.return_value = (True, [])
        self.assertFalse(run.health_check(self.csv_path.with_name("nope_risk.csv")))

    def test_check_required_packages_returns_tuple(self):
        all_installed, missing = run.check_required_packages()
        self.assertIsInstance(all_installed, bool)
        self.assertIsInstance(missing, list)


class TestExportCharts(unittest.TestCase):
    """Test suite for static HTML export."""

    def setUp(self):
        self.out_dir = Path(tempfile.mkdtemp())
        self.csv_path = create_sample_csv_file(create_three_row_data())

    def tearDown(self):
        shutil.rmtree(self.out_dir, ignore_errors=True)
        self.csv_path.unlink(missing_ok=True)

    def test_writes_three_html_files(self):
        written = run.export_charts(self.csv_path, self.out_dir)
        self.assertEqual(
            [p.name for p in written],
            ['sankey.html', 'parallel_coordinates.html', 'sunburst.html'],
        )
        for path in written:
            self.assertTrue(path.exists())
            self.assertIn('plotly', path.read_text().lower())

    def test_creates_output_directory(self):
        target = self.out_dir / "nested" / "charts"
        run.export_charts(self.csv_path, target, selected=['High'])
        self.assertTrue((target / 'sunburst.html').exists())

    def test_prefix_applied_to_file_names(self):
        written = run.export_charts(self.csv_path, self.out_dir, prefix='q3_')
        self.assertEqual(
            [p.name for p in written],
            ['q3_sankey.html', 'q3_parallel_coordinates.html', 'q3_sunburst.html'],
        )

    def test_prefix_cannot_escape_output_dir(self):
        written = run.export_charts(self.csv_path, self.out_dir, prefix='../../evil;')
        for path in written:
            self.assertEqual(path.parent, self.out_dir)
        self.assertEqual(written[0].name, 'evilsankey.html')

    def test_unreadable_file_writes_nothing(self):
        written = run.export_charts(self.out_dir / "missing.csv", self.out_dir)
        self.assertEqual(written, [])
        self.assertEqual(list(self.out_dir.glob('*.html')), [])


class TestArgumentParsing(unittest.TestCase):
    """Test suite for command-line argument parsing."""

    def test_parse_args_defaults(self):
        args = run.parse_args([])
        self.assertEqual(args.port, run.DASHBOARD_PORT)
        self.assertIsNone(args.file)
        self.assertIsNone(args.export)
        self.assertEqual(args.risk, [])
        self.assertEqual(args.prefix, '')
        self.assertFalse(args.no_browser)
        self.assertFalse(args.verbose)
        self.assertFalse(args.health_check)

    def test_parse_args_from_sys_argv(self):
        with patch('sys.argv', ['run.py', '--verbose', '--port', '8502']):
            args = run.parse_args()
        self.assertTrue(args.verbose)
        self.assertEqual(args.port, 8502)

    def test_parse_args_export_with_risk(self):
        args = run.parse_args(['--export', 'out', '--risk', 'High', '--risk', 'Low'])
        self.assertEqual(args.export, 'out')
        self.assertEqual(args.risk, ['High', 'Low'])

    def test_parse_args_rejects_unknown_risk(self):
        with patch('sys.stderr'):
            with self.assertRaises(SystemExit):
                run.parse_args(['--risk', 'Extreme'])


class TestMain(unittest.TestCase):
    """Test suite for mode dispatch in main()."""

    def setUp(self):
        self.work_dir = Path(tempfile.mkdtemp(dir=PROJECT_DIR))
        self.csv_path = create_sample_csv_file(output_path=self.work_dir / "risk.csv")

    def tearDown(self):
        shutil.rmtree(self.work_dir, ignore_errors=True)

    @patch('run.setup_logging')
    def test_export_mode(self, _):
        out = self.work_dir / "charts"
        with self.assertRaises(SystemExit) as ctx:
            run.main(['--file', str(self.csv_path), '--export', str(out)])
        self.assertEqual(ctx.exception.code, 0)
        self.assertEqual(len(list(out.glob('*.html'))), 3)

    @patch('run.setup_logging')
    def test_missing_input_file_exits_nonzero(self, _):
        with self.assertRaises(SystemExit) as ctx:
            run.main(['--file', str(self.work_dir / "missing.csv"), '--health-check'])
        self.assertEqual(ctx.exception.code, 1)

    @patch('run.launch_dashboard', return_value=True)
    @patch('run.setup_logging')
    def test_default_mode_launches_dashboard(self, _, mock_launch):
        with self.assertRaises(SystemExit) as ctx:
            run.main(['--port', '8600', '--no-browser'])
        self.assertEqual(ctx.exception.code, 0)
        mock_launch.assert_called_once_with(port=8600, open_browser=False, data_file=None)


class TestPackaging(unittest.TestCase):
    """Test suite for locating the page script and install layout."""

    def test_dashboard_script_in_checkout(self):
        self.assertEqual(run.dashboard_script(), PROJECT_DIR / "dashboard.py")

    def test_dashboard_script_falls_back_to_package(self):
        empty_dir = Path(tempfile.mkdtemp())
        try:
            script = run.dashboard_script(empty_dir)
        finally:
            shutil.rmtree(empty_dir)
        self.assertEqual(script.name, "app.py")
        self.assertEqual(script.parent.name, "risk_dashboard")

    @unittest.skipIf(sys.version_info < (3, 11), "tomllib needs Python 3.11+")
    def test_page_script_not_installed_as_module(self):
        """Importing an installed ``dashboard`` module would render the page."""
        import tomllib
        with open(PROJECT_DIR / "pyproject.toml", "rb") as f:
            config = tomllib.load(f)
        self.assertEqual(config["tool"]["setuptools"]["py-modules"], ["run"])


class TestLogging(unittest.TestCase):
    """Test suite for logging configuration."""

    def setUp(self):
        self.root_logger = logging.getLogger()
        self.saved_handlers = self.root_logger.handlers[:]
        self.saved_level = self.root_logger.level

    def tearDown(self):
        for handler in self.root_logger.handlers[:]:
            self.root_logger.removeHandler(handler)
            handler.close()
        for handler in self.saved_handlers:
            self.root_logger.addHandler(handler)
        self.root_logger.setLevel(self.saved_level)
        if self.log_file.exists():
            self.log_file.unlink()

    def test_setup_logging_verbose_mode(self):
        self.log_file = run.setup_logging(verbose=True)

        self.assertTrue(self.log_file.name.startswith("risk_dashboard_"))
        self.assertEqual(self.log_file.parent, Path.cwd() / "logs")
        self.assertEqual(self.root_logger.level, logging.DEBUG)
        # File and console handlers
        self.assertEqual(len(self.root_logger.handlers), 2)


if __name__ == '__main__':
    unittest.main()
