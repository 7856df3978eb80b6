#!/usr/bin/env python3
"""
Financial Risk Dashboard - Main CLI Entry Point
===============================================

This script is the command-line entry point for the dashboard.  It has three
modes:

DEFAULT -- Interactive Dashboard  (launch_dashboard)
    Spawns a Streamlit subprocess running dashboard.py, which renders the
    Sankey, parallel-coordinates and sunburst charts with shared risk-rating
    cross-filtering.

--export DIR -- Static Export  (export_charts)
    Loads the CSV, builds the three figures and writes each one as a
    self-contained HTML file into DIR.  No server is started.  Optional
    --risk flags pre-apply the risk-rating filter to the exported figures.

--health-check -- Diagnostics  (health_check)
    Checks the Python version, the required packages, and that the data file
    exists and parses.

Usage:
    python run.py                              # Launch dashboard
    python run.py --file data.csv --port 8502  # Custom data file and port
    python run.py --export ./out               # Write HTML charts to ./out
    python run.py --export ./out --risk High   # Export with High risk selected
    python run.py --export ./out --prefix q3_  # Prefixed export file names
    python run.py --health-check               # Diagnostics

Environment Requirements:
    - Python 3.10+
    - streamlit, plotly, pandas
"""

import logging
import sys
import os
import re
import subprocess
import argparse
import webbrowser
from pathlib import Path
import time
import atexit
import socket

from risk_dashboard.core.config import DEFAULT_DATA_FILE, DASHBOARD_PORT, RISK_LEVELS, ALL_COLUMNS

logger = logging.getLogger(__name__)

# ==========================================
# PATH VALIDATION & SECURITY
# ==========================================
# These utilities guard against path-traversal when accepting file paths from
# CLI arguments.  Every user-supplied path is resolved to an absolute path and
# checked against an allowlist (the project root and the user's home).

def validate_file_path(path: str, must_exist: bool = False) -> Path:
    """
    Validate and sanitize a file path to prevent path traversal attacks.

    Args:
        path: Raw file path string from user input or CLI argument.
        must_exist: When True, raise ValueError if the resolved path does not
                    exist on disk (used for the input CSV).

    Returns:
        A fully-resolved Path object within the allowed directories.

    Raises:
        ValueError: If the path is malformed, outside allowed directories,
                    or does not exist when must_exist is True.
    """
    try:
        resolved = Path(path).resolve()

        if must_exist and not resolved.exists():
            raise ValueError(f"File not found: {path}")

        project_root = Path(__file__).parent.resolve()
        home_dir = Path.home().resolve()

        allowed = (
            resolved.is_relative_to(project_root) or
            resolved.is_relative_to(home_dir)
        )
        if not allowed:
            raise ValueError(f"Path outside allowed directories: {path}")

        return resolved

    except Exception as e:
        raise ValueError(f"Invalid file path '{path}': {e}")


def sanitize_filename(filename: str) -> str:
    """
    Strip dangerous characters from a filename to make it filesystem-safe.

    Args:
        filename: Original filename string (may contain path separators or
                  special characters).

    Returns:
        Only alphanumerics, spaces, hyphens, underscores and dots, truncated
        to 255 chars.
    """
    # basename strips directory components, so "../foo" becomes "foo"
    filename = os.path.basename(filename)
    filename = re.sub(r'[^\w\s\-\.]', '', filename)
    # ".." can survive the character filter on its own
    filename = filename.replace('..', '')
    return filename[:255]


# ==========================================
# LOGGING
# ==========================================

def setup_logging(verbose: bool = False):
    """
    Configure root logging with a timestamped log file and a console handler.

    The file handler always records DEBUG so nothing is lost; the console
    shows WARNING and above, or INFO with --verbose.

    Returns:
        Path: Absolute path to the newly created log file.
    """
    # Working directory, so an installed copy never writes into site-packages
    log_dir = Path.cwd() / "logs"
    log_dir.mkdir(exist_ok=True)

    timestamp = time.strftime('%Y%m%d_%H%M%S')
    log_file = log_dir / f"risk_dashboard_{timestamp}.log"

    file_formatter = logging.Formatter(
        '%(asctime)s | %(name)s | %(levelname)s | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    console_formatter = logging.Formatter(
        '%(asctime)s | %(levelname)s | %(message)s',
        datefmt='%H:%M:%S'
    )

    file_handler = logging.FileHandler(log_file)
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(file_formatter)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO if verbose else logging.WARNING)
    console_handler.setFormatter(console_formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    # Called again by main() with --verbose; avoid duplicate lines
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    if verbose:
        print(f"\U0001f4dd Verbose logging enabled. Log file: {log_file}")

    return log_file


# ==========================================
# HEALTH CHECK UTILITIES
# ==========================================

def check_required_packages():
    """
    Verify that the dashboard's Python packages are importable.

    Returns:
        Tuple of (all_installed: bool, missing_packages: list[str]).
        missing_packages contains pip install names, not import names.
    """
    required = {
        'pandas': 'pandas',
        'plotly': 'plotly',
        'streamlit': 'streamlit',
    }

    missing = []
    for import_name, package_name in required.items():
        try:
            __import__(import_name)
        except ImportError:
            missing.append(package_name)

    return len(missing) == 0, missing


def check_data_file(data_file) -> tuple:
    """
    Check that the data file exists, parses, and has every column the
    charts read.

    Returns:
        Tuple of (ok: bool, message: str).
    """
    from risk_dashboard.utils.data_loader import read_risk_csv, DataLoadError

    path = Path(data_file)
    if not path.exists():
        return False, f"Not found: {path}"
    try:
        df = read_risk_csv(path)
    except DataLoadError as e:
        return False, str(e)

    missing = [c for c in ALL_COLUMNS if c not in df.columns]
    if missing:
        return False, f"{len(df)} rows, missing columns: {', '.join(missing)}"
    return True, f"{len(df)} rows"


def health_check(data_file=DEFAULT_DATA_FILE):
    """
    Run a diagnostic check and print a human-readable report.

    Returns:
        bool: True if every check passed.
    """
    print()
    print("=" * 60)
    print("  \U0001f3e5 FINANCIAL RISK DASHBOARD - HEALTH CHECK")
    print("=" * 60)
    print()

    python_version = sys.version_info
    python_ok = python_version >= (3, 10)
    status = "✅" if python_ok else "❌"
    print(f"{status} Python Version: {python_version.major}.{python_version.minor}.{python_version.micro}")
    if not python_ok:
        print("   Required: Python 3.10+")

    packages_ok, missing = check_required_packages()
    status = "✅" if packages_ok else "❌"
    print(f"{status} Required Packages: {'All installed' if packages_ok else f'{len(missing)} missing'}")
    if missing:
        print(f"   Install with: pip install {' '.join(missing)}")

    # The loader needs pandas/streamlit; skip the data check without them
    if packages_ok:
        data_ok, detail = check_data_file(data_file)
    else:
        data_ok, detail = False, "skipped (missing packages)"
    status = "✅" if data_ok else "❌"
    print(f"{status} Data File: {detail}")

    print()
    print("=" * 60)
    all_ok = python_ok and packages_ok and data_ok
    if all_ok:
        print("  ✅ All checks passed!")
    else:
        print("  ❌ Some checks failed. Please fix the issues above.")
    print("=" * 60)
    print()

    return all_ok


# ==========================================
# STATIC EXPORT
# ==========================================

def export_charts(input_file, output_dir, selected=None, prefix=""):
    """
    Build the three figures from ``input_file`` and write them as HTML.

    Each chart loads independently: if the CSV cannot be read, the error is
    logged and no file is written for any chart.

    Args:
        input_file: Path to the financial-risk CSV.
        output_dir: Directory to write into (created if missing).
        selected: Optional list of risk ratings to pre-select.
        prefix: Optional file-name prefix from the command line; sanitized
                so it cannot escape ``output_dir``.

    Returns:
        list[Path]: The files written.
    """
    from risk_dashboard.utils.data_loader import read_risk_csv, DataLoadError
    from risk_dashboard.core.transforms import (
        build_sankey_graph, build_numeric_records, build_risk_hierarchy,
    )
    from risk_dashboard.utils.charts import (
        chart_sankey, chart_parallel_coordinates, chart_sunburst,
    )

    selected = list(selected or [])
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    builders = [
        ('sankey', lambda df: chart_sankey(build_sankey_graph(df))),
        ('parallel_coordinates', lambda df: chart_parallel_coordinates(build_numeric_records(df), selected)),
        ('sunburst', lambda df: chart_sunburst(build_risk_hierarchy(df), selected)),
    ]

    written = []
    for name, build in builders:
        try:
            df = read_risk_csv(input_file)
        except DataLoadError as e:
            logger.error(f"[{name}] Error loading CSV: {e}")
            continue
        out_path = output_dir / sanitize_filename(f"{prefix}{name}.html")
        build(df).write_html(str(out_path), include_plotlyjs=True, full_html=True)
        logger.info(f"Wrote {out_path}")
        written.append(out_path)

    return written


# ==========================================
# CLI
# ==========================================

def parse_args(argv=None):
    """
    Parse and return command-line arguments.

    Returns:
        argparse.Namespace with the parsed flags.
    """
    parser = argparse.ArgumentParser(
        description='Financial Risk Dashboard',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python run.py                          Launch dashboard
  python run.py --file data.csv          Use a specific CSV
  python run.py --export ./out           Write the charts as HTML files
  python run.py --export ./out --risk High --risk Medium
  python run.py --export ./out --prefix q3_   Write q3_sankey.html, ...
  python run.py --port 8502              Use custom port for dashboard
        """
    )

    parser.add_argument(
        '--file', '-f',
        type=str,
        help=f'Input CSV file (default: {DEFAULT_DATA_FILE})'
    )

    parser.add_argument(
        '--export', '-e',
        type=str,
        metavar='DIR',
        help='Write the three charts as HTML files into DIR and exit'
    )

    parser.add_argument(
        '--risk',
        action='append',
        choices=RISK_LEVELS,
        default=[],
        help='Risk rating to pre-select in exported charts (repeatable)'
    )

    parser.add_argument(
        '--prefix',
        type=str,
        default='',
        help='File-name prefix for exported charts, e.g. "q3_" gives q3_sankey.html'
    )

    parser.add_argument(
        '--port',
        type=int,
        default=DASHBOARD_PORT,
        help=f'Port for Streamlit dashboard (default: {DASHBOARD_PORT})'
    )

    parser.add_argument(
        '--no-browser',
        action='store_true',
        help='Do not automatically open browser'
    )

    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Show detailed logging output'
    )

    parser.add_argument(
        '--health-check',
        action='store_true',
        help='Run system health check and exit'
    )

    return parser.parse_args(argv)


def port_in_use(port: int) -> bool:
    """True if something is already listening on localhost:``port``."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        return sock.connect_ex(('localhost', port)) == 0


def dashboard_script(project_dir=None) -> Path:
    """
    Streamlit script to run: ``dashboard.py`` beside this file in a source
    checkout, else the page module inside the installed package.
    """
    project_dir = Path(project_dir) if project_dir else Path(__file__).parent
    script = project_dir / "dashboard.py"
    if script.exists():
        return script
    import risk_dashboard.app
    return Path(risk_dashboard.app.__file__)


def launch_dashboard(port: int = DASHBOARD_PORT, open_browser: bool = True, data_file=None):
    """
    Launch the Streamlit dashboard as a managed subprocess.

    Args:
        port: TCP port for the Streamlit HTTP server.
        open_browser: If True, open http://localhost:{port} after a short delay.
        data_file: Optional CSV path, passed to the app via RISK_DATA_FILE.

    Returns:
        bool: True if the dashboard ran and exited cleanly (including Ctrl+C),
              False on errors (missing files, port conflicts, etc.).
    """
    print()
    print("=" * 60)
    print("  \U0001f310 Launching Financial Risk Dashboard")
    print("=" * 60)
    print()

    dashboard_path = dashboard_script()
    if not dashboard_path.exists():
        print(f"❌ Error: Dashboard not found at {dashboard_path}")
        return False

    try:
        if port_in_use(port):
            print(f"⚠️  Port {port} is already in use")
            print("   Please use a different port with --port flag")
            return False
    except OSError as e:
        logger.warning(f"Could not check port status: {e}")

    print(f"  \U0001f4ca Starting Streamlit server on port {port}...")
    print(f"  \U0001f517 URL: http://localhost:{port}")
    print()
    print("  Press Ctrl+C to stop the dashboard")
    print("-" * 60)
    sys.stdout.flush()

    cmd = [
        sys.executable, "-m", "streamlit", "run",
        str(dashboard_path),
        "--server.port", str(port),
        "--server.headless", "true",
        "--browser.gatherUsageStats", "false",
        "--theme.base", "light",
    ]

    env = os.environ.copy()
    if data_file:
        env['RISK_DATA_FILE'] = str(data_file)

    streamlit_process = None

    def cleanup():
        """Terminate the Streamlit subprocess on exit (SIGTERM, then SIGKILL)."""
        nonlocal streamlit_process
        if streamlit_process and streamlit_process.poll() is None:
            print("\n\U0001f9f9 Cleaning up dashboard process...")
            streamlit_process.terminate()
            try:
                streamlit_process.wait(timeout=5)
            except subprocess.TimeoutExpired:
                print("   Force killing process...")
                streamlit_process.kill()

    atexit.register(cleanup)

    try:
        if open_browser:
            def open_browser_delayed():
                time.sleep(3)  # Wait for server to start accepting connections
                try:
                    webbrowser.open(f"http://localhost:{port}")
                except webbrowser.Error as e:
                    logger.warning(f"Failed to open browser: {e}")

            import threading
            threading.Thread(target=open_browser_delayed, daemon=True).start()

        streamlit_process = subprocess.Popen(cmd, env=env)
        streamlit_process.wait()
        return True

    except KeyboardInterrupt:
        print("\n\n✅ Dashboard stopped by user.")
        cleanup()
        return True
    except FileNotFoundError:
        print("\n❌ Streamlit not found. Install with: pip install streamlit plotly")
        return False


def main(argv=None):
    """
    Top-level entry point: parse CLI args and dispatch to the requested mode.
    """
    args = parse_args(argv)
    setup_logging(verbose=args.verbose)

    data_file = DEFAULT_DATA_FILE
    if args.file:
        try:
            data_file = validate_file_path(args.file, must_exist=True)
        except ValueError as e:
            print(f"❌ {e}")
            sys.exit(1)

    if args.health_check:
        success = health_check(data_file)
        sys.exit(0 if success else 1)

    if args.export:
        try:
            output_dir = validate_file_path(args.export)
        except ValueError as e:
            print(f"❌ {e}")
            sys.exit(1)
        written = export_charts(data_file, output_dir, selected=args.risk, prefix=args.prefix)
        for path in written:
            print(f"✅ {path}")
        sys.exit(0 if written else 1)

    try:
        ok = launch_dashboard(port=args.port, open_browser=not args.no_browser,
                              data_file=data_file if args.file else None)
    except KeyboardInterrupt:
        print("\n\n\U0001f44b Cancelled by user.")
        sys.exit(0)
    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
