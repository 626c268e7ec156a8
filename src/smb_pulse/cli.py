# SMB Pulse - Sales & Expenses Dashboard for small businesses
# Copyright (c) 2026 The SMB Pulse contributors
# Licensed under the MIT License. See LICENSE file for details.

"""
Command-Line Interface (CLI) for SMB Pulse.

This module wires together the main building blocks of SMB Pulse:

- global configuration (business, database, windows, labels, display),
- logging,
- the SQLite store and CSV import,
- the dashboard and report orchestrators,
- view helpers (tabular rendering and CSV export).

The CLI is intentionally thin: it does not aggregate anything itself. It
orchestrates the underlying modules based on command-line arguments and the
configuration file.


Commands
--------

    init-db
        Create the SQLite database and its schema.

    import KIND CSV_PATH
        Import categories, products, sales, sale_items or expenses from a
        CSV file (see ``io.py`` for the expected columns).

    dashboard
        Current-month stats, N-month trend, expense breakdown, top products
        and the recent-activity feed.

    report [--section all|pnl|cashflow|products]
        12-month profit & loss, cash flow and product performance.

Common options
--------------

    --config PATH        main TOML configuration file
                         (default: ./smb_pulse_config.toml)
    --as-of YYYY-MM-DD   reference date (default: today)
    --display-mode MODE  table, csv or both (overrides display.mode)
    --output DIR         output directory for CSV files (default: data/output)

Usage examples
--------------

    python -m smb_pulse.cli init-db
    python -m smb_pulse.cli import expenses data/inputs/expenses.csv
    python -m smb_pulse.cli dashboard --as-of 2026-01-15
    python -m smb_pulse.cli report --section pnl --display-mode both
"""

import argparse
import logging
from datetime import date, datetime
from pathlib import Path
from typing import Optional

import pandas as pd

from . import __version__, configure_logging
from .config import AppConfig, load_app_config
from .dashboard import DashboardView, load_dashboard
from .io import RECORD_KINDS, import_records, read_records_csv
from .periods import parse_reference_date
from .reports import ReportView, load_report
from .store import SQLiteStore, StoreError
from .views import (
    activity_to_dataframe,
    cash_flow_to_dataframe,
    categories_to_dataframe,
    format_amount,
    format_percent_change,
    monthly_to_dataframe,
    products_to_dataframe,
    product_summary_to_dataframe,
    profit_and_loss_to_dataframe,
    report_months_to_dataframe,
    stats_to_dataframe,
)

logger = logging.getLogger(__name__)

REPORT_SECTIONS = ("all", "pnl", "cashflow", "products")


def _build_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser for the CLI."""
    ap = argparse.ArgumentParser(
        prog="python -m smb_pulse.cli",
        description=(
            "SMB Pulse - Sales & Expenses Dashboard for small businesses. "
            "Imports sales and expenses, then renders the dashboard and the "
            "profit & loss / cash flow / product reports."
        ),
    )

    # Generic options
    ap.add_argument(
        "--version",
        action="store_true",
        help="Show the installed version of smb_pulse and exit.",
    )

    ap.add_argument(
        "--config",
        dest="config_path",
        help=(
            "Path to the main TOML configuration file. "
            "If omitted, 'smb_pulse_config.toml' in the current directory is used."
        ),
    )

    ap.add_argument(
        "--as-of",
        dest="as_of",
        metavar="YYYY-MM-DD",
        help="Reference date for 'the current month'. Defaults to today.",
    )

    # Display options
    ap.add_argument(
        "--display-mode",
        dest="display_mode",
        choices=["table", "csv", "both"],
        help=(
            "Override the display.mode setting from the configuration file. "
            "'table' prints results to stdout, "
            "'csv' writes CSV files only, "
            "'both' does both."
        ),
    )
    ap.add_argument(
        "--output",
        dest="output_dir",
        help=(
            "Output directory where CSV files will be written when display "
            "mode includes 'csv'. "
            "If omitted, 'data/output' is used."
        ),
    )

    subparsers = ap.add_subparsers(dest="command", metavar="command")

    subparsers.add_parser(
        "init-db",
        help="Create the database file and schema if needed.",
    )

    import_parser = subparsers.add_parser(
        "import",
        help="Import records of one kind from a CSV file into the database.",
    )
    import_parser.add_argument(
        "kind",
        choices=list(RECORD_KINDS),
        help="Kind of records contained in the CSV file.",
    )
    import_parser.add_argument(
        "csv_path",
        metavar="CSV_PATH",
        help="Path to the CSV file to import.",
    )

    subparsers.add_parser(
        "dashboard",
        help="Render the dashboard for the current month.",
    )

    report_parser = subparsers.add_parser(
        "report",
        help="Render the profit & loss, cash flow and product reports.",
    )
    report_parser.add_argument(
        "--section",
        choices=list(REPORT_SECTIONS),
        default="all",
        help="Report section to render (default: all).",
    )

    return ap


def _print_table(title: str, df: pd.DataFrame) -> None:
    print()
    print(f"=== {title} ===")
    if df.empty:
        print("(no data)")
    else:
        print(df.to_string(index=False))


def _render(
    tables: list[tuple[str, str, pd.DataFrame]],
    display_mode: str,
    output_dir: Optional[str],
) -> None:
    """
    Print and/or export a list of (title, file stem, DataFrame) tables.

    CSV files are named ``<stem>_<timestamp>.csv`` in the output directory.
    """
    if display_mode in {"table", "both"}:
        for title, _, df in tables:
            _print_table(title, df)

    if display_mode in {"csv", "both"}:
        out_dir = Path(output_dir) if output_dir else Path("data/output")
        out_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y-%m-%d-%H-%M-%S")
        for _, stem, df in tables:
            path = out_dir / f"{stem}_{timestamp}.csv"
            df.to_csv(path, index=False)
            print(f"Wrote {path}")


def _dashboard_tables(
    view: DashboardView, config: AppConfig
) -> list[tuple[str, str, pd.DataFrame]]:
    decimals = config.percent_decimals
    return [
        ("Current month", "dashboard_stats", stats_to_dataframe(view.stats, decimals)),
        ("Monthly trend", "dashboard_monthly", monthly_to_dataframe(view.monthly)),
        (
            "Expenses by category",
            "dashboard_expenses_by_category",
            categories_to_dataframe(view.expenses_by_category, decimals),
        ),
        (
            "Top products",
            "dashboard_top_products",
            products_to_dataframe(view.top_products, decimals),
        ),
        (
            "Recent activity",
            "dashboard_recent_activity",
            activity_to_dataframe(view.recent_transactions),
        ),
    ]


def _report_tables(
    view: ReportView, config: AppConfig, section: str
) -> list[tuple[str, str, pd.DataFrame]]:
    decimals = config.percent_decimals
    tables: list[tuple[str, str, pd.DataFrame]] = []
    if section in {"all", "pnl"}:
        tables.append(
            (
                "Profit & loss",
                "report_profit_and_loss",
                profit_and_loss_to_dataframe(view.profit_and_loss, decimals),
            )
        )
        tables.append(
            (
                "Expenses by category (current month)",
                "report_expenses_by_category",
                categories_to_dataframe(view.expense_breakdown, decimals),
            )
        )
    if section in {"all", "cashflow"}:
        tables.append(
            (
                "Cash flow",
                "report_cash_flow",
                cash_flow_to_dataframe(view.cash_flow),
            )
        )
    if section in {"all", "pnl", "cashflow"}:
        tables.append(
            (
                "Monthly series",
                "report_monthly",
                report_months_to_dataframe(view.months),
            )
        )
    if section in {"all", "products"}:
        tables.append(
            (
                "Product performance",
                "report_products",
                products_to_dataframe(view.products, decimals),
            )
        )
        tables.append(
            (
                "Product summary",
                "report_product_summary",
                product_summary_to_dataframe(view.product_summary, decimals),
            )
        )
    return tables


def _handle_import(
    args: argparse.Namespace, store: SQLiteStore, parser: argparse.ArgumentParser
) -> None:
    csv_path = Path(args.csv_path)
    if not csv_path.is_file():
        parser.error(f"CSV file for import not found: {csv_path}")

    print(f"Importing {args.kind} from {csv_path} into the database...")
    try:
        rows = read_records_csv(csv_path, args.kind)
        count = import_records(store, args.kind, rows)
    except ValueError as exc:
        parser.error(str(exc))
    except StoreError as exc:
        logger.error("Import of %s failed, nothing was written: %s", csv_path, exc)
        raise SystemExit(1) from exc
    print(f"Imported {count} {args.kind} row(s).")


def _print_headline(view: DashboardView, config: AppConfig) -> None:
    stats = view.stats
    decimals = config.percent_decimals
    name = config.business_name or "SMB Pulse"
    print(f"{name} - dashboard as of {view.as_of}")
    print(
        f"Revenue: {format_amount(stats.total_revenue, config.currency)} "
        f"({format_percent_change(stats.revenue_change, decimals)}) | "
        f"Expenses: {format_amount(stats.total_expenses, config.currency)} "
        f"({format_percent_change(stats.expenses_change, decimals)}) | "
        f"Profit: {format_amount(stats.profit, config.currency)} "
        f"({format_percent_change(stats.profit_change, decimals)})"
    )


def main(argv: Optional[list[str]] = None) -> None:
    """Entry point for the SMB Pulse CLI.

    This function parses command-line arguments, loads the application
    configuration, configures logging, opens the store and runs the
    requested command: schema creation, CSV import, dashboard or report
    rendering as console tables and/or CSV files.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    # --version: short-circuit and exit early.
    if args.version:
        print(f"smb_pulse version {__version__}")
        return

    if not args.command:
        parser.error("a command is required (init-db, import, dashboard, report).")

    # 1) Load application configuration
    try:
        if args.config_path:
            config = load_app_config(args.config_path)
        else:
            config = load_app_config()
    except (FileNotFoundError, ValueError) as exc:
        parser.error(str(exc))

    # 2) Logging
    try:
        configure_logging(config.log_level, config.log_file)
    except ValueError as exc:
        parser.error(str(exc))

    # 3) Reference date
    try:
        as_of: date = parse_reference_date(args.as_of)
    except ValueError as exc:
        parser.error(str(exc))

    # 4) Store (create file and schema if needed)
    store = SQLiteStore(config.database)
    try:
        store.init_database()
    except StoreError as exc:
        logger.error("Database initialisation failed: %s", exc)
        raise SystemExit(1) from exc

    if args.command == "init-db":
        print(f"Database ready at {config.database.path}")
        return

    if args.command == "import":
        _handle_import(args, store, parser)
        return

    if not store.has_data():
        print("Warning: database is empty - use 'import' to load sales and expenses.")

    # 5) Resolve display mode: config value overridden by CLI if provided.
    display_mode = args.display_mode or config.display_mode

    if args.command == "dashboard":
        view = load_dashboard(store, as_of, config)
        if display_mode in {"table", "both"}:
            _print_headline(view, config)
        _render(_dashboard_tables(view, config), display_mode, args.output_dir)
        return

    if args.command == "report":
        report = load_report(store, as_of, config)
        print(f"Report as of {report.as_of} ({config.report.months} months)")
        _render(
            _report_tables(report, config, args.section),
            display_mode,
            args.output_dir,
        )
        return


if __name__ == "__main__":
    main()
