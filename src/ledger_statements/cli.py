# Ledger Statements - Financial statement derivation engine for SMB ledgers
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Command-Line Interface (CLI) for Ledger Statements.

This module wires together the main building blocks of Ledger Statements:

- configuration (ledger owner, cutover, classification, inventory, display),
- journal import & SQLite collaborators,
- statement engine (primary period and optional comparison period),
- view helpers (tabular rendering and CSV export).

The CLI does not implement accounting logic itself: it resolves the
requested periods, runs ``StatementEngine`` and renders the report.


High-level pipeline
-------------------

1) Load the TOML configuration (``ledger_statements_config.toml`` by
   default, or ``--config PATH``).

2) Initialize the database and optionally import journal lines from a
   CSV file (``--import``).

3) Resolve the reporting period:

   - ``--from-date`` / ``--to-date`` (custom range), otherwise
   - ``--period YYYY-MM`` (calendar month), otherwise
   - the current month.

   The optional comparison period is resolved the same way from
   ``--compare-period`` / ``--compare-from`` / ``--compare-to``.

4) Compute the statements and render the selected ones (``--statement``)
   as console tables and/or CSV files depending on the display mode.


Subcommands
-----------

statements list [--period YYYY-MM]
    List the generated-statement metadata records.

statements create --type TYPE --period YYYY-MM [--name NAME] [--status S]
    Record that a statement was generated (no figures are stored).

inventory add ACCOUNT [--source default|item|warehouse]
    Register an inventory account (code or account id).

inventory list
    Show the inventory-account registry.


CSV export
----------
For each rendered statement, a file is written with a timestamp-based name:

    balance_sheet_YYYY-MM-DD-HH-MM-SS.csv
    income_statement_YYYY-MM-DD-HH-MM-SS.csv
    cost_of_sales_YYYY-MM-DD-HH-MM-SS.csv
    cash_flow_YYYY-MM-DD-HH-MM-SS.csv
"""

import argparse
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from . import __version__
from .comparison import StatementEngine, StatementReport, StatementRequest
from .config import AppConfig, load_app_config
from .db import (
    INVENTORY_SOURCES,
    STATEMENT_STATUSES,
    STATEMENT_TYPES,
    LedgerDatabase,
    add_inventory_account,
    create_statement_record,
    import_journal,
    init_database,
    list_inventory_accounts,
    list_statement_records,
)
from .io import read_journal_lines
from .periods import ResolvedPeriod, resolve_period
from .providers import Collaborators
from .views import (
    balance_sheet_frame,
    cash_flow_frame,
    cost_of_sales_frame,
    income_statement_frame,
)

logger = logging.getLogger(__name__)

STATEMENT_CHOICES = ("balance", "income", "cost-of-sales", "cash-flow", "all")

_STATEMENT_TITLES = {
    "balance": ("balance_sheet", "Balance Sheet"),
    "income": ("income_statement", "Income Statement"),
    "cost-of-sales": ("cost_of_sales", "Cost of Sales"),
    "cash-flow": ("cash_flow", "Cash Flow Statement"),
}


def _build_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser for the CLI."""
    ap = argparse.ArgumentParser(
        prog="python -m ledger_statements.cli",
        description=(
            "Ledger Statements - derives the Balance Sheet, Income Statement, "
            "Cost of Sales and Cash Flow statements of a period from a "
            "double-entry ledger, with an optional comparison period."
        ),
    )

    ap.add_argument(
        "--version",
        action="store_true",
        help="Show the installed version of ledger_statements and exit.",
    )
    ap.add_argument(
        "--config",
        dest="config_path",
        help=(
            "Path to the TOML configuration file. If omitted, "
            "'ledger_statements_config.toml' in the current directory is used."
        ),
    )
    ap.add_argument(
        "--log-level",
        dest="log_level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING).",
    )
    ap.add_argument(
        "--owner",
        dest="owner_id",
        help="Ledger owner. Overrides ledger.owner_id from the configuration.",
    )
    ap.add_argument(
        "--import",
        dest="import_path",
        metavar="CSV_PATH",
        help=(
            "Import journal lines from the given CSV file into the database "
            "before computing the statements."
        ),
    )

    # Period selection
    ap.add_argument(
        "--period",
        metavar="YYYY-MM",
        help="Reporting month. If omitted, the current month is used.",
    )
    ap.add_argument(
        "--from-date",
        dest="from_date",
        help=(
            "Custom period start date (YYYY-MM-DD). Takes precedence over "
            "--period. Without --to-date, a single-day period."
        ),
    )
    ap.add_argument(
        "--to-date",
        dest="to_date",
        help="Custom period end date (YYYY-MM-DD).",
    )

    # Comparison period selection
    ap.add_argument(
        "--compare-period",
        dest="compare_period",
        metavar="YYYY-MM",
        help="Comparison month.",
    )
    ap.add_argument(
        "--compare-from",
        dest="compare_from",
        help="Comparison period start date (YYYY-MM-DD).",
    )
    ap.add_argument(
        "--compare-to",
        dest="compare_to",
        help="Comparison period end date (YYYY-MM-DD).",
    )

    ap.add_argument(
        "--statement",
        choices=STATEMENT_CHOICES,
        default="all",
        help="Statement(s) to render (default: all).",
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
            "mode includes 'csv'. Overrides display.output_dir."
        ),
    )

    # ------------------------------------------------------------------
    # Subcommands
    # ------------------------------------------------------------------
    subparsers = ap.add_subparsers(
        dest="command",
        metavar="command",
        help="Optional subcommands ('statements', 'inventory').",
    )

    statements_parser = subparsers.add_parser(
        "statements",
        help="Manage generated-statement metadata records.",
    )
    statements_subparsers = statements_parser.add_subparsers(
        dest="statements_command",
        metavar="action",
        required=True,
    )

    statements_list = statements_subparsers.add_parser(
        "list", help="List generated-statement records."
    )
    statements_list.add_argument(
        "--period",
        dest="record_period",
        metavar="YYYY-MM",
        help="Only list records of this period.",
    )

    statements_create = statements_subparsers.add_parser(
        "create", help="Record a generated statement."
    )
    statements_create.add_argument(
        "--type",
        dest="record_type",
        required=True,
        choices=STATEMENT_TYPES,
        help="Statement type.",
    )
    statements_create.add_argument(
        "--period",
        dest="record_period",
        required=True,
        metavar="YYYY-MM",
        help="Statement period.",
    )
    statements_create.add_argument(
        "--name",
        dest="record_name",
        help="Statement name (default: '<Type> <period>').",
    )
    statements_create.add_argument(
        "--status",
        dest="record_status",
        default="final",
        choices=STATEMENT_STATUSES,
        help="Statement status (default: final).",
    )

    inventory_parser = subparsers.add_parser(
        "inventory",
        help="Manage the inventory-account registry.",
    )
    inventory_subparsers = inventory_parser.add_subparsers(
        dest="inventory_command",
        metavar="action",
        required=True,
    )

    inventory_add = inventory_subparsers.add_parser(
        "add", help="Register an inventory account."
    )
    inventory_add.add_argument(
        "account_ref",
        help="Account code or account id.",
    )
    inventory_add.add_argument(
        "--source",
        default="default",
        choices=INVENTORY_SOURCES,
        help="Where the account comes from (default: default).",
    )

    inventory_subparsers.add_parser("list", help="List inventory accounts.")

    return ap


def _resolve_selection(
    parser: argparse.ArgumentParser,
    config: AppConfig,
    month: Optional[str],
    from_date: Optional[str],
    to_date: Optional[str],
) -> ResolvedPeriod:
    try:
        return resolve_period(
            month=month,
            from_date=from_date,
            to_date=to_date,
            cutover=config.engine.cutover,
        )
    except ValueError as exc:
        parser.error(str(exc))
        raise  # unreachable, parser.error exits


def _resolve_comparison(
    parser: argparse.ArgumentParser, config: AppConfig, args: argparse.Namespace
) -> Optional[ResolvedPeriod]:
    if not (args.compare_period or args.compare_from or args.compare_to):
        return None
    return _resolve_selection(
        parser, config, args.compare_period, args.compare_from, args.compare_to
    )


def _handle_statements_command(args: argparse.Namespace, config: AppConfig) -> None:
    owner_id = args.owner_id or config.owner_id

    if args.statements_command == "create":
        record = create_statement_record(
            config.database,
            owner_id,
            args.record_type,
            args.record_period,
            name=args.record_name,
            status=args.record_status,
        )
        print(f"Created statement record #{record.id}: {record.name} ({record.status})")
        return

    records = list_statement_records(config.database, owner_id, args.record_period)
    if not records:
        print("No statement records found.")
        return

    print()
    for r in records:
        print(f"#{r.id:<5} {r.period:<8} {r.type:<18} {r.status:<9} {r.name}")
    print()
    print(f"Total records: {len(records)}")


def _handle_inventory_command(args: argparse.Namespace, config: AppConfig) -> None:
    owner_id = args.owner_id or config.owner_id

    if args.inventory_command == "add":
        add_inventory_account(config.database, owner_id, args.account_ref, args.source)
        print(f"Registered inventory account {args.account_ref} ({args.source}).")
        return

    df = list_inventory_accounts(config.database, owner_id)
    if df.empty:
        print(
            "No inventory account registered; accounts starting with "
            f"{config.engine.inventory.fallback_prefix!r} are used."
        )
        return
    print(df.to_string(index=False))


def _render_views(
    report: StatementReport, config: AppConfig, selection: str
) -> list[tuple[str, str, object]]:
    """Return (file stem, title, DataFrame) for each selected statement."""
    rules = config.engine.rules
    builders = {
        "balance": lambda: balance_sheet_frame(report, rules),
        "income": lambda: income_statement_frame(report, rules),
        "cost-of-sales": lambda: cost_of_sales_frame(report),
        "cash-flow": lambda: cash_flow_frame(report),
    }
    wanted = [k for k in builders if selection in (k, "all")]
    views = []
    for key in wanted:
        stem, title = _STATEMENT_TITLES[key]
        views.append((stem, title, builders[key]()))
    return views


def main(argv: Optional[list[str]] = None) -> None:
    """Entry point for the Ledger Statements CLI.

    This function parses command-line arguments, loads the configuration,
    initializes the database, optionally imports journal lines from a CSV
    file, handles the subcommands, and otherwise computes the statements of
    the selected period (and comparison period) and renders them as console
    tables and/or CSV files.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(f"ledger_statements version {__version__}")
        return

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    # 1) Load configuration
    config = load_app_config(args.config_path)
    owner_id = args.owner_id or config.owner_id

    # 2) Initialize the database (create file and schema if needed)
    init_database(config.database)

    # 3) Optional import from CSV into the database
    if args.import_path:
        csv_path = Path(args.import_path)
        if not csv_path.is_file():
            parser.error(f"CSV file for --import not found: {csv_path}")

        print(f"Importing journal lines from {csv_path} into the database...")
        df_import = read_journal_lines(csv_path)
        stats = import_journal(df_import, config.database, owner_id)
        print(
            f"Imported {stats.entries_inserted} entries "
            f"({stats.lines_inserted} lines, {stats.accounts_created} new accounts)."
        )

    if args.command == "statements":
        _handle_statements_command(args, config)
        return
    if args.command == "inventory":
        _handle_inventory_command(args, config)
        return

    # 4) Resolve periods
    period = _resolve_selection(
        parser, config, args.period, args.from_date, args.to_date
    )
    comparison = _resolve_comparison(parser, config, args)

    print(f"Applied period: {period.label}")
    if period.is_empty:
        print(
            "Warning: the period ends before the ledger start date "
            f"({config.engine.cutover.isoformat()}); period activity is zero "
            "(cash positions still look back to inception)."
        )
    if comparison is not None:
        print(f"Comparison period: {comparison.label}")

    # 5) Compute
    ledger = LedgerDatabase(config.database, config.engine.rules)
    engine = StatementEngine(
        Collaborators(trial_balance=ledger, cash_flow=ledger, inventory=ledger),
        config.engine,
    )
    report = engine.compute(
        StatementRequest(owner_id=owner_id, period=period, comparison=comparison)
    )
    logger.info("Computed statements for %s (owner %s)", period.label, owner_id)

    views = _render_views(report, config, args.statement)

    # 6) Resolve display mode: config value overridden by CLI if provided.
    display_mode = args.display_mode or config.display_mode

    # 7) Render to console (table mode).
    if display_mode in {"table", "both"}:
        for _, title, df in views:
            print()
            print(f"=== {title} ===")
            print(df.to_string(index=False))

    # 8) Render to CSV files (csv mode).
    if display_mode in {"csv", "both"}:
        output_dir = Path(args.output_dir) if args.output_dir else config.output_dir
        output_dir.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y-%m-%d-%H-%M-%S")
        for stem, _, df in views:
            path = output_dir / f"{stem}_{timestamp}.csv"
            df.to_csv(path, index=False)
            print(f"Wrote {path} ({len(df)} rows)")


if __name__ == "__main__":
    main()
