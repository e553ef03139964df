import sqlite3
from datetime import date
from pathlib import Path

import pandas as pd
import pytest

from ledger_statements.comparison import StatementEngine, StatementRequest
from ledger_statements.cost_of_sales import cost_of_goods_sold
from ledger_statements.db import (
    DatabaseConfig,
    LedgerDatabase,
    add_inventory_account,
    create_statement_record,
    generate_cash_flow_statement,
    get_trial_balance,
    import_journal,
    init_database,
    list_inventory_accounts,
    list_statement_records,
)
from ledger_statements.io import read_journal_lines
from ledger_statements.periods import resolve_period
from ledger_statements.providers import Collaborators

SAMPLE_JOURNAL = (
    Path(__file__).resolve().parents[1] / "data" / "examples" / "journal_sample.csv"
)

DEC = (date(2025, 12, 1), date(2025, 12, 31))
JAN = (date(2026, 1, 1), date(2026, 1, 31))


def load_sample(cfg: DatabaseConfig, owner_id: str = "demo"):
    return import_journal(read_journal_lines(SAMPLE_JOURNAL), cfg, owner_id)


def test_init_database_creates_file_and_schema(db_cfg):
    """init_database should create the SQLite file and every table."""
    assert not db_cfg.path.exists()
    init_database(db_cfg)
    assert db_cfg.path.exists()

    conn = sqlite3.connect(db_cfg.path)
    try:
        tables = {
            r[0]
            for r in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
        }
    finally:
        conn.close()

    assert {
        "accounts",
        "journal_entries",
        "journal_lines",
        "inventory_accounts",
        "financial_statements",
    } <= tables


def test_unsupported_engine_is_rejected(tmp_path):
    cfg = DatabaseConfig(engine="postgres", path=tmp_path / "x.db")

    with pytest.raises(ValueError):
        init_database(cfg)


def test_import_journal_stats(db_cfg):
    stats = load_sample(db_cfg)

    assert stats.entries_inserted == 9
    assert stats.lines_inserted == 18
    assert stats.accounts_created == 11


def test_trial_balance_uses_normal_side_and_date_range(db_cfg):
    load_sample(db_cfg)

    dec = {r["code"]: r for r in get_trial_balance(db_cfg, "demo", *DEC)}
    jan = {r["code"]: r for r in get_trial_balance(db_cfg, "demo", *JAN)}

    assert dec["1001"]["balance"] == pytest.approx(22500.0)
    assert dec["1001"]["total_debit"] == pytest.approx(27000.0)
    assert dec["1001"]["total_credit"] == pytest.approx(4500.0)
    assert dec["2001"]["balance"] == pytest.approx(8000.0)
    assert dec["4001"]["balance"] == pytest.approx(12000.0)
    assert dec["4002"]["balance"] == pytest.approx(-500.0)
    assert dec["1201"]["type"] == "asset"
    assert "2501" not in dec
    assert set(jan) == {"1001", "2501"}


def test_trial_balance_is_isolated_per_owner(db_cfg):
    load_sample(db_cfg, owner_id="demo")

    assert get_trial_balance(db_cfg, "someone-else", *DEC) == []


def test_unknown_account_type_is_stored_as_given(db_cfg):
    df = pd.DataFrame(
        [
            {
                "date": date(2025, 12, 2),
                "code": "9001",
                "name": "Cuentas de orden",
                "type": "orden",
                "description": "Memo",
                "debit": 10.0,
                "credit": 0.0,
            }
        ]
    )
    import_journal(df, db_cfg, "demo")

    rows = get_trial_balance(db_cfg, "demo", *DEC)

    assert rows[0]["type"] == "orden"
    assert rows[0]["balance"] == pytest.approx(10.0)


def test_import_requires_columns(db_cfg):
    with pytest.raises(ValueError):
        import_journal(pd.DataFrame({"date": [], "code": []}), db_cfg, "demo")


def test_import_rejects_lines_without_date(db_cfg):
    df = pd.DataFrame(
        {
            "date": [pd.Timestamp("2025-12-05"), pd.NaT],
            "code": ["1001", "4001"],
            "name": ["Caja", "Ventas"],
            "type": ["activo", "ingreso"],
            "description": ["Venta", "Venta"],
            "debit": [80.0, 0.0],
            "credit": [0.0, 80.0],
        }
    )

    with pytest.raises(ValueError, match="without a date"):
        import_journal(df, db_cfg, "demo")
    assert get_trial_balance(db_cfg, "demo", *DEC) == []


def test_cash_flow_categorized_by_entry_description(db_cfg):
    load_sample(db_cfg)

    dec = generate_cash_flow_statement(db_cfg, "demo", *DEC)
    jan = generate_cash_flow_statement(db_cfg, "demo", *JAN)

    assert dec["operating_cash_flow"] == pytest.approx(5500.0)
    assert dec["investing_cash_flow"] == pytest.approx(-3000.0)
    assert dec["financing_cash_flow"] == pytest.approx(20000.0)
    assert dec["net_cash_flow"] == pytest.approx(22500.0)
    assert jan["financing_cash_flow"] == pytest.approx(10000.0)
    assert jan["operating_cash_flow"] == 0.0


def test_inventory_registry(db_cfg):
    add_inventory_account(db_cfg, "demo", "1201")
    add_inventory_account(db_cfg, "demo", "1201")
    add_inventory_account(db_cfg, "demo", "1205", source="warehouse")

    df = list_inventory_accounts(db_cfg, "demo")

    assert list(df["account_ref"]) == ["1201", "1205"]
    assert list(df["source"]) == ["default", "warehouse"]
    assert LedgerDatabase(db_cfg).get_inventory_accounts("demo") == {"1201", "1205"}

    with pytest.raises(ValueError):
        add_inventory_account(db_cfg, "demo", "1201", source="shelf")


def test_statement_records(db_cfg):
    first = create_statement_record(db_cfg, "demo", "balance_sheet", "2025-12")
    create_statement_record(
        db_cfg, "demo", "cash_flow", "2026-01", name="Cash January", status="draft"
    )

    assert first.name == "Balance Sheet 2025-12"
    assert first.status == "final"

    all_records = list_statement_records(db_cfg, "demo")
    december = list_statement_records(db_cfg, "demo", period="2025-12")

    assert [r.name for r in all_records] == ["Cash January", "Balance Sheet 2025-12"]
    assert [r.id for r in december] == [first.id]

    with pytest.raises(ValueError):
        create_statement_record(db_cfg, "demo", "ratios", "2025-12")
    with pytest.raises(ValueError):
        create_statement_record(db_cfg, "demo", "balance_sheet", "2025-12", status="x")


def test_ledger_database_feeds_the_statement_engine(db_cfg):
    load_sample(db_cfg)
    ledger = LedgerDatabase(db_cfg)
    engine = StatementEngine(
        Collaborators(trial_balance=ledger, cash_flow=ledger, inventory=ledger)
    )

    report = engine.compute(
        StatementRequest(owner_id="demo", period=resolve_period(month="2025-12"))
    )
    totals = report.primary.totals
    cos = report.primary.cost_of_sales
    cash = report.primary.cash_flow

    assert totals.total_current_assets == pytest.approx(30000.0)
    assert totals.total_non_current_assets == pytest.approx(3000.0)
    assert totals.total_liabilities == pytest.approx(8000.0)
    assert totals.total_equity == pytest.approx(20000.0)
    assert totals.total_revenue == pytest.approx(11500.0)
    assert totals.total_costs == pytest.approx(5000.0)
    assert totals.total_expenses == pytest.approx(1500.0)
    assert totals.net_income == pytest.approx(5000.0)
    assert totals.total_assets == totals.total_liabilities_and_equity

    assert cos.opening_inventory == 0.0
    assert cos.total_purchases == pytest.approx(8000.0)
    assert cos.closing_inventory == pytest.approx(3000.0)
    assert cost_of_goods_sold(cos) == pytest.approx(5000.0)

    assert cash.opening_cash == 0.0
    assert cash.closing_cash == pytest.approx(22500.0)
    assert cash.net_cash_flow == pytest.approx(22500.0)
