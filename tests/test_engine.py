from datetime import date

import pytest

from conftest import DEC_2025
from ledger_statements.accounts import AccountType, LedgerAccountBalance
from ledger_statements.classifier import classify_trial_balance
from ledger_statements.comparison import StatementEngine, StatementRequest
from ledger_statements.engine import StatementTotals, aggregate
from ledger_statements.periods import resolve_period
from ledger_statements.providers import Collaborators


def bal(code, name, type_, balance) -> LedgerAccountBalance:
    return LedgerAccountBalance(code, name, AccountType(type_), balance)


def test_aggregate_sums_sections_and_derives_net_income() -> None:
    totals = aggregate(
        classify_trial_balance(
            [
                bal("1001", "Caja", "asset", 1000.10),
                bal("1501", "Equipo", "asset", 2000.20),
                bal("2001", "Proveedores", "liability", 300.0),
                bal("2501", "Préstamo", "liability", 700.0),
                bal("3001", "Capital", "equity", 1500.0),
                bal("4001", "Ventas", "income", 1200.0),
                bal("4002", "Descuentos sobre ventas", "income", 200.0),
                bal("5101", "Costo de ventas", "cost", 300.0),
                bal("5001", "Compras", "expense", 100.0),
                bal("6001", "Sueldos", "expense", 99.70),
            ]
        )
    )

    assert totals.total_current_assets == pytest.approx(1000.10)
    assert totals.total_non_current_assets == pytest.approx(2000.20)
    assert totals.total_assets == pytest.approx(3000.30)
    assert totals.total_current_liabilities == pytest.approx(300.0)
    assert totals.total_non_current_liabilities == pytest.approx(700.0)
    assert totals.total_liabilities == pytest.approx(1000.0)
    assert totals.total_equity == pytest.approx(1500.0)
    assert totals.total_revenue == pytest.approx(1000.0)
    assert totals.total_costs == pytest.approx(400.0)
    assert totals.total_expenses == pytest.approx(99.70)
    assert totals.gross_profit == pytest.approx(600.0)
    assert totals.net_income == pytest.approx(500.30)
    assert totals.total_liabilities_and_equity == pytest.approx(3000.30)


def test_totals_identities_hold_to_the_cent() -> None:
    totals = aggregate(
        classify_trial_balance(
            [
                bal("1001", "Caja", "asset", 0.1),
                bal("1002", "Banco", "asset", 0.2),
                bal("4001", "Ventas", "income", 0.3),
            ]
        )
    )

    assert totals.total_assets == round(
        totals.total_current_assets + totals.total_non_current_assets, 2
    )
    assert totals.net_income == round(
        totals.total_revenue - totals.total_costs - totals.total_expenses, 2
    )
    assert totals.total_assets == totals.total_liabilities_and_equity == 0.3


def test_empty_trial_balance_aggregates_to_zero() -> None:
    assert aggregate(classify_trial_balance([])) == StatementTotals.zero()


def test_end_to_end_statement_of_a_month(ledger) -> None:
    """Cash 10,000 / revenue 50,000 / 5xxx expense 20,000 in December."""
    day = date(2025, 12, 15)
    ledger.post(day, "1102", "Banco", "activo", debit=10000)
    ledger.post(day, "4001", "Ventas", "ingreso", credit=50000)
    ledger.post(day, "5001", "Compras locales", "gasto", debit=20000)

    engine = StatementEngine(Collaborators(trial_balance=ledger, cash_flow=ledger))
    report = engine.compute(
        StatementRequest(owner_id="acme", period=resolve_period(month="2025-12"))
    )
    totals = report.primary.totals

    assert totals.total_current_assets == pytest.approx(10000.0)
    assert totals.total_revenue == pytest.approx(50000.0)
    assert totals.total_costs == pytest.approx(20000.0)
    assert totals.total_expenses == pytest.approx(0.0)
    assert totals.net_income == pytest.approx(30000.0)
    assert report.comparison is None
    assert ("acme", *DEC_2025) in ledger.trial_balance_calls


def test_period_before_cutover_is_all_zero_without_activity_fetch(ledger) -> None:
    ledger.post(date(2025, 10, 5), "4001", "Ventas", "ingreso", credit=999)

    engine = StatementEngine(Collaborators(trial_balance=ledger, cash_flow=ledger))
    report = engine.compute(
        StatementRequest(owner_id="acme", period=resolve_period(month="2025-10"))
    )

    assert report.primary.totals == StatementTotals.zero()
    assert ledger.cash_flow_calls == []
    # Only the cumulative cash snapshots reach the provider.
    assert all(call[1] == date(1900, 1, 1) for call in ledger.trial_balance_calls)


def test_straddling_period_only_counts_activity_after_cutover(ledger) -> None:
    ledger.post(date(2025, 11, 20), "4001", "Ventas", "ingreso", credit=100)
    ledger.post(date(2025, 12, 2), "4001", "Ventas", "ingreso", credit=40)

    engine = StatementEngine(Collaborators(trial_balance=ledger, cash_flow=ledger))
    period = resolve_period(from_date="2025-11-01", to_date="2025-12-31")
    report = engine.compute(StatementRequest(owner_id="acme", period=period))

    assert report.primary.totals.total_revenue == pytest.approx(40.0)


def test_recomputing_the_same_request_gives_identical_totals(ledger) -> None:
    ledger.post(date(2025, 12, 4), "1001", "Caja", "activo", debit=0.1)
    ledger.post(date(2025, 12, 4), "1002", "Banco", "activo", debit=0.2)
    ledger.post(date(2025, 12, 4), "4001", "Ventas", "ingreso", credit=0.3)
    engine = StatementEngine(Collaborators(trial_balance=ledger, cash_flow=ledger))
    request = StatementRequest(
        owner_id="acme",
        period=resolve_period(month="2025-12"),
        comparison=resolve_period(from_date="2025-12-01"),
    )

    first = engine.compute(request)
    second = engine.compute(request)

    assert first.primary.totals == second.primary.totals
    assert first.comparison.totals == second.comparison.totals
    assert first == second
