from datetime import date

import pytest

from ledger_statements.accounts import AccountType, LedgerAccountBalance
from ledger_statements.cash_flow import (
    ADJUSTMENT_LINES,
    cash_position,
    indirect_method_adjustments,
)
from ledger_statements.comparison import StatementEngine
from ledger_statements.mapping import ClassificationRules
from ledger_statements.periods import resolve_period
from ledger_statements.providers import Collaborators


def compute(ledger, **selection):
    engine = StatementEngine(Collaborators(trial_balance=ledger, cash_flow=ledger))
    return engine.compute_set("acme", resolve_period(**selection)).cash_flow


def test_cash_positions_look_back_to_inception(ledger) -> None:
    """Opening cash includes balances posted before the cutover."""
    ledger.post(date(2025, 11, 1), "1001", "Caja", "activo", debit=5000)
    ledger.post(date(2026, 1, 15), "1002", "Banco", "activo", debit=2000)
    ledger.post(date(2026, 1, 20), "1002", "Banco", "activo", credit=500)
    ledger.post(date(2026, 1, 20), "1101", "Clientes", "activo", debit=999)

    snapshot = compute(ledger, month="2026-01")

    assert snapshot.opening_cash == pytest.approx(5000.0)
    assert snapshot.closing_cash == pytest.approx(6500.0)


def test_categorized_flows_are_taken_from_the_categorizer(ledger) -> None:
    ledger.flows = {
        "operatingCashFlow": 1200.004,
        "investing_cash_flow": -300,
        "financingCashFlow": "250.5",
        "net_cash_flow": 1150.5,
    }

    snapshot = compute(ledger, month="2026-01")

    assert snapshot.operating_cash_flow == pytest.approx(1200.0)
    assert snapshot.investing_cash_flow == pytest.approx(-300.0)
    assert snapshot.financing_cash_flow == pytest.approx(250.5)
    assert snapshot.net_cash_flow == pytest.approx(1150.5)


def test_missing_flow_keys_count_as_zero(ledger) -> None:
    ledger.flows = {"operating_cash_flow": 10}

    snapshot = compute(ledger, month="2026-01")

    assert snapshot.investing_cash_flow == 0.0
    assert snapshot.financing_cash_flow == 0.0
    assert snapshot.net_cash_flow == 0.0


def test_categorizer_is_queried_over_the_effective_range(ledger) -> None:
    compute(ledger, from_date="2025-11-15", to_date="2025-12-10")

    assert ledger.cash_flow_calls == [("acme", date(2025, 12, 1), date(2025, 12, 10))]


def test_closing_minus_opening_is_not_forced_to_match_net_flow(ledger) -> None:
    ledger.post(date(2026, 1, 15), "1002", "Banco", "activo", debit=2000)
    ledger.flows = {"net_cash_flow": 10}

    snapshot = compute(ledger, month="2026-01")

    assert snapshot.closing_cash - snapshot.opening_cash == pytest.approx(2000.0)
    assert snapshot.net_cash_flow == pytest.approx(10.0)


def test_cash_position_only_counts_cash_asset_accounts() -> None:
    balances = [
        LedgerAccountBalance("1001", "Caja", AccountType.ASSET, 100.0),
        LedgerAccountBalance("1102", "Banco USD", AccountType.ASSET, 50.0),
        LedgerAccountBalance("1101", "Clientes", AccountType.ASSET, 70.0),
        LedgerAccountBalance("1001", "Caja (pasivo mal tipado)", AccountType.LIABILITY, 9.0),
    ]

    assert cash_position(balances, ClassificationRules()) == pytest.approx(150.0)


def test_indirect_method_adjustments_are_zero() -> None:
    adjustments = indirect_method_adjustments()

    assert list(adjustments) == [key for key, _ in ADJUSTMENT_LINES]
    assert set(adjustments.values()) == {0.0}
