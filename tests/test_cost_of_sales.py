from datetime import date

import pytest

from ledger_statements.accounts import AccountType, LedgerAccountBalance
from ledger_statements.comparison import StatementEngine
from ledger_statements.config import EngineSettings, InventorySettings
from ledger_statements.cost_of_sales import (
    CostOfSalesSnapshot,
    InventoryMatcher,
    build_inventory_matcher,
    cost_of_goods_sold,
)
from ledger_statements.periods import resolve_period
from ledger_statements.providers import Collaborators


def compute(ledger, month="2026-01", settings=None, registry=None) -> CostOfSalesSnapshot:
    engine = StatementEngine(
        Collaborators(trial_balance=ledger, cash_flow=ledger, inventory=registry),
        settings,
    )
    return engine.compute_set("acme", resolve_period(month=month)).cost_of_sales


def test_movement_based_purchases_and_inventory_snapshots(ledger) -> None:
    """Opening and closing inventory are anchored at the ledger cutover."""
    ledger.post(date(2025, 11, 10), "1201", "Inventario", "activo", debit=5000)
    ledger.post(date(2025, 12, 5), "1201", "Inventario", "activo", debit=1000)
    ledger.post(date(2026, 1, 10), "1201", "Inventario", "activo", debit=400)
    ledger.post(date(2026, 1, 20), "1201", "Inventario", "activo", credit=300)

    snapshot = compute(ledger)

    assert snapshot.opening_inventory == pytest.approx(1000.0)
    assert snapshot.purchases_local == pytest.approx(400.0)
    assert snapshot.purchases_imports == pytest.approx(0.0)
    assert snapshot.total_purchases == pytest.approx(400.0)
    assert snapshot.indirect_costs == 0.0
    assert snapshot.available_for_sale == pytest.approx(1400.0)
    assert snapshot.closing_inventory == pytest.approx(1100.0)
    assert cost_of_goods_sold(snapshot) == pytest.approx(300.0)


def test_available_for_sale_is_exactly_the_sum_of_its_parts(ledger) -> None:
    ledger.post(date(2025, 12, 5), "1201", "Inventario", "activo", debit=0.1)
    ledger.post(date(2026, 1, 10), "1201", "Inventario", "activo", debit=0.2)

    s = compute(ledger)

    assert s.available_for_sale == s.opening_inventory + s.total_purchases + s.indirect_costs


def test_legacy_purchases_when_no_inventory_debits(ledger) -> None:
    ledger.post(date(2026, 1, 3), "5001", "Compras locales", "gasto", debit=250)
    ledger.post(date(2026, 1, 4), "5002", "Importaciones", "costo", debit=100)
    ledger.post(date(2026, 1, 5), "5101", "Costo de ventas", "costo", debit=999)
    ledger.post(date(2026, 1, 6), "6001", "Sueldos", "gasto", debit=50)

    snapshot = compute(ledger)

    assert snapshot.purchases_local == pytest.approx(250.0)
    assert snapshot.purchases_imports == pytest.approx(100.0)
    assert snapshot.total_purchases == pytest.approx(350.0)
    assert snapshot.opening_inventory == 0.0
    assert snapshot.closing_inventory == 0.0


def test_configured_inventory_accounts_replace_the_prefix_fallback(ledger) -> None:
    ledger.post(date(2026, 1, 10), "1301", "Mercadería en tránsito", "activo", debit=50)
    ledger.post(date(2026, 1, 10), "1201", "Inventario", "activo", debit=70)
    settings = EngineSettings(inventory=InventorySettings(default_account="1301"))

    snapshot = compute(ledger, settings=settings)

    assert snapshot.total_purchases == pytest.approx(50.0)
    assert snapshot.closing_inventory == pytest.approx(50.0)


def test_registry_accounts_match_by_account_id(ledger) -> None:
    ledger.post(
        date(2026, 1, 10), "1401", "Bodega norte", "activo", debit=80, account_id="acc-9"
    )
    ledger.post(date(2026, 1, 10), "1201", "Inventario", "activo", debit=70)
    ledger.inventory_accounts = {"acc-9"}

    snapshot = compute(ledger, registry=ledger)

    assert snapshot.total_purchases == pytest.approx(80.0)


def test_fallback_matcher_requires_asset_type_and_prefix() -> None:
    matcher = InventoryMatcher(identifiers=frozenset())

    assert matcher.uses_fallback
    assert matcher(LedgerAccountBalance("12.01", "Inventario", AccountType.ASSET, 1.0))
    assert not matcher(LedgerAccountBalance("1201", "Anticipo", AccountType.LIABILITY, 1.0))
    assert not matcher(LedgerAccountBalance("1301", "Otros", AccountType.ASSET, 1.0))


def test_build_matcher_merges_configuration_and_registry() -> None:
    settings = InventorySettings(item_accounts=("1205",), warehouse_accounts=("1206",))

    matcher = build_inventory_matcher(settings, ["acc-1", ""])

    assert matcher.identifiers == frozenset({"1205", "1206", "acc-1"})
    assert not matcher.uses_fallback


def test_period_before_cutover_has_zero_inventory(ledger) -> None:
    ledger.post(date(2025, 10, 10), "1201", "Inventario", "activo", debit=400)

    assert compute(ledger, month="2025-10") == CostOfSalesSnapshot.zero()
