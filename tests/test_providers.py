from datetime import date

import pytest

from conftest import FailingProvider
from ledger_statements.periods import PeriodRange
from ledger_statements.providers import (
    CASH_FLOW_KEYS,
    ProviderUnavailable,
    fetch_cash_flow_categories,
    fetch_inventory_accounts,
    fetch_trial_balance,
)

JAN = PeriodRange(date(2026, 1, 1), date(2026, 1, 31))


def test_empty_range_makes_no_call(ledger):
    assert fetch_trial_balance(ledger, "acme", None) == ()
    assert fetch_cash_flow_categories(ledger, "acme", None) == {
        k: 0.0 for k in CASH_FLOW_KEYS
    }
    assert ledger.trial_balance_calls == []
    assert ledger.cash_flow_calls == []


def test_none_cash_flow_payload_counts_as_zero(ledger):
    ledger.flows = {}

    assert set(fetch_cash_flow_categories(ledger, "acme", JAN).values()) == {0.0}


def test_collaborator_errors_are_wrapped():
    failing = FailingProvider(OSError("disk gone"))

    with pytest.raises(ProviderUnavailable) as excinfo:
        fetch_trial_balance(failing, "acme", JAN)

    assert excinfo.value.provider == "trial balance"
    assert isinstance(excinfo.value.cause, OSError)

    with pytest.raises(ProviderUnavailable):
        fetch_cash_flow_categories(failing, "acme", JAN)
    with pytest.raises(ProviderUnavailable):
        fetch_inventory_accounts(failing, "acme")


def test_non_numeric_flow_is_a_provider_failure(ledger):
    ledger.flows = {"operating_cash_flow": "lots"}

    with pytest.raises(ProviderUnavailable):
        fetch_cash_flow_categories(ledger, "acme", JAN)


def test_inventory_registry_is_optional(ledger):
    ledger.inventory_accounts = {" 1201 ", 1205}

    assert fetch_inventory_accounts(None, "acme") == frozenset()
    assert fetch_inventory_accounts(ledger, "acme") == frozenset({"1201", "1205"})
