# Ledger Statements - Financial statement derivation engine for SMB ledgers
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
External collaborators of the statement engine.

The engine never reads storage directly. It talks to three collaborators:

- a trial-balance provider (balances per account over a date range),
- a cash-flow categorizer (operating / investing / financing subtotals),
- an optional inventory-account registry.

``db.LedgerDatabase`` implements all three on top of SQLite; tests and
other applications can pass any object with the same methods.

The ``fetch_*`` helpers below are the only places where the engine calls a
collaborator. Any exception raised there, or any malformed payload, is
re-raised as ``ProviderUnavailable`` so that the pipeline can degrade to
zero-valued results in a single place.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date
from typing import Any, Optional, Protocol

from .accounts import LedgerAccountBalance, parse_trial_balance
from .periods import PeriodRange

CASH_FLOW_KEYS = (
    "operating_cash_flow",
    "investing_cash_flow",
    "financing_cash_flow",
    "net_cash_flow",
)

_CAMEL_KEYS = {
    "operating_cash_flow": "operatingCashFlow",
    "investing_cash_flow": "investingCashFlow",
    "financing_cash_flow": "financingCashFlow",
    "net_cash_flow": "netCashFlow",
}


class ProviderUnavailable(Exception):
    """A collaborator call failed or returned an unusable payload."""

    def __init__(self, provider: str, cause: Optional[BaseException] = None):
        self.provider = provider
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"{provider} unavailable{detail}")


class TrialBalanceProvider(Protocol):
    def get_trial_balance(
        self, owner_id: str, from_date: date, to_date: date
    ) -> Iterable[Mapping[str, Any]]: ...


class CashFlowCategorizer(Protocol):
    def generate_cash_flow_statement(
        self, owner_id: str, from_date: date, to_date: date
    ) -> Mapping[str, Any]: ...


class InventoryAccountRegistry(Protocol):
    def get_inventory_accounts(self, owner_id: str) -> Iterable[str]: ...


@dataclass(frozen=True)
class Collaborators:
    """Bundle of collaborators used by one engine instance."""

    trial_balance: TrialBalanceProvider
    cash_flow: CashFlowCategorizer
    inventory: Optional[InventoryAccountRegistry] = None


def fetch_trial_balance(
    provider: TrialBalanceProvider,
    owner_id: str,
    period: Optional[PeriodRange],
) -> tuple[LedgerAccountBalance, ...]:
    """Fetch and parse a trial balance.

    A None period stands for an empty range: no call is made and an empty
    trial balance is returned.

    Raises:
        ProviderUnavailable: if the call fails or a row cannot be parsed.
    """
    if period is None:
        return ()
    try:
        rows = provider.get_trial_balance(owner_id, period.from_date, period.to_date)
        return parse_trial_balance(rows)
    except Exception as exc:  # noqa: BLE001
        raise ProviderUnavailable("trial balance", exc) from exc


def _flow_value(payload: Mapping[str, Any], key: str) -> float:
    value = payload.get(key)
    if value is None:
        value = payload.get(_CAMEL_KEYS[key])
    if value is None or value == "":
        return 0.0
    return float(value)


def fetch_cash_flow_categories(
    categorizer: CashFlowCategorizer,
    owner_id: str,
    period: Optional[PeriodRange],
) -> dict[str, float]:
    """Fetch the categorized cash-flow subtotals for a period.

    Missing keys count as zero. A None period returns all zeros without a
    call.

    Raises:
        ProviderUnavailable: if the call fails or a value is not numeric.
    """
    if period is None:
        return {k: 0.0 for k in CASH_FLOW_KEYS}
    try:
        payload = categorizer.generate_cash_flow_statement(
            owner_id, period.from_date, period.to_date
        )
        payload = payload or {}
        return {k: _flow_value(payload, k) for k in CASH_FLOW_KEYS}
    except Exception as exc:  # noqa: BLE001
        raise ProviderUnavailable("cash flow categorizer", exc) from exc


def fetch_inventory_accounts(
    registry: Optional[InventoryAccountRegistry], owner_id: str
) -> frozenset[str]:
    """Return the registry's inventory account identifiers (empty if none).

    Raises:
        ProviderUnavailable: if the registry call fails.
    """
    if registry is None:
        return frozenset()
    try:
        return frozenset(
            str(a).strip() for a in (registry.get_inventory_accounts(owner_id) or [])
        )
    except Exception as exc:  # noqa: BLE001
        raise ProviderUnavailable("inventory account registry", exc) from exc
