# Ledger Statements - Financial statement derivation engine for SMB ledgers
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Cash-Flow deriver.

The operating / investing / financing subtotals come from the cash-flow
categorizer collaborator. The opening and closing cash positions are
computed independently, as cumulative balances of the cash & bank accounts
since inception:

    opening_cash  cash & bank balances over [inception, from - 1]
    closing_cash  cash & bank balances over [inception, to]

``closing_cash - opening_cash`` is not required to equal ``net_cash_flow``:
the two figures come from different sources and the indirect-method
reconciliation is not implemented. ``ADJUSTMENT_LINES`` lists the
reconciliation lines the statement shows, always at zero.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from .accounts import AccountType, LedgerAccountBalance, normalize_code
from .config import EngineSettings
from .cost_of_sales import TrialBalanceFetcher
from .mapping import ClassificationRules
from .periods import ResolvedPeriod, cumulative_range, day_before

ADJUSTMENT_LINES: tuple[tuple[str, str], ...] = (
    ("depreciation_and_amortization", "Depreciation and amortization"),
    ("change_in_receivables", "Change in accounts receivable"),
    ("change_in_inventory", "Change in inventory"),
    ("change_in_payables", "Change in accounts payable"),
)


@dataclass(frozen=True)
class CashFlowSnapshot:
    """Figures of the Cash-Flow statement for one period."""

    operating_cash_flow: float = 0.0
    investing_cash_flow: float = 0.0
    financing_cash_flow: float = 0.0
    net_cash_flow: float = 0.0
    opening_cash: float = 0.0
    closing_cash: float = 0.0

    @staticmethod
    def zero() -> "CashFlowSnapshot":
        return CashFlowSnapshot()


def indirect_method_adjustments() -> dict[str, float]:
    """Adjustments reconciling net income to operating cash (all zero)."""
    return {key: 0.0 for key, _ in ADJUSTMENT_LINES}


def is_cash_account(account: LedgerAccountBalance, rules: ClassificationRules) -> bool:
    return account.type is AccountType.ASSET and rules.is_cash_code(
        normalize_code(account.code)
    )


def cash_position(
    balances: Iterable[LedgerAccountBalance], rules: ClassificationRules
) -> float:
    return round(sum((b.balance for b in balances if is_cash_account(b, rules)), 0.0), 2)


def derive_cash_flow(
    period: ResolvedPeriod,
    categorized: Mapping[str, float],
    fetch: TrialBalanceFetcher,
    settings: EngineSettings,
) -> CashFlowSnapshot:
    """Merge categorized flows with independently derived cash positions.

    Args:
        period: Resolved period.
        categorized: Operating/investing/financing/net subtotals returned by
            ``providers.fetch_cash_flow_categories()``.
        fetch: Trial-balance fetcher used for the cumulative cash queries.
        settings: Engine settings (inception date, cash patterns).

    Raises:
        ProviderUnavailable: propagated from ``fetch``.
    """
    requested = period.requested
    opening_range = cumulative_range(day_before(requested.from_date), settings.inception)
    closing_range = cumulative_range(requested.to_date, settings.inception)

    opening_cash = (
        cash_position(fetch(opening_range), settings.rules) if opening_range else 0.0
    )
    closing_cash = (
        cash_position(fetch(closing_range), settings.rules) if closing_range else 0.0
    )

    return CashFlowSnapshot(
        operating_cash_flow=round(categorized.get("operating_cash_flow", 0.0), 2),
        investing_cash_flow=round(categorized.get("investing_cash_flow", 0.0), 2),
        financing_cash_flow=round(categorized.get("financing_cash_flow", 0.0), 2),
        net_cash_flow=round(categorized.get("net_cash_flow", 0.0), 2),
        opening_cash=opening_cash,
        closing_cash=closing_cash,
    )
