# Ledger Statements - Financial statement derivation engine for SMB ledgers
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Statement pipeline and comparison engine.

This module provides the high-level entry point used to compute every
statement for a period, optionally side by side with a comparison period.

Pipeline (one period)
---------------------
1. Fetch the trial balance of the effective (cutover-clipped) range. A
   range ending before the cutover gives an empty trial balance without
   any fetch.
2. Classify the balances (sections, sub-groups, contra accounts,
   reclassified 5xxx expenses).
3. Aggregate the Balance Sheet / Income Statement totals.
4. Compute the Cost-of-Sales snapshot (two cumulative inventory fetches,
   purchases from the period trial balance).
5. Fetch the categorized cash flows and derive the cash positions.

Comparison
----------
When a comparison period is requested, the very same pipeline runs a
second time, from scratch, against its own date range. Comparison figures
are never derived from the primary ones. Both pipelines run as two
independent futures and their results are only brought together in the
returned StatementReport.

Failure handling
----------------
A collaborator failure inside a pipeline is logged and the pipeline
returns zero-valued totals and snapshots for its period. Nothing is raised
to the caller, and the other pipeline is not affected.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Optional

from .accounts import LedgerAccountBalance
from .cash_flow import CashFlowSnapshot, derive_cash_flow
from .classifier import ClassifiedStatement, classify_trial_balance
from .config import EngineSettings
from .cost_of_sales import (
    CostOfSalesSnapshot,
    build_inventory_matcher,
    compute_cost_of_sales,
)
from .engine import StatementTotals, aggregate
from .periods import PeriodRange, ResolvedPeriod, clip_to_cutover
from .providers import (
    Collaborators,
    ProviderUnavailable,
    fetch_cash_flow_categories,
    fetch_inventory_accounts,
    fetch_trial_balance,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StatementRequest:
    """What to compute: whose ledger, which period, which comparison."""

    owner_id: str
    period: ResolvedPeriod
    comparison: Optional[ResolvedPeriod] = None


@dataclass(frozen=True)
class StatementSet:
    """
    All statements of one period.

    Attributes
    ----------
    period :
        Resolved period the set was computed for.
    classified :
        Classified line items (Balance Sheet and Income Statement detail).
    totals :
        Aggregated totals.
    cost_of_sales :
        Cost-of-Sales snapshot.
    cash_flow :
        Cash-Flow snapshot.
    """

    period: ResolvedPeriod
    classified: ClassifiedStatement = field(default_factory=ClassifiedStatement)
    totals: StatementTotals = field(default_factory=StatementTotals)
    cost_of_sales: CostOfSalesSnapshot = field(default_factory=CostOfSalesSnapshot)
    cash_flow: CashFlowSnapshot = field(default_factory=CashFlowSnapshot)

    @staticmethod
    def zero(period: ResolvedPeriod) -> "StatementSet":
        """All-zero set, used when a computation fails."""
        return StatementSet(period=period)


@dataclass(frozen=True)
class StatementReport:
    """Primary statements plus the optional comparison statements."""

    primary: StatementSet
    comparison: Optional[StatementSet] = None

    @property
    def comparison_period(self) -> Optional[ResolvedPeriod]:
        return self.comparison.period if self.comparison is not None else None

    @property
    def comparison_totals(self) -> Optional[StatementTotals]:
        return self.comparison.totals if self.comparison is not None else None

    @property
    def comparison_cost_of_sales(self) -> Optional[CostOfSalesSnapshot]:
        return self.comparison.cost_of_sales if self.comparison is not None else None

    @property
    def comparison_cash_flow(self) -> Optional[CashFlowSnapshot]:
        return self.comparison.cash_flow if self.comparison is not None else None


def _run_pipeline(
    collaborators: Collaborators,
    settings: EngineSettings,
    owner_id: str,
    period: ResolvedPeriod,
) -> StatementSet:
    def fetch(rng: Optional[PeriodRange]) -> tuple[LedgerAccountBalance, ...]:
        return fetch_trial_balance(collaborators.trial_balance, owner_id, rng)

    balances = fetch(period.effective)
    classified = classify_trial_balance(balances, settings.rules)
    totals = aggregate(classified)

    registry_accounts = fetch_inventory_accounts(collaborators.inventory, owner_id)
    is_inventory = build_inventory_matcher(settings.inventory, registry_accounts)
    cost_of_sales = compute_cost_of_sales(
        period=period,
        period_balances=balances,
        fetch=fetch,
        is_inventory=is_inventory,
        settings=settings,
    )

    categorized = fetch_cash_flow_categories(
        collaborators.cash_flow, owner_id, period.effective
    )
    cash_flow = derive_cash_flow(
        period=period,
        categorized=categorized,
        fetch=fetch,
        settings=settings,
    )

    return StatementSet(
        period=period,
        classified=classified,
        totals=totals,
        cost_of_sales=cost_of_sales,
        cash_flow=cash_flow,
    )


def compute_statement_set(
    collaborators: Collaborators,
    settings: EngineSettings,
    owner_id: str,
    period: ResolvedPeriod,
) -> StatementSet:
    """Run the whole pipeline for one period.

    Collaborator failures are logged and turned into an all-zero set.
    """
    # Period activity follows the engine cutover, not the caller's.
    period = ResolvedPeriod(
        requested=period.requested,
        effective=clip_to_cutover(period.requested, settings.cutover),
    )
    try:
        return _run_pipeline(collaborators, settings, owner_id, period)
    except ProviderUnavailable as exc:
        logger.error(
            "Statement computation for %s (owner %s) failed, showing zero "
            "statements: %s",
            period.label,
            owner_id,
            exc,
        )
        return StatementSet.zero(period)


class StatementEngine:
    """Computes StatementReports against a set of collaborators."""

    def __init__(
        self,
        collaborators: Collaborators,
        settings: Optional[EngineSettings] = None,
    ):
        self.collaborators = collaborators
        self.settings = settings or EngineSettings()

    def compute_set(self, owner_id: str, period: ResolvedPeriod) -> StatementSet:
        return compute_statement_set(
            self.collaborators, self.settings, owner_id, period
        )

    def compute(self, request: StatementRequest) -> StatementReport:
        """Compute the primary statements and, if requested, the comparison.

        Without a comparison period the pipeline runs inline and
        ``StatementReport.comparison`` is None.
        """
        if request.comparison is None:
            return StatementReport(
                primary=self.compute_set(request.owner_id, request.period)
            )

        with ThreadPoolExecutor(
            max_workers=2, thread_name_prefix="statements"
        ) as executor:
            primary_future = executor.submit(
                self.compute_set, request.owner_id, request.period
            )
            comparison_future = executor.submit(
                self.compute_set, request.owner_id, request.comparison
            )
            primary = primary_future.result()
            comparison = comparison_future.result()

        return StatementReport(primary=primary, comparison=comparison)
