# Ledger Statements - Financial statement derivation engine for SMB ledgers
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Core aggregation engine for Ledger Statements.

This module turns a ClassifiedStatement into the canonical set of statement
totals used by the Balance Sheet and the Income Statement.

Summation rules
---------------
- total_current_assets / total_non_current_assets / total_assets
- total_current_liabilities / total_non_current_liabilities /
  total_liabilities
- total_equity
- total_revenue: income line items after contra sign adjustment
- total_costs: cost line items plus the reclassified 5xxx expenses
- total_expenses: expense line items without the reclassified subset
- net_income = total_revenue - total_costs - total_expenses

Balance-sheet identity
----------------------
The result of the period is folded into presented equity:

    total_liabilities_and_equity = total_liabilities + total_equity + net_income

so that the statement balances against total_assets for a correctly posted
ledger.

Every subtotal is rounded to 2 decimal places and grand totals are computed
from the rounded subtotals, so the identities above hold to the cent.
"""

from collections.abc import Iterable
from dataclasses import dataclass

from .classifier import ClassifiedLineItem, ClassifiedStatement


@dataclass(frozen=True)
class StatementTotals:
    """Aggregated totals of the Balance Sheet and the Income Statement."""

    total_current_assets: float = 0.0
    total_non_current_assets: float = 0.0
    total_assets: float = 0.0
    total_current_liabilities: float = 0.0
    total_non_current_liabilities: float = 0.0
    total_liabilities: float = 0.0
    total_equity: float = 0.0
    total_revenue: float = 0.0
    total_costs: float = 0.0
    total_expenses: float = 0.0
    net_income: float = 0.0
    total_liabilities_and_equity: float = 0.0

    @staticmethod
    def zero() -> "StatementTotals":
        return StatementTotals()

    @property
    def gross_profit(self) -> float:
        return round(self.total_revenue - self.total_costs, 2)


def _sum(items: Iterable[ClassifiedLineItem]) -> float:
    return round(sum((i.amount for i in items), 0.0), 2)


def aggregate(classified: ClassifiedStatement) -> StatementTotals:
    """Sum classified line items into StatementTotals.

    Args:
        classified: Output of ``classify_trial_balance()``.

    Returns:
        A new StatementTotals instance. The same input always yields the
        same totals.
    """
    total_current_assets = _sum(classified.current_assets)
    total_non_current_assets = _sum(classified.non_current_assets)
    total_assets = round(total_current_assets + total_non_current_assets, 2)

    total_current_liabilities = _sum(classified.current_liabilities)
    total_non_current_liabilities = _sum(classified.non_current_liabilities)
    total_liabilities = round(
        total_current_liabilities + total_non_current_liabilities, 2
    )

    total_equity = _sum(classified.equity)
    total_revenue = _sum(classified.revenue)
    total_costs = _sum(classified.income_statement_costs)
    total_expenses = _sum(classified.operating_expenses)
    net_income = round(total_revenue - total_costs - total_expenses, 2)

    return StatementTotals(
        total_current_assets=total_current_assets,
        total_non_current_assets=total_non_current_assets,
        total_assets=total_assets,
        total_current_liabilities=total_current_liabilities,
        total_non_current_liabilities=total_non_current_liabilities,
        total_liabilities=total_liabilities,
        total_equity=total_equity,
        total_revenue=total_revenue,
        total_costs=total_costs,
        total_expenses=total_expenses,
        net_income=net_income,
        total_liabilities_and_equity=round(
            total_liabilities + total_equity + net_income, 2
        ),
    )
