# Ledger Statements - Financial statement derivation engine for SMB ledgers
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
View utilities for Ledger Statements.

This module turns a StatementReport into pandas DataFrames ready for
display or CSV export. Every view shares the same columns:

    display_order, key, level, name, amount[, comparison]

- level 0: statement totals,
- level 1: sub-groups (Balance Sheet / Income Statement) or lines,
- level 2: individual accounts.

The ``comparison`` column is only present when the report carries a
comparison period. Rows are aligned by ``key``: an account that only has a
balance in one of the two periods still gets a row, with 0.0 on the other
side.

No figure is computed here: amounts come from the report as-is, only
sub-group subtotals are summed for display.
"""

from typing import Optional

import pandas as pd

from .cash_flow import ADJUSTMENT_LINES, CashFlowSnapshot, indirect_method_adjustments
from .classifier import ClassifiedLineItem, ClassifiedStatement
from .comparison import StatementReport, StatementSet
from .cost_of_sales import CostOfSalesSnapshot, cost_of_goods_sold
from .engine import StatementTotals
from .mapping import ClassificationRules

# (section, classified attribute, title, total field)
BALANCE_SHEET_LAYOUT = (
    ("current_assets", "current_assets", "Current assets", "total_current_assets"),
    (
        "non_current_assets",
        "non_current_assets",
        "Non-current assets",
        "total_non_current_assets",
    ),
    (
        "current_liabilities",
        "current_liabilities",
        "Current liabilities",
        "total_current_liabilities",
    ),
    (
        "non_current_liabilities",
        "non_current_liabilities",
        "Non-current liabilities",
        "total_non_current_liabilities",
    ),
    ("equity", "equity", "Equity", "total_equity"),
)

INCOME_STATEMENT_LAYOUT = (
    ("revenue", "revenue", "Revenue", "total_revenue"),
    ("costs", "income_statement_costs", "Cost of sales", "total_costs"),
    ("expenses", "operating_expenses", "Operating expenses", "total_expenses"),
)

COST_OF_SALES_LINES = (
    ("opening_inventory", "Opening inventory"),
    ("purchases_local", "Local purchases"),
    ("purchases_imports", "Imports"),
    ("total_purchases", "Total purchases"),
    ("indirect_costs", "Indirect costs"),
    ("available_for_sale", "Goods available for sale"),
    ("closing_inventory", "Closing inventory"),
)

CASH_FLOW_LINES = (
    ("operating_cash_flow", "Cash flow from operating activities"),
    ("investing_cash_flow", "Cash flow from investing activities"),
    ("financing_cash_flow", "Cash flow from financing activities"),
    ("net_cash_flow", "Net cash flow"),
)


def _renumber_display_order(
    df: pd.DataFrame, start: int = 10, step: int = 10
) -> pd.DataFrame:
    """Reassign display_order to be strictly sequential: start, start+step, ...
    Preserves the current order of the lines (as it appears in df).
    """
    df = df.copy()
    df = df.reset_index(drop=True)
    df["display_order"] = [start + i * step for i in range(len(df))]
    return df


def _finalize_view(rows: list[dict[str, object]], with_comparison: bool) -> pd.DataFrame:
    """Build the DataFrame, renumber display_order and order the columns."""
    ordered = ["display_order", "key", "level", "name", "amount"]
    if with_comparison:
        ordered.append("comparison")
    df = pd.DataFrame(rows, columns=[c for c in ordered if c != "display_order"])
    df = _renumber_display_order(df)
    return df[ordered]


def _row(
    key: str,
    level: int,
    name: str,
    amount: float,
    comparison: Optional[float],
    with_comparison: bool,
) -> dict[str, object]:
    row: dict[str, object] = {
        "key": key,
        "level": level,
        "name": name,
        "amount": round(float(amount), 2),
    }
    if with_comparison:
        row["comparison"] = round(float(comparison or 0.0), 2)
    return row


def _subgroup_order(rules: ClassificationRules, section: str, key: str) -> tuple[int, str]:
    for r in rules.subgroups.section_rules(section):
        if r.key == key:
            return r.display_order, key
    # Unmatched sub-groups ('other_...') come last.
    return 10**9, key


def _section_rows(
    section: str,
    title: str,
    primary_items: tuple[ClassifiedLineItem, ...],
    comparison_items: Optional[tuple[ClassifiedLineItem, ...]],
    primary_total: float,
    comparison_total: Optional[float],
    rules: ClassificationRules,
) -> list[dict[str, object]]:
    """Rows of one section: sub-groups, their accounts, then the total."""
    with_comparison = comparison_items is not None
    comparison_items = comparison_items or ()

    # (subgroup, code) -> (name, primary amount, comparison amount)
    lines: dict[tuple[str, str], list] = {}
    for item in primary_items:
        entry = lines.setdefault((item.subgroup, item.code), [item.name, 0.0, 0.0])
        entry[1] += item.amount
    for item in comparison_items:
        entry = lines.setdefault((item.subgroup, item.code), [item.name, 0.0, 0.0])
        entry[2] += item.amount

    subgroups = sorted(
        {sg for sg, _ in lines}, key=lambda sg: _subgroup_order(rules, section, sg)
    )

    rows: list[dict[str, object]] = []
    for sg in subgroups:
        codes = sorted(code for s, code in lines if s == sg)
        sg_primary = sum(lines[(sg, c)][1] for c in codes)
        sg_comparison = sum(lines[(sg, c)][2] for c in codes)
        rows.append(
            _row(
                f"{section}.{sg}",
                1,
                rules.subgroups.label_for(section, sg),
                sg_primary,
                sg_comparison,
                with_comparison,
            )
        )
        for code in codes:
            name, amount, comparison = lines[(sg, code)]
            rows.append(
                _row(
                    f"{section}.{sg}.{code}",
                    2,
                    f"{code} - {name}" if name else code,
                    amount,
                    comparison,
                    with_comparison,
                )
            )

    rows.append(
        _row(
            f"total_{section}",
            0,
            f"Total {title.lower()}",
            primary_total,
            comparison_total,
            with_comparison,
        )
    )
    return rows


def _layout_rows(
    layout: tuple[tuple[str, str, str, str], ...],
    primary: StatementSet,
    comparison: Optional[StatementSet],
    rules: ClassificationRules,
) -> list[dict[str, object]]:
    rows: list[dict[str, object]] = []
    for section, attr, title, total_field in layout:
        primary_items = getattr(primary.classified, attr)
        comparison_items = (
            getattr(comparison.classified, attr) if comparison is not None else None
        )
        rows.extend(
            _section_rows(
                section,
                title,
                primary_items,
                comparison_items,
                getattr(primary.totals, total_field),
                getattr(comparison.totals, total_field) if comparison else None,
                rules,
            )
        )
    return rows


def balance_sheet_frame(
    report: StatementReport, rules: Optional[ClassificationRules] = None
) -> pd.DataFrame:
    """Balance Sheet view: asset, liability and equity sections.

    The closing rows show total assets and total liabilities and equity
    (which includes the result of the period).
    """
    rules = rules or ClassificationRules()
    with_comparison = report.comparison is not None
    primary, comparison = report.primary, report.comparison
    rows = _layout_rows(BALANCE_SHEET_LAYOUT, primary, comparison, rules)

    for key, name in (
        ("total_assets", "Total assets"),
        ("total_liabilities", "Total liabilities"),
        ("net_income", "Result of the period"),
        ("total_liabilities_and_equity", "Total liabilities and equity"),
    ):
        rows.append(
            _row(
                key,
                0,
                name,
                getattr(primary.totals, key),
                getattr(comparison.totals, key) if comparison else None,
                with_comparison,
            )
        )
    return _finalize_view(rows, with_comparison)


def income_statement_frame(
    report: StatementReport, rules: Optional[ClassificationRules] = None
) -> pd.DataFrame:
    """Income Statement view: revenue, cost of sales, gross profit,
    operating expenses and net income."""
    rules = rules or ClassificationRules()
    with_comparison = report.comparison is not None
    primary, comparison = report.primary, report.comparison

    rows = _layout_rows(INCOME_STATEMENT_LAYOUT[:2], primary, comparison, rules)
    rows.append(
        _row(
            "gross_profit",
            0,
            "Gross profit",
            primary.totals.gross_profit,
            comparison.totals.gross_profit if comparison else None,
            with_comparison,
        )
    )
    rows.extend(_layout_rows(INCOME_STATEMENT_LAYOUT[2:], primary, comparison, rules))
    rows.append(
        _row(
            "net_income",
            0,
            "Net income",
            primary.totals.net_income,
            comparison.totals.net_income if comparison else None,
            with_comparison,
        )
    )
    return _finalize_view(rows, with_comparison)


def cost_of_sales_frame(report: StatementReport) -> pd.DataFrame:
    """Cost-of-Sales view, closed by the cost of goods sold."""
    with_comparison = report.comparison is not None
    primary: CostOfSalesSnapshot = report.primary.cost_of_sales
    comparison = report.comparison_cost_of_sales

    rows = [
        _row(
            key,
            1,
            name,
            getattr(primary, key),
            getattr(comparison, key) if comparison else None,
            with_comparison,
        )
        for key, name in COST_OF_SALES_LINES
    ]
    rows.append(
        _row(
            "cost_of_goods_sold",
            0,
            "Cost of goods sold",
            cost_of_goods_sold(primary),
            cost_of_goods_sold(comparison) if comparison else None,
            with_comparison,
        )
    )
    return _finalize_view(rows, with_comparison)


def cash_flow_frame(report: StatementReport) -> pd.DataFrame:
    """Cash-Flow view: categorized flows, the indirect-method adjustment
    lines (always zero) and the opening / closing cash positions."""
    with_comparison = report.comparison is not None
    primary: CashFlowSnapshot = report.primary.cash_flow
    comparison = report.comparison_cash_flow
    adjustments = indirect_method_adjustments()

    rows = [
        _row(
            key,
            0 if key == "net_cash_flow" else 1,
            name,
            getattr(primary, key),
            getattr(comparison, key) if comparison else None,
            with_comparison,
        )
        for key, name in CASH_FLOW_LINES
    ]
    for key, name in ADJUSTMENT_LINES:
        rows.append(
            _row(
                f"adjustments.{key}",
                2,
                name,
                adjustments[key],
                adjustments[key] if comparison else None,
                with_comparison,
            )
        )
    for key, name in (("opening_cash", "Opening cash"), ("closing_cash", "Closing cash")):
        rows.append(
            _row(
                key,
                0,
                name,
                getattr(primary, key),
                getattr(comparison, key) if comparison else None,
                with_comparison,
            )
        )
    return _finalize_view(rows, with_comparison)


def totals_frame(report: StatementReport) -> pd.DataFrame:
    """One row per StatementTotals field."""
    with_comparison = report.comparison is not None
    primary: StatementTotals = report.primary.totals
    comparison = report.comparison_totals
    rows = [
        _row(
            name,
            0,
            name.replace("_", " ").capitalize(),
            getattr(primary, name),
            getattr(comparison, name) if comparison else None,
            with_comparison,
        )
        for name in StatementTotals.__dataclass_fields__
    ]
    return _finalize_view(rows, with_comparison)


def classified_frame(classified: ClassifiedStatement) -> pd.DataFrame:
    """Flat listing of classified line items (one row per account)."""
    sections = (
        "current_assets",
        "non_current_assets",
        "current_liabilities",
        "non_current_liabilities",
        "equity",
        "revenue",
        "costs",
        "expenses",
    )
    records = [
        {
            "section": section,
            "subgroup": item.subgroup,
            "code": item.code,
            "name": item.name,
            "amount": round(item.amount, 2),
            "contra": item.contra,
            "reclassified": item.reclassified,
        }
        for section in sections
        for item in classified.section(section)
    ]
    return pd.DataFrame(
        records,
        columns=[
            "section",
            "subgroup",
            "code",
            "name",
            "amount",
            "contra",
            "reclassified",
        ],
    )
