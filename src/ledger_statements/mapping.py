# Ledger Statements - Financial statement derivation engine for SMB ledgers
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Classification tables for Ledger Statements.

This module holds the configuration data that drives account
classification. Nothing in here is algorithmic: the tables can be replaced
from a CSV file (sub-groups) or from the TOML configuration (prefix lists
and contra keywords), while the defaults reproduce the chart of accounts
used by the reference deployment.

A sub-group table defines, for each statement section:
- the ordered list of sub-groups (cash & bank, receivables, inventory...),
- which account codes to include/exclude in each sub-group,
- a display label and ordering hint.

Pattern syntax (shared with the mapping CSV files):
    '70*'   matches any code starting with '70',
    '62201' matches only the exact code '62201',
    '*'     matches every code (catch-all row, keep it last).

This module exposes:
- SubgroupRule:        one sub-group row.
- SubgroupTable:       ordered rules with lookup helpers, CSV loader and the
                       default table.
- ClassificationRules: prefix lists, keywords and the sub-group table used
                       by the classifier.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

import pandas as pd

SECTIONS = (
    "current_assets",
    "non_current_assets",
    "current_liabilities",
    "non_current_liabilities",
    "equity",
    "revenue",
    "costs",
    "expenses",
)


@dataclass(frozen=True)
class SubgroupRule:
    """Definition of a single sub-group row.

    Attributes:
        section: Statement section the rule applies to (see SECTIONS).
        key: Stable identifier of the sub-group (e.g. 'cash_and_bank').
        label: Human-readable label (e.g. 'Cash and bank').
        include: Semicolon-separated patterns of accounts to include.
        exclude: Semicolon-separated patterns of accounts to exclude.
        display_order: Ordering hint used when rendering the statement.
    """

    section: str
    key: str
    label: str
    include: str
    exclude: str = ""
    display_order: int = 0


def _to_patterns(s: Optional[str]) -> list[str]:
    """Convert a semicolon-separated pattern string into a list.

    Examples:
        "70*;71*" → ["70*", "71*"]
        None or "" → []
    """
    if s is None or str(s).strip() == "":
        return []
    return [p.strip() for p in str(s).split(";") if p.strip()]


def _match(code: str, patterns: list[str]) -> bool:
    """Return True if an account code matches at least one pattern.

    Rules:
        - '70*' matches any account starting with '70' (e.g. '701', '709').
        - '62201' matches only the exact code '62201'.
    """
    for p in patterns:
        if p.endswith("*"):
            if code.startswith(p[:-1]):
                return True
        else:
            if code == p:
                return True
    return False


def starts_with_any(code: str, prefixes: tuple[str, ...]) -> bool:
    return any(code.startswith(p) for p in prefixes)


_DEFAULT_ROWS: tuple[tuple[str, str, str, str, str], ...] = (
    ("current_assets", "cash_and_bank", "Cash and bank", "1001*;1002*;1102*", ""),
    ("current_assets", "receivables", "Accounts receivable", "11*", "1102*"),
    ("current_assets", "inventory", "Inventory", "12*", ""),
    ("current_assets", "prepaid", "Prepaid expenses", "13*", ""),
    ("current_assets", "other_current_assets", "Other current assets", "*", ""),
    ("non_current_assets", "long_term_investments", "Long-term investments", "14*", ""),
    (
        "non_current_assets",
        "property_plant_equipment",
        "Property, plant and equipment",
        "15*",
        "",
    ),
    ("non_current_assets", "intangible_assets", "Intangible assets", "16*", ""),
    (
        "non_current_assets",
        "other_non_current_assets",
        "Other non-current assets",
        "*",
        "",
    ),
    ("current_liabilities", "trade_payables", "Trade payables", "2001*", ""),
    ("current_liabilities", "other_payables", "Other payables", "20*", ""),
    ("current_liabilities", "accruals", "Accrued liabilities", "21*", ""),
    (
        "current_liabilities",
        "other_current_liabilities",
        "Other current liabilities",
        "*",
        "",
    ),
    ("non_current_liabilities", "long_term_debt", "Long-term debt", "22*", ""),
    (
        "non_current_liabilities",
        "other_non_current_liabilities",
        "Other non-current liabilities",
        "*",
        "",
    ),
    ("equity", "capital", "Share capital", "30*", ""),
    ("equity", "reserves", "Reserves", "31*", ""),
    ("equity", "retained_earnings", "Retained earnings", "32*", ""),
    ("equity", "other_equity", "Other equity", "*", ""),
    ("revenue", "sales", "Sales", "40*", ""),
    ("revenue", "other_income", "Other income", "*", ""),
    ("costs", "cost_of_sales", "Cost of sales", "50*;51*", ""),
    ("costs", "other_costs", "Other costs", "*", ""),
    ("expenses", "personnel", "Personnel expenses", "6001*", ""),
    ("expenses", "rent", "Rent", "6002*", ""),
    ("expenses", "utilities", "Utilities", "6003*", ""),
    ("expenses", "professional_fees", "Professional fees", "6004*", ""),
    ("expenses", "office_supplies", "Office supplies", "6005*", ""),
    ("expenses", "depreciation", "Depreciation and amortization", "6101*", ""),
    ("expenses", "financial_expenses", "Financial expenses", "6102*", ""),
    ("expenses", "other_expenses", "Other expenses", "*", ""),
)


class SubgroupTable:
    """In-memory representation of a sub-group table.

    Rules are evaluated in display order within their section and the first
    match wins, so specific rows ('1102*') must come before broader ones
    ('11*') and the catch-all ('*') last.
    """

    def __init__(self, rules: list[SubgroupRule]):
        for r in rules:
            if r.section not in SECTIONS:
                raise ValueError(
                    f"Unknown section {r.section!r} in sub-group rule {r.key!r}."
                )
        self.rules: tuple[SubgroupRule, ...] = tuple(
            sorted(rules, key=lambda r: (SECTIONS.index(r.section), r.display_order))
        )
        self._by_section: dict[str, tuple[SubgroupRule, ...]] = {
            s: tuple(r for r in self.rules if r.section == s) for s in SECTIONS
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SubgroupTable):
            return NotImplemented
        return self.rules == other.rules

    def __hash__(self) -> int:
        return hash(self.rules)

    @staticmethod
    def default() -> "SubgroupTable":
        """Return the default table of the reference chart of accounts."""
        rules = [
            SubgroupRule(
                section=section,
                key=key,
                label=label,
                include=include,
                exclude=exclude,
                display_order=(i + 1) * 10,
            )
            for i, (section, key, label, include, exclude) in enumerate(_DEFAULT_ROWS)
        ]
        return SubgroupTable(rules)

    @staticmethod
    def from_frame(df: pd.DataFrame) -> "SubgroupTable":
        """Build a table from a DataFrame with columns section, key, label,
        accounts_to_include, accounts_to_exclude and display_order."""
        df = df.copy()
        df.columns = [str(c).strip() for c in df.columns]
        required = {"section", "key", "label", "accounts_to_include"}
        missing = required.difference(df.columns)
        if missing:
            cols = ", ".join(sorted(missing))
            raise ValueError(f"Sub-group table is missing required column(s): {cols}")

        df = df.fillna("")
        rules: list[SubgroupRule] = []
        for i, r in enumerate(df.to_dict(orient="records")):
            order_raw = r.get("display_order", "")
            rules.append(
                SubgroupRule(
                    section=str(r["section"]).strip(),
                    key=str(r["key"]).strip(),
                    label=str(r["label"]).strip(),
                    include=str(r["accounts_to_include"]).strip(),
                    exclude=str(r.get("accounts_to_exclude", "")).strip(),
                    display_order=int(order_raw) if str(order_raw) != "" else (i + 1) * 10,
                )
            )
        return SubgroupTable(rules)

    @staticmethod
    def from_csv(path: Union[str, Path]) -> "SubgroupTable":
        """Load a sub-group table from a CSV file."""
        df = pd.read_csv(path, dtype=str)
        return SubgroupTable.from_frame(df)

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            [
                {
                    "section": r.section,
                    "key": r.key,
                    "label": r.label,
                    "accounts_to_include": r.include,
                    "accounts_to_exclude": r.exclude,
                    "display_order": r.display_order,
                }
                for r in self.rules
            ]
        )

    def section_rules(self, section: str) -> tuple[SubgroupRule, ...]:
        return self._by_section.get(section, ())

    def match(self, section: str, code: str) -> Optional[SubgroupRule]:
        """Return the first rule of ``section`` matching a normalized code."""
        for r in self.section_rules(section):
            inc = _to_patterns(r.include)
            exc = _to_patterns(r.exclude)
            if inc and _match(code, inc) and not (exc and _match(code, exc)):
                return r
        return None

    def subgroup_key(self, section: str, code: str) -> str:
        rule = self.match(section, code)
        return rule.key if rule is not None else f"other_{section}"

    def label_for(self, section: str, key: str) -> str:
        for r in self.section_rules(section):
            if r.key == key:
                return r.label
        return key.replace("_", " ").capitalize()

    def code_in_subgroup(self, section: str, key: str, code: str) -> bool:
        """True if the code is classified into ``key`` within ``section``."""
        return self.subgroup_key(section, code) == key


@dataclass(frozen=True)
class ClassificationRules:
    """
    Classification configuration.

    Attributes
    ----------
    current_asset_prefixes :
        Normalized code prefixes of current assets.
    current_liability_prefixes :
        Normalized code prefixes of current liabilities.
    cost_reclass_prefixes :
        Expense accounts starting with these prefixes are presented as cost
        of sales in the Income Statement.
    contra_revenue_keywords :
        Lower-case name fragments of sign-reversing revenue accounts
        (returns, discounts, rebates).
    contra_asset_keywords :
        Lower-case name fragments of contra assets (depreciation,
        amortization, accumulated). Tagged only, never sign-flipped.
    zero_threshold :
        Balances whose absolute value is below this threshold are dropped.
    subgroups :
        Sub-group table used to label line items.
    """

    current_asset_prefixes: tuple[str, ...] = ("10", "11", "12", "13")
    current_liability_prefixes: tuple[str, ...] = ("20", "21")
    cost_reclass_prefixes: tuple[str, ...] = ("5",)
    contra_revenue_keywords: tuple[str, ...] = ("devoluc", "descuent", "rebaj")
    contra_asset_keywords: tuple[str, ...] = (
        "deprec",
        "amortiz",
        "acumulad",
        "accumulated",
    )
    zero_threshold: float = 0.005
    subgroups: SubgroupTable = field(default_factory=SubgroupTable.default)

    def cash_patterns(self) -> list[str]:
        """Include patterns of the cash & bank sub-group."""
        rule = next(
            (
                r
                for r in self.subgroups.section_rules("current_assets")
                if r.key == "cash_and_bank"
            ),
            None,
        )
        return _to_patterns(rule.include) if rule is not None else []

    def is_cash_code(self, code: str) -> bool:
        return self.subgroups.code_in_subgroup("current_assets", "cash_and_bank", code)
