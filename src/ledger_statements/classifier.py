# Ledger Statements - Financial statement derivation engine for SMB ledgers
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Account classifier for Ledger Statements.

This module maps each ledger balance of a trial balance into a statement
section and a sub-group:

1. Zero-balance suppression
   ------------------------
   Balances with ``|balance| < 0.005`` are dropped entirely: they never
   appear in a section and never contribute to a total.

2. Section assignment
   ------------------
   Codes are normalized (separators removed) and then:
   - assets are current when the code starts with 10, 11, 12 or 13,
     non-current otherwise;
   - liabilities are current when the code starts with 20 or 21,
     non-current otherwise;
   - equity, income, cost and expense balances go to their own section.

3. Reclassification of miscoded expenses
   --------------------------------------
   Expense accounts whose code starts with 5 belong to the cost of sales
   for Income Statement purposes. They are stored once, in ``expenses``,
   flagged ``reclassified``; ``income_statement_costs`` and
   ``operating_expenses`` are views derived from that single list.

4. Contra accounts and sub-groups
   ------------------------------
   Presentation signs come from ``contra.presentation_amount()``; the
   sub-group label comes from the configured ``SubgroupTable``.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Optional

from .accounts import AccountType, LedgerAccountBalance, normalize_code
from .contra import presentation_amount
from .mapping import ClassificationRules, starts_with_any


@dataclass(frozen=True)
class ClassifiedLineItem:
    """One statement line, with its presentation amount.

    Attributes:
        code: Account code as posted in the ledger.
        name: Account name.
        amount: Presentation amount (contra revenue already negative).
        subgroup: Sub-group key within the section (e.g. 'cash_and_bank').
        account_id: Ledger identifier of the account, if known.
        contra: True for contra revenue and contra asset accounts.
        reclassified: True for 5xxx expense accounts presented as costs.
    """

    code: str
    name: str
    amount: float
    subgroup: str = ""
    account_id: Optional[str] = None
    contra: bool = False
    reclassified: bool = False

    @property
    def label(self) -> str:
        return f"{self.code} - {self.name}" if self.name else self.code


@dataclass(frozen=True)
class ClassifiedStatement:
    """Line items of a trial balance, grouped by statement section."""

    current_assets: tuple[ClassifiedLineItem, ...] = ()
    non_current_assets: tuple[ClassifiedLineItem, ...] = ()
    current_liabilities: tuple[ClassifiedLineItem, ...] = ()
    non_current_liabilities: tuple[ClassifiedLineItem, ...] = ()
    equity: tuple[ClassifiedLineItem, ...] = ()
    revenue: tuple[ClassifiedLineItem, ...] = ()
    costs: tuple[ClassifiedLineItem, ...] = ()
    expenses: tuple[ClassifiedLineItem, ...] = ()

    @property
    def reclassified_expenses(self) -> tuple[ClassifiedLineItem, ...]:
        return tuple(i for i in self.expenses if i.reclassified)

    @property
    def income_statement_costs(self) -> tuple[ClassifiedLineItem, ...]:
        """Costs as presented in the Income Statement."""
        return self.costs + self.reclassified_expenses

    @property
    def operating_expenses(self) -> tuple[ClassifiedLineItem, ...]:
        """Expenses as presented in the Income Statement."""
        return tuple(i for i in self.expenses if not i.reclassified)

    def section(self, name: str) -> tuple[ClassifiedLineItem, ...]:
        return getattr(self, name)

    def all_items(self) -> tuple[ClassifiedLineItem, ...]:
        return (
            self.current_assets
            + self.non_current_assets
            + self.current_liabilities
            + self.non_current_liabilities
            + self.equity
            + self.revenue
            + self.costs
            + self.expenses
        )


def section_for(account: LedgerAccountBalance, rules: ClassificationRules) -> str:
    """Return the statement section of an account."""
    code = normalize_code(account.code)
    if account.type is AccountType.ASSET:
        if starts_with_any(code, rules.current_asset_prefixes):
            return "current_assets"
        return "non_current_assets"
    if account.type is AccountType.LIABILITY:
        if starts_with_any(code, rules.current_liability_prefixes):
            return "current_liabilities"
        return "non_current_liabilities"
    if account.type is AccountType.EQUITY:
        return "equity"
    if account.type is AccountType.INCOME:
        return "revenue"
    if account.type is AccountType.COST:
        return "costs"
    return "expenses"


def is_reclassified_expense(
    account: LedgerAccountBalance, rules: ClassificationRules
) -> bool:
    return account.type is AccountType.EXPENSE and starts_with_any(
        normalize_code(account.code), rules.cost_reclass_prefixes
    )


def is_zero_balance(account: LedgerAccountBalance, rules: ClassificationRules) -> bool:
    return abs(account.balance) < rules.zero_threshold


def classify_account(
    account: LedgerAccountBalance, rules: ClassificationRules
) -> Optional[tuple[str, ClassifiedLineItem]]:
    """Classify one balance.

    Returns:
        ``(section, line_item)``, or None for a zero balance.
    """
    if is_zero_balance(account, rules):
        return None

    section = section_for(account, rules)
    reclassified = is_reclassified_expense(account, rules)
    amount, contra = presentation_amount(account, rules)

    # Reclassified expenses are labelled like the costs they are presented with.
    subgroup_section = "costs" if reclassified else section
    subgroup = rules.subgroups.subgroup_key(
        subgroup_section, normalize_code(account.code)
    )

    item = ClassifiedLineItem(
        code=account.code,
        name=account.name,
        amount=amount,
        subgroup=subgroup,
        account_id=account.account_id,
        contra=contra,
        reclassified=reclassified,
    )
    return section, item


def classify_trial_balance(
    balances: Iterable[LedgerAccountBalance],
    rules: Optional[ClassificationRules] = None,
) -> ClassifiedStatement:
    """Classify a trial balance into statement sections.

    Input order is preserved within each section.

    Args:
        balances: Parsed trial balance.
        rules: Classification configuration (defaults when omitted).

    Returns:
        A ClassifiedStatement with one tuple of line items per section.
    """
    rules = rules or ClassificationRules()
    buckets: dict[str, list[ClassifiedLineItem]] = {
        "current_assets": [],
        "non_current_assets": [],
        "current_liabilities": [],
        "non_current_liabilities": [],
        "equity": [],
        "revenue": [],
        "costs": [],
        "expenses": [],
    }

    for account in balances:
        classified = classify_account(account, rules)
        if classified is None:
            continue
        section, item = classified
        buckets[section].append(item)

    return ClassifiedStatement(**{k: tuple(v) for k, v in buckets.items()})
