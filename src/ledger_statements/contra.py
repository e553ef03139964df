# Ledger Statements - Financial statement derivation engine for SMB ledgers
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Contra-account detection.

Revenue accounts named after returns, discounts or rebates reduce revenue:
their presentation amount is always ``-abs(balance)``, whatever side the
ledger posted them on. Depreciation, amortization and accumulated-value
asset accounts are tagged as contra assets for identification only; their
sign is left untouched because the asset sub-groups already net them.
"""

from .accounts import AccountType, LedgerAccountBalance
from .mapping import ClassificationRules


def _name_matches(name: str, keywords: tuple[str, ...]) -> bool:
    lowered = name.lower()
    return any(k in lowered for k in keywords)


def is_contra_revenue(name: str, rules: ClassificationRules) -> bool:
    return _name_matches(name, rules.contra_revenue_keywords)


def is_contra_asset(name: str, rules: ClassificationRules) -> bool:
    return _name_matches(name, rules.contra_asset_keywords)


def presentation_amount(
    account: LedgerAccountBalance, rules: ClassificationRules
) -> tuple[float, bool]:
    """Return ``(amount, contra)`` for an account.

    - income: ``-abs(balance)`` for contra revenue, ``abs(balance)``
      otherwise;
    - asset: balance unchanged, contra flag from the name;
    - any other type: balance unchanged, never contra.
    """
    if account.type is AccountType.INCOME:
        if is_contra_revenue(account.name, rules):
            return -abs(account.balance), True
        return abs(account.balance), False
    if account.type is AccountType.ASSET:
        return account.balance, is_contra_asset(account.name, rules)
    return account.balance, False
