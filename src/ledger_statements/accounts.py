# Ledger Statements - Financial statement derivation engine for SMB ledgers
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Account utilities for Ledger Statements.

This module is the ingestion boundary for trial balances. Collaborators
return loosely shaped rows (dicts with snake_case or camelCase keys, account
types written in English or Spanish); everything downstream works on the
typed ``LedgerAccountBalance`` and the canonical ``AccountType`` enum only.

Responsibilities:
- Normalize account types to the canonical set, including bilingual aliases.
- Normalize account codes (separators removed) for prefix matching.
- Parse and validate raw trial-balance rows.
- Convert a trial balance to a DataFrame for display and export.
"""

import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

import pandas as pd

logger = logging.getLogger(__name__)


class AccountType(str, Enum):
    """Canonical account types of the chart of accounts."""

    ASSET = "asset"
    LIABILITY = "liability"
    EQUITY = "equity"
    INCOME = "income"
    COST = "cost"
    EXPENSE = "expense"

    @property
    def is_debit_normal(self) -> bool:
        return self in (AccountType.ASSET, AccountType.COST, AccountType.EXPENSE)


_TYPE_ALIASES: dict[str, AccountType] = {
    "asset": AccountType.ASSET,
    "activo": AccountType.ASSET,
    "activos": AccountType.ASSET,
    "liability": AccountType.LIABILITY,
    "pasivo": AccountType.LIABILITY,
    "pasivos": AccountType.LIABILITY,
    "equity": AccountType.EQUITY,
    "patrimonio": AccountType.EQUITY,
    "capital": AccountType.EQUITY,
    "income": AccountType.INCOME,
    "ingreso": AccountType.INCOME,
    "ingresos": AccountType.INCOME,
    "cost": AccountType.COST,
    "costo": AccountType.COST,
    "costos": AccountType.COST,
    "expense": AccountType.EXPENSE,
    "gasto": AccountType.EXPENSE,
    "gastos": AccountType.EXPENSE,
}


@dataclass(frozen=True)
class LedgerAccountBalance:
    """
    Balance of one general-ledger account over a date range.

    ``balance`` follows the normal side of ``type``: debit minus credit for
    asset/cost/expense accounts, credit minus debit for the others.
    """

    code: str
    name: str
    type: AccountType
    balance: float
    total_debit: float = 0.0
    total_credit: float = 0.0
    account_id: Optional[str] = None

    @property
    def normalized_code(self) -> str:
        return normalize_code(self.code)


def normalize_code(code: Any) -> str:
    """Strip separators from an account code: '1.1-02' → '1102'."""
    return re.sub(r"[^0-9A-Za-z]", "", str(code or ""))


def normalize_account_type(raw: Any) -> Optional[AccountType]:
    """
    Map a raw account type to the canonical enum.

    Returns None for values outside the known set.
    """
    if isinstance(raw, AccountType):
        return raw
    return _TYPE_ALIASES.get(str(raw or "").strip().lower())


def _pick(row: Mapping[str, Any], candidates: Iterable[str]) -> Any:
    """Return the first present, non-None value among candidate keys."""
    for key in candidates:
        if key in row and row[key] is not None:
            return row[key]
    return None


def _to_float(value: Any, field: str, code: str) -> float:
    if value is None or value == "":
        return 0.0
    try:
        out = float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(
            f"Invalid numeric value {value!r} in '{field}' for account {code!r}."
        ) from exc
    if pd.isna(out):
        return 0.0
    return out


def parse_trial_balance_row(row: Mapping[str, Any]) -> Optional[LedgerAccountBalance]:
    """Parse one raw trial-balance row.

    Accepted keys (first match wins):
        code:          'code', 'account_code'
        name:          'name', 'account_name'
        type:          'type', 'account_type'
        balance:       'balance'
        total debit:   'total_debit', 'totalDebit'
        total credit:  'total_credit', 'totalCredit'
        account id:    'account_id', 'accountId', 'id'

    When ``balance`` is absent it is recomputed from the debit/credit totals
    on the normal side of the account type.

    Returns:
        The parsed balance, or None when the account type is not one of the
        canonical types (or a known alias).

    Raises:
        ValueError: if the code is missing or an amount is not numeric.
    """
    raw_code = _pick(row, ("code", "account_code"))
    if raw_code is None or str(raw_code).strip() == "":
        raise ValueError(f"Trial balance row without account code: {dict(row)!r}")
    code = str(raw_code).strip()

    account_type = normalize_account_type(_pick(row, ("type", "account_type")))
    if account_type is None:
        logger.debug(
            "Account %s has unclassifiable type %r, excluded from statements",
            code,
            _pick(row, ("type", "account_type")),
        )
        return None

    total_debit = _to_float(_pick(row, ("total_debit", "totalDebit")), "total_debit", code)
    total_credit = _to_float(
        _pick(row, ("total_credit", "totalCredit")), "total_credit", code
    )

    raw_balance = _pick(row, ("balance",))
    if raw_balance is None:
        if account_type.is_debit_normal:
            balance = total_debit - total_credit
        else:
            balance = total_credit - total_debit
    else:
        balance = _to_float(raw_balance, "balance", code)

    account_id = _pick(row, ("account_id", "accountId", "id"))

    return LedgerAccountBalance(
        code=code,
        name=str(_pick(row, ("name", "account_name")) or "").strip(),
        type=account_type,
        balance=balance,
        total_debit=total_debit,
        total_credit=total_credit,
        account_id=None if account_id is None else str(account_id),
    )


def parse_trial_balance(
    rows: Optional[Iterable[Mapping[str, Any]]],
) -> tuple[LedgerAccountBalance, ...]:
    """Parse raw collaborator rows into typed balances.

    Rows with an unclassifiable account type are left out. A None payload is
    treated as an empty trial balance.
    """
    if rows is None:
        return ()
    parsed: list[LedgerAccountBalance] = []
    for row in rows:
        if isinstance(row, LedgerAccountBalance):
            parsed.append(row)
            continue
        item = parse_trial_balance_row(row)
        if item is not None:
            parsed.append(item)
    return tuple(parsed)


def trial_balance_to_frame(balances: Iterable[LedgerAccountBalance]) -> pd.DataFrame:
    """Return a trial balance as a DataFrame sorted by normalized code."""
    columns = [
        "code",
        "name",
        "type",
        "total_debit",
        "total_credit",
        "balance",
        "account_id",
    ]
    records = [
        {
            "code": b.code,
            "name": b.name,
            "type": b.type.value,
            "total_debit": round(b.total_debit, 2),
            "total_credit": round(b.total_credit, 2),
            "balance": round(b.balance, 2),
            "account_id": b.account_id,
        }
        for b in balances
    ]
    if not records:
        return pd.DataFrame(columns=columns)

    df = pd.DataFrame(records, columns=columns)
    df["_sort"] = df["code"].map(normalize_code)
    return df.sort_values("_sort", kind="stable").drop(columns=["_sort"]).reset_index(
        drop=True
    )
