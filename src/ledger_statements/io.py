# Ledger Statements - Financial statement derivation engine for SMB ledgers
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
I/O module for Ledger Statements.

This module reads posted journal lines from a CSV file and normalizes them
into the structure expected by ``db.import_journal``.

Expected input formats
----------------------

Two canonical input formats are supported (column names are case-insensitive):

1) Debit / credit format
   ----------------------
       date, code, name, type, description, debit, credit

   - ``date``:        posting date (YYYY-MM-DD)
   - ``code``:        account code
   - ``name``:        account name
   - ``type``:        account type (asset, liability, equity, income, cost,
                      expense; Spanish aliases are accepted)
   - ``description``: free text label of the journal entry
   - ``debit``:       debit amount (positive number or 0)
   - ``credit``:      credit amount (positive number or 0)

2) Signed amount format
   --------------------
       date, code, name, type, description, amount

   - ``amount`` is debit-positive: a positive value is posted as a debit,
     a negative value as a credit.

An optional ``entry`` column groups lines into journal entries. The column
``label`` is accepted as an alias for ``description``.

Output schema
-------------
    - ``date``        (datetime64[ns])
    - ``code``        (str)
    - ``name``        (str)
    - ``type``        (str)
    - ``description`` (str)
    - ``debit``       (float, >= 0)
    - ``credit``      (float, >= 0)
    - ``entry``       (str, only when present in the input)
"""

import os
from typing import Union

import pandas as pd

_BASE_COLUMNS = ["date", "code", "name", "type", "description"]


def _parse_dates(d: pd.DataFrame) -> None:
    try:
        d["date"] = pd.to_datetime(d["date"], errors="raise")
    except Exception as exc:  # noqa: BLE001
        raise ValueError("Invalid values in 'date' column.") from exc
    if d["date"].isna().any():
        rows = ", ".join(str(i + 2) for i in d.index[d["date"].isna()])
        raise ValueError(f"Missing date on CSV line(s): {rows}.")


def _finalize(d: pd.DataFrame) -> pd.DataFrame:
    columns = _BASE_COLUMNS + ["debit", "credit"]
    if "entry" in d.columns:
        columns.append("entry")
    out = d[columns].copy()
    out["code"] = out["code"].astype(str).str.strip()
    out["name"] = out["name"].fillna("").astype(str).str.strip()
    out["type"] = out["type"].fillna("").astype(str).str.strip()
    out["description"] = out["description"].fillna("").astype(str)
    if "entry" in out.columns:
        out["entry"] = out["entry"].astype(str)
    return out


def read_journal_lines(path: Union[str, "os.PathLike[str]"]) -> pd.DataFrame:
    """
    Read posted journal lines from a CSV file and normalize them.

    Parameters
    ----------
    path:
        Path to the CSV file.

    Returns
    -------
    pandas.DataFrame
        Columns date, code, name, type, description, debit, credit
        (and entry when present).

    Raises
    ------
    ValueError
        If the CSV does not contain one of the supported column sets or if
        numeric/date parsing fails.
    """
    df = pd.read_csv(path, dtype=str)

    df.columns = [c.lower().strip() for c in df.columns]
    cols = set(df.columns)

    if "label" in cols and "description" not in cols:
        df = df.rename(columns={"label": "description"})
        cols = set(df.columns)

    required_debit_credit = set(_BASE_COLUMNS) | {"debit", "credit"}
    required_amount = set(_BASE_COLUMNS) | {"amount"}

    # ----- Case 1: debit / credit format ------------------------------------
    if required_debit_credit.issubset(cols):
        d = df.copy()
        _parse_dates(d)

        for col in ("debit", "credit"):
            d[col] = pd.to_numeric(d[col], errors="coerce")

        if d[["debit", "credit"]].isna().any().any():
            raise ValueError("Invalid numeric values in 'debit'/'credit' columns.")
        if (d[["debit", "credit"]] < 0).any().any():
            raise ValueError("'debit'/'credit' amounts must not be negative.")

        return _finalize(d)

    # ----- Case 2: signed amount format -------------------------------------
    if required_amount.issubset(cols):
        d = df.copy()
        _parse_dates(d)

        d["amount"] = pd.to_numeric(d["amount"], errors="coerce")
        if d["amount"].isna().any():
            raise ValueError("Invalid numeric values in 'amount' column.")

        d["debit"] = d["amount"].clip(lower=0)
        d["credit"] = (-d["amount"]).clip(lower=0)

        return _finalize(d)

    raise ValueError(
        "Invalid journal lines structure. Expected either:\n"
        "  - date, code, name, type, description, debit, credit\n"
        "  - date, code, name, type, description, amount\n"
        "(column names are case-insensitive; 'label' is accepted as an alias "
        "for 'description')."
    )
