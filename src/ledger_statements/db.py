# Ledger Statements - Financial statement derivation engine for SMB ledgers
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.


"""
Database layer for Ledger Statements.

This module provides the SQLite store behind the statement engine's
collaborators. It is responsible for:

- Initializing the database schema.
- Importing posted journal lines (accounts are created on the fly).
- Computing trial balances over an inclusive date range.
- Categorizing cash movements into operating / investing / financing.
- Maintaining the inventory-account registry.
- Maintaining the statement metadata registry ("generated statements").

The statement engine itself never writes here: statement numbers are
recomputed every time, only metadata records are persisted.

------------------------------------------------------------------------------
Schema Overview
------------------------------------------------------------------------------

1) accounts
   Chart of accounts, one row per (owner_id, code).

   - id             INTEGER PRIMARY KEY AUTOINCREMENT
   - owner_id       TEXT NOT NULL
   - code           TEXT NOT NULL
   - name           TEXT NOT NULL
   - type           TEXT NOT NULL   -- canonical type, or the raw value when
                                       it cannot be normalized
   - normal_balance TEXT NOT NULL   -- "debit" | "credit"

2) journal_entries
   - id, owner_id, entry_date (ISO date), description, reference, created_at

3) journal_lines
   - id, entry_id, account_id, debit_cents, credit_cents
   Amounts are stored as non-negative integer cents.

4) inventory_accounts
   Inventory-account registry.
   - id, owner_id, account_ref (code or account id), source
     ("default" | "item" | "warehouse")

5) financial_statements
   Statement metadata registry; carries no computed figures.
   - id, owner_id, type, period ("YYYY-MM"), name, status, created_at

------------------------------------------------------------------------------
SQLite Notes
------------------------------------------------------------------------------

- All timestamps are stored as ISO-8601 text (UTC).
- Foreign key enforcement is explicitly enabled.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any

import pandas as pd

from .accounts import AccountType, normalize_account_type, normalize_code
from .mapping import ClassificationRules

# ---------------------------------------------------------------------------
# Dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DatabaseConfig:
    """
    Database configuration for Ledger Statements.

    Attributes
    ----------
    engine:
        Database engine identifier. Only "sqlite" is supported.
    path:
        Path to the SQLite database file.
    """

    engine: str
    path: Path


@dataclass(frozen=True)
class ImportStats:
    """
    Summary of an import of journal lines into the database.

    Attributes
    ----------
    entries_inserted:
        Number of journal entries created.
    lines_inserted:
        Number of journal lines created.
    accounts_created:
        Number of accounts added to the chart of accounts.
    """

    entries_inserted: int
    lines_inserted: int
    accounts_created: int


STATEMENT_TYPES = (
    "balance_sheet",
    "income_statement",
    "cost_of_sales",
    "cash_flow",
    "equity_statement",
)

STATEMENT_STATUSES = ("draft", "final", "approved")

_DEFAULT_STATEMENT_NAMES = {
    "balance_sheet": "Balance Sheet",
    "income_statement": "Income Statement",
    "cost_of_sales": "Cost of Sales Statement",
    "cash_flow": "Cash Flow Statement",
    "equity_statement": "Statement of Changes in Equity",
}

INVENTORY_SOURCES = ("default", "item", "warehouse")


@dataclass(frozen=True)
class StatementRecord:
    """Metadata of a generated statement (no figures are stored)."""

    id: int
    owner_id: str
    type: str
    period: str
    name: str
    status: str
    created_at: str


# Entry-description keywords used to categorize cash movements.
OPERATING_KEYWORDS = ("venta", "cobro", "ingreso", "nómina", "alquiler", "servicios")
INVESTING_KEYWORDS = ("compra activo", "inversión", "equipo")
FINANCING_KEYWORDS = ("préstamo", "capital", "dividendo")


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _ensure_sqlite(cfg: DatabaseConfig) -> None:
    """Raise if the configuration does not refer to a supported engine."""
    if cfg.engine.lower() != "sqlite":
        msg = (
            f"Unsupported database engine: {cfg.engine!r}. "
            "Only 'sqlite' is supported for now."
        )
        raise ValueError(msg)


def _connect(cfg: DatabaseConfig) -> sqlite3.Connection:
    """
    Open a SQLite connection with foreign keys enabled.

    The caller is responsible for closing the connection.
    """
    _ensure_sqlite(cfg)
    conn = sqlite3.connect(cfg.path)
    conn.execute("PRAGMA foreign_keys = ON;")
    return conn


def _create_schema_if_needed(conn: sqlite3.Connection) -> None:
    """
    Create tables and indexes if they do not exist yet.

    This function is idempotent and can be called multiple times safely.
    """
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS accounts (
            id             INTEGER PRIMARY KEY AUTOINCREMENT,
            owner_id       TEXT    NOT NULL,
            code           TEXT    NOT NULL,
            name           TEXT    NOT NULL,
            type           TEXT    NOT NULL,
            normal_balance TEXT    NOT NULL,

            UNIQUE (owner_id, code)
        );
        """
    )

    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS journal_entries (
            id          INTEGER PRIMARY KEY AUTOINCREMENT,
            owner_id    TEXT    NOT NULL,
            entry_date  TEXT    NOT NULL,  -- ISO date 'YYYY-MM-DD'
            description TEXT,
            reference   TEXT,
            created_at  TEXT    NOT NULL
        );
        """
    )

    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS journal_lines (
            id           INTEGER PRIMARY KEY AUTOINCREMENT,
            entry_id     INTEGER NOT NULL,
            account_id   INTEGER NOT NULL,
            debit_cents  INTEGER NOT NULL DEFAULT 0,
            credit_cents INTEGER NOT NULL DEFAULT 0,

            FOREIGN KEY (entry_id) REFERENCES journal_entries(id),
            FOREIGN KEY (account_id) REFERENCES accounts(id)
        );
        """
    )

    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS inventory_accounts (
            id          INTEGER PRIMARY KEY AUTOINCREMENT,
            owner_id    TEXT    NOT NULL,
            account_ref TEXT    NOT NULL,
            source      TEXT    NOT NULL DEFAULT 'default',

            UNIQUE (owner_id, account_ref, source)
        );
        """
    )

    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS financial_statements (
            id         INTEGER PRIMARY KEY AUTOINCREMENT,
            owner_id   TEXT    NOT NULL,
            type       TEXT    NOT NULL,
            period     TEXT    NOT NULL,
            name       TEXT    NOT NULL,
            status     TEXT    NOT NULL DEFAULT 'final',
            created_at TEXT    NOT NULL
        );
        """
    )

    conn.execute(
        """
        CREATE INDEX IF NOT EXISTS idx_journal_entries_owner_date
            ON journal_entries(owner_id, entry_date);
        """
    )

    conn.execute(
        """
        CREATE INDEX IF NOT EXISTS idx_journal_lines_entry
            ON journal_lines(entry_id);
        """
    )

    conn.commit()


def _ensure_dataframe_columns(df: pd.DataFrame) -> None:
    """Validate that the DataFrame contains the expected columns."""
    required = {"date", "code", "name", "type", "description", "debit", "credit"}
    missing = required.difference(df.columns)
    if missing:
        cols = ", ".join(sorted(missing))
        msg = f"DataFrame is missing required column(s): {cols}"
        raise ValueError(msg)
    if df["date"].isna().any():
        raise ValueError("Journal lines without a date cannot be imported.")


def _to_iso_date(value) -> str:
    """Convert a date-like value to ISO 'YYYY-MM-DD' string."""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, pd.Timestamp):
        return value.date().isoformat()
    return date.fromisoformat(str(value)[:10]).isoformat()


def _now_utc_iso() -> str:
    """Return the current UTC datetime as ISO string."""
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def _to_cents(value: Any) -> int:
    if value is None or pd.isna(value):
        return 0
    return int(round(float(value) * 100))


def _categorize_cash_line(description: str) -> str:
    """Return 'operating', 'investing' or 'financing' for a cash movement."""
    text = (description or "").lower()
    if any(k in text for k in OPERATING_KEYWORDS):
        return "operating"
    if any(k in text for k in INVESTING_KEYWORDS):
        return "investing"
    if any(k in text for k in FINANCING_KEYWORDS):
        return "financing"
    return "operating"


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def init_database(cfg: DatabaseConfig) -> None:
    """
    Initialize the database schema if needed.

    - Creates the SQLite file if it does not exist.
    - Creates tables and indexes if they are missing.
    - This function is idempotent: calling it multiple times is safe.

    Raises
    ------
    ValueError
        If cfg.engine is not supported.
    sqlite3.Error
        If schema creation fails.
    """
    cfg.path.parent.mkdir(parents=True, exist_ok=True)

    conn = _connect(cfg)
    try:
        _create_schema_if_needed(conn)
    finally:
        conn.close()


def _get_or_create_account(
    cur: sqlite3.Cursor, owner_id: str, code: str, name: str, raw_type: str
) -> tuple[int, bool]:
    cur.execute(
        "SELECT id FROM accounts WHERE owner_id = ? AND code = ?;",
        (owner_id, code),
    )
    row = cur.fetchone()
    if row is not None:
        return int(row[0]), False

    account_type = normalize_account_type(raw_type)
    # Unknown types are stored as given; the engine leaves them out.
    stored_type = account_type.value if account_type is not None else str(raw_type)
    normal_balance = (
        "debit" if account_type is None or account_type.is_debit_normal else "credit"
    )
    cur.execute(
        """
        INSERT INTO accounts (owner_id, code, name, type, normal_balance)
        VALUES (?, ?, ?, ?, ?);
        """,
        (owner_id, code, name, stored_type, normal_balance),
    )
    return int(cur.lastrowid), True


def import_journal(
    df: pd.DataFrame,
    cfg: DatabaseConfig,
    owner_id: str,
) -> ImportStats:
    """
    Import posted journal lines into the database.

    Parameters
    ----------
    df:
        Journal lines as returned by ``io.read_journal_lines``, with columns
        date, code, name, type, description, debit, credit and an optional
        'entry' column grouping lines into journal entries. Without it,
        lines sharing the same date and description form one entry.
    cfg:
        Database configuration.
    owner_id:
        Owner of the ledger.

    Behavior
    --------
    - Unknown account codes are added to the chart of accounts with the
      type given on their first line.
    - Lines are stored as-is; the import does not check that entries
      balance (posting validation is out of scope).

    Returns
    -------
    ImportStats
    """
    _ensure_dataframe_columns(df)
    init_database(cfg)

    created_at = _now_utc_iso()
    if "entry" in df.columns:
        group_keys = ["entry"]
    else:
        group_keys = ["date", "description"]

    conn = _connect(cfg)
    try:
        cur = conn.cursor()
        entries_inserted = 0
        lines_inserted = 0
        accounts_created = 0

        grouped = df.fillna({"description": ""}).groupby(
            group_keys, sort=False, dropna=False
        )
        for _, lines in grouped:
            first = lines.iloc[0]
            reference = str(first["entry"]) if "entry" in lines.columns else None
            cur.execute(
                """
                INSERT INTO journal_entries (
                    owner_id, entry_date, description, reference, created_at
                )
                VALUES (?, ?, ?, ?, ?);
                """,
                (
                    owner_id,
                    _to_iso_date(first["date"]),
                    str(first["description"]),
                    reference,
                    created_at,
                ),
            )
            entry_id = cur.lastrowid
            entries_inserted += 1

            for _, line in lines.iterrows():
                account_id, created = _get_or_create_account(
                    cur,
                    owner_id,
                    str(line["code"]).strip(),
                    str(line["name"]).strip(),
                    str(line["type"]),
                )
                accounts_created += int(created)
                cur.execute(
                    """
                    INSERT INTO journal_lines (
                        entry_id, account_id, debit_cents, credit_cents
                    )
                    VALUES (?, ?, ?, ?);
                    """,
                    (
                        entry_id,
                        account_id,
                        _to_cents(line["debit"]),
                        _to_cents(line["credit"]),
                    ),
                )
                lines_inserted += 1

        conn.commit()
    finally:
        conn.close()

    return ImportStats(
        entries_inserted=entries_inserted,
        lines_inserted=lines_inserted,
        accounts_created=accounts_created,
    )


def get_trial_balance(
    cfg: DatabaseConfig,
    owner_id: str,
    from_date: date,
    to_date: date,
) -> list[dict[str, Any]]:
    """
    Compute the trial balance of an owner over an inclusive date range.

    Only accounts with postings in the range are returned. The balance is
    computed on the account's normal side:
    debit - credit for debit-normal accounts, credit - debit otherwise.

    Returns
    -------
    list[dict]
        One dict per account with keys account_id, code, name, type,
        total_debit, total_credit, balance.
    """
    init_database(cfg)

    conn = _connect(cfg)
    try:
        cur = conn.cursor()
        cur.execute(
            """
            SELECT a.id, a.code, a.name, a.type, a.normal_balance,
                   SUM(l.debit_cents), SUM(l.credit_cents)
              FROM journal_lines l
              JOIN journal_entries e ON e.id = l.entry_id
              JOIN accounts a ON a.id = l.account_id
             WHERE e.owner_id = ?
               AND a.owner_id = ?
               AND e.entry_date BETWEEN ? AND ?
             GROUP BY a.id
             ORDER BY a.code;
            """,
            (owner_id, owner_id, from_date.isoformat(), to_date.isoformat()),
        )
        rows = cur.fetchall()
    finally:
        conn.close()

    out: list[dict[str, Any]] = []
    for account_id, code, name, acc_type, normal_balance, debit, credit in rows:
        total_debit = (debit or 0) / 100.0
        total_credit = (credit or 0) / 100.0
        if normal_balance == "credit":
            balance = total_credit - total_debit
        else:
            balance = total_debit - total_credit
        out.append(
            {
                "account_id": str(account_id),
                "code": code,
                "name": name,
                "type": acc_type,
                "total_debit": total_debit,
                "total_credit": total_credit,
                "balance": round(balance, 2),
            }
        )
    return out


def generate_cash_flow_statement(
    cfg: DatabaseConfig,
    owner_id: str,
    from_date: date,
    to_date: date,
    rules: ClassificationRules | None = None,
) -> dict[str, Any]:
    """
    Categorize the cash movements of a period.

    Every journal line posted to a cash & bank account (asset accounts in
    the 'cash_and_bank' sub-group) contributes ``debit - credit`` to a
    category chosen from the entry description:

    - operating: sales, collections, income, payroll, rent, services
      (and anything unmatched),
    - investing: asset purchases, investments, equipment,
    - financing: loans, capital, dividends.

    Returns
    -------
    dict
        operating_cash_flow, investing_cash_flow, financing_cash_flow,
        net_cash_flow (sum of the three), from_date, to_date.
    """
    rules = rules or ClassificationRules()
    init_database(cfg)

    conn = _connect(cfg)
    try:
        cur = conn.cursor()
        cur.execute(
            """
            SELECT a.code, a.type, e.description, l.debit_cents, l.credit_cents
              FROM journal_lines l
              JOIN journal_entries e ON e.id = l.entry_id
              JOIN accounts a ON a.id = l.account_id
             WHERE e.owner_id = ?
               AND a.owner_id = ?
               AND e.entry_date BETWEEN ? AND ?
             ORDER BY e.entry_date, e.id, l.id;
            """,
            (owner_id, owner_id, from_date.isoformat(), to_date.isoformat()),
        )
        rows = cur.fetchall()
    finally:
        conn.close()

    flows_cents = {"operating": 0, "investing": 0, "financing": 0}
    for code, acc_type, description, debit, credit in rows:
        if normalize_account_type(acc_type) is not AccountType.ASSET:
            continue
        if not rules.is_cash_code(normalize_code(code)):
            continue
        flows_cents[_categorize_cash_line(description)] += (debit or 0) - (credit or 0)

    operating = flows_cents["operating"] / 100.0
    investing = flows_cents["investing"] / 100.0
    financing = flows_cents["financing"] / 100.0
    return {
        "operating_cash_flow": operating,
        "investing_cash_flow": investing,
        "financing_cash_flow": financing,
        "net_cash_flow": (sum(flows_cents.values())) / 100.0,
        "from_date": from_date.isoformat(),
        "to_date": to_date.isoformat(),
    }


def add_inventory_account(
    cfg: DatabaseConfig,
    owner_id: str,
    account_ref: str,
    source: str = "default",
) -> None:
    """Register an account (code or id) as an inventory account.

    Registering the same account twice for the same source is a no-op.

    Raises
    ------
    ValueError
        If ``source`` is not one of 'default', 'item', 'warehouse'.
    """
    if source not in INVENTORY_SOURCES:
        raise ValueError(
            f"Invalid inventory source {source!r}, expected one of "
            f"{', '.join(INVENTORY_SOURCES)}."
        )
    init_database(cfg)

    conn = _connect(cfg)
    try:
        conn.execute(
            """
            INSERT OR IGNORE INTO inventory_accounts (owner_id, account_ref, source)
            VALUES (?, ?, ?);
            """,
            (owner_id, account_ref.strip(), source),
        )
        conn.commit()
    finally:
        conn.close()


def list_inventory_accounts(cfg: DatabaseConfig, owner_id: str) -> pd.DataFrame:
    """Return the inventory-account registry of an owner.

    Columns: account_ref, source.
    """
    init_database(cfg)

    conn = _connect(cfg)
    try:
        cur = conn.cursor()
        cur.execute(
            """
            SELECT account_ref, source
              FROM inventory_accounts
             WHERE owner_id = ?
             ORDER BY source, account_ref;
            """,
            (owner_id,),
        )
        rows = cur.fetchall()
    finally:
        conn.close()

    return pd.DataFrame(rows, columns=["account_ref", "source"])


def create_statement_record(
    cfg: DatabaseConfig,
    owner_id: str,
    statement_type: str,
    period: str,
    *,
    name: str | None = None,
    status: str = "final",
) -> StatementRecord:
    """
    Persist the metadata of a generated statement.

    Raises
    ------
    ValueError
        If the type or status is unknown.
    """
    if statement_type not in STATEMENT_TYPES:
        raise ValueError(f"Unknown statement type: {statement_type!r}")
    if status not in STATEMENT_STATUSES:
        raise ValueError(f"Unknown statement status: {status!r}")

    init_database(cfg)
    record_name = name or f"{_DEFAULT_STATEMENT_NAMES[statement_type]} {period}"
    created_at = _now_utc_iso()

    conn = _connect(cfg)
    try:
        cur = conn.cursor()
        cur.execute(
            """
            INSERT INTO financial_statements (
                owner_id, type, period, name, status, created_at
            )
            VALUES (?, ?, ?, ?, ?, ?);
            """,
            (owner_id, statement_type, period, record_name, status, created_at),
        )
        record_id = int(cur.lastrowid)
        conn.commit()
    finally:
        conn.close()

    return StatementRecord(
        id=record_id,
        owner_id=owner_id,
        type=statement_type,
        period=period,
        name=record_name,
        status=status,
        created_at=created_at,
    )


def list_statement_records(
    cfg: DatabaseConfig,
    owner_id: str,
    period: str | None = None,
) -> list[StatementRecord]:
    """List statement metadata records, most recent first."""
    init_database(cfg)

    query = """
        SELECT id, owner_id, type, period, name, status, created_at
          FROM financial_statements
         WHERE owner_id = ?
    """
    params: list[Any] = [owner_id]
    if period:
        query += " AND period = ?"
        params.append(period)
    query += " ORDER BY created_at DESC, id DESC;"

    conn = _connect(cfg)
    try:
        cur = conn.cursor()
        cur.execute(query, params)
        rows = cur.fetchall()
    finally:
        conn.close()

    return [
        StatementRecord(
            id=int(r[0]),
            owner_id=r[1],
            type=r[2],
            period=r[3],
            name=r[4],
            status=r[5],
            created_at=r[6],
        )
        for r in rows
    ]


class LedgerDatabase:
    """SQLite implementation of the statement engine collaborators.

    Implements ``TrialBalanceProvider``, ``CashFlowCategorizer`` and
    ``InventoryAccountRegistry`` (see ``providers.py``).
    """

    def __init__(self, cfg: DatabaseConfig, rules: ClassificationRules | None = None):
        self.cfg = cfg
        self.rules = rules or ClassificationRules()

    def get_trial_balance(
        self, owner_id: str, from_date: date, to_date: date
    ) -> list[dict[str, Any]]:
        return get_trial_balance(self.cfg, owner_id, from_date, to_date)

    def generate_cash_flow_statement(
        self, owner_id: str, from_date: date, to_date: date
    ) -> dict[str, Any]:
        return generate_cash_flow_statement(
            self.cfg, owner_id, from_date, to_date, self.rules
        )

    def get_inventory_accounts(self, owner_id: str) -> set[str]:
        df = list_inventory_accounts(self.cfg, owner_id)
        return set(df["account_ref"].astype(str))
