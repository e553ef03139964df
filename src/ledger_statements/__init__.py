# Ledger Statements - Financial statement derivation engine for SMB ledgers
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Ledger Statements
-----------------

A Python engine that derives the financial statements of a small business
from the balances of its general ledger. The engine is a pure, on-demand
computation: statement numbers are never stored, they are regenerated from
the trial balance every time a statement is requested.

Main capabilities:
- period resolution with a fixed opening-balance cutover date,
- trial-balance ingestion with bilingual account-type normalization,
- account classification by code prefix and type (current / non-current,
  reclassification of miscoded 5xxx expenses, editable sub-group tables),
- contra-account detection (sales returns, discounts and rebates),
- Balance Sheet and Income Statement totals,
- Cost-of-Sales statement from two inventory snapshots,
- Cash-Flow statement with independently derived opening/closing cash,
- side-by-side comparison periods computed from scratch,
- a latest-wins request session guarding against stale results,
- a SQLite ledger store and a command-line interface.

Version: 0.2.0

Usage:
    python -m ledger_statements.cli --help
"""

__all__ = ["engine", "classifier", "comparison", "periods", "views"]

__version__ = "0.2.0"
