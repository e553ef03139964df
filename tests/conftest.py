from dataclasses import dataclass, field
from datetime import date
from typing import Optional

import pytest

from ledger_statements.db import DatabaseConfig

DEC_2025 = (date(2025, 12, 1), date(2025, 12, 31))


@dataclass
class Posting:
    day: date
    code: str
    name: str
    type: str
    debit: float = 0.0
    credit: float = 0.0
    account_id: Optional[str] = None


@dataclass
class FakeLedger:
    """In-memory collaborator: trial balance, cash flow and inventory registry.

    Every call is recorded so tests can check which ranges were queried.
    """

    postings: list[Posting] = field(default_factory=list)
    flows: dict = field(default_factory=dict)
    inventory_accounts: set = field(default_factory=set)
    trial_balance_calls: list = field(default_factory=list)
    cash_flow_calls: list = field(default_factory=list)

    def post(self, day, code, name, type_, debit=0.0, credit=0.0, account_id=None):
        self.postings.append(
            Posting(day, code, name, type_, debit, credit, account_id)
        )
        return self

    def get_trial_balance(self, owner_id, from_date, to_date):
        self.trial_balance_calls.append((owner_id, from_date, to_date))
        rows: dict[str, dict] = {}
        for p in self.postings:
            if not from_date <= p.day <= to_date:
                continue
            row = rows.setdefault(
                p.code,
                {
                    "code": p.code,
                    "name": p.name,
                    "type": p.type,
                    "total_debit": 0.0,
                    "total_credit": 0.0,
                    "account_id": p.account_id,
                },
            )
            row["total_debit"] += p.debit
            row["total_credit"] += p.credit
        return list(rows.values())

    def generate_cash_flow_statement(self, owner_id, from_date, to_date):
        self.cash_flow_calls.append((owner_id, from_date, to_date))
        return dict(self.flows)

    def get_inventory_accounts(self, owner_id):
        return set(self.inventory_accounts)


class FailingProvider:
    """Collaborator whose every call raises."""

    def __init__(self, exc: Exception | None = None):
        self.exc = exc or ConnectionError("ledger service unreachable")
        self.calls = 0

    def get_trial_balance(self, owner_id, from_date, to_date):
        self.calls += 1
        raise self.exc

    def generate_cash_flow_statement(self, owner_id, from_date, to_date):
        self.calls += 1
        raise self.exc

    def get_inventory_accounts(self, owner_id):
        self.calls += 1
        raise self.exc


@pytest.fixture
def ledger() -> FakeLedger:
    return FakeLedger()


@pytest.fixture
def db_cfg(tmp_path) -> DatabaseConfig:
    """DatabaseConfig pointing to a temporary SQLite file."""
    return DatabaseConfig(engine="sqlite", path=tmp_path / "ledger.sqlite")
