# Ledger Statements - Financial statement derivation engine for SMB ledgers
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Cost-of-Sales calculator.

The Cost-of-Sales statement reconciles opening inventory, purchases and
closing inventory into the cost of goods sold of a period [from, to]:

    opening_inventory   inventory balances over [cutover, from - 1]
  + total_purchases     debit postings to inventory over the period
  + indirect_costs      always 0 (landed-cost allocation placeholder)
  = available_for_sale
  - closing_inventory   inventory balances over [cutover, to]
  = cost of goods sold  (computed by ``cost_of_goods_sold()``)

Inventory accounts are the configured ones (default account, per-item and
per-warehouse overrides, registry) or, when nothing is configured, every
account whose normalized code starts with the fallback prefix ('12').

Purchases are movement based: the sum of the debit postings made to the
inventory accounts during the period. When that sum is zero (e.g. a ledger
that books purchases straight to cost accounts) the legacy estimate sums
cost/expense balances under the local purchases and imports prefixes.
"""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Optional

from .accounts import AccountType, LedgerAccountBalance, normalize_code
from .config import EngineSettings, InventorySettings
from .mapping import starts_with_any
from .periods import PeriodRange, ResolvedPeriod, day_before

logger = logging.getLogger(__name__)

# Fetches the trial balance of a range; None stands for an empty range.
TrialBalanceFetcher = Callable[
    [Optional[PeriodRange]], tuple[LedgerAccountBalance, ...]
]


@dataclass(frozen=True)
class CostOfSalesSnapshot:
    """Figures of the Cost-of-Sales statement for one period."""

    opening_inventory: float = 0.0
    purchases_local: float = 0.0
    purchases_imports: float = 0.0
    total_purchases: float = 0.0
    indirect_costs: float = 0.0
    available_for_sale: float = 0.0
    closing_inventory: float = 0.0

    @staticmethod
    def zero() -> "CostOfSalesSnapshot":
        return CostOfSalesSnapshot()


def cost_of_goods_sold(snapshot: CostOfSalesSnapshot) -> float:
    """Cost of goods sold for presentation: available for sale minus closing
    inventory."""
    return snapshot.available_for_sale - snapshot.closing_inventory


@dataclass(frozen=True)
class InventoryMatcher:
    """Decides whether a ledger balance belongs to an inventory account."""

    identifiers: frozenset[str]
    fallback_prefix: str = "12"

    @property
    def uses_fallback(self) -> bool:
        return not self.identifiers

    def __call__(self, account: LedgerAccountBalance) -> bool:
        code = normalize_code(account.code)
        if self.uses_fallback:
            return account.type is AccountType.ASSET and code.startswith(
                self.fallback_prefix
            )
        if account.account_id is not None and account.account_id in self.identifiers:
            return True
        normalized = {normalize_code(i) for i in self.identifiers}
        return code in normalized


def build_inventory_matcher(
    settings: InventorySettings, registry_accounts: Iterable[str] = ()
) -> InventoryMatcher:
    identifiers = settings.configured_accounts() | frozenset(
        a for a in registry_accounts if a
    )
    if not identifiers:
        logger.debug(
            "No inventory account configured, falling back to code prefix %r",
            settings.fallback_prefix,
        )
    return InventoryMatcher(
        identifiers=identifiers, fallback_prefix=settings.fallback_prefix
    )


def _inventory_balance(
    balances: Iterable[LedgerAccountBalance], is_inventory: InventoryMatcher
) -> float:
    return round(sum((b.balance for b in balances if is_inventory(b)), 0.0), 2)


def _legacy_purchases(
    balances: Iterable[LedgerAccountBalance], settings: InventorySettings
) -> tuple[float, float]:
    local = 0.0
    imports = 0.0
    for b in balances:
        if b.type not in (AccountType.COST, AccountType.EXPENSE):
            continue
        code = normalize_code(b.code)
        if starts_with_any(code, settings.purchases_local_prefixes):
            local += b.balance
        elif starts_with_any(code, settings.purchases_import_prefixes):
            imports += b.balance
    return round(local, 2), round(imports, 2)


def compute_cost_of_sales(
    period: ResolvedPeriod,
    period_balances: tuple[LedgerAccountBalance, ...],
    fetch: TrialBalanceFetcher,
    is_inventory: InventoryMatcher,
    settings: EngineSettings,
) -> CostOfSalesSnapshot:
    """Compute the Cost-of-Sales snapshot of a period.

    Args:
        period: Resolved period; its effective range bounds the purchases.
        period_balances: Trial balance of the effective range, already
            fetched by the caller (reused for the purchases).
        fetch: Trial-balance fetcher used for the two inventory snapshots.
        is_inventory: Inventory account matcher.
        settings: Engine settings (cutover and inventory prefixes).

    Returns:
        A new CostOfSalesSnapshot.

    Raises:
        ProviderUnavailable: propagated from ``fetch``.
    """
    cutover = settings.cutover
    requested = period.requested

    opening_until = day_before(requested.from_date)
    opening_range = (
        PeriodRange(from_date=cutover, to_date=opening_until)
        if opening_until >= cutover
        else None
    )
    closing_range = (
        PeriodRange(from_date=cutover, to_date=requested.to_date)
        if requested.to_date >= cutover
        else None
    )

    opening_inventory = (
        _inventory_balance(fetch(opening_range), is_inventory) if opening_range else 0.0
    )
    closing_inventory = (
        _inventory_balance(fetch(closing_range), is_inventory) if closing_range else 0.0
    )

    movement = round(
        sum((b.total_debit for b in period_balances if is_inventory(b)), 0.0), 2
    )
    if movement != 0.0:
        purchases_local, purchases_imports = movement, 0.0
    else:
        purchases_local, purchases_imports = _legacy_purchases(
            period_balances, settings.inventory
        )

    total_purchases = round(purchases_local + purchases_imports, 2)
    indirect_costs = 0.0

    return CostOfSalesSnapshot(
        opening_inventory=opening_inventory,
        purchases_local=purchases_local,
        purchases_imports=purchases_imports,
        total_purchases=total_purchases,
        indirect_costs=indirect_costs,
        available_for_sale=opening_inventory + total_purchases + indirect_costs,
        closing_inventory=closing_inventory,
    )
