# Ledger Statements - Financial statement derivation engine for SMB ledgers
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Period helpers for Ledger Statements.

This module defines the PeriodRange value object and the rules used to turn
a user selection (a "YYYY-MM" month or an explicit from/to pair) into the
date range the engine actually queries.

Two resolution rules coexist:

- period activity (trial balance, purchases, categorized cash flows) is
  clipped to the ledger cutover date: nothing posted before
  SYSTEM_START_DATE belongs to a period statement;
- cumulative snapshots (inventory and cash positions) are balance-sheet
  positions and look back further, see ``cumulative_range()``.
"""

from calendar import monthrange
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional, Union

# Opening-balance cutover of the ledger (reference deployment).
SYSTEM_START_DATE = date(2025, 12, 1)

# Lower bound used for "since inception" cumulative queries.
INCEPTION_DATE = date(1900, 1, 1)

DateLike = Union[date, str]


@dataclass(frozen=True)
class PeriodRange:
    """Inclusive date range. ``to_date`` can never precede ``from_date``."""

    from_date: date
    to_date: date

    def __post_init__(self) -> None:
        if self.to_date < self.from_date:
            raise ValueError(
                f"Period end {self.to_date} cannot be before start {self.from_date}."
            )

    @property
    def label(self) -> str:
        return f"{self.from_date.isoformat()} → {self.to_date.isoformat()}"


@dataclass(frozen=True)
class ResolvedPeriod:
    """
    Result of period resolution.

    Attributes
    ----------
    requested :
        The range selected by the user, after the ``to >= from`` correction.
    effective :
        The range actually used for period activity, clipped to the cutover.
        None when the requested range ends before the cutover: the trial
        balance is then empty and no fetch is needed.
    """

    requested: PeriodRange
    effective: Optional[PeriodRange]

    @property
    def is_empty(self) -> bool:
        return self.effective is None

    @property
    def label(self) -> str:
        return self.requested.label


def _today() -> date:
    """Return today's date as a date object (isolated for easier testing)."""
    return datetime.today().date()


def _as_date(value: DateLike) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip())


def day_before(d: date) -> date:
    return d - timedelta(days=1)


def month_range(month: Optional[str] = None) -> PeriodRange:
    """
    Return the full calendar month for a "YYYY-MM" selection.

    With no selection the current month is used.
    """
    if not month:
        today = _today()
        year, month_num = today.year, today.month
    else:
        try:
            year_str, month_str = str(month).strip().split("-")[:2]
            year, month_num = int(year_str), int(month_str)
        except ValueError as exc:
            raise ValueError(
                f"Invalid month selection {month!r}, expected YYYY-MM."
            ) from exc
        if not 1 <= month_num <= 12:
            raise ValueError(f"Invalid month selection {month!r}, expected YYYY-MM.")

    last_day = monthrange(year, month_num)[1]
    return PeriodRange(
        from_date=date(year, month_num, 1),
        to_date=date(year, month_num, last_day),
    )


def clip_to_cutover(
    requested: PeriodRange, cutover: date = SYSTEM_START_DATE
) -> Optional[PeriodRange]:
    """
    Clip a requested range to the ledger cutover.

    Returns None when the whole range precedes the cutover, otherwise the
    range with ``from_date`` clamped up to the cutover.
    """
    if requested.to_date < cutover:
        return None
    return PeriodRange(
        from_date=max(requested.from_date, cutover),
        to_date=requested.to_date,
    )


def resolve_period(
    *,
    month: Optional[str] = None,
    from_date: Optional[DateLike] = None,
    to_date: Optional[DateLike] = None,
    cutover: date = SYSTEM_START_DATE,
) -> ResolvedPeriod:
    """
    Resolve a user selection into a cutover-clipped period.

    Priority (highest to lowest):

        1. from_date / to_date (custom period)
        2. month ("YYYY-MM")
        3. current month by default

    A missing ``to_date`` defaults to ``from_date`` and an end date before
    the start date is silently corrected to the start date. A ``to_date``
    given without ``from_date`` is treated as a single-day period.
    """
    if from_date is not None or to_date is not None:
        start = _as_date(from_date if from_date is not None else to_date)
        end = _as_date(to_date) if to_date is not None else start
        if end < start:
            end = start
        requested = PeriodRange(from_date=start, to_date=end)
    else:
        requested = month_range(month)

    return ResolvedPeriod(
        requested=requested,
        effective=clip_to_cutover(requested, cutover),
    )


def cumulative_range(
    until: date, start: date = INCEPTION_DATE
) -> Optional[PeriodRange]:
    """
    Range used for cumulative balance snapshots: ``[start, until]``.

    Returns None when ``until`` precedes ``start`` (nothing to sum).
    """
    if until < start:
        return None
    return PeriodRange(from_date=start, to_date=until)
