from __future__ import annotations

import calendar
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Iterator

from pydantic import BaseModel

from .constants import OVERCONTRIBUTION_PENALTY_RATE
from .ledger import AccountLedger, EntryKind, LedgerEntry, PooledLedger, TaxYearSnapshot, sum_amounts
from .rrsp import accrued_deduction_limit, excess_over_buffer, latest_noa, rrsp_snapshots
from .tfsa import cumulative_tfsa_limits


class MonthlyPenalty(BaseModel):
    year: int
    month: int
    excess_amount: Decimal
    penalty: Decimal


def month_end(year: int, month: int) -> date:
    return date(year, month, calendar.monthrange(year, month)[1])


def monthly_penalty(year: int, month: int, excess: Decimal) -> MonthlyPenalty:
    penalty = (excess * OVERCONTRIBUTION_PENALTY_RATE).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return MonthlyPenalty(year=year, month=month, excess_amount=excess, penalty=penalty)


def _months(first_year: int, current_year: int, current_month: int) -> Iterator[tuple[int, int]]:
    """Every (year, month) from January of ``first_year`` up to the current month, never beyond."""
    for year in range(first_year, current_year + 1):
        last_month = current_month if year == current_year else 12
        for month in range(1, last_month + 1):
            yield year, month


def _contributions_by(entries: Iterable[LedgerEntry], cutoff: date) -> list[LedgerEntry]:
    return [e for e in entries if e.kind == EntryKind.CONTRIBUTION and e.date <= cutoff]


def calculate_tfsa_penalties(
    start_year: int,
    current_year: int,
    ledger: AccountLedger,
    *,
    current_month: int,
) -> list[MonthlyPenalty]:
    """Monthly TFSA over-contribution penalties.

    Room is evaluated at the end of each month with no buffer; the walk starts
    at the later of ``start_year`` and the first entry's year.
    """
    if not ledger.entries:
        return []

    entries = sorted(ledger.entries, key=lambda e: e.date)
    withdrawals = [e for e in entries if e.kind == EntryKind.WITHDRAWAL]
    first_year = max(start_year, entries[0].year)

    penalties: list[MonthlyPenalty] = []
    for year, month in _months(first_year, current_year, current_month):
        total_room = cumulative_tfsa_limits(start_year, year)
        contributions = sum_amounts(_contributions_by(entries, month_end(year, month)))
        restored = sum_amounts(w for w in withdrawals if w.year < year)

        excess = max(Decimal(0), -(total_room - contributions + restored))
        if excess > 0:
            penalties.append(monthly_penalty(year, month, excess))

    return penalties


def calculate_rrsp_penalties(
    current_year: int,
    ledger: PooledLedger,
    snapshots: Iterable[TaxYearSnapshot],
    *,
    current_month: int,
) -> list[MonthlyPenalty]:
    """Monthly RRSP over-contribution penalties on the excess beyond the buffer.

    For each month the deduction limit is rebuilt from the latest NOA already
    in effect that year, or from earned income when there is none.
    """
    if not ledger.entries:
        return []

    entries = sorted(ledger.entries, key=lambda e: e.date)
    history = rrsp_snapshots(snapshots)

    penalties: list[MonthlyPenalty] = []
    for year, month in _months(entries[0].year, current_year, current_month):
        noa = latest_noa(history, effective_by=year)
        limit = accrued_deduction_limit(history, year, noa)

        contributions = _contributions_by(entries, month_end(year, month))
        if noa is not None:
            base_year = noa.tax_year + 1
            contributions = [c for c in contributions if c.tax_year >= base_year]

        excess, _ = excess_over_buffer(limit - sum_amounts(contributions))
        if excess > 0:
            penalties.append(monthly_penalty(year, month, excess))

    return penalties
