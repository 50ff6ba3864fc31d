from __future__ import annotations

from decimal import Decimal
from typing import Iterable, Sequence

from pydantic import BaseModel

from .constants import RRSP_EARNED_INCOME_RATE, RRSP_OVERCONTRIBUTION_BUFFER, rrsp_annual_limit
from .ledger import AccountType, EntryKind, PooledLedger, TaxYearSnapshot, entries_of_kind, sum_amounts


class RRSPRoomResult(BaseModel):
    deduction_limit: Decimal
    unused_room: Decimal
    total_contributions: Decimal
    remaining_room: Decimal
    over_contribution_amount: Decimal
    within_buffer: bool


def rrsp_snapshots(snapshots: Iterable[TaxYearSnapshot]) -> list[TaxYearSnapshot]:
    return sorted((s for s in snapshots if s.account_type == AccountType.RRSP), key=lambda s: s.tax_year)


def latest_noa(snapshots: Iterable[TaxYearSnapshot], *, effective_by: int | None = None) -> TaxYearSnapshot | None:
    """Latest snapshot carrying a NOA deduction limit.

    With ``effective_by`` only NOAs whose limit already applies in that year
    (``tax_year + 1 <= effective_by``) are considered.
    """
    candidates = [
        s
        for s in snapshots
        if s.noa_deduction_limit is not None and (effective_by is None or s.tax_year + 1 <= effective_by)
    ]
    if not candidates:
        return None
    return max(candidates, key=lambda s: s.tax_year)


def new_room_from_income(earned_income: Decimal, room_year: int) -> Decimal:
    return min(earned_income * RRSP_EARNED_INCOME_RATE, rrsp_annual_limit(room_year))


def accrued_deduction_limit(
    snapshots: Sequence[TaxYearSnapshot],
    year: int,
    noa: TaxYearSnapshot | None,
) -> Decimal:
    """Deduction limit available in ``year`` before any contributions are subtracted.

    Starting from a NOA, room is added for each year after it from the prior
    year's earned income. Without a NOA the limit is rebuilt from every
    earned-income snapshot whose room year has arrived.
    """
    if noa is not None and noa.noa_deduction_limit is not None:
        limit = noa.noa_deduction_limit
        for room_year in range(noa.tax_year + 1, year + 1):
            earned_income = next(
                (s.earned_income for s in snapshots if s.tax_year == room_year - 1 and s.earned_income is not None),
                None,
            )
            if earned_income is not None:
                limit += new_room_from_income(earned_income, room_year)
        return limit

    limit = Decimal(0)
    for snapshot in snapshots:
        if snapshot.earned_income is None:
            continue
        room_year = snapshot.tax_year + 1
        if room_year <= year:
            limit += new_room_from_income(snapshot.earned_income, room_year)
    return limit


def excess_over_buffer(remaining_room: Decimal) -> tuple[Decimal, bool]:
    """Return (penalised excess, within_buffer) for an RRSP room figure."""
    raw_excess = max(Decimal(0), -remaining_room)
    excess = max(Decimal(0), raw_excess - RRSP_OVERCONTRIBUTION_BUFFER)
    within_buffer = Decimal(0) < raw_excess <= RRSP_OVERCONTRIBUTION_BUFFER
    return excess, within_buffer


def calculate_rrsp_room(
    current_year: int,
    ledger: PooledLedger,
    snapshots: Iterable[TaxYearSnapshot],
) -> RRSPRoomResult:
    """Compute RRSP room for a contributor's pooled ledger.

    ``ledger`` must hold the entries of every RRSP account drawing on the
    contributor's room, spousal accounts they contribute to included.
    A NOA reported for tax year X is the deduction limit from X+1 onward, so
    only contributions attributed to tax years from X+1 are subtracted from it.
    """
    history = rrsp_snapshots(snapshots)
    noa = latest_noa(history)
    contributions = entries_of_kind(ledger.entries, EntryKind.CONTRIBUTION)

    deduction_limit = accrued_deduction_limit(history, current_year, noa)
    if noa is not None:
        base_year = noa.tax_year + 1
        deduction_limit -= sum_amounts(c for c in contributions if c.tax_year >= base_year)
    else:
        deduction_limit -= sum_amounts(contributions)

    total_contributions = sum_amounts(contributions)
    remaining_room = deduction_limit
    over_contribution_amount, within_buffer = excess_over_buffer(remaining_room)

    return RRSPRoomResult(
        deduction_limit=deduction_limit + total_contributions,
        unused_room=max(Decimal(0), remaining_room),
        total_contributions=total_contributions,
        remaining_room=remaining_room,
        over_contribution_amount=over_contribution_amount,
        within_buffer=within_buffer,
    )
