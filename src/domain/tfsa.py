from __future__ import annotations

from decimal import Decimal
from typing import Iterable

from pydantic import BaseModel

from .constants import tfsa_annual_limit
from .ledger import AccountLedger, AccountType, EntryKind, LedgerEntry, TaxYearSnapshot, entries_of_kind, sum_amounts


class TFSARoomResult(BaseModel):
    total_room: Decimal
    total_contributions: Decimal
    restored_withdrawals: Decimal
    current_year_withdrawals: Decimal
    remaining_room: Decimal
    over_contribution_amount: Decimal


def cumulative_tfsa_limits(start_year: int, end_year: int) -> Decimal:
    return sum((tfsa_annual_limit(year) for year in range(start_year, end_year + 1)), start=Decimal(0))


def latest_cra_sync_point(snapshots: Iterable[TaxYearSnapshot]) -> TaxYearSnapshot | None:
    candidates = [s for s in snapshots if s.account_type == AccountType.TFSA and s.cra_room_as_of_jan1 is not None]
    if not candidates:
        return None
    return max(candidates, key=lambda s: s.tax_year)


def calculate_tfsa_room(
    start_year: int,
    current_year: int,
    ledger: AccountLedger,
    snapshots: Iterable[TaxYearSnapshot],
) -> TFSARoomResult:
    """Compute TFSA room for one account as of ``current_year``.

    The latest CRA-reported room (if any) is used as a reset point; otherwise
    room is accumulated from ``start_year``. Withdrawals are restored on
    January 1 of the following year, never in the year they happen.
    """
    sync_point = latest_cra_sync_point(snapshots)
    if sync_point is not None and sync_point.cra_room_as_of_jan1 is not None:
        return _room_from_cra(sync_point.tax_year, sync_point.cra_room_as_of_jan1, current_year, ledger.entries)

    contributions = entries_of_kind(ledger.entries, EntryKind.CONTRIBUTION)
    withdrawals = entries_of_kind(ledger.entries, EntryKind.WITHDRAWAL)

    total_room = cumulative_tfsa_limits(start_year, current_year)
    total_contributions = sum_amounts(contributions)
    restored_withdrawals = sum_amounts(w for w in withdrawals if w.year < current_year)
    current_year_withdrawals = sum_amounts(w for w in withdrawals if w.year == current_year)

    remaining_room = total_room - total_contributions + restored_withdrawals
    return TFSARoomResult(
        total_room=total_room,
        total_contributions=total_contributions,
        restored_withdrawals=restored_withdrawals,
        current_year_withdrawals=current_year_withdrawals,
        remaining_room=remaining_room,
        over_contribution_amount=max(Decimal(0), -remaining_room),
    )


def _room_from_cra(
    sync_year: int,
    cra_room: Decimal,
    current_year: int,
    entries: Iterable[LedgerEntry],
) -> TFSARoomResult:
    entries = list(entries)
    contributions = entries_of_kind(entries, EntryKind.CONTRIBUTION)
    withdrawals = entries_of_kind(entries, EntryKind.WITHDRAWAL)

    # The sync year's own limit is already part of the reported figure.
    room = cra_room + cumulative_tfsa_limits(sync_year + 1, current_year)
    contributions_since_sync = sum_amounts(c for c in contributions if c.year >= sync_year)
    restored_since_sync = sum_amounts(w for w in withdrawals if sync_year <= w.year < current_year)
    remaining_room = room - contributions_since_sync + restored_since_sync

    # Display figures are lifetime totals, not limited to the sync window.
    total_contributions = sum_amounts(contributions)
    restored_withdrawals = sum_amounts(w for w in withdrawals if w.year < current_year)

    return TFSARoomResult(
        total_room=remaining_room + total_contributions - restored_withdrawals,
        total_contributions=total_contributions,
        restored_withdrawals=restored_withdrawals,
        current_year_withdrawals=sum_amounts(w for w in withdrawals if w.year == current_year),
        remaining_room=remaining_room,
        over_contribution_amount=max(Decimal(0), -remaining_room),
    )
