from __future__ import annotations

from datetime import date
from decimal import Decimal

from pydantic import BaseModel

from .constants import SPOUSAL_ATTRIBUTION_YEARS
from .ledger import AccountLedger, EntryKind, sum_amounts


class SpousalAttributionResult(BaseModel):
    attributed_to_contributor: Decimal
    attributed_to_owner: Decimal
    total_withdrawal: Decimal
    contributions_in_window: Decimal


def calculate_spousal_attribution(
    withdrawal_date: date,
    withdrawal_amount: Decimal,
    ledger: AccountLedger,
) -> SpousalAttributionResult:
    """Split a spousal RRSP withdrawal between contributor and owner.

    Contributions made to this account in the withdrawal year or the two
    calendar years before it are taxed back to the contributor, up to the
    withdrawn amount.
    """
    window_end = withdrawal_date.year
    window_start = window_end - (SPOUSAL_ATTRIBUTION_YEARS - 1)

    contributions_in_window = sum_amounts(
        e for e in ledger.entries if e.kind == EntryKind.CONTRIBUTION and window_start <= e.year <= window_end
    )
    attributed_to_contributor = min(withdrawal_amount, contributions_in_window)

    return SpousalAttributionResult(
        attributed_to_contributor=attributed_to_contributor,
        attributed_to_owner=withdrawal_amount - attributed_to_contributor,
        total_withdrawal=withdrawal_amount,
        contributions_in_window=contributions_in_window,
    )
