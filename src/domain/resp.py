from __future__ import annotations

from datetime import date
from decimal import Decimal

from pydantic import BaseModel

from .constants import (
    CESG_ANNUAL_MAX,
    CESG_ANNUAL_MAX_WITH_CARRYFORWARD,
    CESG_ELIGIBLE_ANNUAL_CONTRIBUTION,
    CESG_ELIGIBLE_WITH_CARRYFORWARD,
    CESG_LIFETIME_MAX,
    CESG_MATCH_RATE,
    CESG_MAX_AGE,
    RESP_LIFETIME_LIMIT,
)
from .ledger import EntryKind, PooledLedger, entries_of_kind, sum_amounts


class CESGSummary(BaseModel):
    total_cesg_received: Decimal
    lifetime_max: Decimal
    remaining_lifetime_cesg: Decimal
    current_year_cesg: Decimal
    current_year_max: Decimal
    carry_forward_room: Decimal
    eligible_for_cesg: bool


class RESPRoomResult(BaseModel):
    lifetime_limit: Decimal
    total_contributions: Decimal
    remaining_room: Decimal
    over_contribution_amount: Decimal
    total_grants: Decimal
    cesg_summary: CESGSummary


def calculate_resp_room(beneficiary_birth_date: date, current_year: int, ledger: PooledLedger) -> RESPRoomResult:
    """Compute RESP room for one beneficiary.

    ``ledger`` pools every RESP account of the beneficiary: they share the
    lifetime contribution limit and a single grant entitlement.
    """
    total_contributions = sum_amounts(entries_of_kind(ledger.entries, EntryKind.CONTRIBUTION))
    total_grants = sum_amounts(entries_of_kind(ledger.entries, EntryKind.GRANT))
    remaining_room = RESP_LIFETIME_LIMIT - total_contributions

    return RESPRoomResult(
        lifetime_limit=RESP_LIFETIME_LIMIT,
        total_contributions=total_contributions,
        remaining_room=max(Decimal(0), remaining_room),
        over_contribution_amount=max(Decimal(0), -remaining_room),
        total_grants=total_grants,
        cesg_summary=calculate_cesg_summary(beneficiary_birth_date, current_year, ledger),
    )


def calculate_cesg_summary(beneficiary_birth_date: date, current_year: int, ledger: PooledLedger) -> CESGSummary:
    """Grant entitlement for the beneficiary in ``current_year``.

    Every year from birth up to the year the beneficiary turns 17 adds the
    basic annual grant room; grants received are taken off it. When more than
    one year of room is unused, the current year may catch up to the
    carry-forward maximum.
    """
    birth_year = beneficiary_birth_date.year
    eligible_for_cesg = current_year - birth_year <= CESG_MAX_AGE

    grants = entries_of_kind(ledger.entries, EntryKind.GRANT)
    total_cesg_received = sum_amounts(grants)
    remaining_lifetime_cesg = max(Decimal(0), CESG_LIFETIME_MAX - total_cesg_received)

    accumulated_room = Decimal(0)
    for year in range(birth_year, current_year + 1):
        if year - birth_year > CESG_MAX_AGE:
            break
        accumulated_room += CESG_ANNUAL_MAX
        accumulated_room -= sum_amounts(g for g in grants if g.year == year)
    accumulated_room = min(accumulated_room, remaining_lifetime_cesg)

    current_year_cesg = sum_amounts(g for g in grants if g.year == current_year)
    has_carry_forward = accumulated_room > CESG_ANNUAL_MAX
    if eligible_for_cesg:
        annual_max = CESG_ANNUAL_MAX_WITH_CARRYFORWARD if has_carry_forward else CESG_ANNUAL_MAX
        current_year_max = min(annual_max, remaining_lifetime_cesg)
    else:
        current_year_max = Decimal(0)

    return CESGSummary(
        total_cesg_received=total_cesg_received,
        lifetime_max=CESG_LIFETIME_MAX,
        remaining_lifetime_cesg=remaining_lifetime_cesg,
        current_year_cesg=current_year_cesg,
        current_year_max=current_year_max,
        carry_forward_room=max(Decimal(0), accumulated_room - CESG_ANNUAL_MAX),
        eligible_for_cesg=eligible_for_cesg,
    )


def estimate_cesg(contribution_amount: Decimal, summary: CESGSummary) -> Decimal:
    """Projected grant for a new contribution of ``contribution_amount`` this year.

    The part of this year's eligible base already used is inferred from the
    grant received so far (grant / match rate), so grants stored rounded to
    cents shift the estimate by fractions of a cent.
    """
    if not summary.eligible_for_cesg:
        return Decimal(0)

    remaining_this_year = summary.current_year_max - summary.current_year_cesg
    if remaining_this_year <= 0:
        return Decimal(0)

    if summary.carry_forward_room > 0:
        eligible_base = CESG_ELIGIBLE_WITH_CARRYFORWARD
    else:
        eligible_base = CESG_ELIGIBLE_ANNUAL_CONTRIBUTION
    already_eligible = summary.current_year_cesg / CESG_MATCH_RATE
    remaining_eligible = max(Decimal(0), eligible_base - already_eligible)

    grant = min(contribution_amount, remaining_eligible) * CESG_MATCH_RATE
    return min(grant, remaining_this_year, summary.remaining_lifetime_cesg)
