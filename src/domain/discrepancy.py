from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel

from .constants import NOA_DISCREPANCY_TOLERANCE


class NOADiscrepancy(BaseModel):
    calculated_room: Decimal
    noa_room: Decimal
    difference: Decimal
    has_discrepancy: bool


def check_noa_discrepancy(noa_deduction_limit: Decimal, calculated_deduction_limit: Decimal) -> NOADiscrepancy:
    """Flag a calculated deduction limit that differs from the NOA by more than a dollar."""
    difference = abs(calculated_deduction_limit - noa_deduction_limit)
    return NOADiscrepancy(
        calculated_room=calculated_deduction_limit,
        noa_room=noa_deduction_limit,
        difference=difference,
        has_discrepancy=difference > NOA_DISCREPANCY_TOLERANCE,
    )
