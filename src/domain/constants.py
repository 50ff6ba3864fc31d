"""Contribution limits and program parameters for registered accounts.

Year tables cover 2009-2026. Lookups for unmapped years return zero so that
years not yet published contribute no room instead of failing.
"""

from __future__ import annotations

from decimal import Decimal

TFSA_ANNUAL_LIMITS: dict[int, Decimal] = {
    2009: Decimal("5000"),
    2010: Decimal("5000"),
    2011: Decimal("5000"),
    2012: Decimal("5000"),
    2013: Decimal("5500"),
    2014: Decimal("5500"),
    2015: Decimal("10000"),
    2016: Decimal("5500"),
    2017: Decimal("5500"),
    2018: Decimal("5500"),
    2019: Decimal("6000"),
    2020: Decimal("6000"),
    2021: Decimal("6000"),
    2022: Decimal("6000"),
    2023: Decimal("6500"),
    2024: Decimal("7000"),
    2025: Decimal("7000"),
    2026: Decimal("7000"),
}

# Dollar ceiling on the 18%-of-earned-income accrual.
RRSP_ANNUAL_LIMITS: dict[int, Decimal] = {
    2009: Decimal("21000"),
    2010: Decimal("22000"),
    2011: Decimal("22450"),
    2012: Decimal("22970"),
    2013: Decimal("23820"),
    2014: Decimal("24270"),
    2015: Decimal("24930"),
    2016: Decimal("25370"),
    2017: Decimal("26010"),
    2018: Decimal("26230"),
    2019: Decimal("26500"),
    2020: Decimal("27230"),
    2021: Decimal("27830"),
    2022: Decimal("29210"),
    2023: Decimal("30780"),
    2024: Decimal("31560"),
    2025: Decimal("32490"),
    2026: Decimal("33810"),
}

TFSA_FIRST_YEAR = 2009

RRSP_EARNED_INCOME_RATE = Decimal("0.18")
RRSP_OVERCONTRIBUTION_BUFFER = Decimal("2000")

# Applied monthly to the excess amount.
OVERCONTRIBUTION_PENALTY_RATE = Decimal("0.01")

# Withdrawal year plus the two preceding calendar years.
SPOUSAL_ATTRIBUTION_YEARS = 3

RESP_LIFETIME_LIMIT = Decimal("50000")

CESG_MATCH_RATE = Decimal("0.20")
CESG_ELIGIBLE_ANNUAL_CONTRIBUTION = Decimal("2500")
CESG_ANNUAL_MAX = Decimal("500")
CESG_ELIGIBLE_WITH_CARRYFORWARD = Decimal("5000")
CESG_ANNUAL_MAX_WITH_CARRYFORWARD = Decimal("1000")
CESG_LIFETIME_MAX = Decimal("7200")
CESG_MAX_AGE = 17

NOA_DISCREPANCY_TOLERANCE = Decimal("1")


def tfsa_annual_limit(year: int) -> Decimal:
    return TFSA_ANNUAL_LIMITS.get(year, Decimal(0))


def rrsp_annual_limit(year: int) -> Decimal:
    return RRSP_ANNUAL_LIMITS.get(year, Decimal(0))
