"""Contribution-room rules for Canadian registered accounts.

Pure functions over in-memory (Pydantic) ledger entries and tax-year
snapshots. Nothing here reads storage or the clock; callers pass the
evaluation year (and month) explicitly.
"""

__all__ = [
    "constants",
    "discrepancy",
    "ledger",
    "penalties",
    "resp",
    "rrsp",
    "spousal",
    "tfsa",
]
