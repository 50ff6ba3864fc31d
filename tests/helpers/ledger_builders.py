from __future__ import annotations

from datetime import date
from decimal import Decimal

from domain.ledger import AccountId, AccountLedger, EntryKind, LedgerEntry, PooledLedger
from tests.constants import TFSA_ACCOUNT


def make_entry(
    kind: EntryKind,
    amount: str | Decimal,
    on: str,
    *,
    tax_year: int | None = None,
    account_id: AccountId = TFSA_ACCOUNT,
) -> LedgerEntry:
    entry_date = date.fromisoformat(on)
    return LedgerEntry(
        kind=kind,
        amount=Decimal(amount),
        date=entry_date,
        tax_year=tax_year if tax_year is not None else entry_date.year,
        account_id=account_id,
    )


def contribution(
    amount: str | Decimal, on: str, *, tax_year: int | None = None, account_id: AccountId = TFSA_ACCOUNT
) -> LedgerEntry:
    return make_entry(EntryKind.CONTRIBUTION, amount, on, tax_year=tax_year, account_id=account_id)


def withdrawal(amount: str | Decimal, on: str, *, account_id: AccountId = TFSA_ACCOUNT) -> LedgerEntry:
    return make_entry(EntryKind.WITHDRAWAL, amount, on, account_id=account_id)


def grant(amount: str | Decimal, on: str, *, account_id: AccountId = TFSA_ACCOUNT) -> LedgerEntry:
    return make_entry(EntryKind.GRANT, amount, on, account_id=account_id)


def account_ledger(*entries: LedgerEntry, account_id: AccountId = TFSA_ACCOUNT) -> AccountLedger:
    return AccountLedger(account_id=account_id, entries=entries)


def pooled_ledger(*entries: LedgerEntry, pool_key: str = "test-pool") -> PooledLedger:
    return PooledLedger(
        pool_key=pool_key,
        account_ids=frozenset(entry.account_id for entry in entries),
        entries=entries,
    )
