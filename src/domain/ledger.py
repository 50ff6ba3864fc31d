from __future__ import annotations

from datetime import date
from decimal import Decimal
from enum import StrEnum
from typing import Iterable, NewType
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator

AccountId = NewType("AccountId", str)
BeneficiaryId = NewType("BeneficiaryId", str)


def _new_id() -> str:
    return str(uuid4())


class EntryKind(StrEnum):
    CONTRIBUTION = "contribution"
    WITHDRAWAL = "withdrawal"
    GRANT = "grant"


class Person(StrEnum):
    SELF = "self"
    SPOUSE = "spouse"


class AccountType(StrEnum):
    RRSP = "RRSP"
    TFSA = "TFSA"
    RESP = "RESP"


class LedgerEntry(BaseModel):
    """A dated movement in a registered account.

    Amounts are always positive; whether the entry adds or removes room is
    carried by ``kind``. ``tax_year`` can differ from the calendar year of
    ``date`` (RRSP contributions made early in the year for the prior year).
    """

    model_config = ConfigDict(frozen=True)

    kind: EntryKind
    amount: Decimal
    date: date
    tax_year: int
    account_id: AccountId
    notes: str | None = None

    @model_validator(mode="after")
    def _validate_amount(self) -> LedgerEntry:
        if self.amount <= 0:
            raise ValueError("LedgerEntry.amount must be > 0")
        return self

    @property
    def year(self) -> int:
        return self.date.year


class TaxYearSnapshot(BaseModel):
    """Figures reported by the tax authority for one person, account type and tax year.

    - ``earned_income``: prior-year earned income, accrues RRSP room.
    - ``noa_deduction_limit``: RRSP deduction limit valid for ``tax_year + 1``.
    - ``cra_room_as_of_jan1``: cumulative TFSA room on January 1 of ``tax_year``.
    """

    model_config = ConfigDict(frozen=True)

    person: Person
    account_type: AccountType
    tax_year: int
    earned_income: Decimal | None = None
    noa_deduction_limit: Decimal | None = None
    cra_room_as_of_jan1: Decimal | None = None
    notes: str | None = None

    @model_validator(mode="after")
    def _validate_figures(self) -> TaxYearSnapshot:
        if self.earned_income is not None and self.earned_income < 0:
            raise ValueError("earned_income must be >= 0")
        return self


class Beneficiary(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: BeneficiaryId = Field(default_factory=lambda: BeneficiaryId(_new_id()))
    name: str
    date_of_birth: date


class RegisteredAccount(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: AccountId = Field(default_factory=lambda: AccountId(_new_id()))
    name: str
    account_type: AccountType
    owner: Person
    contributor: Person
    beneficiary_id: BeneficiaryId | None = None
    room_start_year: int | None = None
    notes: str | None = None

    @property
    def is_spousal(self) -> bool:
        return self.account_type == AccountType.RRSP and self.owner != self.contributor


class AccountLedger(BaseModel):
    """Entries belonging to exactly one account."""

    model_config = ConfigDict(frozen=True)

    account_id: AccountId
    entries: tuple[LedgerEntry, ...] = ()

    @model_validator(mode="after")
    def _validate_single_account(self) -> AccountLedger:
        foreign = {entry.account_id for entry in self.entries if entry.account_id != self.account_id}
        if foreign:
            raise ValueError(f"AccountLedger {self.account_id} holds entries of other accounts: {sorted(foreign)}")
        return self


class PooledLedger(BaseModel):
    """Entries of every account sharing one contribution-room pool.

    RRSP room is pooled per contributor and RESP room per beneficiary; the
    caller decides which accounts belong to ``pool_key``.
    """

    model_config = ConfigDict(frozen=True)

    pool_key: str
    account_ids: frozenset[AccountId] = frozenset()
    entries: tuple[LedgerEntry, ...] = ()

    @model_validator(mode="after")
    def _validate_members(self) -> PooledLedger:
        unknown = {entry.account_id for entry in self.entries if entry.account_id not in self.account_ids}
        if unknown:
            raise ValueError(f"PooledLedger {self.pool_key} holds entries of unlisted accounts: {sorted(unknown)}")
        return self

    @classmethod
    def pool(cls, pool_key: str, ledgers: Iterable[AccountLedger]) -> PooledLedger:
        ledgers = list(ledgers)
        return cls(
            pool_key=pool_key,
            account_ids=frozenset(ledger.account_id for ledger in ledgers),
            entries=tuple(entry for ledger in ledgers for entry in ledger.entries),
        )


def sum_amounts(entries: Iterable[LedgerEntry]) -> Decimal:
    return sum((entry.amount for entry in entries), start=Decimal(0))


def entries_of_kind(entries: Iterable[LedgerEntry], kind: EntryKind) -> list[LedgerEntry]:
    return [entry for entry in entries if entry.kind == kind]
