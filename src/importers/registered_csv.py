from __future__ import annotations

import csv
import logging
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any, TypeVar

from pydantic import BaseModel, field_validator

from domain.ledger import (
    AccountId,
    AccountType,
    Beneficiary,
    BeneficiaryId,
    EntryKind,
    LedgerEntry,
    Person,
    RegisteredAccount,
    TaxYearSnapshot,
)

logger = logging.getLogger(__name__)

BENEFICIARIES_CSV = "beneficiaries.csv"
ACCOUNTS_CSV = "accounts.csv"
TRANSACTIONS_CSV = "transactions.csv"
SNAPSHOTS_CSV = "snapshots.csv"

RowT = TypeVar("RowT", bound=BaseModel)


class _CsvRow(BaseModel):
    @field_validator("*", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip()
            if value == "":
                return None
        return value


class BeneficiaryRow(_CsvRow):
    id: str
    name: str
    date_of_birth: date


class AccountRow(_CsvRow):
    id: str
    name: str
    account_type: AccountType
    owner: Person
    contributor: Person | None = None
    beneficiary_id: str | None = None
    room_start_year: int | None = None
    notes: str | None = None


class TransactionRow(_CsvRow):
    account_id: str
    kind: EntryKind
    amount: Decimal
    date: date
    # Blank means the calendar year of `date`.
    tax_year: int | None = None
    notes: str | None = None


class SnapshotRow(_CsvRow):
    person: Person
    account_type: AccountType
    tax_year: int
    earned_income: Decimal | None = None
    noa_deduction_limit: Decimal | None = None
    cra_room_as_of_jan1: Decimal | None = None
    notes: str | None = None


def load_beneficiaries(csv_path: Path) -> list[Beneficiary]:
    rows = _read_rows(csv_path, BeneficiaryRow, required={"id", "name", "date_of_birth"})
    return [Beneficiary(id=BeneficiaryId(row.id), name=row.name, date_of_birth=row.date_of_birth) for row in rows]


def load_accounts(csv_path: Path) -> list[RegisteredAccount]:
    """Load accounts; a blank contributor means the owner contributes."""
    rows = _read_rows(csv_path, AccountRow, required={"id", "name", "account_type", "owner"})
    return [
        RegisteredAccount(
            id=AccountId(row.id),
            name=row.name,
            account_type=row.account_type,
            owner=row.owner,
            contributor=row.contributor or row.owner,
            beneficiary_id=BeneficiaryId(row.beneficiary_id) if row.beneficiary_id else None,
            room_start_year=row.room_start_year,
            notes=row.notes,
        )
        for row in rows
    ]


def load_transactions(csv_path: Path) -> list[LedgerEntry]:
    rows = _read_rows(csv_path, TransactionRow, required={"account_id", "kind", "amount", "date"})
    return [
        LedgerEntry(
            kind=row.kind,
            amount=row.amount,
            date=row.date,
            tax_year=row.tax_year if row.tax_year is not None else row.date.year,
            account_id=AccountId(row.account_id),
            notes=row.notes,
        )
        for row in rows
    ]


def load_snapshots(csv_path: Path) -> list[TaxYearSnapshot]:
    rows = _read_rows(csv_path, SnapshotRow, required={"person", "account_type", "tax_year"})
    return [
        TaxYearSnapshot(
            person=row.person,
            account_type=row.account_type,
            tax_year=row.tax_year,
            earned_income=row.earned_income,
            noa_deduction_limit=row.noa_deduction_limit,
            cra_room_as_of_jan1=row.cra_room_as_of_jan1,
            notes=row.notes,
        )
        for row in rows
    ]


def _read_rows(csv_path: Path, row_type: type[RowT], *, required: set[str]) -> list[RowT]:
    if not csv_path.exists():
        logger.info("No %s found, skipping", csv_path)
        return []

    with csv_path.open(newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        if reader.fieldnames is None:
            raise ValueError(f"CSV {csv_path} is empty or missing headers")

        missing = required - {name.strip() for name in reader.fieldnames}
        if missing:
            raise ValueError(f"CSV {csv_path} missing required columns: {', '.join(sorted(missing))}")

        rows = [
            row_type.model_validate({key.strip(): value for key, value in row.items() if key is not None})
            for row in reader
        ]

    logger.info("Loaded %d rows from %s", len(rows), csv_path)
    return rows
