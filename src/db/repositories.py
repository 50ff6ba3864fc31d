from __future__ import annotations

from typing import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from db import models
from domain.ledger import (
    AccountId,
    AccountLedger,
    AccountType,
    Beneficiary,
    BeneficiaryId,
    EntryKind,
    LedgerEntry,
    Person,
    PooledLedger,
    RegisteredAccount,
    TaxYearSnapshot,
)


class BeneficiaryRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def create(self, beneficiary: Beneficiary) -> Beneficiary:
        orm_beneficiary = models.BeneficiaryOrm(
            id=beneficiary.id,
            name=beneficiary.name,
            date_of_birth=beneficiary.date_of_birth,
        )
        self._session.add(orm_beneficiary)
        self._session.commit()
        self._session.refresh(orm_beneficiary)
        return self._to_domain(orm_beneficiary)

    def get(self, beneficiary_id: BeneficiaryId) -> Beneficiary | None:
        orm_beneficiary = self._session.get(models.BeneficiaryOrm, beneficiary_id)
        if orm_beneficiary is None:
            return None
        return self._to_domain(orm_beneficiary)

    def list(self) -> list[Beneficiary]:
        stmt = select(models.BeneficiaryOrm).order_by(models.BeneficiaryOrm.name.asc())
        return [self._to_domain(row) for row in self._session.scalars(stmt)]

    @staticmethod
    def _to_domain(orm_beneficiary: models.BeneficiaryOrm) -> Beneficiary:
        return Beneficiary(
            id=BeneficiaryId(orm_beneficiary.id),
            name=orm_beneficiary.name,
            date_of_birth=orm_beneficiary.date_of_birth,
        )


class RegisteredAccountRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def create(self, account: RegisteredAccount) -> RegisteredAccount:
        orm_account = models.RegisteredAccountOrm(
            id=account.id,
            name=account.name,
            account_type=account.account_type.value,
            owner=account.owner.value,
            contributor=account.contributor.value,
            beneficiary_id=account.beneficiary_id,
            room_start_year=account.room_start_year,
            notes=account.notes,
        )
        self._session.add(orm_account)
        self._session.commit()
        self._session.refresh(orm_account)
        return self._to_domain(orm_account)

    def get(self, account_id: AccountId) -> RegisteredAccount | None:
        orm_account = self._session.get(models.RegisteredAccountOrm, account_id)
        if orm_account is None:
            return None
        return self._to_domain(orm_account)

    def list(self) -> list[RegisteredAccount]:
        stmt = select(models.RegisteredAccountOrm).order_by(
            models.RegisteredAccountOrm.account_type.asc(), models.RegisteredAccountOrm.name.asc()
        )
        return [self._to_domain(row) for row in self._session.scalars(stmt)]

    def list_by_contributor(self, contributor: Person, account_type: AccountType) -> list[RegisteredAccount]:
        stmt = select(models.RegisteredAccountOrm).where(
            models.RegisteredAccountOrm.contributor == contributor.value,
            models.RegisteredAccountOrm.account_type == account_type.value,
        )
        return [self._to_domain(row) for row in self._session.scalars(stmt)]

    def list_by_beneficiary(self, beneficiary_id: BeneficiaryId) -> list[RegisteredAccount]:
        stmt = select(models.RegisteredAccountOrm).where(models.RegisteredAccountOrm.beneficiary_id == beneficiary_id)
        return [self._to_domain(row) for row in self._session.scalars(stmt)]

    @staticmethod
    def _to_domain(orm_account: models.RegisteredAccountOrm) -> RegisteredAccount:
        return RegisteredAccount(
            id=AccountId(orm_account.id),
            name=orm_account.name,
            account_type=AccountType(orm_account.account_type),
            owner=Person(orm_account.owner),
            contributor=Person(orm_account.contributor),
            beneficiary_id=BeneficiaryId(orm_account.beneficiary_id) if orm_account.beneficiary_id else None,
            room_start_year=orm_account.room_start_year,
            notes=orm_account.notes,
        )


class LedgerEntryRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def create(self, entry: LedgerEntry) -> LedgerEntry:
        (created,) = self.create_many([entry])
        return created

    def create_many(self, entries: Iterable[LedgerEntry]) -> list[LedgerEntry]:
        orm_entries = [
            models.RegisteredTransactionOrm(
                account_id=entry.account_id,
                kind=entry.kind.value,
                amount=entry.amount,
                occurred_on=entry.date,
                tax_year=entry.tax_year,
                notes=entry.notes,
            )
            for entry in entries
        ]
        self._session.add_all(orm_entries)
        self._session.commit()
        return [self._to_domain(row) for row in orm_entries]

    def ledger_for_account(self, account_id: AccountId) -> AccountLedger:
        return AccountLedger(account_id=account_id, entries=tuple(self._entries_for([account_id])))

    def pooled_ledger(self, pool_key: str, account_ids: Iterable[AccountId]) -> PooledLedger:
        ids = list(account_ids)
        return PooledLedger(pool_key=pool_key, account_ids=frozenset(ids), entries=tuple(self._entries_for(ids)))

    def _entries_for(self, account_ids: list[AccountId]) -> list[LedgerEntry]:
        if not account_ids:
            return []
        stmt = (
            select(models.RegisteredTransactionOrm)
            .where(models.RegisteredTransactionOrm.account_id.in_(account_ids))
            .order_by(models.RegisteredTransactionOrm.occurred_on.asc())
        )
        return [self._to_domain(row) for row in self._session.scalars(stmt)]

    @staticmethod
    def _to_domain(orm_entry: models.RegisteredTransactionOrm) -> LedgerEntry:
        return LedgerEntry(
            kind=EntryKind(orm_entry.kind),
            amount=orm_entry.amount,
            date=orm_entry.occurred_on,
            tax_year=orm_entry.tax_year,
            account_id=AccountId(orm_entry.account_id),
            notes=orm_entry.notes,
        )


class TaxYearSnapshotRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def upsert(self, snapshot: TaxYearSnapshot) -> TaxYearSnapshot:
        """Insert the snapshot or patch the stored one; figures left as None keep their stored value."""
        orm_snapshot = self._find(snapshot.person, snapshot.account_type, snapshot.tax_year)
        if orm_snapshot is None:
            orm_snapshot = models.TaxYearSnapshotOrm(
                person=snapshot.person.value,
                account_type=snapshot.account_type.value,
                tax_year=snapshot.tax_year,
            )
            self._session.add(orm_snapshot)

        if snapshot.earned_income is not None:
            orm_snapshot.earned_income = snapshot.earned_income
        if snapshot.noa_deduction_limit is not None:
            orm_snapshot.noa_deduction_limit = snapshot.noa_deduction_limit
        if snapshot.cra_room_as_of_jan1 is not None:
            orm_snapshot.cra_room_as_of_jan1 = snapshot.cra_room_as_of_jan1
        if snapshot.notes is not None:
            orm_snapshot.notes = snapshot.notes
        self._session.commit()
        self._session.refresh(orm_snapshot)
        return self._to_domain(orm_snapshot)

    def get(self, person: Person, account_type: AccountType, tax_year: int) -> TaxYearSnapshot | None:
        orm_snapshot = self._find(person, account_type, tax_year)
        if orm_snapshot is None:
            return None
        return self._to_domain(orm_snapshot)

    def list_for(self, person: Person, account_type: AccountType | None = None) -> list[TaxYearSnapshot]:
        stmt = select(models.TaxYearSnapshotOrm).where(models.TaxYearSnapshotOrm.person == person.value)
        if account_type is not None:
            stmt = stmt.where(models.TaxYearSnapshotOrm.account_type == account_type.value)
        stmt = stmt.order_by(models.TaxYearSnapshotOrm.tax_year.asc(), models.TaxYearSnapshotOrm.account_type.asc())
        return [self._to_domain(row) for row in self._session.scalars(stmt)]

    def _find(self, person: Person, account_type: AccountType, tax_year: int) -> models.TaxYearSnapshotOrm | None:
        stmt = select(models.TaxYearSnapshotOrm).where(
            models.TaxYearSnapshotOrm.person == person.value,
            models.TaxYearSnapshotOrm.account_type == account_type.value,
            models.TaxYearSnapshotOrm.tax_year == tax_year,
        )
        return self._session.scalars(stmt).first()

    @staticmethod
    def _to_domain(orm_snapshot: models.TaxYearSnapshotOrm) -> TaxYearSnapshot:
        return TaxYearSnapshot(
            person=Person(orm_snapshot.person),
            account_type=AccountType(orm_snapshot.account_type),
            tax_year=orm_snapshot.tax_year,
            earned_income=orm_snapshot.earned_income,
            noa_deduction_limit=orm_snapshot.noa_deduction_limit,
            cra_room_as_of_jan1=orm_snapshot.cra_room_as_of_jan1,
            notes=orm_snapshot.notes,
        )
